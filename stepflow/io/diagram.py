"""Diagram and dictionary file I/O.

A diagram snapshot is one JSON document holding the graph together with
its derived, user-edited state::

    {
      "version": "1.0",
      "steps": [...],
      "connections": [...],
      "classifications": {"<step id>": "state" | "rule" | "behavior"},
      "stateDictionary": {"<qualified name>": "<label>"},
      "ruleDictionary": {"<qualified name>": "<label>"},
      "classificationRules": {...} | null
    }

Only ``steps`` is required, so plain diagram exports load as well.
Dictionaries are also exchanged on their own as flat JSON objects.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..core.dictionary import DictionaryFormatError, NameDictionary

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SNAPSHOT_VERSION = "1.0"


class DiagramFormatError(ValueError):
    """Raised when a diagram document is structurally invalid."""

    pass


def validate_snapshot(data: Any) -> Dict[str, Any]:
    """Check the minimal snapshot shape and return it.

    Raises
    ------
    DiagramFormatError
        If data is not an object or lacks a ``steps`` list
    """
    if not isinstance(data, dict):
        raise DiagramFormatError(
            f"Invalid diagram format: expected a JSON object, got {type(data).__name__}"
        )
    if not isinstance(data.get("steps"), list):
        raise DiagramFormatError("Invalid diagram format: missing steps array")
    connections = data.get("connections")
    if connections is not None and not isinstance(connections, list):
        raise DiagramFormatError("Invalid diagram format: connections must be an array")
    return data


def load_diagram(path: PathLike) -> Dict[str, Any]:
    """Read and validate a diagram snapshot.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    DiagramFormatError
        If the JSON is malformed or not a diagram
    """
    diagram_path = Path(path)
    if not diagram_path.exists():
        raise FileNotFoundError(f"Diagram file not found: {diagram_path}")
    try:
        with open(diagram_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DiagramFormatError(f"Error parsing {diagram_path}: {e}") from e
    logger.info("Loaded diagram from %s", diagram_path)
    return validate_snapshot(data)


def save_diagram(snapshot: Mapping[str, Any], path: PathLike) -> Path:
    """Write a snapshot atomically (temp file, then replace).

    An interrupted or failed write leaves any previous file intact.
    Raises OSError on failure.
    """
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    document = {"version": SNAPSHOT_VERSION, **snapshot}

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{output_path.name}.", suffix=".tmp", dir=output_path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, output_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Saved diagram to %s", output_path)
    return output_path


class DiagramStorage:
    """File-backed persistence for one diagram snapshot.

    ``load`` never raises: a missing or unreadable file yields None so the
    caller starts from an empty document. ``save`` propagates OSError; it
    only reads the snapshot it is given, so in-memory state is untouched
    whether or not the write succeeds.

    Parameters
    ----------
    path : PathLike
        Snapshot file location
    """

    def __init__(self, path: PathLike):
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            logger.info("No saved diagram at %s", self.path)
            return None
        try:
            return load_diagram(self.path)
        except (OSError, DiagramFormatError) as e:
            logger.error("Error loading diagram from %s: %s", self.path, e)
            return None

    def save(self, snapshot: Mapping[str, Any]) -> Path:
        return save_diagram(snapshot, self.path)


def load_dictionary_json(path: PathLike, kind: str) -> NameDictionary:
    """Read a flat ``{qualified name: label}`` JSON file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    DictionaryFormatError
        If the JSON is malformed or not a flat string mapping
    """
    dictionary_path = Path(path)
    if not dictionary_path.exists():
        raise FileNotFoundError(f"Dictionary file not found: {dictionary_path}")
    try:
        with open(dictionary_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise DictionaryFormatError(f"Error parsing {dictionary_path}: {e}") from e
    dictionary = NameDictionary.from_dict(kind, data)
    logger.info("Loaded %d %s dictionary entries from %s", len(dictionary), kind, dictionary_path)
    return dictionary


def save_dictionary_json(dictionary: NameDictionary, path: PathLike) -> Path:
    """Write a dictionary as a flat, pretty-printed JSON object."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(dictionary.to_dict(), f, indent=2, ensure_ascii=False)
    return output_path
