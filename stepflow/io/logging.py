"""Logging utilities for stepflow.

Provides a timestamped file logger for CLI runs and structured run records
(JSON lines for conversions, YAML documents for validation reports).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import yaml

PathLike = Union[str, Path]

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_timestamped_log_path(log_path: PathLike) -> Path:
    """Insert a timestamp before the suffix of log_path.

    Example: convert.log -> convert_20251209_080530.log
    """
    log_path = Path(log_path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return log_path.parent / f"{log_path.stem}_{timestamp}{log_path.suffix or '.log'}"


def get_logger(
    name: str,
    log_path: PathLike,
    level: int = logging.INFO,
    timestamped: bool = True,
) -> Tuple[logging.Logger, Path]:
    """Attach a single file handler to the named logger.

    Parameters
    ----------
    name : str
        Logger name; "stepflow" captures every module in the package.
    log_path : PathLike
        Base path for the log file.
    level : int
        Logging level (default: INFO).
    timestamped : bool
        If True, write to a timestamped sibling of log_path so earlier runs
        are kept. If False, truncate log_path.

    Returns
    -------
    Tuple[logging.Logger, Path]
        The configured logger and the file it writes to.
    """
    actual_log_path = get_timestamped_log_path(log_path) if timestamped else Path(log_path)
    actual_log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    close_file_handlers(logger)
    handler = logging.FileHandler(
        actual_log_path, mode="a" if timestamped else "w", encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    return logger, actual_log_path


def close_file_handlers(logger: logging.Logger) -> None:
    """Detach and close every file handler attached by get_logger."""
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()


def conversion_record(
    input_path: PathLike,
    output_path: Optional[PathLike],
    row_count: int,
    outcome_counts: Mapping[str, int],
    issues: Iterable[Any] = (),
) -> Dict[str, Any]:
    """Summary of one diagram-to-CSV conversion, ready for log_json."""
    return {
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "input": str(input_path),
        "output": str(output_path) if output_path is not None else None,
        "rows": row_count,
        "outcomes": dict(outcome_counts),
        "issues": _count_severities(issues),
    }


def validation_record(input_path: PathLike, issues: Iterable[Any]) -> Dict[str, Any]:
    """Validation report for one diagram, ready for log_yaml."""
    issues = list(issues)
    return {
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "input": str(input_path),
        "counts": _count_severities(issues),
        "issues": [issue.to_dict() for issue in issues],
    }


def _count_severities(issues: Iterable[Any]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for issue in issues:
        counts[issue.severity] = counts.get(issue.severity, 0) + 1
    return counts


def log_json(log_path: PathLike, record: Dict[str, Any]) -> None:
    """Append record to log_path as one JSON line."""
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(record, default=str))
        handle.write("\n")


def log_yaml(
    log_path: Optional[PathLike],
    record: Dict[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Append record to log_path as a YAML document.

    If logger is given, the document is logged at INFO instead of written.
    """
    message = yaml.safe_dump(record, sort_keys=False).rstrip("\n") + "\n---"
    if logger is not None:
        logger.info("%s", message)
        return
    if log_path is None:
        raise ValueError("log_path is required when no logger is given")

    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(message)
        handle.write("\n")
