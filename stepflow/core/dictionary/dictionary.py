"""Qualified-name dictionaries for state and rule labels.

Each dictionary maps a step's qualified name (e.g. "Checkout > Payment")
to the canonical label used in the exported state machine. Lookups are
total: a missing key yields a sentinel string instead of raising, so an
export always completes and the gap is visible in the output cell.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from ..classifier import category_of
from ..graph import Step, StepTree, StepType

logger = logging.getLogger(__name__)

UNKNOWN_STATE_TEMPLATE = "[UNKNOWN_STATE: {name}]"
UNKNOWN_RULE_TEMPLATE = "[UNKNOWN_RULE: {name}]"

SENTINEL_TEMPLATES = {
    "state": UNKNOWN_STATE_TEMPLATE,
    "rule": UNKNOWN_RULE_TEMPLATE,
}


class DictionaryFormatError(ValueError):
    """Raised when dictionary data is not a flat string-to-string object."""

    pass


class NameDictionary:
    """Editable mapping from qualified step name to export label.

    Parameters
    ----------
    kind : str
        "state" or "rule"; selects the sentinel format
    entries : Mapping[str, str], optional
        Initial entries, kept in the given order

    Example
    -------
    >>> states = NameDictionary("state", {"Login": "LOGIN"})
    >>> states.lookup("Login")
    'LOGIN'
    >>> states.lookup("Signup")
    '[UNKNOWN_STATE: Signup]'
    """

    def __init__(self, kind: str, entries: Optional[Mapping[str, str]] = None):
        if kind not in SENTINEL_TEMPLATES:
            raise ValueError(
                f"Unknown dictionary kind: {kind!r}. Expected one of {list(SENTINEL_TEMPLATES)}"
            )
        self.kind = kind
        self._entries: Dict[str, str] = {}
        for key, label in (entries or {}).items():
            self.set(key, label)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NameDictionary):
            return NotImplemented
        return self.kind == other.kind and self._entries == other._entries

    def __repr__(self) -> str:
        return f"NameDictionary(kind={self.kind!r}, entries={len(self._entries)})"

    def sentinel(self, qualified_name: str) -> str:
        return SENTINEL_TEMPLATES[self.kind].format(name=qualified_name)

    def lookup(self, qualified_name: str) -> str:
        """Return the mapped label, or the sentinel if the name is absent."""
        label = self._entries.get(qualified_name)
        if label is None:
            logger.debug("No %s mapping for %r", self.kind, qualified_name)
            return self.sentinel(qualified_name)
        return label

    def get(self, qualified_name: str) -> Optional[str]:
        return self._entries.get(qualified_name)

    def items(self) -> List[tuple]:
        return list(self._entries.items())

    def set(self, qualified_name: str, label: str) -> None:
        """Add or replace an entry."""
        self._entries[str(qualified_name)] = str(label)

    def delete(self, qualified_name: str) -> bool:
        """Remove an entry. False if it was not present."""
        if qualified_name not in self._entries:
            return False
        del self._entries[qualified_name]
        return True

    def rename_key(self, old_name: str, new_name: str) -> bool:
        """Move the label stored under old_name to new_name.

        The entry keeps its position. An existing entry under new_name is
        replaced. Returns False if old_name is not present.
        """
        if old_name not in self._entries:
            return False
        if old_name == new_name:
            return True
        self._entries.pop(new_name, None)
        self._entries = {
            (new_name if key == old_name else key): value
            for key, value in self._entries.items()
        }
        logger.debug("Renamed %s dictionary key %r -> %r", self.kind, old_name, new_name)
        return True

    def orphaned_keys(self, qualified_names: Iterable[str]) -> List[str]:
        """Keys that match none of the given qualified names."""
        known = set(qualified_names)
        return [key for key in self._entries if key not in known]

    def to_dict(self) -> Dict[str, str]:
        """Flat ``{qualified_name: label}`` copy."""
        return dict(self._entries)

    @classmethod
    def from_dict(cls, kind: str, data: Any) -> "NameDictionary":
        """Build a dictionary from a flat JSON-style object.

        Raises
        ------
        DictionaryFormatError
            If data is not a mapping of strings to strings
        """
        if not isinstance(data, Mapping):
            raise DictionaryFormatError(
                f"Expected a JSON object for the {kind} dictionary, got {type(data).__name__}"
            )
        bad = [k for k, v in data.items() if not isinstance(k, str) or not isinstance(v, str)]
        if bad:
            raise DictionaryFormatError(
                f"{kind.capitalize()} dictionary values must be strings; offending keys: {bad[:5]}"
            )
        return cls(kind, data)


@dataclass
class StepDictionaries:
    """The state and rule dictionaries used for one export."""

    state: NameDictionary = field(default_factory=lambda: NameDictionary("state"))
    rule: NameDictionary = field(default_factory=lambda: NameDictionary("rule"))

    def lookup_state(self, qualified_name: str) -> str:
        return self.state.lookup(qualified_name)

    def lookup_rule(self, qualified_name: str) -> str:
        return self.rule.lookup(qualified_name)

    def migrate_key(self, old_name: str, new_name: str) -> bool:
        """Rename a key in whichever dictionaries hold it."""
        moved_state = self.state.rename_key(old_name, new_name)
        moved_rule = self.rule.rename_key(old_name, new_name)
        return moved_state or moved_rule

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {
            "stateDictionary": self.state.to_dict(),
            "ruleDictionary": self.rule.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "StepDictionaries":
        data = data or {}
        return cls(
            state=NameDictionary.from_dict("state", data.get("stateDictionary") or {}),
            rule=NameDictionary.from_dict("rule", data.get("ruleDictionary") or {}),
        )


def generate_default_dictionaries(
    steps: Iterable[Step],
    classifications: Mapping[str, Union[StepType, str]],
) -> StepDictionaries:
    """Seed identity mappings (qualified name -> qualified name).

    State-classified steps go into the state dictionary, rule-classified
    steps into the rule dictionary; behavior steps appear in neither.

    Parameters
    ----------
    steps : Iterable[Step]
        All steps (parents are needed for qualified names)
    classifications : Mapping[str, StepType]
        step id -> category; unclassified steps count as states

    Returns
    -------
    StepDictionaries
        Freshly seeded dictionaries
    """
    tree = StepTree(steps)
    dictionaries = StepDictionaries()
    for step in tree.steps:
        qualified = tree.qualified_name(step.id)
        category = category_of(classifications, step.id)
        if category is StepType.STATE:
            dictionaries.state.set(qualified, qualified)
        elif category is StepType.RULE:
            dictionaries.rule.set(qualified, qualified)
    logger.info(
        "Generated default dictionaries: %d state, %d rule entries",
        len(dictionaries.state),
        len(dictionaries.rule),
    )
    return dictionaries
