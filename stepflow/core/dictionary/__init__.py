"""Qualified-name dictionaries with total lookup."""

from .dictionary import (
    UNKNOWN_RULE_TEMPLATE,
    UNKNOWN_STATE_TEMPLATE,
    DictionaryFormatError,
    NameDictionary,
    StepDictionaries,
    generate_default_dictionaries,
)

__all__ = [
    "NameDictionary",
    "StepDictionaries",
    "DictionaryFormatError",
    "generate_default_dictionaries",
    "UNKNOWN_STATE_TEMPLATE",
    "UNKNOWN_RULE_TEMPLATE",
]
