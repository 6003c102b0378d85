"""Centralized configuration for stepflow.

This module provides the keyword sets that drive step auto-classification,
with YAML import/export and a small registry of named presets.

Example
-------
>>> from stepflow.config import get_classification_config, list_available_presets
>>>
>>> print(list_available_presets())
['default']
>>>
>>> config = get_classification_config()
>>> config.behavior_keywords.append("taps")
>>> config.to_yaml("my_keywords.yaml")
"""

from .keywords import (
    DEFAULT_BEHAVIOR_KEYWORDS,
    DEFAULT_RULE_KEYWORDS,
    DEFAULT_STATE_PREFIXES,
    ClassificationConfig,
    get_classification_config,
    list_available_presets,
    register_classification_config,
)

__all__ = [
    "ClassificationConfig",
    "DEFAULT_RULE_KEYWORDS",
    "DEFAULT_BEHAVIOR_KEYWORDS",
    "DEFAULT_STATE_PREFIXES",
    "get_classification_config",
    "list_available_presets",
    "register_classification_config",
]
