"""Classification keyword configuration.

Keyword sets drive the naming heuristics that decide whether a step is a
state, a rule or a behavior. They are configuration, not code: users can
export them to YAML, edit them, import them back, or restore the defaults.

Example
-------
>>> from stepflow.config import get_classification_config
>>> config = get_classification_config()
>>> "verify" in config.rule_keywords
True
>>> config.to_yaml("keywords.yaml")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

PathLike = Union[str, Path]

DEFAULT_RULE_KEYWORDS = [
    "is",
    "is eligible",
    "does",
    "valid",
    "invalid",
    "has",
    "can",
    "should",
    "verify",
    "verifies",
    "check",
    "checks",
    "validate",
    "validates",
]

DEFAULT_BEHAVIOR_KEYWORDS = [
    "click",
    "clicks",
    "enter",
    "enters",
    "submit",
    "submits",
    "select",
    "selects",
    "choose",
    "chooses",
    "provide",
    "provides",
    "answer",
    "answers",
    "upload",
    "uploads",
    "input",
    "inputs",
]

DEFAULT_STATE_PREFIXES = ["ask"]


@dataclass
class ClassificationConfig:
    """Keyword sets used by the step classifier.

    Attributes
    ----------
    name : str
        Preset name (lowercase, underscores)
    rule_keywords : List[str]
        Leading words that mark a step as a rule
    behavior_keywords : List[str]
        Leading words that mark a step as a behavior
    state_prefixes : List[str]
        Leading words that mark a step as a state (e.g. "ask")
    case_sensitive : bool
        Compare keywords without case folding
    """

    name: str = "default"
    rule_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_RULE_KEYWORDS))
    behavior_keywords: List[str] = field(
        default_factory=lambda: list(DEFAULT_BEHAVIOR_KEYWORDS)
    )
    state_prefixes: List[str] = field(default_factory=lambda: list(DEFAULT_STATE_PREFIXES))
    case_sensitive: bool = False

    @classmethod
    def default(cls) -> "ClassificationConfig":
        """Built-in keyword sets."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "rule_keywords": list(self.rule_keywords),
            "behavior_keywords": list(self.behavior_keywords),
            "state_prefixes": list(self.state_prefixes),
            "case_sensitive": self.case_sensitive,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ClassificationConfig":
        """Build config from a dict; missing keys fall back to defaults.

        Accepts both snake_case and the camelCase keys found in exported
        diagram files (``ruleKeywords``, ``behaviorKeywords``).
        """
        data = data or {}
        defaults = cls()

        def pick(*keys: str, default: Any) -> Any:
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return default

        return cls(
            name=str(pick("name", default=defaults.name)),
            rule_keywords=_clean_keywords(
                pick("rule_keywords", "ruleKeywords", default=defaults.rule_keywords)
            ),
            behavior_keywords=_clean_keywords(
                pick(
                    "behavior_keywords",
                    "behaviorKeywords",
                    default=defaults.behavior_keywords,
                )
            ),
            state_prefixes=_clean_keywords(
                pick("state_prefixes", "statePrefixes", default=defaults.state_prefixes)
            ),
            case_sensitive=bool(
                pick("case_sensitive", "caseSensitive", default=defaults.case_sensitive)
            ),
        )

    @classmethod
    def from_yaml(cls, path: PathLike) -> "ClassificationConfig":
        """Load classification config from a YAML file.

        Parameters
        ----------
        path : PathLike
            Path to YAML file. A top-level ``classification`` section is
            used when present, otherwise the whole document.

        Returns
        -------
        ClassificationConfig
            Loaded configuration
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if "classification" in data:
            data = data["classification"] or {}
        return cls.from_dict(data)

    def to_yaml(self, path: PathLike) -> Path:
        """Write the config as YAML and return the path."""
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            yaml.safe_dump({"classification": self.to_dict()}, f, sort_keys=False)
        return output_path


def _clean_keywords(values: Any) -> List[str]:
    """Strip blanks and duplicates, preserving order."""
    if isinstance(values, str):
        values = [values]
    result: List[str] = []
    for value in values or []:
        keyword = str(value).strip()
        if keyword and keyword not in result:
            result.append(keyword)
    return result


# =============================================================================
# Registry
# =============================================================================

# Registered keyword presets by normalized name
CLASSIFICATION_CONFIG_REGISTRY: Dict[str, ClassificationConfig] = {}


def _normalize_name(name: str) -> str:
    return name.strip().lower().replace(" ", "_").replace("-", "_")


def register_classification_config(config: ClassificationConfig) -> None:
    """Register a keyword preset under its (normalized) name."""
    CLASSIFICATION_CONFIG_REGISTRY[_normalize_name(config.name)] = config


def get_classification_config(name: Optional[str] = None) -> ClassificationConfig:
    """Get a keyword preset by name.

    Parameters
    ----------
    name : str, optional
        Preset name. None or "default" returns a fresh copy of the built-in
        keyword sets.

    Returns
    -------
    ClassificationConfig
        A copy of the registered preset (safe to edit)

    Raises
    ------
    ValueError
        If the preset is not registered
    """
    if name is None or _normalize_name(name) == "default":
        return ClassificationConfig.default()

    key = _normalize_name(name)
    if key not in CLASSIFICATION_CONFIG_REGISTRY:
        raise ValueError(
            f"Unknown classification preset: '{name}'. "
            f"Available: {list_available_presets()}"
        )
    return ClassificationConfig.from_dict(CLASSIFICATION_CONFIG_REGISTRY[key].to_dict())


def list_available_presets() -> List[str]:
    """List registered preset names (always includes "default")."""
    return sorted(set(CLASSIFICATION_CONFIG_REGISTRY) | {"default"})
