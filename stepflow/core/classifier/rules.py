"""Ordered naming rules for step auto-classification.

Rules are applied in order; the first match decides the category:
1. Name ends with "?"                    -> rule
2. Name starts with a rule keyword       -> rule
3. Name starts with a state prefix       -> state  (e.g. "ask user for SSN")
4. Name is ALL CAPS                      -> state  (e.g. "DASHBOARD")
5. Name starts with a behavior keyword   -> behavior
6. Default                               -> state
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from ...config import ClassificationConfig
from ..graph import StepType

NamePredicate = Callable[[str], bool]


@dataclass(frozen=True)
class ClassificationRule:
    """A (predicate, category) pair evaluated against a step name."""

    rule_id: str
    category: StepType
    predicate: NamePredicate
    description: str = ""

    def matches(self, name: str) -> bool:
        return self.predicate(name)


def normalize_name(name: str, case_sensitive: bool = False) -> str:
    """Trim and collapse whitespace; case-fold unless case_sensitive."""
    collapsed = " ".join(str(name).split())
    return collapsed if case_sensitive else collapsed.casefold()


def starts_with_keyword(
    name: str, keywords: Iterable[str], case_sensitive: bool = False
) -> Optional[str]:
    """Return the first keyword that leads name as a whole word, else None.

    Examples
    --------
    >>> starts_with_keyword("Verify account", ["verify"])
    'verify'
    >>> starts_with_keyword("Verification page", ["verify"]) is None
    True
    """
    normalized = normalize_name(name, case_sensitive)
    for keyword in keywords:
        key = normalize_name(keyword, case_sensitive)
        if key and re.match(re.escape(key) + r"(?:\s|$)", normalized):
            return keyword
    return None


def is_all_caps(name: str) -> bool:
    """True if the name has cased letters and all of them are upper case."""
    return name.strip().isupper()


def build_rules(config: Optional[ClassificationConfig] = None) -> List[ClassificationRule]:
    """Build the ordered classification rules for a keyword config."""
    config = config or ClassificationConfig.default()
    cs = config.case_sensitive
    rule_keywords = list(config.rule_keywords)
    behavior_keywords = list(config.behavior_keywords)
    state_prefixes = list(config.state_prefixes)

    return [
        ClassificationRule(
            rule_id="QUESTION_MARK",
            category=StepType.RULE,
            predicate=lambda name: name.strip().endswith("?"),
            description="Name ends with '?'",
        ),
        ClassificationRule(
            rule_id="RULE_KEYWORD",
            category=StepType.RULE,
            predicate=lambda name: starts_with_keyword(name, rule_keywords, cs) is not None,
            description="Name starts with a rule keyword",
        ),
        ClassificationRule(
            rule_id="STATE_PREFIX",
            category=StepType.STATE,
            predicate=lambda name: starts_with_keyword(name, state_prefixes, cs) is not None,
            description="Name starts with a state prefix",
        ),
        ClassificationRule(
            rule_id="ALL_CAPS",
            category=StepType.STATE,
            predicate=is_all_caps,
            description="Name is ALL CAPS",
        ),
        ClassificationRule(
            rule_id="BEHAVIOR_KEYWORD",
            category=StepType.BEHAVIOR,
            predicate=lambda name: starts_with_keyword(name, behavior_keywords, cs)
            is not None,
            description="Name starts with a behavior keyword",
        ),
    ]
