"""Step classification into state, rule and behavior roles."""

from .engine import (
    ClassificationResult,
    Classifier,
    category_of,
    classify,
    count_categories,
    find_branching_steps,
)
from .rules import ClassificationRule, build_rules, is_all_caps, starts_with_keyword

__all__ = [
    "Classifier",
    "ClassificationResult",
    "ClassificationRule",
    "build_rules",
    "category_of",
    "classify",
    "count_categories",
    "find_branching_steps",
    "is_all_caps",
    "starts_with_keyword",
]
