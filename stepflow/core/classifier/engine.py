"""Step classifier: assigns each step a state, rule or behavior role."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ...config import ClassificationConfig
from ..graph import Connection, Step, StepType
from .rules import ClassificationRule, build_rules

logger = logging.getLogger(__name__)

# Rule id reported when a step carries an explicit type
EXPLICIT_RULE_ID = "EXPLICIT"
# Rule id reported when no naming rule matched
DEFAULT_RULE_ID = "DEFAULT"


@dataclass(frozen=True)
class ClassificationResult:
    """Category for a step together with the rule that produced it."""

    category: StepType
    rule_id: str


class Classifier:
    """Classify steps from their explicit type or their name.

    ``classify`` is a pure function of (step type, step name, keyword
    config): the same inputs always give the same category.

    A name "starts with" a keyword only when the keyword is its whole
    leading word (or words): "has" does not match "Hash table" and "click"
    does not match "clicked".

    Parameters
    ----------
    config : ClassificationConfig, optional
        Keyword sets. Default: the built-in keyword sets.

    Example
    -------
    >>> classifier = Classifier()
    >>> classifier.classify_name("is valid?")
    <StepType.RULE: 'rule'>
    >>> classifier.classify_name("clicks submit")
    <StepType.BEHAVIOR: 'behavior'>
    """

    def __init__(self, config: Optional[ClassificationConfig] = None):
        self.config = config or ClassificationConfig.default()
        self.rules: List[ClassificationRule] = build_rules(self.config)

    def explain_name(self, name: str) -> ClassificationResult:
        """Return the category for a bare name and the rule that matched."""
        for rule in self.rules:
            if rule.matches(name):
                return ClassificationResult(rule.category, rule.rule_id)
        return ClassificationResult(StepType.STATE, DEFAULT_RULE_ID)

    def explain(self, step: Step) -> ClassificationResult:
        """Return the category for a step; an explicit type always wins."""
        if step.type is not None:
            return ClassificationResult(step.type, EXPLICIT_RULE_ID)
        return self.explain_name(step.name)

    def classify_name(self, name: str) -> StepType:
        return self.explain_name(name).category

    def classify(self, step: Step) -> StepType:
        return self.explain(step).category

    def classify_all(
        self,
        steps: Iterable[Step],
        overrides: Optional[Mapping[str, Union[StepType, str]]] = None,
    ) -> Dict[str, StepType]:
        """Classify every step, keyed by step id in input order.

        Parameters
        ----------
        steps : Iterable[Step]
            Steps to classify
        overrides : Mapping[str, StepType], optional
            User-set categories that replace the computed ones

        Returns
        -------
        Dict[str, StepType]
            step id -> category
        """
        overrides = overrides or {}
        result: Dict[str, StepType] = {}
        for step in steps:
            if step.id in overrides:
                result[step.id] = StepType.coerce(overrides[step.id])
            else:
                result[step.id] = self.classify(step)
        counts = Counter(result.values())
        logger.debug(
            "Classified %d step(s): %d state, %d rule, %d behavior",
            len(result),
            counts[StepType.STATE],
            counts[StepType.RULE],
            counts[StepType.BEHAVIOR],
        )
        return result


def classify(step: Step, config: Optional[ClassificationConfig] = None) -> StepType:
    """Convenience function to classify a single step.

    Keywords match whole leading words only; see ``Classifier``.
    """
    return Classifier(config).classify(step)


def count_categories(classifications: Mapping[str, StepType]) -> Dict[str, int]:
    """Return ``{"state": n, "rule": n, "behavior": n}`` totals."""
    counts = Counter(StepType.coerce(c) for c in classifications.values())
    return {member.value: counts[member] for member in StepType}


def category_of(
    classifications: Mapping[str, Union[StepType, str]], step_id: str
) -> StepType:
    """Category recorded for step_id; unclassified steps count as states."""
    return StepType.coerce(classifications.get(step_id, StepType.STATE))


def find_branching_steps(
    steps: Iterable[Step],
    connections: Iterable[Connection],
    classifications: Mapping[str, StepType],
) -> List[Tuple[str, int]]:
    """Find rule/behavior steps with more than one outgoing connection.

    Chain resolution only follows the first outgoing connection of such a
    step, so every other edge is silently ignored in the export.

    Returns
    -------
    List[Tuple[str, int]]
        (step id, out-degree) pairs in step order
    """
    out_degree: Counter = Counter(conn.from_step_id for conn in connections)
    branching: List[Tuple[str, int]] = []
    for step in steps:
        if category_of(classifications, step.id) is not StepType.STATE and out_degree[step.id] > 1:
            branching.append((step.id, out_degree[step.id]))
    return branching
