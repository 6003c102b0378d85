"""Rule-chain resolution.

A connection leaving a state step either lands on another state (a direct
transition) or enters a chain of rule/behavior steps. The chain is walked
forward along each step's first outgoing connection, collecting rule labels,
until it reaches a state, runs out of edges, or revisits a step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Set, Union

from ..classifier import category_of
from ..dictionary import NameDictionary
from ..graph import Connection, Step, StepTree, StepType

logger = logging.getLogger(__name__)

DictionaryLike = Union[NameDictionary, Mapping[str, str]]


class ChainOutcome(Enum):
    """How a chain walk ended."""

    DIRECT = "direct"  # Target is itself a state
    RESOLVED = "resolved"  # Chain reached a state
    DANGLING = "dangling"  # Chain hit a step with no outgoing connection
    CYCLE = "cycle"  # Chain revisited a step
    MISSING_TARGET = "missing_target"  # Connection points at no known step


@dataclass
class ChainResolution:
    """Result of resolving one outgoing connection of a state step.

    Attributes
    ----------
    destination : str
        Destination label, "" when the chain reaches no state
    rule_names : List[str]
        Rule labels collected along the chain, in walk order
    outcome : ChainOutcome
        How the walk ended
    path : List[str]
        Rule/behavior step ids traversed (excludes source and destination)
    destination_step_id : str, optional
        Id of the state step reached, if any
    """

    destination: str
    rule_names: List[str] = field(default_factory=list)
    outcome: ChainOutcome = ChainOutcome.DIRECT
    path: List[str] = field(default_factory=list)
    destination_step_id: Optional[str] = None

    def rule_list(self, separator: str = " + ") -> str:
        return separator.join(self.rule_names)

    @property
    def reached_state(self) -> bool:
        return self.outcome in (ChainOutcome.DIRECT, ChainOutcome.RESOLVED)


def as_dictionary(kind: str, value: Optional[DictionaryLike]) -> NameDictionary:
    """Wrap a plain mapping as a NameDictionary of the given kind."""
    if isinstance(value, NameDictionary):
        return value
    return NameDictionary(kind, value or {})


class ChainResolver:
    """Resolve connections against a fixed graph, classification and dictionaries.

    Parameters
    ----------
    steps : Iterable[Step]
        All steps, in store order
    connections : Iterable[Connection]
        All connections, in store order
    classifications : Mapping[str, StepType]
        step id -> category; unclassified steps count as states
    state_dictionary, rule_dictionary : NameDictionary or Mapping[str, str]
        Label lookups keyed by qualified name
    """

    def __init__(
        self,
        steps: Iterable[Step],
        connections: Iterable[Connection],
        classifications: Mapping[str, Union[StepType, str]],
        state_dictionary: Optional[DictionaryLike] = None,
        rule_dictionary: Optional[DictionaryLike] = None,
    ):
        self.tree = StepTree(steps)
        self.classifications = classifications
        self.state_dictionary = as_dictionary("state", state_dictionary)
        self.rule_dictionary = as_dictionary("rule", rule_dictionary)
        self.outgoing: Dict[str, List[Connection]] = {}
        for conn in connections:
            self.outgoing.setdefault(conn.from_step_id, []).append(conn)

    def category(self, step_id: str) -> StepType:
        return category_of(self.classifications, step_id)

    def state_label(self, step_id: str) -> str:
        return self.state_dictionary.lookup(self.tree.qualified_name(step_id))

    def rule_label(self, step_id: str) -> str:
        return self.rule_dictionary.lookup(self.tree.qualified_name(step_id))

    def resolve(self, connection: Connection) -> ChainResolution:
        """Resolve the destination and collapsed rule list for one connection."""
        target = connection.to_step_id
        if target not in self.tree.by_id:
            logger.warning("Connection points at unknown step: %s", target)
            return ChainResolution(destination="", outcome=ChainOutcome.MISSING_TARGET)

        if self.category(target) is StepType.STATE:
            return ChainResolution(
                destination=self.state_label(target),
                outcome=ChainOutcome.DIRECT,
                destination_step_id=target,
            )

        rule_names: List[str] = []
        path: List[str] = []
        visited: Set[str] = set()
        current = target
        while True:
            visited.add(current)
            path.append(current)
            if self.category(current) is StepType.RULE:
                rule_names.append(self.rule_label(current))

            edges = self.outgoing.get(current)
            if not edges:
                logger.debug(
                    "Dangling chain at %r", self.tree.qualified_name(current)
                )
                return ChainResolution("", rule_names, ChainOutcome.DANGLING, path)

            next_id = edges[0].to_step_id
            if next_id in visited:
                logger.debug(
                    "Cycle in chain at %r", self.tree.qualified_name(next_id)
                )
                return ChainResolution("", rule_names, ChainOutcome.CYCLE, path)
            if next_id not in self.tree.by_id:
                return ChainResolution("", rule_names, ChainOutcome.DANGLING, path)
            if self.category(next_id) is StepType.STATE:
                return ChainResolution(
                    destination=self.state_label(next_id),
                    rule_names=rule_names,
                    outcome=ChainOutcome.RESOLVED,
                    path=path,
                    destination_step_id=next_id,
                )
            current = next_id


def resolve_chain(
    connection: Connection,
    steps: Iterable[Step],
    connections: Iterable[Connection],
    classifications: Mapping[str, Union[StepType, str]],
    state_dictionary: Optional[DictionaryLike] = None,
    rule_dictionary: Optional[DictionaryLike] = None,
) -> ChainResolution:
    """Convenience function to resolve a single connection."""
    resolver = ChainResolver(
        steps, connections, classifications, state_dictionary, rule_dictionary
    )
    return resolver.resolve(connection)
