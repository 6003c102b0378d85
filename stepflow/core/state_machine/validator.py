"""Graph checks reported as warnings.

Conversion never rejects a graph; these checks surface the defects that
conversion silently degrades around (dangling chains, cycles, branching
rule steps, stale dictionary keys) so they can be shown to the user.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..classifier import find_branching_steps
from ..dictionary import StepDictionaries
from ..graph import Connection, Step, StepTree, StepType
from .resolver import ChainOutcome, ChainResolver

SEVERITY_ORDER = {"note": 0, "warning": 1, "error": 2}


@dataclass(frozen=True)
class GraphIssue:
    """A problem found in the graph.

    Attributes
    ----------
    code : str
        Machine-readable issue code (e.g. "DANGLING_CHAIN")
    severity : str
        "error", "warning" or "note"
    message : str
        Human-readable description
    step_id : str, optional
        Step the issue is attached to
    """

    code: str
    severity: str
    message: str
    step_id: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.severity.upper()}] {self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
            "step_id": self.step_id,
        }


def validate_graph(
    steps: Iterable[Step],
    connections: Iterable[Connection],
    classifications: Mapping[str, Union[StepType, str]],
    dictionaries: Optional[StepDictionaries] = None,
) -> List[GraphIssue]:
    """
    Check a graph for conversion defects.

    Returns list of issues (empty if clean), errors first.
    """
    steps = list(steps)
    connections = list(connections)
    tree = StepTree(steps)
    issues: List[GraphIssue] = []

    issues.extend(_check_hierarchy(tree))
    issues.extend(_check_connections(tree, connections))

    for step_id, degree in find_branching_steps(steps, connections, classifications):
        issues.append(
            GraphIssue(
                "BRANCHING_CHAIN_NODE",
                "warning",
                f"'{tree.qualified_name(step_id)}' has {degree} outgoing connections; "
                "only the first is followed",
                step_id,
            )
        )

    check_dictionaries = dictionaries is not None
    dictionaries = dictionaries or StepDictionaries()
    resolver = ChainResolver(
        steps, connections, classifications, dictionaries.state, dictionaries.rule
    )
    issues.extend(_check_chains(resolver))
    issues.extend(_check_unconnected(tree, connections))

    if check_dictionaries:
        issues.extend(_check_dictionaries(resolver, dictionaries))

    return sorted(issues, key=lambda issue: -SEVERITY_ORDER.get(issue.severity, 0))


def has_issues(issues: Iterable[GraphIssue], min_severity: str = "warning") -> bool:
    """True if any issue is at least min_severity."""
    threshold = SEVERITY_ORDER[min_severity]
    return any(SEVERITY_ORDER.get(i.severity, 0) >= threshold for i in issues)


def _check_hierarchy(tree: StepTree) -> List[GraphIssue]:
    issues = []
    for step in tree.steps:
        if step.parent_id is not None and step.parent_id not in tree.by_id:
            issues.append(
                GraphIssue(
                    "MISSING_PARENT",
                    "warning",
                    f"'{step.name}' references missing parent {step.parent_id}",
                    step.id,
                )
            )
    for cycle in tree.find_parent_cycles():
        names = " -> ".join(tree.by_id[step_id].name for step_id in cycle)
        issues.append(
            GraphIssue("PARENT_CYCLE", "error", f"Parent cycle: {names}", cycle[0])
        )
    return issues


def _check_connections(tree: StepTree, connections: List[Connection]) -> List[GraphIssue]:
    issues = []
    for conn in connections:
        for endpoint in (conn.from_step_id, conn.to_step_id):
            if endpoint not in tree.by_id:
                issues.append(
                    GraphIssue(
                        "DANGLING_CONNECTION",
                        "warning",
                        f"{conn.type.value} connection {conn.from_step_id} -> "
                        f"{conn.to_step_id} references missing step {endpoint}",
                    )
                )
    return issues


def _check_chains(resolver: ChainResolver) -> List[GraphIssue]:
    issues: Dict[tuple, GraphIssue] = {}
    for step in resolver.tree.steps:
        if resolver.category(step.id) is not StepType.STATE:
            continue
        for conn in resolver.outgoing.get(step.id, []):
            resolution = resolver.resolve(conn)
            if resolution.outcome is ChainOutcome.DANGLING:
                code, what = "DANGLING_CHAIN", "ends without reaching a state"
            elif resolution.outcome is ChainOutcome.CYCLE:
                code, what = "CYCLE_IN_CHAIN", "loops back on itself"
            else:
                continue
            last = resolution.path[-1]
            key = (code, step.id, last)
            if key not in issues:
                issues[key] = GraphIssue(
                    code,
                    "warning",
                    f"Chain from '{resolver.tree.qualified_name(step.id)}' {what} "
                    f"at '{resolver.tree.qualified_name(last)}'",
                    step.id,
                )
    return list(issues.values())


def _check_unconnected(tree: StepTree, connections: List[Connection]) -> List[GraphIssue]:
    touched = set()
    for conn in connections:
        touched.add(conn.from_step_id)
        touched.add(conn.to_step_id)
    return [
        GraphIssue(
            "UNCONNECTED_STEP",
            "note",
            f"'{tree.qualified_name(step.id)}' has no connections",
            step.id,
        )
        for step in tree.steps
        if step.id not in touched
    ]


def _check_dictionaries(
    resolver: ChainResolver, dictionaries: StepDictionaries
) -> List[GraphIssue]:
    issues = []
    state_names = []
    rule_names = []
    for step in resolver.tree.steps:
        qualified = resolver.tree.qualified_name(step.id)
        category = resolver.category(step.id)
        if category is StepType.STATE:
            state_names.append(qualified)
            if qualified not in dictionaries.state:
                issues.append(
                    GraphIssue(
                        "UNKNOWN_STATE_MAPPING",
                        "note",
                        f"State '{qualified}' has no state dictionary entry",
                        step.id,
                    )
                )
        elif category is StepType.RULE:
            rule_names.append(qualified)
            if qualified not in dictionaries.rule:
                issues.append(
                    GraphIssue(
                        "UNKNOWN_RULE_MAPPING",
                        "note",
                        f"Rule '{qualified}' has no rule dictionary entry",
                        step.id,
                    )
                )
    for kind, dictionary, names in (
        ("state", dictionaries.state, state_names),
        ("rule", dictionaries.rule, rule_names),
    ):
        for key in dictionary.orphaned_keys(names):
            issues.append(
                GraphIssue(
                    "ORPHANED_DICTIONARY_KEY",
                    "note",
                    f"{kind.capitalize()} dictionary key '{key}' matches no {kind} step",
                )
            )
    return issues
