"""Transition table generation."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from ..classifier import find_branching_steps
from ..dictionary import StepDictionaries
from ..graph import Connection, Step, StepStore, StepType
from .config import StateMachineConfig
from .resolver import ChainResolution, ChainResolver, DictionaryLike

logger = logging.getLogger(__name__)

# CSV header, in column order
CSV_COLUMNS = [
    "Source Node",
    "Destination Node",
    "Rule List",
    "Priority",
    "Operation / Edge Effect",
]


@dataclass(frozen=True)
class TransitionRow:
    """One row of the exported state machine."""

    source_node: str
    destination_node: str = ""
    rule_list: str = ""
    priority: int = 50
    operation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """camelCase form used by preview grids and JSON snapshots."""
        return {
            "sourceNode": self.source_node,
            "destinationNode": self.destination_node,
            "ruleList": self.rule_list,
            "priority": self.priority,
            "operation": self.operation,
        }

    def to_record(self) -> Dict[str, Any]:
        """Row keyed by CSV column name."""
        return dict(
            zip(
                CSV_COLUMNS,
                (
                    self.source_node,
                    self.destination_node,
                    self.rule_list,
                    self.priority,
                    self.operation,
                ),
            )
        )


@dataclass
class CompilationResult:
    """Rows plus the chain resolution behind each of them.

    ``resolutions[i]`` is None for the empty row emitted for a state step
    without outgoing connections.
    """

    rows: List[TransitionRow] = field(default_factory=list)
    resolutions: List[Optional[ChainResolution]] = field(default_factory=list)
    branching_steps: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def outcome_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for resolution in self.resolutions:
            if resolution is None:
                key = "no_outgoing"
            else:
                key = resolution.outcome.value
            counts[key] = counts.get(key, 0) + 1
        return counts


def _iter_rows(
    resolver: ChainResolver, config: StateMachineConfig
) -> Iterator[Tuple[TransitionRow, Optional[ChainResolution]]]:
    """Yield rows for state steps in store order, connections in store order."""
    for step in resolver.tree.steps:
        if resolver.category(step.id) is not StepType.STATE:
            continue
        source = resolver.state_label(step.id)
        outgoing = resolver.outgoing.get(step.id, [])
        if not outgoing:
            yield TransitionRow(
                source_node=source,
                priority=config.default_priority,
                operation=config.default_operation,
            ), None
            continue
        for conn in outgoing:
            resolution = resolver.resolve(conn)
            yield TransitionRow(
                source_node=source,
                destination_node=resolution.destination,
                rule_list=resolution.rule_list(config.rule_separator),
                priority=config.default_priority,
                operation=config.default_operation,
            ), resolution


def generate_rows(
    steps: Iterable[Step],
    connections: Iterable[Connection],
    classifications: Mapping[str, Union[StepType, str]],
    state_dictionary: Optional[DictionaryLike] = None,
    rule_dictionary: Optional[DictionaryLike] = None,
    config: Optional[StateMachineConfig] = None,
) -> List[TransitionRow]:
    """Generate the complete transition table.

    Every state step contributes one row per outgoing connection, or a
    single row with empty destination and rule list if it has none. The
    result is a pure function of the inputs.

    Parameters
    ----------
    steps : Iterable[Step]
        All steps, in store order
    connections : Iterable[Connection]
        All connections, in store order
    classifications : Mapping[str, StepType]
        step id -> category
    state_dictionary, rule_dictionary : NameDictionary or Mapping[str, str]
        Label lookups keyed by qualified name
    config : StateMachineConfig, optional
        Priority/operation defaults and rule separator

    Returns
    -------
    List[TransitionRow]
        Rows in deterministic order
    """
    config = config or StateMachineConfig()
    resolver = ChainResolver(
        steps, connections, classifications, state_dictionary, rule_dictionary
    )
    return [row for row, _ in _iter_rows(resolver, config)]


class StateMachineCompiler:
    """Compiles a step graph into a state machine transition table."""

    def __init__(self, config: Optional[StateMachineConfig] = None):
        self.config = config or StateMachineConfig()

    def compile(
        self,
        steps: Iterable[Step],
        connections: Iterable[Connection],
        classifications: Mapping[str, Union[StepType, str]],
        dictionaries: Optional[StepDictionaries] = None,
    ) -> CompilationResult:
        """
        Compile the graph into rows, keeping each row's chain resolution.

        Logs a warning for every rule/behavior step with more than one
        outgoing connection (only the first one is followed).
        """
        steps = list(steps)
        connections = list(connections)
        dictionaries = dictionaries or StepDictionaries()
        resolver = ChainResolver(
            steps, connections, classifications, dictionaries.state, dictionaries.rule
        )

        result = CompilationResult()
        result.branching_steps = find_branching_steps(steps, connections, classifications)
        if self.config.warn_on_branching:
            for step_id, degree in result.branching_steps:
                logger.warning(
                    "%r has %d outgoing connections; only the first is followed",
                    resolver.tree.qualified_name(step_id),
                    degree,
                )

        for row, resolution in _iter_rows(resolver, self.config):
            result.rows.append(row)
            result.resolutions.append(resolution)

        logger.info(
            "Generated %d row(s) from %d step(s): %s",
            result.row_count,
            len(steps),
            result.outcome_counts(),
        )
        return result

    def compile_store(
        self,
        store: StepStore,
        classifications: Mapping[str, Union[StepType, str]],
        dictionaries: Optional[StepDictionaries] = None,
    ) -> CompilationResult:
        """Compile the current contents of a store."""
        return self.compile(store.steps, store.connections, classifications, dictionaries)


_ROW_FIELDS = {f.name for f in dataclasses.fields(TransitionRow)}
_COLUMN_TO_FIELD = dict(zip(CSV_COLUMNS, [f.name for f in dataclasses.fields(TransitionRow)]))


def edit_row(rows: List[TransitionRow], index: int, **changes: Any) -> List[TransitionRow]:
    """Return a copy of rows with one row edited inline.

    Field names (``priority``, ``operation``...) and CSV column names passed
    via ``**{"Priority": 10}`` are both accepted.

    Raises
    ------
    IndexError
        If index is out of range
    ValueError
        For unknown fields or a non-integer priority
    """
    updates: Dict[str, Any] = {}
    for key, value in changes.items():
        name = _COLUMN_TO_FIELD.get(key, key)
        if name not in _ROW_FIELDS:
            raise ValueError(f"Unknown row field: {key}")
        if name == "priority":
            value = int(value)
        else:
            value = "" if value is None else str(value)
        updates[name] = value

    edited = list(rows)
    edited[index] = dataclasses.replace(rows[index], **updates)
    return edited
