"""State machine compiler for step graphs."""

from .compiler import (
    CSV_COLUMNS,
    CompilationResult,
    StateMachineCompiler,
    TransitionRow,
    edit_row,
    generate_rows,
)
from .config import StateMachineConfig
from .export import export_csv, format_rows_summary, rows_to_dataframe, write_state_machine_csv
from .resolver import ChainOutcome, ChainResolution, ChainResolver, resolve_chain
from .validator import GraphIssue, has_issues, validate_graph

__all__ = [
    "StateMachineConfig",
    "ChainResolver",
    "ChainResolution",
    "ChainOutcome",
    "resolve_chain",
    "TransitionRow",
    "CompilationResult",
    "StateMachineCompiler",
    "generate_rows",
    "edit_row",
    "CSV_COLUMNS",
    "rows_to_dataframe",
    "export_csv",
    "write_state_machine_csv",
    "format_rows_summary",
    "validate_graph",
    "has_issues",
    "GraphIssue",
]
