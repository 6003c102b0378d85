"""CSV export of transition tables."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from ...io.csv import write_dataframe
from .compiler import CSV_COLUMNS, TransitionRow


def rows_to_dataframe(rows: Iterable[TransitionRow]) -> pd.DataFrame:
    """Rows as a DataFrame with exactly the CSV columns, even when empty."""
    df = pd.DataFrame([row.to_record() for row in rows], columns=CSV_COLUMNS)
    return df.astype({"Priority": "int64"})


def export_csv(rows: Iterable[TransitionRow]) -> bytes:
    """Serialize rows as UTF-8 CSV.

    Fields containing commas, quotes or newlines are quoted, with embedded
    quotes doubled. A table with no rows is just the header line.
    """
    df = rows_to_dataframe(rows)
    return df.to_csv(index=False, lineterminator="\n").encode("utf-8")


def write_state_machine_csv(
    rows: Iterable[TransitionRow], output_path: Union[str, Path]
) -> Path:
    """Write rows to output_path as CSV."""
    return write_dataframe(rows_to_dataframe(rows), output_path)


def format_rows_summary(rows: Iterable[TransitionRow]) -> str:
    """Format a human-readable summary of the transition table."""
    lines = ["State Machine Summary", "=" * 50, ""]

    by_source: dict = {}
    for row in rows:
        by_source.setdefault(row.source_node, []).append(row)

    for source, source_rows in by_source.items():
        lines.append(f"State: {source}")
        lines.append("-" * 30)
        for row in source_rows:
            if not row.destination_node:
                lines.append("  (no transitions)")
                continue
            lines.append(f"  -> {row.destination_node}")
            if row.rule_list:
                lines.append(f"     Rules: {row.rule_list}")
        lines.append("")

    return "\n".join(lines)
