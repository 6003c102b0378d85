"""Unit tests for CSV export."""

import pandas as pd

from stepflow.core.state_machine import (
    CSV_COLUMNS,
    TransitionRow,
    export_csv,
    format_rows_summary,
    rows_to_dataframe,
    write_state_machine_csv,
)

HEADER = b"Source Node,Destination Node,Rule List,Priority,Operation / Edge Effect\n"


class TestExportCsv:
    """Tests for export_csv."""

    def test_header_for_empty_table(self):
        """No rows still yields exactly the header."""
        assert export_csv([]) == HEADER

    def test_rows_in_order(self):
        """Rows are written in generator order."""
        rows = [TransitionRow("LOGIN", "DASH", "IS_VALID"), TransitionRow("DASH")]
        assert export_csv(rows) == HEADER + b"LOGIN,DASH,IS_VALID,50,\nDASH,,,50,\n"

    def test_quotes_special_characters(self):
        """Commas and quotes are escaped."""
        rows = [TransitionRow('Pay, "now"', "Done")]
        lines = export_csv(rows).decode("utf-8").splitlines()
        assert lines[1] == '"Pay, ""now""",Done,,50,'

    def test_utf8(self):
        """Non-ASCII labels are encoded as UTF-8."""
        data = export_csv([TransitionRow("Café")])
        assert "Café".encode("utf-8") in data

    def test_dataframe_columns(self):
        """The DataFrame always has the five export columns."""
        assert list(rows_to_dataframe([]).columns) == CSV_COLUMNS
        df = rows_to_dataframe([TransitionRow("A", priority=7)])
        assert df.loc[0, "Priority"] == 7


class TestWriteStateMachineCsv:
    """Tests for writing CSV files."""

    def test_creates_parent_dirs(self, tmp_path):
        """Missing directories are created and the table reads back."""
        path = tmp_path / "nested" / "out.csv"
        write_state_machine_csv([TransitionRow("A", "B", "R")], path)
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        assert list(df.columns) == CSV_COLUMNS
        assert df.to_dict("records") == [
            {
                "Source Node": "A",
                "Destination Node": "B",
                "Rule List": "R",
                "Priority": "50",
                "Operation / Edge Effect": "",
            }
        ]


class TestSummary:
    """Tests for format_rows_summary."""

    def test_groups_by_source(self):
        """Rows are grouped per source state."""
        text = format_rows_summary(
            [TransitionRow("LOGIN", "DASH", "IS_VALID"), TransitionRow("DASH")]
        )
        assert "State: LOGIN" in text
        assert "-> DASH" in text
        assert "Rules: IS_VALID" in text
        assert "(no transitions)" in text
