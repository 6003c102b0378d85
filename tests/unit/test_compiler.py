"""Unit tests for transition row generation."""

import logging

import pytest

from stepflow.core.classifier import Classifier
from stepflow.core.state_machine import (
    StateMachineCompiler,
    StateMachineConfig,
    TransitionRow,
    edit_row,
    export_csv,
    generate_rows,
)

from tests.fixtures import make_graph


def _compile_store(store, dictionaries):
    classifications = Classifier().classify_all(store.steps)
    return generate_rows(
        store.steps, store.connections, classifications, dictionaries.state, dictionaries.rule
    )


class TestLoginFlow:
    """End-to-end rows for Login -> "is valid?" -> Dashboard."""

    def test_rule_chain_collapses_to_one_row(self, login_flow, login_dictionaries):
        """The rule step becomes the rule list of the Login row."""
        store, _ = login_flow
        rows = _compile_store(store, login_dictionaries)
        assert rows[0] == TransitionRow("LOGIN", "DASH", "IS_VALID", 50, "")

    def test_state_without_outgoing_gets_empty_row(self, login_flow, login_dictionaries):
        """Dashboard has no transitions but still appears once."""
        store, _ = login_flow
        rows = _compile_store(store, login_dictionaries)
        assert rows == [
            TransitionRow("LOGIN", "DASH", "IS_VALID", 50, ""),
            TransitionRow("DASH", "", "", 50, ""),
        ]

    def test_removing_rule_step_leaves_empty_rows(self, login_flow, login_dictionaries):
        """After removing the rule step, Login has no transitions."""
        store, ids = login_flow
        store.remove_step(ids["check"])
        rows = _compile_store(store, login_dictionaries)
        assert rows == [
            TransitionRow("LOGIN", "", "", 50, ""),
            TransitionRow("DASH", "", "", 50, ""),
        ]


class TestGenerateRows:
    """Tests for generate_rows."""

    def test_one_row_per_outgoing_connection(self):
        """Rows follow connection order for each state."""
        steps, connections, classifications = make_graph(
            [("s", "Home", "state"), ("a", "A", "state"), ("b", "B", "state")],
            [("s", "b"), ("s", "a", "failure"), ("s", "b", "failure")],
        )
        rows = generate_rows(steps, connections, classifications, {"A": "A", "B": "B", "Home": "H"})
        assert [(r.source_node, r.destination_node) for r in rows] == [
            ("H", "B"),
            ("H", "A"),
            ("H", "B"),
            ("A", ""),
            ("B", ""),
        ]

    def test_non_state_steps_are_not_sources(self):
        """Rule and behavior steps never start a row."""
        steps, connections, classifications = make_graph(
            [("r", "ok?", "rule"), ("b", "click", "behavior"), ("s", "End", "state")],
            [("r", "b"), ("b", "s")],
        )
        rows = generate_rows(steps, connections, classifications, {"End": "END"})
        assert [r.source_node for r in rows] == ["END"]

    def test_unclassified_steps_are_states(self):
        """Steps missing from the classification map are treated as states."""
        steps, connections, classifications = make_graph(
            [("a", "A", None), ("b", "B", None)], [("a", "b")]
        )
        rows = generate_rows(steps, connections, classifications, {"A": "A", "B": "B"})
        assert [(r.source_node, r.destination_node) for r in rows] == [("A", "B"), ("B", "")]

    def test_sentinels_in_cells(self):
        """Missing mappings show up as sentinels, not errors."""
        steps, connections, classifications = make_graph(
            [("a", "Login", "state"), ("r", "is valid?", "rule"), ("b", "Dashboard", "state")],
            [("a", "r"), ("r", "b")],
        )
        row = generate_rows(steps, connections, classifications)[0]
        assert row.source_node == "[UNKNOWN_STATE: Login]"
        assert row.destination_node == "[UNKNOWN_STATE: Dashboard]"
        assert row.rule_list == "[UNKNOWN_RULE: is valid?]"

    def test_idempotent(self):
        """Repeated calls give identical rows and identical CSV bytes."""
        steps, connections, classifications = make_graph(
            [("s", "S", "state"), ("r", "r?", "rule"), ("x", "X", "state"), ("l", "l?", "rule")],
            [("s", "r"), ("r", "x"), ("s", "l"), ("l", "l")],
        )
        first = generate_rows(steps, connections, classifications)
        second = generate_rows(steps, connections, classifications)
        assert first == second
        assert export_csv(first) == export_csv(second)

    def test_cycle_yields_empty_destination(self):
        """A chain cycle still produces a row."""
        steps, connections, classifications = make_graph(
            [("s", "S", "state"), ("a", "a?", "rule"), ("b", "b?", "rule")],
            [("s", "a"), ("a", "b"), ("b", "a")],
        )
        rows = generate_rows(steps, connections, classifications, {"S": "S"}, {"a?": "A", "b?": "B"})
        assert rows == [TransitionRow("S", "", "A + B", 50, "")]

    def test_config_defaults(self):
        """Priority, operation and separator come from the config."""
        steps, connections, classifications = make_graph(
            [("s", "S", "state"), ("a", "a?", "rule"), ("b", "b?", "rule"), ("t", "T", "state")],
            [("s", "a"), ("a", "b"), ("b", "t")],
        )
        config = StateMachineConfig(default_priority=10, default_operation="log", rule_separator=" & ")
        row = generate_rows(
            steps, connections, classifications, {"S": "S", "T": "T"}, {"a?": "A", "b?": "B"}, config
        )[0]
        assert (row.priority, row.operation, row.rule_list) == (10, "log", "A & B")


class TestStateMachineCompiler:
    """Tests for StateMachineCompiler."""

    def test_compile_store(self, login_flow, login_dictionaries):
        """compile_store keeps each row's chain resolution."""
        store, ids = login_flow
        classifications = Classifier().classify_all(store.steps)
        result = StateMachineCompiler().compile_store(store, classifications, login_dictionaries)
        assert result.row_count == 2
        assert result.resolutions[0].path == [ids["check"]]
        assert result.resolutions[1] is None
        assert result.outcome_counts() == {"resolved": 1, "no_outgoing": 1}

    def test_branching_logged(self, caplog):
        """Rule steps with several outgoing edges are logged as warnings."""
        steps, connections, classifications = make_graph(
            [("s", "S", "state"), ("r", "ok?", "rule"), ("a", "A", "state"), ("b", "B", "state")],
            [("s", "r"), ("r", "a"), ("r", "b")],
        )
        with caplog.at_level(logging.WARNING):
            result = StateMachineCompiler().compile(steps, connections, classifications)
        assert result.branching_steps == [("r", 2)]
        assert "only the first is followed" in caplog.text

    def test_branching_warning_disabled(self, caplog):
        """warn_on_branching=False silences the warning."""
        steps, connections, classifications = make_graph(
            [("s", "S", "state"), ("r", "ok?", "rule"), ("a", "A", "state"), ("b", "B", "state")],
            [("s", "r"), ("r", "a"), ("r", "b")],
        )
        compiler = StateMachineCompiler(StateMachineConfig(warn_on_branching=False))
        with caplog.at_level(logging.WARNING):
            compiler.compile(steps, connections, classifications)
        assert "only the first is followed" not in caplog.text


class TestEditRow:
    """Tests for inline row edits."""

    def test_returns_new_list(self):
        """The original rows are left untouched."""
        rows = [TransitionRow("A", "B"), TransitionRow("B")]
        edited = edit_row(rows, 0, priority="10", operation="notify")
        assert edited[0] == TransitionRow("A", "B", "", 10, "notify")
        assert rows[0].priority == 50
        assert edited[1] is rows[1]

    def test_accepts_column_names(self):
        """CSV column names can be used as keys."""
        rows = [TransitionRow("A")]
        edited = edit_row(rows, 0, **{"Operation / Edge Effect": "reset", "Priority": 1})
        assert (edited[0].operation, edited[0].priority) == ("reset", 1)

    def test_unknown_field(self):
        """Unknown fields are rejected."""
        with pytest.raises(ValueError):
            edit_row([TransitionRow("A")], 0, colour="red")

    def test_out_of_range(self):
        """Indexes must exist."""
        with pytest.raises(IndexError):
            edit_row([TransitionRow("A")], 3, priority=1)
