"""Unit tests for qualified-name dictionaries."""

import pytest

from stepflow.core.dictionary import (
    DictionaryFormatError,
    NameDictionary,
    StepDictionaries,
    generate_default_dictionaries,
)

from tests.fixtures import make_graph


class TestLookup:
    """Tests for total dictionary lookup."""

    def test_hit(self):
        """Mapped names return their label."""
        assert NameDictionary("state", {"Login": "LOGIN"}).lookup("Login") == "LOGIN"

    def test_state_sentinel(self):
        """Missing state names return the exact sentinel."""
        states = NameDictionary("state")
        assert states.lookup("Checkout > Payment") == "[UNKNOWN_STATE: Checkout > Payment]"

    def test_rule_sentinel(self):
        """Missing rule names return the exact sentinel."""
        rules = NameDictionary("rule", {"other": "X"})
        assert rules.lookup("is valid?") == "[UNKNOWN_RULE: is valid?]"

    def test_empty_label_is_a_hit(self):
        """An explicitly empty label is returned as-is."""
        assert NameDictionary("rule", {"skip": ""}).lookup("skip") == ""

    def test_unknown_kind(self):
        """Only state and rule dictionaries exist."""
        with pytest.raises(ValueError):
            NameDictionary("behavior")


class TestEditing:
    """Tests for add/rename/delete of entries."""

    def test_set_and_delete(self):
        """Entries can be added and removed."""
        states = NameDictionary("state")
        states.set("Login", "LOGIN")
        assert "Login" in states
        assert states.delete("Login") is True
        assert states.delete("Login") is False
        assert len(states) == 0

    def test_rename_key_keeps_position(self):
        """Renamed keys stay where they were."""
        states = NameDictionary("state", {"A": "1", "B": "2", "C": "3"})
        assert states.rename_key("B", "Bee")
        assert list(states) == ["A", "Bee", "C"]
        assert states.lookup("Bee") == "2"
        assert states.lookup("B") == "[UNKNOWN_STATE: B]"

    def test_rename_missing_key(self):
        """Renaming an absent key does nothing."""
        states = NameDictionary("state", {"A": "1"})
        assert states.rename_key("Z", "Y") is False
        assert states.to_dict() == {"A": "1"}

    def test_rename_replaces_existing_target(self):
        """The renamed entry wins over an existing entry under the new key."""
        states = NameDictionary("state", {"A": "1", "B": "2"})
        states.rename_key("A", "B")
        assert states.to_dict() == {"B": "1"}

    def test_orphaned_keys(self):
        """Keys matching no current name are reported."""
        states = NameDictionary("state", {"Login": "L", "Old Name": "O"})
        assert states.orphaned_keys(["Login", "Dashboard"]) == ["Old Name"]


class TestFormat:
    """Tests for flat JSON-style import/export."""

    def test_from_dict_rejects_non_mapping(self):
        """Dictionary data must be an object."""
        with pytest.raises(DictionaryFormatError):
            NameDictionary.from_dict("state", ["Login"])

    def test_from_dict_rejects_nested_values(self):
        """Values must be strings."""
        with pytest.raises(DictionaryFormatError):
            NameDictionary.from_dict("rule", {"is valid?": {"label": "X"}})

    def test_step_dictionaries_snapshot_keys(self):
        """Both dictionaries serialize under their snapshot keys."""
        dictionaries = StepDictionaries.from_dict(
            {"stateDictionary": {"Login": "LOGIN"}, "ruleDictionary": {"ok?": "OK"}}
        )
        assert dictionaries.lookup_state("Login") == "LOGIN"
        assert dictionaries.lookup_rule("ok?") == "OK"
        assert dictionaries.to_dict() == {
            "stateDictionary": {"Login": "LOGIN"},
            "ruleDictionary": {"ok?": "OK"},
        }

    def test_from_dict_tolerates_missing_sections(self):
        """Absent dictionaries load as empty."""
        dictionaries = StepDictionaries.from_dict({"steps": []})
        assert len(dictionaries.state) == 0
        assert len(dictionaries.rule) == 0


class TestGenerateDefaults:
    """Tests for generate_default_dictionaries."""

    def test_identity_mappings_by_category(self):
        """States and rules map to themselves; behaviors are left out."""
        steps, _, classifications = make_graph(
            [
                ("s", "Login", "state"),
                ("r", "is valid?", "rule"),
                ("b", "click submit", "behavior"),
            ]
        )
        dictionaries = generate_default_dictionaries(steps, classifications)
        assert dictionaries.state.to_dict() == {"Login": "Login"}
        assert dictionaries.rule.to_dict() == {"is valid?": "is valid?"}

    def test_keys_are_qualified_names(self):
        """Nested steps are keyed by their full ancestor chain."""
        steps, _, classifications = make_graph(
            [("c", "Checkout", "state"), ("p", "Payment", "state"), ("v", "card ok?", "rule")],
            parents={"p": "c", "v": "p"},
        )
        dictionaries = generate_default_dictionaries(steps, classifications)
        assert list(dictionaries.state) == ["Checkout", "Checkout > Payment"]
        assert list(dictionaries.rule) == ["Checkout > Payment > card ok?"]

    def test_unclassified_steps_are_states(self):
        """Steps without a classification seed the state dictionary."""
        steps, _, classifications = make_graph([("s", "Login", None)])
        dictionaries = generate_default_dictionaries(steps, classifications)
        assert "Login" in dictionaries.state

    def test_migrate_key(self):
        """migrate_key moves an entry in whichever dictionary holds it."""
        dictionaries = StepDictionaries(
            state=NameDictionary("state", {"Login": "LOGIN"}),
            rule=NameDictionary("rule", {"ok?": "OK"}),
        )
        assert dictionaries.migrate_key("Login", "Sign in")
        assert dictionaries.lookup_state("Sign in") == "LOGIN"
        assert dictionaries.migrate_key("missing", "x") is False
