"""Unit tests for the command-line interface."""

import json
import logging

import pytest
import yaml
from click.testing import CliRunner

from stepflow.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def dangling_diagram(tmp_path):
    """Login leads into a rule step with no way out."""
    data = {
        "steps": [{"id": "a", "name": "Login"}, {"id": "r", "name": "verify user"}],
        "connections": [{"fromStepId": "a", "toStepId": "r", "type": "success"}],
    }
    path = tmp_path / "dangling.json"
    path.write_text(json.dumps(data))
    return path


class TestConvert:
    """Tests for the convert command."""

    def test_writes_csv(self, runner, diagram_file, tmp_path):
        """Without dictionaries, labels default to qualified names."""
        out = tmp_path / "out" / "machine.csv"
        result = runner.invoke(cli, ["convert", "-i", str(diagram_file), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "Wrote 2 row(s)" in result.output
        assert out.read_text().splitlines() == [
            "Source Node,Destination Node,Rule List,Priority,Operation / Edge Effect",
            "Login,Dashboard,is valid?,50,",
            "Dashboard,,,50,",
        ]

    def test_dictionary_overrides(self, runner, diagram_file, tmp_path):
        """Dictionary files replace the labels."""
        state_dict = tmp_path / "states.json"
        state_dict.write_text(json.dumps({"Login": "LOGIN", "Dashboard": "DASH"}))
        rule_dict = tmp_path / "rules.json"
        rule_dict.write_text(json.dumps({"is valid?": "IS_VALID"}))
        out = tmp_path / "machine.csv"
        result = runner.invoke(
            cli,
            [
                "convert", "-i", str(diagram_file), "-o", str(out),
                "--state-dict", str(state_dict), "--rule-dict", str(rule_dict),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "LOGIN,DASH,IS_VALID,50," in out.read_text()

    def test_log_dir(self, runner, diagram_file, tmp_path):
        """--log-dir appends a conversion record."""
        log_dir = tmp_path / "logs"
        result = runner.invoke(
            cli,
            ["convert", "-i", str(diagram_file), "-o", str(tmp_path / "m.csv"), "--log-dir", str(log_dir)],
        )
        assert result.exit_code == 0, result.output
        record = json.loads((log_dir / "conversions.jsonl").read_text().splitlines()[0])
        assert record["rows"] == 2
        assert record["outcomes"] == {"resolved": 1, "no_outgoing": 1}

    def test_log_dir_writes_run_log(self, runner, diagram_file, tmp_path):
        """--log-dir also keeps a timestamped run log."""
        log_dir = tmp_path / "logs"
        result = runner.invoke(
            cli,
            ["convert", "-i", str(diagram_file), "-o", str(tmp_path / "m.csv"), "--log-dir", str(log_dir)],
        )
        assert result.exit_code == 0, result.output
        [log_file] = log_dir.glob("convert_*.log")
        assert "Wrote 2 row(s)" in log_file.read_text()
        assert not any(
            isinstance(h, logging.FileHandler) for h in logging.getLogger("stepflow").handlers
        )

    def test_bad_dictionary(self, runner, diagram_file, tmp_path):
        """A malformed dictionary file is a clean error."""
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps(["not", "flat"]))
        result = runner.invoke(
            cli,
            ["convert", "-i", str(diagram_file), "-o", str(tmp_path / "m.csv"), "--state-dict", str(bad)],
        )
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_bad_diagram(self, runner, tmp_path):
        """A file without steps is a clean error."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"nodes": []}))
        result = runner.invoke(cli, ["convert", "-i", str(path), "-o", str(tmp_path / "m.csv")])
        assert result.exit_code == 1
        assert "missing steps" in result.output

    def test_step_without_id_is_skipped(self, runner, tmp_path):
        """A step with no id is dropped instead of crashing the command."""
        path = tmp_path / "noid.json"
        path.write_text(json.dumps({"steps": [{"name": "A"}, {"id": "b", "name": "B"}]}))
        out = tmp_path / "m.csv"
        result = runner.invoke(cli, ["convert", "-i", str(path), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert out.read_text().splitlines()[1:] == ["B,,,50,"]


class TestValidate:
    """Tests for the validate command."""

    def test_clean(self, runner, diagram_file):
        """A clean diagram reports no issues."""
        result = runner.invoke(cli, ["validate", "-i", str(diagram_file)])
        assert result.exit_code == 0
        assert "No issues found" in result.output

    def test_dangling_reported(self, runner, dangling_diagram):
        """Warnings are printed but do not fail by default."""
        result = runner.invoke(cli, ["validate", "-i", str(dangling_diagram)])
        assert result.exit_code == 0
        assert "DANGLING_CHAIN" in result.output

    def test_strict(self, runner, dangling_diagram):
        """--strict exits 1 on warnings."""
        result = runner.invoke(cli, ["validate", "-i", str(dangling_diagram), "--strict"])
        assert result.exit_code == 1

    def test_log_dir_writes_yaml_report(self, runner, dangling_diagram, tmp_path):
        """--log-dir appends the issues as a YAML document."""
        log_dir = tmp_path / "logs"
        result = runner.invoke(
            cli, ["validate", "-i", str(dangling_diagram), "--log-dir", str(log_dir)]
        )
        assert result.exit_code == 0, result.output
        [report] = [
            doc for doc in yaml.safe_load_all((log_dir / "validation.yaml").read_text()) if doc
        ]
        assert report["input"] == str(dangling_diagram)
        assert "DANGLING_CHAIN" in [issue["code"] for issue in report["issues"]]
        assert report["counts"]["warning"] >= 1


class TestInspection:
    """Tests for show, classify and dictionaries."""

    def test_show_csv(self, runner, diagram_file):
        """show --format csv prints the table."""
        result = runner.invoke(cli, ["show", "-i", str(diagram_file), "--format", "csv"])
        assert result.exit_code == 0
        assert result.output.startswith("Source Node,Destination Node")

    def test_show_summary(self, runner, diagram_file):
        """The default output is a summary."""
        result = runner.invoke(cli, ["show", "-i", str(diagram_file)])
        assert "State: Login" in result.output

    def test_show_unknown_step_type(self, runner, tmp_path):
        """An unknown step type falls back to name classification."""
        path = tmp_path / "d.json"
        path.write_text(json.dumps({"steps": [{"id": "a", "name": "A", "type": "decision"}]}))
        result = runner.invoke(cli, ["show", "-i", str(path)])
        assert result.exit_code == 0, result.output
        assert "State: A" in result.output

    def test_show_unknown_saved_classification(self, runner, tmp_path):
        """An unknown saved category is ignored."""
        path = tmp_path / "d.json"
        path.write_text(
            json.dumps(
                {
                    "steps": [{"id": "a", "name": "A"}],
                    "classifications": {"a": "decision"},
                }
            )
        )
        result = runner.invoke(cli, ["show", "-i", str(path)])
        assert result.exit_code == 0, result.output
        assert "State: A" in result.output

    def test_classify(self, runner, diagram_file):
        """Each step is printed with its category and rule."""
        result = runner.invoke(cli, ["classify", "-i", str(diagram_file)])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert any(line.startswith("rule") and "QUESTION_MARK" in line for line in lines)
        assert "2 state, 1 rule, 0 behavior" in result.output

    def test_classify_with_keywords(self, runner, tmp_path):
        """A keywords file changes classification."""
        diagram = tmp_path / "d.json"
        diagram.write_text(json.dumps({"steps": [{"id": "t", "name": "taps button"}]}))
        keywords = tmp_path / "k.yaml"
        keywords.write_text(yaml.safe_dump({"classification": {"behavior_keywords": ["taps"]}}))
        result = runner.invoke(cli, ["classify", "-i", str(diagram), "-k", str(keywords)])
        assert "0 state, 0 rule, 1 behavior" in result.output

    def test_dictionaries(self, runner, diagram_file, tmp_path):
        """Identity dictionaries are written for editing."""
        out = tmp_path / "dicts"
        result = runner.invoke(cli, ["dictionaries", "-i", str(diagram_file), "-o", str(out)])
        assert result.exit_code == 0
        states = json.loads((out / "state_dictionary.json").read_text())
        rules = json.loads((out / "rule_dictionary.json").read_text())
        assert states == {"Login": "Login", "Dashboard": "Dashboard"}
        assert rules == {"is valid?": "is valid?"}


class TestKeywords:
    """Tests for the keywords command."""

    def test_print(self, runner):
        """Keywords are printed as YAML."""
        result = runner.invoke(cli, ["keywords"])
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert "verify" in data["classification"]["rule_keywords"]

    def test_export(self, runner, tmp_path):
        """--export writes a YAML file."""
        path = tmp_path / "keywords.yaml"
        result = runner.invoke(cli, ["keywords", "--export", str(path)])
        assert result.exit_code == 0
        assert yaml.safe_load(path.read_text())["classification"]["state_prefixes"] == ["ask"]

    def test_unknown_preset(self, runner):
        """Unknown presets fail cleanly."""
        result = runner.invoke(cli, ["keywords", "--preset", "nope"])
        assert result.exit_code == 1
        assert "Unknown classification preset" in result.output


def test_version(runner):
    """--version reports the package version."""
    result = runner.invoke(cli, ["--version"])
    assert "0.1.0" in result.output

