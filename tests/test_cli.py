"""Tests for the sfn-layout command."""

import io
import json

import pytest

from sfn_console.cli import build_parser, main
from tests.fixtures.definitions import choice_definition, linear_definition


@pytest.fixture
def definition_file(tmp_path):
    path = tmp_path / "workflow.asl.json"
    path.write_text(json.dumps(linear_definition()), encoding="utf-8")
    return path


class TestCli:
    """Test command output and exit codes."""

    def test_layout_output(self, definition_file, capsys):
        """Test printing the layout graph."""
        assert main([str(definition_file)]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert [node["id"] for node in payload["nodes"]] == [
            "__START__", "Validate", "Enrich", "Store", "__END_Store__",
        ]
        assert payload["nodes"][1]["y"] == 100.0

    def test_reactflow_output(self, definition_file, capsys):
        """Test printing React Flow elements."""
        assert main([str(definition_file), "--format", "reactflow", "--indent", "0"]) == 0
        out = capsys.readouterr().out
        assert out.count("\n") == 1
        payload = json.loads(out)
        assert payload["nodes"][0]["type"] == "custom"

    def test_reads_stdin(self, monkeypatch, capsys):
        """Test '-' reads the definition from stdin."""
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(choice_definition())))
        assert main(["-"]) == 0
        payload = json.loads(capsys.readouterr().out)
        labels = {edge.get("label") for edge in payload["edges"]}
        assert 'status = "paid"' in labels

    def test_malformed_prints_empty_graph(self, tmp_path, capsys):
        """Test that a malformed definition still exits cleanly."""
        path = tmp_path / "bad.json"
        path.write_text("not json", encoding="utf-8")
        assert main([str(path)]) == 0
        assert json.loads(capsys.readouterr().out) == {"nodes": [], "edges": []}

    def test_missing_file(self, tmp_path, capsys):
        """Test that an unreadable path exits with 1."""
        assert main([str(tmp_path / "missing.json")]) == 1
        assert "cannot read" in capsys.readouterr().err

    def test_unknown_default_engine(self, definition_file, monkeypatch, capsys):
        """Test that a bad SFN_LAYOUT_ENGINE exits with 1."""
        monkeypatch.setenv("SFN_LAYOUT_ENGINE", "sideways")
        assert main([str(definition_file)]) == 1
        assert "Unknown layout engine" in capsys.readouterr().err

    def test_engine_choice_validated(self):
        """Test that argparse rejects unknown engines."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["x.json", "--engine", "sideways"])

    def test_file_not_utf8(self, tmp_path, capsys):
        """Test that undecodable bytes exit with 1 instead of a traceback."""
        path = tmp_path / "latin.json"
        path.write_bytes(b"\xff\xfe\x00")
        assert main([str(path)]) == 1
        assert "cannot read" in capsys.readouterr().err

    def test_list_engines(self, capsys):
        """Test listing engines with their capabilities."""
        assert main(["--list-engines"]) == 0
        assert json.loads(capsys.readouterr().out) == [
            {"name": "top-down", "supportsBranches": True, "supportsErrorLanes": True},
        ]
