"""
Unit tests for scripts/generate_brag_list.py

Runs main() in-process with --offline so no backend is contacted.
"""

import importlib.util
import json
import logging
from pathlib import Path

import pytest

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "scripts" / "generate_brag_list.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("generate_brag_list", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def restore_root_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def tasks_file(tmp_path):
    path = tmp_path / "tasks.json"
    path.write_text(json.dumps({"tasks": [
        {"title": "Email triage", "steps": ["Sort inbox (~10 min)"], "completed_at": "2024-05-01T10:00:00Z"},
        {"title": "Review release checklist", "steps": ["Check items", "Sign off"]},
    ]}), encoding="utf-8")
    return path


def run_cli(cli, capsys, data_dir, *args):
    code = cli.main(["--offline", "--data-dir", str(data_dir), *args])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestCli:

    def test_generate_accept_show(self, cli, capsys, data_dir, tasks_file):
        code, out, _ = run_cli(cli, capsys, data_dir, "generate", str(tasks_file), "--mode", "senior")
        assert code == 0
        generated = json.loads(out)
        assert generated["source"] == "fallback"
        assert generated["persisted"] is True
        assert len(generated["entries"]) == 2

        code, out, _ = run_cli(cli, capsys, data_dir, "accept", "1")
        assert code == 0
        accepted = json.loads(out)
        assert accepted["ledger_written"] is True

        code, out, _ = run_cli(cli, capsys, data_dir, "show")
        shown = json.loads(out)
        assert shown["generated"]["entries"][1]["accepted"] is True
        assert shown["ledger_entries"][0]["entry_id"] == accepted["ledger_entry_id"]

    def test_delete_ledger_by_id(self, cli, capsys, data_dir, tasks_file):
        run_cli(cli, capsys, data_dir, "generate", str(tasks_file))
        _, out, _ = run_cli(cli, capsys, data_dir, "accept", "0")
        entry_id = json.loads(out)["ledger_entry_id"]

        code, out, _ = run_cli(cli, capsys, data_dir, "delete-ledger", "--id", entry_id)

        assert code == 0
        assert json.loads(out)["removed"]["entry_id"] == entry_id

    def test_stale_index_exits_nonzero(self, cli, capsys, data_dir, tasks_file):
        run_cli(cli, capsys, data_dir, "generate", str(tasks_file))

        code, _, err = run_cli(cli, capsys, data_dir, "delete", "5")

        assert code == 1
        assert "Invalid index 5" in err

    def test_missing_tasks_file(self, cli, capsys, data_dir, tmp_path):
        code, _, err = run_cli(cli, capsys, data_dir, "generate", str(tmp_path / "nope.json"))

        assert code == 1
        assert "Task file not found" in err
