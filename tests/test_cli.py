"""Tests for the querycount command line."""
import json

import pytest

from querycount.cli import EXIT_BUDGET, EXIT_INPUT, EXIT_OK, EXIT_STRUCTURE, main
from querycount.graph.labeled import LabeledGraph
from querycount.io.render import format_graph, render_text

from plans import PLAN_TEXT


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("QUERYCOUNT_MAX_STEPS", "QUERYCOUNT_METHOD", "QUERYCOUNT_MERGE_POLICY",
                "QUERYCOUNT_DUPLICATES", "QUERYCOUNT_PROCESSES"):
        monkeypatch.delenv(key, raising=False)


def _files(tmp_path, counts, plan=PLAN_TEXT):
    p = tmp_path / "plan.txt"
    c = tmp_path / "counts.txt"
    p.write_text(plan)
    c.write_text(counts)
    return str(p), str(c)


def test_format_graph():
    g = LabeledGraph([5, 6, 7], [(0, 1), (1, 2)])
    assert format_graph(g) == "3 2\n5 6 7\n0 1\n1 2"


def test_text_output(tmp_path, capsys):
    plan, counts = _files(tmp_path, "1 5 6 7 3\n2 6 7 5 5\n0 1 2 4\n")
    assert main([plan, counts]) == EXIT_OK
    out = capsys.readouterr().out
    blocks = out.strip().split("\n\n")
    assert blocks[0] == "Count:8\n3 2\n5 6 7\n0 1\n1 2"
    assert blocks[1] == "Count:4\n2 1\n1 2\n0 1"


def test_json_output(tmp_path, capsys):
    plan, counts = _files(tmp_path, "1 5 6 7 3\n2 6 7 5 5\n")
    assert main([plan, counts, "--json"]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data == [{
        "count": 8,
        "records": 2,
        "stages": [1, 2],
        "labels": [5, 6, 7],
        "edges": [[0, 1], [1, 2]],
    }]


def test_empty_counts(tmp_path, capsys):
    plan, counts = _files(tmp_path, "")
    assert main([plan, counts]) == EXIT_OK
    assert capsys.readouterr().out == ""


def test_vf2_and_processes(tmp_path, capsys):
    plan, counts = _files(tmp_path, "1 5 6 7 3\n2 6 7 5 5\n")
    assert main([plan, counts, "--method", "vf2", "--processes", "2"]) == EXIT_OK
    assert capsys.readouterr().out.startswith("Count:8\n")


def test_unknown_stage_exit_code(tmp_path, capsys):
    plan, counts = _files(tmp_path, "9 1 2 3\n")
    assert main([plan, counts]) == EXIT_INPUT
    assert "unknown stage id 9" in capsys.readouterr().err


def test_missing_file_exit_code(tmp_path, capsys):
    plan, _ = _files(tmp_path, "")
    assert main([plan, str(tmp_path / "nope.txt")]) == EXIT_INPUT
    assert capsys.readouterr().err.startswith("error:")


def test_bad_plan_exit_code(tmp_path, capsys):
    plan, counts = _files(tmp_path, "", plan=PLAN_TEXT.replace("0 2 2 0", "0 2 4 0"))
    assert main([plan, counts]) == EXIT_STRUCTURE
    assert "root stage" in capsys.readouterr().err


def test_budget_exit_code(tmp_path, capsys):
    # identical records force a search of three steps
    plan, counts = _files(tmp_path, "1 0 0 0 1\n1 0 0 0 1\n")
    assert main([plan, counts, "--max-steps", "1"]) == EXIT_BUDGET
    assert "budget" in capsys.readouterr().err


def test_replace_duplicates(tmp_path, capsys):
    plan, counts = _files(tmp_path, "1 0 0 0 1\n1 0 0 0 5\n")
    assert main([plan, counts, "--duplicates", "replace"]) == EXIT_OK
    assert capsys.readouterr().out.startswith("Count:5\n")


def test_env_settings(tmp_path, capsys, monkeypatch):
    monkeypatch.setenv("QUERYCOUNT_MAX_STEPS", "1")
    plan, counts = _files(tmp_path, "1 0 0 0 1\n1 0 0 0 1\n")
    assert main([plan, counts]) == EXIT_BUDGET


def test_bad_env_is_usage_error(tmp_path, monkeypatch):
    monkeypatch.setenv("QUERYCOUNT_PROCESSES", "zero")
    plan, counts = _files(tmp_path, "")
    with pytest.raises(SystemExit) as exc:
        main([plan, counts])
    assert exc.value.code == 2


def test_render_text_separates_blocks():
    from querycount.aggregate.canonical import CanonicalEntry

    entries = [CanonicalEntry(LabeledGraph([1, 2], [(0, 1)]), total=3)]
    assert render_text(entries) == "Count:3\n2 1\n1 2\n0 1\n"
