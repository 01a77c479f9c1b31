"""Tests for the command line interface."""
import json
from unittest.mock import patch

import pytest

from nodeflow.utils.config import NodeflowConfig
from nodeflow.workflows import cli
from nodeflow.workflows.cli import EXAMPLE_WORKFLOW, main


@pytest.fixture(autouse=True)
def default_config():
    """Keep the user's config file out of CLI runs"""
    with patch.object(cli, "get_config_manager") as get_manager:
        get_manager.return_value.get.return_value = NodeflowConfig()
        yield


def write_workflow(path, nodes, connections=()):
    path.write_text(json.dumps({
        "version": "1.0",
        "metadata": {},
        "nodes": nodes,
        "connections": list(connections),
    }))
    return path


def link(from_node, from_port, to_node, to_port):
    return {"from": {"node": from_node, "port": from_port}, "to": {"node": to_node, "port": to_port}}


@pytest.fixture
def simple_workflow(tmp_path):
    return write_workflow(
        tmp_path / "simple.json",
        [{"id": "start", "kind": "start"}, {"id": "s1", "kind": "simple"}],
        [link("start", "out", "s1", "in")],
    )


def test_list_nodes(capsys):
    assert main(["list-nodes"]) == 0
    out = capsys.readouterr().out
    for kind in ("start", "simple", "http", "branch", "merge"):
        assert kind in out
    assert "comparison (select)" in out


def test_create_prints_example(capsys):
    assert main(["create"]) == 0
    assert json.loads(capsys.readouterr().out) == EXAMPLE_WORKFLOW


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_validate_ok(simple_workflow, capsys):
    assert main(["validate", str(simple_workflow)]) == 0
    assert "Workflow is valid" in capsys.readouterr().out


def test_validate_reports_errors(tmp_path, capsys):
    path = write_workflow(tmp_path / "bad.json", [{"id": "s1", "kind": "simple"}])
    assert main(["validate", str(path)]) == 1
    assert "Workflow has no Start node" in capsys.readouterr().out


def test_validate_missing_file(tmp_path, capsys):
    assert main(["validate", str(tmp_path / "missing.json")]) == 1
    assert "not found" in capsys.readouterr().err


def test_execute_with_seed_and_output(simple_workflow, tmp_path, capsys):
    output = tmp_path / "out" / "result.json"

    code = main([
        "execute", str(simple_workflow),
        "--seed", '{"initialValue": "from cli"}',
        "--output", str(output),
    ])

    assert code == 0
    out = capsys.readouterr().out
    assert "[success] s1" in out
    result = json.loads(output.read_text())
    assert result["success"] is True
    assert result["node_results"]["s1"]["initialValue"] == "from cli"


def test_execute_bad_seed(simple_workflow, capsys):
    assert main(["execute", str(simple_workflow), "--seed", "{oops"]) == 1
    assert "--seed is not valid JSON" in capsys.readouterr().err


def test_execute_without_start(tmp_path, capsys):
    path = write_workflow(tmp_path / "nostart.json", [{"id": "s1", "kind": "simple"}])
    assert main(["execute", str(path)]) == 1
    assert "no Start node" in capsys.readouterr().err


def test_execute_unknown_kind(tmp_path, capsys):
    path = write_workflow(tmp_path / "unknown.json", [{"id": "x", "kind": "teleport"}])
    assert main(["execute", str(path)]) == 1
    assert "Unknown node kind" in capsys.readouterr().err


def test_execute_node_failure_exit_code(tmp_path, capsys):
    path = write_workflow(
        tmp_path / "http.json",
        [
            {"id": "start", "kind": "start"},
            {"id": "h", "kind": "http", "properties": {"url": "https://example.com", "method": "PATCH"}},
        ],
        [link("start", "out", "h", "in")],
    )
    assert main(["execute", str(path)]) == 1
    out = capsys.readouterr().out
    assert "Unsupported HTTP method" in out
