"""Tests for the REST and WebSocket API."""
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from nodeflow.engine.executor import WorkflowExecutor
from nodeflow.utils.config import NodeflowConfig
from nodeflow.web import server

from conftest import json_response


def link(from_node, from_port, to_node, to_port):
    return {"from": {"node": from_node, "port": from_port}, "to": {"node": to_node, "port": to_port}}


BRANCH_WORKFLOW = {
    "nodes": [
        {"id": "start", "kind": "start"},
        {"id": "if", "kind": "branch",
         "properties": {"path": "initialValue", "comparison": "equals", "value": "hello world"}},
        {"id": "fetch", "kind": "http", "properties": {"url": "https://example.com/todos/1"}},
        {"id": "fallback", "kind": "simple"},
    ],
    "connections": [
        link("start", "out", "if", "in"),
        link("if", "true", "fetch", "in"),
        link("if", "false", "fallback", "in"),
    ],
}


@pytest.fixture
def session():
    session = Mock()
    session.request.return_value = json_response(body={"id": 1, "completed": False})
    return session


@pytest.fixture
def client(monkeypatch, session):
    monkeypatch.setattr(
        server, "make_executor",
        lambda: WorkflowExecutor(config=NodeflowConfig(), session=session),
    )
    return TestClient(server.app)


def test_list_nodes(client):
    response = client.get("/api/nodes")
    assert response.status_code == 200
    kinds = {node["kind"]: node for node in response.json()["nodes"]}
    assert set(kinds) == {"start", "simple", "http", "branch", "merge"}
    assert kinds["http"]["category"] == "api"
    assert [p["name"] for p in kinds["branch"]["properties"]] == ["path", "comparison", "value"]


def test_validate_ok(client):
    response = client.post("/api/workflow/validate", json=BRANCH_WORKFLOW)
    assert response.json() == {"valid": True, "errors": []}


def test_validate_unknown_kind(client):
    response = client.post("/api/workflow/validate", json={"nodes": [{"id": "x", "kind": "teleport"}]})
    body = response.json()
    assert body["valid"] is False
    assert body["errors"] == ["Unknown node kind: teleport"]


def test_execute(client, session):
    response = client.post("/api/workflow/execute", json={**BRANCH_WORKFLOW, "seed": {"initialValue": "hello world"}})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["statuses"] == {"start": "success", "if": "success", "fetch": "success", "fallback": "idle"}
    assert body["nodes"]["fetch"]["last_output"] == {"id": 1, "completed": False}
    session.request.assert_called_once_with("GET", "https://example.com/todos/1", timeout=30)


def test_execute_node_failure_reported(client, session):
    session.request.return_value = json_response(status_code=500)

    body = client.post("/api/workflow/execute", json=BRANCH_WORKFLOW).json()

    assert body["success"] is False
    assert body["errors"] == {"fetch": "HTTP error! status: 500"}
    assert body["nodes"]["fetch"] == {"status": "failed", "last_output": {"error": "HTTP error! status: 500"}}


def test_execute_without_start(client):
    response = client.post("/api/workflow/execute", json={"nodes": [{"id": "s", "kind": "simple"}]})
    assert response.status_code == 400
    assert "no Start node" in response.json()["detail"]


def test_execute_dangling_connection(client, session):
    workflow = {
        "nodes": BRANCH_WORKFLOW["nodes"],
        "connections": BRANCH_WORKFLOW["connections"] + [link("if", "true", "ghost", "in")],
    }
    response = client.post("/api/workflow/execute", json=workflow)
    assert response.status_code == 400
    assert "Invalid connection" in response.json()["detail"]
    session.request.assert_not_called()


def test_save_and_load(client, tmp_path):
    path = tmp_path / "saved.json"

    saved = client.post("/api/workflow/save", params={"path": str(path)},
                        json={**BRANCH_WORKFLOW, "metadata": {"name": "demo"}})
    assert saved.json() == {"success": True, "path": str(path)}

    loaded = client.get("/api/workflow/load", params={"path": str(path)}).json()
    assert loaded["metadata"] == {"name": "demo"}
    assert [n["id"] for n in loaded["nodes"]] == ["start", "if", "fetch", "fallback"]
    assert loaded["connections"] == BRANCH_WORKFLOW["connections"]


def test_load_missing(client, tmp_path):
    response = client.get("/api/workflow/load", params={"path": str(tmp_path / "nope.json")})
    assert response.status_code == 404


class TestWebSocket:

    def receive_until_complete(self, ws):
        messages = []
        while True:
            message = ws.receive_json()
            messages.append(message)
            if message["type"] in ("execution_complete", "execution_error"):
                return messages

    def test_streams_node_status(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "execute", "workflow": BRANCH_WORKFLOW})
            messages = self.receive_until_complete(ws)

        assert messages[0] == {"type": "execution_started", "total_nodes": 4}
        updates = {}
        for m in messages:
            if m["type"] == "node_status":
                updates.setdefault(m["node_id"], []).append(m["status"])
        assert updates == {
            "start": ["running", "success"],
            "if": ["running", "success"],
            "fetch": ["running", "success"],
        }
        complete = messages[-1]
        assert complete["type"] == "execution_complete"
        assert complete["success"] is True
        assert complete["statuses"]["fallback"] == "idle"

    def test_configuration_error(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "execute", "workflow": {"nodes": [{"id": "s", "kind": "simple"}]}})
            message = ws.receive_json()

        assert message["type"] == "execution_error"
        assert "no Start node" in message["error"]

    def test_unknown_message(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "dance"})
            message = ws.receive_json()

        assert message == {"type": "execution_error", "error": "Unknown message type: dance"}
