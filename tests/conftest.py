"""Pytest configuration and fixtures."""
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from nodeflow.engine.executor import WorkflowExecutor
from nodeflow.engine.graph import WorkflowGraph
from nodeflow.nodes.base import ExecutionContext
from nodeflow.nodes.flow_nodes import StartNode
from nodeflow.utils.config import NodeflowConfig


FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def config():
    """Default configuration, independent of the user's config file."""
    return NodeflowConfig()


@pytest.fixture
def context(config):
    return ExecutionContext(http=config.http, clock=lambda: FIXED_TIME)


@pytest.fixture
def make_executor(config):
    """Factory for executors using the test configuration."""
    def factory(**kwargs):
        kwargs.setdefault("config", config)
        return WorkflowExecutor(**kwargs)
    return factory


def json_response(status_code=200, body=None):
    response = Mock(status_code=status_code)
    response.json.return_value = body if body is not None else {}
    return response


def http_session(*responses):
    """Mock requests session returning the given responses in order."""
    session = Mock()
    session.request.side_effect = list(responses)
    return session


def start_graph(*nodes):
    """Graph with a Start node 'start' plus the given nodes."""
    graph = WorkflowGraph()
    graph.add_node(StartNode("start"))
    for node in nodes:
        graph.add_node(node)
    return graph

