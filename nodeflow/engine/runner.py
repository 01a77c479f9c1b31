#!/usr/bin/env python3
"""
Single node execution.

Runs one node against one input payload, records the outcome on the node
and reports which output ports the scheduler should follow.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from nodeflow.engine.status import StatusFeed
from nodeflow.errors import NodeExecutionError
from nodeflow.nodes.base import ExecutionContext, Node, NodeStatus


logger = logging.getLogger(__name__)


@dataclass
class NodeRunResult:
    """Result of running a single node"""
    node_id: str
    status: NodeStatus
    output: Optional[Dict[str, Any]] = None
    error: Optional[NodeExecutionError] = None
    selected_ports: List[str] = field(default_factory=list)
    duration_ms: float = 0

    @property
    def is_success(self) -> bool:
        return self.status == NodeStatus.SUCCESS


class NodeRunner:
    """Executes nodes and owns their status/output writes"""

    def __init__(self, context: Optional[ExecutionContext] = None,
                 feed: Optional[StatusFeed] = None):
        self.context = context or ExecutionContext()
        self.feed = feed or StatusFeed()

    def run(self, node: Node, payload: Dict[str, Any]) -> NodeRunResult:
        """
        Execute node with payload.

        Node failures are recorded on the node and returned in the result,
        never raised.
        """
        start = time.perf_counter()
        node.set_state(NodeStatus.RUNNING)
        self.feed.publish(node.node_id, NodeStatus.RUNNING)
        logger.debug("Running node %s (%s)", node.node_id, node.get_node_type())

        try:
            output = node.execute(payload, self.context)
            selected = node.route(output)
        except NodeExecutionError as e:
            if e.node_id is None:
                e.node_id = node.node_id
            return self._fail(node, e, start)
        except Exception as e:
            error = NodeExecutionError(f"{type(e).__name__}: {e}", node_id=node.node_id)
            error.__cause__ = e
            return self._fail(node, error, start)

        node.record_success(output)
        self.feed.publish(node.node_id, NodeStatus.SUCCESS, output)
        logger.debug("Node %s succeeded; following %s", node.node_id, selected)
        return NodeRunResult(
            node_id=node.node_id,
            status=NodeStatus.SUCCESS,
            output=output,
            selected_ports=selected,
            duration_ms=(time.perf_counter() - start) * 1000,
        )

    def _fail(self, node: Node, error: NodeExecutionError, start: float) -> NodeRunResult:
        message = str(error)
        node.set_error(message)
        self.feed.publish(node.node_id, NodeStatus.FAILED, {"error": message})
        logger.warning("Node %s failed: %s", node.node_id, message)
        return NodeRunResult(
            node_id=node.node_id,
            status=NodeStatus.FAILED,
            error=error,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
