#!/usr/bin/env python3
"""
Workflow execution engine.

Walks the graph from the Start node, running every reachable node and
fanning out concurrently over outgoing connections.

Every connection reachable from Start carries exactly one token per run:
either the payload produced by its source node, or a skip marker when the
source failed, was not selected by a Branch, or was itself skipped. Merge
nodes count these tokens and fire once, after all of their live inputs have
reported.
"""
import copy
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

import requests

from nodeflow.engine.graph import NodeConnection, WorkflowGraph
from nodeflow.engine.runner import NodeRunner, NodeRunResult
from nodeflow.engine.status import StatusFeed, snapshot
from nodeflow.errors import ConfigurationError, StructuralHazardError, WorkflowError
from nodeflow.nodes.base import ExecutionContext, Node, NodeKind, NodeStatus
from nodeflow.utils.config import NodeflowConfig, get_config_manager


logger = logging.getLogger(__name__)


class _Skip:
    def __repr__(self):
        return "SKIP"


SKIP = _Skip()

Delivery = Tuple[NodeConnection, Any]


@dataclass
class ExecutionResult:
    """Result of workflow execution"""
    success: bool
    node_results: Dict[str, Dict[str, Any]]
    errors: Dict[str, str]
    execution_time: float
    total_nodes: int
    completed_nodes: int
    failed_nodes: int
    skipped_nodes: int = 0
    statuses: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "node_results": self.node_results,
            "errors": self.errors,
            "execution_time": self.execution_time,
            "total_nodes": self.total_nodes,
            "completed_nodes": self.completed_nodes,
            "failed_nodes": self.failed_nodes,
            "skipped_nodes": self.skipped_nodes,
            "statuses": self.statuses,
        }


class _RunState:
    """Bookkeeping for one run, shared by all of its tasks"""

    def __init__(self, merge_inputs: Dict[str, int]):
        self.lock = threading.Lock()
        self.results: Dict[str, NodeRunResult] = {}
        self.executed: Set[str] = set()
        self.skipped: Set[str] = set()
        self._merge_inputs = merge_inputs
        self._merge_tokens: Dict[str, int] = {}
        self._merge_arrivals: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def claim(self, node_id: str) -> bool:
        """Reserve node_id for execution; False when it already ran this run"""
        with self.lock:
            if node_id in self.executed:
                return False
            self.executed.add(node_id)
            return True

    def record(self, result: NodeRunResult):
        with self.lock:
            self.results[result.node_id] = result

    def mark_skipped(self, node_id: str):
        with self.lock:
            self.skipped.add(node_id)

    def arrive(self, node_id: str, port_id: str, payload: Any) -> Tuple[bool, Optional[Dict[str, Dict[str, Any]]]]:
        """
        Register a token at a Merge input.

        Returns:
            (fire, arrivals): fire is True for the token that completes the
            join; arrivals is None when every token was a skip
        """
        with self.lock:
            count = self._merge_tokens.get(node_id, 0) + 1
            self._merge_tokens[node_id] = count
            arrivals = self._merge_arrivals.setdefault(node_id, {})
            if payload is not SKIP:
                arrivals[port_id] = payload
            if count != self._merge_inputs.get(node_id, 0):
                return False, None
            return True, (dict(arrivals) if arrivals else None)


class WorkflowExecutor:
    """Executes node-based workflows"""

    def __init__(self, max_workers: Optional[int] = None,
                 step_delay: Optional[float] = None,
                 config: Optional[NodeflowConfig] = None,
                 session: Optional[requests.Session] = None,
                 feed: Optional[StatusFeed] = None):
        """
        Initialize workflow executor.

        Args:
            max_workers: Maximum parallel branches per fan-out point
            step_delay: Seconds to pause after each node completes
            config: Engine/HTTP configuration (default: global config file)
            session: HTTP session used by Http nodes
            feed: Status feed receiving every node transition
        """
        self.config = config or get_config_manager().get()
        self.max_workers = max_workers or self.config.engine.max_workers
        self.step_delay = self.config.engine.step_delay if step_delay is None else step_delay
        self.feed = feed or StatusFeed()
        self.runner = NodeRunner(
            context=ExecutionContext(http=self.config.http, session=session),
            feed=self.feed,
        )
        self._log_lock = threading.Lock()
        self._execution_log: List[Dict] = []

    def validate_graph(self, graph: WorkflowGraph) -> Node:
        """
        Check the graph can run and return its Start node.

        Raises:
            ConfigurationError: no unique Start node, or a connection whose
                endpoints do not resolve
            StructuralHazardError: a cycle is reachable from Start
        """
        start = graph.find_start_node()
        for conn in graph.connections:
            try:
                graph.check_connection(conn)
            except WorkflowError as e:
                raise ConfigurationError(f"Invalid connection {conn}: {e}") from e
        cycle = graph.find_cycle(start.node_id)
        if cycle:
            raise StructuralHazardError(
                "Workflow contains a cycle: " + " -> ".join(cycle), cycle=cycle
            )
        return start

    def _merge_inputs(self, graph: WorkflowGraph, reachable: Set[str]) -> Dict[str, int]:
        """Number of live incoming connections per reachable Merge node"""
        counts = {}
        for node_id in reachable:
            node = graph.get_node(node_id)
            if node.kind == NodeKind.MERGE:
                counts[node_id] = sum(
                    1 for conn in graph.incoming_connections(node_id)
                    if conn.from_node in reachable
                )
        return counts

    def execute_workflow(self, graph: WorkflowGraph,
                         seed_payload: Optional[Dict[str, Any]] = None) -> ExecutionResult:
        """
        Execute a complete workflow.

        Node failures stop only their own branch and are reported in the
        result; they never raise.

        Args:
            graph: Workflow to run
            seed_payload: Payload handed to the Start node (default from config)

        Returns:
            ExecutionResult once every branch has terminated

        Raises:
            ConfigurationError: no unique Start node, an unresolvable
                connection, or a non-mapping seed
            StructuralHazardError: cycle reachable from Start
        """
        start_time = time.time()
        start = self.validate_graph(graph)

        if seed_payload is None:
            seed_payload = copy.deepcopy(self.config.engine.seed_payload)
        if not isinstance(seed_payload, dict):
            raise ConfigurationError("Seed payload must be a JSON object")

        for node in graph.nodes.values():
            node.reset()

        reachable = graph.reachable_from(start.node_id)
        state = _RunState(self._merge_inputs(graph, reachable))

        logger.info("Starting workflow: %d nodes, %d connections",
                    len(graph), len(graph.connections))
        self._run_from(graph, start, seed_payload, state)

        node_results: Dict[str, Dict[str, Any]] = {}
        errors: Dict[str, str] = {}
        for node_id, result in state.results.items():
            if result.is_success:
                node_results[node_id] = result.output
            else:
                errors[node_id] = str(result.error)

        execution_time = time.time() - start_time
        logger.info("Workflow finished in %.2fs: %d succeeded, %d failed, %d skipped",
                    execution_time, len(node_results), len(errors), len(state.skipped))

        return ExecutionResult(
            success=len(errors) == 0,
            node_results=node_results,
            errors=errors,
            execution_time=execution_time,
            total_nodes=len(graph),
            completed_nodes=len(node_results),
            failed_nodes=len(errors),
            skipped_nodes=len(state.skipped),
            statuses={node_id: entry["status"] for node_id, entry in snapshot(graph).items()},
        )

    def _run_from(self, graph: WorkflowGraph, node: Node,
                  payload: Dict[str, Any], state: _RunState):
        """Run node, then fan out to its followed successors and wait for them"""
        if not state.claim(node.node_id):
            logger.error("Node %s reached twice in one run; not running it again", node.node_id)
            return

        result = self.runner.run(node, payload)
        state.record(result)
        self._log(result)

        if self.step_delay:
            time.sleep(self.step_delay)

        deliveries: List[Delivery] = []
        for conn in graph.outgoing_connections(node.node_id):
            if result.is_success and conn.from_port in result.selected_ports:
                deliveries.append((conn, result.output))
            else:
                deliveries.append((conn, SKIP))
        self._fan_out(graph, deliveries, state)

    def _skip(self, graph: WorkflowGraph, node: Node, state: _RunState):
        """Propagate a dead path through node without running it"""
        state.mark_skipped(node.node_id)
        logger.debug("Skipping node %s", node.node_id)
        deliveries = [(conn, SKIP) for conn in graph.outgoing_connections(node.node_id)]
        self._fan_out(graph, deliveries, state)

    def _fan_out(self, graph: WorkflowGraph, deliveries: List[Delivery], state: _RunState):
        live = [d for d in deliveries if d[1] is not SKIP]
        dead = [d for d in deliveries if d[1] is SKIP]

        # Dead paths do no work of their own; they only release joins
        for conn, payload in dead:
            self._deliver(graph, conn, payload, state)

        if len(live) == 1:
            conn, payload = live[0]
            self._deliver(graph, conn, payload, state)
            return
        if not live:
            return

        # Execute branches in parallel, all sharing the same payload
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(live))) as executor:
            futures = [
                executor.submit(self._deliver, graph, conn, payload, state)
                for conn, payload in live
            ]
            for future in futures:
                future.result()

    def _deliver(self, graph: WorkflowGraph, conn: NodeConnection,
                 payload: Any, state: _RunState):
        target = graph.get_node(conn.to_node)

        if target.kind == NodeKind.MERGE:
            fire, arrivals = state.arrive(target.node_id, conn.to_port, payload)
            if not fire:
                return
            if arrivals is None:
                self._skip(graph, target, state)
            else:
                self._run_from(graph, target, target.combine(arrivals), state)
            return

        if payload is SKIP:
            self._skip(graph, target, state)
        else:
            self._run_from(graph, target, payload, state)

    def _log(self, result: NodeRunResult):
        with self._log_lock:
            self._execution_log.append({
                "node_id": result.node_id,
                "status": result.status.value,
                "success": result.is_success,
                "error": str(result.error) if result.error else None,
                "duration_ms": result.duration_ms,
                "timestamp": time.time()
            })

    def get_execution_log(self) -> List[Dict]:
        """Get execution log"""
        with self._log_lock:
            return list(self._execution_log)


def run_workflow(graph: WorkflowGraph, seed_payload: Optional[Dict[str, Any]] = None,
                 **executor_options) -> ExecutionResult:
    """Execute graph with a fresh WorkflowExecutor"""
    return WorkflowExecutor(**executor_options).execute_workflow(graph, seed_payload)
