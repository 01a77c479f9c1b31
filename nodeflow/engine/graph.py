#!/usr/bin/env python3
"""
In-memory workflow graph.

Holds nodes and the connections between their ports. During a run the graph
is a read-only snapshot; only each node's status/output record changes.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from nodeflow.errors import ConfigurationError, NotFoundError
from nodeflow.nodes.base import Node, NodeKind, Port, PortDirection


@dataclass(frozen=True)
class NodeConnection:
    """Represents a connection between nodes"""
    from_node: str
    from_port: str
    to_node: str
    to_port: str

    def __str__(self):
        return f"{self.from_node}.{self.from_port} -> {self.to_node}.{self.to_port}"


class WorkflowGraph:
    """Nodes keyed by id plus the ordered list of connections"""

    def __init__(self, nodes: Optional[Iterable[Node]] = None,
                 connections: Optional[Iterable[NodeConnection]] = None):
        self._nodes: Dict[str, Node] = {}
        self._connections: List[NodeConnection] = []
        self._outgoing: Dict[str, List[NodeConnection]] = defaultdict(list)
        self._incoming: Dict[str, List[NodeConnection]] = defaultdict(list)

        for node in nodes or []:
            self.add_node(node)
        for conn in connections or []:
            self._index(conn)

    # -- building (editor side) ----------------------------------------

    def add_node(self, node: Node) -> Node:
        if node.node_id in self._nodes:
            raise ConfigurationError(f"Duplicate node id: {node.node_id}")
        self._nodes[node.node_id] = node
        return node

    def add_connection(self, connection: NodeConnection) -> NodeConnection:
        """
        Add a connection after checking both endpoints.

        Raises:
            NotFoundError: unknown node or port
            ConfigurationError: wrong port direction or input already connected
        """
        self.check_connection(connection)
        for existing in self._incoming[connection.to_node]:
            if existing.to_port == connection.to_port:
                raise ConfigurationError(
                    f"Input {connection.to_node}.{connection.to_port} already connected"
                )
        self._index(connection)
        return connection

    def connect(self, from_node: str, from_port: str, to_node: str, to_port: str) -> NodeConnection:
        return self.add_connection(NodeConnection(from_node, from_port, to_node, to_port))

    def _index(self, connection: NodeConnection):
        self._connections.append(connection)
        self._outgoing[connection.from_node].append(connection)
        self._incoming[connection.to_node].append(connection)

    # -- lookup --------------------------------------------------------

    @property
    def nodes(self) -> Dict[str, Node]:
        return dict(self._nodes)

    @property
    def connections(self) -> List[NodeConnection]:
        return list(self._connections)

    def get_node(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NotFoundError(f"Unknown node: {node_id}")

    def find_start_node(self) -> Node:
        """
        The unique Start node.

        Raises:
            ConfigurationError: no Start node or more than one
        """
        starts = [n for n in self._nodes.values() if n.kind == NodeKind.START]
        if not starts:
            raise ConfigurationError("Workflow has no Start node")
        if len(starts) > 1:
            ids = ", ".join(n.node_id for n in starts)
            raise ConfigurationError(f"Workflow has more than one Start node: {ids}")
        return starts[0]

    def outgoing_connections(self, node_id: str) -> List[NodeConnection]:
        return list(self._outgoing.get(node_id, ()))

    def incoming_connections(self, node_id: str) -> List[NodeConnection]:
        return list(self._incoming.get(node_id, ()))

    def resolve_endpoint(self, node_id: str, port_id: str,
                         direction: Optional[PortDirection] = None) -> Port:
        """
        Look up a port, optionally only among ports of one direction.

        Raises:
            NotFoundError: unknown node, or no port with that id
            ConfigurationError: the port exists only with the other direction
        """
        node = self.get_node(node_id)
        if direction is None:
            port = node.inputs.get(port_id) or node.outputs.get(port_id)
        elif direction == PortDirection.INPUT:
            port = node.inputs.get(port_id)
        else:
            port = node.outputs.get(port_id)

        if port is None:
            if port_id in node.inputs or port_id in node.outputs:
                raise ConfigurationError(
                    f"Port {node_id}.{port_id} is not an {direction.value} port"
                )
            raise NotFoundError(f"Node {node_id} has no port: {port_id}")
        return port

    def check_connection(self, connection: NodeConnection):
        """
        Check that both endpoints of connection exist with the right direction.

        Raises:
            NotFoundError: unknown node or port
            ConfigurationError: source is not an output or target not an input
        """
        self.resolve_endpoint(connection.from_node, connection.from_port, PortDirection.OUTPUT)
        self.resolve_endpoint(connection.to_node, connection.to_port, PortDirection.INPUT)

    # -- structure -----------------------------------------------------

    def reachable_from(self, node_id: str) -> Set[str]:
        """Ids of all nodes reachable from node_id, itself included"""
        seen: Set[str] = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            if current in seen or current not in self._nodes:
                continue
            seen.add(current)
            stack.extend(c.to_node for c in self._outgoing.get(current, ()))
        return seen

    def find_cycle(self, start_id: str) -> Optional[List[str]]:
        """
        Depth-first search for a cycle reachable from start_id.

        Returns:
            Node ids along the cycle, first id repeated at the end, or None
        """
        visiting: Set[str] = set()
        done: Set[str] = set()
        path: List[str] = []

        # Iterative DFS; each frame is (node_id, iterator over successors)
        stack = [(start_id, iter(self._outgoing.get(start_id, ())))]
        visiting.add(start_id)
        path.append(start_id)
        while stack:
            node_id, successors = stack[-1]
            advanced = False
            for conn in successors:
                nxt = conn.to_node
                if nxt not in self._nodes or nxt in done:
                    continue
                if nxt in visiting:
                    return path[path.index(nxt):] + [nxt]
                visiting.add(nxt)
                path.append(nxt)
                stack.append((nxt, iter(self._outgoing.get(nxt, ()))))
                advanced = True
                break
            if not advanced:
                stack.pop()
                path.pop()
                visiting.discard(node_id)
                done.add(node_id)
        return None

    def validate(self) -> List[str]:
        """Human-readable list of problems; empty when the graph can run"""
        errors: List[str] = []

        for node in self._nodes.values():
            errors.extend(node.validation_errors())

        starts = [n for n in self._nodes.values() if n.kind == NodeKind.START]
        if not starts:
            errors.append("Workflow has no Start node")
        elif len(starts) > 1:
            errors.append("Workflow has more than one Start node: " +
                          ", ".join(n.node_id for n in starts))

        connected_inputs: Set[tuple] = set()
        for conn in self._connections:
            for node_id in (conn.from_node, conn.to_node):
                if node_id not in self._nodes:
                    errors.append(f"Connection references unknown node: {node_id}")
            if conn.from_node in self._nodes:
                node = self._nodes[conn.from_node]
                if conn.from_port not in node.outputs:
                    errors.append(f"Node {conn.from_node} has no output: {conn.from_port}")
            if conn.to_node in self._nodes:
                node = self._nodes[conn.to_node]
                if conn.to_port not in node.inputs:
                    errors.append(f"Node {conn.to_node} has no input: {conn.to_port}")
            key = (conn.to_node, conn.to_port)
            if key in connected_inputs:
                errors.append(f"Input {conn.to_node}.{conn.to_port} has more than one connection")
            connected_inputs.add(key)

        if len(starts) == 1:
            cycle = self.find_cycle(starts[0].node_id)
            if cycle:
                errors.append("Workflow contains a cycle: " + " -> ".join(cycle))

        return errors

    def __len__(self):
        return len(self._nodes)

    def __contains__(self, node_id: str):
        return node_id in self._nodes
