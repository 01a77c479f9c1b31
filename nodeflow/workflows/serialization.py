#!/usr/bin/env python3
"""
Workflow serialization format.

Handles saving and loading workflow graph snapshots as JSON files.
Positions are carried through for the editor but play no part in execution.
"""
import json
from pathlib import Path
from typing import Dict, Any, Optional, Tuple

from nodeflow.engine.graph import NodeConnection, WorkflowGraph
from nodeflow.errors import ConfigurationError
from nodeflow.nodes.registry import get_registry


FORMAT_VERSION = "1.0"


class WorkflowSerializer:
    """Handles workflow serialization and deserialization"""

    def __init__(self):
        self.registry = get_registry()

    def serialize_workflow(self, graph: WorkflowGraph,
                           metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Serialize a workflow to dictionary format.

        Args:
            graph: Workflow graph
            metadata: Optional workflow metadata

        Returns:
            Dictionary representation of workflow
        """
        return {
            "version": FORMAT_VERSION,
            "metadata": metadata or {},
            "nodes": [node.to_dict() for node in graph.nodes.values()],
            "connections": [
                {
                    "from": {"node": conn.from_node, "port": conn.from_port},
                    "to": {"node": conn.to_node, "port": conn.to_port},
                }
                for conn in graph.connections
            ],
        }

    def deserialize_workflow(self, workflow_data: Dict[str, Any]) -> WorkflowGraph:
        """
        Deserialize a workflow from dictionary format.

        Connections are taken as stored; run WorkflowGraph.validate() to
        check them.

        Raises:
            ConfigurationError: malformed snapshot or unknown node kind
        """
        nodes = []

        try:
            for node_data in workflow_data.get("nodes", []):
                node_id = str(node_data["id"])
                node_type = node_data.get("kind") or node_data["type"]
                properties = dict(node_data.get("properties", {}))

                node = self.registry.create_node(
                    node_type, node_id, position=node_data.get("position"), **properties
                )
                if node is None:
                    raise ConfigurationError(f"Unknown node kind: {node_type}")
                nodes.append(node)

            connections = [
                NodeConnection(
                    from_node=str(conn_data["from"]["node"]),
                    from_port=conn_data["from"]["port"],
                    to_node=str(conn_data["to"]["node"]),
                    to_port=conn_data["to"]["port"],
                )
                for conn_data in workflow_data.get("connections", [])
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Malformed workflow snapshot: {e!r}") from e

        return WorkflowGraph(nodes, connections)

    def save_workflow(self, workflow_path: Path, graph: WorkflowGraph,
                      metadata: Optional[Dict[str, Any]] = None):
        """
        Save workflow to JSON file.

        Args:
            workflow_path: Path to save workflow file
            graph: Workflow graph
            metadata: Optional workflow metadata
        """
        workflow_data = self.serialize_workflow(graph, metadata)

        workflow_path.parent.mkdir(parents=True, exist_ok=True)
        with open(workflow_path, 'w') as f:
            json.dump(workflow_data, f, indent=2, default=str)

    def load_workflow(self, workflow_path: Path) -> Tuple[WorkflowGraph, Dict[str, Any]]:
        """
        Load workflow from JSON file.

        Args:
            workflow_path: Path to workflow file

        Returns:
            Tuple of (graph, metadata)
        """
        with open(workflow_path, 'r') as f:
            workflow_data = json.load(f)

        graph = self.deserialize_workflow(workflow_data)
        metadata = workflow_data.get("metadata", {})

        return graph, metadata
