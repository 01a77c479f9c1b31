#!/usr/bin/env python3
"""
Flow control nodes.

Start, Simple and Merge nodes move payloads through the graph without any
external calls.
"""
from dataclasses import dataclass
from typing import Dict, Any

from nodeflow.nodes.base import (
    ExecutionContext,
    Node,
    NodeKind,
    NodeProperties,
    PropertySpec,
    PropertyType,
    input_port,
    output_port,
)
from nodeflow.nodes.registry import register_node


@register_node(metadata={"category": "flow", "description": "Entry point that emits the seed payload"})
class StartNode(Node):
    """Entry point of every workflow; emits the seed payload"""

    kind = NodeKind.START

    def _define_ports(self):
        self.inputs = {}
        self.outputs = {"out": output_port("out")}

    def execute(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        return dict(payload)


@register_node(metadata={"category": "flow", "description": "Pass-through with processing stamp"})
class SimpleNode(Node):
    """Passes its input through, stamped with who processed it and when"""

    kind = NodeKind.SIMPLE

    def _define_ports(self):
        self.inputs = {"in": input_port("in")}
        self.outputs = {"out": output_port("out")}

    def execute(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        output = dict(payload)
        output["processed_by"] = self.node_id
        output["processed_at"] = context.clock().isoformat()
        return output


@dataclass
class MergeProperties(NodeProperties):
    input_count: int = 2


@register_node(metadata={"category": "flow", "description": "Join several incoming paths into one"})
class MergeNode(Node):
    """
    Joins several incoming paths.

    The scheduler fires a Merge node once per run, after every live incoming
    connection has either delivered a payload or been ruled out. The payloads
    that did arrive are combined by combine().
    """

    kind = NodeKind.MERGE
    properties_class = MergeProperties
    property_specs = [
        PropertySpec(
            name="input_count",
            property_type=PropertyType.TEXT,
            default=2,
            description="Number of input ports (at least 2)",
        ),
    ]

    def _define_ports(self):
        count = max(2, self.properties.input_count)
        self.inputs = {f"in_{i}": input_port(f"in_{i}") for i in range(1, count + 1)}
        self.outputs = {"out": output_port("out")}

    def validation_errors(self):
        errors = super().validation_errors()
        if self.properties.input_count < 2:
            errors.append(f"Node {self.node_id}: merge needs at least 2 inputs")
        return errors

    def combine(self, arrivals: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Shallow-merge payloads in input port order; later ports win.

        Args:
            arrivals: Payload per input port id that delivered one
        """
        combined: Dict[str, Any] = {}
        for port_id in self.inputs:
            if port_id in arrivals:
                combined.update(arrivals[port_id])
        return combined

    def execute(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        return dict(payload)
