#!/usr/bin/env python3
"""
Conditional routing nodes.
"""
from dataclasses import dataclass
from typing import Dict, Any, List

from nodeflow.engine.conditions import Comparison, select_output_port, to_js_string
from nodeflow.errors import NodeExecutionError
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


@dataclass
class BranchProperties(NodeProperties):
    path: str = ""
    comparison: str = Comparison.EQUALS.value
    value: str = ""


@register_node(metadata={"category": "flow", "description": "Route the payload to the true or false output"})
class BranchNode(Node):
    """
    IF node.

    Looks up a value in the payload by dotted path, compares it against a
    literal and follows only the matching output port.
    """

    kind = NodeKind.BRANCH
    properties_class = BranchProperties
    property_specs = [
        PropertySpec(
            name="path",
            property_type=PropertyType.TEXT,
            default="",
            description="Dotted path into the payload, e.g. user.age"
        ),
        PropertySpec(
            name="comparison",
            property_type=PropertyType.SELECT,
            default=Comparison.EQUALS.value,
            options=tuple(c.value for c in Comparison),
            description="Comparison operator"
        ),
        PropertySpec(
            name="value",
            property_type=PropertyType.TEXT,
            default="",
            description="Literal to compare against",
            to_text=to_js_string,
        ),
    ]

    def _define_ports(self):
        self.inputs = {"in": input_port("in")}
        self.outputs = {
            "true": output_port("true", label="true"),
            "false": output_port("false", label="false"),
        }

    def execute(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        try:
            Comparison(self.properties.comparison)
        except ValueError:
            raise NodeExecutionError(
                f"Unknown comparison: {self.properties.comparison}", node_id=self.node_id
            )
        return dict(payload)

    def route(self, payload: Dict[str, Any]) -> List[str]:
        return [select_output_port(self, payload)]
