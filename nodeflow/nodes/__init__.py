"""
Node types for nodeflow workflows.

Each node kind (start, simple, http, branch, merge) is a Node subclass with
typed properties and fixed ports, registered by kind in the NodeRegistry.
"""
from .base import (
    ExecutionContext,
    Node,
    NodeKind,
    NodeProperties,
    NodeStatus,
    Port,
    PortDirection,
    PropertySpec,
    PropertyType,
)
from .registry import NodeRegistry, get_registry, register_node

__all__ = [
    'ExecutionContext',
    'Node',
    'NodeKind',
    'NodeProperties',
    'NodeStatus',
    'Port',
    'PortDirection',
    'PropertySpec',
    'PropertyType',
    'NodeRegistry',
    'get_registry',
    'register_node',
]
