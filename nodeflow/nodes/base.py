#!/usr/bin/env python3
"""
Base classes for node-based workflow system.

Defines the core Node class, the port system for data flow, typed node
properties and the per-node status/output record.
"""
import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

import requests

from nodeflow.errors import ConfigurationError
from nodeflow.utils.config import HttpConfig


class NodeKind(str, Enum):
    """Closed set of node types"""
    START = "start"
    SIMPLE = "simple"
    HTTP = "http"
    BRANCH = "branch"
    MERGE = "merge"


class NodeStatus(str, Enum):
    """Execution state of a node"""
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class PortDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


class PropertyType(str, Enum):
    """Editor widget types for node properties"""
    TEXT = "text"  # Single line text
    TEXTAREA = "textarea"  # Multi-line text
    SELECT = "select"  # Single choice from options
    BOOLEAN = "boolean"  # Checkbox


@dataclass(frozen=True)
class Port:
    """Represents a connection point on a node"""
    id: str
    direction: PortDirection
    label: Optional[str] = None


@dataclass
class PropertySpec:
    """Describes one editable property of a node kind"""
    name: str
    property_type: PropertyType
    default: Any = None
    options: Tuple[str, ...] = ()
    description: str = ""
    # Converts non-string raw values of text properties; str() when unset
    to_text: Optional[Callable[[Any], str]] = None

    def coerce(self, value: Any) -> Any:
        """Convert a raw editor value to the property's Python type"""
        if value is None:
            return self.default
        if self.property_type == PropertyType.BOOLEAN:
            if isinstance(value, str):
                return value.strip().lower() in ("true", "1", "yes", "on")
            return bool(value)
        if isinstance(self.default, int):
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Property {self.name} expects an integer, got {value!r}")
        if isinstance(value, str):
            return value
        return self.to_text(value) if self.to_text else str(value)

    def validate(self, value: Any) -> bool:
        """Validate property value"""
        if self.property_type == PropertyType.SELECT and self.options:
            return value in self.options
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.property_type.value,
            "default": self.default,
            "options": list(self.options),
            "description": self.description,
        }


@dataclass
class NodeProperties:
    """Typed execution properties; one subclass per node kind"""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ExecutionContext:
    """Collaborators a node may need while executing"""
    http: HttpConfig = field(default_factory=HttpConfig)
    session: Optional[requests.Session] = None
    clock: Callable[[], datetime] = utc_now


class Node(ABC):
    """
    Base class for all workflow nodes.

    Each node represents a single unit of work in the workflow graph.
    Nodes have input and output ports that connections attach to, a typed
    set of properties, and a mutable status/output record that the engine
    writes during a run and any reader may inspect at any time.
    """

    kind: NodeKind
    properties_class: Type[NodeProperties] = NodeProperties
    property_specs: List[PropertySpec] = []

    def __init__(self, node_id: str, position: Optional[Dict[str, float]] = None, **config):
        """
        Initialize a node.

        Args:
            node_id: Unique identifier for this node instance
            position: Canvas position (display only)
            **config: Raw property values keyed by property name
        """
        self.node_id = node_id
        self.position = position or {"x": 0, "y": 0}
        self.config = config
        self.inputs: Dict[str, Port] = {}
        self.outputs: Dict[str, Port] = {}
        self.properties = self._build_properties(config)

        self._lock = threading.Lock()
        self._status = NodeStatus.IDLE
        self._last_output: Optional[Dict[str, Any]] = None

        # Define inputs and outputs
        self._define_ports()

    def _build_properties(self, config: Dict[str, Any]) -> NodeProperties:
        values = {spec.name: spec.coerce(config.get(spec.name)) for spec in self.property_specs}
        known = {f.name for f in fields(self.properties_class)}
        return self.properties_class(**{k: v for k, v in values.items() if k in known})

    @abstractmethod
    def _define_ports(self):
        """Define input and output ports for this node kind"""
        pass

    @abstractmethod
    def execute(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        """
        Execute the node's action.

        Args:
            payload: Output of the triggering predecessor (or the seed for Start)
            context: Execution collaborators

        Returns:
            Output payload handed to every followed successor
        """
        pass

    def route(self, payload: Dict[str, Any]) -> List[str]:
        """Output port ids whose connections are followed after success"""
        return list(self.outputs)

    def get_node_type(self) -> str:
        """Get the kind name of this node"""
        return self.kind.value

    def validation_errors(self) -> List[str]:
        errors = []
        for spec in self.property_specs:
            value = getattr(self.properties, spec.name, spec.default)
            if not spec.validate(value):
                errors.append(
                    f"Node {self.node_id}: invalid {spec.name} {value!r} "
                    f"(expected one of {', '.join(spec.options)})"
                )
        return errors

    # -- status / output record ----------------------------------------

    def get_state(self) -> NodeStatus:
        """Get current execution state"""
        with self._lock:
            return self._status

    def set_state(self, state: NodeStatus):
        """Set execution state"""
        with self._lock:
            self._status = state

    def get_last_output(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._last_output

    def record_success(self, output: Dict[str, Any]):
        """Store output of a successful execution"""
        with self._lock:
            self._status = NodeStatus.SUCCESS
            self._last_output = output

    def set_error(self, error: str):
        """Set error message"""
        with self._lock:
            self._status = NodeStatus.FAILED
            self._last_output = {"error": error}

    def get_error(self) -> Optional[str]:
        """Get error message if execution failed"""
        with self._lock:
            if self._status == NodeStatus.FAILED and self._last_output:
                return self._last_output.get("error")
            return None

    def reset(self):
        """Return to idle with no output"""
        with self._lock:
            self._status = NodeStatus.IDLE
            self._last_output = None

    def snapshot(self) -> Tuple[NodeStatus, Optional[Dict[str, Any]]]:
        """Consistent (status, last_output) pair"""
        with self._lock:
            return self._status, copy.deepcopy(self._last_output)

    # -- serialization -------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize node to dictionary"""
        return {
            "id": self.node_id,
            "kind": self.get_node_type(),
            "position": self.position,
            "properties": self.properties.to_dict(),
        }

    @classmethod
    def describe(cls) -> Dict[str, Any]:
        """Kind-level description for editors"""
        return {
            "kind": cls.kind.value,
            "title": cls.__name__.replace("Node", ""),
            "description": (cls.__doc__ or "").strip(),
            "properties": [spec.to_dict() for spec in cls.property_specs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        """Deserialize node from dictionary"""
        node_id = data["id"]
        properties = data.get("properties", {})
        return cls(node_id=node_id, position=data.get("position"), **properties)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.node_id!r}>"


def input_port(port_id: str, label: Optional[str] = None) -> Port:
    return Port(id=port_id, direction=PortDirection.INPUT, label=label)


def output_port(port_id: str, label: Optional[str] = None) -> Port:
    return Port(id=port_id, direction=PortDirection.OUTPUT, label=label)
