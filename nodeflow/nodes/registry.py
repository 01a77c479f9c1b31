#!/usr/bin/env python3
"""
Registry of node kinds.

Maps each NodeKind to its Node subclass plus editor metadata (category,
description). Node modules in this package register themselves with the
register_node decorator; get_registry() imports them on first use.
"""
import importlib
import inspect
import logging
from pathlib import Path
from typing import Dict, Type, Optional, List, Union

from .base import Node, NodeKind


logger = logging.getLogger(__name__)

# Modules of this package that define no node kinds
_SUPPORT_MODULES = ("base", "registry")


class NodeRegistry:
    """Node classes and metadata keyed by kind"""

    def __init__(self):
        self._classes: Dict[NodeKind, Type[Node]] = {}
        self._metadata: Dict[NodeKind, Dict] = {}

    @staticmethod
    def _kind(node_type: Union[str, NodeKind]) -> Optional[NodeKind]:
        try:
            return NodeKind(node_type)
        except ValueError:
            return None

    def register(self, node_class: Type[Node], metadata: Optional[Dict] = None):
        """
        Register node_class under its kind.

        Registering a kind again replaces the class; metadata is only
        replaced when given.
        """
        kind = node_class.kind
        self._classes[kind] = node_class
        if metadata is not None:
            self._metadata[kind] = dict(metadata)
        else:
            self._metadata.setdefault(kind, {})

    def get_node_class(self, node_type: Union[str, NodeKind]) -> Optional[Type[Node]]:
        kind = self._kind(node_type)
        return self._classes.get(kind) if kind else None

    def create_node(self, node_type: Union[str, NodeKind], node_id: str, **config) -> Optional[Node]:
        """
        Instantiate a node of the given kind.

        Returns:
            The node, or None when the kind is not registered
        """
        node_class = self.get_node_class(node_type)
        if node_class is None:
            return None
        return node_class(node_id=node_id, **config)

    def list_node_types(self) -> List[str]:
        """Registered kind names in registration order"""
        return [kind.value for kind in self._classes]

    def get_node_metadata(self, node_type: Union[str, NodeKind]) -> Dict:
        kind = self._kind(node_type)
        return self._metadata.get(kind, {}) if kind else {}

    def discover_nodes(self, package_path: Path):
        """Import every node module under package_path"""
        for module_file in sorted(package_path.glob("*.py")):
            if module_file.name.startswith("_") or module_file.stem in _SUPPORT_MODULES:
                continue

            module_name = f"{__package__}.{module_file.stem}"
            module = importlib.import_module(module_name)

            # Classes defined without the decorator still get registered
            for _, obj in inspect.getmembers(module, inspect.isclass):
                concrete = issubclass(obj, Node) and not inspect.isabstract(obj)
                if concrete and getattr(obj, "kind", None) and obj.kind not in self._classes:
                    self.register(obj)
            logger.debug("Loaded node module %s", module_name)


_registry: Optional[NodeRegistry] = None


def get_registry() -> NodeRegistry:
    """Process-wide registry, populated on first call"""
    global _registry
    if _registry is None:
        _registry = NodeRegistry()
        _registry.discover_nodes(Path(__file__).parent)
    return _registry


def register_node(metadata: Optional[Dict] = None):
    """
    Class decorator adding a Node subclass to the global registry.

        @register_node(metadata={"category": "flow"})
        class StartNode(Node):
            kind = NodeKind.START
    """
    def decorator(node_class: Type[Node]):
        get_registry().register(node_class, metadata)
        return node_class
    return decorator
