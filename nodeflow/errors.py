#!/usr/bin/env python3
"""
Exception hierarchy for workflow construction and execution.
"""
from typing import List, Optional


class WorkflowError(Exception):
    """Base class for all workflow errors"""


class ConfigurationError(WorkflowError):
    """Workflow cannot start: missing Start node, unknown kind, bad properties"""


class NotFoundError(WorkflowError):
    """Lookup of an unknown node or port"""


class StructuralHazardError(WorkflowError):
    """Graph shape that cannot be executed safely (cycles)"""

    def __init__(self, message: str, cycle: Optional[List[str]] = None):
        self.cycle = cycle or []
        super().__init__(message)


class NodeExecutionError(WorkflowError):
    """A single node failed; contained in the node's own branch"""

    def __init__(self, message: str, node_id: Optional[str] = None):
        self.node_id = node_id
        super().__init__(message)


class HttpRequestError(NodeExecutionError):
    """Transport failure, non-2xx response or unparseable body"""

    def __init__(
        self,
        message: str,
        node_id: Optional[str] = None,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        self.status_code = status_code
        self.url = url
        self.method = method
        super().__init__(message, node_id=node_id)
