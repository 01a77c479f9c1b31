"""
Workflow files and command line.

Snapshot (de)serialization and the `nodeflow` CLI.
"""
from .serialization import WorkflowSerializer

__all__ = [
    'WorkflowSerializer',
]
