"""
Execution engine for node-based workflows.

Handles graph lookup, branch conditions, per-node execution and concurrent
traversal from the Start node.
"""
from .graph import WorkflowGraph, NodeConnection
from .conditions import Comparison, evaluate_condition, select_output_port
from .runner import NodeRunner, NodeRunResult
from .status import NodeEvent, StatusFeed, snapshot
from .executor import WorkflowExecutor, ExecutionResult, run_workflow

__all__ = [
    'WorkflowGraph',
    'NodeConnection',
    'Comparison',
    'evaluate_condition',
    'select_output_port',
    'NodeRunner',
    'NodeRunResult',
    'NodeEvent',
    'StatusFeed',
    'snapshot',
    'WorkflowExecutor',
    'ExecutionResult',
    'run_workflow',
]
