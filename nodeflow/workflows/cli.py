#!/usr/bin/env python3
"""
CLI interface for node-based workflows.

Provides command-line interface for listing node kinds, validating and
executing workflow files.
"""
import argparse
import json
import sys
from pathlib import Path

from nodeflow.engine.executor import WorkflowExecutor
from nodeflow.engine.status import NodeEvent
from nodeflow.errors import WorkflowError
from nodeflow.nodes.registry import get_registry
from nodeflow.utils.common import format_duration, normalize_path, print_section, save_json, setup_logging
from nodeflow.utils.config import get_config_manager
from nodeflow.workflows.serialization import WorkflowSerializer


EXAMPLE_WORKFLOW = {
    "version": "1.0",
    "metadata": {"name": "example"},
    "nodes": [
        {"id": "start", "kind": "start", "position": {"x": 50, "y": 100}, "properties": {}},
        {
            "id": "check",
            "kind": "branch",
            "position": {"x": 250, "y": 100},
            "properties": {"path": "initialValue", "comparison": "equals", "value": "hello world"}
        },
        {
            "id": "fetch",
            "kind": "http",
            "position": {"x": 450, "y": 50},
            "properties": {"url": "https://jsonplaceholder.typicode.com/todos/1", "method": "GET", "use_proxy": False}
        },
        {"id": "fallback", "kind": "simple", "position": {"x": 450, "y": 150}, "properties": {}}
    ],
    "connections": [
        {"from": {"node": "start", "port": "out"}, "to": {"node": "check", "port": "in"}},
        {"from": {"node": "check", "port": "true"}, "to": {"node": "fetch", "port": "in"}},
        {"from": {"node": "check", "port": "false"}, "to": {"node": "fallback", "port": "in"}}
    ]
}


def list_nodes():
    """List all available node kinds"""
    registry = get_registry()

    print("Available Node Types:")
    print("=" * 60)

    # Group by category
    categories = {}
    for node_type in registry.list_node_types():
        metadata = registry.get_node_metadata(node_type)
        category = metadata.get("category", "other")
        categories.setdefault(category, []).append((node_type, metadata))

    for category in sorted(categories.keys()):
        print(f"\n{category.upper()}:")
        for node_type, metadata in sorted(categories[category], key=lambda item: item[0]):
            description = metadata.get("description", "")
            print(f"  {node_type:12} - {description}")
            for spec in registry.get_node_class(node_type).property_specs:
                options = f" [{'|'.join(spec.options)}]" if spec.options else ""
                print(f"      {spec.name} ({spec.property_type.value}){options}")


def create_workflow(args):
    """Print an example workflow snapshot, ready to redirect into a file"""
    print(json.dumps(EXAMPLE_WORKFLOW, indent=2))


def _print_event(event: NodeEvent):
    print(f"  [{event.status.value:>7}] {event.node_id}")


def execute_workflow(args) -> int:
    """Execute a workflow from JSON file"""
    workflow_path = normalize_path(args.workflow)

    if not workflow_path.exists():
        print(f"Error: Workflow file not found: {workflow_path}", file=sys.stderr)
        return 1

    try:
        seed = json.loads(args.seed) if args.seed else None
    except json.JSONDecodeError as e:
        print(f"Error: --seed is not valid JSON: {e}", file=sys.stderr)
        return 1

    serializer = WorkflowSerializer()
    try:
        graph, metadata = serializer.load_workflow(workflow_path)
    except (WorkflowError, ValueError, OSError) as e:
        print(f"Error: Could not load workflow: {e}", file=sys.stderr)
        return 1

    if not len(graph):
        print("Error: No nodes found in workflow", file=sys.stderr)
        return 1

    print(f"Executing workflow: {workflow_path.name}")
    print(f"Nodes: {len(graph)}, Connections: {len(graph.connections)}")
    print("-" * 60)

    executor = WorkflowExecutor(
        max_workers=args.max_workers,
        step_delay=args.step_delay,
        config=get_config_manager().get(),
    )
    executor.feed.subscribe(_print_event)

    try:
        result = executor.execute_workflow(graph, seed)
    except WorkflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_section("Execution Results")
    print(f"Success: {result.success}")
    print(f"Total Nodes: {result.total_nodes}")
    print(f"Completed: {result.completed_nodes}")
    print(f"Failed: {result.failed_nodes}")
    print(f"Skipped: {result.skipped_nodes}")
    print(f"Execution Time: {format_duration(result.execution_time)}")

    if result.errors:
        print("\nErrors:")
        for node_id, error in result.errors.items():
            print(f"  {node_id}: {error}")

    if args.output:
        output_path = Path(args.output)
        save_json(result.to_dict(), output_path)
        print(f"\nResults saved to: {output_path}")

    return 0 if result.success else 1


def validate_workflow(args) -> int:
    """Validate a workflow file"""
    workflow_path = normalize_path(args.workflow)

    if not workflow_path.exists():
        print(f"Error: Workflow file not found: {workflow_path}", file=sys.stderr)
        return 1

    serializer = WorkflowSerializer()

    try:
        graph, metadata = serializer.load_workflow(workflow_path)
    except (WorkflowError, ValueError, OSError) as e:
        print(f"Error validating workflow: {e}", file=sys.stderr)
        return 1

    print(f"Validating workflow: {workflow_path.name}")
    print("-" * 60)

    errors = graph.validate()
    if errors:
        print("Validation Errors:")
        for error in errors:
            print(f"  - {error}")
        return 1

    print("✓ Workflow is valid")
    print(f"  Nodes: {len(graph)}")
    print(f"  Connections: {len(graph.connections)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodeflow",
        description="Node-based workflow execution engine",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # List nodes command
    subparsers.add_parser('list-nodes', help='List all available node kinds')

    # Create workflow command
    subparsers.add_parser('create', help='Print an example workflow')

    # Execute workflow command
    execute_parser = subparsers.add_parser('execute', help='Execute a workflow')
    execute_parser.add_argument('workflow', help='Path to workflow JSON file')
    execute_parser.add_argument('--seed', help='Seed payload as a JSON object')
    execute_parser.add_argument('--max-workers', type=int, default=None,
                                help='Maximum parallel branches per fan-out')
    execute_parser.add_argument('--step-delay', type=float, default=None,
                                help='Seconds to pause after each node')
    execute_parser.add_argument('--output', help='Save execution results to file')

    # Validate workflow command
    validate_parser = subparsers.add_parser('validate', help='Validate a workflow file')
    validate_parser.add_argument('workflow', help='Path to workflow JSON file')

    return parser


def main(argv=None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    if args.command == 'list-nodes':
        list_nodes()
        return 0
    elif args.command == 'create':
        create_workflow(args)
        return 0
    elif args.command == 'execute':
        return execute_workflow(args)
    elif args.command == 'validate':
        return validate_workflow(args)
    return 1


if __name__ == '__main__':
    sys.exit(main())
