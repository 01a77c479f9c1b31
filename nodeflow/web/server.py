#!/usr/bin/env python3
"""
Web service for nodeflow workflows.

REST endpoints validate, execute, save and load posted workflow snapshots;
the /ws WebSocket runs a workflow and streams every node status change.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional
from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException, Query
from pydantic import BaseModel
import uvicorn

from nodeflow import __version__
from nodeflow.engine.executor import WorkflowExecutor
from nodeflow.engine.status import NodeEvent, snapshot
from nodeflow.errors import WorkflowError
from nodeflow.nodes.registry import get_registry
from nodeflow.utils.common import setup_logging
from nodeflow.utils.config import get_config_manager
from nodeflow.workflows.serialization import FORMAT_VERSION, WorkflowSerializer


logger = logging.getLogger(__name__)

app = FastAPI(title="nodeflow", version=__version__)


class WorkflowRequest(BaseModel):
    nodes: List[Dict[str, Any]]
    connections: List[Dict[str, Any]] = []
    metadata: Dict[str, Any] = {}
    seed: Optional[Dict[str, Any]] = None

    def to_workflow_data(self) -> Dict[str, Any]:
        return {
            "version": FORMAT_VERSION,
            "metadata": self.metadata,
            "nodes": self.nodes,
            "connections": self.connections
        }


def make_executor() -> WorkflowExecutor:
    return WorkflowExecutor(config=get_config_manager().get())


@app.get("/api/nodes")
async def list_nodes():
    """Get all available node kinds"""
    registry = get_registry()

    nodes_info = []
    for node_type in registry.list_node_types():
        metadata = registry.get_node_metadata(node_type)
        info = registry.get_node_class(node_type).describe()
        info["category"] = metadata.get("category", "other")
        nodes_info.append(info)

    return {"nodes": nodes_info}


@app.post("/api/workflow/validate")
def validate_workflow(request: WorkflowRequest):
    """Validate a workflow"""
    serializer = WorkflowSerializer()
    try:
        graph = serializer.deserialize_workflow(request.to_workflow_data())
    except WorkflowError as e:
        return {"valid": False, "errors": [str(e)]}

    errors = graph.validate()
    return {
        "valid": len(errors) == 0,
        "errors": errors
    }


@app.post("/api/workflow/execute")
def execute_workflow(request: WorkflowRequest):
    """Execute a workflow synchronously"""
    serializer = WorkflowSerializer()
    try:
        graph = serializer.deserialize_workflow(request.to_workflow_data())
        result = make_executor().execute_workflow(graph, request.seed)
    except WorkflowError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response = result.to_dict()
    response["nodes"] = snapshot(graph)
    return response


@app.post("/api/workflow/save")
def save_workflow(request: WorkflowRequest, path: str = Query(...)):
    """Save workflow to file"""
    serializer = WorkflowSerializer()
    try:
        graph = serializer.deserialize_workflow(request.to_workflow_data())
        workflow_path = Path(path)
        serializer.save_workflow(workflow_path, graph, request.metadata)
    except WorkflowError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {"success": True, "path": str(workflow_path)}


@app.get("/api/workflow/load")
def load_workflow(path: str):
    """Load workflow from file"""
    serializer = WorkflowSerializer()
    workflow_path = Path(path)

    if not workflow_path.exists():
        raise HTTPException(status_code=404, detail="Workflow file not found")

    try:
        graph, metadata = serializer.load_workflow(workflow_path)
    except (WorkflowError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Convert back to API format
    return serializer.serialize_workflow(graph, metadata)


async def run_with_feed(websocket: WebSocket, workflow_data: Dict[str, Any],
                        seed: Optional[Dict[str, Any]]):
    """Execute a workflow, streaming every node transition to websocket"""
    loop = asyncio.get_running_loop()
    serializer = WorkflowSerializer()

    try:
        graph = serializer.deserialize_workflow(workflow_data)
        executor = make_executor()
        executor.validate_graph(graph)
    except WorkflowError as e:
        await websocket.send_json({"type": "execution_error", "error": str(e)})
        return

    pending = []

    def forward(event: NodeEvent):
        message = {"type": "node_status", **event.to_dict()}
        pending.append(asyncio.run_coroutine_threadsafe(websocket.send_json(message), loop))

    executor.feed.subscribe(forward)

    await websocket.send_json({
        "type": "execution_started",
        "total_nodes": len(graph)
    })

    try:
        result = await loop.run_in_executor(None, executor.execute_workflow, graph, seed)
    except WorkflowError as e:
        await websocket.send_json({"type": "execution_error", "error": str(e)})
        return
    finally:
        executor.feed.unsubscribe(forward)

    # Flush status messages before reporting completion
    await asyncio.gather(*(asyncio.wrap_future(f) for f in pending))

    await websocket.send_json({
        "type": "execution_complete",
        "success": result.success,
        "errors": result.errors,
        "statuses": result.statuses,
        "execution_time": result.execution_time
    })


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for real-time updates"""
    await websocket.accept()
    try:
        while True:
            data = await websocket.receive_json()

            if data.get("type") == "execute":
                await run_with_feed(websocket, data.get("workflow", {}), data.get("seed"))
            else:
                await websocket.send_json({
                    "type": "execution_error",
                    "error": f"Unknown message type: {data.get('type')}"
                })

    except WebSocketDisconnect:
        logger.debug("WebSocket client disconnected")


def main():
    """Run the web server"""
    import argparse
    parser = argparse.ArgumentParser(description="nodeflow web service")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")

    args = parser.parse_args()
    setup_logging(args.verbose)

    uvicorn.run(
        "nodeflow.web.server:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
