#!/usr/bin/env python3
"""
Execution status feed.

Publishes every node status transition of a run to subscribers (CLI
progress, WebSocket clients) and keeps the event history.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from nodeflow.nodes.base import NodeStatus


logger = logging.getLogger(__name__)


@dataclass
class NodeEvent:
    """A single status transition of a node"""
    node_id: str
    status: NodeStatus
    output: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "status": self.status.value,
            "output": self.output,
            "timestamp": self.timestamp,
        }


Subscriber = Callable[[NodeEvent], None]


class StatusFeed:
    """Thread-safe publisher of node events"""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: List[Subscriber] = []
        self._events: List[NodeEvent] = []

    def subscribe(self, callback: Subscriber) -> Subscriber:
        with self._lock:
            self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: Subscriber):
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, node_id: str, status: NodeStatus, output: Optional[Dict[str, Any]] = None):
        event = NodeEvent(node_id=node_id, status=status, output=output)
        with self._lock:
            self._events.append(event)
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                # A broken observer must not break the run
                logger.exception("Status subscriber failed for node %s", node_id)

    @property
    def events(self) -> List[NodeEvent]:
        with self._lock:
            return list(self._events)

    def clear(self):
        with self._lock:
            self._events.clear()


def snapshot(graph) -> Dict[str, Dict[str, Any]]:
    """Current status and last output of every node in graph"""
    result = {}
    for node_id, node in graph.nodes.items():
        status, output = node.snapshot()
        result[node_id] = {"status": status.value, "last_output": output}
    return result
