#!/usr/bin/env python3
"""
HTTP request nodes.

Issues a request against an external service and turns the JSON response
into the node's output payload.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Any
from urllib.parse import quote

import requests

from nodeflow.errors import HttpRequestError, NodeExecutionError
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


logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")
BODY_METHODS = ("POST", "PUT")

# Characters a browser's encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


def percent_encode(value: str) -> str:
    """Percent-encode a full URL so it can travel as a query parameter"""
    return quote(value, safe=_URI_COMPONENT_SAFE)


def proxy_url(url: str, proxy_base_url: str) -> str:
    """Route url through the proxy service"""
    return proxy_base_url + percent_encode(url)


@dataclass
class HttpProperties(NodeProperties):
    url: str = ""
    method: str = "GET"
    use_proxy: bool = False


@register_node(metadata={"category": "api", "description": "Call an HTTP endpoint and emit its JSON body"})
class HttpRequestNode(Node):
    """Calls an HTTP endpoint and emits the parsed JSON response"""

    kind = NodeKind.HTTP
    properties_class = HttpProperties
    property_specs = [
        PropertySpec(
            name="url",
            property_type=PropertyType.TEXT,
            default="",
            description="Target URL"
        ),
        PropertySpec(
            name="method",
            property_type=PropertyType.SELECT,
            default="GET",
            options=HTTP_METHODS,
            description="HTTP method"
        ),
        PropertySpec(
            name="use_proxy",
            property_type=PropertyType.BOOLEAN,
            default=False,
            description="Route the request through the proxy service"
        ),
    ]

    def _define_ports(self):
        self.inputs = {"in": input_port("in")}
        self.outputs = {"out": output_port("out")}

    def validation_errors(self):
        errors = super().validation_errors()
        if not self.properties.url:
            errors.append(f"Node {self.node_id}: url is required")
        return errors

    def request_url(self, context: ExecutionContext) -> str:
        """URL actually requested, after the optional proxy rewrite"""
        if self.properties.use_proxy:
            return proxy_url(self.properties.url, context.http.proxy_base_url)
        return self.properties.url

    def execute(self, payload: Dict[str, Any], context: ExecutionContext) -> Dict[str, Any]:
        method = self.properties.method.upper()
        if method not in HTTP_METHODS:
            raise NodeExecutionError(f"Unsupported HTTP method: {self.properties.method}", node_id=self.node_id)
        if not self.properties.url:
            raise NodeExecutionError("No URL configured", node_id=self.node_id)

        url = self.request_url(context)
        kwargs: Dict[str, Any] = {"timeout": context.http.timeout}
        if method in BODY_METHODS:
            kwargs["json"] = payload

        session = context.session or requests
        logger.debug("%s %s %s", self.node_id, method, url)
        try:
            response = session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise HttpRequestError(
                f"Request failed: {e}", node_id=self.node_id, url=url, method=method
            ) from e

        if not 200 <= response.status_code < 300:
            raise HttpRequestError(
                f"HTTP error! status: {response.status_code}",
                node_id=self.node_id,
                status_code=response.status_code,
                url=url,
                method=method,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise HttpRequestError(
                f"Malformed response body: {e}",
                node_id=self.node_id,
                status_code=response.status_code,
                url=url,
                method=method,
            ) from e

        if isinstance(body, dict):
            return body
        return {"data": body}
