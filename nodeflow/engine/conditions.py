#!/usr/bin/env python3
"""
Branch condition evaluation.

A Branch node extracts a value from the payload by a dotted path and compares
it against a literal. Comparisons deliberately follow loose, coercive rules:
equality and containment work on string representations, ordering works on
numeric coercions where non-numeric operands become NaN.
"""
import math
import re
from enum import Enum
from typing import Any, Dict


class _Undefined:
    """Marker for a path that does not resolve"""

    def __repr__(self):
        return "UNDEFINED"

    def __bool__(self):
        return False


UNDEFINED = _Undefined()

_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_PREFIXED_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")


class Comparison(str, Enum):
    """Comparison operators available on Branch nodes"""
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"


def resolve_path(payload: Any, path: str) -> Any:
    """
    Navigate payload by successive key lookups.

    Numeric segments index into lists. Any missing step yields UNDEFINED.
    """
    current = payload
    for key in path.split("."):
        if isinstance(current, dict):
            if key not in current:
                return UNDEFINED
            current = current[key]
        elif isinstance(current, (list, tuple)) and key.isdigit():
            index = int(key)
            if index >= len(current):
                return UNDEFINED
            current = current[index]
        else:
            return UNDEFINED
    return current


def _float_to_js(value: float) -> str:
    """
    Shortest round-trip digits in browser notation.

    Exponent form only below 1e-6 or from 1e21 up, written without a
    zero-padded exponent (1e-7, 1.5e+21).
    """
    text = repr(value)
    if "e" not in text:
        return text
    mantissa, exponent_text = text.split("e")
    exponent = int(exponent_text)
    if -7 < exponent < 0:
        sign = "-" if mantissa.startswith("-") else ""
        digits = mantissa.lstrip("-").replace(".", "")
        return f"{sign}0.{'0' * (-exponent - 1)}{digits}"
    return f"{mantissa}e{'+' if exponent > 0 else '-'}{abs(exponent)}"


def to_js_string(value: Any) -> str:
    """String representation with the same rules as a browser's String()"""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return _float_to_js(value)
    if isinstance(value, (list, tuple)):
        return ",".join(
            "" if item is None or item is UNDEFINED else to_js_string(item)
            for item in value
        )
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def to_number(value: Any) -> float:
    """Numeric coercion with the same rules as a browser's Number()"""
    if value is UNDEFINED:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, (list, tuple)):
        return to_number(to_js_string(value))
    if not isinstance(value, str):
        return math.nan

    text = value.strip()
    if not text:
        return 0.0
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    if _PREFIXED_RE.match(text):
        return float(int(text, 0))
    if _DECIMAL_RE.match(text):
        return float(text)
    return math.nan


def compare(extracted: Any, comparison: str, literal: str) -> bool:
    """
    Apply a comparison operator.

    Raises:
        ValueError: unknown operator
    """
    op = Comparison(comparison)
    if op == Comparison.EQUALS:
        return to_js_string(extracted) == literal
    if op == Comparison.NOT_EQUALS:
        return to_js_string(extracted) != literal
    if op == Comparison.CONTAINS:
        return literal in to_js_string(extracted)
    if op == Comparison.GREATER_THAN:
        return to_number(extracted) > to_number(literal)
    # NaN compares false both ways
    return to_number(extracted) < to_number(literal)


def evaluate_condition(path: str, comparison: str, literal: Any, payload: Dict[str, Any]) -> bool:
    """Resolve path in payload and compare it against literal"""
    if literal is None:
        literal = ""
    return compare(resolve_path(payload, path), comparison, to_js_string(literal))


def select_output_port(node, payload: Dict[str, Any]) -> str:
    """
    Pick the Branch output port for payload.

    Returns the id of the port labelled "true" when the node's condition
    holds, otherwise the id of the port labelled "false".
    """
    props = node.properties
    outcome = evaluate_condition(props.path, props.comparison, props.value, payload)
    wanted = "true" if outcome else "false"
    for port in node.outputs.values():
        if (port.label or port.id) == wanted:
            return port.id
    raise LookupError(f"Node {node.node_id} has no output port labelled {wanted!r}")
