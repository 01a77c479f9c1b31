"""
nodeflow - node-based workflow execution engine.

Graphs of typed nodes (Start, Simple, HTTP request, Branch, Merge) are
connected through ports and executed with concurrent fan-out.
"""
__version__ = "1.0.0"
