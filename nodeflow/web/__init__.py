"""
REST and WebSocket service for running workflows.
"""
