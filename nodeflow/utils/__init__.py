"""
nodeflow utilities

Shared helpers and configuration management.
"""
from .config import get_config_manager, ConfigManager, NodeflowConfig, EngineConfig, HttpConfig
from .common import (
    setup_logging,
    normalize_path,
    format_duration,
    print_section,
    save_json,
)

__all__ = [
    'get_config_manager',
    'ConfigManager',
    'NodeflowConfig',
    'EngineConfig',
    'HttpConfig',
    'setup_logging',
    'normalize_path',
    'format_duration',
    'print_section',
    'save_json',
]
