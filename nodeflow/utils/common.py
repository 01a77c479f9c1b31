#!/usr/bin/env python3
"""
Helpers shared by the nodeflow command line and web entry points.
"""
import json
import logging
from pathlib import Path
from typing import Any, Union


def setup_logging(verbose: bool = False):
    """Configure root logging for command line entry points"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s"
    )


def normalize_path(path: Union[str, Path]) -> Path:
    """Absolute path from a CLI argument; strips quotes left by drag-and-drop"""
    if isinstance(path, str) and len(path) > 1 and path[0] == path[-1] and path[0] in "\"'":
        path = path[1:-1]
    return Path(path).expanduser().resolve()


def format_duration(seconds: float) -> str:
    """Format duration in seconds to HH:MM:SS.mmm"""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:06.3f}"


def print_section(title: str, width: int = 60):
    """Print title between two rules"""
    rule = "=" * width
    print(f"\n{rule}\n{title}\n{rule}")


def save_json(data: Any, path: Path, indent: int = 2):
    """Save data as JSON file"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=str)
