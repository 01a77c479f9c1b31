#!/usr/bin/env python3
"""
Unified configuration management for nodeflow.
Handles engine and HTTP settings and their on-disk storage.
"""
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any
from dataclasses import dataclass, asdict, field


logger = logging.getLogger(__name__)

DEFAULT_SEED_PAYLOAD = {"initialValue": "hello world"}


@dataclass
class EngineConfig:
    """Configuration for the traversal scheduler"""
    max_workers: int = 4
    step_delay: float = 0.0  # seconds slept after each node, for visual observation
    seed_payload: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_SEED_PAYLOAD))


@dataclass
class HttpConfig:
    """Configuration for HTTP request nodes"""
    timeout: float = 30
    proxy_base_url: str = "https://api.allorigins.win/raw?url="


@dataclass
class NodeflowConfig:
    """Main nodeflow configuration"""
    engine: EngineConfig = field(default_factory=EngineConfig)
    http: HttpConfig = field(default_factory=HttpConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "engine": asdict(self.engine),
            "http": asdict(self.http)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeflowConfig":
        """Create from dictionary"""
        return cls(
            engine=EngineConfig(**data.get("engine", {})),
            http=HttpConfig(**data.get("http", {}))
        )


class ConfigManager:
    """Manages nodeflow configuration stored as JSON"""

    CONFIG_FILE = Path.home() / ".nodeflow" / "config.json"

    def __init__(self, config_file: Optional[Path] = None):
        if config_file is not None:
            self.CONFIG_FILE = Path(config_file)
        self.config: Optional[NodeflowConfig] = None

    def load(self) -> NodeflowConfig:
        """Load configuration from file"""
        if self.CONFIG_FILE.exists():
            try:
                with open(self.CONFIG_FILE, 'r') as f:
                    data = json.load(f)
                self.config = NodeflowConfig.from_dict(data)
                return self.config
            except (OSError, ValueError, TypeError) as e:
                logger.warning("Could not load config file %s: %s", self.CONFIG_FILE, e)

        # Return defaults if file doesn't exist or is invalid
        self.config = NodeflowConfig()
        return self.config

    def save(self, config: Optional[NodeflowConfig] = None):
        """Save configuration to file"""
        if config:
            self.config = config

        if not self.config:
            return

        try:
            self.CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
            with open(self.CONFIG_FILE, 'w') as f:
                json.dump(self.config.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning("Could not save config file %s: %s", self.CONFIG_FILE, e)

    def get(self) -> NodeflowConfig:
        """Loaded configuration, reading the file on first use"""
        if self.config is None:
            return self.load()
        return self.config


# Global instance
_config_manager = None

def get_config_manager() -> ConfigManager:
    """Get global config manager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
