# categorysync/config.py
"""
Configuration loader for the category sync client.
Loads configuration from YAML files and environment variables.
"""

from typing import Dict, Any, Optional
from pathlib import Path
from dataclasses import dataclass
import logging
import os

import yaml
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


@dataclass
class Environment:
    """Backend environment configuration."""
    name: str
    api_url: str


# Predefined environments
ENVIRONMENTS = {
    "local": Environment(name="local", api_url="http://localhost:5158"),
    "ios": Environment(name="ios", api_url="http://localhost:5158"),
    # Android emulators reach the host loopback through 10.0.2.2
    "android": Environment(name="android", api_url="http://10.0.2.2:5158"),
}


class CategorySyncConfig(BaseModel):
    """Main category sync configuration."""
    model_config = ConfigDict(extra="allow")

    # Backend
    environment: str = "local"
    api_url: str = ""
    api_key: str = ""
    collection_path: str = "/api/Categories"

    # Network
    timeout: float = 10.0  # seconds

    # Sync
    refresh_interval: float = 5.0  # seconds
    probe_resource_id: int = 1

    # Logging
    log_level: str = "INFO"

    def resolve_api_url(self) -> str:
        """API URL for this config, falling back to the named environment."""
        if self.api_url:
            return self.api_url
        env = ENVIRONMENTS.get(self.environment)
        if env:
            return env.api_url
        return ENVIRONMENTS["local"].api_url


class ConfigLoader:
    """Load and manage category sync configuration."""

    def __init__(self, config_dir: str = "config"):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files
        """
        self.config_dir = Path(config_dir)
        self.config: Optional[CategorySyncConfig] = None
        self.load()

    def load(self) -> CategorySyncConfig:
        """Load configuration from YAML and environment variables."""

        # Determine which config file to load
        env = os.getenv("CATEGORYSYNC_ENV")
        config_file = self.config_dir / f"{env or 'local'}.yaml"

        # Load default config first
        merged = self._load_yaml(self.config_dir / "default.yaml")
        if env:
            merged["environment"] = env

        # Override with environment-specific config
        if config_file.exists():
            merged.update(self._load_yaml(config_file))
        else:
            logger.debug(f"Config file not found: {config_file}, using defaults")

        # Override with environment variables
        merged.update(self._load_from_env())

        self.config = CategorySyncConfig(**merged)

        logger.info(f"Configuration loaded (environment: {self.config.environment}, api_url: {self.config.resolve_api_url()})")

        return self.config

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML config file."""
        if not path.exists():
            return {}

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
                return data or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load YAML config {path}: {e}")
            return {}

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config = {}

        if api_url := os.getenv("CATEGORYSYNC_API_URL"):
            config["api_url"] = api_url
        if api_key := os.getenv("CATEGORYSYNC_API_KEY"):
            config["api_key"] = api_key
        if collection_path := os.getenv("CATEGORYSYNC_COLLECTION_PATH"):
            config["collection_path"] = collection_path
        if timeout := os.getenv("CATEGORYSYNC_TIMEOUT"):
            config["timeout"] = float(timeout)
        if interval := os.getenv("CATEGORYSYNC_REFRESH_INTERVAL"):
            config["refresh_interval"] = float(interval)
        if log_level := os.getenv("CATEGORYSYNC_LOG_LEVEL"):
            config["log_level"] = log_level

        return config

    def get(self) -> CategorySyncConfig:
        """Get current configuration."""
        if not self.config:
            self.load()
        return self.config


# Global config instance
_global_config_loader: Optional[ConfigLoader] = None


def get_config() -> CategorySyncConfig:
    """Get the global category sync configuration."""
    global _global_config_loader
    if _global_config_loader is None:
        _global_config_loader = ConfigLoader()
    return _global_config_loader.get()


def initialize_config(config_dir: str = "config") -> CategorySyncConfig:
    """Initialize the global configuration loader."""
    global _global_config_loader
    _global_config_loader = ConfigLoader(config_dir)
    return _global_config_loader.get()
