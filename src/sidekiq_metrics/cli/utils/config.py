# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Configuration management for the CLI.
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any
import yaml
from dataclasses import dataclass

from ...errors import ConfigError

OUTPUT_FORMATS = ("mackerel", "table", "json")


@dataclass
class Config:
    """CLI configuration container."""

    # Redis settings
    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    db: int = 0
    namespace: str = ""
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0

    # Plugin settings
    metric_key_prefix: str = "sidekiq"
    tempfile: Optional[str] = None

    # Display settings
    default_format: str = "mackerel"  # mackerel, table, json

    # Debug settings
    debug: bool = False

    # Config file path
    config_path: Optional[Path] = None

    def __post_init__(self):
        """Initialize configuration after creation."""
        # Set default config path if not provided
        if self.config_path is None:
            self.config_path = Path.home() / ".sidekiq-metrics" / "config.yaml"
        self.config_path = Path(self.config_path)

        # Load from file if exists
        if self.config_path.exists():
            self.load_from_file()

        # Override with environment variables
        self.load_from_env()

    def load_from_file(self):
        """Load configuration from YAML file."""
        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError([f"Could not load config file {self.config_path}: {e}"]) from e

        if not isinstance(data, dict):
            raise ConfigError([f"Config file {self.config_path} must contain a mapping"])

        bad_sections = [
            name for name in ("redis", "plugin", "display")
            if not isinstance(data.get(name) or {}, dict)
        ]
        if bad_sections:
            raise ConfigError([f"Section '{name}' must be a mapping" for name in bad_sections])

        # Redis settings
        redis_section = data.get("redis") or {}
        self.host = redis_section.get("host", self.host)
        self.port = redis_section.get("port", self.port)
        self.password = redis_section.get("password", self.password)
        self.db = redis_section.get("db", self.db)
        self.namespace = redis_section.get("namespace", self.namespace)
        self.socket_timeout = redis_section.get("socket_timeout", self.socket_timeout)
        self.socket_connect_timeout = redis_section.get("socket_connect_timeout", self.socket_connect_timeout)

        # Plugin settings
        plugin = data.get("plugin") or {}
        self.metric_key_prefix = plugin.get("metric_key_prefix", self.metric_key_prefix)
        self.tempfile = plugin.get("tempfile", self.tempfile)

        # Display settings
        display = data.get("display") or {}
        self.default_format = display.get("format", self.default_format)

    def load_from_env(self):
        """Load configuration from environment variables."""
        if env_host := os.environ.get("SIDEKIQ_METRICS_HOST"):
            self.host = env_host

        if env_port := os.environ.get("SIDEKIQ_METRICS_PORT"):
            self.port = _to_int("SIDEKIQ_METRICS_PORT", env_port)

        if env_db := os.environ.get("SIDEKIQ_METRICS_DB"):
            self.db = _to_int("SIDEKIQ_METRICS_DB", env_db)

        if env_namespace := os.environ.get("SIDEKIQ_METRICS_NAMESPACE"):
            self.namespace = env_namespace

        # Password
        if env_password := os.environ.get("SIDEKIQ_PASSWORD"):
            self.password = env_password

        # Debug
        if os.environ.get("SIDEKIQ_METRICS_DEBUG"):
            self.debug = True

    def apply_overrides(self, **overrides: Any):
        """Apply explicitly given values (None means not given)."""
        for key, value in overrides.items():
            if value is not None and hasattr(self, key):
                setattr(self, key, value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            k: v for k, v in self.__dict__.items()
            if not k.startswith("_") and k not in ("config_path", "password")
        }

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: Listing every invalid value
        """
        errors = []

        if not _is_int(self.port) or not 0 < self.port < 65536:
            errors.append("port must be between 1 and 65535")

        if not _is_int(self.db) or self.db < 0:
            errors.append("db must be non-negative")

        if not _is_number(self.socket_timeout) or self.socket_timeout <= 0:
            errors.append("socket_timeout must be positive")

        if not _is_number(self.socket_connect_timeout) or self.socket_connect_timeout <= 0:
            errors.append("socket_connect_timeout must be positive")

        if not isinstance(self.metric_key_prefix, str) or not self.metric_key_prefix:
            errors.append("metric_key_prefix must be a non-empty string")

        if self.default_format not in OUTPUT_FORMATS:
            errors.append(f"format must be one of: {', '.join(OUTPUT_FORMATS)}")

        if errors:
            raise ConfigError(errors)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError([f"{name} must be an integer, got {value!r}"])
