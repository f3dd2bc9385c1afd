"""
Configuration management for the link crawler.
"""

import os
import threading
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict
from pathlib import Path
import json
import logging

import jsonschema
from jsonschema import validate

from link_crawler.utils.errors import ConfigurationError, ValidationError


COMPLETION_MODES = ("counted", "structural")
FETCHERS = ("fake", "http")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class CrawlConfig:
    """Crawl traversal settings."""
    seed_address: str = "https://golang.org/"
    max_depth: int = 4
    completion_mode: str = "counted"
    max_workers: int = 8
    fetcher: str = "fake"

    def validate(self) -> None:
        """
        Validate crawl parameters.

        Raises:
            ValidationError: If configuration is invalid
        """
        errors = []

        if not self.seed_address:
            errors.append("seed_address must not be empty")

        if self.max_depth < 0:
            errors.append("max_depth must not be negative")

        if not (1 <= self.max_workers <= 256):
            errors.append("max_workers must be between 1 and 256")

        if self.completion_mode not in COMPLETION_MODES:
            errors.append(f"completion_mode must be one of {', '.join(COMPLETION_MODES)}")

        if self.fetcher not in FETCHERS:
            errors.append(f"fetcher must be one of {', '.join(FETCHERS)}")

        if errors:
            raise ValidationError(
                "Crawl configuration validation failed",
                {"errors": errors}
            )


@dataclass
class HTTPConfig:
    """Settings for the HTTP fetcher."""
    request_timeout: float = 10.0
    user_agent: Optional[str] = None
    max_content_length: int = 5 * 1024 * 1024


@dataclass
class SystemConfig:
    """Main system configuration."""
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    log_level: str = "WARNING"
    log_file: Optional[str] = None
    log_retention_days: int = 7


# Configuration schema for validation
CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "crawl": {
            "type": "object",
            "properties": {
                "seed_address": {"type": "string", "minLength": 1},
                "max_depth": {"type": "integer", "minimum": 0, "maximum": 100},
                "completion_mode": {"type": "string", "enum": list(COMPLETION_MODES)},
                "max_workers": {"type": "integer", "minimum": 1, "maximum": 256},
                "fetcher": {"type": "string", "enum": list(FETCHERS)}
            },
            "additionalProperties": False
        },
        "http": {
            "type": "object",
            "properties": {
                "request_timeout": {"type": "number", "exclusiveMinimum": 0, "maximum": 300},
                "user_agent": {"type": ["string", "null"]},
                "max_content_length": {"type": "integer", "minimum": 1}
            },
            "additionalProperties": False
        },
        "log_level": {"type": "string", "enum": list(LOG_LEVELS)},
        "log_file": {"type": ["string", "null"]},
        "log_retention_days": {"type": "integer", "minimum": 1, "maximum": 365}
    },
    "additionalProperties": False
}

# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    "LINK_CRAWLER_SEED": ("crawl", "seed_address", str),
    "LINK_CRAWLER_DEPTH": ("crawl", "max_depth", int),
    "LINK_CRAWLER_MODE": ("crawl", "completion_mode", str),
    "LINK_CRAWLER_WORKERS": ("crawl", "max_workers", int),
    "LINK_CRAWLER_FETCHER": ("crawl", "fetcher", str),
    "LINK_CRAWLER_TIMEOUT": ("http", "request_timeout", float),
    "LINK_CRAWLER_LOG_LEVEL": (None, "log_level", str),
    "LINK_CRAWLER_LOG_FILE": (None, "log_file", str),
}


class ConfigManager:
    """Loads, validates and saves crawler configuration."""

    def __init__(self, config_path: str = "link_crawler.json"):
        self.config_path = Path(config_path)
        self._config: Optional[SystemConfig] = None
        self._last_modified: Optional[float] = None
        self._lock = threading.RLock()

    def validate_config(self, config_data: Dict[str, Any]) -> None:
        """Validate configuration data against schema."""
        try:
            validate(instance=config_data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e.message}",
                                     {"path": list(e.absolute_path)})

    def load_config(self) -> SystemConfig:
        """Load configuration from file, falling back to environment variables."""
        with self._lock:
            if self.config_path.exists():
                current_modified = self.config_path.stat().st_mtime
                if self._config is None or current_modified != self._last_modified:
                    self._load_from_file()
                    self._last_modified = current_modified
            elif self._config is None:
                self._load_from_env()

            return self._config

    def _load_from_file(self) -> None:
        """Load configuration from JSON file with validation."""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to read config file {self.config_path}: {e}")

        self.validate_config(config_data)

        config = self._dict_to_config(config_data)
        self._override_with_env_vars(config)
        config.crawl.validate()
        self._config = config

        logging.getLogger(__name__).info(f"Configuration loaded and validated from {self.config_path}")

    def _load_from_env(self) -> None:
        """Load configuration from defaults and environment variables."""
        config = SystemConfig()
        self._override_with_env_vars(config)
        config.crawl.validate()
        self._config = config

        logging.getLogger(__name__).debug("Configuration loaded from environment variables")

    def _override_with_env_vars(self, config: SystemConfig) -> None:
        """Override configuration values with environment variables."""
        for env_name, (section, key, convert) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                value = convert(raw)
            except ValueError:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}")
            target = getattr(config, section) if section else config
            setattr(target, key, value)

        if config.log_level:
            config.log_level = config.log_level.upper()
        if config.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {config.log_level}")

    def _dict_to_config(self, data: Dict[str, Any]) -> SystemConfig:
        """Convert dictionary to SystemConfig object."""
        config = SystemConfig()

        if "crawl" in data:
            config.crawl = CrawlConfig(**data["crawl"])

        if "http" in data:
            config.http = HTTPConfig(**data["http"])

        config.log_level = data.get("log_level", config.log_level)
        config.log_file = data.get("log_file", config.log_file)
        config.log_retention_days = data.get("log_retention_days", config.log_retention_days)

        return config

    def export_config(self) -> Dict[str, Any]:
        """Export current configuration as dictionary."""
        with self._lock:
            if not self._config:
                return {}

            return {
                "crawl": asdict(self._config.crawl),
                "http": asdict(self._config.http),
                "log_level": self._config.log_level,
                "log_file": self._config.log_file,
                "log_retention_days": self._config.log_retention_days
            }

    def save_config(self, config_path: Optional[str] = None) -> None:
        """Save current configuration to file."""
        with self._lock:
            if not self._config:
                raise ConfigurationError("No configuration loaded to save")

            save_path = Path(config_path) if config_path else self.config_path
            config_dict = self.export_config()

            self.validate_config(config_dict)

            try:
                with open(save_path, 'w', encoding='utf-8') as f:
                    json.dump(config_dict, f, indent=2, ensure_ascii=False)
            except OSError as e:
                raise ConfigurationError(f"Failed to write config file {save_path}: {e}")

            logging.getLogger(__name__).info(f"Configuration saved to {save_path}")
