"""
Configuration service implementation for catfeed.
Handles application settings and configuration management.
"""

from __future__ import annotations
from typing import Dict, Any, Optional
from pathlib import Path
from urllib.parse import urlsplit
import json

import yaml
from pydantic import BaseModel, Field, ValidationError, conint, confloat, field_validator

from .interfaces import IConfigService, ILogger
from ..core.errors import ConfigError

DEFAULT_BASE_URL = "https://api.thecatapi.com/v1"

PositiveInt = conint(ge=1)
PositiveSeconds = confloat(gt=0)


class ApiConfig(BaseModel):
    """Remote API settings."""
    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = None
    timeout: Optional[PositiveSeconds] = None

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"not an http(s) URL: {value!r}")
        return value.rstrip("/")


class PagingConfig(BaseModel):
    page_size: PositiveInt = 100


class CacheConfig(BaseModel):
    max_items: Optional[PositiveInt] = None
    coalesce: bool = False


class WorkerConfig(BaseModel):
    max_workers: Optional[PositiveInt] = 8


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Optional[str] = None
    file_level: str = "DEBUG"
    core_level: Optional[str] = None

    @field_validator("level", "file_level", "core_level")
    @classmethod
    def _check_level(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"unknown log level: {value!r}")
        return level


class AppConfig(BaseModel):
    """Main application configuration."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    paging: PagingConfig = Field(default_factory=PagingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    workers: WorkerConfig = Field(default_factory=WorkerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _read_mapping(path: Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() in ('.yaml', '.yml'):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    return data or {}


def load_app_config(path: Optional[Path]) -> AppConfig:
    """Read and validate a JSON or YAML config file; defaults when ``path`` is None."""
    if path is None:
        return AppConfig()
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        return AppConfig.model_validate(_read_mapping(path))
    except ValidationError as e:
        raise ConfigError(f"Invalid config {path}: {e}") from e
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Unreadable config {path}: {e}") from e


class ConfigService(IConfigService):
    """Concrete implementation of configuration service."""

    def __init__(self, logger: ILogger, config: Optional[AppConfig] = None,
                 config_file: Optional[Path] = None):
        self._logger = logger
        self._config_file = config_file
        if config is not None:
            self._config = config
        else:
            self._config = load_app_config(config_file)
            if config_file:
                self._logger.info(f"Loaded configuration from: {config_file}")

    @property
    def config(self) -> AppConfig:
        return self._config

    def load_config(self) -> Dict[str, Any]:
        """Return the current configuration as a plain dictionary."""
        return self._config.model_dump()

    def save_config(self, config: Dict[str, Any]) -> bool:
        """Validate and apply ``config``; persists it when a config file is set."""
        try:
            self._config = AppConfig.model_validate(config)
        except ValidationError as e:
            self._logger.error("Rejected invalid configuration", exception=e)
            return False

        if self._config_file is None:
            return True
        return self.export_config(self._config_file)

    def get_setting(self, key: str, default: Any = None) -> Any:
        """Get a specific setting value using dot notation."""
        value: Any = self._config
        for part in key.split('.'):
            if not hasattr(value, part):
                return default
            value = getattr(value, part)
        return value

    def set_setting(self, key: str, value: Any) -> None:
        """Set a specific setting value using dot notation."""
        parts = key.split('.')
        if len(parts) < 2:
            self._logger.warning(f"Invalid setting key format: {key}")
            return

        data = self.load_config()
        section = data
        for part in parts[:-1]:
            if not isinstance(section, dict) or part not in section:
                self._logger.warning(f"Setting path not found: {key}")
                return
            section = section[part]
        if parts[-1] not in section:
            self._logger.warning(f"Setting key not found: {key}")
            return

        section[parts[-1]] = value
        try:
            self._config = AppConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid value for '{key}': {value!r}") from e
        self._logger.debug(f"Set setting '{key}' = {value}")

    def export_config(self, export_path: Path) -> bool:
        """Export configuration to a file; YAML for .yaml/.yml, JSON otherwise."""
        try:
            config_dict = self.load_config()
            export_path.parent.mkdir(parents=True, exist_ok=True)
            with open(export_path, 'w', encoding='utf-8') as f:
                if export_path.suffix.lower() in ('.yaml', '.yml'):
                    yaml.safe_dump(config_dict, f, default_flow_style=False)
                else:
                    json.dump(config_dict, f, indent=2, ensure_ascii=False)

            self._logger.info(f"Exported configuration to: {export_path}")
            return True

        except OSError as e:
            self._logger.error(f"Failed to export config to {export_path}", exception=e)
            return False
