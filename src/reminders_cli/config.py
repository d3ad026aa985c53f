"""Configuration management for the reminders CLI."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError

from reminders_cli.exceptions import ConfigError

APP_NAME = "icloud-reminders"
CONFIG_DIR_ENV = "ICLOUD_REMINDERS_CONFIG_DIR"


class APIConfig(BaseModel):
    """HTTP behaviour shared by sign-in and CloudKit calls."""

    timeout: float = Field(default=30.0)
    retry: int = Field(default=3, ge=0)
    backoff_max: float = Field(default=30.0, gt=0)


class PathsConfig(BaseModel):
    """Optional overrides for the session and cache file locations."""

    session_file: str | None = Field(default=None)
    cache_file: str | None = Field(default=None)


class AppConfig(BaseModel):
    """Main configuration."""

    api: APIConfig = Field(default_factory=APIConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


def default_config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path(user_config_dir(APP_NAME))


class ConfigService:
    """Loads and saves config.json and resolves data file paths."""

    def __init__(self, config_dir: Path | None = None):
        self.config_dir = Path(config_dir) if config_dir else default_config_dir()
        self.config_path = self.config_dir / "config.json"
        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration, writing defaults on first run."""
        try:
            with open(self.config_path, encoding="utf-8") as f:
                return AppConfig.model_validate(json.load(f))
        except FileNotFoundError:
            config = AppConfig()
            self.save_config(config)
            return config
        except (OSError, ValueError, ValidationError) as e:
            raise ConfigError(f"Failed to load config {self.config_path}: {e}") from e

    def save_config(self, config: AppConfig | None = None) -> None:
        """Save configuration to config.json."""
        config = config or self.config
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(config.model_dump_json(indent=4))
            self.config_path.chmod(0o600)
        except OSError as e:
            raise ConfigError(f"Failed to save config: {e}") from e
        self._config = config

    @property
    def session_file(self) -> Path:
        if self.config.paths.session_file:
            return Path(self.config.paths.session_file).expanduser()
        return self.config_dir / "session.json"

    @property
    def cache_file(self) -> Path:
        if self.config.paths.cache_file:
            return Path(self.config.paths.cache_file).expanduser()
        return self.config_dir / "ck_cache.json"

    @property
    def credentials_file(self) -> Path:
        return self.config_dir / "credentials"


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Return the process-wide config service."""
    return ConfigService()
