"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from pushrelay.errors import ConfigError


class ActionMode(str, Enum):
    FORWARD = "forward"
    REDEPLOY = "redeploy"


class ServerConfig(BaseModel):
    bind: str = "0.0.0.0"
    port: int = 3000


class DiscoveryConfig(BaseModel):
    cache_ttl_seconds: float = 60
    target_label: str = "pushrelay.target"
    image_label: str = "pushrelay.image"
    marker_label: str = "pushrelay"
    group_label: str = "com.docker.compose.project"

    @property
    def query_labels(self) -> list[str]:
        """Label keys whose presence makes a container routing-relevant."""
        return [self.target_label, self.image_label, self.marker_label]


class PortainerConfig(BaseModel):
    url: str = ""
    api_key: str = ""
    verify_tls: bool = False


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PUSHRELAY_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    action: ActionMode = ActionMode.REDEPLOY
    server: ServerConfig = Field(default_factory=ServerConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    portainer: PortainerConfig = Field(default_factory=PortainerConfig)
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Env vars override values passed in (the YAML overlay)
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def check(self) -> None:
        """Raise ConfigError if these settings cannot run the selected action."""
        if self.discovery.cache_ttl_seconds < 0:
            raise ConfigError("discovery.cache_ttl_seconds must not be negative")
        if self.action is ActionMode.REDEPLOY:
            missing = [
                name
                for name, value in (
                    ("portainer.url", self.portainer.url),
                    ("portainer.api_key", self.portainer.api_key),
                )
                if not value
            ]
            if missing:
                raise ConfigError(f"redeploy mode requires {', '.join(missing)}")


def default_config_path() -> Path:
    env = os.environ.get("PUSHRELAY_CONFIG_DIR")
    if env:
        return Path(env) / "config.yaml"
    xdg = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg) / "pushrelay" / "config.yaml"


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("PUSHRELAY_CONFIG")
    if config_path is None:
        default = default_config_path()
        if default.exists():
            config_path = default

    # Load YAML if found
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"config file not found: {path}")
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        if not isinstance(yaml_data, dict):
            raise ConfigError(f"config file must contain a mapping: {path}")

    return Settings(**yaml_data)
