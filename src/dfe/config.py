"""
Engine configuration.

Settings are read from an optional YAML file, then overridden from the
environment:

    DFE_API_URL          api_base_url
    DFE_AUTOSAVE_DELAY   autosave_delay_seconds
    DFE_LOG_LEVEL        log_level
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from dfe.model import DEFAULT_ACCENT_COLOR

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "DFE_API_URL": "api_base_url",
    "DFE_AUTOSAVE_DELAY": "autosave_delay_seconds",
    "DFE_LOG_LEVEL": "log_level",
}

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class EngineConfig(BaseModel):
    """Runtime settings for clients, autosave and the CLI."""

    api_base_url: str = Field(
        default="http://localhost:3000/api",
        description="Root URL of the form store API",
    )
    request_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout applied to every store request",
    )
    autosave_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Quiet period after the last edit before a template is saved",
    )
    default_accent_color: str = Field(
        default=DEFAULT_ACCENT_COLOR,
        description="Accent color given to new templates",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level name for the CLI",
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        if not re.match(r"^https?://", v):
            raise ValueError(f"api_base_url must be an http(s) URL, got '{v}'")
        return v.rstrip("/")

    @field_validator("default_accent_color")
    @classmethod
    def validate_accent_color(cls, v: str) -> str:
        if not re.match(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$", v):
            raise ValueError(f"default_accent_color must be a hex color, got '{v}'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}'. Valid levels: {sorted(_LOG_LEVELS)}")
        return level


def load_config(path: Optional[Union[str, Path]] = None,
                environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """
    Load configuration from YAML and the environment.

    Args:
        path: YAML file. A missing file is not an error.
        environ: Environment mapping (os.environ by default)

    Raises:
        ValueError: Invalid YAML or invalid setting values
    """
    environ = os.environ if environ is None else environ
    data: Dict[str, Any] = {}

    if path is not None:
        config_path = Path(path)
        if config_path.exists():
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in config {config_path}: {e}") from e
            if loaded is None:
                logger.warning("Empty config at %s", config_path)
            elif not isinstance(loaded, dict):
                raise ValueError(f"Config {config_path} must be a mapping")
            else:
                data.update(loaded)
                logger.debug("Loaded config from %s", config_path)
        else:
            logger.debug("No config found at %s", config_path)

    for env_name, key in ENV_OVERRIDES.items():
        if environ.get(env_name):
            data[key] = environ[env_name]

    return EngineConfig.model_validate(data)
