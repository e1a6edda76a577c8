"""
Client Settings
===============

Validated settings for senders and logging, loaded from ``CONDUIT_*``
environment variables.

    CONDUIT_TIMEOUT_S           total request timeout (seconds)
    CONDUIT_CONNECT_TIMEOUT_S   connect timeout (seconds)
    CONDUIT_FOLLOW_REDIRECTS    "true" / "false"
    CONDUIT_VERIFY_TLS          "true" / "false"
    CONDUIT_LOG_LEVEL           DEBUG / INFO / WARNING / ...
    CONDUIT_LOG_JSON            "true" / "false"; unset = auto
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from conduit.core.exceptions import ConfigurationError
from conduit.infra.telemetry import setup_logging

_ENV_PREFIX = "CONDUIT_"

class ClientSettings(BaseModel):
    """Transport and logging settings shared by every connector."""

    model_config = ConfigDict(frozen=True)

    timeout_s: float = Field(default=30.0, gt=0)
    connect_timeout_s: float = Field(default=10.0, gt=0)
    follow_redirects: bool = False
    verify_tls: bool = True
    log_level: str = "INFO"
    log_json: bool | None = None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientSettings:
        """Build settings from ``CONDUIT_*`` variables; unset ones keep defaults."""
        env = os.environ if environ is None else environ
        values = {
            name: env[_ENV_PREFIX + name.upper()]
            for name in cls.model_fields
            if _ENV_PREFIX + name.upper() in env
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    def configure_logging(self) -> None:
        """Apply ``log_level`` and ``log_json`` to the ``conduit`` loggers."""
        setup_logging(level=self.log_level, json_output=self.log_json)

@lru_cache(maxsize=1)
def get_settings() -> ClientSettings:
    """Process-wide settings, read from the environment once."""
    return ClientSettings.from_env()
