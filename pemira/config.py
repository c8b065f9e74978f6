"""Application configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping


class ConfigError(Exception):
    """Raised when a required setting is missing."""


@dataclass(frozen=True)
class Config:
    database_url: str
    jwt_secret: str = field(repr=False)
    app_env: str = "development"
    http_port: str = "8080"
    jwt_expiration: str = "24h"
    redis_url: str = ""
    log_level: str = "info"
    cors_allowed_origins: str = "http://localhost:5173,http://localhost:3000"


# (attribute, variable, default, required)
_SETTINGS: tuple[tuple[str, str, str | None, bool], ...] = (
    ("app_env", "APP_ENV", "development", False),
    ("http_port", "HTTP_PORT", "8080", False),
    ("database_url", "DATABASE_URL", None, True),
    ("jwt_secret", "JWT_SECRET", None, True),
    ("jwt_expiration", "JWT_EXPIRATION", "24h", False),
    ("redis_url", "REDIS_URL", None, False),
    ("log_level", "LOG_LEVEL", "info", False),
    (
        "cors_allowed_origins",
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:5173,http://localhost:3000",
        False,
    ),
)


def load(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from ``environ`` (the process environment by default)."""
    env = os.environ if environ is None else environ
    values: dict[str, str] = {}
    for attr, key, default, required in _SETTINGS:
        if key in env:
            values[attr] = env[key]
        elif default is not None:
            values[attr] = default
        elif required:
            raise ConfigError(f"required key {key} missing value")
        else:
            values[attr] = ""
    return Config(**values)