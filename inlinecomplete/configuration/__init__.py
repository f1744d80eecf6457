"""Configuration utilities for inlinecomplete."""
from __future__ import annotations

from .settings import (
    DEFAULT_TIMEOUT_SECONDS,
    ENDPOINT_ENV_VAR,
    ClientSettings,
    detect_language,
    load_settings,
    validate_endpoint,
)

__all__ = [
    "ClientSettings",
    "DEFAULT_TIMEOUT_SECONDS",
    "ENDPOINT_ENV_VAR",
    "detect_language",
    "load_settings",
    "validate_endpoint",
]
