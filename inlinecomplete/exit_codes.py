"""Shared exit code definitions for inlinecomplete CLI operations."""
from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Deterministic exit codes reported by the CLI."""

    SUCCESS = 0
    UNEXPECTED_ERROR = 1
    INVALID_INPUT = 2
    NETWORK_ERROR = 3
    SERVER_ERROR = 4
    MALFORMED_RESPONSE = 5
    CANCELLED = 6


__all__ = ["ExitCode"]
