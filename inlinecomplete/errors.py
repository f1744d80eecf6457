"""Domain-specific exception hierarchy for inlinecomplete."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    """Distinguishes deliberate cancellation from genuine transport failures."""

    CANCELLED = "cancelled"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass
class InlineCompleteError(Exception):
    """Base exception for inlinecomplete errors with optional remediation text."""

    message: str
    remediation: str | None = None

    def __post_init__(self) -> None:  # pragma: no cover - dataclass validation hook
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ConfigurationError(InlineCompleteError):
    """Raised when configuration files or CLI input are invalid."""


@dataclass
class NetworkError(InlineCompleteError):
    """Raised when the transport fails or the request is cancelled."""

    kind: FailureKind = FailureKind.TRANSPORT_FAILURE

    @property
    def is_cancellation(self) -> bool:
        """Return True when the failure stems from a superseded or cancelled request."""

        return self.kind is FailureKind.CANCELLED


@dataclass
class ServerError(InlineCompleteError):
    """Raised when the completion endpoint answers with a non-success status."""

    status_code: int | None = None
    status_text: str = ""


class MalformedResponseError(InlineCompleteError):
    """Raised when the endpoint body cannot be parsed as a completion response."""


__all__ = [
    "FailureKind",
    "InlineCompleteError",
    "ConfigurationError",
    "NetworkError",
    "ServerError",
    "MalformedResponseError",
]
