"""Completion endpoint client."""
from __future__ import annotations

from .coordinator import CompletionResponse, RequestCoordinator

__all__ = ["CompletionResponse", "RequestCoordinator"]
