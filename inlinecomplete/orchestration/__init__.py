"""Orchestration layer for inlinecomplete."""
from __future__ import annotations

from .runner import CompletionOutcome, complete_at_cursor, handle_domain_error, run_completion

__all__ = [
    "CompletionOutcome",
    "complete_at_cursor",
    "handle_domain_error",
    "run_completion",
]
