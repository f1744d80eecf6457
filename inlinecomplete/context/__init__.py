"""Context window construction for completion requests."""
from __future__ import annotations

from .builder import build_completion_metadata, context_slots, per_fragment_budget
from .models import (
    DEFAULT_MAX_CONTEXT_LINES,
    CompletionMetadata,
    CompletionOptions,
    CompletionRequestBody,
    RelatedFile,
)

__all__ = [
    "DEFAULT_MAX_CONTEXT_LINES",
    "CompletionMetadata",
    "CompletionOptions",
    "CompletionRequestBody",
    "RelatedFile",
    "build_completion_metadata",
    "context_slots",
    "per_fragment_budget",
]
