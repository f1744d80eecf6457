"""Utility helpers for inlinecomplete."""

from __future__ import annotations

from .io import normalize_newlines, read_source_text
from .text import TruncateDirection, truncate_text_to_max_lines

__all__ = [
    "TruncateDirection",
    "normalize_newlines",
    "read_source_text",
    "truncate_text_to_max_lines",
]
