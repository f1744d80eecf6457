"""Editor model abstractions consumed by the context builder."""
from __future__ import annotations

from .buffer import (
    CursorPosition,
    EditorModel,
    TextAccessor,
    TextBuffer,
    get_text_after_cursor,
    get_text_before_cursor,
)

__all__ = [
    "CursorPosition",
    "EditorModel",
    "TextAccessor",
    "TextBuffer",
    "get_text_after_cursor",
    "get_text_before_cursor",
]
