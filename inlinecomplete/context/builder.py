"""Construction of the size-bounded context window around the cursor."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence, Tuple

from inlinecomplete.context.models import CompletionMetadata, CompletionOptions, RelatedFile
from inlinecomplete.editor import (
    CursorPosition,
    EditorModel,
    TextAccessor,
    get_text_after_cursor,
    get_text_before_cursor,
)
from inlinecomplete.utils.text import TruncateDirection, truncate_text_to_max_lines

logger = logging.getLogger("inlinecomplete.context.builder")

_BUFFER_SLOTS: Tuple[str, ...] = ("before_cursor", "after_cursor")
_RELATED_FILES_SLOT = "related_files"


def context_slots(related_files: Sequence[RelatedFile] | None) -> Tuple[str, ...]:
    """Return the fragments sharing the line budget; related files share one slot."""

    if related_files:
        return _BUFFER_SLOTS + (_RELATED_FILES_SLOT,)
    return _BUFFER_SLOTS


def per_fragment_budget(
    max_context_lines: int | None,
    related_files: Sequence[RelatedFile] | None,
) -> int | None:
    """Split *max_context_lines* evenly across the context slots.

    Returns ``None`` when no budget is configured. Budgets smaller than the slot
    count floor to zero (or below), which truncates fragments to empty text.
    """

    if max_context_lines is None:
        return None
    return max_context_lines // len(context_slots(related_files))


def build_completion_metadata(
    position: CursorPosition,
    model: EditorModel,
    options: CompletionOptions,
    *,
    text_before: TextAccessor = get_text_before_cursor,
    text_after: TextAccessor = get_text_after_cursor,
) -> CompletionMetadata:
    """Assemble the bounded completion metadata for *position* in *model*."""

    budget = per_fragment_budget(options.max_context_lines, options.related_files)

    before = text_before(position, model)
    after = text_after(position, model)
    related_files = options.related_files or None

    if budget is not None:
        before = truncate_text_to_max_lines(before, budget, TruncateDirection.KEEP_END)
        after = truncate_text_to_max_lines(after, budget, TruncateDirection.KEEP_START)
        if related_files:
            related_files = tuple(
                replace(related, content=truncate_text_to_max_lines(related.content, budget))
                for related in related_files
            )

    logger.debug(
        "Built completion metadata",
        extra={
            "buffer_filename": options.filename,
            "line_budget": budget,
            "related_file_count": len(related_files or ()),
        },
    )

    return CompletionMetadata(
        filename=options.filename,
        language=options.language,
        technologies=options.technologies,
        text_before_cursor=before,
        text_after_cursor=after,
        cursor_position=position,
        related_files=related_files,
    )


__all__ = ["build_completion_metadata", "context_slots", "per_fragment_budget"]
