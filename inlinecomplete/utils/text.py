"""Line-oriented text helpers shared by the context builder."""
from __future__ import annotations

from enum import Enum


class TruncateDirection(str, Enum):
    """Which side of an over-budget text survives truncation."""

    KEEP_START = "keep_start"
    KEEP_END = "keep_end"


def truncate_text_to_max_lines(
    text: str,
    max_lines: int,
    direction: TruncateDirection = TruncateDirection.KEEP_START,
) -> str:
    """Limit *text* to *max_lines* lines, keeping its head or tail.

    Lines are split on ``\\n`` and rejoined verbatim, so text already within
    the budget is returned unchanged. A budget below one line yields ``""``.
    """

    if max_lines < 1:
        return ""

    lines = text.split("\n")
    if len(lines) <= max_lines:
        return text

    if direction is TruncateDirection.KEEP_END:
        return "\n".join(lines[-max_lines:])
    return "\n".join(lines[:max_lines])


__all__ = ["TruncateDirection", "truncate_text_to_max_lines"]
