"""In-memory editor model and the cursor accessors consumed by the context builder."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from inlinecomplete.utils.io import normalize_newlines


@dataclass(frozen=True)
class CursorPosition:
    """1-based line and column of the editor caret."""

    line_number: int
    column: int

    def to_payload(self) -> dict[str, int]:
        return {"lineNumber": self.line_number, "column": self.column}


class EditorModel(Protocol):
    """Minimal buffer surface the default accessors rely on."""

    def get_offset_at(self, position: CursorPosition) -> int: ...

    def get_value(self) -> str: ...


TextAccessor = Callable[[CursorPosition, EditorModel], str]


class TextBuffer:
    """Plain-text buffer addressed with 1-based line/column positions.

    Positions outside the buffer are clamped to the nearest valid location, the
    way editors validate caret positions before reading ranges.
    """

    def __init__(self, text: str) -> None:
        self._text = normalize_newlines(text)
        self._line_starts = [0]
        for index, char in enumerate(self._text):
            if char == "\n":
                self._line_starts.append(index + 1)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def get_value(self) -> str:
        return self._text

    def get_line_length(self, line_number: int) -> int:
        start = self._line_starts[line_number - 1]
        if line_number < self.line_count:
            return self._line_starts[line_number] - 1 - start
        return len(self._text) - start

    def get_offset_at(self, position: CursorPosition) -> int:
        """Return the character offset of *position*, clamped into the buffer."""

        line_number = min(max(position.line_number, 1), self.line_count)
        max_column = self.get_line_length(line_number) + 1
        column = min(max(position.column, 1), max_column)
        return self._line_starts[line_number - 1] + column - 1


def get_text_before_cursor(position: CursorPosition, model: EditorModel) -> str:
    """Return the buffer text strictly before *position*."""

    return model.get_value()[: model.get_offset_at(position)]


def get_text_after_cursor(position: CursorPosition, model: EditorModel) -> str:
    """Return the buffer text from *position* to the end of the buffer."""

    return model.get_value()[model.get_offset_at(position) :]


__all__ = [
    "CursorPosition",
    "EditorModel",
    "TextAccessor",
    "TextBuffer",
    "get_text_after_cursor",
    "get_text_before_cursor",
]
