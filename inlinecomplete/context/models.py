"""Dataclasses describing the completion request payload."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Tuple

from inlinecomplete.editor import CursorPosition

DEFAULT_MAX_CONTEXT_LINES = 60


@dataclass(frozen=True)
class RelatedFile:
    """Caller-supplied auxiliary source file with pass-through metadata."""

    path: str
    content: str
    extras: Mapping[str, Any] = field(default_factory=dict)

    # extras may hold arbitrary JSON values, so instances compare by value only.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:  # pragma: no cover - simple normalization
        object.__setattr__(self, "extras", dict(self.extras))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RelatedFile":
        """Build a related file from a mapping, keeping unknown keys as extras."""

        extras = {key: value for key, value in data.items() if key not in ("path", "content")}
        return cls(path=str(data["path"]), content=str(data["content"]), extras=extras)

    def to_payload(self) -> dict[str, Any]:
        return {**self.extras, "path": self.path, "content": self.content}


@dataclass(frozen=True)
class CompletionOptions:
    """Per-request configuration for the context builder.

    ``max_context_lines`` defaults to :data:`DEFAULT_MAX_CONTEXT_LINES`;
    ``None`` disables truncation entirely.
    """

    filename: str
    language: str
    technologies: Tuple[str, ...] = ()
    related_files: Tuple[RelatedFile, ...] | None = None
    max_context_lines: int | None = DEFAULT_MAX_CONTEXT_LINES

    def __post_init__(self) -> None:  # pragma: no cover - simple normalization
        object.__setattr__(self, "technologies", tuple(self.technologies))
        if self.related_files is not None:
            object.__setattr__(self, "related_files", tuple(self.related_files))


@dataclass(frozen=True)
class CompletionMetadata:
    """Bounded context describing the cursor surroundings sent to the endpoint."""

    filename: str
    language: str
    technologies: Tuple[str, ...]
    text_before_cursor: str
    text_after_cursor: str
    cursor_position: CursorPosition
    related_files: Tuple[RelatedFile, ...] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase shape the completion endpoint expects."""

        payload: dict[str, Any] = {
            "filename": self.filename,
            "language": self.language,
            "technologies": list(self.technologies),
        }
        if self.related_files:
            payload["relatedFiles"] = [related.to_payload() for related in self.related_files]
        payload["textBeforeCursor"] = self.text_before_cursor
        payload["textAfterCursor"] = self.text_after_cursor
        payload["cursorPosition"] = self.cursor_position.to_payload()
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CompletionMetadata":
        """Rebuild metadata from its serialized form, as an endpoint would."""

        related = payload.get("relatedFiles")
        cursor = payload["cursorPosition"]
        return cls(
            filename=payload["filename"],
            language=payload["language"],
            technologies=tuple(payload.get("technologies") or ()),
            text_before_cursor=payload["textBeforeCursor"],
            text_after_cursor=payload["textAfterCursor"],
            cursor_position=CursorPosition(
                line_number=int(cursor["lineNumber"]),
                column=int(cursor["column"]),
            ),
            related_files=(
                tuple(RelatedFile.from_mapping(item) for item in related) if related else None
            ),
        )


@dataclass(frozen=True)
class CompletionRequestBody:
    """Request envelope wrapping the metadata for the completion endpoint."""

    completion_metadata: CompletionMetadata

    def to_payload(self) -> dict[str, Any]:
        return {"completionMetadata": self.completion_metadata.to_payload()}


__all__ = [
    "DEFAULT_MAX_CONTEXT_LINES",
    "CompletionMetadata",
    "CompletionOptions",
    "CompletionRequestBody",
    "RelatedFile",
]
