"""Reading editor buffers and related files from disk."""

from __future__ import annotations

import logging
from pathlib import Path

from inlinecomplete.errors import ConfigurationError

logger = logging.getLogger("inlinecomplete.utils.io")

_SOURCE_ENCODINGS: tuple[str, ...] = ("utf-8-sig", "cp1252")


def normalize_newlines(text: str) -> str:
    """Convert ``\\r\\n`` and bare ``\\r`` to ``\\n`` so line budgets count correctly."""

    if "\r" not in text:
        return text
    return text.replace("\r\n", "\n").replace("\r", "\n")


def read_source_text(path: Path, description: str) -> str:
    """Return the newline-normalized text of *path*, decoding UTF-8 before Windows-1252."""

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ConfigurationError(
            message=f"Unable to read the {description} {path.name}.",
            remediation="Verify the path and file permissions, then retry.",
        ) from exc

    last_error: UnicodeDecodeError | None = None
    for encoding in _SOURCE_ENCODINGS:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError as exc:
            last_error = exc
            continue
        if encoding != _SOURCE_ENCODINGS[0]:
            logger.debug(
                "Decoded source with fallback encoding",
                extra={"source_path": str(path), "encoding": encoding},
            )
        return normalize_newlines(text)

    raise ConfigurationError(
        message=f"The {description} {path.name} is neither UTF-8 nor Windows-1252 text.",
        remediation="Re-save the file as UTF-8 and retry.",
    ) from last_error


__all__ = ["normalize_newlines", "read_source_text"]
