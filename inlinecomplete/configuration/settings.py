"""Client settings loaded from YAML and the environment."""
from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import httpx
import yaml

from inlinecomplete.context import DEFAULT_MAX_CONTEXT_LINES
from inlinecomplete.errors import ConfigurationError

ENDPOINT_ENV_VAR = "INLINECOMPLETE_ENDPOINT"
DEFAULT_TIMEOUT_SECONDS = 10.0

_UNSET = object()
_KNOWN_KEYS = frozenset(
    {"endpoint", "max_context_lines", "timeout_seconds", "technologies", "language"}
)
_LANGUAGE_BY_SUFFIX: Mapping[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".rb": "ruby",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".php": "php",
    ".html": "html",
    ".css": "css",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".sh": "shell",
    ".sql": "sql",
}


@dataclass(frozen=True)
class ClientSettings:
    """Resolved settings for building and dispatching completion requests."""

    endpoint: str | None = None
    max_context_lines: int | None = DEFAULT_MAX_CONTEXT_LINES
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    technologies: Tuple[str, ...] = ()
    language: str | None = None
    source: Path | None = None

    def require_endpoint(self) -> str:
        """Return the configured endpoint or fail with remediation guidance."""

        if not self.endpoint:
            raise ConfigurationError(
                message="No completion endpoint is configured.",
                remediation=(
                    f"Pass --endpoint, set {ENDPOINT_ENV_VAR}, or add 'endpoint' to the config file."
                ),
            )
        return self.endpoint


def load_settings(path: Path | None = None) -> ClientSettings:
    """Load settings from the YAML file at *path*, applying environment overrides."""

    payload: Mapping[str, object] = {}
    resolved: Path | None = None
    if path is not None:
        resolved = _resolve_path(path)
        payload = _load_yaml(resolved)

    unknown = sorted(set(payload) - _KNOWN_KEYS)
    if unknown:
        raise ConfigurationError(
            message=f"Unknown configuration keys in {resolved}: {', '.join(unknown)}.",
            remediation=f"Supported keys: {', '.join(sorted(_KNOWN_KEYS))}.",
        )

    env_endpoint = os.getenv(ENDPOINT_ENV_VAR)
    if env_endpoint:
        endpoint: str | None = validate_endpoint(env_endpoint, origin=ENDPOINT_ENV_VAR)
    else:
        endpoint = _optional_string(payload, "endpoint", resolved)
        if endpoint is not None:
            endpoint = validate_endpoint(endpoint, origin=str(resolved))
    return ClientSettings(
        endpoint=endpoint,
        max_context_lines=_parse_max_context_lines(
            payload.get("max_context_lines", _UNSET), resolved
        ),
        timeout_seconds=_parse_timeout(payload.get("timeout_seconds"), resolved),
        technologies=_parse_technologies(payload.get("technologies"), resolved),
        language=_optional_string(payload, "language", resolved),
        source=resolved,
    )


def validate_endpoint(value: str, *, origin: str) -> str:
    """Return *value* stripped when it is an absolute http(s) URL with a host."""

    candidate = value.strip()
    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(
            message=f"Completion endpoint '{candidate}' from {origin} is not a valid URL.",
            remediation="Use an absolute URL such as https://host/complete.",
        ) from exc

    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            message=(
                f"Completion endpoint '{candidate}' from {origin} must be an http or https URL "
                "with a host."
            ),
            remediation="Use an absolute URL such as https://host/complete.",
        )
    return candidate


def detect_language(filename: str) -> str:
    """Guess the language identifier from a filename suffix."""

    return _LANGUAGE_BY_SUFFIX.get(Path(filename).suffix.lower(), "plaintext")


def _resolve_path(path: Path) -> Path:
    candidate = path.expanduser()
    try:
        resolved = candidate.resolve()
    except OSError:
        resolved = candidate

    if not resolved.exists() or not resolved.is_file():
        raise ConfigurationError(
            message=f"Configuration file {resolved} does not exist or is not a file.",
            remediation="Verify the path or remove the --config option.",
        )
    return resolved


def _load_yaml(path: Path) -> Mapping[str, object]:
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            message=f"Unable to read configuration file {path}.",
            remediation="Check file permissions and retry.",
        ) from exc

    try:
        loaded = yaml.safe_load(raw_text) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            message=f"Configuration file {path} contains invalid YAML.",
            remediation="Fix the YAML syntax and retry.",
        ) from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(
            message=f"Configuration file {path} must define a mapping at the root level.",
            remediation="Use 'key: value' entries such as 'endpoint: https://...'.",
        )
    return loaded


def _optional_string(payload: Mapping[str, object], key: str, source: Path | None) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            message=f"'{key}' in {source} must be a non-empty string.",
            remediation=f"Set '{key}' to a plain text value or remove it.",
        )
    return value.strip()


def _parse_max_context_lines(value: object, source: Path | None) -> int | None:
    if value is _UNSET:
        return DEFAULT_MAX_CONTEXT_LINES
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            message=f"'max_context_lines' in {source} must be an integer or null.",
            remediation="Use a whole number of lines, or null to disable truncation.",
        )
    return value


def _parse_timeout(value: object, source: Path | None) -> float:
    if value is None:
        return DEFAULT_TIMEOUT_SECONDS
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(
            message=f"'timeout_seconds' in {source} must be a positive number.",
            remediation="Provide the request timeout in seconds, e.g. 'timeout_seconds: 10'.",
        )
    return float(value)


def _parse_technologies(value: object, source: Path | None) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, str | bytes):
        raise ConfigurationError(
            message=f"'technologies' in {source} must be a list of strings.",
            remediation="Use a YAML list, e.g. ['react', 'tailwindcss'].",
        )

    technologies: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(
                message=f"Technology entries in {source} must be non-empty strings.",
                remediation="Remove blank or non-text technology entries.",
            )
        technologies.append(item.strip())
    return tuple(dict.fromkeys(technologies))


__all__ = [
    "ClientSettings",
    "DEFAULT_TIMEOUT_SECONDS",
    "ENDPOINT_ENV_VAR",
    "detect_language",
    "load_settings",
    "validate_endpoint",
]
