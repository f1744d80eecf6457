from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from inlinecomplete.client import RequestCoordinator
from inlinecomplete.context import CompletionOptions, RelatedFile
from inlinecomplete.editor import CursorPosition, TextBuffer
from inlinecomplete.errors import ConfigurationError, InlineCompleteError
from inlinecomplete.exit_codes import ExitCode
from inlinecomplete.orchestration import complete_at_cursor, handle_domain_error, run_completion

ENDPOINT = "https://completions.example.test/complete"
SOURCE = "\n".join(f"line {index}" for index in range(1, 101))


def _options(**overrides: object) -> CompletionOptions:
    values: dict[str, object] = {
        "filename": "notes.py",
        "language": "python",
        "technologies": ("pytest",),
        "max_context_lines": 20,
    }
    values.update(overrides)
    return CompletionOptions(**values)  # type: ignore[arg-type]


def _run(handler, **overrides: object):
    return run_completion(
        endpoint=ENDPOINT,
        position=CursorPosition(50, 1),
        model=TextBuffer(SOURCE),
        options=_options(**overrides),
        transport=httpx.MockTransport(handler),
    )


def test_run_completion_returns_completed_outcome() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"completion": "assert True"})

    outcome = _run(handler)

    assert outcome.status == "completed"
    assert outcome.exit_code == ExitCode.SUCCESS
    assert outcome.completion == "assert True"
    metadata = bodies[0]["completionMetadata"]
    assert metadata["textBeforeCursor"].startswith("line 41\n")
    assert metadata["textAfterCursor"].startswith("line 50\n")
    assert len(metadata["textAfterCursor"].split("\n")) == 10
    assert "relatedFiles" not in metadata


def test_related_files_shrink_the_buffer_budget() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"completion": ""})

    related = (RelatedFile(path="conftest.py", content="\n".join(["x"] * 30)),)
    outcome = _run(handler, max_context_lines=30, related_files=related)

    assert outcome.status == "completed"
    metadata = bodies[0]["completionMetadata"]
    assert len(metadata["textAfterCursor"].split("\n")) == 10
    assert metadata["relatedFiles"][0]["content"].count("\n") == 9


def test_endpoint_error_field_becomes_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"completion": None, "error": "quota exceeded"})

    outcome = _run(handler)

    assert outcome.status == "failed"
    assert outcome.exit_code == ExitCode.SERVER_ERROR
    assert "quota exceeded" in (outcome.message or "")


@pytest.mark.parametrize(
    ("handler", "expected_code"),
    [
        (lambda request: httpx.Response(503, json={}), ExitCode.SERVER_ERROR),
        (lambda request: httpx.Response(200, content=b"nope"), ExitCode.MALFORMED_RESPONSE),
    ],
)
def test_domain_errors_map_to_exit_codes(handler, expected_code: ExitCode) -> None:
    outcome = _run(handler)

    assert outcome.status == "failed"
    assert outcome.exit_code == expected_code
    assert outcome.remediation


def test_transport_failure_maps_to_network_exit_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    outcome = _run(handler)

    assert outcome.exit_code == ExitCode.NETWORK_ERROR
    assert outcome.status == "failed"


@pytest.mark.asyncio
async def test_superseded_request_is_reported_as_cancelled() -> None:
    started = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        metadata = json.loads(request.content)["completionMetadata"]
        if metadata["cursorPosition"]["lineNumber"] == 1:
            started.set()
            await asyncio.Event().wait()
        return httpx.Response(200, json={"completion": "fresh"})

    buffer = TextBuffer(SOURCE)
    async with RequestCoordinator(transport=httpx.MockTransport(handler)) as coordinator:
        stale = asyncio.create_task(
            complete_at_cursor(
                coordinator,
                endpoint=ENDPOINT,
                position=CursorPosition(1, 1),
                model=buffer,
                options=_options(),
            )
        )
        await started.wait()
        fresh = await complete_at_cursor(
            coordinator,
            endpoint=ENDPOINT,
            position=CursorPosition(2, 1),
            model=buffer,
            options=_options(),
        )
        stale_outcome = await stale

    assert fresh.completion == "fresh"
    assert stale_outcome.status == "cancelled"
    assert stale_outcome.exit_code == ExitCode.CANCELLED
    assert stale_outcome.message is None


def test_handle_domain_error_uses_defaults_for_unknown_errors() -> None:
    outcome = handle_domain_error(InlineCompleteError(message=""))

    assert outcome.exit_code == ExitCode.UNEXPECTED_ERROR
    assert outcome.message
    assert outcome.remediation


def test_handle_domain_error_keeps_custom_remediation() -> None:
    outcome = handle_domain_error(
        ConfigurationError("Bad endpoint", remediation="Use an https URL")
    )

    assert outcome.exit_code == ExitCode.INVALID_INPUT
    assert outcome.message == "Bad endpoint"
    assert outcome.remediation == "Use an https URL"
