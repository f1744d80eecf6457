"""Completion orchestration: build context, dispatch, and classify the outcome."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal

import httpx

from inlinecomplete.client import RequestCoordinator
from inlinecomplete.context import (
    CompletionOptions,
    CompletionRequestBody,
    build_completion_metadata,
)
from inlinecomplete.editor import CursorPosition, EditorModel
from inlinecomplete.errors import (
    ConfigurationError,
    InlineCompleteError,
    MalformedResponseError,
    NetworkError,
    ServerError,
)
from inlinecomplete.exit_codes import ExitCode

logger = logging.getLogger("inlinecomplete.orchestration.runner")

OutcomeStatus = Literal["completed", "cancelled", "failed"]


@dataclass(frozen=True)
class CompletionOutcome:
    """Tagged result of a completion attempt."""

    status: OutcomeStatus
    exit_code: ExitCode
    completion: str | None = None
    message: str | None = None
    remediation: str | None = None


_ERROR_MAPPINGS: tuple[
    tuple[type[InlineCompleteError], ExitCode, str, str | None],
    ...,
] = (
    (
        ConfigurationError,
        ExitCode.INVALID_INPUT,
        "Invalid completion configuration.",
        "Review the configuration file and CLI options.",
    ),
    (
        NetworkError,
        ExitCode.NETWORK_ERROR,
        "Unable to reach the completion endpoint.",
        "Verify network connectivity and proxy settings.",
    ),
    (
        ServerError,
        ExitCode.SERVER_ERROR,
        "The completion endpoint reported an error.",
        "Inspect the completion endpoint logs.",
    ),
    (
        MalformedResponseError,
        ExitCode.MALFORMED_RESPONSE,
        "The completion endpoint returned an unexpected body.",
        "Ensure the endpoint responds with {\"completion\": ..., \"error\": ...}.",
    ),
)


async def complete_at_cursor(
    coordinator: RequestCoordinator,
    *,
    endpoint: str,
    position: CursorPosition,
    model: EditorModel,
    options: CompletionOptions,
) -> CompletionOutcome:
    """Request a completion for *position* and classify the result."""

    metadata = build_completion_metadata(position, model, options)
    body = CompletionRequestBody(completion_metadata=metadata)

    try:
        response = await coordinator.request_completion(endpoint, body)
    except NetworkError as error:
        if error.is_cancellation:
            logger.debug("Completion request superseded", extra={"endpoint": endpoint})
            return CompletionOutcome(status="cancelled", exit_code=ExitCode.CANCELLED)
        return handle_domain_error(error)
    except InlineCompleteError as error:
        return handle_domain_error(error)

    if response.error:
        return handle_domain_error(
            ServerError(
                message=f"Completion endpoint reported: {response.error}",
                remediation="Inspect the completion endpoint logs.",
            )
        )

    logger.info(
        "Received completion",
        extra={
            "endpoint": endpoint,
            "has_completion": response.completion is not None,
        },
    )
    return CompletionOutcome(
        status="completed",
        exit_code=ExitCode.SUCCESS,
        completion=response.completion,
    )


def run_completion(
    *,
    endpoint: str,
    position: CursorPosition,
    model: EditorModel,
    options: CompletionOptions,
    timeout_seconds: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> CompletionOutcome:
    """Synchronously run one completion round trip with a fresh coordinator."""

    async def _run() -> CompletionOutcome:
        async with RequestCoordinator(
            timeout_seconds=timeout_seconds, transport=transport
        ) as coordinator:
            return await complete_at_cursor(
                coordinator,
                endpoint=endpoint,
                position=position,
                model=model,
                options=options,
            )

    try:
        return asyncio.run(_run())
    except Exception as error:  # pragma: no cover - defensive
        logger.exception("Unexpected error while requesting a completion.")
        return CompletionOutcome(
            status="failed",
            exit_code=ExitCode.UNEXPECTED_ERROR,
            message=str(error) or "An unexpected error occurred while requesting a completion.",
            remediation="Re-run without --quiet and inspect the logs for details.",
        )


def handle_domain_error(error: InlineCompleteError) -> CompletionOutcome:
    """Translate a domain error into a failed outcome and log remediation hints."""

    exit_code, default_message, default_remediation = _map_error(error)
    message = error.message or default_message
    remediation = error.remediation or default_remediation

    logger.error(message, extra={"exit_code": int(exit_code)})
    if remediation:
        logger.error("Remediation: %s", remediation)

    return CompletionOutcome(
        status="failed",
        exit_code=exit_code,
        message=message,
        remediation=remediation,
    )


def _map_error(error: InlineCompleteError) -> tuple[ExitCode, str, str | None]:
    for error_type, exit_code, message, remediation in _ERROR_MAPPINGS:
        if isinstance(error, error_type):
            return exit_code, message, remediation

    return (
        ExitCode.UNEXPECTED_ERROR,
        "An unexpected error occurred while requesting a completion.",
        "Enable debug logging and retry.",
    )


__all__ = [
    "CompletionOutcome",
    "complete_at_cursor",
    "handle_domain_error",
    "run_completion",
]
