"""Single-flight dispatch of completion requests over httpx."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from inlinecomplete.context import CompletionRequestBody
from inlinecomplete.errors import (
    ConfigurationError,
    FailureKind,
    MalformedResponseError,
    NetworkError,
    ServerError,
)

logger = logging.getLogger("inlinecomplete.client.coordinator")

_JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True)
class CompletionResponse:
    """Suggestion returned by the completion endpoint."""

    completion: str | None
    error: str | None = None

    @classmethod
    def from_payload(cls, payload: object) -> "CompletionResponse":
        """Validate a decoded JSON body and convert it into a response."""

        if not isinstance(payload, Mapping):
            raise MalformedResponseError(
                message="Completion endpoint returned a JSON value that is not an object.",
                remediation="Ensure the endpoint responds with {\"completion\": ..., \"error\": ...}.",
            )

        completion = payload.get("completion")
        error = payload.get("error")
        if completion is not None and not isinstance(completion, str):
            raise MalformedResponseError(
                message="Completion endpoint returned a non-string 'completion' field.",
                remediation="Return the suggestion as a string or null.",
            )
        if error is not None and not isinstance(error, str):
            raise MalformedResponseError(
                message="Completion endpoint returned a non-string 'error' field.",
                remediation="Return error details as a string when present.",
            )
        return cls(completion=completion, error=error)


@dataclass
class _InflightRequest:
    task: asyncio.Task[httpx.Response]
    revoked: bool = False


class RequestCoordinator:
    """Owns at most one outstanding completion request.

    Every dispatch cancels the request still in flight, so only the latest
    dispatch can resolve with a completion. The superseded caller receives a
    :class:`NetworkError` tagged :attr:`FailureKind.CANCELLED`. Create one
    coordinator per editor session.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._current: _InflightRequest | None = None

    async def __aenter__(self) -> "RequestCoordinator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def is_dispatching(self) -> bool:
        return self._current is not None and not self._current.revoked

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
                trust_env=True,
            )
        return self._client

    def cancel(self) -> bool:
        """Cancel the outstanding request, returning whether one was pending."""

        current = self._current
        if current is None or current.revoked:
            return False
        current.revoked = True
        # A finished task whose caller has not resumed yet is revoked as well.
        if not current.task.done():
            current.task.cancel()
        logger.debug("Cancelled outstanding completion request")
        return True

    async def request_completion(
        self,
        endpoint: str,
        body: CompletionRequestBody | Mapping[str, Any],
    ) -> CompletionResponse:
        """POST *body* to *endpoint* and return the parsed completion."""

        if self.cancel():
            logger.debug("Superseded previous completion request", extra={"endpoint": endpoint})

        payload = body.to_payload() if isinstance(body, CompletionRequestBody) else dict(body)
        client = self._get_client()
        request = _InflightRequest(
            task=asyncio.create_task(client.post(endpoint, json=payload, headers=_JSON_HEADERS))
        )
        self._current = request
        logger.debug("Dispatched completion request", extra={"endpoint": endpoint})

        try:
            response = await request.task
        except asyncio.CancelledError:
            if not request.revoked:
                raise
            raise _cancelled_error() from None
        except httpx.InvalidURL as exc:
            raise ConfigurationError(
                message=f"Completion endpoint '{endpoint}' is not a valid URL.",
                remediation="Use an absolute URL such as https://host/complete.",
            ) from exc
        except httpx.HTTPError as exc:
            if request.revoked:
                raise _cancelled_error() from exc
            if isinstance(exc, httpx.TimeoutException):
                logger.warning("Completion request timed out", extra={"endpoint": endpoint})
                raise NetworkError(
                    message=f"Timed out waiting for the completion endpoint {endpoint}.",
                    remediation="Check connectivity or raise timeout_seconds in the configuration.",
                ) from exc
            logger.warning(
                "Completion request failed in transport",
                extra={"endpoint": endpoint, "error": str(exc)},
            )
            raise NetworkError(
                message=f"Unable to reach the completion endpoint {endpoint}.",
                remediation="Review the endpoint URL and HTTPS_PROXY/HTTP_PROXY settings.",
            ) from exc
        finally:
            if self._current is request:
                self._current = None

        if request.revoked:
            raise _cancelled_error()
        return _parse_response(response)

    async def aclose(self) -> None:
        """Cancel pending work and close the owned HTTP client."""

        self.cancel()
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


def _cancelled_error() -> NetworkError:
    return NetworkError(
        message="Completion request was cancelled before it resolved.",
        kind=FailureKind.CANCELLED,
    )


def _parse_response(response: httpx.Response) -> CompletionResponse:
    if not response.is_success:
        logger.warning(
            "Completion endpoint returned an error status",
            extra={"status_code": response.status_code},
        )
        raise ServerError(
            message=(
                f"Error while fetching completion item: {response.status_code} "
                f"{response.reason_phrase}".rstrip()
            ),
            remediation="Inspect the completion endpoint logs for the failing request.",
            status_code=response.status_code,
            status_text=response.reason_phrase,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise MalformedResponseError(
            message="Completion endpoint returned a body that is not valid JSON.",
            remediation="Ensure the endpoint responds with a JSON object.",
        ) from exc

    return CompletionResponse.from_payload(payload)


__all__ = ["CompletionResponse", "RequestCoordinator"]
