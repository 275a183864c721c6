"""Factories for the httpx clients behind the storage transports.

Storage requests are signed one by one before they reach the client, so the
only hooks installed here are diagnostic: each request and response is
traced through the ``DEBUG=storage`` switch with SAS signatures redacted.
"""

from __future__ import annotations

import logging
import os

import httpx

from .config import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

_REDACTED_PARAMS = ("sig",)


def _tracing_enabled() -> bool:
    return "storage" in os.getenv("DEBUG", "")


def redact_url(url: httpx.URL) -> str:
    """Render ``url`` without the SAS signature value."""
    params = url.params
    for name in _REDACTED_PARAMS:
        if name in params:
            params = params.set(name, "REDACTED")
    return str(url.copy_with(params=params))


def _trace_request(request: httpx.Request) -> None:
    if _tracing_enabled():
        logger.debug("request: %s %s", request.method, redact_url(request.url))


def _trace_response(response: httpx.Response) -> None:
    if _tracing_enabled():
        logger.debug(
            "response: %d for %s %s (request id %s)",
            response.status_code,
            response.request.method,
            redact_url(response.request.url),
            response.headers.get("x-ms-request-id", "-"),
        )


async def _trace_request_async(request: httpx.Request) -> None:
    _trace_request(request)


async def _trace_response_async(response: httpx.Response) -> None:
    _trace_response(response)


def _build_timeout(timeout: float | None) -> httpx.Timeout:
    return httpx.Timeout(timeout if timeout is not None else DEFAULT_TIMEOUT)


def create_base_client(timeout: float | None = None) -> httpx.Client:
    """Create a sync httpx client for signed storage requests.

    Args:
        timeout: Inactivity timeout in seconds. Defaults to DEFAULT_TIMEOUT.

    Returns:
        An httpx.Client with debug tracing hooks installed.
    """
    return httpx.Client(
        timeout=_build_timeout(timeout),
        event_hooks={"request": [_trace_request], "response": [_trace_response]},
    )


def create_base_async_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Create an async httpx client for signed storage requests.

    Args:
        timeout: Inactivity timeout in seconds. Defaults to DEFAULT_TIMEOUT.

    Returns:
        An httpx.AsyncClient with debug tracing hooks installed.
    """
    return httpx.AsyncClient(
        timeout=_build_timeout(timeout),
        event_hooks={
            "request": [_trace_request_async],
            "response": [_trace_response_async],
        },
    )


__all__ = [
    "create_base_client",
    "create_base_async_client",
    "redact_url",
]
