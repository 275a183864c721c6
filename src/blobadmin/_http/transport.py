"""Transports that carry one signed storage request to the service."""

from __future__ import annotations

import abc
import asyncio

import httpx

from .clients import create_base_async_client, create_base_client
from .config import DEFAULT_RESOURCE_TIMEOUT


class BaseTransport(abc.ABC):
    """Abstract base class for HTTP transports.

    A transport sends one fully prepared request (absolute URL, signed
    headers, raw body) and returns the response. It performs no retries and
    no status handling; transport failures surface as ``httpx`` exceptions.
    """

    @abc.abstractmethod
    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send an HTTP request and return the response."""
        ...

    @abc.abstractmethod
    def close(self) -> None:
        """Close any underlying resources."""
        ...

    async def aclose(self) -> None:
        self.close()


class BlockingTransport(BaseTransport):
    """Blocking transport over ``httpx.Client``.

    ``send`` never suspends, so the storage operations built on it can be
    driven to completion by ``iter_coroutine`` without an event loop. Only
    the client's inactivity timeout applies here; the overall request bound
    is enforced by ``AsyncTransport`` alone.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self._client = client if client is not None else create_base_client(timeout=timeout)

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        return self._client.request(
            method,
            url,
            headers=headers,
            content=content,
        )

    def close(self) -> None:
        self._client.close()


class AsyncTransport(BaseTransport):
    """Asyncio transport sharing one ``httpx.AsyncClient`` across tasks.

    Besides the client's inactivity timeout, every round-trip is bounded as
    a whole by ``resource_timeout``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
        resource_timeout: float = DEFAULT_RESOURCE_TIMEOUT,
    ) -> None:
        self._client = (
            client if client is not None else create_base_async_client(timeout=timeout)
        )
        self._resource_timeout = resource_timeout

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        return await asyncio.wait_for(
            self._client.request(
                method,
                url,
                headers=headers,
                content=content,
            ),
            timeout=self._resource_timeout,
        )

    def close(self) -> None:
        """No-op; the async client is released by ``aclose``."""

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


__all__ = [
    "BaseTransport",
    "BlockingTransport",
    "AsyncTransport",
]
