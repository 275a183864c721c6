"""Shared HTTP infrastructure for storage clients."""

from .clients import create_base_async_client, create_base_client, redact_url
from .config import DEFAULT_RESOURCE_TIMEOUT, DEFAULT_TIMEOUT
from .iter_coroutine import iter_coroutine
from .transport import AsyncTransport, BaseTransport, BlockingTransport

__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_RESOURCE_TIMEOUT",
    "iter_coroutine",
    "BaseTransport",
    "BlockingTransport",
    "AsyncTransport",
    "create_base_client",
    "create_base_async_client",
    "redact_url",
]
