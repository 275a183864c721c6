from __future__ import annotations

import time
from pathlib import Path
from typing import Any

from .._http import AsyncTransport, BaseTransport, BlockingTransport, iter_coroutine
from ._core import NowFn, StorageOpsClient
from .errors import StorageError
from .retry import RetryPolicy
from .types import BlobInfo, CleanupResult, StorageConfig
from .utils import BINARY_CONTENT_TYPE, REPORTS_PREFIX, utc_now


def _blocking_sleep(seconds: float) -> None:
    time.sleep(seconds)


class _ClientState:
    _closed: bool = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise StorageError("Client is closed")


class AsyncStorageClient(_ClientState):
    """Storage client for one container, for use from asyncio code.

    Every instance owns one ``httpx.AsyncClient`` shared by all operations
    and may be used from many concurrent tasks.
    """

    def __init__(
        self,
        config: StorageConfig,
        *,
        timeout: float | None = None,
        transport: BaseTransport | None = None,
        retry_policy: RetryPolicy | None = None,
        now_fn: NowFn = utc_now,
    ) -> None:
        self._ops = StorageOpsClient(
            config,
            transport=transport or AsyncTransport(timeout=timeout),
            retry_policy=retry_policy,
            now_fn=now_fn,
        )

    @property
    def config(self) -> StorageConfig:
        return self._ops.config

    async def upload(
        self,
        name: str,
        data: bytes,
        content_type: str = BINARY_CONTENT_TYPE,
        *,
        content_disposition: str | None = None,
    ) -> str:
        self._ensure_open()
        return await self._ops.upload(
            name, data, content_type, content_disposition=content_disposition
        )

    async def exists(self, name: str) -> bool:
        self._ensure_open()
        return await self._ops.exists(name)

    async def delete(self, name: str) -> None:
        self._ensure_open()
        await self._ops.delete(name)

    async def list(self, prefix: str | None = None) -> list[BlobInfo]:
        self._ensure_open()
        return await self._ops.list(prefix)

    async def delete_older_than(
        self, days: int, *, prefix: str | None = None
    ) -> CleanupResult:
        self._ensure_open()
        return await self._ops.delete_older_than(days, prefix=prefix)

    async def generate_link(
        self,
        name: str,
        days: int,
        *,
        download_filename: str | None = None,
        content_type: str | None = None,
    ) -> str:
        self._ensure_open()
        return await self._ops.generate_link(
            name,
            days,
            download_filename=download_filename,
            content_type=content_type,
        )

    async def upload_file(
        self,
        path: str | Path,
        blob_name: str | None = None,
        *,
        prefix: str = REPORTS_PREFIX,
        content_type: str | None = None,
    ) -> str:
        self._ensure_open()
        return await self._ops.upload_file(
            path, blob_name, prefix=prefix, content_type=content_type
        )

    async def upload_report(self, path: str | Path) -> str:
        self._ensure_open()
        return await self._ops.upload_report(path)

    async def generate_report_link(self, report_name: str, days: int) -> str:
        self._ensure_open()
        return await self._ops.generate_report_link(report_name, days)

    async def delete_old_reports(self, days: int) -> CleanupResult:
        self._ensure_open()
        return await self._ops.delete_old_reports(days)

    async def test_connection(self) -> None:
        self._ensure_open()
        await self._ops.test_connection()

    async def validate_connection(self) -> tuple[bool, str | None]:
        self._ensure_open()
        return await self._ops.validate_connection()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._ops.aclose()

    async def __aenter__(self) -> AsyncStorageClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


class StorageClient(_ClientState):
    """Blocking storage client; same operations as :class:`AsyncStorageClient`."""

    def __init__(
        self,
        config: StorageConfig,
        *,
        timeout: float | None = None,
        transport: BaseTransport | None = None,
        retry_policy: RetryPolicy | None = None,
        now_fn: NowFn = utc_now,
    ) -> None:
        self._ops = StorageOpsClient(
            config,
            transport=transport or BlockingTransport(timeout=timeout),
            sleep_fn=_blocking_sleep,
            retry_policy=retry_policy,
            now_fn=now_fn,
        )

    @property
    def config(self) -> StorageConfig:
        return self._ops.config

    def upload(
        self,
        name: str,
        data: bytes,
        content_type: str = BINARY_CONTENT_TYPE,
        *,
        content_disposition: str | None = None,
    ) -> str:
        self._ensure_open()
        return iter_coroutine(
            self._ops.upload(
                name, data, content_type, content_disposition=content_disposition
            )
        )

    def exists(self, name: str) -> bool:
        self._ensure_open()
        return iter_coroutine(self._ops.exists(name))

    def delete(self, name: str) -> None:
        self._ensure_open()
        iter_coroutine(self._ops.delete(name))

    def list(self, prefix: str | None = None) -> list[BlobInfo]:
        self._ensure_open()
        return iter_coroutine(self._ops.list(prefix))

    def delete_older_than(self, days: int, *, prefix: str | None = None) -> CleanupResult:
        self._ensure_open()
        return iter_coroutine(self._ops.delete_older_than(days, prefix=prefix))

    def generate_link(
        self,
        name: str,
        days: int,
        *,
        download_filename: str | None = None,
        content_type: str | None = None,
    ) -> str:
        self._ensure_open()
        return iter_coroutine(
            self._ops.generate_link(
                name,
                days,
                download_filename=download_filename,
                content_type=content_type,
            )
        )

    def upload_file(
        self,
        path: str | Path,
        blob_name: str | None = None,
        *,
        prefix: str = REPORTS_PREFIX,
        content_type: str | None = None,
    ) -> str:
        self._ensure_open()
        return iter_coroutine(
            self._ops.upload_file(path, blob_name, prefix=prefix, content_type=content_type)
        )

    def upload_report(self, path: str | Path) -> str:
        self._ensure_open()
        return iter_coroutine(self._ops.upload_report(path))

    def generate_report_link(self, report_name: str, days: int) -> str:
        self._ensure_open()
        return iter_coroutine(self._ops.generate_report_link(report_name, days))

    def delete_old_reports(self, days: int) -> CleanupResult:
        self._ensure_open()
        return iter_coroutine(self._ops.delete_old_reports(days))

    def test_connection(self) -> None:
        self._ensure_open()
        iter_coroutine(self._ops.test_connection())

    def validate_connection(self) -> tuple[bool, str | None]:
        self._ensure_open()
        return iter_coroutine(self._ops.validate_connection())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._ops.close()

    def __enter__(self) -> StorageClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


__all__ = ["AsyncStorageClient", "StorageClient"]
