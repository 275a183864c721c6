from __future__ import annotations

import asyncio
import logging
import posixpath
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from pathlib import Path

import httpx

from .._http import BaseTransport
from .auth import authorize_request, canonical_blob_resource, canonical_list_resource
from .errors import (
    BlobNotFound,
    DeleteFailed,
    FileReadError,
    InvalidResponse,
    InvalidURL,
    ListFailed,
    NetworkError,
    StorageError,
    UploadFailed,
    truncate_body,
)
from .listing import parse_blob_list
from .retry import RetryPolicy, SleepFn
from .sas import generate_sas_url
from .types import BlobInfo, CleanupResult, StorageConfig
from .utils import (
    BINARY_CONTENT_TYPE,
    BLOCK_BLOB,
    REPORTS_PREFIX,
    build_blob_url,
    build_container_url,
    debug,
    detect_content_type,
    encode_query_value,
    format_byte_count,
    get_api_version,
    is_report_like,
    make_request_id,
    utc_now,
)

logger = logging.getLogger(__name__)

NowFn = Callable[[], datetime]


def _response_text(response: httpx.Response) -> str:
    try:
        return response.text
    except (UnicodeDecodeError, LookupError):
        return "<undecodable response body>"


def build_list_url(
    config: StorageConfig,
    *,
    prefix: str | None = None,
    marker: str | None = None,
) -> str:
    # URL order differs from the alphabetical order used for signing.
    query = "restype=container&comp=list"
    if prefix:
        query += f"&prefix={encode_query_value(prefix)}"
    if marker:
        query += f"&marker={encode_query_value(marker)}"
    return f"{build_container_url(config)}?{query}"


def _require_blob_name(name: str) -> None:
    if not name:
        raise InvalidURL("Blob name is required")
    if name.startswith("/"):
        raise InvalidURL(f"Blob name must not start with '/': {name!r}")
    if any(segment in (".", "..") for segment in name.split("/")):
        raise InvalidURL(f"Blob name must not contain '.' or '..' segments: {name!r}")


def _require_ascii_header(header: str, value: str) -> None:
    if not value.isascii():
        raise UploadFailed(f"{header} header must be ASCII, got {value!r}")


class StorageOpsClient:
    """Blob operations for one storage configuration over a given transport.

    All operations are coroutines. The blocking facade drives them with
    ``iter_coroutine`` by supplying a non-suspending transport and sleep.
    """

    def __init__(
        self,
        config: StorageConfig,
        *,
        transport: BaseTransport,
        sleep_fn: SleepFn = asyncio.sleep,
        retry_policy: RetryPolicy | None = None,
        now_fn: NowFn = utc_now,
    ) -> None:
        self._config = config
        self._transport = transport
        self._sleep_fn = sleep_fn
        self._retry_policy = retry_policy or RetryPolicy.from_env()
        self._now_fn = now_fn

    @property
    def config(self) -> StorageConfig:
        return self._config

    @property
    def transport(self) -> BaseTransport:
        return self._transport

    def close(self) -> None:
        self._transport.close()

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def _with_retry(self, operation: Callable[[], Awaitable], describe: str):
        return await self._retry_policy.run(
            operation,
            sleep_fn=self._sleep_fn,
            describe=describe,
        )

    async def _send(
        self,
        method: str,
        url: str,
        canonical_resource: str,
        *,
        headers: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        request_headers = {
            "x-ms-version": get_api_version(),
            "x-ms-client-request-id": make_request_id(),
            **(headers or {}),
        }
        signed_url, context = authorize_request(
            self._config,
            method,
            url,
            request_headers,
            canonical_resource,
            now=self._now_fn(),
        )
        try:
            response = await self._transport.send(
                method,
                signed_url,
                headers=request_headers,
                content=content,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise InvalidURL(f"Cannot send request to {url}: {exc}") from exc
        except (httpx.ProtocolError, httpx.DecodingError) as exc:
            raise InvalidResponse(f"Malformed response from {url}: {exc}") from exc
        except UnicodeEncodeError as exc:
            raise StorageError(f"Cannot encode {method} request for {url}: {exc}") from exc
        except (httpx.TransportError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"{method} {url} failed: {exc!r}") from exc
        if response.status_code == 403 and context is not None:
            debug(
                "signature rejected for %s %s (x-ms-date %s, signed x-ms headers %s)",
                context.method,
                context.canonical_resource,
                context.date,
                sorted(context.headers),
            )
        return response

    async def upload(
        self,
        name: str,
        data: bytes,
        content_type: str = BINARY_CONTENT_TYPE,
        *,
        content_disposition: str | None = None,
    ) -> str:
        """Upload ``data`` as a block blob and return the blob URL."""
        _require_blob_name(name)
        _require_ascii_header("Content-Type", content_type)
        if content_disposition:
            _require_ascii_header("Content-Disposition", content_disposition)
        url = build_blob_url(self._config, name)
        resource = canonical_blob_resource(
            self._config.account_name, self._config.container_name, name
        )
        headers = {
            "Content-Type": content_type,
            "Content-Length": str(len(data)),
            "x-ms-blob-type": BLOCK_BLOB,
        }
        if content_disposition:
            headers["x-ms-blob-content-disposition"] = content_disposition

        async def attempt() -> str:
            response = await self._send(
                "PUT", url, resource, headers=dict(headers), content=data
            )
            if response.status_code != 201:
                body = _response_text(response)
                logger.error(
                    "Upload of %s failed with status %d", name, response.status_code
                )
                raise UploadFailed(
                    f"status {response.status_code}: {truncate_body(body)}",
                    status_code=response.status_code,
                    body=body,
                )
            return url

        return await self._with_retry(attempt, f"upload {name}")

    async def exists(self, name: str) -> bool:
        _require_blob_name(name)
        url = build_blob_url(self._config, name)
        resource = canonical_blob_resource(
            self._config.account_name, self._config.container_name, name
        )

        async def attempt() -> bool:
            response = await self._send("HEAD", url, resource)
            return response.status_code == 200

        return await self._with_retry(attempt, f"exists {name}")

    async def delete(self, name: str) -> None:
        _require_blob_name(name)
        url = build_blob_url(self._config, name)
        resource = canonical_blob_resource(
            self._config.account_name, self._config.container_name, name
        )

        async def attempt() -> None:
            response = await self._send("DELETE", url, resource)
            if response.status_code == 202:
                return
            body = _response_text(response)
            if response.status_code == 404:
                raise BlobNotFound(name, status_code=404, body=body)
            raise DeleteFailed(
                f"status {response.status_code} for {name}",
                status_code=response.status_code,
                body=body,
            )

        await self._with_retry(attempt, f"delete {name}")

    async def _list_page(
        self,
        prefix: str | None,
        marker: str | None,
    ):
        url = build_list_url(self._config, prefix=prefix, marker=marker)
        resource = canonical_list_resource(
            self._config.account_name,
            self._config.container_name,
            prefix=prefix,
            marker=marker,
        )

        async def attempt():
            response = await self._send("GET", url, resource)
            if response.status_code != 200:
                body = _response_text(response)
                raise ListFailed(
                    f"status {response.status_code}",
                    status_code=response.status_code,
                    body=body,
                )
            return parse_blob_list(response.content)

        return await self._with_retry(attempt, f"list {prefix or '*'}")

    async def list(self, prefix: str | None = None) -> list[BlobInfo]:
        blobs: list[BlobInfo] = []
        marker: str | None = None
        while True:
            page = await self._list_page(prefix, marker)
            blobs.extend(page.blobs)
            if not page.next_marker:
                return blobs
            marker = page.next_marker

    async def delete_older_than(
        self,
        days: int,
        *,
        prefix: str | None = None,
    ) -> CleanupResult:
        if days < 0:
            raise StorageError(f"days must not be negative, got {days}")
        blobs = await self.list(prefix)
        cutoff = self._now_fn() - timedelta(days=days)
        result = CleanupResult()

        for blob in blobs:
            if blob.last_modified is None or not blob.last_modified < cutoff:
                continue
            try:
                await self.delete(blob.name)
            except StorageError as exc:
                logger.error("Failed to delete blob %s: %s", blob.name, exc)
                result.failures[blob.name] = exc
                continue
            result.deleted_count += 1
            result.bytes_freed += blob.size or 0
            result.deleted.append(blob.name)
            logger.info(
                "Deleted old blob %s (modified: %s)", blob.name, blob.last_modified
            )

        logger.info(
            "Cleanup completed: deleted %d blobs, freed %s",
            result.deleted_count,
            format_byte_count(result.bytes_freed),
        )
        return result

    async def generate_link(
        self,
        name: str,
        days: int,
        *,
        download_filename: str | None = None,
        content_type: str | None = None,
    ) -> str:
        if not await self.exists(name):
            raise BlobNotFound(name)
        link = generate_sas_url(
            self._config,
            name,
            days,
            download_filename=download_filename,
            content_type=content_type,
            now=self._now_fn(),
        )
        logger.info("Generated download link for %s, valid for %d days", name, days)
        return link

    async def upload_file(
        self,
        path: str | Path,
        blob_name: str | None = None,
        *,
        prefix: str = REPORTS_PREFIX,
        content_type: str | None = None,
    ) -> str:
        file_path = Path(path)
        try:
            data = file_path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Failed to read file at {file_path}: {exc}") from exc

        name = blob_name or f"{prefix}{file_path.name}"
        url = await self.upload(
            name,
            data,
            content_type or detect_content_type(file_path.name),
        )
        logger.info(
            "Uploaded %s to %s (%s)", file_path.name, name, format_byte_count(len(data))
        )
        return url

    async def upload_report(self, path: str | Path) -> str:
        return await self.upload_file(path, prefix=REPORTS_PREFIX)

    async def generate_report_link(self, report_name: str, days: int) -> str:
        download_filename = None
        content_type = None
        if is_report_like(report_name):
            download_filename = posixpath.basename(report_name)
            content_type = BINARY_CONTENT_TYPE
        return await self.generate_link(
            f"{REPORTS_PREFIX}{report_name}",
            days,
            download_filename=download_filename,
            content_type=content_type,
        )

    async def delete_old_reports(self, days: int) -> CleanupResult:
        return await self.delete_older_than(days, prefix=REPORTS_PREFIX)

    async def test_connection(self) -> None:
        await self.list(REPORTS_PREFIX)

    async def validate_connection(self) -> tuple[bool, str | None]:
        try:
            await self.test_connection()
        except StorageError as exc:
            message = f"Storage connection validation failed: {exc}"
            logger.error(message)
            return False, message
        return True, None


__all__ = ["StorageOpsClient", "build_list_url", "NowFn"]
