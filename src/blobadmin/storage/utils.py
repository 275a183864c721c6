from __future__ import annotations

import logging
import os
import posixpath
import uuid
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Any
from urllib.parse import quote

from .types import StorageConfig

logger = logging.getLogger("blobadmin.storage")

DEFAULT_API_VERSION = "2023-11-03"
DEFAULT_BLOB_ENDPOINT = "https://{account}.blob.core.windows.net"
DEFAULT_RETRIES = 3
REPORTS_PREFIX = "reports/"
BLOCK_BLOB = "BlockBlob"
BINARY_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    "csv": "text/csv",
    "tsv": "text/tab-separated-values",
    "json": "application/json",
    "xml": "application/xml",
    "txt": "text/plain",
    "zip": "application/zip",
    "pdf": "application/pdf",
}

# Tabular or structured text that browsers would otherwise render inline.
REPORT_EXTENSIONS = frozenset({"csv", "tsv", "json", "xml", "txt"})


def debug(message: str, *args: Any) -> None:
    debug_env = os.getenv("DEBUG", "")
    if "storage" in debug_env:
        logger.debug(message, *args)


def get_api_version() -> str:
    override = os.getenv("AZURE_STORAGE_API_VERSION")
    return override or DEFAULT_API_VERSION


def get_retries() -> int:
    retries = os.getenv("AZURE_STORAGE_RETRIES")
    try:
        value = int(retries) if retries is not None else DEFAULT_RETRIES
    except ValueError:
        return DEFAULT_RETRIES
    return max(1, value)


def get_blob_endpoint(account_name: str) -> str:
    template = os.getenv("AZURE_STORAGE_BLOB_ENDPOINT") or DEFAULT_BLOB_ENDPOINT
    return template.format(account=account_name).rstrip("/")


def encode_blob_path(name: str) -> str:
    """Percent-encode a blob name for the URL path, keeping ``/`` separators."""
    return quote(name, safe="/")


def encode_query_value(value: str) -> str:
    """Percent-encode everything outside the unreserved set ``A-Za-z0-9-._~``."""
    return quote(value, safe="")


def build_container_url(config: StorageConfig) -> str:
    endpoint = get_blob_endpoint(config.account_name)
    return f"{endpoint}/{quote(config.container_name, safe='')}"


def build_blob_url(config: StorageConfig, blob_name: str) -> str:
    return f"{build_container_url(config)}/{encode_blob_path(blob_name)}"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def format_http_date(value: datetime) -> str:
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def format_sas_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_http_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (ValueError, TypeError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def file_extension(name: str) -> str:
    return posixpath.splitext(name)[1].lstrip(".").lower()


def detect_content_type(filename: str) -> str:
    return CONTENT_TYPES.get(file_extension(filename), BINARY_CONTENT_TYPE)


def is_report_like(name: str) -> bool:
    return file_extension(name) in REPORT_EXTENSIONS


def make_request_id() -> str:
    return str(uuid.uuid4())


def format_byte_count(size: int) -> str:
    value = float(size)
    for unit in ("bytes", "KB", "MB", "GB"):
        if value < 1000 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "bytes" else f"{value:.1f} {unit}"
        value /= 1000
    return f"{size} bytes"


__all__ = [
    "DEFAULT_API_VERSION",
    "DEFAULT_BLOB_ENDPOINT",
    "DEFAULT_RETRIES",
    "REPORTS_PREFIX",
    "BLOCK_BLOB",
    "BINARY_CONTENT_TYPE",
    "debug",
    "get_api_version",
    "get_retries",
    "get_blob_endpoint",
    "encode_blob_path",
    "encode_query_value",
    "build_container_url",
    "build_blob_url",
    "utc_now",
    "format_http_date",
    "format_sas_time",
    "parse_http_date",
    "file_extension",
    "detect_content_type",
    "is_report_like",
    "make_request_id",
    "format_byte_count",
]
