"""Constants and XML builders shared across test modules."""

import base64
import hashlib
import hmac
from datetime import datetime, timezone
from urllib.parse import parse_qsl, unquote, urlsplit

from blobadmin.storage import AsyncStorageClient, RetryPolicy, StorageClient, StorageConfig

ACCOUNT = "acct"
CONTAINER = "reports"
HOST = f"{ACCOUNT}.blob.core.windows.net"
CONTAINER_URL = f"https://{HOST}/{CONTAINER}"
ACCOUNT_KEY = base64.b64encode(b"0123456789abcdef0123456789abcdef").decode()
WRONG_KEY = base64.b64encode(b"fedcba9876543210fedcba9876543210").decode()
SAS_QUERY = "sv=2023-11-03&ss=b&srt=co&sp=rwdl&se=2030-01-01T00%3A00%3A00Z&sig=abc%2Bdef%3D"
FIXED_NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


def blob_xml(
    name: str,
    *,
    size: str | None = "10",
    last_modified: str | None = "Mon, 15 Jan 2024 10:30:00 GMT",
    content_type: str | None = "text/csv",
) -> str:
    props = []
    if last_modified is not None:
        props.append(f"<Last-Modified>{last_modified}</Last-Modified>")
    props.append('<Etag>"0x8DC"</Etag>')
    if size is not None:
        props.append(f"<Content-Length>{size}</Content-Length>")
    if content_type is not None:
        props.append(f"<Content-Type>{content_type}</Content-Type>")
    return (
        f"<Blob><Name>{name}</Name><Properties>{''.join(props)}</Properties>"
        "<Metadata /></Blob>"
    )


def list_xml(*blobs: str, next_marker: str = "", prefix: str = "") -> bytes:
    return (
        '\ufeff<?xml version="1.0" encoding="utf-8"?>'
        f'<EnumerationResults ServiceEndpoint="https://{HOST}/" ContainerName="{CONTAINER}">'
        f"<Prefix>{prefix}</Prefix>"
        f"<Blobs>{''.join(blobs)}</Blobs>"
        f"<NextMarker>{next_marker}</NextMarker>"
        "</EnumerationResults>"
    ).encode("utf-8")


def _parse_sas_time(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)


def verify_sas_url(url: str, key: str, at: datetime) -> bool:
    """Check a service SAS link the way the storage service would."""
    parts = urlsplit(url)
    params = dict(parse_qsl(parts.query, keep_blank_values=True))
    if params.get("sp") != "r" or params.get("sr") != "b":
        return False
    string_to_sign = "\n".join(
        [
            params["sp"],
            params.get("st", ""),
            params["se"],
            f"/blob/{ACCOUNT}{unquote(parts.path)}",
            params.get("si", ""),
            params.get("sip", ""),
            params.get("spr", ""),
            params["sv"],
            params["sr"],
            params.get("snapshot", ""),
            params.get("ses", ""),
            params.get("rscc", ""),
            params.get("rscd", ""),
            params.get("rsce", ""),
            params.get("rscl", ""),
            params.get("rsct", ""),
        ]
    )
    digest = hmac.new(base64.b64decode(key), string_to_sign.encode("utf-8"), hashlib.sha256)
    expected = base64.b64encode(digest.digest()).decode()
    if not hmac.compare_digest(expected, params.get("sig", "")):
        return False
    if "st" in params and at < _parse_sas_time(params["st"]):
        return False
    return at <= _parse_sas_time(params["se"])


# No real sleeping between retries.
FAST_RETRY = RetryPolicy(base_delay=0, max_jitter=0)


def make_sync_client(config: StorageConfig) -> StorageClient:
    return StorageClient(config, retry_policy=FAST_RETRY, now_fn=lambda: FIXED_NOW)


def make_async_client(config: StorageConfig) -> AsyncStorageClient:
    return AsyncStorageClient(config, retry_policy=FAST_RETRY, now_fn=lambda: FIXED_NOW)
