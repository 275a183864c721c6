"""In-memory stand-in for the Blob service, mounted behind respx.

Requests are authorized the way the real service does it: the Shared Key
signature is rebuilt from what arrived on the wire and compared, and SAS
links are checked with the same verifier the unit tests use.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import format_datetime
from xml.sax.saxutils import escape

import httpx

from tests.helpers import (
    ACCOUNT,
    ACCOUNT_KEY,
    CONTAINER,
    FIXED_NOW,
    SAS_QUERY,
    blob_xml,
    list_xml,
    verify_sas_url,
)

STANDARD_HEADERS = [
    "Content-Encoding",
    "Content-Language",
    "Content-Length",
    "Content-MD5",
    "Content-Type",
    "Date",
    "If-Modified-Since",
    "If-Match",
    "If-None-Match",
    "If-Unmodified-Since",
    "Range",
]


@dataclass
class StoredBlob:
    data: bytes
    content_type: str = "application/octet-stream"
    last_modified: datetime | None = FIXED_NOW
    content_disposition: str | None = None
    headers: dict[str, str] = field(default_factory=dict)


def _error(status: int, code: str, message: str) -> httpx.Response:
    body = (
        '<?xml version="1.0" encoding="utf-8"?>'
        f"<Error><Code>{code}</Code><Message>{message}</Message></Error>"
    )
    return httpx.Response(status, content=body.encode(), headers={"x-ms-error-code": code})


class FakeBlobService:
    def __init__(
        self,
        key: str = ACCOUNT_KEY,
        *,
        sas_query: str = SAS_QUERY,
        page_size: int | None = None,
        now: datetime = FIXED_NOW,
    ) -> None:
        self.key = key
        self.sas_params = httpx.QueryParams(sas_query)
        self.page_size = page_size
        self.now = now
        self.blobs: dict[str, StoredBlob] = {}
        self.requests: list[httpx.Request] = []
        self.locked: set[str] = set()
        self._failures: list[int | type[httpx.TransportError]] = []

    # -- test controls -------------------------------------------------------

    def seed(
        self,
        name: str,
        data: bytes = b"0123456789",
        *,
        content_type: str = "text/csv",
        last_modified: datetime | None = FIXED_NOW,
    ) -> None:
        self.blobs[name] = StoredBlob(data, content_type, last_modified)

    def fail_next(self, *failures: int | type[httpx.TransportError]) -> None:
        """Queue status codes or transport errors for the next requests."""
        self._failures.extend(failures)

    def requests_for(self, method: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    # -- authorization -------------------------------------------------------

    def _canonical_resource(self, request: httpx.Request) -> str:
        resource = f"/{ACCOUNT}{request.url.path}"
        for key in sorted(request.url.params.keys()):
            resource += f"\n{key.lower()}:{request.url.params[key]}"
        return resource

    def _expected_signature(self, request: httpx.Request) -> str:
        values = []
        for name in STANDARD_HEADERS:
            value = request.headers.get(name, "")
            if name == "Content-Length" and value == "0":
                value = ""
            values.append(value)
        ms_headers = sorted(
            (k.lower(), v.strip())
            for k, v in request.headers.items()
            if k.lower().startswith("x-ms-")
        )
        string_to_sign = "\n".join(
            [
                request.method,
                *values,
                "\n".join(f"{k}:{v}" for k, v in ms_headers),
                self._canonical_resource(request),
            ]
        )
        key = base64.b64decode(self.key)
        digest = hmac.new(key, string_to_sign.encode("utf-8"), hashlib.sha256)
        return base64.b64encode(digest.digest()).decode()

    def _authorized(self, request: httpx.Request) -> bool:
        auth = request.headers.get("Authorization")
        if auth is not None:
            scheme, _, credential = auth.partition(" ")
            account, _, signature = credential.partition(":")
            if scheme != "SharedKey" or account != ACCOUNT or "x-ms-date" not in request.headers:
                return False
            return hmac.compare_digest(signature, self._expected_signature(request))
        params = request.url.params
        if "sig" not in params:
            return False
        if all(params.get(k) == v for k, v in self.sas_params.multi_items()):
            return True
        return request.method == "GET" and verify_sas_url(str(request.url), self.key, self.now)

    # -- dispatch ------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._failures:
            failure = self._failures.pop(0)
            if isinstance(failure, int):
                return _error(failure, "ServerBusy", "Injected failure")
            raise failure("Injected transport failure", request=request)

        if not self._authorized(request):
            return _error(403, "AuthenticationFailed", "Server failed to authenticate the request")

        container_path = f"/{CONTAINER}"
        path = request.url.path
        if path == container_path:
            params = request.url.params
            is_list = params.get("restype") == "container" and params.get("comp") == "list"
            if request.method == "GET" and is_list:
                return self._list(params.get("prefix", ""), params.get("marker", ""))
            return _error(400, "InvalidQueryParameterValue", "Unsupported container operation")
        if not path.startswith(container_path + "/"):
            return _error(404, "ContainerNotFound", "The specified container does not exist")

        name = path[len(container_path) + 1 :]
        match request.method:
            case "PUT":
                return self._put(name, request)
            case "HEAD":
                return self._head(name)
            case "GET":
                return self._get(name)
            case "DELETE":
                return self._delete(name)
        return _error(405, "UnsupportedHttpVerb", request.method)

    def _put(self, name: str, request: httpx.Request) -> httpx.Response:
        if request.headers.get("x-ms-blob-type") != "BlockBlob":
            return _error(400, "MissingRequiredHeader", "x-ms-blob-type")
        self.blobs[name] = StoredBlob(
            data=request.content,
            content_type=request.headers.get("Content-Type", "application/octet-stream"),
            last_modified=self.now,
            content_disposition=request.headers.get("x-ms-blob-content-disposition"),
            headers=dict(request.headers),
        )
        return httpx.Response(201, headers={"ETag": '"0x1"'})

    def _head(self, name: str) -> httpx.Response:
        blob = self.blobs.get(name)
        if blob is None:
            return httpx.Response(404, headers={"x-ms-error-code": "BlobNotFound"})
        return httpx.Response(
            200,
            headers={"Content-Type": blob.content_type, "x-ms-blob-type": "BlockBlob"},
        )

    def _get(self, name: str) -> httpx.Response:
        blob = self.blobs.get(name)
        if blob is None:
            return _error(404, "BlobNotFound", "The specified blob does not exist")
        return httpx.Response(200, content=blob.data, headers={"Content-Type": blob.content_type})

    def _delete(self, name: str) -> httpx.Response:
        if name not in self.blobs:
            return _error(404, "BlobNotFound", "The specified blob does not exist")
        if name in self.locked:
            return _error(412, "LeaseIdMissing", "There is currently a lease on the blob")
        del self.blobs[name]
        return httpx.Response(202)

    def _list(self, prefix: str, marker: str) -> httpx.Response:
        names = sorted(n for n in self.blobs if n.startswith(prefix))
        start = names.index(marker) if marker in names else 0
        end = len(names) if self.page_size is None else start + self.page_size
        next_marker = names[end] if end < len(names) else ""
        entries = []
        for name in names[start:end]:
            blob = self.blobs[name]
            entries.append(
                blob_xml(
                    escape(name),
                    size=str(len(blob.data)),
                    last_modified=(
                        format_datetime(blob.last_modified, usegmt=True)
                        if blob.last_modified is not None
                        else None
                    ),
                    content_type=blob.content_type,
                )
            )
        return httpx.Response(
            200,
            content=list_xml(*entries, next_marker=next_marker, prefix=prefix),
            headers={"Content-Type": "application/xml"},
        )
