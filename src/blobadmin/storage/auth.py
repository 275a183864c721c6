"""Shared Key request signing and SAS-token request authorization.

Reference: https://learn.microsoft.com/rest/api/storageservices/authorize-with-shared-key

The string-to-sign built here must match the service's own reconstruction
byte for byte. Object names in the canonical resource are always the raw,
unencoded names; only the request URL carries the percent-encoded form.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
from collections.abc import Mapping
from datetime import datetime

from .errors import AuthenticationError
from .types import (
    DelegatedIdentity,
    SasToken,
    SharedKey,
    SignedRequestContext,
    StorageConfig,
)
from .utils import debug, format_http_date

# Standard headers in the order they appear in the string-to-sign, between
# the verb and the canonicalized x-ms-* headers.
SIGNED_STANDARD_HEADERS = (
    "content-encoding",
    "content-language",
    "content-length",
    "content-md5",
    "content-type",
    "date",
    "if-modified-since",
    "if-match",
    "if-none-match",
    "if-unmodified-since",
    "range",
)


def _lower_keys(headers: Mapping[str, str]) -> dict[str, str]:
    return {key.lower(): value for key, value in headers.items()}


def canonicalize_headers(headers: Mapping[str, str]) -> str:
    """Render the ``x-ms-*`` headers as sorted ``name:value`` lines."""
    ms_headers = {
        key: value.strip()
        for key, value in _lower_keys(headers).items()
        if key.startswith("x-ms-")
    }
    return "\n".join(f"{key}:{ms_headers[key]}" for key in sorted(ms_headers))


def canonical_blob_resource(account_name: str, container_name: str, blob_name: str) -> str:
    return f"/{account_name}/{container_name}/{blob_name}"


def canonical_list_resource(
    account_name: str,
    container_name: str,
    *,
    prefix: str | None = None,
    marker: str | None = None,
) -> str:
    """Canonical resource for a container listing.

    Query parameters are appended one per line sorted by name
    (``comp``, ``marker``, ``prefix``, ``restype``), independent of the order
    they take in the request URL.
    """
    params = {"comp": "list", "restype": "container"}
    if prefix:
        params["prefix"] = prefix
    if marker:
        params["marker"] = marker
    lines = "".join(f"\n{key}:{params[key]}" for key in sorted(params))
    return f"/{account_name}/{container_name}{lines}"


def build_string_to_sign(
    method: str,
    headers: Mapping[str, str],
    canonical_resource: str,
) -> str:
    lowered = _lower_keys(headers)
    fields = [method.upper()]
    for name in SIGNED_STANDARD_HEADERS:
        value = lowered.get(name, "")
        if name == "content-length" and value == "0":
            value = ""
        fields.append(value)
    fields.append(canonicalize_headers(headers))
    fields.append(canonical_resource)
    return "\n".join(fields)


def decode_secret(secret: str) -> bytes:
    if not secret:
        raise AuthenticationError("Storage key is empty")
    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AuthenticationError("Invalid storage key format") from exc


def sign(string_to_sign: str, secret: str) -> str:
    """HMAC-SHA256 over the UTF-8 string with the decoded key, base64-encoded."""
    key = decode_secret(secret)
    digest = hmac.new(key, string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def append_sas_token(url: str, token: str) -> str:
    """Append a pre-encoded SAS query string without re-parsing it."""
    token = token.lstrip("?")
    if not token:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{token}"


def sign_shared_key_request(
    account_name: str,
    secret: str,
    method: str,
    headers: dict[str, str],
    canonical_resource: str,
    *,
    now: datetime,
) -> SignedRequestContext:
    """Add ``x-ms-date`` and ``Authorization`` to ``headers`` in place."""
    # A malformed key must fail before any header is added.
    decode_secret(secret)
    date = format_http_date(now)
    headers["x-ms-date"] = date
    string_to_sign = build_string_to_sign(method, headers, canonical_resource)
    debug("shared key string to sign: %r", string_to_sign)
    signature = sign(string_to_sign, secret)
    headers["Authorization"] = f"SharedKey {account_name}:{signature}"
    return SignedRequestContext(
        method=method.upper(),
        canonical_resource=canonical_resource,
        date=date,
        headers={k: v for k, v in headers.items() if k.lower().startswith("x-ms-")},
    )


def authorize_request(
    config: StorageConfig,
    method: str,
    url: str,
    headers: dict[str, str],
    canonical_resource: str,
    *,
    now: datetime,
) -> tuple[str, SignedRequestContext | None]:
    """Authorize one request according to the configured auth method.

    Mutates ``headers`` for shared key auth. Returns the URL to send, which
    carries the token for SAS auth, and the signing context (``None`` for
    SAS auth).
    """
    auth = config.auth_method
    if isinstance(auth, SharedKey):
        context = sign_shared_key_request(
            config.account_name,
            auth.secret,
            method,
            headers,
            canonical_resource,
            now=now,
        )
        return url, context
    if isinstance(auth, SasToken):
        return append_sas_token(url, auth.query_string), None
    if isinstance(auth, DelegatedIdentity):
        raise AuthenticationError(
            "Delegated identity authentication is not supported; "
            "use a storage key or SAS token"
        )
    raise AuthenticationError(f"Unsupported authentication method: {type(auth).__name__}")


__all__ = [
    "SIGNED_STANDARD_HEADERS",
    "canonicalize_headers",
    "canonical_blob_resource",
    "canonical_list_resource",
    "build_string_to_sign",
    "decode_secret",
    "sign",
    "append_sas_token",
    "sign_shared_key_request",
    "authorize_request",
]
