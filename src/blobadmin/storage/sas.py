"""Service SAS links for single blobs.

Reference: https://learn.microsoft.com/rest/api/storageservices/create-service-sas

The string-to-sign layout is the one the service verifies for versions
2020-12-06 and later. Unused fields stay in place as empty lines.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from .auth import decode_secret, sign
from .errors import AuthenticationError, SASGenerationError
from .types import (
    DelegatedIdentity,
    SasParameters,
    SasToken,
    SharedKey,
    StorageConfig,
)
from .utils import (
    build_blob_url,
    debug,
    encode_query_value,
    format_sas_time,
    get_api_version,
    utc_now,
)

logger = logging.getLogger(__name__)

CLOCK_SKEW_ALLOWANCE = timedelta(minutes=5)


def content_disposition_for(filename: str) -> str:
    """Attachment disposition, with an RFC 6266 ``filename*`` for non-ASCII names."""
    if filename.isascii():
        return f'attachment; filename="{filename}"'
    fallback = "".join(c if c.isascii() else "_" for c in filename)
    return (
        f'attachment; filename="{fallback}"; '
        f"filename*=UTF-8''{encode_query_value(filename)}"
    )


def canonical_sas_resource(account_name: str, container_name: str, blob_name: str) -> str:
    return f"/blob/{account_name}/{container_name}/{blob_name}"


def build_sas_parameters(
    days: int,
    *,
    now: datetime,
    download_filename: str | None = None,
    content_type: str | None = None,
) -> SasParameters:
    if days <= 0:
        raise SASGenerationError(f"Link lifetime must be at least one day, got {days}")
    return SasParameters(
        start=format_sas_time(now - CLOCK_SKEW_ALLOWANCE),
        expiry=format_sas_time(now + timedelta(days=days)),
        version=get_api_version(),
        content_disposition=(
            content_disposition_for(download_filename) if download_filename else None
        ),
        content_type=content_type,
    )


def build_sas_string_to_sign(params: SasParameters, canonical_resource: str) -> str:
    return "\n".join(
        [
            params.permissions,
            params.start,
            params.expiry,
            canonical_resource,
            "",  # signed identifier
            "",  # signed IP
            params.protocol,
            params.version,
            params.resource,
            "",  # snapshot time
            "",  # encryption scope
            "",  # rscc
            params.content_disposition or "",
            "",  # rsce
            "",  # rscl
            params.content_type or "",
        ]
    )


def build_sas_query(params: SasParameters, signature: str) -> str:
    items = [
        ("sp", params.permissions),
        ("st", params.start),
        ("se", params.expiry),
        ("spr", params.protocol),
        ("sv", params.version),
        ("sr", params.resource),
        ("sig", signature),
    ]
    if params.content_disposition:
        items.append(("rscd", params.content_disposition))
    if params.content_type:
        items.append(("rsct", params.content_type))
    return "&".join(f"{key}={encode_query_value(value)}" for key, value in items)


def generate_sas_url(
    config: StorageConfig,
    blob_name: str,
    days: int,
    *,
    download_filename: str | None = None,
    content_type: str | None = None,
    now: datetime | None = None,
) -> str:
    """Build a read-only link to one blob, valid for ``days`` days."""
    auth = config.auth_method
    base_url = build_blob_url(config, blob_name)

    if isinstance(auth, SharedKey):
        now = now or utc_now()
        params = build_sas_parameters(
            days,
            now=now,
            download_filename=download_filename,
            content_type=content_type,
        )
        resource = canonical_sas_resource(
            config.account_name, config.container_name, blob_name
        )
        string_to_sign = build_sas_string_to_sign(params, resource)
        debug("SAS string to sign: %r", string_to_sign)
        try:
            decode_secret(auth.secret)
        except AuthenticationError as exc:
            raise SASGenerationError(exc.message) from exc
        signature = sign(string_to_sign, auth.secret)
        return f"{base_url}?{build_sas_query(params, signature)}"

    if isinstance(auth, SasToken):
        debug("SAS token link for %s keeps the token's own expiry", blob_name)
        if download_filename or content_type:
            logger.warning(
                "SAS token authentication cannot add response header overrides; "
                "ignoring download filename/content type for %s",
                blob_name,
            )
        token = auth.query_string.lstrip("?")
        if not token:
            raise SASGenerationError("Configured SAS token is empty")
        return f"{base_url}?{token}"

    if isinstance(auth, DelegatedIdentity):
        raise SASGenerationError(
            "SAS URL generation with delegated identity authentication is not supported"
        )
    raise SASGenerationError(f"Unsupported authentication method: {type(auth).__name__}")


__all__ = [
    "CLOCK_SKEW_ALLOWANCE",
    "content_disposition_for",
    "canonical_sas_resource",
    "build_sas_parameters",
    "build_sas_string_to_sign",
    "build_sas_query",
    "generate_sas_url",
]
