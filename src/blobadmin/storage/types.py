from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union

from .errors import ConfigurationError, StorageError


@dataclass(frozen=True, slots=True)
class SharedKey:
    """Storage account key (base64 text as shown in the portal)."""

    secret: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class SasToken:
    """Pre-issued SAS query string, appended to request URLs verbatim."""

    query_string: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class DelegatedIdentity:
    """Directory (OAuth client-credentials) identity; recognised, not supported."""

    tenant_id: str
    client_id: str
    client_secret: str = field(repr=False)


AuthMethod = Union[SharedKey, SasToken, DelegatedIdentity]


def describe_auth_method(auth_method: AuthMethod) -> str:
    if isinstance(auth_method, SharedKey):
        return "Storage Account Key"
    if isinstance(auth_method, SasToken):
        return "SAS Token"
    return "Delegated Identity"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    account_name: str
    container_name: str
    auth_method: AuthMethod

    def __post_init__(self) -> None:
        if not self.account_name:
            raise ConfigurationError("Storage account name is required")
        if not self.container_name:
            raise ConfigurationError("Container name is required")


@dataclass(frozen=True, slots=True)
class BlobInfo:
    name: str
    size: int | None = None
    last_modified: datetime | None = None
    content_type: str | None = None


@dataclass(slots=True)
class BlobListPage:
    blobs: list[BlobInfo]
    next_marker: str | None = None


@dataclass(slots=True)
class SignedRequestContext:
    method: str
    canonical_resource: str
    date: str
    headers: dict[str, str]


@dataclass(frozen=True, slots=True)
class SasParameters:
    start: str
    expiry: str
    version: str
    permissions: str = "r"
    protocol: str = "https"
    resource: str = "b"
    content_disposition: str | None = None
    content_type: str | None = None


@dataclass(slots=True)
class CleanupResult:
    deleted_count: int = 0
    bytes_freed: int = 0
    deleted: list[str] = field(default_factory=list)
    failures: dict[str, StorageError] = field(default_factory=dict)


@dataclass(slots=True)
class ConfigUploadResult:
    config_name: str
    success: bool
    blob_url: str | None = None
    error: Exception | None = None


__all__ = [
    "SharedKey",
    "SasToken",
    "DelegatedIdentity",
    "AuthMethod",
    "describe_auth_method",
    "StorageConfig",
    "BlobInfo",
    "BlobListPage",
    "SignedRequestContext",
    "SasParameters",
    "CleanupResult",
    "ConfigUploadResult",
]
