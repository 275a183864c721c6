"""Named storage configurations and the environment-backed default."""

from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime

from .errors import ConfigurationError
from .types import (
    AuthMethod,
    DelegatedIdentity,
    SasToken,
    SharedKey,
    StorageConfig,
    describe_auth_method,
)
from .utils import REPORTS_PREFIX, utc_now

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "default"
RESERVED_NAMES = frozenset({"default", "system", "temp", "cache"})
MAX_CONFIGURATIONS = 20
MAX_NAME_LENGTH = 50
_NAME_PATTERN = re.compile(r"^[\w\- ]+$")


def default_config_from_env() -> StorageConfig:
    """Build a config from ``AZURE_STORAGE_*`` variables.

    Auth priority: SAS token, then account key, then delegated identity.
    """
    account_name = os.getenv("AZURE_STORAGE_ACCOUNT")
    if not account_name:
        raise ConfigurationError("Storage account name is required (AZURE_STORAGE_ACCOUNT)")
    container_name = os.getenv("AZURE_STORAGE_CONTAINER")
    if not container_name:
        raise ConfigurationError("Container name is required (AZURE_STORAGE_CONTAINER)")

    auth_method: AuthMethod
    sas_token = os.getenv("AZURE_STORAGE_SAS_TOKEN")
    account_key = os.getenv("AZURE_STORAGE_KEY")
    tenant_id = os.getenv("AZURE_TENANT_ID")
    client_id = os.getenv("AZURE_CLIENT_ID")
    client_secret = os.getenv("AZURE_CLIENT_SECRET")
    if sas_token:
        auth_method = SasToken(sas_token)
    elif account_key:
        auth_method = SharedKey(account_key)
    elif tenant_id and client_id and client_secret:
        auth_method = DelegatedIdentity(tenant_id, client_id, client_secret)
    else:
        raise ConfigurationError(
            "No valid authentication method configured (requires storage key or SAS token)"
        )
    logger.info("Using %s authentication for storage", describe_auth_method(auth_method))
    return StorageConfig(account_name, container_name, auth_method)


def validate_config_name(name: str) -> None:
    if not name or len(name) > MAX_NAME_LENGTH:
        raise ConfigurationError(
            f"Configuration name must be 1-{MAX_NAME_LENGTH} characters: {name!r}"
        )
    if name.lower() in RESERVED_NAMES:
        raise ConfigurationError(f"Configuration name {name!r} is reserved")
    if not _NAME_PATTERN.match(name):
        raise ConfigurationError(
            f"Configuration name {name!r} may only contain letters, digits, "
            "dashes, underscores and spaces"
        )


@dataclass(frozen=True, slots=True)
class NamedStorageConfig:
    name: str
    config: StorageConfig
    description: str | None = None
    cleanup_enabled: bool = False
    max_file_age_days: int | None = None
    cleanup_prefix: str = REPORTS_PREFIX
    created: datetime = field(default_factory=utc_now)

    @property
    def cleanup_summary(self) -> str:
        if not self.cleanup_enabled:
            return "Disabled"
        if self.max_file_age_days is None:
            return "Enabled"
        suffix = "" if self.max_file_age_days == 1 else "s"
        return f"{self.max_file_age_days} Day{suffix}"


class ConfigRegistry:
    """Thread-safe in-memory store of named configurations.

    Lookups are case-insensitive. The name ``default`` always resolves to
    :func:`default_config_from_env`.
    """

    def __init__(self, entries: list[NamedStorageConfig] | None = None) -> None:
        self._entries: dict[str, NamedStorageConfig] = {}
        self._lock = threading.Lock()
        for entry in entries or []:
            self.add(entry)

    def add(self, entry: NamedStorageConfig) -> None:
        validate_config_name(entry.name)
        key = entry.name.lower()
        with self._lock:
            if key not in self._entries and len(self._entries) >= MAX_CONFIGURATIONS:
                raise ConfigurationError(
                    f"Cannot add configuration {entry.name!r}: "
                    f"maximum of {MAX_CONFIGURATIONS} configurations allowed"
                )
            self._entries[key] = entry
        logger.info(
            "Saved storage configuration %r for account %s",
            entry.name,
            entry.config.account_name,
        )

    def register(
        self,
        name: str,
        config: StorageConfig,
        **options: object,
    ) -> NamedStorageConfig:
        entry = NamedStorageConfig(name=name, config=config, **options)  # type: ignore[arg-type]
        self.add(entry)
        return entry

    def remove(self, name: str) -> bool:
        with self._lock:
            removed = self._entries.pop(name.lower(), None)
        if removed is not None:
            logger.info("Removed storage configuration %r", name)
        return removed is not None

    def get(self, name: str) -> NamedStorageConfig | None:
        with self._lock:
            return self._entries.get(name.lower())

    def names(self) -> list[str]:
        with self._lock:
            return sorted(entry.name for entry in self._entries.values())

    def entries(self) -> list[NamedStorageConfig]:
        with self._lock:
            return sorted(self._entries.values(), key=lambda entry: entry.name)

    def is_valid(self, name: str) -> bool:
        entry = self.get(name)
        if entry is None:
            return False
        auth = entry.config.auth_method
        if isinstance(auth, SharedKey):
            return bool(auth.secret)
        if isinstance(auth, SasToken):
            return bool(auth.query_string)
        return False

    def resolve(self, name: str) -> StorageConfig:
        if name.lower() == DEFAULT_CONFIG_NAME:
            return default_config_from_env()
        entry = self.get(name)
        if entry is None:
            raise ConfigurationError(f"Configuration {name!r} not found")
        return entry.config

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cleared all named storage configurations (%d removed)", count)


__all__ = [
    "DEFAULT_CONFIG_NAME",
    "RESERVED_NAMES",
    "MAX_CONFIGURATIONS",
    "NamedStorageConfig",
    "ConfigRegistry",
    "default_config_from_env",
    "validate_config_name",
]
