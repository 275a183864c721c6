"""Shared fixtures for all tests."""

from collections.abc import Generator
from datetime import datetime

import pytest

from blobadmin.storage.types import (
    DelegatedIdentity,
    SasToken,
    SharedKey,
    StorageConfig,
)
from tests.helpers import ACCOUNT, ACCOUNT_KEY, CONTAINER, FIXED_NOW, SAS_QUERY


@pytest.fixture(autouse=True)
def mock_env_clear(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Clear storage-related environment variables for testing.

    This ensures tests don't accidentally use real credentials or overrides
    from the environment.
    """
    env_vars_to_clear = [
        "AZURE_STORAGE_ACCOUNT",
        "AZURE_STORAGE_CONTAINER",
        "AZURE_STORAGE_KEY",
        "AZURE_STORAGE_SAS_TOKEN",
        "AZURE_STORAGE_API_VERSION",
        "AZURE_STORAGE_RETRIES",
        "AZURE_STORAGE_BLOB_ENDPOINT",
        "AZURE_TENANT_ID",
        "AZURE_CLIENT_ID",
        "AZURE_CLIENT_SECRET",
        "DEBUG",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def shared_key_config() -> StorageConfig:
    return StorageConfig(ACCOUNT, CONTAINER, SharedKey(ACCOUNT_KEY))


@pytest.fixture
def sas_config() -> StorageConfig:
    return StorageConfig(ACCOUNT, CONTAINER, SasToken(SAS_QUERY))


@pytest.fixture
def delegated_config() -> StorageConfig:
    return StorageConfig(ACCOUNT, CONTAINER, DelegatedIdentity("tenant", "client", "secret"))
