"""Fixtures for live storage tests.

These tests require a real storage account set via environment variables:
- BLOBADMIN_LIVE_ACCOUNT: storage account name
- BLOBADMIN_LIVE_CONTAINER: an existing container the key may write to
- BLOBADMIN_LIVE_KEY: storage account key
"""

import os
import time
import uuid
from collections.abc import Generator

import pytest

from blobadmin.storage import SharedKey, StorageClient, StorageConfig


def has_storage_credentials() -> bool:
    """Check if live storage credentials are available."""
    return bool(
        os.getenv("BLOBADMIN_LIVE_ACCOUNT")
        and os.getenv("BLOBADMIN_LIVE_CONTAINER")
        and os.getenv("BLOBADMIN_LIVE_KEY")
    )


requires_storage_credentials = pytest.mark.skipif(
    not has_storage_credentials(),
    reason=(
        "Requires BLOBADMIN_LIVE_ACCOUNT, BLOBADMIN_LIVE_CONTAINER and "
        "BLOBADMIN_LIVE_KEY environment variables"
    ),
)


@pytest.fixture
def live_config() -> StorageConfig:
    return StorageConfig(
        os.environ["BLOBADMIN_LIVE_ACCOUNT"],
        os.environ["BLOBADMIN_LIVE_CONTAINER"],
        SharedKey(os.environ["BLOBADMIN_LIVE_KEY"]),
    )


@pytest.fixture
def unique_blob_name() -> str:
    """Generate a unique blob name under a per-run test prefix.

    Format: blobadmin-test/{timestamp}-{uuid}/r 1.csv
    """
    timestamp = int(time.time())
    unique_id = uuid.uuid4().hex[:8]
    return f"blobadmin-test/{timestamp}-{unique_id}/r 1.csv"


@pytest.fixture
def cleanup_blobs(live_config) -> Generator[list[str], None, None]:
    """Collect blob names to delete after the test, whatever its outcome."""
    names: list[str] = []
    yield names
    with StorageClient(live_config) as client:
        for name in names:
            if client.exists(name):
                client.delete(name)
