"""Fixtures for integration tests using respx mocking."""

from collections.abc import Iterator

import pytest
import respx

from blobadmin.storage import StorageClient
from tests.helpers import HOST, make_sync_client
from tests.integration.fake_service import FakeBlobService


@pytest.fixture
def service() -> FakeBlobService:
    return FakeBlobService()


@pytest.fixture
def mock_storage(service: FakeBlobService) -> Iterator[respx.MockRouter]:
    """Route every request for the test account to the fake service."""
    with respx.mock(assert_all_called=False) as router:
        router.route(host=HOST).mock(side_effect=service.handle)
        yield router


@pytest.fixture
def sync_client(shared_key_config, mock_storage) -> Iterator[StorageClient]:
    client = make_sync_client(shared_key_config)
    yield client
    client.close()
