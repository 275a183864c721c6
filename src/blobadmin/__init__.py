"""Administrative client for Azure Blob Storage report containers."""

from .storage import (
    AsyncStorageClient,
    SasToken,
    SharedKey,
    StorageClient,
    StorageConfig,
)

__version__ = "0.1.0"

__all__ = [
    "StorageClient",
    "AsyncStorageClient",
    "StorageConfig",
    "SharedKey",
    "SasToken",
    "__version__",
]
