from .client import AsyncStorageClient
from .errors import (
    AuthenticationError,
    BlobNotFound,
    ConfigurationError,
    DeleteFailed,
    FileReadError,
    InvalidResponse,
    InvalidURL,
    ListFailed,
    NetworkError,
    SASGenerationError,
    StorageError,
    UploadFailed,
)
from .ops import (
    delete_old_reports_with_config_async as delete_old_reports_with_config,
    generate_report_link_with_config_async as generate_report_link_with_config,
    list_blobs_with_config_async as list_blobs_with_config,
    upload_report_to_multiple_configs_async as upload_report_to_multiple_configs,
    upload_report_with_config_async as upload_report_with_config,
    upload_report_with_fallback_async as upload_report_with_fallback,
    validate_connection_with_config_async as validate_connection_with_config,
)
from .types import BlobInfo, CleanupResult, ConfigUploadResult, StorageConfig

__all__ = [
    # errors
    "StorageError",
    "AuthenticationError",
    "FileReadError",
    "InvalidURL",
    "InvalidResponse",
    "UploadFailed",
    "ListFailed",
    "DeleteFailed",
    "BlobNotFound",
    "SASGenerationError",
    "NetworkError",
    "ConfigurationError",
    # ops
    "upload_report_with_config",
    "upload_report_with_fallback",
    "upload_report_to_multiple_configs",
    "delete_old_reports_with_config",
    "generate_report_link_with_config",
    "list_blobs_with_config",
    "validate_connection_with_config",
    # client
    "AsyncStorageClient",
    # types
    "StorageConfig",
    "BlobInfo",
    "CleanupResult",
    "ConfigUploadResult",
]
