from .client import AsyncStorageClient, StorageClient
from .config import (
    ConfigRegistry,
    NamedStorageConfig,
    default_config_from_env,
)
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
    delete_old_reports_with_config,
    generate_report_link_with_config,
    get_default_registry,
    list_blobs_with_config,
    upload_report_to_multiple_configs,
    upload_report_with_config,
    upload_report_with_fallback,
    validate_connection_with_config,
)
from .retry import RetryPolicy
from .sas import content_disposition_for, generate_sas_url
from .types import (
    AuthMethod,
    BlobInfo,
    CleanupResult,
    ConfigUploadResult,
    DelegatedIdentity,
    SasToken,
    SharedKey,
    StorageConfig,
)

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
    # types
    "AuthMethod",
    "SharedKey",
    "SasToken",
    "DelegatedIdentity",
    "StorageConfig",
    "BlobInfo",
    "CleanupResult",
    "ConfigUploadResult",
    # clients
    "StorageClient",
    "AsyncStorageClient",
    "RetryPolicy",
    "generate_sas_url",
    "content_disposition_for",
    # configuration
    "ConfigRegistry",
    "NamedStorageConfig",
    "default_config_from_env",
    "get_default_registry",
    # ops
    "upload_report_with_config",
    "upload_report_with_fallback",
    "upload_report_to_multiple_configs",
    "delete_old_reports_with_config",
    "generate_report_link_with_config",
    "list_blobs_with_config",
    "validate_connection_with_config",
]
