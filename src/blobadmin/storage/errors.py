from __future__ import annotations

RESPONSE_BODY_LIMIT = 2048


def truncate_body(body: str | None, limit: int = RESPONSE_BODY_LIMIT) -> str | None:
    if body is None or len(body) <= limit:
        return body
    return body[:limit] + f"... [{len(body) - limit} more characters]"


class StorageError(Exception):
    """Base class for every error raised by the storage client."""

    prefix = "Storage error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.body = truncate_body(body)
        super().__init__(f"{self.prefix}: {message}")


class AuthenticationError(StorageError):
    prefix = "Authentication error"


class FileReadError(StorageError):
    prefix = "File read error"


class InvalidURL(StorageError):
    prefix = "Invalid URL"


class InvalidResponse(StorageError):
    prefix = "Invalid response"


class UploadFailed(StorageError):
    prefix = "Upload failed"


class ListFailed(StorageError):
    prefix = "List operation failed"


class DeleteFailed(StorageError):
    prefix = "Delete operation failed"


class BlobNotFound(StorageError):
    prefix = "Blob not found"


class SASGenerationError(StorageError):
    prefix = "SAS generation error"


class NetworkError(StorageError):
    prefix = "Network error"


class ConfigurationError(StorageError):
    prefix = "Invalid configuration"


__all__ = [
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
    "truncate_body",
]
