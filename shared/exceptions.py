"""
Exception types raised by the storage facade.
"""

from typing import List, Optional, Sequence


class ConfigError(ValueError):
    """Raised when required settings are missing. Fatal at construction."""

    def __init__(self, missing: Sequence[str]):
        self.missing: List[str] = list(missing)
        super().__init__(f"Missing required environment variables: {', '.join(self.missing)}")


class StorageError(Exception):
    """Base class for failed remote storage operations."""

    operation = "access storage"

    def __init__(self, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.cause = cause
        super().__init__(message or f"Failed to {self.operation}: {cause}")


class UploadError(StorageError):
    operation = "upload file"


class DeleteError(StorageError):
    operation = "delete file"


class ListError(StorageError):
    operation = "list files"


class StreamError(StorageError):
    operation = "get file stream"


class CleanupError(StorageError):
    operation = "cleanup files"
