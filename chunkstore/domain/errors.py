"""Provider-independent errors raised by chunk storage."""

from __future__ import annotations


class ChunkStorageError(Exception):
    """Base class for chunk storage failures; also the catch-all kind.

    ``cause`` holds the provider exception the error was translated from.
    """

    error_code = "storage_error"

    def __init__(
        self,
        chunk_name: str,
        message: str,
        *,
        operation: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.chunk_name = chunk_name
        self.operation = operation
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ChunkNotFoundError(ChunkStorageError):
    """Raised when the chunk's object does not exist."""

    error_code = "not_found"


class ChunkAlreadyExistsError(ChunkStorageError):
    """Raised when a conditional create finds an existing object."""

    error_code = "already_exists"


class InvalidChunkArgumentError(ChunkStorageError, ValueError):
    """Raised for bad offsets, lengths or ranges."""

    error_code = "invalid_argument"


class ChunkAccessDeniedError(ChunkStorageError):
    """Raised when the store refuses the credentials for an operation."""

    error_code = "access_denied"


class UnsupportedChunkOperationError(ChunkStorageError, NotImplementedError):
    """Raised for operations this backend never supports."""

    error_code = "unsupported_operation"


class StorageClosedError(ChunkStorageError):
    """Raised when an operation is issued after ``close``."""

    error_code = "closed"
