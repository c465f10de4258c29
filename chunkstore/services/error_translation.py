"""Translation of object-store failures into chunk storage errors.

Every public chunk storage operation wraps its object-store calls in
:func:`translated_errors`, so provider exceptions are converted exactly once
and errors that are already :class:`ChunkStorageError` travel unchanged.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from botocore.exceptions import ClientError

from chunkstore.domain.errors import (
    ChunkAccessDeniedError,
    ChunkAlreadyExistsError,
    ChunkNotFoundError,
    ChunkStorageError,
    InvalidChunkArgumentError,
)
from chunkstore.infra.storage.client import StorageError

NO_SUCH_KEY = "NoSuchKey"
NOT_FOUND = "NotFound"
PRECONDITION_FAILED = "PreconditionFailed"
INVALID_RANGE = "InvalidRange"
INVALID_ARGUMENT = "InvalidArgument"
METHOD_NOT_ALLOWED = "MethodNotAllowed"
ACCESS_DENIED = "AccessDenied"

HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_PRECONDITION_FAILED = 412
HTTP_RANGE_NOT_SATISFIABLE = 416

NOT_FOUND_CODES = frozenset({NO_SUCH_KEY, NOT_FOUND, str(HTTP_NOT_FOUND)})
INVALID_ARGUMENT_CODES = frozenset({INVALID_RANGE, INVALID_ARGUMENT, METHOD_NOT_ALLOWED})
# HEAD responses carry no body, so boto3 reports the bare status as the code
ACCESS_DENIED_CODES = frozenset({ACCESS_DENIED, str(HTTP_FORBIDDEN)})


def provider_signal(error: BaseException) -> tuple[str, int | None]:
    """Return ``(code, http_status)`` reported by the provider, if any."""
    if isinstance(error, StorageError):
        return error.code or "", error.status
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code") or ""
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return str(code), int(status) if status is not None else None
    return "", None


def translate_error(
    chunk_name: str, operation: str, error: BaseException
) -> ChunkStorageError:
    """Map a raw failure onto the chunk storage error taxonomy.

    The original error is kept as ``cause`` on everything except pass-through
    chunk storage errors.
    """
    if isinstance(error, ChunkStorageError):
        return error

    code, status = provider_signal(error)

    if code in NOT_FOUND_CODES:
        return ChunkNotFoundError(
            chunk_name,
            f"Chunk {chunk_name} not found - {operation}.",
            operation=operation,
            cause=error,
        )
    if code == PRECONDITION_FAILED or status == HTTP_PRECONDITION_FAILED:
        return ChunkAlreadyExistsError(
            chunk_name,
            f"Chunk {chunk_name} already exists - {operation}.",
            operation=operation,
            cause=error,
        )
    if code in INVALID_ARGUMENT_CODES or status == HTTP_RANGE_NOT_SATISFIABLE:
        return InvalidChunkArgumentError(
            chunk_name,
            f"Invalid argument for chunk {chunk_name} - {operation}: {error}",
            operation=operation,
            cause=error,
        )
    if code in ACCESS_DENIED_CODES or status == HTTP_FORBIDDEN:
        return ChunkAccessDeniedError(
            chunk_name,
            f"Access denied for chunk {chunk_name} - {operation}.",
            operation=operation,
            cause=error,
        )
    return ChunkStorageError(
        chunk_name,
        f"{operation} failed for chunk {chunk_name}: {error}",
        operation=operation,
        cause=error,
    )


@contextmanager
def translated_errors(chunk_name: str, operation: str) -> Generator[None, None, None]:
    """Re-raise anything escaping the block as a chunk storage error."""
    try:
        yield
    except ChunkStorageError:
        raise
    except Exception as exc:
        raise translate_error(chunk_name, operation, exc) from exc
