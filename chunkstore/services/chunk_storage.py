"""Chunk storage backed by an S3-compatible object store.

This module provides the adapter the segment engine talks to. Every chunk is
one object at ``prefix + chunk_name`` in a single bucket; objects are written
once at creation and only ever replaced as a whole by concat.
"""

from __future__ import annotations

import logging
import threading
from contextlib import closing
from typing import BinaryIO, Sequence

from chunkstore.common.config import StorageConfig
from chunkstore.domain.chunks import (
    ChunkHandle,
    ChunkInfo,
    ConcatArgument,
    StorageCapabilities,
)
from chunkstore.domain.errors import (
    ChunkNotFoundError,
    InvalidChunkArgumentError,
    StorageClosedError,
    UnsupportedChunkOperationError,
)
from chunkstore.infra.observability.instrumentation import observe_operation
from chunkstore.infra.storage.client import StorageClient
from chunkstore.services.concat import MultipartConcatOrchestrator
from chunkstore.services.error_translation import translated_errors
from chunkstore.services.paths import ObjectPathResolver
from chunkstore.services.permissions import PermissionManager

logger = logging.getLogger("chunkstore.storage")

CONTENT_TYPE = "application/octet-stream"

CAPABILITIES = StorageCapabilities(
    supports_concat=True,
    supports_append=False,
    supports_truncation=False,
)


def _validate_read(
    chunk_name: str,
    from_offset: int,
    length: int,
    buffer: bytearray | memoryview,
    buffer_offset: int,
) -> None:
    if from_offset < 0 or length < 0 or buffer_offset < 0:
        raise InvalidChunkArgumentError(
            chunk_name,
            f"Offsets and length must not be negative (from_offset={from_offset}, "
            f"length={length}, buffer_offset={buffer_offset})",
            operation="read",
        )
    if buffer_offset + length > len(buffer):
        raise InvalidChunkArgumentError(
            chunk_name,
            f"Buffer of {len(buffer)} bytes cannot hold {length} bytes at offset {buffer_offset}",
            operation="read",
        )


def _read_into(
    stream: BinaryIO, buffer: bytearray | memoryview, buffer_offset: int, length: int
) -> int:
    """Fill ``buffer`` from ``stream``; stops early when the stream runs dry."""
    view = memoryview(buffer)
    total = 0
    while total < length:
        data = stream.read(length - total)
        if not data:
            break
        start = buffer_offset + total
        view[start : start + len(data)] = data
        total += len(data)
    return total


def _content_bytes(chunk_name: str, length: int, data: bytes | BinaryIO) -> bytes:
    if isinstance(data, (bytes, bytearray, memoryview)):
        payload = bytes(data[:length])
    else:
        payload = data.read(length)
    if len(payload) < length:
        raise InvalidChunkArgumentError(
            chunk_name,
            f"Expected {length} bytes of content, got {len(payload)}",
            operation="create_with_content",
        )
    return payload


class ObjectChunkStorage:
    """Chunk storage contract implemented on top of a :class:`StorageClient`.

    All calls block the calling thread for the duration of the remote call
    and none of them retry. The client is shared by every operation; it is
    released on :meth:`close` only when ``owns_client`` is set.
    """

    def __init__(
        self,
        client: StorageClient,
        config: StorageConfig,
        *,
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self._config = config
        self._bucket = config.S3_BUCKET
        self._paths = ObjectPathResolver(config.S3_PREFIX)
        self._concat = MultipartConcatOrchestrator(
            client, bucket=self._bucket, paths=self._paths
        )
        self._permissions = PermissionManager(
            client,
            bucket=self._bucket,
            paths=self._paths,
            scope=config.CHUNK_ACL_SCOPE,
        )
        self._owns_client = owns_client
        self._closed = False
        self._close_lock = threading.Lock()

    @property
    def capabilities(self) -> StorageCapabilities:
        return CAPABILITIES

    @property
    def config(self) -> StorageConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    def object_path(self, chunk_name: str) -> str:
        return self._paths.resolve(chunk_name)

    def _ensure_open(self, chunk_name: str) -> None:
        if self._closed:
            raise StorageClosedError(chunk_name, "Chunk storage is closed")

    def _check_exists(self, chunk_name: str, operation: str) -> bool:
        with translated_errors(chunk_name, operation):
            return self._client.object_exists(
                bucket=self._bucket, object_key=self._paths.resolve(chunk_name)
            )

    def exists(self, chunk_name: str) -> bool:
        self._ensure_open(chunk_name)
        with observe_operation("exists", chunk_name):
            return self._check_exists(chunk_name, "exists")

    def open_read(self, chunk_name: str) -> ChunkHandle:
        self._ensure_open(chunk_name)
        with observe_operation("open_read", chunk_name):
            if not self._check_exists(chunk_name, "open_read"):
                raise ChunkNotFoundError(
                    chunk_name, f"Chunk {chunk_name} not found - open_read.", operation="open_read"
                )
            return ChunkHandle.read_handle(chunk_name)

    def open_write(self, chunk_name: str) -> ChunkHandle:
        self._ensure_open(chunk_name)
        with observe_operation("open_write", chunk_name):
            if not self._check_exists(chunk_name, "open_write"):
                raise ChunkNotFoundError(
                    chunk_name, f"Chunk {chunk_name} not found - open_write.", operation="open_write"
                )
            return ChunkHandle.write_handle(chunk_name)

    def read(
        self,
        handle: ChunkHandle,
        from_offset: int,
        length: int,
        buffer: bytearray | memoryview,
        buffer_offset: int = 0,
    ) -> int:
        """Read ``length`` bytes at ``from_offset`` into ``buffer[buffer_offset:]``.

        Returns the number of bytes read, which is smaller than ``length``
        only when the object ends first.

        Raises:
            InvalidChunkArgumentError: For negative arguments, a buffer too
                small for the request, or a range past the end of the object.
            ChunkNotFoundError: If the chunk does not exist.
        """
        chunk_name = handle.chunk_name
        self._ensure_open(chunk_name)
        with observe_operation("read", chunk_name):
            _validate_read(chunk_name, from_offset, length, buffer, buffer_offset)
            if length == 0:
                return 0
            with translated_errors(chunk_name, "read"):
                stream = self._client.get_object_range(
                    bucket=self._bucket,
                    object_key=self._paths.resolve(chunk_name),
                    range_start=from_offset,
                    range_end=from_offset + length - 1,
                )
                with closing(stream):
                    return _read_into(stream, buffer, buffer_offset, length)

    def write(
        self, handle: ChunkHandle, offset: int, length: int, data: bytes | BinaryIO
    ) -> int:
        raise UnsupportedChunkOperationError(
            handle.chunk_name,
            "Object chunk storage does not support writing to already existing objects.",
            operation="write",
        )

    def create(self, chunk_name: str) -> ChunkHandle:
        raise UnsupportedChunkOperationError(
            chunk_name,
            "Object chunk storage does not support creating object without content.",
            operation="create",
        )

    def truncate(self, handle: ChunkHandle, offset: int) -> bool:
        raise UnsupportedChunkOperationError(
            handle.chunk_name,
            "Object chunk storage does not support truncation.",
            operation="truncate",
        )

    def create_with_content(
        self, chunk_name: str, length: int, data: bytes | BinaryIO
    ) -> ChunkHandle:
        """Create a chunk holding exactly ``length`` bytes taken from ``data``.

        Raises:
            InvalidChunkArgumentError: If ``length`` is not positive or
                ``data`` holds fewer than ``length`` bytes.
            ChunkAlreadyExistsError: If conditional creates are enabled and
                the object already exists.
        """
        self._ensure_open(chunk_name)
        with observe_operation("create_with_content", chunk_name):
            if length <= 0:
                raise InvalidChunkArgumentError(
                    chunk_name,
                    f"length must be greater than 0; got {length}",
                    operation="create_with_content",
                )
            payload = _content_bytes(chunk_name, length, data)
            with translated_errors(chunk_name, "create_with_content"):
                self._client.put_object(
                    bucket=self._bucket,
                    object_key=self._paths.resolve(chunk_name),
                    body=payload,
                    content_length=length,
                    content_type=CONTENT_TYPE,
                    if_none_match=self._config.S3_USE_NONE_MATCH,
                )
            logger.debug(
                "chunk_created chunk=%s length=%s",
                chunk_name,
                length,
                extra={"extra": {"chunk": chunk_name, "length": length}},
            )
            return ChunkHandle.write_handle(chunk_name)

    def delete(self, handle: ChunkHandle) -> None:
        chunk_name = handle.chunk_name
        self._ensure_open(chunk_name)
        with observe_operation("delete", chunk_name):
            try:
                with translated_errors(chunk_name, "delete"):
                    self._client.delete_object(
                        bucket=self._bucket, object_key=self._paths.resolve(chunk_name)
                    )
            except ChunkNotFoundError:
                logger.debug(
                    "chunk_delete_missing chunk=%s",
                    chunk_name,
                    extra={"extra": {"chunk": chunk_name}},
                )

    def get_info(self, chunk_name: str) -> ChunkInfo:
        self._ensure_open(chunk_name)
        with observe_operation("get_info", chunk_name):
            with translated_errors(chunk_name, "get_info"):
                head = self._client.head_object(
                    bucket=self._bucket, object_key=self._paths.resolve(chunk_name)
                )
            return ChunkInfo(name=chunk_name, length=head.size_bytes)

    def set_read_only(self, handle: ChunkHandle, is_read_only: bool) -> None:
        self._ensure_open(handle.chunk_name)
        with observe_operation("set_read_only", handle.chunk_name):
            self._permissions.set_read_only(handle, is_read_only)

    def concat(self, chunks: Sequence[ConcatArgument]) -> int:
        """Append ``chunks[1:]`` onto ``chunks[0]``; see :class:`MultipartConcatOrchestrator`."""
        target_name = chunks[0].name if chunks else ""
        self._ensure_open(target_name)
        with observe_operation("concat", target_name):
            return self._concat.concat(chunks)

    def close(self) -> None:
        """Release the client if owned. Safe to call more than once."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ObjectChunkStorage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
