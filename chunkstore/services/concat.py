"""Copy-based concatenation of chunks through a multipart upload.

The target chunk's object is rebuilt in place: every concat argument (the
target itself first) is copied as one part of a multipart upload on the
target's key, and completing the upload swaps in the concatenated object
atomically. A session that does not complete is aborted exactly once, so no
parts are left behind on the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from chunkstore.domain.chunks import ConcatArgument
from chunkstore.domain.errors import ChunkNotFoundError, InvalidChunkArgumentError
from chunkstore.infra.observability.metrics import CONCAT_BYTES, CONCAT_PARTS
from chunkstore.infra.storage.client import CompletedPart, StorageClient
from chunkstore.services.error_translation import translated_errors
from chunkstore.services.paths import ObjectPathResolver

logger = logging.getLogger("chunkstore.concat")

CONCAT_OPERATION = "concat"


@dataclass(slots=True)
class MultipartSession:
    """State of one in-flight concat; never outlives the call."""

    target_path: str
    upload_id: str
    parts: list[CompletedPart] = field(default_factory=list)
    completed: bool = False

    @property
    def next_part_number(self) -> int:
        return len(self.parts) + 1


def _validate_arguments(chunks: Sequence[ConcatArgument]) -> None:
    if not chunks:
        raise InvalidChunkArgumentError(
            "", "concat requires at least the target chunk", operation=CONCAT_OPERATION
        )
    for argument in chunks:
        if argument.length < 0:
            raise InvalidChunkArgumentError(
                argument.name,
                f"concat length must not be negative; got {argument.length}",
                operation=CONCAT_OPERATION,
            )


class MultipartConcatOrchestrator:
    """Drives the multipart session behind ``ObjectChunkStorage.concat``."""

    def __init__(
        self,
        client: StorageClient,
        *,
        bucket: str,
        paths: ObjectPathResolver,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._paths = paths

    def concat(self, chunks: Sequence[ConcatArgument]) -> int:
        """Append every argument after the first onto the first.

        Args:
            chunks: Target chunk followed by the sources, each with the
                number of bytes to copy from it.

        Returns:
            Total number of bytes copied into the new target object.

        Raises:
            ChunkNotFoundError: If the target does not exist.
            InvalidChunkArgumentError: If a declared length exceeds the
                target's stored length, or the arguments are malformed.
            ChunkStorageError: For any other store failure.
        """
        _validate_arguments(chunks)
        target = chunks[0]
        session: MultipartSession | None = None
        total_bytes = 0
        nothing_to_copy = False
        try:
            with translated_errors(target.name, CONCAT_OPERATION):
                session = self._initiate(target)
                self._ensure_target_exists(target)
                total_bytes = self._copy_parts(session, target, chunks)
                # an upload without parts cannot be completed; the abort below leaves the target as is
                if session.parts:
                    self._complete(session)
                else:
                    nothing_to_copy = True
        finally:
            if session is not None and not session.completed:
                self._abort(session, target.name, failed=not nothing_to_copy)

        CONCAT_BYTES.inc(total_bytes)
        CONCAT_PARTS.inc(len(session.parts))
        logger.info(
            "concat_completed chunk=%s parts=%s bytes=%s",
            target.name,
            len(session.parts),
            total_bytes,
            extra={
                "extra": {
                    "chunk": target.name,
                    "upload_id": session.upload_id,
                    "parts": len(session.parts),
                    "bytes": total_bytes,
                }
            },
        )
        return total_bytes

    def _initiate(self, target: ConcatArgument) -> MultipartSession:
        target_path = self._paths.resolve(target.name)
        upload = self._client.init_multipart_upload(
            bucket=self._bucket,
            object_key=target_path,
        )
        return MultipartSession(target_path=target_path, upload_id=upload.upload_id)

    def _ensure_target_exists(self, target: ConcatArgument) -> None:
        target_path = self._paths.resolve(target.name)
        if not self._client.object_exists(bucket=self._bucket, object_key=target_path):
            raise ChunkNotFoundError(
                target.name,
                f"Chunk {target.name} not found - concat target does not exist.",
                operation=CONCAT_OPERATION,
            )

    def _copy_parts(
        self,
        session: MultipartSession,
        target: ConcatArgument,
        chunks: Sequence[ConcatArgument],
    ) -> int:
        total_bytes = 0
        for argument in chunks:
            # empty chunks contribute no part and keep the numbering dense
            if argument.length == 0:
                continue

            head = self._client.head_object(
                bucket=self._bucket, object_key=session.target_path
            )
            if head.size_bytes < argument.length:
                raise InvalidChunkArgumentError(
                    target.name,
                    "Length of object should be equal or greater. "
                    f"Length on LTS={head.size_bytes} provided={argument.length}",
                    operation=CONCAT_OPERATION,
                )

            part = self._client.upload_part_copy(
                bucket=self._bucket,
                object_key=session.target_path,
                upload_id=session.upload_id,
                part_number=session.next_part_number,
                source_bucket=self._bucket,
                source_key=self._paths.resolve(argument.name),
                range_start=0,
                range_end=argument.length - 1,
            )
            session.parts.append(part)
            total_bytes += argument.length
        return total_bytes

    def _complete(self, session: MultipartSession) -> None:
        self._client.complete_multipart_upload(
            bucket=self._bucket,
            object_key=session.target_path,
            upload_id=session.upload_id,
            parts=session.parts,
        )
        session.completed = True

    def _abort(
        self, session: MultipartSession, chunk_name: str, *, failed: bool = True
    ) -> None:
        logger.log(
            logging.WARNING if failed else logging.DEBUG,
            "concat_aborted chunk=%s upload_id=%s parts=%s",
            chunk_name,
            session.upload_id,
            len(session.parts),
            extra={
                "extra": {
                    "chunk": chunk_name,
                    "upload_id": session.upload_id,
                    "parts": len(session.parts),
                }
            },
        )
        with translated_errors(chunk_name, CONCAT_OPERATION):
            self._client.abort_multipart_upload(
                bucket=self._bucket,
                object_key=session.target_path,
                upload_id=session.upload_id,
            )
