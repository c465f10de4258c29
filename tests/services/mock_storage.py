"""Mock storage client for testing chunk operations."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Sequence

from chunkstore.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    StorageError,
)

BUCKET = "chunks"
PREFIX = "segments/"


def _not_found(bucket: str, object_key: str) -> StorageError:
    return StorageError(
        f"Object {bucket}/{object_key} not found", code="NoSuchKey", status=404
    )


@dataclass
class MockStorageClient:
    """In-memory mock of StorageClient for testing.

    Objects are kept as ``bytes`` under ``"bucket/key"``. ``fail`` arms a
    method to raise on one of its upcoming calls.
    """

    objects: dict[str, bytes] = field(default_factory=dict)
    uploads: dict[str, dict[str, Any]] = field(default_factory=dict)
    bucket_acls: dict[str, str] = field(default_factory=dict)
    object_acls: dict[str, str] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)
    close_count: int = 0
    last_content_type: str | None = None
    _failures: dict[str, list[Any]] = field(default_factory=dict)
    _upload_counter: int = field(default=0)

    # -- test helpers -------------------------------------------------------

    def put(self, bucket: str, object_key: str, data: bytes) -> None:
        """Test helper to seed an object."""
        self.objects[f"{bucket}/{object_key}"] = bytes(data)

    def get(self, bucket: str, object_key: str) -> bytes | None:
        return self.objects.get(f"{bucket}/{object_key}")

    def fail(self, method: str, error: Exception, *, skip: int = 0) -> None:
        """Raise ``error`` from ``method`` after letting ``skip`` calls through."""
        self._failures[method] = [skip, error]

    def call_count(self, method: str) -> int:
        return self.calls.count(method)

    def _record(self, method: str) -> None:
        self.calls.append(method)
        failure = self._failures.get(method)
        if failure is None:
            return
        if failure[0] > 0:
            failure[0] -= 1
            return
        del self._failures[method]
        raise failure[1]

    # -- StorageClient ------------------------------------------------------

    def get_object_range(
        self,
        *,
        bucket: str,
        object_key: str,
        range_start: int,
        range_end: int,
    ) -> BinaryIO:
        self._record("get_object_range")
        data = self.get(bucket, object_key)
        if data is None:
            raise _not_found(bucket, object_key)
        if range_start >= len(data):
            raise StorageError(
                "The requested range is not satisfiable", code="InvalidRange", status=416
            )
        return io.BytesIO(data[range_start : range_end + 1])

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        body: bytes | BinaryIO,
        content_length: int,
        content_type: str,
        if_none_match: bool = False,
    ) -> str | None:
        self._record("put_object")
        if if_none_match and self.get(bucket, object_key) is not None:
            raise StorageError(
                "At least one of the pre-conditions you specified did not hold",
                code="PreconditionFailed",
                status=412,
            )
        payload = body if isinstance(body, bytes) else body.read()
        self.put(bucket, object_key, payload[:content_length])
        self.last_content_type = content_type
        return f"mock-etag-{object_key}"

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        self._record("head_object")
        data = self.get(bucket, object_key)
        if data is None:
            raise StorageError("Not Found", code="404", status=404)
        return ObjectHead(
            size_bytes=len(data),
            etag=f"mock-etag-{object_key}",
            content_type="application/octet-stream",
        )

    def object_exists(self, *, bucket: str, object_key: str) -> bool:
        self._record("object_exists")
        return self.get(bucket, object_key) is not None

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        self._record("delete_object")
        self.objects.pop(f"{bucket}/{object_key}", None)

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> MultipartUpload:
        self._record("init_multipart_upload")
        self._upload_counter += 1
        upload_id = f"mock-upload-{self._upload_counter}"
        self.uploads[upload_id] = {
            "bucket": bucket,
            "object_key": object_key,
            "parts": {},
            "completed": False,
            "aborted": False,
        }
        return MultipartUpload(upload_id=upload_id, bucket=bucket, object_key=object_key)

    def upload_part_copy(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        part_number: int,
        source_bucket: str,
        source_key: str,
        range_start: int,
        range_end: int,
    ) -> CompletedPart:
        self._record("upload_part_copy")
        upload = self._active_upload(upload_id)
        source = self.get(source_bucket, source_key)
        if source is None:
            raise _not_found(source_bucket, source_key)
        if range_end >= len(source):
            raise StorageError(
                "The requested range is not satisfiable", code="InvalidRange", status=416
            )
        etag = f"etag-{upload_id}-{part_number}"
        upload["parts"][part_number] = (etag, source[range_start : range_end + 1])
        return CompletedPart(part_number=part_number, etag=etag)

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        self._record("complete_multipart_upload")
        upload = self._active_upload(upload_id)
        if not parts:
            raise StorageError("No parts supplied", code="MalformedXML", status=400)
        numbers = [p.part_number for p in parts]
        if numbers != sorted(numbers):
            raise StorageError("Parts out of order", code="InvalidPartOrder", status=400)
        content = bytearray()
        for part in parts:
            etag, data = upload["parts"].get(part.part_number, (None, b""))
            if etag != part.etag:
                raise StorageError("Unknown part", code="InvalidPart", status=400)
            content.extend(data)
        upload["completed"] = True
        upload["completed_parts"] = list(parts)
        self.put(bucket, object_key, bytes(content))

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        self._record("abort_multipart_upload")
        if upload_id not in self.uploads:
            raise StorageError("Upload not found", code="NoSuchUpload", status=404)
        self.uploads[upload_id]["aborted"] = True
        self.uploads[upload_id]["parts"] = {}

    def set_bucket_acl(self, *, bucket: str, permission: str) -> None:
        self._record("set_bucket_acl")
        self.bucket_acls[bucket] = permission

    def set_object_acl(self, *, bucket: str, object_key: str, permission: str) -> None:
        self._record("set_object_acl")
        self.object_acls[f"{bucket}/{object_key}"] = permission

    def close(self) -> None:
        self.close_count += 1

    def _active_upload(self, upload_id: str) -> dict[str, Any]:
        upload = self.uploads.get(upload_id)
        if upload is None or upload["aborted"] or upload["completed"]:
            raise StorageError("Upload not found", code="NoSuchUpload", status=404)
        return upload
