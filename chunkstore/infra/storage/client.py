"""Storage client protocol and data types.

This module defines the narrow interface the chunk storage adapter uses to
talk to an object store: ranged reads, uploads, metadata, copy-based
multipart uploads and access control lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Protocol, Sequence


class StorageError(RuntimeError):
    """Raised when object storage operations fail.

    ``code`` carries the provider error code (``NoSuchKey``, ``InvalidRange``...)
    and ``status`` the HTTP status of the failed response, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


@dataclass(frozen=True, slots=True)
class CompletedPart:
    """Represents a completed part in a multipart upload."""

    part_number: int
    etag: str


@dataclass(frozen=True, slots=True)
class MultipartUpload:
    """Result of initiating a multipart upload."""

    upload_id: str
    bucket: str
    object_key: str


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Implementations raise :class:`StorageError` for every failed call.
    """

    def get_object_range(
        self,
        *,
        bucket: str,
        object_key: str,
        range_start: int,
        range_end: int,
    ) -> BinaryIO:
        """Open a stream over the inclusive byte range of an object.

        Args:
            bucket: Source bucket name.
            object_key: Object key (path) in the bucket.
            range_start: First byte offset.
            range_end: Last byte offset (inclusive).

        Returns:
            Readable stream; the caller closes it.

        Raises:
            StorageError: If the object is missing or the range is unsatisfiable.
        """
        ...

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
        """Upload a whole object.

        Args:
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            body: Object content.
            content_length: Number of bytes to upload.
            content_type: MIME type of the object.
            if_none_match: Fail with ``PreconditionFailed`` if the key exists.

        Returns:
            ETag of the new object, when the store reports one.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content.

        Raises:
            StorageError: If the object doesn't exist or operation fails.
        """
        ...

    def object_exists(self, *, bucket: str, object_key: str) -> bool:
        """Return whether the object exists.

        Raises:
            StorageError: For failures other than "not found".
        """
        ...

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session.

        Returns:
            MultipartUpload containing the upload_id for subsequent operations.

        Raises:
            StorageError: If the operation fails.
        """
        ...

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
        """Copy a byte range of an existing object into a multipart upload.

        Args:
            bucket: Destination bucket name.
            object_key: Destination object key.
            upload_id: Multipart upload ID from init_multipart_upload.
            part_number: Part number (1-based, max 10000).
            source_bucket: Bucket of the object to copy from.
            source_key: Key of the object to copy from.
            range_start: First source byte offset.
            range_end: Last source byte offset (inclusive).

        Returns:
            CompletedPart with the part's ETag.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Complete a multipart upload by combining all parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def set_bucket_acl(self, *, bucket: str, permission: str) -> None:
        """Grant ``permission`` (``READ`` or ``FULL_CONTROL``) to all users on a bucket.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def set_object_acl(self, *, bucket: str, object_key: str, permission: str) -> None:
        """Grant ``permission`` to all users on a single object.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def close(self) -> None:
        """Release network resources held by the client."""
        ...
