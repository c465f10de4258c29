"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, Huawei OBS and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, BinaryIO, Sequence

from chunkstore.infra.storage.client import (
    CompletedPart,
    MultipartUpload,
    ObjectHead,
    StorageError,
)

if TYPE_CHECKING:
    from chunkstore.common.config import StorageConfig

logger = logging.getLogger("chunkstore.startup")

ALL_USERS_GRANTEE = 'uri="http://acs.amazonaws.com/groups/global/AllUsers"'
GRANT_PARAMS = {
    "READ": "GrantRead",
    "FULL_CONTROL": "GrantFullControl",
}
NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
ROLE_SESSION_NAME = "chunkstore"


def _error_details(exc: Exception) -> tuple[str | None, int | None]:
    """Extract the provider error code and HTTP status from a botocore error."""
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None, None
    code = response.get("Error", {}).get("Code")
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return (
        str(code) if code is not None else None,
        int(status) if status is not None else None,
    )


def _storage_error(message: str, exc: Exception) -> StorageError:
    code, status = _error_details(exc)
    return StorageError(f"{message}: {exc}", code=code, status=status)


def _format_range(range_start: int, range_end: int) -> str:
    return f"bytes={int(range_start)}-{int(range_end)}"


class S3StorageClient:
    """S3-compatible object storage client.

    Uses boto3 for all storage operations. A single instance is meant to be
    shared by every operation of one chunk storage adapter.
    """

    def __init__(self, *, config: "StorageConfig") -> None:
        """Initialize the S3 client from configuration.

        Args:
            config: Storage configuration with endpoint, credentials and region.

        Raises:
            StorageError: If boto3 is not installed or role assumption fails.
        """
        self._config = config
        self._client = self._build_client(config)

    @staticmethod
    def _build_client(config: "StorageConfig") -> Any:
        """Create a boto3 S3 client from configuration."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = (config.S3_ADDRESSING_STYLE or "path").strip().lower()
        client_config = Config(
            s3={"addressing_style": addressing_style},
            connect_timeout=config.S3_CONNECT_TIMEOUT,
            read_timeout=config.S3_READ_TIMEOUT,
            # retries are the caller's business
            retries={"max_attempts": 1, "mode": "standard"},
        )

        credentials: dict[str, Any] = {
            "aws_access_key_id": config.S3_ACCESS_KEY_ID or None,
            "aws_secret_access_key": config.S3_SECRET_ACCESS_KEY or None,
        }
        if config.S3_ASSUME_ROLE_ENABLED:
            credentials = S3StorageClient._assume_role(boto3, config, credentials)

        logger.info(
            "building object store client [event=client_build] (endpoint=%s, region=%s, config_uri=%s)",
            config.endpoint_url or "<default>",
            config.S3_REGION,
            config.S3_CONFIG_URI or "-",
        )
        return boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            region_name=config.S3_REGION,
            use_ssl=bool(config.S3_USE_SSL),
            config=client_config,
            **credentials,
        )

    @staticmethod
    def _assume_role(
        boto3_module: Any, config: "StorageConfig", credentials: dict[str, Any]
    ) -> dict[str, Any]:
        """Exchange the static keys for temporary STS credentials."""
        try:
            sts = boto3_module.client(
                "sts",
                region_name=config.S3_REGION,
                **credentials,
            )
            response = sts.assume_role(
                RoleArn=config.S3_ROLE,
                RoleSessionName=ROLE_SESSION_NAME,
            )
        except Exception as exc:
            raise _storage_error("Failed to assume role", exc) from exc

        issued = response.get("Credentials") or {}
        if not issued.get("AccessKeyId"):
            raise StorageError("STS response missing Credentials")
        return {
            "aws_access_key_id": issued["AccessKeyId"],
            "aws_secret_access_key": issued["SecretAccessKey"],
            "aws_session_token": issued.get("SessionToken"),
        }

    def get_object_range(
        self,
        *,
        bucket: str,
        object_key: str,
        range_start: int,
        range_end: int,
    ) -> BinaryIO:
        """Open a stream over the inclusive byte range of an object."""
        try:
            response = self._client.get_object(
                Bucket=bucket,
                Key=object_key,
                Range=_format_range(range_start, range_end),
            )
        except Exception as exc:
            raise _storage_error("Failed to get object", exc) from exc

        body = response.get("Body")
        if body is None:
            raise StorageError("S3 response missing Body")
        return body

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
        """Upload a whole object."""
        params: dict[str, Any] = {
            "Bucket": bucket,
            "Key": object_key,
            "Body": body,
            "ContentLength": int(content_length),
            "ContentType": content_type,
        }
        if if_none_match:
            params["IfNoneMatch"] = "*"

        try:
            response = self._client.put_object(**params)
        except Exception as exc:
            raise _storage_error("Failed to put object", exc) from exc
        return response.get("ETag")

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content."""
        try:
            response = self._client.head_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _storage_error("Failed to get object metadata", exc) from exc

        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
        )

    def object_exists(self, *, bucket: str, object_key: str) -> bool:
        """Return whether the object exists, treating 404 as ``False``."""
        try:
            self._client.head_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            code, status = _error_details(exc)
            if code in NOT_FOUND_CODES or status == 404:
                return False
            raise StorageError(
                f"Failed to check object existence: {exc}", code=code, status=status
            ) from exc
        return True

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        try:
            self._client.delete_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _storage_error("Failed to delete object", exc) from exc

    def init_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> MultipartUpload:
        """Initialize a multipart upload session."""
        params: dict[str, Any] = {"Bucket": bucket, "Key": object_key}
        if content_type:
            params["ContentType"] = content_type
        if metadata:
            params["Metadata"] = metadata

        try:
            response = self._client.create_multipart_upload(**params)
        except Exception as exc:
            raise _storage_error("Failed to create multipart upload", exc) from exc

        upload_id = response.get("UploadId")
        if not upload_id:
            raise StorageError("S3 response missing UploadId")

        return MultipartUpload(
            upload_id=str(upload_id),
            bucket=bucket,
            object_key=object_key,
        )

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
        """Copy a byte range of an existing object into a multipart upload."""
        try:
            response = self._client.upload_part_copy(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                PartNumber=int(part_number),
                CopySource={"Bucket": source_bucket, "Key": source_key},
                CopySourceRange=_format_range(range_start, range_end),
            )
        except Exception as exc:
            raise _storage_error("Failed to copy part", exc) from exc

        etag = (response.get("CopyPartResult") or {}).get("ETag")
        if not etag:
            raise StorageError("S3 response missing CopyPartResult ETag")
        return CompletedPart(part_number=int(part_number), etag=str(etag))

    def complete_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> None:
        """Complete a multipart upload by combining all parts."""
        multipart_payload = {
            "Parts": [
                {"ETag": part.etag, "PartNumber": int(part.part_number)}
                for part in sorted(parts, key=lambda p: p.part_number)
            ]
        }

        try:
            self._client.complete_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
                MultipartUpload=multipart_payload,
            )
        except Exception as exc:
            raise _storage_error("Failed to complete multipart upload", exc) from exc

    def abort_multipart_upload(
        self,
        *,
        bucket: str,
        object_key: str,
        upload_id: str,
    ) -> None:
        """Abort a multipart upload and clean up uploaded parts."""
        try:
            self._client.abort_multipart_upload(
                Bucket=bucket,
                Key=object_key,
                UploadId=upload_id,
            )
        except Exception as exc:
            raise _storage_error("Failed to abort multipart upload", exc) from exc

    def set_bucket_acl(self, *, bucket: str, permission: str) -> None:
        """Grant ``permission`` to all users on a bucket."""
        grant = self._grant_param(permission)
        try:
            self._client.put_bucket_acl(Bucket=bucket, **{grant: ALL_USERS_GRANTEE})
        except Exception as exc:
            raise _storage_error("Failed to set bucket ACL", exc) from exc

    def set_object_acl(self, *, bucket: str, object_key: str, permission: str) -> None:
        """Grant ``permission`` to all users on a single object."""
        grant = self._grant_param(permission)
        try:
            self._client.put_object_acl(
                Bucket=bucket, Key=object_key, **{grant: ALL_USERS_GRANTEE}
            )
        except Exception as exc:
            raise _storage_error("Failed to set object ACL", exc) from exc

    @staticmethod
    def _grant_param(permission: str) -> str:
        try:
            return GRANT_PARAMS[permission]
        except KeyError:
            raise ValueError(f"Unsupported ACL permission: {permission}") from None

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()
