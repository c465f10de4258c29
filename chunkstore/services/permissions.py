from __future__ import annotations

from chunkstore.domain.chunks import ChunkHandle
from chunkstore.infra.storage.client import StorageClient
from chunkstore.services.error_translation import translated_errors
from chunkstore.services.paths import ObjectPathResolver

PERMISSION_READ = "READ"
PERMISSION_FULL_CONTROL = "FULL_CONTROL"

SCOPE_BUCKET = "bucket"
SCOPE_OBJECT = "object"


class PermissionManager:
    """Switches chunks between read-only and read-write access.

    With the ``bucket`` scope the grant lands on the whole bucket's ACL, so
    sealing one chunk changes the access posture of every object in the
    bucket. The ``object`` scope only touches the chunk's own object.
    """

    def __init__(
        self,
        client: StorageClient,
        *,
        bucket: str,
        paths: ObjectPathResolver,
        scope: str = SCOPE_BUCKET,
    ) -> None:
        if scope not in (SCOPE_BUCKET, SCOPE_OBJECT):
            raise ValueError(f"Unsupported ACL scope: {scope}")
        self._client = client
        self._bucket = bucket
        self._paths = paths
        self._scope = scope

    @property
    def scope(self) -> str:
        return self._scope

    def set_read_only(self, handle: ChunkHandle, is_read_only: bool) -> None:
        permission = PERMISSION_READ if is_read_only else PERMISSION_FULL_CONTROL
        with translated_errors(handle.chunk_name, "set_read_only"):
            if self._scope == SCOPE_OBJECT:
                self._client.set_object_acl(
                    bucket=self._bucket,
                    object_key=self._paths.resolve(handle.chunk_name),
                    permission=permission,
                )
            else:
                self._client.set_bucket_acl(bucket=self._bucket, permission=permission)
