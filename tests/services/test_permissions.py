"""Tests for read-only toggling."""

from __future__ import annotations

from dataclasses import replace

import pytest

from chunkstore.domain.chunks import ChunkHandle
from chunkstore.domain.errors import ChunkAccessDeniedError
from chunkstore.infra.storage.client import StorageError
from chunkstore.services.chunk_storage import ObjectChunkStorage
from chunkstore.services.paths import ObjectPathResolver
from chunkstore.services.permissions import (
    PERMISSION_FULL_CONTROL,
    PERMISSION_READ,
    PermissionManager,
)
from tests.services.mock_storage import BUCKET, PREFIX


class TestBucketScope:
    def test_read_only_grants_read_on_bucket(self, chunk_storage, mock_storage):
        chunk_storage.set_read_only(ChunkHandle.write_handle("seg-1"), True)

        assert mock_storage.bucket_acls == {BUCKET: PERMISSION_READ}
        assert mock_storage.object_acls == {}

    def test_writable_grants_full_control(self, chunk_storage, mock_storage):
        chunk_storage.set_read_only(ChunkHandle.write_handle("seg-1"), False)

        assert mock_storage.bucket_acls == {BUCKET: PERMISSION_FULL_CONTROL}

    def test_repeated_calls_are_safe(self, chunk_storage, mock_storage):
        handle = ChunkHandle.write_handle("seg-1")

        chunk_storage.set_read_only(handle, True)
        chunk_storage.set_read_only(handle, True)

        assert mock_storage.bucket_acls == {BUCKET: PERMISSION_READ}
        assert mock_storage.call_count("set_bucket_acl") == 2

    def test_failure_is_translated(self, chunk_storage, mock_storage):
        mock_storage.fail("set_bucket_acl", StorageError("no", code="AccessDenied"))

        with pytest.raises(ChunkAccessDeniedError, match="set_read_only"):
            chunk_storage.set_read_only(ChunkHandle.write_handle("seg-1"), True)


class TestObjectScope:
    def test_grant_lands_on_chunk_object(self, mock_storage, config):
        storage = ObjectChunkStorage(mock_storage, replace(config, CHUNK_ACL_SCOPE="object"))

        storage.set_read_only(ChunkHandle.write_handle("seg-1"), True)

        assert mock_storage.object_acls == {f"{BUCKET}/{PREFIX}seg-1": PERMISSION_READ}
        assert mock_storage.bucket_acls == {}


def test_rejects_unknown_scope(mock_storage):
    with pytest.raises(ValueError, match="Unsupported ACL scope"):
        PermissionManager(
            mock_storage, bucket=BUCKET, paths=ObjectPathResolver(PREFIX), scope="tenant"
        )
