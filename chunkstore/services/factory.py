"""Wiring of chunk storage instances from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from chunkstore.common.config import StorageConfig, get_config
from chunkstore.domain.errors import UnsupportedChunkOperationError
from chunkstore.infra.storage.client import StorageClient
from chunkstore.infra.storage.s3_client import S3StorageClient
from chunkstore.services.chunk_storage import ObjectChunkStorage

logger = logging.getLogger("chunkstore.startup")

STORAGE_NAME = "OBS"
CHUNKED_STORAGE = "CHUNKED_STORAGE"
ROLLING_STORAGE = "ROLLING_STORAGE"


class StorageBackendNotConfiguredError(Exception):
    """Raised when the storage backend is not properly configured."""


@dataclass(frozen=True, slots=True)
class StorageFactoryInfo:
    """Name and layout a storage factory is registered under."""

    name: str
    storage_layout_type: str


class ChunkStorageFactory:
    """Builds chunk storage instances that own a fresh object-store client."""

    def __init__(self, config: StorageConfig | None = None) -> None:
        self._config = config or get_config()

    @property
    def config(self) -> StorageConfig:
        return self._config

    def create_client(self) -> StorageClient:
        if not self._config.S3_BUCKET:
            raise StorageBackendNotConfiguredError("S3_BUCKET is required")
        if not self._config.S3_ASSUME_ROLE_ENABLED and (
            not self._config.S3_ACCESS_KEY_ID or not self._config.S3_SECRET_ACCESS_KEY
        ):
            raise StorageBackendNotConfiguredError(
                "S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY are required"
            )
        return S3StorageClient(config=self._config)

    def create_chunk_storage(self) -> ObjectChunkStorage:
        storage = ObjectChunkStorage(
            self.create_client(), self._config, owns_client=True
        )
        logger.info(
            "chunk storage ready [event=chunk_storage_created] (bucket=%s, prefix=%s, acl_scope=%s)",
            self._config.S3_BUCKET,
            self._config.S3_PREFIX,
            self._config.CHUNK_ACL_SCOPE,
        )
        return storage


def get_storage_factories() -> tuple[StorageFactoryInfo, ...]:
    return (StorageFactoryInfo(name=STORAGE_NAME, storage_layout_type=CHUNKED_STORAGE),)


def create_storage_factory(
    info: StorageFactoryInfo, config: StorageConfig | None = None
) -> ChunkStorageFactory:
    if info.name != STORAGE_NAME:
        raise ValueError(f"Unknown storage factory: {info.name}")
    if info.storage_layout_type != CHUNKED_STORAGE:
        raise UnsupportedChunkOperationError(
            "",
            f"{STORAGE_NAME} storage only supports {CHUNKED_STORAGE}.",
            operation="create_storage_factory",
        )
    return ChunkStorageFactory(config)
