from __future__ import annotations

import pytest

from chunkstore.common.config import StorageConfig, get_config
from chunkstore.services.chunk_storage import ObjectChunkStorage
from tests.services.mock_storage import BUCKET, PREFIX, MockStorageClient


@pytest.fixture(autouse=True)
def clear_config_cache():
    get_config.cache_clear()  # type: ignore[attr-defined]
    yield
    get_config.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def config() -> StorageConfig:
    return StorageConfig(
        S3_BUCKET=BUCKET,
        S3_PREFIX="segments",
        S3_ACCESS_KEY_ID="test-key",
        S3_SECRET_ACCESS_KEY="test-secret",
    )


@pytest.fixture()
def mock_storage() -> MockStorageClient:
    return MockStorageClient()


@pytest.fixture()
def chunk_storage(mock_storage, config) -> ObjectChunkStorage:
    return ObjectChunkStorage(mock_storage, config)


@pytest.fixture()
def seed(mock_storage):
    """Store ``data`` as the object behind ``chunk_name``."""

    def _seed(chunk_name: str, data: bytes) -> None:
        mock_storage.put(BUCKET, PREFIX + chunk_name, data)

    return _seed
