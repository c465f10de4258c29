"""Tests for chunk storage wiring."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock, patch

import pytest

from chunkstore.domain.errors import UnsupportedChunkOperationError
from chunkstore.infra.storage.s3_client import S3StorageClient
from chunkstore.services.chunk_storage import ObjectChunkStorage
from chunkstore.services.factory import (
    CHUNKED_STORAGE,
    ROLLING_STORAGE,
    ChunkStorageFactory,
    StorageBackendNotConfiguredError,
    StorageFactoryInfo,
    create_storage_factory,
    get_storage_factories,
)


@pytest.fixture
def mock_s3():
    mock_client = MagicMock()
    with patch.object(S3StorageClient, "_build_client", return_value=mock_client):
        yield mock_client


class TestChunkStorageFactory:
    def test_created_storage_owns_its_client(self, config, mock_s3):
        storage = ChunkStorageFactory(config).create_chunk_storage()

        assert isinstance(storage, ObjectChunkStorage)
        storage.close()
        storage.close()
        mock_s3.close.assert_called_once_with()

    def test_each_storage_gets_a_fresh_client(self, config, mock_s3):
        factory = ChunkStorageFactory(config)

        first = factory.create_client()
        second = factory.create_client()

        assert first is not second

    def test_requires_bucket(self, config, mock_s3):
        factory = ChunkStorageFactory(replace(config, S3_BUCKET=""))

        with pytest.raises(StorageBackendNotConfiguredError, match="S3_BUCKET"):
            factory.create_chunk_storage()

    def test_requires_credentials_without_assume_role(self, config, mock_s3):
        factory = ChunkStorageFactory(replace(config, S3_SECRET_ACCESS_KEY=""))

        with pytest.raises(StorageBackendNotConfiguredError, match="S3_ACCESS_KEY_ID"):
            factory.create_client()

    def test_defaults_to_environment_config(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("S3_BUCKET", "env-bucket")

        assert ChunkStorageFactory().config.S3_BUCKET == "env-bucket"


class TestFactoryCreation:
    def test_lists_chunked_layout(self):
        assert get_storage_factories() == (
            StorageFactoryInfo(name="OBS", storage_layout_type=CHUNKED_STORAGE),
        )

    def test_creates_factory_for_chunked_layout(self, config):
        factory = create_storage_factory(get_storage_factories()[0], config)

        assert factory.config is config

    def test_rejects_rolling_layout(self, config):
        with pytest.raises(UnsupportedChunkOperationError, match="CHUNKED_STORAGE"):
            create_storage_factory(StorageFactoryInfo("OBS", ROLLING_STORAGE), config)

    def test_rejects_unknown_name(self, config):
        with pytest.raises(ValueError, match="Unknown storage factory"):
            create_storage_factory(StorageFactoryInfo("S3", CHUNKED_STORAGE), config)
