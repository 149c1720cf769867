"""
Tests for the object store factory.
"""
from unittest.mock import patch

import pytest

from objectstore.config import ObjectStoreSettings
from objectstore.storage.factory import (
    create_object_store,
    create_object_store_from_settings,
    start_object_store,
)
from objectstore.storage.memory import InMemoryObjectStore
from objectstore.storage.s3_client import S3ObjectStore


class TestCreateObjectStore:
    """Tests for create_object_store()."""

    def test_default_is_s3(self, client_config):
        """Test the default backend is the S3 store, unstarted."""
        store = create_object_store(client_config)

        assert isinstance(store, S3ObjectStore)
        assert not store.is_started
        assert store.client is None

    def test_memory_backend(self, client_config, service):
        """Test the memory backend binds the given service."""
        store = create_object_store(client_config, backend="MEMORY", service=service)

        assert isinstance(store, InMemoryObjectStore)
        assert store.service is service

    def test_unknown_backend(self, client_config):
        """Test an unknown backend raises ValueError."""
        with pytest.raises(ValueError, match="Invalid object store backend"):
            create_object_store(client_config, backend="gcs")

    def test_instances_are_independent(self, client_config):
        """Test each call returns a new store."""
        assert create_object_store(client_config) is not create_object_store(client_config)


class TestStartObjectStore:
    """Tests for start_object_store()."""

    def test_returns_started_store(self, client_config, service):
        """Test the returned store is started and the bucket exists."""
        store = start_object_store(client_config, backend="memory", service=service)

        assert store.is_started
        assert service.has_bucket(client_config.bucket)

    def test_starts_s3_store(self, client_config, mock_s3):
        """Test the S3 store is started through its boto3 client."""
        with patch.object(S3ObjectStore, "_build_client", return_value=mock_s3):
            store = start_object_store(client_config)

        assert store.is_started
        mock_s3.head_bucket.assert_called_once_with(Bucket=client_config.bucket)


class TestCreateObjectStoreFromSettings:
    """Tests for create_object_store_from_settings()."""

    def make_settings(self, **overrides) -> ObjectStoreSettings:
        values = {
            "endpoint": "store.example.com",
            "access_key_id": "AKIDTEST00000001",
            "access_key_secret": "s3cr3t-Value-Never-Logged",
            "bucket": "assets-test",
            "backend": "memory",
            "log_level": "DEBUG",
            "service_name": "assets-api",
        }
        values.update(overrides)
        return ObjectStoreSettings(_env_file=None, **values)

    def test_uses_backend_and_logging_settings(self, service):
        """Test logging is configured and the configured backend is built."""
        settings = self.make_settings()

        with patch("objectstore.storage.factory.configure_logging") as mock_configure:
            store = create_object_store_from_settings(settings, service=service)

        mock_configure.assert_called_once_with("assets-api", "DEBUG")
        assert isinstance(store, InMemoryObjectStore)
        assert store.bucket == "assets-test"
        assert store.config.endpoint == "https://store.example.com"

        store.start()
        assert service.has_bucket("assets-test")

    def test_s3_backend(self):
        """Test the s3 backend yields an unstarted S3ObjectStore."""
        with patch("objectstore.storage.factory.configure_logging"):
            store = create_object_store_from_settings(self.make_settings(backend="s3"))

        assert isinstance(store, S3ObjectStore)
        assert not store.is_started

    def test_unconfigured_settings(self):
        """Test missing credentials raise ValueError."""
        settings = self.make_settings(endpoint=None)

        with patch("objectstore.storage.factory.configure_logging"):
            with pytest.raises(ValueError, match="not configured"):
                create_object_store_from_settings(settings)
