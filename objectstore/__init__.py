"""
Private object store client.

Starts a session against an S3-compatible endpoint, makes sure the bucket
exists, uploads objects with a private ACL and signs expiring GET URLs.

Usage:
    from objectstore import ClientConfig, start_object_store

    store = start_object_store(ClientConfig(
        endpoint="store.example.com",
        access_key_id="...",
        access_key_secret="...",
        bucket="assets",
    ))
    store.upload("report.pdf", data)
    url = store.get_signed_url("report.pdf", 60)
"""
from objectstore.config import ClientConfig, ObjectStoreSettings
from objectstore.exceptions import (
    AccessError,
    AuthError,
    BucketProvisionError,
    NotInitializedError,
    ObjectStoreError,
    SigningError,
    StoreConnectionError,
    WriteError,
)
from objectstore.storage import (
    InMemoryObjectStore,
    InMemoryStorageService,
    ObjectStore,
    S3ObjectStore,
    create_object_store,
    create_object_store_from_settings,
    start_object_store,
)

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "ObjectStoreSettings",
    "ObjectStore",
    "S3ObjectStore",
    "InMemoryObjectStore",
    "InMemoryStorageService",
    "create_object_store",
    "create_object_store_from_settings",
    "start_object_store",
    "ObjectStoreError",
    "StoreConnectionError",
    "AuthError",
    "BucketProvisionError",
    "NotInitializedError",
    "AccessError",
    "WriteError",
    "SigningError",
]
