"""
Object store implementations.

S3ObjectStore talks to any S3-compatible service through boto3.
InMemoryObjectStore keeps everything in process for tests.
"""
from objectstore.storage.base import ObjectStore, MAX_SIGNED_URL_EXPIRATION
from objectstore.storage.factory import (
    create_object_store,
    create_object_store_from_settings,
    start_object_store,
)
from objectstore.storage.memory import InMemoryObjectStore, InMemoryStorageService
from objectstore.storage.s3_client import S3ObjectStore

__all__ = [
    "ObjectStore",
    "MAX_SIGNED_URL_EXPIRATION",
    "S3ObjectStore",
    "InMemoryObjectStore",
    "InMemoryStorageService",
    "create_object_store",
    "create_object_store_from_settings",
    "start_object_store",
]
