"""
Object store factory.
Builds the store for a config and hands ownership to the caller; there is
no process-wide instance.
"""
import logging
from typing import Optional

from objectstore.config import ClientConfig, ObjectStoreSettings
from objectstore.storage.base import ObjectStore
from objectstore.storage.memory import InMemoryObjectStore, InMemoryStorageService
from objectstore.storage.s3_client import S3ObjectStore
from objectstore.utils.logging import configure_logging

logger = logging.getLogger(__name__)

BACKENDS = ("s3", "memory")


def create_object_store(
    config: ClientConfig,
    backend: str = "s3",
    service: Optional[InMemoryStorageService] = None,
) -> ObjectStore:
    """
    Create an unstarted object store.

    Backend selection:
    - "s3" → S3ObjectStore (any S3-compatible endpoint)
    - "memory" → InMemoryObjectStore, bound to service when given

    Returns:
        ObjectStore instance (call start() before use)

    Raises:
        ValueError: If backend is unknown
    """
    backend_name = (backend or "s3").lower()

    if backend_name == "s3":
        logger.info(f"Using S3 object store at {config.endpoint}")
        return S3ObjectStore(config)

    elif backend_name == "memory":
        logger.info("Using in-memory object store")
        return InMemoryObjectStore(config, service=service)

    else:
        logger.error(f"Unknown object store backend: {backend_name}")
        raise ValueError(
            f"Invalid object store backend: {backend_name}. "
            f"Must be one of: {', '.join(repr(b) for b in BACKENDS)}"
        )


def start_object_store(
    config: ClientConfig,
    backend: str = "s3",
    service: Optional[InMemoryStorageService] = None,
) -> ObjectStore:
    """
    Create a store for config and start it.

    Raises:
        ValueError: If backend is unknown
        StoreConnectionError, AuthError, BucketProvisionError: From start()
    """
    return create_object_store(config, backend=backend, service=service).start()


def create_object_store_from_settings(
    settings: ObjectStoreSettings,
    service: Optional[InMemoryStorageService] = None,
) -> ObjectStore:
    """
    Configure logging and create an unstarted store from settings.

    Uses settings.service_name and settings.log_level for structured
    logging and settings.backend to pick the store.

    Raises:
        ValueError: If credentials are missing or backend is unknown
    """
    configure_logging(settings.service_name, settings.log_level)
    return create_object_store(
        settings.to_client_config(), backend=settings.backend, service=service
    )
