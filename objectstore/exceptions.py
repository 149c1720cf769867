"""
Error taxonomy for the object store client.

Every error raised by a store operation derives from ObjectStoreError and
carries the operation, bucket and key it failed on. The underlying SDK
error is always chained as __cause__.
"""
from typing import Optional


class ObjectStoreError(Exception):
    """Base class for all object store failures."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        bucket: Optional[str] = None,
        key: Optional[str] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.bucket = bucket
        self.key = key


class StoreConnectionError(ObjectStoreError):
    """Endpoint is malformed or unreachable."""


class AuthError(ObjectStoreError):
    """Credentials were missing or rejected by the service."""


class BucketProvisionError(ObjectStoreError):
    """Bucket existence check or creation failed."""


class NotInitializedError(ObjectStoreError):
    """Operation attempted before start() completed successfully."""


class AccessError(ObjectStoreError):
    """Bucket could not be resolved after the store was started."""


class WriteError(ObjectStoreError):
    """Object write failed."""


class SigningError(ObjectStoreError):
    """Signed URL could not be generated."""
