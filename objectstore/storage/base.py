"""
Base class for object stores.
All stores implement this interface so callers can swap the real service
for the in-memory one without knowing which is in use.
"""
import logging
from abc import ABC, abstractmethod
from typing import NoReturn, Optional, Type

from objectstore.config import ClientConfig
from objectstore.exceptions import NotInitializedError, ObjectStoreError, SigningError
from objectstore.utils.logging import log_storage_failure, redact_secret

logger = logging.getLogger(__name__)

# SigV4 presigned URLs are valid for at most seven days
MAX_SIGNED_URL_EXPIRATION = 7 * 24 * 60 * 60


class ObjectStore(ABC):
    """
    Abstract base class for a private object store bound to one bucket.

    Lifecycle is one-way: a store is created unstarted, and start() moves
    it to started. upload() and get_signed_url() raise NotInitializedError
    until then. A started store may be shared between threads.

    All stores must implement:
    - start(): open the session and make sure the bucket exists
    - upload(): write a payload under a key with a private ACL
    - get_signed_url(): build an expiring GET URL for a key
    """

    def __init__(self, config: ClientConfig):
        self._config = config
        self._started = False

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def bucket(self) -> str:
        """Get configured bucket name."""
        return self._config.bucket

    @property
    def is_started(self) -> bool:
        """Check if start() has completed successfully."""
        return self._started

    @abstractmethod
    def start(self) -> "ObjectStore":
        """
        Open the session and ensure the configured bucket exists.

        Creates the bucket when it is missing. Calling start() again on a
        started store repeats the check and succeeds.

        Returns:
            This store, now started

        Raises:
            StoreConnectionError: Endpoint malformed or unreachable
            AuthError: Credentials missing or rejected
            BucketProvisionError: Existence check or creation failed
        """
        pass

    @abstractmethod
    def upload(self, key: str, payload: bytes) -> None:
        """
        Store payload under key with a private ACL.

        An existing object under the same key is overwritten. No URL is
        returned; use get_signed_url() to grant read access.

        Raises:
            NotInitializedError: start() has not completed
            ValueError: key is empty
            AccessError: Bucket could not be resolved
            WriteError: The write itself failed
        """
        pass

    @abstractmethod
    def get_signed_url(self, key: str, expires_in_seconds: int) -> str:
        """
        Generate a GET URL for key valid for expires_in_seconds.

        The object is not required to exist. Each call signs a fresh URL.

        Raises:
            NotInitializedError: start() has not completed
            ValueError: key is empty
            AccessError: Bucket could not be resolved
            SigningError: Invalid duration or signing failed
        """
        pass

    def _require_started(self, operation: str, key: Optional[str] = None) -> None:
        if not self._started:
            self._fail(
                NotInitializedError,
                operation,
                f"Cannot {operation}: object store not started",
                key=key,
            )

    def _check_expiration(self, key: str, expires_in_seconds: int) -> None:
        valid = (
            isinstance(expires_in_seconds, int)
            and not isinstance(expires_in_seconds, bool)
            and 0 < expires_in_seconds <= MAX_SIGNED_URL_EXPIRATION
        )
        if not valid:
            self._fail(
                SigningError,
                "sign_url",
                f"Invalid expiration {expires_in_seconds!r}: must be 1..{MAX_SIGNED_URL_EXPIRATION} seconds",
                key=key,
            )

    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str) or not key:
            raise ValueError("Object key must be a non-empty string")

    def _fail(
        self,
        error_cls: Type[ObjectStoreError],
        operation: str,
        message: str,
        key: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> NoReturn:
        """Log the failure and raise error_cls chained to cause."""
        secret = self._config.secret
        message = redact_secret(message, secret)
        log_storage_failure(
            logger,
            operation=operation,
            error=message,
            bucket=self.bucket,
            key=key,
            secret=secret,
            error_type=error_cls.__name__,
        )
        raise error_cls(message, operation=operation, bucket=self.bucket, key=key) from cause
