"""
In-memory object storage service and store.

InMemoryStorageService stands in for the remote service: it keeps buckets
and objects in a dict, enforces ACLs, signs URLs with HMAC-SHA256 and
refuses expired or tampered signatures when a URL is fetched.
InMemoryObjectStore is the ObjectStore bound to it, for tests and local
development without a network.
"""
import hashlib
import hmac
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit

from objectstore.config import ClientConfig
from objectstore.exceptions import (
    AccessError,
    AuthError,
    BucketProvisionError,
    SigningError,
    StoreConnectionError,
    WriteError,
)
from objectstore.storage.base import ObjectStore
from objectstore.utils.logging import log_storage_request

logger = logging.getLogger(__name__)

URL_SCHEME = "memory"


class ServiceError(Exception):
    """Error returned by the in-memory service, with an S3-style code."""

    code = "InternalError"


class ServiceUnavailableError(ServiceError):
    code = "ServiceUnavailable"


class InvalidAccessKeyError(ServiceError):
    code = "InvalidAccessKeyId"


class AccessDeniedError(ServiceError):
    code = "AccessDenied"


class NoSuchBucketError(ServiceError):
    code = "NoSuchBucket"


class NoSuchKeyError(ServiceError):
    code = "NoSuchKey"


class BucketAlreadyExistsError(ServiceError):
    code = "BucketAlreadyExists"


class EntityTooLargeError(ServiceError):
    code = "EntityTooLarge"


@dataclass
class StoredObject:
    payload: bytes
    acl: str
    owner: str


@dataclass
class _Bucket:
    owner: str
    revoked: bool = False


class InMemoryStorageService:
    """
    Thread-safe in-memory stand-in for an S3-compatible service.

    Credentials must be registered before use. Objects written with any
    ACL other than public-read can only be fetched through a signed URL.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        max_object_bytes: Optional[int] = None,
    ):
        self._clock = clock
        self._lock = threading.Lock()
        self._credentials: Dict[str, str] = {}
        self._buckets: Dict[str, _Bucket] = {}
        self._objects: Dict[str, Dict[str, StoredObject]] = {}
        self.max_object_bytes = max_object_bytes
        self.reachable = True
        self.create_bucket_calls = 0

    def register_credentials(self, access_key_id: str, secret: str) -> None:
        with self._lock:
            self._credentials[access_key_id] = secret

    def revoke_bucket(self, bucket: str) -> None:
        """Deny every later request against bucket, even from its owner."""
        with self._lock:
            self._buckets[bucket].revoked = True

    def _authenticate(self, access_key_id: str, secret: str) -> None:
        if not self.reachable:
            raise ServiceUnavailableError("service unreachable")
        if self._credentials.get(access_key_id) != secret:
            raise InvalidAccessKeyError(f"access key {access_key_id} rejected")

    def _owned_bucket(self, access_key_id: str, bucket: str) -> _Bucket:
        entry = self._buckets.get(bucket)
        if entry is None:
            raise NoSuchBucketError(f"bucket {bucket} does not exist")
        if entry.revoked or entry.owner != access_key_id:
            raise AccessDeniedError(f"access to bucket {bucket} denied")
        return entry

    def bucket_exists(self, access_key_id: str, secret: str, bucket: str) -> bool:
        with self._lock:
            self._authenticate(access_key_id, secret)
            entry = self._buckets.get(bucket)
            if entry is None:
                return False
            if entry.owner != access_key_id:
                raise AccessDeniedError(f"bucket {bucket} belongs to another account")
            return True

    def create_bucket(self, access_key_id: str, secret: str, bucket: str) -> None:
        with self._lock:
            self._authenticate(access_key_id, secret)
            self.create_bucket_calls += 1
            entry = self._buckets.get(bucket)
            if entry is not None:
                if entry.owner == access_key_id:
                    return
                raise BucketAlreadyExistsError(f"bucket {bucket} already exists")
            self._buckets[bucket] = _Bucket(owner=access_key_id)
            self._objects[bucket] = {}

    def has_bucket(self, bucket: str) -> bool:
        with self._lock:
            return bucket in self._buckets

    def put_object(
        self,
        access_key_id: str,
        secret: str,
        bucket: str,
        key: str,
        payload: bytes,
        acl: str,
    ) -> None:
        with self._lock:
            self._authenticate(access_key_id, secret)
            self._owned_bucket(access_key_id, bucket)
            if self.max_object_bytes is not None and len(payload) > self.max_object_bytes:
                raise EntityTooLargeError(
                    f"object of {len(payload)} bytes exceeds {self.max_object_bytes}"
                )
            self._objects[bucket][key] = StoredObject(
                payload=bytes(payload), acl=acl, owner=access_key_id
            )

    def get_object_acl(self, bucket: str, key: str) -> str:
        with self._lock:
            try:
                return self._objects[bucket][key].acl
            except KeyError:
                raise NoSuchKeyError(f"{bucket}/{key} does not exist")

    def sign_url(
        self,
        access_key_id: str,
        secret: str,
        bucket: str,
        key: str,
        method: str,
        expires_in_seconds: int,
    ) -> str:
        with self._lock:
            self._authenticate(access_key_id, secret)
            self._owned_bucket(access_key_id, bucket)
            expires = int(self._clock()) + expires_in_seconds
        signature = _signature(secret, method, bucket, key, expires)
        query = urlencode({
            "AccessKeyId": access_key_id,
            "Expires": expires,
            "Signature": signature,
        })
        return f"{URL_SCHEME}://{bucket}/{quote(key)}?{query}"

    def unsigned_url(self, bucket: str, key: str) -> str:
        return f"{URL_SCHEME}://{bucket}/{quote(key)}"

    def fetch(self, url: str, method: str = "GET") -> bytes:
        """
        Serve url the way the remote service would serve an HTTP request.

        Raises:
            AccessDeniedError: Unsigned request for a private object, bad
                signature, or expired URL
            NoSuchKeyError: Object does not exist
        """
        parts = urlsplit(url)
        bucket = parts.netloc
        # Drop only the separator after the bucket; keys may start with "/"
        key = unquote(parts.path[1:])
        params = {name: values[0] for name, values in parse_qs(parts.query).items()}

        with self._lock:
            if not self.reachable:
                raise ServiceUnavailableError("service unreachable")
            entry = self._buckets.get(bucket)
            if entry is None:
                raise NoSuchBucketError(f"bucket {bucket} does not exist")
            stored = self._objects[bucket].get(key)

            if "Signature" not in params:
                if stored is None or stored.acl != "public-read":
                    raise AccessDeniedError("anonymous access denied")
                return stored.payload

            access_key_id = params.get("AccessKeyId", "")
            secret = self._credentials.get(access_key_id)
            try:
                expires = int(params.get("Expires", ""))
            except ValueError:
                raise AccessDeniedError("malformed expiry")
            if secret is None or entry.revoked:
                raise AccessDeniedError("access denied")
            expected = _signature(secret, method, bucket, key, expires)
            if not hmac.compare_digest(expected, params["Signature"]):
                raise AccessDeniedError("signature does not match")
            if self._clock() > expires:
                raise AccessDeniedError("request has expired")
            if stored is None:
                raise NoSuchKeyError(f"{bucket}/{key} does not exist")
            return stored.payload


def _signature(secret: str, method: str, bucket: str, key: str, expires: int) -> str:
    string_to_sign = f"{method}\n{bucket}\n{key}\n{expires}"
    return hmac.new(secret.encode(), string_to_sign.encode(), hashlib.sha256).hexdigest()


class InMemoryObjectStore(ObjectStore):
    """ObjectStore bound to an InMemoryStorageService."""

    def __init__(self, config: ClientConfig, service: Optional[InMemoryStorageService] = None):
        super().__init__(config)
        self._service = service or InMemoryStorageService()

    @property
    def service(self) -> InMemoryStorageService:
        return self._service

    def _credentials(self):
        return self._config.access_key_id, self._config.secret

    def start(self) -> "InMemoryObjectStore":
        try:
            exists = self._service.bucket_exists(*self._credentials(), self.bucket)
        except ServiceUnavailableError as e:
            self._fail(StoreConnectionError, "start", f"Endpoint unreachable: {e}", cause=e)
        except InvalidAccessKeyError as e:
            self._fail(AuthError, "start", f"Credentials rejected: {e}", cause=e)
        except ServiceError as e:
            self._fail(BucketProvisionError, "start", f"Failed to check bucket: {e}", cause=e)

        if not exists:
            try:
                self._service.create_bucket(*self._credentials(), self.bucket)
                logger.info(f"Created bucket {self.bucket}")
            except ServiceError as e:
                self._fail(BucketProvisionError, "start", f"Failed to create bucket: {e}", cause=e)

        self._started = True
        log_storage_request(logger, operation="start", bucket=self.bucket)
        return self

    def upload(self, key: str, payload: bytes) -> None:
        self._require_started("upload", key)
        self._check_key(key)

        try:
            self._service.put_object(
                *self._credentials(), self.bucket, key, payload, acl="private"
            )
        except (NoSuchBucketError, AccessDeniedError) as e:
            self._fail(AccessError, "upload", f"Failed to access bucket: {e}", key=key, cause=e)
        except ServiceError as e:
            self._fail(WriteError, "upload", f"Failed to put object: {e}", key=key, cause=e)

        log_storage_request(
            logger, operation="upload", bucket=self.bucket, key=key, size_bytes=len(payload)
        )

    def get_signed_url(self, key: str, expires_in_seconds: int) -> str:
        self._require_started("sign_url", key)
        self._check_key(key)
        self._check_expiration(key, expires_in_seconds)

        try:
            return self._service.sign_url(
                *self._credentials(), self.bucket, key, "GET", expires_in_seconds
            )
        except (NoSuchBucketError, AccessDeniedError) as e:
            self._fail(AccessError, "sign_url", f"Failed to access bucket: {e}", key=key, cause=e)
        except ServiceError as e:
            self._fail(SigningError, "sign_url", f"Failed to sign URL: {e}", key=key, cause=e)
