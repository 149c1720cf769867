"""
S3-compatible object store client.

Uses boto3 against any S3-compatible endpoint (Alibaba OSS, Cloudflare R2,
MinIO, AWS S3). Objects are always written with a private ACL; read access
is granted only through presigned GET URLs.
"""
import logging
import time
from typing import NoReturn

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
)

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

PRIVATE_ACL = "private"

# Error codes meaning the service rejected the credentials themselves
AUTH_ERROR_CODES = {
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "InvalidToken",
    "ExpiredToken",
    "InvalidSecurity",
}

# Error codes meaning the bucket cannot be reached with this session
BUCKET_ACCESS_ERROR_CODES = {
    "NoSuchBucket",
    "AccessDenied",
    "AllAccessDisabled",
    "403",
    "404",
}

BUCKET_MISSING_CODES = {"404", "NoSuchBucket", "NotFound"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3ObjectStore(ObjectStore):
    """
    Private object store backed by a boto3 S3 client.

    The boto3 client is created in start() and reused for every call;
    boto3 clients are safe to share between threads. botocore retries are
    disabled so every failure reaches the caller immediately.
    """

    def __init__(self, config: ClientConfig):
        super().__init__(config)
        self._client = None

    @property
    def client(self):
        """Underlying boto3 client, None until started."""
        return self._client

    def _build_client(self):
        return boto3.client(
            's3',
            endpoint_url=self._config.endpoint,
            aws_access_key_id=self._config.access_key_id,
            aws_secret_access_key=self._config.secret,
            region_name=self._config.region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'},
                retries={'max_attempts': 1, 'mode': 'standard'},
            )
        )

    def start(self) -> "S3ObjectStore":
        started_at = time.perf_counter()

        try:
            client = self._build_client()
        except ValueError as e:
            # botocore raises ValueError for endpoints it cannot parse
            self._fail(StoreConnectionError, "start", f"Invalid endpoint: {e}", cause=e)

        if self._bucket_exists(client):
            logger.debug(f"Bucket {self.bucket} already exists")
        else:
            self._create_bucket(client)

        self._client = client
        self._started = True
        log_storage_request(
            logger,
            operation="start",
            bucket=self.bucket,
            duration_ms=(time.perf_counter() - started_at) * 1000,
            endpoint=self._config.endpoint,
        )
        return self

    def _bucket_exists(self, client) -> bool:
        try:
            client.head_bucket(Bucket=self.bucket)
            return True
        except ClientError as e:
            code = _error_code(e)
            if code in BUCKET_MISSING_CODES:
                return False
            if code == "403":
                self._classify_forbidden(client, e)
            if code in AUTH_ERROR_CODES:
                self._fail(AuthError, "start", f"Credentials rejected: {e}", cause=e)
            self._fail(BucketProvisionError, "start", f"Failed to check bucket: {e}", cause=e)
        except (NoCredentialsError, PartialCredentialsError) as e:
            self._fail(AuthError, "start", f"Credentials missing: {e}", cause=e)
        except (EndpointConnectionError, ConnectTimeoutError) as e:
            self._fail(StoreConnectionError, "start", f"Endpoint unreachable: {e}", cause=e)
        except BotoCoreError as e:
            self._fail(BucketProvisionError, "start", f"Failed to check bucket: {e}", cause=e)

    def _classify_forbidden(self, client, head_error: ClientError) -> NoReturn:
        """
        Turn a bodiless HEAD 403 into AuthError or BucketProvisionError.

        HEAD responses carry no error code, so a GET on the bucket is sent
        once to learn whether the credentials or the bucket were refused.
        """
        try:
            client.get_bucket_location(Bucket=self.bucket)
        except ClientError as e:
            if _error_code(e) in AUTH_ERROR_CODES:
                self._fail(AuthError, "start", f"Credentials rejected: {e}", cause=e)
            self._fail(BucketProvisionError, "start", f"Failed to check bucket: {e}", cause=e)
        except (EndpointConnectionError, ConnectTimeoutError) as e:
            self._fail(StoreConnectionError, "start", f"Endpoint unreachable: {e}", cause=e)
        except BotoCoreError as e:
            self._fail(BucketProvisionError, "start", f"Failed to check bucket: {e}", cause=e)
        self._fail(
            BucketProvisionError, "start", f"Failed to check bucket: {head_error}", cause=head_error
        )

    def _create_bucket(self, client) -> None:
        params = {'Bucket': self.bucket}
        # us-east-1 is the only region that rejects an explicit LocationConstraint
        if self._config.region != "us-east-1":
            params['CreateBucketConfiguration'] = {
                'LocationConstraint': self._config.region,
            }

        try:
            client.create_bucket(**params)
            logger.info(f"Created bucket {self.bucket}")
        except ClientError as e:
            code = _error_code(e)
            if code == "BucketAlreadyOwnedByYou":
                # Another caller created it between our check and create
                logger.info(f"Bucket {self.bucket} created concurrently, continuing")
                return
            if code in AUTH_ERROR_CODES:
                self._fail(AuthError, "start", f"Credentials rejected: {e}", cause=e)
            self._fail(BucketProvisionError, "start", f"Failed to create bucket: {e}", cause=e)
        except (EndpointConnectionError, ConnectTimeoutError) as e:
            self._fail(StoreConnectionError, "start", f"Endpoint unreachable: {e}", cause=e)
        except BotoCoreError as e:
            self._fail(BucketProvisionError, "start", f"Failed to create bucket: {e}", cause=e)

    def upload(self, key: str, payload: bytes) -> None:
        self._require_started("upload", key)
        self._check_key(key)
        started_at = time.perf_counter()

        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=payload,
                ACL=PRIVATE_ACL,
            )
        except ClientError as e:
            if _error_code(e) in BUCKET_ACCESS_ERROR_CODES:
                self._fail(AccessError, "upload", f"Failed to access bucket: {e}", key=key, cause=e)
            self._fail(WriteError, "upload", f"Failed to put object: {e}", key=key, cause=e)
        except BotoCoreError as e:
            self._fail(WriteError, "upload", f"Failed to put object: {e}", key=key, cause=e)

        log_storage_request(
            logger,
            operation="upload",
            bucket=self.bucket,
            key=key,
            duration_ms=(time.perf_counter() - started_at) * 1000,
            size_bytes=len(payload),
        )

    def get_signed_url(self, key: str, expires_in_seconds: int) -> str:
        self._require_started("sign_url", key)
        self._check_key(key)
        self._check_expiration(key, expires_in_seconds)

        try:
            url = self._client.generate_presigned_url(
                ClientMethod='get_object',
                Params={
                    'Bucket': self.bucket,
                    'Key': key,
                },
                ExpiresIn=expires_in_seconds,
                HttpMethod='GET',
            )
        except ClientError as e:
            if _error_code(e) in BUCKET_ACCESS_ERROR_CODES:
                self._fail(AccessError, "sign_url", f"Failed to access bucket: {e}", key=key, cause=e)
            self._fail(SigningError, "sign_url", f"Failed to sign URL: {e}", key=key, cause=e)
        except BotoCoreError as e:
            self._fail(SigningError, "sign_url", f"Failed to sign URL: {e}", key=key, cause=e)

        logger.debug(f"Generated signed URL for {key} (expires in {expires_in_seconds}s)")
        return url
