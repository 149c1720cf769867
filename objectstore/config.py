"""
Object store configuration.

ClientConfig is the immutable value the store is built from. It is always
supplied programmatically. ObjectStoreSettings is an optional loader for
embedding applications that keep their storage credentials in environment
variables or a .env file.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientConfig(BaseModel):
    """Connection settings for one bucket on one storage endpoint."""

    model_config = ConfigDict(frozen=True)

    endpoint: str
    access_key_id: str
    access_key_secret: SecretStr
    bucket: str
    reference_url: Optional[str] = None  # informational only, never used for access
    region: str = "us-east-1"

    @field_validator("endpoint")
    @classmethod
    def normalize_endpoint(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("endpoint must not be empty")
        # Bare hosts ("store.example.com") are accepted and default to https
        if "://" not in value:
            value = f"https://{value}"
        return value.rstrip("/")

    @field_validator("access_key_id", "bucket", "region")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("access_key_secret")
    @classmethod
    def secret_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("must not be empty")
        return value

    @property
    def secret(self) -> str:
        """Raw secret value, for handing to the SDK only."""
        return self.access_key_secret.get_secret_value()


class ObjectStoreSettings(BaseSettings):
    """Object store settings loaded from OBJECT_STORE_* environment variables."""

    # S3-compatible endpoint, e.g. https://oss-ap-southeast-5.aliyuncs.com
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = None
    access_key_secret: Optional[SecretStr] = None
    bucket: str = "assets"
    reference_url: Optional[str] = None
    region: str = "us-east-1"

    # "s3" for the real service, "memory" for local development and tests
    backend: str = "s3"

    # Logging
    log_level: str = "INFO"
    service_name: str = "objectstore"

    model_config = SettingsConfigDict(
        env_prefix="OBJECT_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_configured(self) -> bool:
        """Check that endpoint and credentials are all present."""
        return all([self.endpoint, self.access_key_id, self.access_key_secret])

    def to_client_config(self) -> ClientConfig:
        """
        Build the immutable ClientConfig from these settings.

        Raises:
            ValueError: If endpoint or credentials are missing
        """
        if not self.is_configured:
            raise ValueError(
                "Object store not configured. Set OBJECT_STORE_ENDPOINT, "
                "OBJECT_STORE_ACCESS_KEY_ID and OBJECT_STORE_ACCESS_KEY_SECRET."
            )
        return ClientConfig(
            endpoint=self.endpoint,
            access_key_id=self.access_key_id,
            access_key_secret=self.access_key_secret,
            bucket=self.bucket,
            reference_url=self.reference_url,
            region=self.region,
        )
