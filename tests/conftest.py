"""
Test configuration and fixtures.
No test talks to a real service: boto3 calls go through botocore's Stubber
or a MagicMock, and the in-memory service stands in for the rest.
"""
import pytest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError
from botocore.stub import Stubber

from objectstore.config import ClientConfig
from objectstore.storage.memory import InMemoryObjectStore, InMemoryStorageService
from objectstore.storage.s3_client import S3ObjectStore


ACCESS_KEY_ID = "AKIDTEST00000001"
ACCESS_KEY_SECRET = "s3cr3t-Value-Never-Logged"
BUCKET = "assets-test"


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def client_error(code: str, operation: str, status: int = 400, message: str = "") -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": message or code},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


@pytest.fixture
def make_client_error():
    """Factory for botocore ClientErrors."""
    return client_error


@pytest.fixture
def client_config() -> ClientConfig:
    """Config for the assets-test bucket on store.example.com."""
    return ClientConfig(
        endpoint="store.example.com",
        access_key_id=ACCESS_KEY_ID,
        access_key_secret=ACCESS_KEY_SECRET,
        bucket=BUCKET,
        reference_url="https://assets.example.com",
    )


@pytest.fixture
def boto_client(client_config: ClientConfig):
    """Real boto3 S3 client built the way S3ObjectStore builds it."""
    return S3ObjectStore(client_config)._build_client()


@pytest.fixture
def stubber(boto_client):
    """Stubber wrapping boto_client; fails the test if responses are left over."""
    with Stubber(boto_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def stubbed_store(client_config: ClientConfig, boto_client):
    """Unstarted S3ObjectStore whose client is the stubbed boto_client."""
    store = S3ObjectStore(client_config)
    with patch.object(S3ObjectStore, "_build_client", return_value=boto_client):
        yield store


@pytest.fixture
def mock_s3():
    """MagicMock standing in for the boto3 client."""
    return MagicMock(name="s3_client")


@pytest.fixture
def started_store(client_config: ClientConfig, mock_s3):
    """S3ObjectStore started against mock_s3 (bucket already present)."""
    with patch.object(S3ObjectStore, "_build_client", return_value=mock_s3):
        store = S3ObjectStore(client_config).start()
    mock_s3.reset_mock()
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(clock: FakeClock) -> InMemoryStorageService:
    """In-memory service with the test credentials registered."""
    svc = InMemoryStorageService(clock=clock)
    svc.register_credentials(ACCESS_KEY_ID, ACCESS_KEY_SECRET)
    return svc


@pytest.fixture
def memory_store(client_config: ClientConfig, service: InMemoryStorageService) -> InMemoryObjectStore:
    """Unstarted in-memory store bound to service."""
    return InMemoryObjectStore(client_config, service=service)
