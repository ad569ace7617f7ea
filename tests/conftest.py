"""
Pytest configuration and fixtures for sigv4auth tests.

The fixtures provide fixed credentials, a fixed signing clock and an
in-memory base transport that records every request it is handed, so
signing can be tested without any network access.

Usage:
    def test_something(recording_transport, static_provider, fixed_clock):
        transport = SigningTransport(
            recording_transport, "us-east-1", "execute-api",
            static_provider, clock=fixed_clock,
        )
        transport.handle_request(httpx.Request("GET", "https://example.com/"))
        assert recording_transport.requests
"""

import datetime
import os
import threading
from unittest.mock import MagicMock

import httpx
import pytest

from sigv4auth import Credentials, StaticCredentialsProvider


# Credential pair used in the AWS SigV4 documentation examples
EXAMPLE_ACCESS_KEY = "AKIDEXAMPLE"
EXAMPLE_SECRET_KEY = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"

# Timestamp used by the AWS SigV4 documentation examples
EXAMPLE_TIME = datetime.datetime(2015, 8, 30, 12, 36, 0, tzinfo=datetime.timezone.utc)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it receives."""

    def __init__(self, status_code: int = 200):
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()
        self.status_code = status_code
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        return httpx.Response(self.status_code, json={"path": request.url.path})


# ============================================================================
# Credential Fixtures
# ============================================================================

@pytest.fixture
def example_credentials() -> Credentials:
    """Long-term credentials from the AWS documentation."""
    return Credentials(access_key=EXAMPLE_ACCESS_KEY, secret_key=EXAMPLE_SECRET_KEY)


@pytest.fixture
def session_credentials() -> Credentials:
    """Temporary credentials carrying a session token."""
    return Credentials(
        access_key="ASIAEXAMPLE",
        secret_key=EXAMPLE_SECRET_KEY,
        session_token="FwoGZXIvYXdzEBYaDK...",
    )


@pytest.fixture
def static_provider() -> StaticCredentialsProvider:
    return StaticCredentialsProvider(EXAMPLE_ACCESS_KEY, EXAMPLE_SECRET_KEY)


@pytest.fixture
def mock_boto_session():
    """
    Create a mock boto3 session whose default chain yields fixed credentials.

    Returns:
        MagicMock standing in for boto3.Session()
    """
    mock_frozen_creds = MagicMock()
    mock_frozen_creds.access_key = "AKIACHAINEXAMPLE"
    mock_frozen_creds.secret_key = "chainsecret"
    mock_frozen_creds.token = None

    mock_creds = MagicMock()
    mock_creds.method = "env"
    mock_creds.get_frozen_credentials.return_value = mock_frozen_creds

    mock_session = MagicMock()
    mock_session.get_credentials.return_value = mock_creds
    return mock_session


# ============================================================================
# Transport Fixtures
# ============================================================================

@pytest.fixture
def fixed_clock():
    """Clock returning the AWS documentation timestamp."""
    return lambda: EXAMPLE_TIME


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires real AWS credentials)",
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to skip integration tests by default.

    Integration tests are skipped unless the --run-integration flag is passed.
    """
    if config.getoption("--run-integration", default=False):
        return

    skip_integration = pytest.mark.skip(
        reason="Integration tests skipped. Use --run-integration to run."
    )

    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires real AWS credentials)",
    )


@pytest.fixture
def sts_role_arn() -> str:
    """
    Get a role ARN to assume from the environment.

    Raises:
        pytest.skip: If SIGV4AUTH_TEST_ROLE_ARN is not set
    """
    arn = os.environ.get("SIGV4AUTH_TEST_ROLE_ARN")
    if not arn:
        pytest.skip("SIGV4AUTH_TEST_ROLE_ARN not set - skipping integration tests")
    return arn
