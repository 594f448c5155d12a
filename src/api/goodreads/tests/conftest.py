"""
Shared fixtures and utilities for Goodreads service tests.

Unit tests never touch the network: plain GETs are mocked on the Transport and
OAuth traffic goes through FakeSigner, an in-memory OAuthSigner.
"""

# Set environment to test mode FIRST, before any imports
import os

os.environ["ENVIRONMENT"] = "test"

from pathlib import Path
from unittest.mock import patch

import pytest

from api.goodreads.core import GoodreadsService
from api.goodreads.models import TokenPair

FIXTURES_DIR = Path(__file__).parent / "fixtures"

TEST_KEY = "test_goodreads_key"
TEST_SECRET = "test_goodreads_secret"
TEST_CALLBACK = "https://example.com/goodreads/callback"
EMPTY_RESPONSE = "<GoodreadsResponse><Request></Request></GoodreadsResponse>"


def pytest_configure(config):
    """Pytest hook to configure test environment before any tests run."""
    os.environ["ENVIRONMENT"] = "test"
    config.addinivalue_line("markers", "unit: fast tests without network access")
    config.addinivalue_line("markers", "integration: tests hitting the real Goodreads API")


def load_fixture(filename: str) -> str:
    """Load a canned XML response from the fixtures directory.

    Raises:
        FileNotFoundError: If fixture file doesn't exist
    """
    fixture_path = FIXTURES_DIR / filename
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")
    return fixture_path.read_text(encoding="utf-8")


class FakeSigner:
    """In-memory OAuthSigner recording every signed call."""

    def __init__(
        self,
        request_token_url,
        access_token_url,
        consumer_key,
        consumer_secret,
        version,
        authorize_callback,
        signature_method,
    ):
        self.request_token_url = request_token_url
        self.access_token_url = access_token_url
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.version = version
        self.authorize_callback = authorize_callback
        self.signature_method = signature_method

        self.request_tokens = [TokenPair(token="request-token", secret="request-secret")]
        self.access_token = TokenPair(token="access-token", secret="access-secret")
        self.request_token_error: Exception | None = None
        self.access_token_error: Exception | None = None
        self.response = EMPTY_RESPONSE
        self.access_token_requests: list[tuple[TokenPair, str | None]] = []
        self.calls: list[tuple[str, str, str, str]] = []

    async def get_request_token(self) -> TokenPair:
        if self.request_token_error:
            raise self.request_token_error
        if len(self.request_tokens) > 1:
            return self.request_tokens.pop(0)
        return self.request_tokens[0]

    async def get_access_token(self, request_token, verifier=None) -> TokenPair:
        self.access_token_requests.append((request_token, verifier))
        if self.access_token_error:
            raise self.access_token_error
        return self.access_token

    async def signed_get(self, url, token, token_secret) -> str:
        self.calls.append(("GET", url, token, token_secret))
        return self.response

    async def signed_post(self, url, token, token_secret) -> str:
        self.calls.append(("POST", url, token, token_secret))
        return self.response

    async def signed_delete(self, url, token, token_secret) -> str:
        self.calls.append(("DELETE", url, token, token_secret))
        return self.response


class SignerRecorder:
    """Signer factory that remembers the signers it created."""

    def __init__(self):
        self.created: list[FakeSigner] = []

    def __call__(self, *args) -> FakeSigner:
        signer = FakeSigner(*args)
        self.created.append(signer)
        return signer

    @property
    def last(self) -> FakeSigner:
        return self.created[-1]


@pytest.fixture
def credentials():
    return {"key": TEST_KEY, "secret": TEST_SECRET}


@pytest.fixture
def signer_factory():
    return SignerRecorder()


@pytest.fixture
def service(credentials, signer_factory):
    """Client without OAuth initialised."""
    return GoodreadsService(credentials, signer_factory=signer_factory)


@pytest.fixture
async def authenticated_service(credentials, signer_factory):
    """Client that completed the three-legged handshake against FakeSigner."""
    client = GoodreadsService(credentials, TEST_CALLBACK, signer_factory=signer_factory)
    await client.get_request_token()
    await client.get_access_token()
    return client


@pytest.fixture(autouse=True)
def mock_logger_warnings():
    """Silence expected warnings from the parser and session during tests."""
    with (
        patch("api.goodreads.parser.logger.warning") as parser_warning,
        patch("api.goodreads.auth.logger.warning") as auth_warning,
    ):
        yield {"parser_warning": parser_warning, "auth_warning": auth_warning}
