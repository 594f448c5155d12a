"""
Unit tests for Goodreads credential lookup and the OAuth session.
"""

import asyncio
from unittest.mock import MagicMock, patch

import aiohttp
import pytest

from api.goodreads.auth import GoodreadsAuth, OAuthSession
from api.goodreads.errors import (
    CredentialsError,
    GoodreadsApiError,
    NotAuthenticatedError,
    OAuthProviderError,
    OAuthSessionError,
    TokenRequestError,
)
from api.goodreads.models import OAuthState, TokenPair
from api.goodreads.tests.conftest import TEST_CALLBACK, TEST_KEY, TEST_SECRET

pytestmark = pytest.mark.unit


class TestGoodreadsAuth:
    """Tests for GoodreadsAuth credential resolution."""

    def test_resolves_from_environment(self, monkeypatch):
        monkeypatch.setenv("GOODREADS_API_KEY", "env-key")
        monkeypatch.setenv("GOODREADS_API_SECRET", "env-secret")

        credentials = GoodreadsAuth().get_credentials(load_env_file=False)

        assert credentials.key == "env-key"
        assert credentials.secret == "env-secret"

    def test_falls_back_to_secret_param(self, monkeypatch):
        monkeypatch.delenv("GOODREADS_API_KEY", raising=False)
        monkeypatch.delenv("GOODREADS_API_SECRET", raising=False)
        key_secret = MagicMock(value="secret-key")
        secret_secret = MagicMock(value="secret-secret")

        with (
            patch("api.goodreads.auth.GOODREADS_API_KEY", key_secret),
            patch("api.goodreads.auth.GOODREADS_API_SECRET", secret_secret),
        ):
            credentials = GoodreadsAuth().get_credentials(load_env_file=False)

        assert credentials.key == "secret-key"
        assert credentials.secret == "secret-secret"

    def test_missing_credentials_raise(self, monkeypatch):
        monkeypatch.delenv("GOODREADS_API_KEY", raising=False)
        monkeypatch.delenv("GOODREADS_API_SECRET", raising=False)

        with (
            patch("api.goodreads.auth.GOODREADS_API_KEY", MagicMock(value=None)),
            patch("api.goodreads.auth.GOODREADS_API_SECRET", MagicMock(value=None)),
            pytest.raises(CredentialsError, match="Please pass your API key and secret."),
        ):
            GoodreadsAuth().get_credentials(load_env_file=False)

    def test_loads_env_file_by_default(self, monkeypatch):
        monkeypatch.setenv("GOODREADS_API_KEY", "env-key")
        monkeypatch.setenv("GOODREADS_API_SECRET", "env-secret")

        with patch("api.goodreads.auth.load_env") as mock_load_env:
            GoodreadsAuth().get_credentials()

        mock_load_env.assert_called_once()

    def test_key_status_hides_values(self, monkeypatch):
        monkeypatch.setenv("GOODREADS_API_KEY", "abcdef")
        monkeypatch.setenv("GOODREADS_API_SECRET", "secret")
        auth = GoodreadsAuth()
        auth.get_credentials(load_env_file=False)

        assert auth.get_key_status() == {"has_key": True, "has_secret": True, "key_prefix": "abcd"}

    def test_callback_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("GOODREADS_CALLBACK_URL", TEST_CALLBACK)

        assert GoodreadsAuth().callback_url == TEST_CALLBACK


class TestOAuthSessionInit:
    """Tests for OAuthSession construction and init_oauth()."""

    def test_requires_key_and_secret(self, signer_factory):
        with pytest.raises(CredentialsError):
            OAuthSession("", TEST_SECRET, signer_factory=signer_factory)

    def test_starts_unconfigured(self, signer_factory):
        session = OAuthSession(TEST_KEY, TEST_SECRET, signer_factory=signer_factory)

        assert session.state == OAuthState.UNCONFIGURED
        assert session.authenticated is False
        assert session.signer is None

    def test_init_oauth_builds_signer(self, signer_factory):
        session = OAuthSession(TEST_KEY, TEST_SECRET, signer_factory=signer_factory)

        session.init_oauth(TEST_CALLBACK)
        signer = signer_factory.last

        assert session.state == OAuthState.AWAITING_AUTHORIZATION
        assert signer.request_token_url == "https://www.goodreads.com/oauth/request_token"
        assert signer.access_token_url == "https://www.goodreads.com/oauth/access_token"
        assert signer.consumer_key == TEST_KEY
        assert signer.consumer_secret == TEST_SECRET
        assert signer.version == "1.0"
        assert signer.authorize_callback == TEST_CALLBACK
        assert signer.signature_method == "HMAC-SHA1"

    def test_init_oauth_without_callback_warns(self, signer_factory, mock_logger_warnings):
        session = OAuthSession(TEST_KEY, TEST_SECRET, signer_factory=signer_factory)

        session.init_oauth()

        mock_logger_warnings["auth_warning"].assert_called_once_with(
            "init_oauth(): Warning: You have passed no callbackURL."
        )
        assert session.state == OAuthState.AWAITING_AUTHORIZATION
        assert signer_factory.last.authorize_callback is None

    def test_init_oauth_with_callback_does_not_warn(self, signer_factory, mock_logger_warnings):
        session = OAuthSession(TEST_KEY, TEST_SECRET, signer_factory=signer_factory)

        session.init_oauth(TEST_CALLBACK)

        mock_logger_warnings["auth_warning"].assert_not_called()


class TestOAuthHandshake:
    """Tests for the request-token / access-token handshake."""

    @pytest.fixture
    def session(self, signer_factory):
        session = OAuthSession(TEST_KEY, TEST_SECRET, signer_factory=signer_factory)
        session.init_oauth(TEST_CALLBACK)
        return session

    @pytest.mark.asyncio
    async def test_request_token_without_init_raises(self, signer_factory):
        session = OAuthSession(TEST_KEY, TEST_SECRET, signer_factory=signer_factory)

        with pytest.raises(OAuthSessionError, match="init_oauth"):
            await session.get_request_token()

    @pytest.mark.asyncio
    async def test_request_token_returns_authorize_url(self, session):
        url = await session.get_request_token()

        assert url.startswith("https://www.goodreads.com/oauth/authorize?")
        assert "oauth_token=request-token" in url
        assert "oauth_callback=https%3A%2F%2Fexample.com%2Fgoodreads%2Fcallback" in url
        assert session.request_token == "request-token"
        assert session.request_token_secret == "request-secret"
        assert session.state == OAuthState.REQUEST_TOKEN_OBTAINED

    @pytest.mark.asyncio
    async def test_request_token_provider_error(self, session, signer_factory):
        signer_factory.last.request_token_error = TokenRequestError(401, "Invalid key")

        with pytest.raises(OAuthProviderError) as exc_info:
            await session.get_request_token()

        assert exc_info.value.status_code == 401
        assert exc_info.value.raw_response == "Invalid key"
        assert session.state == OAuthState.AWAITING_AUTHORIZATION

    @pytest.mark.asyncio
    async def test_request_token_network_error(self, session, signer_factory):
        signer_factory.last.request_token_error = aiohttp.ClientConnectionError("refused")

        with pytest.raises(OAuthProviderError, match="refused"):
            await session.get_request_token()

    @pytest.mark.asyncio
    async def test_request_token_timeout(self, session, signer_factory):
        signer_factory.last.request_token_error = asyncio.TimeoutError()

        with pytest.raises(OAuthProviderError) as exc_info:
            await session.get_request_token()

        assert str(exc_info.value) == "get_request_token(): TimeoutError"
        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert session.state == OAuthState.AWAITING_AUTHORIZATION

    @pytest.mark.asyncio
    async def test_access_token_timeout(self, session, signer_factory):
        await session.get_request_token()
        signer_factory.last.access_token_error = TimeoutError("read timed out\nafter 300s")

        with pytest.raises(OAuthProviderError) as exc_info:
            await session.get_access_token()

        assert str(exc_info.value) == "get_access_token(): read timed out"
        assert session.authenticated is False

    def test_token_request_error_is_goodreads_error(self):
        error = TokenRequestError(500, "oops")

        assert isinstance(error, GoodreadsApiError)
        assert error.status_code == 500
        assert error.data == "oops"

    @pytest.mark.asyncio
    async def test_second_request_token_replaces_first(self, session, signer_factory):
        signer_factory.last.request_tokens = [
            TokenPair(token="first", secret="first-secret"),
            TokenPair(token="second", secret="second-secret"),
        ]

        await session.get_request_token()
        await session.get_request_token()
        await session.get_access_token()

        request_token, _ = signer_factory.last.access_token_requests[0]
        assert request_token.token == "second"

    @pytest.mark.asyncio
    async def test_access_token_without_request_token_raises(self, session):
        with pytest.raises(OAuthSessionError) as exc_info:
            await session.get_access_token()

        assert str(exc_info.value) == (
            "get_access_token(): No Request Token found. call get_request_token()"
        )

    @pytest.mark.asyncio
    async def test_access_token_completes_handshake(self, session, signer_factory):
        await session.get_request_token()

        await session.get_access_token("verifier-1")

        assert session.authenticated is True
        assert session.state == OAuthState.AUTHENTICATED
        assert session.access_token == "access-token"
        assert session.access_token_secret == "access-secret"
        request_token, verifier = signer_factory.last.access_token_requests[0]
        assert request_token == TokenPair(token="request-token", secret="request-secret")
        assert verifier == "verifier-1"

    @pytest.mark.asyncio
    async def test_access_token_error_keeps_first_line(self, session, signer_factory):
        await session.get_request_token()
        signer_factory.last.access_token_error = TokenRequestError(
            401, "Invalid OAuth Request\n<html>details</html>"
        )

        with pytest.raises(OAuthProviderError) as exc_info:
            await session.get_access_token()

        assert str(exc_info.value) == "get_access_token(): Invalid OAuth Request"
        assert exc_info.value.raw_response == "Invalid OAuth Request\n<html>details</html>"
        assert session.authenticated is False

    def test_set_access_token(self, session):
        session.set_access_token("stored-token", "stored-secret")

        assert session.state == OAuthState.AUTHENTICATED
        assert session.auth_options() == {
            "ACCESS_TOKEN": "stored-token",
            "ACCESS_TOKEN_SECRET": "stored-secret",
            "OAUTH": session.signer,
        }

    def test_set_access_token_initialises_signer(self, signer_factory):
        session = OAuthSession(TEST_KEY, TEST_SECRET, signer_factory=signer_factory)

        session.set_access_token("stored-token", "stored-secret")

        assert session.signer is signer_factory.last
        assert session.authenticated is True

    def test_set_access_token_requires_both_values(self, session):
        with pytest.raises(OAuthSessionError):
            session.set_access_token("stored-token", None)

        assert session.authenticated is False

    def test_require_authenticated(self, session):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            session.require_authenticated("get_notifications()")

        assert str(exc_info.value) == (
            "get_notifications(): You need an oAuth connection for this request"
        )
