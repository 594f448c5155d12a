"""
Goodreads Auth Service - developer credential loading and the OAuth 1.0a session.

GoodreadsAuth resolves the API key/secret from environment variables (optionally
loaded from an env file) or Firebase secrets. OAuthSession owns the per-client
handshake state: request token -> user authorization -> access token.
"""

import os
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import aiohttp
from firebase_functions.params import SecretParam

from adapters.config import load_env
from api.goodreads.errors import (
    CredentialsError,
    NotAuthenticatedError,
    OAuthProviderError,
    OAuthSessionError,
    TokenRequestError,
)
from api.goodreads.models import GOODREADS_BASE_URL, GoodreadsCredentials, OAuthState, TokenPair
from api.goodreads.oauth import OAUTH_VERSION, OAuth1Signer, OAuthSigner
from utils.get_logger import get_logger

logger = get_logger(__name__)

# Goodreads developer key/secret secret parameters
GOODREADS_API_KEY = SecretParam("GOODREADS_API_KEY")
GOODREADS_API_SECRET = SecretParam("GOODREADS_API_SECRET")

REQUEST_TOKEN_PATH = "/oauth/request_token"
ACCESS_TOKEN_PATH = "/oauth/access_token"
AUTHORIZE_PATH = "/oauth/authorize"
SIGNATURE_METHOD = "HMAC-SHA1"

SignerFactory = Callable[..., OAuthSigner]


class GoodreadsAuth:
    """
    Centralized Goodreads credential lookup.
    Handles API key/secret management from environment variables or Firebase secrets.
    """

    def __init__(self):
        self._api_key: str | None = None
        self._api_secret: str | None = None

    @staticmethod
    def _resolve(env_name: str, secret: SecretParam) -> str | None:
        """Environment variable first (tests/local dev), SecretParam second (production)."""
        value = os.getenv(env_name)
        if value:
            logger.info(f"Loaded {env_name} via env var")
            return value
        try:
            value = secret.value
        except Exception as e:
            logger.warning(f"SecretParam access failed for {env_name}: {e}")
            return None
        if value:
            logger.info(f"Loaded {env_name} via SecretParam")
        else:
            logger.error(f"{env_name} not available in SecretParam or environment")
        return value or None

    @property
    def callback_url(self) -> str | None:
        return os.getenv("GOODREADS_CALLBACK_URL") or None

    @property
    def api_key(self) -> str | None:
        if self._api_key is None:
            self._api_key = self._resolve("GOODREADS_API_KEY", GOODREADS_API_KEY)
        return self._api_key

    @property
    def api_secret(self) -> str | None:
        if self._api_secret is None:
            self._api_secret = self._resolve("GOODREADS_API_SECRET", GOODREADS_API_SECRET)
        return self._api_secret

    def get_credentials(self, load_env_file: bool = True) -> GoodreadsCredentials:
        """Return the resolved key/secret.

        Raises:
            CredentialsError: If either value is unavailable
        """
        if load_env_file:
            load_env()
        key, secret = self.api_key, self.api_secret
        if not key or not secret:
            raise CredentialsError("Please pass your API key and secret.", "GoodreadsAuth")
        return GoodreadsCredentials(key=key, secret=secret)

    def get_key_status(self) -> dict:
        """
        Get status information about the configured credentials.
        Useful for debugging without exposing the values.
        """
        return {
            "has_key": bool(self._api_key),
            "has_secret": bool(self._api_secret),
            "key_prefix": self._api_key[:4] if self._api_key and len(self._api_key) >= 4 else None,
        }


# Singleton instance for use across the application
goodreads_auth = GoodreadsAuth()


class OAuthSession:
    """
    OAuth 1.0a session for one client instance.

    Handshake steps must be serialized: calling get_request_token() again
    replaces the stored request token and invalidates the previous handshake.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        callback_url: str | None = None,
        base_url: str = GOODREADS_BASE_URL,
        signer_factory: SignerFactory = OAuth1Signer,
    ):
        if not api_key or not api_secret:
            raise CredentialsError("Please pass your API key and secret.", "OAuthSession()")

        self._api_key = api_key
        self._api_secret = api_secret
        self.base_url = base_url
        self.callback_url = callback_url
        self._signer_factory = signer_factory

        self.signer: OAuthSigner | None = None
        self._request_token = TokenPair()
        self._access_token = TokenPair()
        self.authenticated = False

    def __repr__(self) -> str:
        return f"OAuthSession(state={self.state.value}, callback_url={self.callback_url!r})"

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def request_token(self) -> str | None:
        return self._request_token.token

    @property
    def request_token_secret(self) -> str | None:
        return self._request_token.secret

    @property
    def access_token(self) -> str | None:
        return self._access_token.token

    @property
    def access_token_secret(self) -> str | None:
        return self._access_token.secret

    @property
    def state(self) -> OAuthState:
        if self.signer is None:
            return OAuthState.UNCONFIGURED
        if self.authenticated:
            return OAuthState.AUTHENTICATED
        if self._request_token.is_complete:
            return OAuthState.REQUEST_TOKEN_OBTAINED
        return OAuthState.AWAITING_AUTHORIZATION

    def init_oauth(self, callback_url: str | None = None) -> None:
        """Create the OAuth client bound to the Goodreads token endpoints.

        Args:
            callback_url: URL Goodreads redirects to after the user grants or
                declines access. Without it the handshake still works, but the
                authorization page cannot redirect back.
        """
        if callback_url is not None:
            self.callback_url = callback_url
        if not self.callback_url:
            logger.warning("init_oauth(): Warning: You have passed no callbackURL.")

        self.signer = self._signer_factory(
            f"{self.base_url}{REQUEST_TOKEN_PATH}",
            f"{self.base_url}{ACCESS_TOKEN_PATH}",
            self._api_key,
            self._api_secret,
            OAUTH_VERSION,
            self.callback_url,
            SIGNATURE_METHOD,
        )
        self._request_token = TokenPair()
        logger.info("OAuth client initialised")

    def authorize_url(self) -> str:
        """URL the user must visit to authorize the stored request token."""
        callback = getattr(self.signer, "authorize_callback", None) or self.callback_url
        params = {"oauth_token": self._request_token.token}
        if callback:
            params["oauth_callback"] = callback
        return f"{self.base_url}{AUTHORIZE_PATH}?{urlencode(params)}"

    async def get_request_token(self) -> str:
        """Step 1: obtain a request token.

        Returns:
            The authorization URL to send the user to

        Raises:
            OAuthSessionError: If init_oauth() was never called
            OAuthProviderError: If the provider rejected the request
        """
        fn_name = "get_request_token()"
        if self.signer is None:
            raise OAuthSessionError(
                "You need an oAuth connection for this request. Call init_oauth() first.",
                fn_name,
            )

        try:
            token = await self.signer.get_request_token()
        except TokenRequestError as e:
            raise OAuthProviderError(str(e), fn_name, e.status_code, e.data) from e
        except (aiohttp.ClientError, TimeoutError) as e:
            raise OAuthProviderError(str(e) or type(e).__name__, fn_name) from e

        self._request_token = token
        logger.info("Obtained OAuth request token")
        return self.authorize_url()

    async def get_access_token(self, verifier: str | None = None) -> None:
        """Step 2: trade the authorized request token for an access token.

        Raises:
            OAuthSessionError: If no request token is stored
            OAuthProviderError: If the provider rejected the exchange; the message
                holds only the first line of the provider's response
        """
        fn_name = "get_access_token()"
        if self.signer is None or not self._request_token.is_complete:
            raise OAuthSessionError("No Request Token found. call get_request_token()", fn_name)

        try:
            token = await self.signer.get_access_token(self._request_token, verifier)
        except TokenRequestError as e:
            first_line = (e.data or str(e)).split("\n")[0]
            raise OAuthProviderError(first_line, fn_name, e.status_code, e.data) from e
        except (aiohttp.ClientError, TimeoutError) as e:
            first_line = (str(e) or type(e).__name__).split("\n")[0]
            raise OAuthProviderError(first_line, fn_name) from e

        self.set_access_token(token.token, token.secret)

    def set_access_token(self, token: str | None, secret: str | None) -> None:
        """Replace the access token, e.g. with one the caller stored earlier."""
        if not token or not secret:
            raise OAuthSessionError(
                "Access token and secret are both required", "set_access_token()"
            )
        if self.signer is None:
            self.init_oauth()
        self._access_token = TokenPair(token=token, secret=secret)
        self.authenticated = True
        logger.info("OAuth session authenticated")

    def require_authenticated(self, function_name: str) -> None:
        if not self.authenticated:
            raise NotAuthenticatedError(function_name)

    def auth_options(self) -> dict[str, Any]:
        """Mapping consumed by RequestBuilder.with_oauth()."""
        return {
            "ACCESS_TOKEN": self._access_token.token,
            "ACCESS_TOKEN_SECRET": self._access_token.secret,
            "OAUTH": self.signer,
        }
