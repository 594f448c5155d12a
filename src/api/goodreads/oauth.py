"""
Goodreads OAuth signer - OAuth 1.0a capability used by the session and transport.

Signing is delegated to oauthlib; requests are sent with aiohttp through
BaseAPIClient. Any object implementing OAuthSigner can be plugged into an
OAuthSession instead (tests use in-memory fakes).
"""

from typing import Protocol
from urllib.parse import parse_qsl

import aiohttp
from oauthlib.oauth1 import SIGNATURE_HMAC_SHA1, Client

from api.goodreads.errors import TokenRequestError
from api.goodreads.models import TokenPair
from utils.base_api_client import BaseAPIClient
from utils.get_logger import get_logger

logger = get_logger(__name__)

OAUTH_VERSION = "1.0"


class OAuthSigner(Protocol):
    """OAuth 1.0a operations needed by OAuthSession and Transport."""

    authorize_callback: str | None

    async def get_request_token(self) -> TokenPair: ...

    async def get_access_token(
        self, request_token: TokenPair, verifier: str | None = None
    ) -> TokenPair: ...

    async def signed_get(self, url: str, token: str, token_secret: str) -> str: ...

    async def signed_post(self, url: str, token: str, token_secret: str) -> str: ...

    async def signed_delete(self, url: str, token: str, token_secret: str) -> str: ...


class OAuth1Signer(BaseAPIClient):
    """oauthlib-backed OAuthSigner bound to one consumer key/secret."""

    def __init__(
        self,
        request_token_url: str,
        access_token_url: str,
        consumer_key: str,
        consumer_secret: str,
        version: str = OAUTH_VERSION,
        authorize_callback: str | None = None,
        signature_method: str = SIGNATURE_HMAC_SHA1,
    ):
        if version != OAUTH_VERSION:
            raise ValueError(f"Unsupported OAuth version: {version}")

        self.request_token_url = request_token_url
        self.access_token_url = access_token_url
        self.version = version
        self.authorize_callback = authorize_callback
        self.signature_method = signature_method
        self._consumer_key = consumer_key
        self._consumer_secret = consumer_secret

    def _client(
        self,
        token: str | None = None,
        token_secret: str | None = None,
        callback_uri: str | None = None,
        verifier: str | None = None,
    ) -> Client:
        return Client(
            self._consumer_key,
            client_secret=self._consumer_secret,
            resource_owner_key=token,
            resource_owner_secret=token_secret,
            callback_uri=callback_uri,
            verifier=verifier,
            signature_method=self.signature_method,
        )

    async def _token_request(self, client: Client, url: str) -> TokenPair:
        uri, headers, _ = client.sign(url, http_method="POST")

        async with (
            aiohttp.ClientSession() as session,
            session.post(uri, headers=headers) as response,
        ):
            body = await response.text()
            status = response.status

        if status >= 400:
            raise TokenRequestError(status, body)

        values = dict(parse_qsl(body))
        token = values.get("oauth_token")
        token_secret = values.get("oauth_token_secret")
        if not token or not token_secret:
            raise TokenRequestError(status, body)
        return TokenPair(token=token, secret=token_secret)

    async def get_request_token(self) -> TokenPair:
        logger.debug(f"Requesting OAuth request token from {self.request_token_url}")
        client = self._client(callback_uri=self.authorize_callback)
        return await self._token_request(client, self.request_token_url)

    async def get_access_token(
        self, request_token: TokenPair, verifier: str | None = None
    ) -> TokenPair:
        logger.debug(f"Exchanging request token at {self.access_token_url}")
        client = self._client(request_token.token, request_token.secret, verifier=verifier)
        return await self._token_request(client, self.access_token_url)

    def _sign(self, url: str, method: str, token: str, token_secret: str) -> tuple[str, dict]:
        uri, headers, _ = self._client(token, token_secret).sign(url, http_method=method)
        return uri, headers

    async def signed_get(self, url: str, token: str, token_secret: str) -> str:
        uri, headers = self._sign(url, "GET", token, token_secret)
        return await self._core_async_request(uri, headers=headers)

    async def signed_post(self, url: str, token: str, token_secret: str) -> str:
        uri, headers = self._sign(url, "POST", token, token_secret)
        return await self._core_async_post_request(uri, headers=headers)

    async def signed_delete(self, url: str, token: str, token_secret: str) -> str:
        uri, headers = self._sign(url, "DELETE", token, token_secret)
        return await self._core_async_delete_request(uri, headers=headers)
