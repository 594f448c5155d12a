"""
Goodreads Models - Pydantic models for credentials, OAuth tokens and session state.
"""

from enum import Enum

from pydantic import field_validator

from utils.pydantic_tools import BaseModelWithMethods, FrozenModel

GOODREADS_BASE_URL = "https://www.goodreads.com"
GOODREADS_ROOT_TAG = "GoodreadsResponse"


class GoodreadsCredentials(FrozenModel):
    """Developer key/secret pair issued by Goodreads."""

    key: str
    secret: str

    @field_validator("key", "secret")
    @classmethod
    def not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value


class TokenPair(FrozenModel):
    """An OAuth token and its secret (request token or access token)."""

    token: str | None = None
    secret: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.token and self.secret)


class AccessTokenPair(BaseModelWithMethods):
    """Access token/secret as exposed by RequestDescriptor.get_access_token()."""

    access_token: str | None = None
    access_token_secret: str | None = None


class OAuthState(str, Enum):
    """Handshake progress of an OAuthSession."""

    UNCONFIGURED = "unconfigured"
    AWAITING_AUTHORIZATION = "awaiting_authorization"
    REQUEST_TOKEN_OBTAINED = "request_token_obtained"
    AUTHENTICATED = "authenticated"
