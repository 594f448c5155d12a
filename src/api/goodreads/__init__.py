"""
Goodreads Service Package - async client for the Goodreads XML API.

This package provides:
- GoodreadsService: Endpoint facade (books, authors, shelves, reviews, groups, social graph)
- OAuthSession: OAuth 1.0a three-legged handshake state
- RequestDescriptor: Immutable description of one API call
- Transport / execute / parse_xml: Request dispatch and XML normalization
"""

from api.goodreads.auth import GoodreadsAuth, OAuthSession, goodreads_auth
from api.goodreads.core import GoodreadsService
from api.goodreads.errors import (
    CredentialsError,
    GoodreadsApiError,
    MissingParameterError,
    NotAuthenticatedError,
    OAuthProviderError,
    OAuthSessionError,
    RemoteAPIError,
    RequestConstructionError,
    TokenRequestError,
    XMLParseError,
)
from api.goodreads.models import GoodreadsCredentials, OAuthState, TokenPair
from api.goodreads.oauth import OAuth1Signer, OAuthSigner
from api.goodreads.parser import execute, parse_xml
from api.goodreads.request import RequestBuilder, RequestDescriptor
from api.goodreads.transport import Transport

__all__ = [
    # Core
    "GoodreadsService",
    # Auth
    "GoodreadsAuth",
    "goodreads_auth",
    "OAuthSession",
    "OAuthSigner",
    "OAuth1Signer",
    # Request pipeline
    "RequestBuilder",
    "RequestDescriptor",
    "Transport",
    "execute",
    "parse_xml",
    # Models
    "GoodreadsCredentials",
    "OAuthState",
    "TokenPair",
    # Errors
    "GoodreadsApiError",
    "CredentialsError",
    "RequestConstructionError",
    "MissingParameterError",
    "NotAuthenticatedError",
    "OAuthSessionError",
    "OAuthProviderError",
    "TokenRequestError",
    "XMLParseError",
    "RemoteAPIError",
]
