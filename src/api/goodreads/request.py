"""
Request Descriptor - immutable description of one outbound Goodreads call.

Descriptors are assembled with the fluent builder:

    req = (
        RequestDescriptor.builder()
        .with_path(f"{GOODREADS_BASE_URL}/shelf/list.xml")
        .with_query_params({"user_id": user_id, "key": key})
        .with_response_key("shelves")
        .build()
    )
"""

from collections.abc import Mapping
from typing import Any

from pydantic import Field

from api.goodreads.errors import RequestConstructionError
from api.goodreads.models import AccessTokenPair
from utils.pydantic_tools import FrozenModel

DEFAULT_PORT = 80


class RequestDescriptor(FrozenModel):
    """Path, query params, port, optional OAuth credentials and unwrap key for one call."""

    path: str = ""
    port: int = DEFAULT_PORT
    query_params: dict[str, Any] = Field(default_factory=dict)
    response_key: str = ""
    access_token: str | None = None
    access_token_secret: str | None = None
    # OAuthSigner handle; typed loosely so any compliant signer can be carried
    oauth: Any = None

    @staticmethod
    def builder() -> "RequestBuilder":
        return RequestBuilder()

    @classmethod
    def from_builder(cls, builder: "RequestBuilder | None") -> "RequestDescriptor":
        if builder is None:
            raise RequestConstructionError("No Builder", "RequestDescriptor")

        return cls(
            path=builder.path or "",
            port=builder.port or DEFAULT_PORT,
            query_params=dict(builder.query_params or {}),
            response_key=builder.response_key or "",
            access_token=builder.access_token,
            access_token_secret=builder.access_token_secret,
            oauth=builder.oauth,
        )

    def get_path(self) -> str:
        return self.path

    def get_port(self) -> int:
        return self.port

    def get_query_params(self) -> dict[str, Any]:
        return dict(self.query_params)

    def get_response_key(self) -> str:
        return self.response_key

    def get_access_token(self) -> AccessTokenPair:
        return AccessTokenPair(
            access_token=self.access_token, access_token_secret=self.access_token_secret
        )

    def get_oauth(self) -> Any:
        return self.oauth

    @property
    def has_oauth_credentials(self) -> bool:
        return bool(self.oauth is not None and self.access_token and self.access_token_secret)


class RequestBuilder:
    """Mutable, chainable collector for RequestDescriptor fields."""

    def __init__(self):
        self.path: str | None = None
        self.port: int | None = None
        self.query_params: dict[str, Any] | None = None
        self.response_key: str | None = None
        self.access_token: str | None = None
        self.access_token_secret: str | None = None
        self.oauth: Any = None

    def with_response_key(self, response_key: str) -> "RequestBuilder":
        self.response_key = response_key
        return self

    def with_query_params(self, query_params: Mapping[str, Any]) -> "RequestBuilder":
        self.query_params = dict(query_params)
        return self

    def with_port(self, port: int) -> "RequestBuilder":
        self.port = port
        return self

    def with_path(self, path: str) -> "RequestBuilder":
        self.path = path
        return self

    def with_oauth(self, auth_options: Mapping[str, Any]) -> "RequestBuilder":
        """Attach credentials from a mapping with ACCESS_TOKEN, ACCESS_TOKEN_SECRET and OAUTH."""
        self.oauth = auth_options.get("OAUTH")
        self.access_token = auth_options.get("ACCESS_TOKEN")
        self.access_token_secret = auth_options.get("ACCESS_TOKEN_SECRET")
        return self

    def build(self) -> RequestDescriptor:
        return RequestDescriptor.from_builder(self)
