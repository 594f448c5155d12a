"""
Goodreads Transport - performs the HTTP call described by a RequestDescriptor.

Each operation returns the raw response body; parsing happens in parser.execute.
Query parameters always travel in the URL, also for signed POST and DELETE.
"""

from typing import Any
from urllib.parse import urlencode

from api.goodreads.errors import NotAuthenticatedError
from api.goodreads.request import RequestDescriptor
from utils.base_api_client import BaseAPIClient
from utils.get_logger import get_logger

logger = get_logger(__name__)


def _query_value(value: Any) -> Any:
    # booleans go over the wire as true/false
    if isinstance(value, bool):
        return str(value).lower()
    return value


def build_url(path: str, query_params: dict[str, Any] | None = None) -> str:
    """Append query params to path, skipping None values; keys are sorted."""
    params = {k: _query_value(v) for k, v in (query_params or {}).items() if v is not None}
    if not params:
        return path
    return f"{path}?{urlencode(sorted(params.items()), doseq=True)}"


class Transport(BaseAPIClient):
    """Unauthenticated GET plus OAuth-signed GET/POST/DELETE."""

    async def get(self, req: RequestDescriptor) -> str:
        url = build_url(req.get_path(), req.get_query_params())
        return await self._core_async_request(url)

    def _signed_call_args(self, req: RequestDescriptor, function_name: str) -> tuple:
        tokens = req.get_access_token()
        oauth = req.get_oauth()
        if oauth is None or not tokens.access_token or not tokens.access_token_secret:
            raise NotAuthenticatedError(function_name)

        url = build_url(req.get_path(), req.get_query_params())
        logger.debug(f"{function_name} signing request for {url}")
        return oauth, url, tokens.access_token, tokens.access_token_secret

    async def oauth_get(self, req: RequestDescriptor) -> str:
        oauth, url, token, secret = self._signed_call_args(req, "Transport.oauth_get()")
        return await oauth.signed_get(url, token, secret)

    async def oauth_post(self, req: RequestDescriptor) -> str:
        oauth, url, token, secret = self._signed_call_args(req, "Transport.oauth_post()")
        return await oauth.signed_post(url, token, secret)

    async def oauth_delete(self, req: RequestDescriptor) -> str:
        oauth, url, token, secret = self._signed_call_args(req, "Transport.oauth_delete()")
        return await oauth.signed_delete(url, token, secret)
