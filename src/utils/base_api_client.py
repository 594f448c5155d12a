"""
Base API Client - Shared aiohttp request handling for XML/text APIs.
Services inherit from this and use its _core_async_* methods, which return the
raw response body as text.
"""

from typing import Any

import aiohttp

from utils.get_logger import get_logger

logger = get_logger(__name__)


class BaseAPIClient:
    """
    Base class for API clients with shared request handling.

    Every call opens its own ClientSession, issues exactly one request and
    returns the body text. There is no retry: network errors propagate as
    aiohttp exceptions and non-2xx responses raise ClientResponseError.
    """

    async def _core_async_text_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
        data: Any = None,
        timeout: aiohttp.ClientTimeout | None = None,
    ) -> str:
        """
        Core async HTTP request returning the response body.

        Args:
            method: HTTP method ("GET", "POST", "DELETE")
            url: Full URL to request (may already carry a query string)
            params: Optional query parameters appended by aiohttp
            headers: Optional HTTP headers
            data: Optional request body
            timeout: Optional aiohttp timeout, aiohttp's default when omitted

        Returns:
            Response body decoded as text

        Raises:
            aiohttp.ClientResponseError: If the server answered with a non-2xx status
            aiohttp.ClientError: On connection failures
        """
        logger.debug(f"{method} {url}")

        request_kwargs: dict[str, Any] = {"headers": headers, "params": params, "data": data}
        if timeout is not None:
            request_kwargs["timeout"] = timeout

        async with (
            aiohttp.ClientSession() as session,
            session.request(method, url, **request_kwargs) as response,
        ):
            body = await response.text()
            if response.status >= 400:
                logger.warning(f"API returned status {response.status} for {method} {url}")
            response.raise_for_status()
            return body

    async def _core_async_request(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, Any] | None = None,
    ) -> str:
        """Convenience wrapper for GET requests."""
        return await self._core_async_text_request("GET", url, params=params, headers=headers)

    async def _core_async_post_request(
        self,
        url: str,
        headers: dict[str, Any] | None = None,
        data: Any = None,
    ) -> str:
        """Convenience wrapper for POST requests."""
        return await self._core_async_text_request("POST", url, headers=headers, data=data)

    async def _core_async_delete_request(
        self,
        url: str,
        headers: dict[str, Any] | None = None,
    ) -> str:
        """Convenience wrapper for DELETE requests."""
        return await self._core_async_text_request("DELETE", url, headers=headers)
