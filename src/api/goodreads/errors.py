"""
Goodreads error taxonomy.

Every error raised by this package derives from GoodreadsApiError, whose message
is prefixed with the name of the function that raised it, e.g.
``"get_author_info(): You have not passed author_id."``.
Transport failures are not wrapped: aiohttp exceptions propagate unchanged.
"""

from typing import Any


class GoodreadsApiError(Exception):
    """Base error for the Goodreads client."""

    def __init__(self, message: str, function_name: str | None = None):
        self.function_name = function_name
        self.reason = message
        full_message = f"{function_name}: {message}" if function_name else message
        super().__init__(full_message)

    @property
    def message(self) -> str:
        return str(self)


class CredentialsError(GoodreadsApiError):
    """API key or secret missing at client construction."""


class RequestConstructionError(GoodreadsApiError):
    """A RequestDescriptor was built without a builder."""


class MissingParameterError(GoodreadsApiError):
    """A required endpoint argument was not passed."""

    def __init__(self, function_name: str, param: str):
        self.param = param
        super().__init__(f"You have not passed {param}.", function_name)


class NotAuthenticatedError(GoodreadsApiError):
    """An endpoint needing user authorization was called before the OAuth handshake."""

    def __init__(self, function_name: str):
        super().__init__("You need an oAuth connection for this request", function_name)


class OAuthSessionError(GoodreadsApiError):
    """A handshake step was called out of order."""


class OAuthProviderError(GoodreadsApiError):
    """The request-token or access-token exchange failed on the provider side."""

    def __init__(
        self,
        message: str,
        function_name: str,
        status_code: int | None = None,
        raw_response: str | None = None,
    ):
        super().__init__(message, function_name)
        self.status_code = status_code
        self.raw_response = raw_response


class TokenRequestError(GoodreadsApiError):
    """Raised by a signer when the provider rejects a token exchange."""

    def __init__(self, status_code: int | None, data: str):
        super().__init__(f"Token request failed with status {status_code}: {data}")
        self.status_code = status_code
        self.data = data


class XMLParseError(GoodreadsApiError):
    """The response body is not well-formed XML."""

    def __init__(self, message: str, function_name: str):
        super().__init__(f"Error parsing XML response: {message}", function_name)


class RemoteAPIError(GoodreadsApiError):
    """The service answered with its own error payload."""

    def __init__(self, payload: Any, function_name: str):
        self.payload = payload
        super().__init__(f"API returned following Error: {payload}", function_name)
