"""
Errors raised by the Toggl API client.

Every failed request ends in exactly one of these: the transport failed,
the server answered with an error, or the answer could not be understood.
"""
from typing import Any, Optional


class ApiError(Exception):
    """Base class for Toggl API errors."""


class NetworkError(ApiError):
    """The request never produced a response."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class ServerError(ApiError):
    """The server answered with an error status or an error body."""

    def __init__(self, status_code: int, text: Optional[str] = None, parsed_json: Any = None):
        self.status_code = status_code
        self.text = text
        self.parsed_json = parsed_json
        detail = parsed_json if parsed_json is not None else text
        super().__init__(f"Server error {status_code}: {detail}")


class ParsingError(ApiError):
    """The response body did not match the expected payload."""

    def __init__(self, text: str, cause: Optional[Exception] = None):
        self.text = text
        self.cause = cause
        super().__init__(f"Could not parse response: {cause or text}")
