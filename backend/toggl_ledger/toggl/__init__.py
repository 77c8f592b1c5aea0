"""
Toggl API integration.

Provides the REST client and its error hierarchy.
"""
from .client import TogglApi
from .errors import ApiError, NetworkError, ParsingError, ServerError

__all__ = [
    "TogglApi",
    "ApiError",
    "NetworkError",
    "ParsingError",
    "ServerError",
]
