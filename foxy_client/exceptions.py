"""
Custom exceptions for the Foxy API client.
"""

import json
from typing import List, Optional


class FoxyClientError(Exception):
    """Base exception for Foxy client errors."""
    pass


class ConfigurationError(FoxyClientError):
    """Raised when a credential, the signing secret or an option is missing or invalid."""
    pass


class ResolutionError(FoxyClientError):
    """Raised when a path step cannot be turned into a URL."""
    pass


class SigningAmbiguityError(FoxyClientError):
    """Raised when a form holds more than one unprefixed product code."""
    pass


class InvalidURLError(FoxyClientError, ValueError):
    """Raised when a URL is not a parseable absolute URL."""
    pass


class TransportError(FoxyClientError):
    """
    Raised when an HTTP request fails.

    Keeps the raw response body in ``raw_text`` and the HTTP status in
    ``status`` (``None`` when the server could not be reached at all).
    Messages reported by the API in ``_embedded["fx:errors"]`` are
    collected into ``errors``.
    """

    def __init__(self, raw_text: str, status: Optional[int] = None):
        self.raw_text = raw_text
        self.status = status
        self.errors = _parse_errors(raw_text)
        super().__init__(self._format_message())

    @property
    def is_no_route(self) -> bool:
        """True when the API could not route the request URL."""
        return "No route found" in self.raw_text

    def _format_message(self) -> str:
        if self.status is None:
            return self.raw_text
        message = f"Request failed with status {self.status}"
        if self.errors:
            message += " and the following errors:\n"
            message += "\n".join(f"- {error}" for error in self.errors)
        return message


def _parse_errors(raw_text: str) -> List[str]:
    try:
        body = json.loads(raw_text)
        entries = body["_embedded"]["fx:errors"]
        return [entry["message"] for entry in entries]
    except (ValueError, TypeError, KeyError):
        return []
