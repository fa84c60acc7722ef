"""
Error types raised by the Greenhouse API client.
"""

from __future__ import annotations

from typing import Optional


class GreenhouseError(Exception):
    """Base class for every error raised by this package."""


class TransportError(GreenhouseError):
    """
    The request never produced a usable response: connection failure,
    timeout, or a non-2xx status code.
    """

    def __init__(self, url: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class MalformedResponseError(GreenhouseError):
    """
    The server answered, but the body is missing fields we depend on.
    """

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message} ({url})")
        self.url = url


class InvalidDateError(GreenhouseError, ValueError):
    """A date/time input could not be parsed."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid date: {value!r}")
        self.value = value
