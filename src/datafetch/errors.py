"""Errors raised on the fetch path."""

from __future__ import annotations

from typing import Optional


class FetchError(Exception):
    """Network failure or non-success response."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ResponseDecodeError(FetchError):
    """Response body was not valid JSON."""


class NoResourceError(FetchError):
    """A fetch was attempted with no endpoint configured."""
