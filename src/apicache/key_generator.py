#!/usr/bin/env python3
"""
Cache Key Generation — Deterministic Request Keys

Implements:
- derive_key(path, params) → "path?a=1&b=2"
- join_key(*parts) → "part:part:part"

Same path + same params (any insertion order) = identical key = cache hit.
"""

import logging
from typing import Mapping, Optional, Union

logger = logging.getLogger(__name__)

ParamValue = Union[str, int, float, bool, None]


def format_param(value: ParamValue) -> str:
    """Query-string form of a param value, shared by keys and requests."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def derive_key(path: str, params: Optional[Mapping[str, ParamValue]] = None) -> str:
    """
    Generate a deterministic cache key for an endpoint and its query params.

    Args:
        path: Endpoint path, e.g. "/api/manuals"
        params: Optional query parameters. None values are dropped.

    Returns:
        The bare path when no params remain, else "path?k=v&k=v" with
        params sorted by name.
    """
    if not params:
        return path

    pairs = [
        f"{name}={format_param(value)}"
        for name, value in sorted(params.items())
        if value is not None
    ]
    if not pairs:
        return path

    key = f"{path}?{'&'.join(pairs)}"
    logger.debug(f"Derived key: {key}")
    return key


def join_key(*parts: Union[str, int, None]) -> str:
    """Join non-empty parts with ':' (e.g. "manuals:42:blocks")."""
    return ":".join(str(part) for part in parts if part is not None)
