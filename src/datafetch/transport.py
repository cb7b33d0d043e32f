#!/usr/bin/env python3
"""
JSON Transport — HTTP calls for the fetch and mutation paths

Implements:
- get_json(endpoint, params, credentials) -> payload
- send_json(method, endpoint, variables, credentials) -> payload

Blocking requests calls run in a worker thread so callers stay on the
event loop. Every non-success response becomes a FetchError before it
reaches the cache.
"""

import asyncio
import logging
import os
from typing import Any, Dict, Mapping, Optional

import requests

from apicache import format_param

from .errors import FetchError, ResponseDecodeError

logger = logging.getLogger(__name__)

CREDENTIAL_MODES = ("include", "same-origin", "omit")


class JsonTransport:
    """
    JSON-over-HTTP client bound to one origin.

    Design principles:
    - One request attempt per call, no retries
    - Errors are raised as FetchError, never returned
    - Cookies are sent unless credentials="omit"
    - Timeout defaults prevent hanging on an unresponsive server
    """

    DEFAULT_TIMEOUT = 30  # seconds

    def __init__(self, base_url: str = None, timeout: float = None,
                 cookies: Optional[Dict[str, str]] = None,
                 headers: Optional[Dict[str, str]] = None):
        """
        Initialize transport.

        Args:
            base_url: Origin prefixed to every endpoint (or DATAFETCH_BASE_URL env var)
            timeout: Request timeout in seconds
            cookies: Session cookies sent with credentialed requests
            headers: Extra headers sent with every request
        """
        self.base_url = (base_url or os.environ.get("DATAFETCH_BASE_URL", "")).rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.cookies = dict(cookies or {})
        self.extra_headers = dict(headers or {})

        self._request_count = 0
        self._error_count = 0

        logger.info(
            f"JsonTransport initialized (base_url={self.base_url or 'relative'}, "
            f"timeout={self.timeout}s)"
        )

    def _headers(self, with_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if with_body:
            headers["Content-Type"] = "application/json"
        headers.update(self.extra_headers)
        return headers

    def _request(self, method: str, endpoint: str, credentials: str = "include",
                 **kwargs) -> requests.Response:
        """Send one request. Runs in a worker thread, so it touches no counters."""
        url = f"{self.base_url}{endpoint}"

        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(with_body="json" in kwargs),
                cookies=None if credentials == "omit" else self.cookies,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.Timeout as e:
            logger.error(f"Request timeout: {method} {endpoint} (>{self.timeout}s)")
            raise FetchError(f"Request timed out: {method} {endpoint}") from e
        except requests.RequestException as e:
            logger.error(f"Request error: {method} {endpoint}: {e}")
            raise FetchError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"HTTP error: {method} {endpoint} -> {response.status_code}")

        return response

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ResponseDecodeError(
                f"Invalid JSON in response ({response.status_code})", status=response.status_code
            ) from e

    @staticmethod
    def _server_message(response: requests.Response) -> Optional[str]:
        """The "error" field of a JSON error body, if there is one."""
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return None

    async def _send(self, method: str, endpoint: str, credentials: str,
                    **kwargs) -> requests.Response:
        """Run _request off the loop; counters are only updated here, on the loop."""
        if credentials not in CREDENTIAL_MODES:
            raise ValueError(f"Unknown credentials mode: {credentials}")

        self._request_count += 1
        try:
            response = await asyncio.to_thread(
                self._request, method, endpoint, credentials, **kwargs
            )
        except FetchError:
            self._error_count += 1
            raise

        if response.status_code >= 400:
            self._error_count += 1
        return response

    async def get_json(self, endpoint: str, params: Optional[Mapping[str, Any]] = None,
                       credentials: str = "include") -> Any:
        """GET endpoint and decode the JSON body."""
        # Same value text as the cache key, so key and URL agree
        query = {k: format_param(v) for k, v in (params or {}).items() if v is not None}
        response = await self._send("GET", endpoint, credentials, params=query or None)
        if not response.ok:
            raise FetchError(f"Fetch failed: {response.status_code}", status=response.status_code)
        return self._decode(response)

    async def send_json(self, method: str, endpoint: str, variables: Any,
                        credentials: str = "include") -> Any:
        """Send variables as a JSON body and decode the JSON reply."""
        response = await self._send(method, endpoint, credentials, json=variables)
        if not response.ok:
            message = self._server_message(response) or f"Request failed: {response.status_code}"
            raise FetchError(message, status=response.status_code)
        return self._decode(response)

    def get_stats(self) -> Dict[str, int]:
        return {"requests": self._request_count, "errors": self._error_count}
