"""Write operations with success-only cache invalidation."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from apicache import CacheStore

from .errors import FetchError
from .transport import JsonTransport

logger = logging.getLogger(__name__)

WRITE_METHODS = ("POST", "PUT", "PATCH", "DELETE")


class MutationExecutor:
    """
    Performs single writes against the API.

    Unlike the read path, calls are never deduplicated: two concurrent
    execute() calls send two requests. is_loading and error describe the
    most recent call to settle.
    """

    def __init__(self, store: CacheStore, transport: JsonTransport) -> None:
        self._store = store
        self._transport = transport
        self.is_loading = False
        self.error: Optional[FetchError] = None

    async def execute(
        self,
        endpoint: str,
        variables: Any,
        method: str = "POST",
        on_success: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[FetchError], None]] = None,
        invalidate_keys: Iterable[str] = (),
        credentials: str = "include",
    ) -> Optional[Any]:
        method = method.upper()
        if method not in WRITE_METHODS:
            raise ValueError(f"Unsupported write method: {method}")

        self.is_loading = True
        self.error = None
        try:
            try:
                result = await self._transport.send_json(
                    method, endpoint, variables, credentials=credentials
                )
            except FetchError as exc:
                logger.warning(f"{method} {endpoint} failed: {exc}")
                self.error = exc
                if on_error is not None:
                    on_error(exc)
                return None

            for key in invalidate_keys:
                self._store.invalidate(key)

            if on_success is not None:
                on_success(result)
            return result
        finally:
            self.is_loading = False
