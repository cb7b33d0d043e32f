#!/usr/bin/env python3
"""
Fetch Coordinator — Stale-While-Revalidate Resource State

Drives one endpoint (+ query params) through loading, validating,
success and error states on top of a shared CacheStore.

Implements:
- start()                -> fetch on mount (unless manual)
- set_endpoint(endpoint) -> key change, one new fetch cycle
- refresh()              -> fetch bypassing the cached value
- mutate(value)          -> optimistic local update + invalidation
- close()                -> teardown, late completions discarded
"""

import logging
from typing import Any, Awaitable, Callable, Generic, List, Mapping, Optional, TypeVar

from apicache import CacheStore, derive_key

from .errors import NoResourceError
from .state import FetchFailure, FetchStart, FetchSuccess, Mutate, ResourceEvent, ResourceState, transition
from .transport import JsonTransport

logger = logging.getLogger(__name__)

T = TypeVar("T")

StateListener = Callable[[ResourceState], None]


class FetchCoordinator(Generic[T]):
    """
    Per-consumer state for one cached resource.

    Design:
    - data survives revalidation and errors (no flash-to-empty)
    - every fetch is tagged with a generation; a key change or close()
      bumps it, so completions from an older generation are dropped
    - manual mode only suppresses automatic fetches, never refresh()
    """

    def __init__(self, endpoint: Optional[str], *, store: CacheStore, transport: JsonTransport,
                 params: Optional[Mapping[str, Any]] = None, ttl: Optional[float] = None,
                 manual: bool = False, initial_data: Optional[T] = None,
                 credentials: str = "include"):
        self._store = store
        self._transport = transport
        self._endpoint = endpoint
        self._params = dict(params or {})
        self._ttl = ttl
        self._manual = manual
        self._credentials = credentials

        self._state: ResourceState[T] = ResourceState(
            data=initial_data,
            is_loading=not manual and endpoint is not None,
        )
        self._generation = 0
        self._closed = False
        # Key the current state belongs to
        self._state_key = self.key
        self._listeners: List[StateListener] = []

    # ── Snapshot ──────────────────────────────────────────────

    @property
    def key(self) -> Optional[str]:
        if self._endpoint is None:
            return None
        return derive_key(self._endpoint, self._params)

    @property
    def state(self) -> ResourceState[T]:
        return self._state

    @property
    def data(self) -> Optional[T]:
        return self._state.data

    @property
    def error(self) -> Optional[BaseException]:
        return self._state.error

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def is_validating(self) -> bool:
        return self._state.is_validating

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener with every new state. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _dispatch(self, event: ResourceEvent) -> None:
        self._publish(transition(self._state, event))

    def _publish(self, state: ResourceState[T]) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    # ── Fetching ──────────────────────────────────────────────

    def _operation(self) -> Callable[[], Awaitable[T]]:
        """
        Bind the current endpoint and params into a fetch operation.

        The NoResourceError branch is a guard only: _revalidate() never
        builds an operation without a key, so a coordinator with no
        endpoint stays idle and never reaches the store.
        """
        endpoint, params, credentials = self._endpoint, dict(self._params), self._credentials
        transport = self._transport

        async def fetch_resource() -> T:
            if endpoint is None:
                raise NoResourceError("No endpoint provided")
            return await transport.get_json(endpoint, params=params, credentials=credentials)

        return fetch_resource

    async def _revalidate(self, force_refresh: bool = False) -> None:
        key = self.key
        if key is None or self._closed:
            return

        generation = self._generation
        self._dispatch(FetchStart(has_data=self._state.data is not None))

        try:
            result = await self._store.obtain(
                key, self._operation(), ttl=self._ttl, force_refresh=force_refresh
            )
        except Exception as e:  # noqa: BLE001
            if generation != self._generation:
                logger.debug(f"Dropping stale failure for {key}: {e}")
                return
            logger.warning(f"Fetch failed for {key}: {e}")
            self._dispatch(FetchFailure(e))
            return

        if generation != self._generation:
            logger.debug(f"Dropping stale result for {key}")
            return
        self._dispatch(FetchSuccess(result))

    async def start(self) -> None:
        """Mount: fetch once unless manual or there is no endpoint."""
        if self._closed:
            self._closed = False
            self._generation += 1
            if self._state_key != self.key:
                self._reset_state()
        if not self._manual:
            await self._revalidate()

    async def set_endpoint(self, endpoint: Optional[str],
                           params: Optional[Mapping[str, Any]] = None) -> None:
        """
        Point the coordinator at another resource.

        State is reset and exactly one fetch cycle runs for the new key
        (none in manual mode or when endpoint is None). Same key is a no-op.
        """
        new_params = dict(params or {})
        new_key = None if endpoint is None else derive_key(endpoint, new_params)
        if new_key == self.key:
            return

        self._generation += 1
        self._endpoint = endpoint
        self._params = new_params
        logger.debug(f"Resource key changed to {new_key}")
        if self._closed:
            return

        self._reset_state()
        if not self._manual:
            await self._revalidate()

    def _reset_state(self) -> None:
        self._state_key = self.key
        self._publish(ResourceState(is_loading=not self._manual and self._endpoint is not None))

    async def refresh(self) -> None:
        """
        Fetch bypassing the cached value. Errors land in state.

        With no endpoint this is a no-op: no request, no store access, no error.
        """
        await self._revalidate(force_refresh=True)

    def mutate(self, value: Optional[T] = None) -> None:
        """
        Optimistically replace data (when value is given) and invalidate the
        cache entry so the next fetch goes to the network.
        """
        if value is not None:
            self._dispatch(Mutate(value))
        key = self.key
        if key is not None:
            self._store.invalidate(key)

    def close(self) -> None:
        """Stop observing. In-flight completions are discarded, not cancelled."""
        self._closed = True
        self._generation += 1
        self._listeners.clear()
