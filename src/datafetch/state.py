"""Resource state machine for cached fetches."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class ResourcePhase(Enum):
    IDLE = "idle"
    INITIAL_LOADING = "initial_loading"
    REVALIDATING = "revalidating"
    SETTLED_SUCCESS = "settled_success"
    SETTLED_ERROR = "settled_error"


@dataclass(frozen=True)
class ResourceState(Generic[T]):
    data: Optional[T] = None
    error: Optional[BaseException] = None
    is_loading: bool = False
    is_validating: bool = False

    @property
    def phase(self) -> ResourcePhase:
        if self.is_loading:
            return ResourcePhase.INITIAL_LOADING
        if self.is_validating:
            return ResourcePhase.REVALIDATING
        if self.error is not None:
            return ResourcePhase.SETTLED_ERROR
        if self.data is not None:
            return ResourcePhase.SETTLED_SUCCESS
        return ResourcePhase.IDLE


@dataclass(frozen=True)
class FetchStart:
    has_data: bool


@dataclass(frozen=True)
class FetchSuccess:
    data: Any


@dataclass(frozen=True)
class FetchFailure:
    error: BaseException


@dataclass(frozen=True)
class Mutate:
    data: Any


ResourceEvent = Union[FetchStart, FetchSuccess, FetchFailure, Mutate]


def transition(state: ResourceState, event: ResourceEvent) -> ResourceState:
    """Return the state that follows event. Never mutates state."""
    if isinstance(event, FetchStart):
        return replace(state, is_loading=not event.has_data, is_validating=True, error=None)
    if isinstance(event, FetchSuccess):
        return replace(state, data=event.data, is_loading=False, is_validating=False)
    if isinstance(event, FetchFailure):
        # Previous data stays visible next to the error
        return replace(state, error=event.error, is_loading=False, is_validating=False)
    if isinstance(event, Mutate):
        return replace(state, data=event.data, error=None)
    raise TypeError(f"Unknown resource event: {event!r}")
