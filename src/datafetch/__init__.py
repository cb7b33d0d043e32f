"""
Data Fetch Layer
Stale-while-revalidate resource state and writes on top of the API cache

Provides:
- FetchCoordinator — per-consumer resource state (loading/validating/error/data)
- MutationExecutor — writes with success-only cache invalidation
- JsonTransport — JSON over HTTP (requests)
- FetchConfig / load_config — YAML + env configuration
"""

from .coordinator import FetchCoordinator
from .mutation import MutationExecutor
from .transport import JsonTransport
from .state import ResourceState, ResourcePhase, transition
from .errors import FetchError, ResponseDecodeError, NoResourceError
from .config import FetchConfig, load_config

__all__ = [
    'FetchCoordinator', 'MutationExecutor', 'JsonTransport',
    'ResourceState', 'ResourcePhase', 'transition',
    'FetchError', 'ResponseDecodeError', 'NoResourceError',
    'FetchConfig', 'load_config',
]
