#!/usr/bin/env python3
"""
Fetch Layer Composition Root

Owns the process-wide default CacheStore and transport. Library code
never reaches for these; it takes a store explicitly.

Usage:
  configure(load_config())
  manuals = open_resource("/api/manuals", params={"businessId": 7})
  await manuals.start()
"""

import logging
from typing import Any, Optional

from apicache import CacheStore

from .config import FetchConfig
from .coordinator import FetchCoordinator
from .mutation import MutationExecutor
from .transport import JsonTransport

logger = logging.getLogger(__name__)

_store_instance: Optional[CacheStore] = None
_transport_instance: Optional[JsonTransport] = None
_config: Optional[FetchConfig] = None


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


def configure(config: FetchConfig) -> None:
    """Install config and rebuild the default store and transport from it."""
    global _config, _store_instance, _transport_instance
    configure_logging(config.log_level)
    _config = config
    _store_instance = CacheStore(default_ttl=config.default_ttl_sec)
    _transport_instance = JsonTransport(
        base_url=config.base_url, timeout=config.request_timeout_sec
    )
    logger.info(f"Fetch layer configured (base_url={config.base_url or 'relative'})")


def get_store() -> CacheStore:
    """Get or create the default store."""
    global _store_instance
    if _store_instance is None:
        _store_instance = CacheStore()
    return _store_instance


def get_transport() -> JsonTransport:
    """Get or create the default transport."""
    global _transport_instance
    if _transport_instance is None:
        _transport_instance = JsonTransport()
    return _transport_instance


def reset_runtime() -> None:
    """Forget the defaults (tests, reconfiguration)."""
    global _config, _store_instance, _transport_instance
    _config = None
    _store_instance = None
    _transport_instance = None


def open_resource(endpoint: Optional[str], **options: Any) -> FetchCoordinator:
    """Coordinator bound to the default store and transport."""
    if _config is not None:
        options.setdefault("credentials", _config.credentials)
    return FetchCoordinator(endpoint, store=get_store(), transport=get_transport(), **options)


def new_mutation_executor() -> MutationExecutor:
    return MutationExecutor(get_store(), get_transport())
