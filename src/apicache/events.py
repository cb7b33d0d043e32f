"""Cache activity records with schema enforcement."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

EVENT_TYPES = ("hit", "miss", "join", "write", "failure", "invalidate", "reset")

CACHE_EVENT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["event", "key", "at"],
    "properties": {
        "event": {"type": "string", "enum": list(EVENT_TYPES)},
        "key": {"type": ["string", "null"]},
        "at": {"type": "number", "minimum": 0},
        "force_refresh": {"type": "boolean"},
        "ttl_sec": {"type": ["number", "null"], "minimum": 0},
        "removed": {"type": "integer", "minimum": 0},
        "error": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

_validator = Draft7Validator(CACHE_EVENT_SCHEMA)


def validate_event(payload: Dict[str, Any]) -> None:
    errors = sorted(_validator.iter_errors(payload), key=lambda e: e.path)
    if errors:
        messages = ", ".join(error.message for error in errors)
        raise ValueError(f"cache event validation failed: {messages}")


@dataclass
class CacheEvent:
    event: str
    key: Optional[str]
    at: float = field(default_factory=time.time)
    force_refresh: bool = False
    ttl_sec: Optional[float] = None
    removed: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "event": self.event,
            "key": self.key,
            "at": self.at,
            "force_refresh": self.force_refresh,
            "ttl_sec": self.ttl_sec,
            "removed": self.removed,
            "error": self.error,
        }
        validate_event(payload)
        return payload
