"""Configuration loader for the fetch layer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from .transport import CREDENTIAL_MODES


@dataclass(frozen=True)
class FetchConfig:
    base_url: str
    default_ttl_sec: float
    request_timeout_sec: float
    credentials: str
    log_level: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FetchConfig":
        credentials = data.get("credentials", "include")
        if credentials not in CREDENTIAL_MODES:
            raise ValueError(f"credentials must be one of {CREDENTIAL_MODES}, got {credentials!r}")
        return cls(
            base_url=str(data.get("base_url", "") or ""),
            default_ttl_sec=float(data.get("default_ttl_sec", 300)),
            request_timeout_sec=float(data.get("request_timeout_sec", 30)),
            credentials=credentials,
            log_level=str(data.get("log_level", "INFO")).upper(),
        )


ENV_MAP = {
    "base_url": "DATAFETCH_BASE_URL",
    "default_ttl_sec": "DATAFETCH_DEFAULT_TTL_SEC",
    "request_timeout_sec": "DATAFETCH_REQUEST_TIMEOUT_SEC",
    "credentials": "DATAFETCH_CREDENTIALS",
    "log_level": "DATAFETCH_LOG_LEVEL",
}


def load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def merge_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    merged = json.loads(json.dumps(config_data))  # deep copy via json

    for key, env_name in ENV_MAP.items():
        if env_name not in os.environ:
            continue
        value: Any = os.environ[env_name]
        if key in {"default_ttl_sec", "request_timeout_sec"}:
            value = float(value)
        merged[key] = value

    return merged


def load_config(config_path: str | Path = "config/datafetch.defaults.yml") -> FetchConfig:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = load_yaml(path)
    data = merge_env_overrides(data)
    return FetchConfig.from_dict(data)
