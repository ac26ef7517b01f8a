"""Client configuration for the ObservePoint console.

Environment variables (see .env.defaults):
- OBSERVEPOINT_API_BASE_URL: Base URL of the vendor REST API.
- OBSERVEPOINT_API_KEY: Fallback API key when none is stored locally.
- OBSERVEPOINT_REQUEST_TIMEOUT_SECONDS: HTTP timeout.
- OBSERVEPOINT_POLL_INTERVAL_SECONDS: Delay between run status re-fetches.
- OBSERVEPOINT_LEGACY_VALIDATION_MATCH: Also treat journeys named
  "...Validation..."/"...Audit..." (or labelled web-audit) as validations.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from .config_defaults import get_default

DEFAULT_BASE_URL = "https://api.observepoint.com/v2"


def _truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _setting(key: str, fallback: str | None = None) -> str | None:
    value = os.environ.get(key)
    if value is None or value.strip() == "":
        value = get_default(key, fallback)
    return value


def _float_setting(key: str, fallback: float) -> float:
    raw = (_setting(key) or "").strip()
    try:
        return float(raw)
    except ValueError:
        return fallback


@dataclass(frozen=True)
class ClientConfig:
    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    timeout_seconds: float = 30.0
    poll_interval_seconds: float = 5.0
    legacy_validation_match: bool = True

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def with_api_key(self, api_key: str | None) -> "ClientConfig":
        return replace(self, api_key=api_key or None)


def get_client_config(stored_api_key: str | None = None) -> ClientConfig:
    """Build the client configuration.

    A key found in local storage takes precedence over the build-time
    fallback key.
    """
    base_url = (_setting("OBSERVEPOINT_API_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
    fallback_key = (_setting("OBSERVEPOINT_API_KEY") or "").strip() or None
    api_key = (stored_api_key or "").strip() or fallback_key

    return ClientConfig(
        base_url=base_url,
        api_key=api_key,
        timeout_seconds=_float_setting("OBSERVEPOINT_REQUEST_TIMEOUT_SECONDS", 30.0),
        poll_interval_seconds=_float_setting("OBSERVEPOINT_POLL_INTERVAL_SECONDS", 5.0),
        legacy_validation_match=_truthy(_setting("OBSERVEPOINT_LEGACY_VALIDATION_MATCH", "true")),
    )
