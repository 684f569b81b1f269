from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from walkthrough.core.secrets import REDACTED

logger = logging.getLogger("walkthrough.events")

# Stable category stamped onto every structured event for downstream filtering.
EVENT_CATEGORY_MAP: Dict[str, str] = {
    "config_resolved": "config",
    "config_invalid": "config",
    "broker_client_built": "broker",
    "broker_request_completed": "broker",
    "broker_request_failed": "broker",
    "walkthrough_started": "runtime",
    "walkthrough_completed": "runtime",
}

_SENSITIVE_KEYS = frozenset({"secret", "secret_key", "api_secret", "password", "token"})

_context: Dict[str, Any] = {}


def bind_log_context(**fields: Any) -> None:
    """Attach process-wide contextual fields (e.g. mode, run_id)."""

    _context.update({key: value for key, value in fields.items() if value is not None})


def clear_log_context() -> None:
    _context.clear()


def log_event(event: str, **fields: Any) -> Dict[str, Any]:
    """Emit a JSON log entry tagged with the supplied event name and return its payload."""

    payload: Dict[str, Any] = {**_context, **_redact_fields(fields)}
    payload["event"] = event
    category = EVENT_CATEGORY_MAP.get(event)
    if category:
        payload.setdefault("category", category)
    payload.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    logger.info(json.dumps(payload, default=str))
    return payload


def _redact_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: (REDACTED if key.lower() in _SENSITIVE_KEYS and value else value) for key, value in fields.items()}


__all__ = ["EVENT_CATEGORY_MAP", "bind_log_context", "clear_log_context", "log_event"]
