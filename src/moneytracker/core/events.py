"""Structured event records for queue and sync state transitions.

Functions:
    utc_now_iso: Current UTC time as ISO-8601 with a Z suffix
    emit_event: Build an event dict and log it as JSON
"""
import json
import logging
from datetime import datetime, timezone

logger = logging.getLogger("moneytracker.events")


def utc_now_iso() -> str:
    """Current UTC time in ISO-8601 format with a Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def emit_event(event_type: str, data: dict) -> dict:
    """Emit an event with standard fields.

    Logs the JSON-serialized event at INFO on the ``moneytracker.events``
    logger. Values that are not JSON-native are stringified.

    Args:
        event_type: Type of event (offline_enqueue, drain_complete, ...)
        data: Event payload

    Returns:
        Complete event dict with event_type and ts
    """
    event = {
        "event_type": event_type,
        "ts": utc_now_iso(),
        **data,
    }

    logger.info(json.dumps(event, sort_keys=True, default=str))

    return event
