"""Core subpackage for MoneyTracker primitives.

Exports from constants.py, errors.py, events.py and schemas.py.
"""
from .constants import (
    PENDING_MUTATIONS_KEY,
    CACHED_DATA_KEY,
    SYNC_INTERVAL_SECONDS,
    TEMP_ID_PREFIX,
    CACHE_MAX_ENTRIES,
    BUDGET_ALERT_THRESHOLD_PCT,
    BUDGET_ALERT_BUCKET_PCT,
    OVER_BUDGET_PCT,
)
from .errors import MoneyTrackerError, RemoteStoreError, SchemaError, StorageError
from .events import emit_event, utc_now_iso
from .schemas import (
    Table,
    RecordRef,
    TABLE_PAYLOADS,
    REQUIRED_FIELDS,
    payload_from_dict,
    payload_to_dict,
)

__all__ = [
    # Constants
    "PENDING_MUTATIONS_KEY",
    "CACHED_DATA_KEY",
    "SYNC_INTERVAL_SECONDS",
    "TEMP_ID_PREFIX",
    "CACHE_MAX_ENTRIES",
    "BUDGET_ALERT_THRESHOLD_PCT",
    "BUDGET_ALERT_BUCKET_PCT",
    "OVER_BUDGET_PCT",
    # Errors
    "MoneyTrackerError",
    "RemoteStoreError",
    "SchemaError",
    "StorageError",
    # Events
    "emit_event",
    "utc_now_iso",
    # Schemas
    "Table",
    "RecordRef",
    "TABLE_PAYLOADS",
    "REQUIRED_FIELDS",
    "payload_from_dict",
    "payload_to_dict",
]
