"""Offline mode for disconnected writes.

Writes made while offline are queued locally and replayed against the
remote store when connectivity returns or the sync timer ticks.
Fetched data can be cached for display while offline.

Usage:
    from moneytracker.offline import (
        ConnectivityTracker, FileStorage, MutationQueue, Synchronizer,
    )

    storage = FileStorage()
    sync = Synchronizer(remote, MutationQueue(storage), ConnectivityTracker(), notifier)

    # Write; queued if offline
    await sync.offline_insert("transactions", {...}, optimistic=True)

    # Replay the queue
    result = await sync.drain()
"""
from moneytracker.offline.storage import (
    FileStorage,
    LocalStorage,
    MemoryStorage,
    load_json,
    save_json,
)
from moneytracker.offline.queue import (
    MutationKind,
    MutationQueue,
    PendingMutation,
    is_temp_id,
    make_temp_id,
)
from moneytracker.offline.cache import CacheStore, CachedEntry
from moneytracker.offline.connectivity import ConnectivityTracker, probe
from moneytracker.offline.sync import DrainResult, Synchronizer

__all__ = [
    # Storage
    "FileStorage",
    "LocalStorage",
    "MemoryStorage",
    "load_json",
    "save_json",
    # Queue
    "MutationKind",
    "MutationQueue",
    "PendingMutation",
    "is_temp_id",
    "make_temp_id",
    # Cache
    "CacheStore",
    "CachedEntry",
    # Connectivity
    "ConnectivityTracker",
    "probe",
    # Sync
    "DrainResult",
    "Synchronizer",
]
