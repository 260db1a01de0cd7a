"""Test configuration and fixtures for the offline sync harness.

FakeRemote: in-memory remote store with failure injection
Fixtures: storage, queue, connectivity, notifier, remote, synchronizer
"""
import asyncio
import os
import sys
from collections import defaultdict

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from moneytracker.core.errors import RemoteStoreError
from moneytracker.notify import RecordingNotifier
from moneytracker.offline import (
    CacheStore,
    ConnectivityTracker,
    MemoryStorage,
    MutationQueue,
    Synchronizer,
)


class FakeRemote:
    """Remote store keeping rows per table in memory.

    ``fail_when(operation, table, data)`` returning True makes a call raise
    RemoteStoreError. ``delay`` suspends every call, so overlapping drains
    can be observed.
    """

    def __init__(self):
        self.tables: dict[str, dict[str, dict]] = defaultdict(dict)
        self.calls: list[tuple[str, str, dict]] = []
        self.fail_when = None
        self.delay = 0.0
        self._next_id = 1

    async def _enter(self, operation: str, table: str, data: dict):
        self.calls.append((operation, table, dict(data)))
        await asyncio.sleep(self.delay)
        if self.fail_when is not None and self.fail_when(operation, table, data):
            raise RemoteStoreError(f"{operation} rejected", table=table, operation=operation)

    async def insert(self, table: str, record: dict) -> list[dict]:
        await self._enter("insert", table, record)
        row = {**record, "id": f"row-{self._next_id}"}
        self._next_id += 1
        self.tables[table][row["id"]] = row
        return [row]

    async def update(self, table: str, record_id: str, partial: dict) -> list[dict]:
        await self._enter("update", table, {"id": record_id, **partial})
        row = self.tables[table].setdefault(record_id, {"id": record_id})
        row.update(partial)
        return [dict(row)]

    async def delete(self, table: str, record_id: str) -> bool:
        await self._enter("delete", table, {"id": record_id})
        self.tables[table].pop(record_id, None)
        return True

    async def select(self, table: str, filters: dict | None = None) -> list[dict]:
        await self._enter("select", table, filters or {})
        return [
            dict(row) for row in self.tables[table].values()
            if all(row.get(k) == v for k, v in (filters or {}).items())
        ]


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def queue(storage) -> MutationQueue:
    return MutationQueue(storage)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(storage, clock) -> CacheStore:
    return CacheStore(storage, max_entries=3, clock=clock)


@pytest.fixture
def connectivity() -> ConnectivityTracker:
    return ConnectivityTracker(initial_online=False)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def synchronizer(remote, queue, connectivity, notifier, cache) -> Synchronizer:
    sync = Synchronizer(remote, queue, connectivity, notifier, cache=cache, interval=0.01)
    yield sync
    sync.close()


def expense(amount: float, category: str = "food", **extra) -> dict:
    """Transaction record for the transactions table."""
    return {"user_id": "u1", "amount": amount, "type": "expense", "category": category, **extra}
