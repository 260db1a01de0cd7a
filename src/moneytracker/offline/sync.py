"""Synchronizer: offline-aware writes and queue replay.

Handles the transition between offline and online state, ensuring all
locally queued mutations eventually reach the remote store.

Drain process:
1. Skip if offline or a drain is already running
2. Read the queue snapshot
3. Replay each mutation in enqueue order
4. Keep failures, drop successes
5. Persist the retained set (empty -> remove the key)
6. Optionally notify the user with a summary

A failed replay is retried on the next tick or reconnect, with no
backoff and no retry ceiling.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from moneytracker.core.constants import SYNC_INTERVAL_SECONDS
from moneytracker.core.errors import RemoteStoreError
from moneytracker.core.events import emit_event, utc_now_iso
from moneytracker.core.schemas import Table, payload_from_dict, payload_to_dict, to_table
from moneytracker.notify import Notifier, Severity
from moneytracker.offline.cache import CacheStore
from moneytracker.offline.connectivity import ConnectivityTracker
from moneytracker.offline.queue import MutationKind, MutationQueue, PendingMutation
from moneytracker.remote.base import RemoteStore

logger = logging.getLogger("moneytracker.sync")


@dataclass(frozen=True)
class DrainResult:
    """Outcome of one drain attempt.

    ``skipped`` names why nothing was attempted: "offline", "in_flight"
    or "empty". It is None when the queue was replayed.
    """
    success_count: int = 0
    failed_count: int = 0
    skipped: str | None = None


class Synchronizer:
    """Owns the drain guard, the periodic timer and the offline write path.

    One instance per application session.
    """

    def __init__(
        self,
        remote: RemoteStore,
        queue: MutationQueue,
        connectivity: ConnectivityTracker,
        notifier: Notifier,
        cache: CacheStore | None = None,
        interval: float = SYNC_INTERVAL_SECONDS,
    ):
        self.remote = remote
        self.queue = queue
        self.connectivity = connectivity
        self.notifier = notifier
        self.cache = cache
        self.interval = interval

        self._draining = False
        self._timer: asyncio.Task | None = None
        self._stopping: asyncio.Event | None = None
        self._reachability: Callable[[], bool] | None = None
        self._background: set[asyncio.Task] = set()
        self.last_sync_time: str | None = None

        self._unsubscribe = connectivity.subscribe(self._on_connectivity)

    # ------------------------------------------------------------------
    # State

    @property
    def is_syncing(self) -> bool:
        return self._draining

    @property
    def pending_count(self) -> int:
        return self.queue.size

    def status(self) -> dict:
        return {
            "online": self.connectivity.is_online,
            "syncing": self._draining,
            "pending_count": self.pending_count,
            "last_sync_time": self.last_sync_time,
        }

    # ------------------------------------------------------------------
    # Drain

    async def drain(self, notify: bool = True) -> DrainResult:
        """Replay every queued mutation against the remote store.

        Args:
            notify: Send a summary notification when something was replayed

        Returns:
            DrainResult with success and failure counts
        """
        if not self.connectivity.is_online:
            return DrainResult(skipped="offline")
        if self._draining:
            logger.debug("Drain already in flight, skipping")
            return DrainResult(skipped="in_flight")

        self._draining = True
        try:
            pending = self.queue.snapshot()
            if not pending:
                return DrainResult(skipped="empty")

            success_count = 0
            retained: list[PendingMutation] = []

            try:
                for mutation in pending:
                    try:
                        await self._apply(mutation)
                        success_count += 1
                    except Exception as e:
                        logger.error(f"Sync error on {mutation.kind.value} {mutation.id}: {e}")
                        retained.append(mutation)
            finally:
                # A cancelled drain keeps the in-flight mutation and the rest
                unattempted = pending[success_count + len(retained):]
                if unattempted:
                    logger.warning(f"Drain interrupted with {len(unattempted)} mutations unattempted")
                # Mutations enqueued while this drain was awaiting the remote store
                seen = {m.id for m in pending}
                newer = [m for m in self.queue.snapshot() if m.id not in seen]
                self.queue.replace(retained + unattempted + newer)

            result = DrainResult(success_count=success_count, failed_count=len(retained))
            self.last_sync_time = utc_now_iso()

            emit_event("drain_complete", {
                "success_count": result.success_count,
                "failed_count": result.failed_count,
                "pending_count": len(retained) + len(newer),
            })
        finally:
            self._draining = False

        if notify:
            self._notify_summary(result)
        return result

    async def _apply(self, mutation: PendingMutation) -> Any:
        table = mutation.target.value
        data = payload_to_dict(mutation.payload)

        if mutation.kind is MutationKind.INSERT:
            return await self.remote.insert(table, data)
        elif mutation.kind is MutationKind.UPDATE:
            record_id = data.pop("id")
            return await self.remote.update(table, record_id, data)
        elif mutation.kind is MutationKind.DELETE:
            return await self.remote.delete(table, data["id"])
        raise ValueError(f"Unknown mutation kind: {mutation.kind}")

    def _notify_summary(self, result: DrainResult) -> None:
        if result.success_count > 0:
            description = None
            if result.failed_count:
                description = f"{result.failed_count} transactions could not be synced"
            self.notifier.notify(
                Severity.SUCCESS,
                f"{result.success_count} transactions synced",
                description,
            )
        elif result.failed_count > 0:
            self.notifier.notify(
                Severity.WARNING,
                "Sync failed",
                f"{result.failed_count} transactions will be retried",
            )

    # ------------------------------------------------------------------
    # Offline-aware writes

    async def offline_insert(
        self,
        table: Table | str,
        data: dict,
        optimistic: bool = False,
    ) -> list[dict] | None:
        """Insert a record, queueing it when offline.

        Args:
            table: Target table
            data: Record fields
            optimistic: When offline, return the record with its temporary id

        Returns:
            Stored rows when online; ``[record]`` with a temporary id when
            offline and optimistic; otherwise None

        Raises:
            SchemaError: If ``data`` does not fit the table
            RemoteStoreError: If the direct insert fails while online
        """
        table = to_table(table)
        payload = payload_from_dict(table, data)

        if self.connectivity.is_online:
            return await self.remote.insert(table.value, payload_to_dict(payload))

        mutation = PendingMutation.insert(table, payload)
        self.queue.enqueue(mutation)

        if optimistic:
            return [{**payload_to_dict(payload), "id": mutation.id}]
        return None

    async def offline_update(
        self,
        table: Table | str,
        record_id: str,
        data: dict,
    ) -> list[dict] | None:
        """Update a record by id, queueing it when offline.

        Returns:
            Updated rows when online, None when queued
        """
        table = to_table(table)
        payload = payload_from_dict(table, {**data, "id": record_id}, partial=True)

        if self.connectivity.is_online:
            partial = payload_to_dict(payload)
            partial.pop("id")
            return await self.remote.update(table.value, record_id, partial)

        self.queue.enqueue(PendingMutation.update(table, record_id, payload))
        return None

    async def offline_delete(self, table: Table | str, record_id: str) -> bool:
        """Delete a record by id, queueing it when offline."""
        table = to_table(table)

        if self.connectivity.is_online:
            return await self.remote.delete(table.value, record_id)

        self.queue.enqueue(PendingMutation.delete(table, record_id))
        return True

    # ------------------------------------------------------------------
    # Read-through

    async def fetch(
        self,
        table: Table | str,
        filters: dict | None = None,
        cache_key: str | None = None,
        max_age: float | None = None,
    ) -> list[dict] | None:
        """Read rows, falling back to the cache when offline or unreachable.

        A successful remote read refreshes the cache entry. Returns None when
        the remote read is impossible and no usable cache exists.
        """
        table = to_table(table)
        key = cache_key or table.value

        if self.connectivity.is_online:
            try:
                rows = await self.remote.select(table.value, filters)
            except RemoteStoreError as e:
                logger.warning(f"Falling back to cache for {key}: {e}")
            else:
                if self.cache is not None:
                    self.cache.cache_data(key, rows)
                return rows

        if self.cache is None:
            return None
        return self.cache.get_from_cache(key, max_age)

    # ------------------------------------------------------------------
    # Connectivity and timer

    def _on_connectivity(self, online: bool) -> None:
        if online:
            self.notifier.notify(Severity.SUCCESS, "Connection restored", "Syncing data...")
            self._schedule_drain()
        else:
            self.notifier.notify(
                Severity.WARNING,
                "Offline mode",
                "Changes will be synced when you are back online.",
            )

    def _schedule_drain(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self.drain())
            return
        task = loop.create_task(self.drain())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _tick(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self._stopping.wait(), self.interval)
                return
            except asyncio.TimeoutError:
                pass

            try:
                if self._reachability is not None:
                    was_online = self.connectivity.is_online
                    await self._refresh_connectivity()
                    if not was_online:
                        # A reconnect schedules its own drain
                        continue
                if self.connectivity.is_online:
                    await self.drain(notify=False)
            except Exception:
                logger.exception("Sync tick failed")

    async def _refresh_connectivity(self) -> None:
        if await asyncio.to_thread(self._reachability):
            self.connectivity.set_online()
        else:
            self.connectivity.set_offline()

    def start(self, reachability: Callable[[], bool] | None = None) -> None:
        """Start the periodic drain timer on the running event loop.

        Args:
            reachability: Optional check run before every tick; its
                result is fed to the connectivity tracker
        """
        if self._timer is None or self._timer.done():
            self._reachability = reachability
            self._stopping = asyncio.Event()
            self._timer = asyncio.get_running_loop().create_task(self._tick())
            logger.info(f"Sync timer started ({self.interval}s)")

    async def stop(self) -> None:
        """Stop the timer once its current tick completes.

        A drain in progress is never cancelled; background drains are
        awaited too.
        """
        if self._timer is not None:
            self._stopping.set()
            await self._timer
            self._timer = None
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def run_forever(self, reachability: Callable[[], bool] | None = None) -> None:
        """Drain once, then keep ticking until cancelled."""
        await self.drain()
        self.start(reachability)
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    def close(self) -> None:
        """Detach from the connectivity tracker."""
        self._unsubscribe()
