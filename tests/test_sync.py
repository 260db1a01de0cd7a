"""Tests for the synchronizer: offline writes, drain and reconnect."""
import asyncio

import pytest

from conftest import expense
from moneytracker.core.errors import RemoteStoreError, SchemaError
from moneytracker.notify import Severity
from moneytracker.offline import MutationKind, is_temp_id


def run(coro):
    return asyncio.run(coro)


class TestOfflineWrites:
    """Write path while offline and online."""

    def test_offline_insert_queues(self, synchronizer, queue, remote):
        result = run(synchronizer.offline_insert("transactions", expense(12.5)))

        assert result is None
        assert queue.size == 1
        assert remote.calls == []
        assert queue.snapshot()[0].kind is MutationKind.INSERT

    def test_offline_insert_optimistic_returns_temp_id(self, synchronizer):
        result = run(synchronizer.offline_insert("transactions", expense(12.5), optimistic=True))

        assert len(result) == 1
        assert is_temp_id(result[0]["id"])
        assert result[0]["amount"] == 12.5

    def test_temp_id_is_not_reconciled_after_drain(self, synchronizer, connectivity, remote, queue):
        """The remote assigns its own id; the temporary one is never rewritten."""
        optimistic = run(synchronizer.offline_insert("transactions", expense(5), optimistic=True))
        temp_id = optimistic[0]["id"]

        connectivity._online = True
        result = run(synchronizer.drain())

        assert result.success_count == 1
        stored = list(remote.tables["transactions"].values())
        assert len(stored) == 1
        assert stored[0]["id"] != temp_id
        assert not is_temp_id(stored[0]["id"])
        assert queue.size == 0

    def test_offline_update_and_delete_queue(self, synchronizer, queue):
        assert run(synchronizer.offline_update("transactions", "abc", {"amount": 3})) is None
        assert run(synchronizer.offline_delete("transactions", "abc")) is True

        pending = queue.snapshot()
        assert [m.kind for m in pending] == [MutationKind.UPDATE, MutationKind.DELETE]
        assert pending[0].id.startswith("update_abc_")
        assert pending[1].id.startswith("delete_abc_")

    def test_online_insert_goes_direct(self, synchronizer, connectivity, remote, queue):
        connectivity._online = True
        result = run(synchronizer.offline_insert("transactions", expense(7)))

        assert result[0]["id"] == "row-1"
        assert queue.size == 0

    def test_online_failure_propagates(self, synchronizer, connectivity, remote, queue):
        connectivity._online = True
        remote.fail_when = lambda op, table, data: True

        with pytest.raises(RemoteStoreError):
            run(synchronizer.offline_insert("transactions", expense(7)))
        assert queue.size == 0

    def test_online_update_sends_partial_without_id(self, synchronizer, connectivity, remote):
        connectivity._online = True
        run(synchronizer.offline_update("transactions", "abc", {"amount": 9}))

        assert remote.calls == [("update", "transactions", {"id": "abc", "amount": 9})]
        assert remote.tables["transactions"]["abc"] == {"id": "abc", "amount": 9}

    def test_invalid_payload_rejected_before_queueing(self, synchronizer, queue):
        with pytest.raises(SchemaError):
            run(synchronizer.offline_insert("transactions", {"amount": 1}))
        with pytest.raises(SchemaError):
            run(synchronizer.offline_insert("no_such_table", expense(1)))
        assert queue.size == 0


class TestDrain:
    """Queue replay."""

    def _queue_three(self, synchronizer):
        for amount in (1, 2, 3):
            run(synchronizer.offline_insert("transactions", expense(amount)))

    def test_drain_all_succeed(self, synchronizer, connectivity, queue, storage):
        self._queue_three(synchronizer)
        connectivity._online = True

        result = run(synchronizer.drain())

        assert result.success_count == 3
        assert result.failed_count == 0
        assert queue.size == 0
        assert queue.key not in storage.data

    def test_partial_failure_retains_failed_in_order(self, synchronizer, connectivity, remote, queue):
        self._queue_three(synchronizer)
        connectivity._online = True
        remote.fail_when = lambda op, table, data: data.get("amount") == 2

        result = run(synchronizer.drain())

        assert result.success_count == 2
        assert result.failed_count == 1
        assert [m.payload.amount for m in queue.snapshot()] == [2]
        assert [c[2]["amount"] for c in remote.calls] == [1, 2, 3]

        remote.fail_when = None
        result = run(synchronizer.drain())
        assert result.success_count == 1
        assert queue.size == 0

    def test_drain_replays_every_kind(self, synchronizer, connectivity, remote):
        run(synchronizer.offline_insert("transactions", expense(4)))
        run(synchronizer.offline_update("budgets", "b1", {"amount": 900}))
        run(synchronizer.offline_delete("transaction_comments", "c1"))
        connectivity._online = True

        run(synchronizer.drain())

        assert [(c[0], c[1]) for c in remote.calls] == [
            ("insert", "transactions"),
            ("update", "budgets"),
            ("delete", "transaction_comments"),
        ]
        assert remote.calls[1][2] == {"id": "b1", "amount": 900}

    def test_repeated_updates_are_not_coalesced(self, synchronizer, connectivity, remote):
        run(synchronizer.offline_update("transactions", "t1", {"amount": 1}))
        run(synchronizer.offline_update("transactions", "t1", {"amount": 2}))
        connectivity._online = True

        result = run(synchronizer.drain())

        assert result.success_count == 2
        assert remote.tables["transactions"]["t1"]["amount"] == 2

    def test_drain_skipped_when_offline(self, synchronizer, remote):
        self._queue_three(synchronizer)

        result = run(synchronizer.drain())

        assert result.skipped == "offline"
        assert remote.calls == []

    def test_drain_empty_queue(self, synchronizer, connectivity, notifier):
        connectivity._online = True
        result = run(synchronizer.drain())

        assert result.skipped == "empty"
        assert notifier.sent == []

    def test_concurrent_drain_is_noop(self, synchronizer, connectivity, remote, queue):
        self._queue_three(synchronizer)
        connectivity._online = True
        remote.delay = 0.01

        async def both():
            return await asyncio.gather(synchronizer.drain(), synchronizer.drain())

        first, second = run(both())

        assert first.success_count == 3
        assert second.skipped == "in_flight"
        assert second.success_count == 0
        assert len(remote.calls) == 3
        assert queue.size == 0

    def test_enqueue_during_drain_is_kept(self, synchronizer, connectivity, remote, queue):
        run(synchronizer.offline_insert("transactions", expense(1)))
        connectivity._online = True
        remote.delay = 0.01

        async def drain_and_go_offline():
            task = asyncio.ensure_future(synchronizer.drain(notify=False))
            await asyncio.sleep(0)
            connectivity._online = False
            await synchronizer.offline_insert("transactions", expense(99))
            return await task

        result = run(drain_and_go_offline())

        assert result.success_count == 1
        assert [m.payload.amount for m in queue.snapshot()] == [99]

    def test_cancelled_drain_keeps_only_unapplied(self, synchronizer, connectivity, remote, queue):
        self._queue_three(synchronizer)
        connectivity._online = True
        remote.delay = 0.05

        async def cancel_mid_drain():
            task = asyncio.ensure_future(synchronizer.drain(notify=False))
            while len(remote.calls) < 2:
                await asyncio.sleep(0.005)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        run(cancel_mid_drain())

        assert len(remote.tables["transactions"]) == 1
        assert [m.payload.amount for m in queue.snapshot()] == [2, 3]
        assert synchronizer.is_syncing is False

        remote.delay = 0
        run(synchronizer.drain(notify=False))
        assert sorted(r["amount"] for r in remote.tables["transactions"].values()) == [1, 2, 3]

    def test_summary_notification(self, synchronizer, connectivity, remote, notifier):
        self._queue_three(synchronizer)
        connectivity._online = True
        remote.fail_when = lambda op, table, data: data.get("amount") == 3

        run(synchronizer.drain())

        assert len(notifier.sent) == 1
        assert notifier.sent[0].severity is Severity.SUCCESS
        assert notifier.sent[0].title == "2 transactions synced"
        assert "1" in notifier.sent[0].description

    def test_no_notification_when_disabled(self, synchronizer, connectivity, notifier):
        self._queue_three(synchronizer)
        connectivity._online = True

        run(synchronizer.drain(notify=False))

        assert notifier.sent == []

    def test_queue_survives_restart(self, synchronizer, storage, remote, connectivity, notifier):
        from moneytracker.offline import MutationQueue, Synchronizer

        self._queue_three(synchronizer)

        reloaded = Synchronizer(remote, MutationQueue(storage), connectivity, notifier)
        connectivity._online = True
        result = run(reloaded.drain(notify=False))
        reloaded.close()

        assert result.success_count == 3


class TestReconnect:
    """Connectivity transitions drive notifications and drains."""

    def test_going_offline_notifies(self, synchronizer, connectivity, notifier):
        connectivity.set_online()
        notifier.clear()

        connectivity.set_offline()

        assert [n.severity for n in notifier.sent] == [Severity.WARNING]

    def test_reconnect_drains(self, synchronizer, connectivity, queue, notifier):
        run(synchronizer.offline_insert("transactions", expense(8)))

        connectivity.set_online()

        assert queue.size == 0
        assert notifier.sent[0].title == "Connection restored"
        assert notifier.sent[-1].title == "1 transactions synced"

    def test_reconnect_inside_event_loop_schedules_drain(self, synchronizer, connectivity, queue):
        run(synchronizer.offline_insert("transactions", expense(8)))

        async def reconnect():
            connectivity.set_online()
            assert queue.size == 1
            await synchronizer.stop()

        run(reconnect())
        assert queue.size == 0

    def test_timer_drains_while_online(self, synchronizer, connectivity, queue):
        run(synchronizer.offline_insert("transactions", expense(8)))
        connectivity._online = True

        async def tick():
            synchronizer.start()
            for _ in range(50):
                await asyncio.sleep(0.01)
                if queue.size == 0:
                    break
            await synchronizer.stop()

        run(tick())
        assert queue.size == 0

    def test_stop_waits_for_running_drain(self, synchronizer, connectivity, remote, queue):
        for amount in (1, 2, 3):
            run(synchronizer.offline_insert("transactions", expense(amount)))
        connectivity._online = True
        remote.delay = 0.05

        async def stop_mid_drain():
            synchronizer.start()
            while len(remote.calls) < 2:
                await asyncio.sleep(0.005)
            await synchronizer.stop()

        run(stop_mid_drain())

        assert len(remote.tables["transactions"]) == 3
        assert queue.size == 0

    def test_timer_survives_storage_error(self, remote, connectivity, notifier, caplog):
        from moneytracker.core.errors import StorageError
        from moneytracker.offline import MemoryStorage, MutationQueue, Synchronizer

        class FlakyStorage(MemoryStorage):
            failures = 1

            def remove(self, key):
                if self.failures:
                    self.failures -= 1
                    raise StorageError("disk full")
                super().remove(key)

        queue = MutationQueue(FlakyStorage())
        sync = Synchronizer(remote, queue, connectivity, notifier, interval=0.01)
        run(sync.offline_insert("transactions", expense(8)))
        connectivity._online = True

        async def tick():
            sync.start()
            for _ in range(100):
                await asyncio.sleep(0.01)
                if queue.size == 0:
                    break
            alive = not sync._timer.done()
            await sync.stop()
            return alive

        with caplog.at_level("ERROR", logger="moneytracker.sync"):
            alive = run(tick())
        sync.close()

        assert alive
        assert queue.size == 0
        assert "Sync tick failed" in caplog.text

    def test_reachability_check_feeds_reconnect(self, synchronizer, connectivity, queue, notifier):
        run(synchronizer.offline_insert("transactions", expense(8)))
        answers = iter([False, False])

        async def watch():
            synchronizer.start(reachability=lambda: next(answers, True))
            for _ in range(100):
                await asyncio.sleep(0.01)
                if queue.size == 0:
                    break
            await synchronizer.stop()

        run(watch())

        assert connectivity.is_online
        assert queue.size == 0
        titles = [n.title for n in notifier.sent]
        assert titles[0] == "Connection restored"
        assert "1 transactions synced" in titles

    def test_reachability_check_detects_offline(self, synchronizer, connectivity, notifier):
        connectivity._online = True

        async def watch():
            synchronizer.start(reachability=lambda: False)
            for _ in range(100):
                await asyncio.sleep(0.01)
                if not connectivity.is_online:
                    break
            await synchronizer.stop()

        run(watch())

        assert not connectivity.is_online
        assert [n.title for n in notifier.sent] == ["Offline mode"]

    def test_status(self, synchronizer):
        run(synchronizer.offline_insert("transactions", expense(8)))
        status = synchronizer.status()

        assert status["online"] is False
        assert status["pending_count"] == 1
        assert status["syncing"] is False


class TestReadThrough:
    """fetch() refreshes the cache online and serves it offline."""

    def test_fetch_online_caches(self, synchronizer, connectivity, remote, cache):
        connectivity._online = True
        run(synchronizer.offline_insert("transactions", expense(3)))

        rows = run(synchronizer.fetch("transactions", {"user_id": "u1"}))

        assert len(rows) == 1
        assert cache.get_from_cache("transactions") == rows

    def test_fetch_offline_uses_cache(self, synchronizer, remote, cache):
        cache.cache_data("transactions", [{"id": "x"}])

        assert run(synchronizer.fetch("transactions")) == [{"id": "x"}]
        assert remote.calls == []

    def test_fetch_remote_error_falls_back(self, synchronizer, connectivity, remote, cache):
        cache.cache_data("mine", [{"id": "x"}])
        connectivity._online = True
        remote.fail_when = lambda op, table, data: True

        assert run(synchronizer.fetch("transactions", cache_key="mine")) == [{"id": "x"}]

    def test_fetch_without_cache_returns_none(self, synchronizer):
        assert run(synchronizer.fetch("budgets")) is None
