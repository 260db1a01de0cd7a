"""Local mutation queue for offline operation.

Writes that cannot reach the remote store are appended here and
replayed, oldest first, when connectivity returns.

Design constraints:
- Whole-snapshot read-modify-write (no per-item updates)
- Persisted on every change, survives restarts
- No deduplication or coalescing: each mutation replays on its own
- Entries are never modified after enqueue
"""
import logging
import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum

from moneytracker.core.constants import (
    PENDING_MUTATIONS_KEY,
    TEMP_ID_PREFIX,
    TEMP_ID_SUFFIX_LENGTH,
)
from moneytracker.core.errors import SchemaError
from moneytracker.core.events import emit_event
from moneytracker.core.schemas import (
    Payload,
    RecordRef,
    Table,
    payload_from_dict,
    payload_to_dict,
    to_table,
)
from moneytracker.offline.storage import LocalStorage, load_json, save_json

logger = logging.getLogger("moneytracker.queue")

_BASE36 = string.digits + string.ascii_lowercase


class MutationKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _suffix() -> str:
    return "".join(random.choices(_BASE36, k=TEMP_ID_SUFFIX_LENGTH))


def make_temp_id() -> str:
    """Temporary id for an offline insert: ``temp_<ms>_<9 base36 chars>``."""
    return f"{TEMP_ID_PREFIX}{_now_ms()}_{_suffix()}"


def is_temp_id(value) -> bool:
    """True if ``value`` was generated locally rather than by the remote store."""
    return isinstance(value, str) and value.startswith(TEMP_ID_PREFIX)


@dataclass(frozen=True)
class PendingMutation:
    """A write waiting to be replayed against the remote store."""
    id: str
    kind: MutationKind
    target: Table
    payload: Payload
    enqueued_at: int = field(default_factory=_now_ms)

    @classmethod
    def insert(cls, target: Table | str, payload: Payload) -> "PendingMutation":
        return cls(id=make_temp_id(), kind=MutationKind.INSERT,
                   target=to_table(target), payload=payload)

    @classmethod
    def update(cls, target: Table | str, record_id: str, payload: Payload) -> "PendingMutation":
        return cls(id=f"update_{record_id}_{_now_ms()}_{_suffix()}", kind=MutationKind.UPDATE,
                   target=to_table(target), payload=payload)

    @classmethod
    def delete(cls, target: Table | str, record_id: str) -> "PendingMutation":
        return cls(id=f"delete_{record_id}_{_now_ms()}_{_suffix()}", kind=MutationKind.DELETE,
                   target=to_table(target), payload=RecordRef(id=record_id))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.kind.value,
            "table": self.target.value,
            "data": payload_to_dict(self.payload),
            "timestamp": self.enqueued_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PendingMutation":
        """Rebuild a mutation from its stored form.

        Raises:
            SchemaError: If the stored entry is malformed
        """
        try:
            kind = MutationKind(data["type"])
            target = to_table(data["table"])
            raw = dict(data["data"])
            if kind is MutationKind.DELETE:
                payload = RecordRef(id=raw["id"])
            else:
                payload = payload_from_dict(target, raw, partial=kind is MutationKind.UPDATE)
            return cls(
                id=data["id"],
                kind=kind,
                target=target,
                payload=payload,
                enqueued_at=int(data.get("timestamp", 0)),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SchemaError(f"Malformed pending mutation: {e}") from e


class MutationQueue:
    """FIFO queue of PendingMutation persisted under a single storage key."""

    def __init__(self, storage: LocalStorage, key: str = PENDING_MUTATIONS_KEY):
        self.storage = storage
        self.key = key

    def snapshot(self) -> list[PendingMutation]:
        """Read the whole queue in enqueue order.

        Entries that fail to parse are dropped with a warning.
        """
        stored = load_json(self.storage, self.key, [])
        if not isinstance(stored, list):
            logger.warning(f"Discarding non-list queue under {self.key}")
            return []

        mutations = []
        for entry in stored:
            try:
                mutations.append(PendingMutation.from_dict(entry))
            except SchemaError as e:
                logger.warning(f"Skipping queued entry: {e}")
        return mutations

    def enqueue(self, mutation: PendingMutation) -> int:
        """Append a mutation and persist immediately.

        Args:
            mutation: Mutation to append

        Returns:
            Queue size after the append
        """
        pending = self.snapshot()
        pending.append(mutation)
        self._write(pending)

        emit_event("offline_enqueue", {
            "mutation_id": mutation.id,
            "kind": mutation.kind.value,
            "table": mutation.target.value,
            "queue_size": len(pending),
        })

        return len(pending)

    def replace(self, retained: list[PendingMutation]) -> None:
        """Overwrite the queue with ``retained``; an empty list removes the key."""
        if retained:
            self._write(retained)
        else:
            self.clear()

    def clear(self) -> None:
        self.storage.remove(self.key)

    def peek(self, n: int = 10) -> list[PendingMutation]:
        """Oldest ``n`` mutations without removing them."""
        return self.snapshot()[:n]

    @property
    def size(self) -> int:
        return len(self.snapshot())

    def _write(self, mutations: list[PendingMutation]) -> None:
        save_json(self.storage, self.key, [m.to_dict() for m in mutations])
