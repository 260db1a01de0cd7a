"""Recurring transactions.

A recurrence produces a concrete transaction every period after its
``last_processed`` date. Missed periods are caught up one occurrence at a
time, each written through the synchronizer so it queues when offline.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from moneytracker.core.events import emit_event
from moneytracker.core.schemas import Table

logger = logging.getLogger("moneytracker.recurring")

FREQUENCY_STEPS = {
    "daily": relativedelta(days=+1),
    "weekly": relativedelta(weeks=+1),
    "monthly": relativedelta(months=+1),
    "yearly": relativedelta(years=+1),
}


def _parse_date(value) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class RecurringTransaction:
    id: str
    user_id: str
    amount: float
    category: str
    type: str
    frequency: str
    description: str | None = None
    is_active: bool = True
    last_processed: date | None = None

    def __post_init__(self):
        if self.frequency not in FREQUENCY_STEPS:
            raise ValueError(f"Unknown frequency: {self.frequency}")

    @classmethod
    def from_dict(cls, data: dict) -> "RecurringTransaction":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            amount=float(data["amount"]),
            category=data["category"],
            type=data["type"],
            frequency=data["frequency"],
            description=data.get("description"),
            is_active=data.get("is_active") is not False,
            last_processed=_parse_date(data.get("last_processed")),
        )


@dataclass(frozen=True)
class Occurrence:
    recurring: RecurringTransaction
    due: date

    def to_transaction(self) -> dict:
        rt = self.recurring
        record = {
            "user_id": rt.user_id,
            "amount": rt.amount,
            "type": rt.type,
            "category": rt.category,
            "date": self.due.isoformat(),
        }
        if rt.description:
            record["description"] = rt.description
        return record


def next_due_date(rt: RecurringTransaction, today: date | None = None) -> date:
    """Date of the next occurrence.

    A recurrence that was never processed is due today.
    """
    if rt.last_processed is None:
        return today or date.today()
    return rt.last_processed + FREQUENCY_STEPS[rt.frequency]


def due_occurrences(
    recurring: list[RecurringTransaction],
    today: date | None = None,
) -> list[Occurrence]:
    """Every occurrence due on or before ``today`` for active recurrences."""
    today = today or date.today()
    occurrences = []

    for rt in recurring:
        if not rt.is_active:
            continue
        due = next_due_date(rt, today)
        while due <= today:
            occurrences.append(Occurrence(rt, due))
            due = due + FREQUENCY_STEPS[rt.frequency]

    occurrences.sort(key=lambda o: o.due)
    return occurrences


async def process_due(sync, recurring: list[RecurringTransaction], today: date | None = None) -> int:
    """Write due occurrences and advance each recurrence's last_processed.

    Args:
        sync: Synchronizer used for the writes (queues when offline)
        recurring: Recurrences to process
        today: Reference date

    Returns:
        Number of transactions written or queued
    """
    occurrences = due_occurrences(recurring, today)
    latest: dict[str, Occurrence] = {}

    try:
        for occurrence in occurrences:
            await sync.offline_insert(Table.TRANSACTIONS, occurrence.to_transaction())
            latest[occurrence.recurring.id] = occurrence
    finally:
        # Advance past whatever was written, even if a later insert failed
        for occurrence in latest.values():
            rt = occurrence.recurring
            await sync.offline_update(
                Table.RECURRING_TRANSACTIONS, rt.id,
                {"last_processed": occurrence.due.isoformat()},
            )
            rt.last_processed = occurrence.due

    if occurrences:
        emit_event("recurring_processed", {
            "transaction_count": len(occurrences),
            "recurring_count": len(latest),
        })
    logger.info(f"Processed {len(occurrences)} recurring occurrences")
    return len(occurrences)
