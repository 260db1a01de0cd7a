"""Bill reminders for recurring transactions.

Reminders are kept per user in local storage. A reminder fires once per
day for a bill due within its ``reminder_days`` window.
"""
import logging
import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime, timezone

from moneytracker.core.constants import (
    BILL_REMINDER_DEFAULT_DAYS,
    BILL_REMINDERS_KEY,
    BILL_UPCOMING_WINDOW_DAYS,
)
from moneytracker.notify import Notifier, Severity
from moneytracker.offline.storage import LocalStorage, load_json, save_json
from moneytracker.recurring import RecurringTransaction, next_due_date

logger = logging.getLogger("moneytracker.reminders")


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    reminder_id: str
    paid_at: str
    amount: float
    description: str
    category: str


@dataclass(frozen=True)
class BillReminder:
    id: str
    recurring_transaction_id: str
    reminder_days: int = BILL_REMINDER_DEFAULT_DAYS
    is_enabled: bool = True
    last_notified: str | None = None  # ISO date
    payment_history: tuple[PaymentRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["payment_history"] = [asdict(p) for p in self.payment_history]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BillReminder":
        return cls(
            id=data["id"],
            recurring_transaction_id=data["recurring_transaction_id"],
            reminder_days=int(data.get("reminder_days", BILL_REMINDER_DEFAULT_DAYS)),
            is_enabled=bool(data.get("is_enabled", True)),
            last_notified=data.get("last_notified"),
            payment_history=tuple(PaymentRecord(**p) for p in data.get("payment_history", [])),
        )


@dataclass(frozen=True)
class UpcomingBill:
    reminder: BillReminder
    recurring: RecurringTransaction
    days_until_due: int

    @property
    def status(self) -> str:
        return reminder_status(self.days_until_due, self.reminder.reminder_days)


def reminder_status(days_until_due: int, reminder_days: int) -> str:
    """Classify a bill: overdue, due_today, upcoming or ok."""
    if days_until_due < 0:
        return "overdue"
    if days_until_due == 0:
        return "due_today"
    if days_until_due <= reminder_days:
        return "upcoming"
    return "ok"


def _pair(reminders, recurring, today):
    by_id = {rt.id: rt for rt in recurring}
    for reminder in reminders:
        rt = by_id.get(reminder.recurring_transaction_id)
        if rt is None or not rt.is_active:
            continue
        days = (next_due_date(rt, today) - today).days
        yield UpcomingBill(reminder, rt, days)


def upcoming_bills(
    reminders: list[BillReminder],
    recurring: list[RecurringTransaction],
    today: date | None = None,
    window: int = BILL_UPCOMING_WINDOW_DAYS,
) -> list[UpcomingBill]:
    """Bills due between today and ``window`` days out, soonest first."""
    today = today or date.today()
    bills = [b for b in _pair(reminders, recurring, today) if 0 <= b.days_until_due <= window]
    bills.sort(key=lambda b: b.days_until_due)
    return bills


def due_notifications(
    reminders: list[BillReminder],
    recurring: list[RecurringTransaction],
    notifier: Notifier,
    today: date | None = None,
) -> list[BillReminder]:
    """Notify for enabled reminders inside their window.

    A reminder already notified today is skipped.

    Returns:
        All reminders, with ``last_notified`` stamped on the ones that fired
    """
    today = today or date.today()
    fired = {}

    for bill in _pair(reminders, recurring, today):
        reminder = bill.reminder
        if not reminder.is_enabled:
            continue
        if not 0 <= bill.days_until_due <= reminder.reminder_days:
            continue
        if reminder.last_notified == today.isoformat():
            continue

        name = bill.recurring.description or bill.recurring.category
        if bill.days_until_due == 0:
            message = f'Bill "{name}" of {bill.recurring.amount:.2f} is due today.'
        elif bill.days_until_due == 1:
            message = f'Bill "{name}" of {bill.recurring.amount:.2f} is due tomorrow.'
        else:
            message = f'Bill "{name}" of {bill.recurring.amount:.2f} is due in {bill.days_until_due} days.'

        severity = Severity.WARNING if bill.days_until_due <= 1 else Severity.INFO
        notifier.notify(severity, "Bill reminder", message)
        fired[reminder.id] = replace(reminder, last_notified=today.isoformat())

    return [fired.get(r.id, r) for r in reminders]


class ReminderBook:
    """Reminders of one user, persisted under ``billReminders_<user_id>``."""

    def __init__(self, storage: LocalStorage, user_id: str):
        self.storage = storage
        self.key = f"{BILL_REMINDERS_KEY}_{user_id}"

    def all(self) -> list[BillReminder]:
        stored = load_json(self.storage, self.key, [])
        reminders = []
        for entry in stored if isinstance(stored, list) else []:
            try:
                reminders.append(BillReminder.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Error parsing bill reminder: {e}")
        return reminders

    def save(self, reminders: list[BillReminder]) -> None:
        save_json(self.storage, self.key, [r.to_dict() for r in reminders])

    def add(
        self,
        recurring_transaction_id: str,
        reminder_days: int = BILL_REMINDER_DEFAULT_DAYS,
        is_enabled: bool = True,
    ) -> BillReminder:
        reminder = BillReminder(
            id=str(uuid.uuid4()),
            recurring_transaction_id=recurring_transaction_id,
            reminder_days=reminder_days,
            is_enabled=is_enabled,
        )
        self.save(self.all() + [reminder])
        return reminder

    def update(self, reminder_id: str, **updates) -> BillReminder | None:
        reminders = self.all()
        updated = None
        for i, r in enumerate(reminders):
            if r.id == reminder_id:
                updated = replace(r, **updates)
                reminders[i] = updated
        if updated is not None:
            self.save(reminders)
        return updated

    def delete(self, reminder_id: str) -> bool:
        reminders = self.all()
        kept = [r for r in reminders if r.id != reminder_id]
        if len(kept) == len(reminders):
            return False
        self.save(kept)
        return True

    def mark_as_paid(
        self,
        reminder_id: str,
        amount: float,
        description: str,
        category: str,
    ) -> PaymentRecord | None:
        reminder = next((r for r in self.all() if r.id == reminder_id), None)
        if reminder is None:
            return None
        payment = PaymentRecord(
            id=str(uuid.uuid4()),
            reminder_id=reminder_id,
            paid_at=datetime.now(timezone.utc).isoformat(),
            amount=amount,
            description=description,
            category=category,
        )
        self.update(reminder_id, payment_history=reminder.payment_history + (payment,))
        return payment

    def for_transaction(self, recurring_transaction_id: str) -> list[BillReminder]:
        return [r for r in self.all() if r.recurring_transaction_id == recurring_transaction_id]
