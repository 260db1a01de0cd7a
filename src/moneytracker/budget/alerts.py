"""Budget threshold alerts.

An alert exists for every budget at or above BUDGET_ALERT_THRESHOLD_PCT of
its limit in the current month. Alerts are bucketed by decile so that
83% -> 86% stays quiet while 86% -> 91% notifies again.

The evaluator remembers which buckets it has already announced. That
memory lives only in the process: a fresh evaluator announces every
current alert once.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime

from moneytracker.core.constants import (
    BUDGET_ALERT_BUCKET_PCT,
    BUDGET_ALERT_THRESHOLD_PCT,
    OVER_BUDGET_PCT,
)
from moneytracker.core.events import emit_event
from moneytracker.notify import Notifier, Severity


@dataclass(frozen=True)
class Transaction:
    amount: float
    type: str  # income | expense
    category: str
    date: date
    exchange_rate: float | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        raw_date = data["date"]
        if isinstance(raw_date, str):
            raw_date = datetime.fromisoformat(raw_date.replace("Z", "+00:00")).date()
        elif isinstance(raw_date, datetime):
            raw_date = raw_date.date()
        return cls(
            amount=float(data["amount"]),
            type=data["type"],
            category=data.get("category", ""),
            date=raw_date,
            exchange_rate=data.get("exchange_rate"),
        )

    @property
    def converted_amount(self) -> float:
        return self.amount * (self.exchange_rate or 1)


@dataclass(frozen=True)
class CategoryBudget:
    category: str
    limit: float


@dataclass(frozen=True)
class BudgetAlert:
    type: str  # monthly | category
    spent: float
    limit: float
    percentage: float
    category: str | None = None

    @property
    def bucket(self) -> int:
        return math.floor(self.percentage / BUDGET_ALERT_BUCKET_PCT)

    @property
    def key(self) -> str:
        if self.type == "monthly":
            return f"monthly-{self.bucket}"
        return f"category-{self.category}-{self.bucket}"

    @property
    def over_budget(self) -> bool:
        return self.percentage >= OVER_BUDGET_PCT

    @property
    def title(self) -> str:
        return "Monthly budget" if self.type == "monthly" else f"Category: {self.category}"


def _month_expenses(transactions: list[Transaction], today: date, category: str | None = None) -> float:
    return sum(
        t.converted_amount
        for t in transactions
        if t.type == "expense"
        and t.date.year == today.year
        and t.date.month == today.month
        and (category is None or t.category == category)
    )


def check_budgets(
    transactions: list[Transaction],
    monthly_budget: float,
    category_budgets: list[CategoryBudget],
    today: date | None = None,
) -> list[BudgetAlert]:
    """Compute every budget at or above the alert threshold this month.

    Args:
        transactions: All known transactions
        monthly_budget: Overall monthly limit (<= 0 disables it)
        category_budgets: Per-category limits (<= 0 disables one)
        today: Reference date (defaults to today)

    Returns:
        Monthly alert first (if any), then category alerts in input order
    """
    today = today or date.today()
    alerts = []

    if monthly_budget > 0:
        spent = _month_expenses(transactions, today)
        percentage = spent / monthly_budget * 100
        if percentage >= BUDGET_ALERT_THRESHOLD_PCT:
            alerts.append(BudgetAlert("monthly", spent, monthly_budget, percentage))

    for budget in category_budgets:
        if budget.limit <= 0:
            continue
        spent = _month_expenses(transactions, today, budget.category)
        percentage = spent / budget.limit * 100
        if percentage >= BUDGET_ALERT_THRESHOLD_PCT:
            alerts.append(BudgetAlert("category", spent, budget.limit, percentage, budget.category))

    return alerts


class BudgetAlertEvaluator:
    """Notifies once per newly crossed budget bucket."""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self.alerted: set[str] = set()

    def evaluate(
        self,
        transactions: list[Transaction],
        monthly_budget: float,
        category_budgets: list[CategoryBudget],
        today: date | None = None,
    ) -> list[BudgetAlert]:
        """Recompute alerts and notify for the new ones.

        The remembered set becomes exactly the current alert keys, so a
        bucket that drops below the threshold can alert again later.

        Returns:
            Alerts that were not announced before this call
        """
        current = check_budgets(transactions, monthly_budget, category_budgets, today)
        new_alerts = [a for a in current if a.key not in self.alerted]

        for alert in new_alerts:
            self._show(alert)

        self.alerted = {a.key for a in current}
        return new_alerts

    def reset(self) -> None:
        self.alerted.clear()

    def _show(self, alert: BudgetAlert) -> None:
        if alert.over_budget:
            self.notifier.notify(
                Severity.ERROR,
                alert.title,
                f"Over budget! Spent {alert.spent:.2f} of {alert.limit:.2f}",
            )
        else:
            self.notifier.notify(
                Severity.WARNING,
                alert.title,
                f"You have used {alert.percentage:.0f}% of the budget "
                f"({alert.spent:.2f} / {alert.limit:.2f})",
            )

        emit_event("budget_alert", {
            "key": alert.key,
            "percentage": round(alert.percentage, 2),
            "over_budget": alert.over_budget,
        })
