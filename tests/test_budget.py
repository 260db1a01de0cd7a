"""Tests for budget alert evaluation."""
from datetime import date

from moneytracker.budget import (
    BudgetAlertEvaluator,
    CategoryBudget,
    Transaction,
    check_budgets,
)
from moneytracker.notify import Severity

TODAY = date(2026, 3, 15)


def spend(amount, category="food", day=TODAY, **kwargs):
    return Transaction(amount=amount, type="expense", category=category, date=day, **kwargs)


class TestCheckBudgets:

    def test_below_threshold(self):
        assert check_budgets([spend(799)], 1000, [], TODAY) == []

    def test_monthly_at_threshold(self):
        alerts = check_budgets([spend(800)], 1000, [], TODAY)
        assert len(alerts) == 1
        assert alerts[0].type == "monthly"
        assert alerts[0].key == "monthly-8"

    def test_only_current_month_expenses(self):
        txs = [
            spend(500),
            spend(500, day=date(2026, 2, 28)),
            spend(500, day=date(2025, 3, 15)),
            Transaction(amount=900, type="income", category="salary", date=TODAY),
        ]
        assert check_budgets(txs, 1000, [], TODAY) == []

    def test_exchange_rate_applied(self):
        alerts = check_budgets([spend(200, exchange_rate=4.5)], 1000, [], TODAY)
        assert alerts[0].spent == 900
        assert alerts[0].key == "monthly-9"

    def test_category_alerts(self):
        txs = [spend(90, "food"), spend(10, "fun")]
        alerts = check_budgets(txs, 0, [CategoryBudget("food", 100), CategoryBudget("fun", 100)], TODAY)

        assert [a.key for a in alerts] == ["category-food-9"]
        assert alerts[0].title == "Category: food"

    def test_zero_limits_ignored(self):
        assert check_budgets([spend(50)], 0, [CategoryBudget("food", 0)], TODAY) == []

    def test_over_budget(self):
        alert = check_budgets([spend(1200)], 1000, [], TODAY)[0]
        assert alert.over_budget
        assert alert.key == "monthly-12"

    def test_from_dict_parses_iso_dates(self):
        tx = Transaction.from_dict({
            "amount": "12.5", "type": "expense", "category": "food",
            "date": "2026-03-01T10:00:00Z",
        })
        assert tx.date == date(2026, 3, 1)
        assert tx.amount == 12.5


class TestBudgetAlertEvaluator:

    def test_decile_deduplication(self, notifier):
        evaluator = BudgetAlertEvaluator(notifier)

        assert len(evaluator.evaluate([spend(850)], 1000, [], TODAY)) == 1
        assert evaluator.evaluate([spend(870)], 1000, [], TODAY) == []
        assert len(notifier.sent) == 1

        assert len(evaluator.evaluate([spend(950)], 1000, [], TODAY)) == 1
        assert len(notifier.sent) == 2

    def test_fresh_evaluator_alerts_again(self, notifier):
        BudgetAlertEvaluator(notifier).evaluate([spend(950)], 1000, [], TODAY)
        BudgetAlertEvaluator(notifier).evaluate([spend(950)], 1000, [], TODAY)

        assert len(notifier.sent) == 2

    def test_reset_forgets(self, notifier):
        evaluator = BudgetAlertEvaluator(notifier)
        evaluator.evaluate([spend(950)], 1000, [], TODAY)
        evaluator.reset()
        evaluator.evaluate([spend(950)], 1000, [], TODAY)

        assert len(notifier.sent) == 2

    def test_stale_bucket_can_realert(self, notifier):
        evaluator = BudgetAlertEvaluator(notifier)
        evaluator.evaluate([spend(850)], 1000, [], TODAY)
        evaluator.evaluate([spend(500)], 1000, [], TODAY)
        assert evaluator.alerted == set()

        evaluator.evaluate([spend(850)], 1000, [], TODAY)
        assert len(notifier.sent) == 2

    def test_severity(self, notifier):
        evaluator = BudgetAlertEvaluator(notifier)
        evaluator.evaluate([spend(850)], 1000, [], TODAY)
        evaluator.evaluate([spend(1100)], 1000, [], TODAY)

        assert [n.severity for n in notifier.sent] == [Severity.WARNING, Severity.ERROR]
        assert "85%" in notifier.sent[0].description

    def test_monthly_and_category_tracked_separately(self, notifier):
        evaluator = BudgetAlertEvaluator(notifier)
        new = evaluator.evaluate([spend(90, "food")], 100, [CategoryBudget("food", 100)], TODAY)

        assert {a.key for a in new} == {"monthly-9", "category-food-9"}
        assert len(notifier.sent) == 2
