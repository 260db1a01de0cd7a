"""Client-side budget evaluation."""
from moneytracker.budget.alerts import (
    BudgetAlert,
    BudgetAlertEvaluator,
    CategoryBudget,
    Transaction,
    check_budgets,
)

__all__ = [
    "BudgetAlert",
    "BudgetAlertEvaluator",
    "CategoryBudget",
    "Transaction",
    "check_budgets",
]
