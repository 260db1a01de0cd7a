"""Budget CLI commands."""
import click

from moneytracker.budget import CategoryBudget, Transaction, check_budgets

from .common import parse_json_arg
from .output import print_json, progress_bar


def _category_limit(value: str) -> CategoryBudget:
    name, sep, limit = value.rpartition("=")
    if not sep or not name:
        raise click.BadParameter(f"Expected CATEGORY=LIMIT, got {value}")
    try:
        return CategoryBudget(name, float(limit))
    except ValueError:
        raise click.BadParameter(f"Invalid limit in {value}")


@click.group()
def budget():
    """Budget commands."""
    pass


@budget.command()
@click.argument("transactions")
@click.option("--monthly", type=float, default=0.0, help="Monthly budget limit")
@click.option("--category", "categories", multiple=True, help="CATEGORY=LIMIT, repeatable")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
def check(transactions: str, monthly: float, categories: tuple[str, ...], as_json: bool):
    """Show budgets at or above the alert threshold for TRANSACTIONS (JSON or @file)."""
    raw = parse_json_arg(transactions, "transactions")
    try:
        txs = [Transaction.from_dict(t) for t in raw]
    except (KeyError, TypeError, ValueError) as e:
        raise click.BadParameter(f"Invalid transaction: {e}")

    alerts = check_budgets(txs, monthly, [_category_limit(c) for c in categories])

    if as_json:
        print_json([
            {"key": a.key, "type": a.type, "category": a.category, "spent": a.spent,
             "limit": a.limit, "percentage": round(a.percentage, 2)}
            for a in alerts
        ])
        return

    if not alerts:
        click.echo("All budgets below threshold")
        return

    for a in alerts:
        color = "red" if a.over_budget else "yellow"
        bar = progress_bar(a.percentage / 100)
        click.echo(click.style(f"{a.title:<30} {bar} {a.percentage:5.1f}%", fg=color))
