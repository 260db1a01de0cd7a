"""Recurring transaction and bill reminder CLI commands."""
from datetime import date

import click

from moneytracker.recurring import RecurringTransaction, due_occurrences
from moneytracker.reminders import ReminderBook, upcoming_bills

from .common import get_storage, parse_json_arg
from .output import table


def _load_recurring(value: str) -> list[RecurringTransaction]:
    raw = parse_json_arg(value, "recurring transactions")
    try:
        return [RecurringTransaction.from_dict(r) for r in raw]
    except (KeyError, TypeError, ValueError) as e:
        raise click.BadParameter(f"Invalid recurring transaction: {e}")


@click.group()
def recurring():
    """Recurring transaction commands."""
    pass


@recurring.command()
@click.argument("recurring_file")
@click.option("--today", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
def due(recurring_file: str, today):
    """List occurrences due for RECURRING_FILE (JSON or @file)."""
    ref = today.date() if today else date.today()
    occurrences = due_occurrences(_load_recurring(recurring_file), ref)
    if not occurrences:
        click.echo("Nothing due")
        return
    table(
        ["due", "recurring", "category", "amount"],
        [[o.due.isoformat(), o.recurring.id, o.recurring.category, f"{o.recurring.amount:.2f}"]
         for o in occurrences],
    )


@click.group()
def reminders():
    """Bill reminder commands."""
    pass


@reminders.command()
@click.argument("user_id")
@click.argument("recurring_file")
@click.option("--days", default=7, help="Look-ahead window in days")
@click.pass_context
def upcoming(ctx, user_id: str, recurring_file: str, days: int):
    """Bills due in the next --days days for USER_ID."""
    book = ReminderBook(get_storage(ctx), user_id)
    bills = upcoming_bills(book.all(), _load_recurring(recurring_file), window=days)
    if not bills:
        click.echo("No upcoming bills")
        return
    table(
        ["in days", "bill", "amount", "status"],
        [[str(b.days_until_due), b.recurring.description or b.recurring.category,
          f"{b.recurring.amount:.2f}", b.status] for b in bills],
    )


@reminders.command()
@click.argument("user_id")
@click.argument("recurring_transaction_id")
@click.option("--days", default=3, help="Days before due date to remind")
@click.pass_context
def add(ctx, user_id: str, recurring_transaction_id: str, days: int):
    """Add a reminder for RECURRING_TRANSACTION_ID."""
    reminder = ReminderBook(get_storage(ctx), user_id).add(recurring_transaction_id, days)
    click.echo(reminder.id)
