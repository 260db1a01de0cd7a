"""MoneyTracker CLI entry point - assembles all command groups."""
import click

from moneytracker import __version__
from moneytracker.config import Settings, configure_logging

from .budget_cmd import budget
from .cache_cmd import cache
from .offline_cmd import offline
from .output import print_error
from .recurring_cmd import recurring, reminders


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Override MONEYTRACKER_LOG_LEVEL")
@click.pass_context
def cli(ctx, log_level):
    """MoneyTracker: offline-first personal finance client."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        print_error(f"Invalid MONEYTRACKER_ setting: {e}")
        ctx.exit(2)
    if log_level:
        settings.log_level = log_level.upper()

    errors = settings.validate()
    if errors:
        for error in errors:
            print_error(error)
        ctx.exit(2)

    configure_logging(settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


cli.add_command(offline)
cli.add_command(cache)
cli.add_command(budget)
cli.add_command(recurring)
cli.add_command(reminders)


if __name__ == "__main__":
    cli()
