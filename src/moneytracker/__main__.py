"""Allow ``python -m moneytracker``."""
from moneytracker.cli.main import cli

if __name__ == "__main__":
    cli()
