"""MoneyTracker configuration."""
from moneytracker.config.settings import Settings, configure_logging

__all__ = ["Settings", "configure_logging"]
