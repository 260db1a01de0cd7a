"""MoneyTracker command line interface."""
