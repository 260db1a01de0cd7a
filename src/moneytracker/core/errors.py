"""Exception hierarchy for MoneyTracker."""


class MoneyTrackerError(Exception):
    """Base class for every error raised by this package."""
    pass


class RemoteStoreError(MoneyTrackerError):
    """A remote store call failed (transport error or non-2xx response)."""

    def __init__(
        self,
        message: str,
        table: str | None = None,
        operation: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.table = table
        self.operation = operation
        self.status_code = status_code


class StorageError(MoneyTrackerError):
    """Local durable storage could not be written."""
    pass


class SchemaError(MoneyTrackerError):
    """Payload does not match the schema of its target table."""
    pass
