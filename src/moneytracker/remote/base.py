"""Remote store interface.

The authoritative backend. Every call is a suspension point; an
implementation raises RemoteStoreError on any failure.
"""
from typing import Protocol


class RemoteStore(Protocol):

    async def insert(self, table: str, record: dict) -> list[dict]:
        """Insert ``record``; returns the stored row(s) with their real ids."""
        ...

    async def update(self, table: str, record_id: str, partial: dict) -> list[dict]:
        """Apply ``partial`` to the row with ``record_id``; returns updated row(s)."""
        ...

    async def delete(self, table: str, record_id: str) -> bool:
        ...

    async def select(self, table: str, filters: dict | None = None) -> list[dict]:
        """Rows of ``table`` whose columns equal every ``filters`` value."""
        ...
