"""REST client for a hosted Postgres table API.

Speaks the PostgREST dialect used by hosted Postgres/auth/storage
services: one endpoint per table under /rest/v1, row filters as
``column=eq.value`` query parameters.
"""
import asyncio
import logging

import requests

from moneytracker.core.constants import REMOTE_REST_PATH, REMOTE_TIMEOUT_SECONDS
from moneytracker.core.errors import RemoteStoreError

logger = logging.getLogger("moneytracker.remote")


class RestStore:
    """RemoteStore over HTTPS using requests.

    Blocking HTTP calls run in a worker thread so the event loop keeps
    turning while a request is in flight.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = REMOTE_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.base_url = url.rstrip("/") + REMOTE_REST_PATH
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Content-Type": "application/json",
        })

    def _request(
        self,
        method: str,
        table: str,
        operation: str,
        params: dict | None = None,
        json_body: dict | None = None,
        prefer: str | None = None,
    ) -> requests.Response:
        headers = {"Prefer": prefer} if prefer else None
        url = f"{self.base_url}/{table}"
        try:
            response = self.session.request(
                method, url,
                params=params, json=json_body, headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteStoreError(
                f"{operation} on {table} failed: {e}",
                table=table, operation=operation,
            ) from e

        if not response.ok:
            raise RemoteStoreError(
                f"{operation} on {table} returned {response.status_code}: {response.text[:200]}",
                table=table, operation=operation, status_code=response.status_code,
            )

        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    @staticmethod
    def _rows(response: requests.Response) -> list[dict]:
        if not response.content:
            return []
        body = response.json()
        return body if isinstance(body, list) else [body]

    def insert_sync(self, table: str, record: dict) -> list[dict]:
        response = self._request(
            "POST", table, "insert",
            json_body=record, prefer="return=representation",
        )
        return self._rows(response)

    def update_sync(self, table: str, record_id: str, partial: dict) -> list[dict]:
        response = self._request(
            "PATCH", table, "update",
            params={"id": f"eq.{record_id}"},
            json_body=partial, prefer="return=representation",
        )
        return self._rows(response)

    def delete_sync(self, table: str, record_id: str) -> bool:
        self._request("DELETE", table, "delete", params={"id": f"eq.{record_id}"})
        return True

    def select_sync(self, table: str, filters: dict | None = None) -> list[dict]:
        params = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        return self._rows(self._request("GET", table, "select", params=params))

    async def insert(self, table: str, record: dict) -> list[dict]:
        return await asyncio.to_thread(self.insert_sync, table, record)

    async def update(self, table: str, record_id: str, partial: dict) -> list[dict]:
        return await asyncio.to_thread(self.update_sync, table, record_id, partial)

    async def delete(self, table: str, record_id: str) -> bool:
        return await asyncio.to_thread(self.delete_sync, table, record_id)

    async def select(self, table: str, filters: dict | None = None) -> list[dict]:
        return await asyncio.to_thread(self.select_sync, table, filters)
