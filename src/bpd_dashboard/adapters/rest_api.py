"""REST store adapter - RemoteStore implementation over a PostgREST-style API.

Tables are addressed as ``{url}/rest/v1/{table}``; the anonymous key is sent
both as the ``apikey`` header and as a bearer token.
"""

from __future__ import annotations

from typing import Any

import httpx

from bpd_dashboard.adapters.change_feed import PollingChangeFeed
from bpd_dashboard.models.config_models import AppConfig, StoreCredentials
from bpd_dashboard.repositories import (
    TABLES,
    ChangeCallback,
    ChangeSubscription,
    RemoteStore,
    Row,
    StoreError,
)


class RestStore(RemoteStore):
    """Remote store backed by httpx.AsyncClient."""

    def __init__(
        self,
        url: str,
        key: str,
        *,
        rest_path: str = "/rest/v1",
        timeout: float = 30,
        poll_interval: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = url.rstrip("/") + "/" + rest_path.strip("/")
        self.key = key
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._feeds: list[PollingChangeFeed] = []

    def _get_headers(self) -> dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Prefer": "return=minimal",
        }

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._get_headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Make a request against a table endpoint.

        Raises:
            StoreError: On unknown tables, HTTP error statuses and transport errors
        """
        if table not in TABLES:
            raise StoreError(f"Unknown table: {table}", table=table)

        client = self._get_client()
        try:
            response = await client.request(method, f"/{table}", params=params, json=json)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            raise StoreError(
                f"{method} {table} failed with status {e.response.status_code}: "
                f"{e.response.text}",
                table=table,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise StoreError(f"{method} {table} failed: {e}", table=table) from e

    async def select(
        self, table: str, order_by: str | None = None, descending: bool = False
    ) -> list[Row]:
        params = {"select": "*"}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        response = await self.request("GET", table, params=params)
        try:
            data = response.json()
        except ValueError as e:
            raise StoreError(f"GET {table} returned invalid JSON", table=table) from e
        if not isinstance(data, list):
            raise StoreError(f"GET {table} returned {type(data).__name__}, expected list", table=table)
        return data

    async def insert(self, table: str, row: Row) -> None:
        await self.request("POST", table, json=[row])

    async def update(self, table: str, row_id: str, values: Row) -> None:
        await self.request("PATCH", table, params={"id": f"eq.{row_id}"}, json=values)

    async def delete(self, table: str, row_id: str) -> None:
        await self.request("DELETE", table, params={"id": f"eq.{row_id}"})

    async def subscribe_changes(self, callback: ChangeCallback) -> ChangeSubscription:
        feed = PollingChangeFeed(self.select, callback, interval=self.poll_interval)
        feed.start()
        self._feeds.append(feed)
        return feed

    async def close(self) -> None:
        """Stop change feeds and close the HTTP client."""
        feeds, self._feeds = self._feeds, []
        for feed in feeds:
            await feed.close()
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def create_store(credentials: StoreCredentials, config: AppConfig) -> RestStore:
    """Build a RestStore for a credential pair using the configured timeouts."""
    return RestStore(
        credentials.url,
        credentials.key,
        rest_path=config.store.rest_path,
        timeout=config.store.timeout,
        poll_interval=config.sync.poll_interval,
    )
