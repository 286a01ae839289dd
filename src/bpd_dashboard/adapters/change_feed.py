"""Polling change feed.

Detects row changes by fingerprinting each table on a fixed interval and emits
one opaque ChangeEvent per changed table.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import json
import logging
from collections.abc import Awaitable, Callable, Iterable

from bpd_dashboard.repositories import (
    TABLES,
    ChangeCallback,
    ChangeEvent,
    ChangeSubscription,
    Row,
    StoreError,
)

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[list[Row]]]


def fingerprint(rows: list[Row]) -> str:
    """Stable digest of a table's rows, independent of row order."""
    encoded = sorted(json.dumps(row, sort_keys=True, default=str) for row in rows)
    return hashlib.sha256("\n".join(encoded).encode("utf-8")).hexdigest()


class PollingChangeFeed(ChangeSubscription):
    """Background task that polls tables and reports which ones changed."""

    def __init__(
        self,
        fetch: Fetcher,
        callback: ChangeCallback,
        interval: float,
        tables: Iterable[str] = TABLES,
    ):
        """Initialize the feed.

        Args:
            fetch: Coroutine returning all rows of a table
            callback: Called with a ChangeEvent for each changed table
            interval: Seconds between polls
            tables: Tables to watch
        """
        self._fetch = fetch
        self._callback = callback
        self.interval = interval
        self.tables = tuple(tables)
        self._fingerprints: dict[str, str] = {}
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def close(self) -> None:
        """Stop polling."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def poll(self) -> list[str]:
        """Poll every table once.

        Returns:
            Tables whose fingerprint changed since the previous poll. A table
            seen for the first time only records its baseline.
        """
        changed = []
        for table in self.tables:
            try:
                rows = await self._fetch(table)
            except StoreError as e:
                logger.warning("change poll failed for %s: %s", table, e)
                continue
            except Exception:
                logger.exception("change poll crashed for %s", table)
                continue

            digest = fingerprint(rows)
            previous = self._fingerprints.get(table)
            self._fingerprints[table] = digest
            if previous is not None and previous != digest:
                changed.append(table)
        return changed

    async def _run(self) -> None:
        await self.poll()
        while True:
            await asyncio.sleep(self.interval)
            for table in await self.poll():
                logger.debug("remote change detected in %s", table)
                try:
                    self._callback(ChangeEvent(table=table))
                except Exception:
                    logger.exception("change callback failed for %s", table)
