"""Remote store abstraction for the BPD dashboard.

This module defines the port the sync service talks to: a table-backed store
exposing row CRUD on the ``tasks``, ``programs`` and ``users`` tables plus a
change-notification stream. Concrete adapters live in ``bpd_dashboard.adapters``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

TABLES = ("tasks", "programs", "users")

Row = dict[str, Any]


class StoreError(Exception):
    """Raised when a remote store operation fails."""

    def __init__(self, message: str, table: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.table = table
        self.status_code = status_code


@dataclass(frozen=True)
class ChangeEvent:
    """Opaque notification that something changed in a table.

    Carries no row payload; receivers refetch in full.
    """

    table: str
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ChangeCallback = Callable[[ChangeEvent], None]


class ChangeSubscription(ABC):
    """Handle for an active change-notification subscription."""

    @abstractmethod
    async def close(self) -> None:
        """Stop delivering events. Calling it twice is a no-op."""
        raise NotImplementedError


class RemoteStore(ABC):
    """Abstract base class for the remote table store.

    Every method may raise StoreError; callers decide how to degrade.
    """

    @abstractmethod
    async def select(
        self, table: str, order_by: str | None = None, descending: bool = False
    ) -> list[Row]:
        """Return all rows of *table*, optionally ordered by a column."""
        raise NotImplementedError("RemoteStore.select() must be implemented by adapter")

    @abstractmethod
    async def insert(self, table: str, row: Row) -> None:
        """Insert a full record into *table*."""
        raise NotImplementedError("RemoteStore.insert() must be implemented by adapter")

    @abstractmethod
    async def update(self, table: str, row_id: str, values: Row) -> None:
        """Apply a partial update to the row with id *row_id*."""
        raise NotImplementedError("RemoteStore.update() must be implemented by adapter")

    @abstractmethod
    async def delete(self, table: str, row_id: str) -> None:
        """Delete the row with id *row_id*."""
        raise NotImplementedError("RemoteStore.delete() must be implemented by adapter")

    @abstractmethod
    async def subscribe_changes(self, callback: ChangeCallback) -> ChangeSubscription:
        """Start delivering ChangeEvents for any table to *callback*."""
        raise NotImplementedError(
            "RemoteStore.subscribe_changes() must be implemented by adapter"
        )

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        raise NotImplementedError("RemoteStore.close() must be implemented by adapter")
