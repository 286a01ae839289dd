"""Shared helpers for commands."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from bpd_dashboard.constants import INITIAL_DATA
from bpd_dashboard.services.config_service import get_config_service
from bpd_dashboard.services.sync_service import StateSyncService

from .decorators import AppError

_session: dict[str, str | None] = {"acting_user": None}


def set_acting_user(user_id: str | None) -> None:
    """Remember the user id given with ``--as`` for this invocation."""
    _session["acting_user"] = user_id


@asynccontextmanager
async def open_service() -> AsyncIterator[StateSyncService]:
    """Yield an initialized StateSyncService and dispose it afterwards.

    Raises:
        AppError: If ``--as`` names a user that does not exist
    """
    service = StateSyncService(get_config_service())
    try:
        await service.initialize(INITIAL_DATA)
        acting_user = _session["acting_user"]
        if acting_user and service.set_current_user(acting_user) is None:
            raise AppError(f"Unknown user id: {acting_user}")
        yield service
    finally:
        await service.dispose()


def require_connection(service: StateSyncService) -> None:
    """Refuse writes in local mode, where the service would drop them."""
    if not service.is_connected:
        if service.has_credentials():
            raise AppError("Remote store unreachable; running from local cache, changes cannot be saved.")
        raise AppError("No store credentials configured; run 'bpd settings connect URL KEY' first.")
