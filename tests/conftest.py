"""Shared test fixtures and configuration.

Provides an in-memory RemoteStore and isolates tests from the real
config/log directories and environment.
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from bpd_dashboard.repositories import (
    TABLES,
    ChangeEvent,
    ChangeSubscription,
    RemoteStore,
    StoreError,
)

STORE_URL = "https://demo.supabase.co"
STORE_KEY = "anon-key-1234567890"


def remote_rows() -> dict[str, list[dict]]:
    """Rows as the remote store would return them (snake_case columns)."""
    return {
        "tasks": [
            {
                "id": "t-old",
                "name": "Quarterly filing",
                "description": "File the quarterly report",
                "program": "CPF",
                "assigned_to": "Glen",
                "assigned_to_id": "u-glen",
                "priority": "Low",
                "status": "COMPLETED",
                "progress": 100,
                "start_date": "2025-10-01",
                "planned_end_date": "2025-10-15",
                "actual_end_date": "2025-10-14",
                "updated_at": "2025-10-14T10:00:00Z",
                "updated_by": "Glen",
            },
            {
                "id": "t-new",
                "name": "Challenge process review",
                "description": None,
                "program": "BEAD",
                "assigned_to": "Ana",
                "assigned_to_id": "u-ana",
                "priority": "Critical",
                "status": "IN_PROGRESS",
                "progress": 50,
                "start_date": None,
                "planned_end_date": "2026-02-01",
                "actual_end_date": None,
                "updated_at": "2026-01-05T08:30:00Z",
                "updated_by": "Ana",
            },
        ],
        "programs": [
            {"id": "p-bead", "name": "BEAD", "description": "Broadband Equity", "color": "indigo",
             "created_at": "2024-01-01T00:00:00Z", "created_by": "u-admin"},
            {"id": "p-cpf", "name": "CPF", "description": "Capital Projects Fund", "color": "emerald",
             "created_at": "2024-01-01T00:00:00Z", "created_by": "u-admin"},
        ],
        "users": [
            {"id": "u-ana", "name": "Ana", "email": "ana@bpd.gov", "role": "Manager",
             "department": "BEAD", "avatar": None},
            {"id": "u-glen", "name": "Glen", "email": "glen@bpd.gov", "role": "Staff",
             "department": "CPF"},
        ],
    }


class FakeSubscription(ChangeSubscription):
    def __init__(self, store: FakeStore, callback):
        self.store = store
        self.callback = callback
        self.closed = False

    async def close(self) -> None:
        self.closed = True
        if self.callback in self.store.callbacks:
            self.store.callbacks.remove(self.callback)


class FakeStore(RemoteStore):
    """In-memory RemoteStore with failure injection."""

    def __init__(self, tables: dict[str, list[dict]] | None = None):
        tables = tables or {}
        self.tables = {name: [dict(row) for row in tables.get(name, [])] for name in TABLES}
        self.fail_select = False
        self.fail_writes = False
        self.calls: list[tuple] = []
        self.callbacks: list = []
        self.closed = False
        self.gate: asyncio.Event | None = None

    async def select(self, table, order_by=None, descending=False):
        self.calls.append(("select", table))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_select:
            raise StoreError("select failed", table=table, status_code=503)
        rows = [dict(row) for row in self.tables[table]]
        if order_by:
            rows.sort(key=lambda row: row.get(order_by) or "", reverse=descending)
        return rows

    def _check_write(self, table):
        if self.fail_writes:
            raise StoreError("write rejected", table=table, status_code=403)

    async def insert(self, table, row):
        self.calls.append(("insert", table, dict(row)))
        self._check_write(table)
        self.tables[table].append(dict(row))

    async def update(self, table, row_id, values):
        self.calls.append(("update", table, row_id, dict(values)))
        self._check_write(table)
        for row in self.tables[table]:
            if row["id"] == row_id:
                row.update(values)

    async def delete(self, table, row_id):
        self.calls.append(("delete", table, row_id))
        self._check_write(table)
        self.tables[table] = [row for row in self.tables[table] if row["id"] != row_id]

    async def subscribe_changes(self, callback):
        self.callbacks.append(callback)
        return FakeSubscription(self, callback)

    def emit(self, table: str) -> None:
        """Simulate a remote change notification."""
        for callback in list(self.callbacks):
            callback(ChangeEvent(table=table))

    def writes(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "select"]

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_log_dir(tmp_path_factory):
    """Keep the application log file out of the real user log directory."""
    log_dir = str(tmp_path_factory.mktemp("logs"))
    with patch("bpd_dashboard.utils.logger.user_log_dir", return_value=log_dir):
        yield log_dir


@pytest.fixture()
def environ() -> dict[str, str]:
    """Environment mapping used for credential lookup; empty by default."""
    return {}


@pytest.fixture()
def credentials_env(environ) -> dict[str, str]:
    """Environment carrying a valid store credential pair."""
    environ.update({"SUPABASE_URL": STORE_URL, "SUPABASE_ANON_KEY": STORE_KEY})
    return environ


@pytest.fixture()
def tmp_config(tmp_path, environ):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from bpd_dashboard.services.config_service import ConfigService, get_config_service

    tmpdir = str(tmp_path)
    get_config_service.cache_clear()
    with patch("bpd_dashboard.services.config_service.user_config_dir", return_value=tmpdir):
        with patch("bpd_dashboard.services.config_service.user_data_dir", return_value=tmpdir):
            svc = ConfigService(environ=environ)
            yield svc
    get_config_service.cache_clear()


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore(remote_rows())


@pytest.fixture()
def factory_calls() -> list:
    """Credentials passed to the store factory, in call order."""
    return []


@pytest.fixture()
def service(tmp_config, store, factory_calls):
    """StateSyncService wired to the in-memory store."""
    from bpd_dashboard.services.sync_service import StateSyncService

    def factory(credentials):
        factory_calls.append(credentials)
        return store

    return StateSyncService(tmp_config, store_factory=factory)


# ---------------------------------------------------------------------------
# CLI wiring
# ---------------------------------------------------------------------------


@pytest.fixture()
def cli_config(tmp_config):
    """Route every command's get_config_service() to *tmp_config*."""
    with patch("bpd_dashboard.commands.utils.get_config_service", return_value=tmp_config):
        with patch("bpd_dashboard.commands.settings.get_config_service", return_value=tmp_config):
            with patch("bpd_dashboard.main.get_config_service", return_value=tmp_config):
                yield tmp_config


@pytest.fixture()
def cli_store(cli_config, store):
    """Make commands talk to the in-memory store once credentials resolve."""
    from bpd_dashboard.services.sync_service import StateSyncService

    def build(config_service):
        return StateSyncService(config_service, store_factory=lambda credentials: store)

    with patch("bpd_dashboard.commands.utils.StateSyncService", side_effect=build):
        yield store
