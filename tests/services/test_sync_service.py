"""Unit tests for StateSyncService.

All store traffic goes through the in-memory FakeStore from conftest.
"""

from __future__ import annotations

import asyncio

import pytest

from bpd_dashboard.constants import INITIAL_DATA
from bpd_dashboard.models import AppState, TaskCreate, TaskStatus
from bpd_dashboard.services.sync_service import ConnectionState, StateSyncService, new_id


def _task_ids(state: AppState) -> list[str]:
    return [t.id for t in state.tasks]


# ---------------------------------------------------------------------------
# Local mode
# ---------------------------------------------------------------------------


class TestLocalMode:
    @pytest.mark.asyncio
    async def test_initialize_without_credentials_keeps_seed(self, service, factory_calls):
        connected = await service.initialize(INITIAL_DATA)

        assert connected is False
        assert factory_calls == []
        assert service.connection_state == ConnectionState.DISCONNECTED
        assert _task_ids(service.state) == [t["id"] for t in INITIAL_DATA["tasks"]]
        assert service.state.current_user.id == "u-admin"

    @pytest.mark.asyncio
    async def test_seed_is_published_before_connecting(self, service):
        seen = []
        service.subscribe(seen.append)

        await service.initialize(INITIAL_DATA)

        assert seen[0].tasks == []
        assert len(seen[1].tasks) == 3

    @pytest.mark.asyncio
    async def test_writes_are_dropped(self, service, store):
        await service.initialize(INITIAL_DATA)
        before = service.state

        task_id = await service.add_task({"name": "Offline task", "program": "BEAD"})
        await service.update_task_status("t-binders-redacted", TaskStatus.COMPLETED)
        await service.delete_program("p-bead")

        assert task_id is None
        assert store.writes() == []
        assert service.state == before

    @pytest.mark.asyncio
    async def test_invalid_payloads_do_not_raise(self, service):
        await service.initialize(INITIAL_DATA)

        await service.update_task("t-x", {"status": "DONE"})
        await service.update_task_status("t-x", "DONE")
        assert await service.add_program({"color": "sky"}) is None
        assert await service.add_user({"email": "nobody@bpd.gov"}) is None
        await service.update_program("p-bead", {"name": 42})

        assert len(service.state.tasks) == 3

    @pytest.mark.asyncio
    async def test_malformed_seed_starts_empty(self, service):
        connected = await service.initialize({"tasks": [{"name": "missing id"}]})

        assert connected is False
        assert service.state.tasks == []

    @pytest.mark.asyncio
    async def test_sync_without_store_returns_false(self, service):
        await service.initialize(INITIAL_DATA)
        assert await service.sync() is False


# ---------------------------------------------------------------------------
# Connecting
# ---------------------------------------------------------------------------


class TestConnect:
    @pytest.mark.asyncio
    async def test_initialize_replaces_seed_with_remote_state(self, service, credentials_env):
        connected = await service.initialize(INITIAL_DATA)

        assert connected is True
        assert service.is_connected
        state = service.state
        # Most recently updated first
        assert _task_ids(state) == ["t-new", "t-old"]
        assert [p.id for p in state.programs] == ["p-bead", "p-cpf"]
        assert [u.id for u in state.users] == ["u-ana", "u-glen"]

    @pytest.mark.asyncio
    async def test_current_user_falls_back_to_first_remote_user(self, service, credentials_env):
        await service.initialize(INITIAL_DATA)
        # The seed's u-admin does not exist remotely
        assert service.state.current_user.id == "u-ana"

    @pytest.mark.asyncio
    async def test_current_user_survives_sync_when_still_present(
        self, service, store, credentials_env
    ):
        store.tables["users"].append({"id": "u-admin", "name": "System Admin", "role": "Admin"})

        await service.initialize(INITIAL_DATA)

        assert service.state.current_user.id == "u-admin"

    @pytest.mark.asyncio
    async def test_remote_rows_fill_defaults(self, service, credentials_env):
        await service.initialize(INITIAL_DATA)
        task = service.state.find_task("t-new")

        assert task.description == ""
        assert task.actual_end_date == ""
        assert task.start_date  # today
        assert task.notes == []
        assert task.dependent_tasks == []

    @pytest.mark.asyncio
    async def test_handshake_failure_keeps_seed_and_closes_store(
        self, service, store, credentials_env
    ):
        store.fail_select = True

        connected = await service.initialize(INITIAL_DATA)

        assert connected is False
        assert store.closed
        assert service.connection_state == ConnectionState.DISCONNECTED
        assert len(service.state.tasks) == 3

    @pytest.mark.asyncio
    async def test_corrupt_credentials_file_counts_as_absent(
        self, service, tmp_config, factory_calls
    ):
        tmp_config.credentials_path.write_bytes(b"\xff\xfe{bad")

        connected = await service.initialize(INITIAL_DATA)

        assert connected is False
        assert factory_calls == []
        assert service.connection_state == ConnectionState.DISCONNECTED
        assert len(service.state.tasks) == 3

    @pytest.mark.asyncio
    async def test_corrupt_credentials_file_falls_back_to_environment(
        self, service, tmp_config, factory_calls, credentials_env
    ):
        tmp_config.credentials_path.write_bytes(b"\xff\xfe{bad")

        assert await service.initialize(INITIAL_DATA) is True
        assert factory_calls[-1].url == "https://demo.supabase.co"

    @pytest.mark.asyncio
    async def test_explicit_credentials_take_priority(
        self, service, factory_calls, credentials_env
    ):
        await service.initialize(INITIAL_DATA)

        await service.reconnect("https://other.supabase.co", "other-key")

        assert factory_calls[-1].url == "https://other.supabase.co"
        assert factory_calls[-1].key == "other-key"

    @pytest.mark.asyncio
    async def test_partial_explicit_credentials_fall_through(
        self, service, factory_calls, credentials_env
    ):
        await service.initialize(INITIAL_DATA)

        await service.reconnect("https://other.supabase.co", "  ")

        assert factory_calls[-1].url == "https://demo.supabase.co"

    @pytest.mark.asyncio
    async def test_subscribes_to_changes_when_realtime_enabled(
        self, service, store, credentials_env
    ):
        await service.initialize(INITIAL_DATA)
        assert len(store.callbacks) == 1

    @pytest.mark.asyncio
    async def test_realtime_disabled_skips_subscription(
        self, service, store, tmp_config, credentials_env
    ):
        tmp_config.set("sync.realtime", False)

        await service.initialize(INITIAL_DATA)

        assert service.is_connected
        assert store.callbacks == []


# ---------------------------------------------------------------------------
# Write-through
# ---------------------------------------------------------------------------


class TestWrites:
    @pytest.mark.asyncio
    async def test_add_task_writes_then_refetches(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)

        task_id = await service.add_task(
            TaskCreate(name="Draft final proposal", program="BEAD", assigned_to="Glen",
                       assigned_to_id="u-glen", planned_end_date="2026-03-01")
        )

        assert task_id.startswith("t-")
        _, table, row = store.writes()[0]
        assert table == "tasks"
        assert row["updated_by"] == "Ana"
        assert row["updated_at"]
        assert row["status"] == "OPEN"
        assert "notes" not in row
        assert service.state.find_task(task_id).name == "Draft final proposal"

    @pytest.mark.asyncio
    async def test_status_change_sets_progress(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)

        await service.update_task_status("t-new", TaskStatus.COMPLETED)
        assert service.state.find_task("t-new").progress == 100

        await service.update_task_status("t-new", "ON_HOLD")
        assert service.state.find_task("t-new").progress == 50

        await service.update_task_status("t-new", TaskStatus.OPEN)
        task = service.state.find_task("t-new")
        assert task.status == TaskStatus.OPEN
        assert task.progress == 0

    @pytest.mark.asyncio
    async def test_update_task_stamps_audit_fields(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)
        service.set_current_user("u-glen")

        await service.update_task("t-old", {"description": "Amended"})

        _, _, row_id, values = store.writes()[0]
        assert row_id == "t-old"
        assert values["description"] == "Amended"
        assert values["updated_by"] == "Glen"
        assert set(values) == {"description", "updated_at", "updated_by"}

    @pytest.mark.asyncio
    async def test_invalid_payloads_are_dropped_before_any_write(
        self, service, store, credentials_env
    ):
        await service.initialize(INITIAL_DATA)

        await service.update_task_status("t-new", "DONE")
        await service.update_task("t-new", {"progress": 150})
        task_id = await service.add_task({"description": "no name"})
        await service.update_user("u-ana", {"name": ["Ana"]})

        assert task_id is None
        assert store.writes() == []
        assert service.is_connected

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed_and_state_reconciled(
        self, service, store, credentials_env
    ):
        await service.initialize(INITIAL_DATA)
        store.fail_writes = True
        selects_before = len([c for c in store.calls if c[0] == "select"])

        task_id = await service.add_task({"name": "Rejected"})

        assert service.state.find_task(task_id) is None
        assert len([c for c in store.calls if c[0] == "select"]) > selects_before
        assert service.is_connected

    @pytest.mark.asyncio
    async def test_delete_task(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)

        await service.delete_task("t-old")

        assert _task_ids(service.state) == ["t-new"]

    @pytest.mark.asyncio
    async def test_add_program_records_creator(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)

        program_id = await service.add_program({"name": "NTIA", "color": "sky"})

        assert program_id.startswith("p-")
        row = store.tables["programs"][-1]
        assert row["created_by"] == "u-ana"
        assert row["color"] == "sky"

    @pytest.mark.asyncio
    async def test_program_rename_does_not_touch_tasks(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)

        await service.update_program("p-bead", {"name": "BEAD 2.0"})

        state = service.state
        assert state.programs[0].name == "BEAD 2.0"
        assert state.find_task("t-new").program == "BEAD"

    @pytest.mark.asyncio
    async def test_user_lifecycle(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)

        user_id = await service.add_user({"name": "Rosa", "email": "rosa@bpd.gov"})
        assert service.state.find_user(user_id).department == "BEAD"
        assert "avatar" not in store.tables["users"][-1]

        await service.update_user(user_id, {"role": "Manager"})
        assert service.state.find_user(user_id).role == "Manager"

        await service.delete_user(user_id)
        assert service.state.find_user(user_id) is None

    @pytest.mark.asyncio
    async def test_deleting_current_user_clears_it(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)
        service.set_current_user("u-glen")

        await service.delete_user("u-glen")

        assert service.state.current_user is None


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


class TestSync:
    @pytest.mark.asyncio
    async def test_sync_failure_keeps_snapshot_and_notifies(
        self, service, store, credentials_env
    ):
        await service.initialize(INITIAL_DATA)
        seen = []
        service.subscribe(seen.append)
        store.fail_select = True

        assert await service.sync() is False

        assert service.connection_state == ConnectionState.DISCONNECTED
        assert _task_ids(seen[-1]) == ["t-new", "t-old"]
        assert len(seen) == 2

    @pytest.mark.asyncio
    async def test_successful_sync_restores_connection(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)
        store.fail_select = True
        await service.sync()
        store.fail_select = False

        assert await service.sync() is True
        assert service.connection_state == ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_failed_sync_on_replaced_store_keeps_new_connection(
        self, tmp_config, store, credentials_env
    ):
        replacement = type(store)(store.tables)
        stores = [store, replacement]
        service = StateSyncService(tmp_config, store_factory=lambda credentials: stores.pop(0))
        await service.initialize(INITIAL_DATA)

        store.gate = asyncio.Event()
        store.fail_select = True
        stale = asyncio.create_task(service.sync())
        await asyncio.sleep(0)

        assert await service.reconnect() is True
        store.gate.set()

        assert await stale is False
        assert service.connection_state == ConnectionState.CONNECTED
        await service.dispose()

    @pytest.mark.asyncio
    async def test_remote_change_triggers_refetch(self, service, store, credentials_env):
        await service.initialize(INITIAL_DATA)
        store.tables["tasks"].append(
            {"id": "t-remote", "name": "Added elsewhere", "updated_at": "2026-02-01T00:00:00Z"}
        )

        store.emit("tasks")
        await service.wait_for_pending_syncs()

        assert _task_ids(service.state)[0] == "t-remote"


# ---------------------------------------------------------------------------
# Observers
# ---------------------------------------------------------------------------


class TestObservers:
    @pytest.mark.asyncio
    async def test_subscribe_replays_current_state(self, service):
        await service.initialize(INITIAL_DATA)
        seen = []

        service.subscribe(seen.append)

        assert len(seen) == 1
        assert len(seen[0].tasks) == 3

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self, service):
        await service.initialize(INITIAL_DATA)
        seen = []
        subscription = service.subscribe(seen.append)

        subscription()
        subscription.unsubscribe()
        service.set_current_user("u-glen")

        assert len(seen) == 1
        assert not subscription.active

    @pytest.mark.asyncio
    async def test_observers_receive_independent_copies(self, service):
        await service.initialize(INITIAL_DATA)
        seen = []
        service.subscribe(seen.append)

        seen[0].tasks.clear()

        assert len(service.state.tasks) == 3

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_block_others(self, service):
        await service.initialize(INITIAL_DATA)
        seen = []

        def broken(state):
            raise RuntimeError("render failed")

        service.subscribe(broken)
        service.subscribe(seen.append)
        service.set_current_user("u-glen")

        assert seen[-1].current_user.id == "u-glen"


# ---------------------------------------------------------------------------
# Current user and credentials
# ---------------------------------------------------------------------------


class TestSession:
    @pytest.mark.asyncio
    async def test_set_current_user_unknown_id(self, service):
        await service.initialize(INITIAL_DATA)

        assert service.set_current_user("u-nobody") is None
        assert service.state.current_user is None

    @pytest.mark.asyncio
    async def test_save_credentials_connects(self, service, tmp_config, factory_calls):
        await service.initialize(INITIAL_DATA)

        assert await service.save_credentials("https://saved.supabase.co", "saved-key") is True

        assert service.is_connected
        assert factory_calls[-1].url == "https://saved.supabase.co"
        assert tmp_config.load_credentials().key == "saved-key"

    @pytest.mark.asyncio
    async def test_save_blank_credentials_is_rejected(self, service, factory_calls):
        await service.initialize(INITIAL_DATA)

        assert await service.save_credentials("", "key") is False
        assert factory_calls == []

    @pytest.mark.asyncio
    async def test_clear_credentials_resets_to_seed(self, tmp_config, store):
        resets = []
        service = StateSyncService(
            tmp_config, store_factory=lambda credentials: store, on_reset=lambda: resets.append(1)
        )
        await service.initialize(INITIAL_DATA)
        await service.save_credentials("https://saved.supabase.co", "saved-key")
        assert service.is_connected

        await service.clear_credentials()

        assert resets == [1]
        assert store.closed
        assert tmp_config.load_credentials() is None
        assert service.connection_state == ConnectionState.DISCONNECTED
        assert len(service.state.tasks) == 3
        assert service.state.current_user.id == "u-admin"

    @pytest.mark.asyncio
    async def test_dispose_closes_store_and_drops_observers(
        self, service, store, credentials_env
    ):
        await service.initialize(INITIAL_DATA)
        seen = []
        service.subscribe(seen.append)

        await service.dispose()
        service.set_current_user("u-glen")

        assert store.closed
        assert store.callbacks == []
        assert len(seen) == 1


def test_new_id_format():
    task_id = new_id("t")
    prefix, millis, suffix = task_id.split("-")
    assert prefix == "t"
    assert millis.isdigit()
    assert len(suffix) == 6
    assert new_id("t") != new_id("t")
