"""State synchronization service.

Owns the one authoritative in-memory snapshot of the dashboard state and
mediates every mutation through the remote store. Writes go straight to the
store and are followed by a full refetch; the local snapshot is only ever
replaced with what the store reports back. Observers get a fresh shallow copy
of the snapshot whenever it changes.

Known limitations, kept deliberately:

- No retry or backoff: a failed connect stays disconnected until the caller
  reconnects.
- Write failures are logged but not reported to the caller. The only visible
  effect is that the following sync does not show the change.
- Overlapping syncs are not serialized; whichever response arrives last wins.
- Without credentials the service runs in local mode and drops all writes.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from bpd_dashboard.adapters.rest_api import create_store
from bpd_dashboard.adapters.rows import (
    program_from_row,
    program_to_row,
    program_update_to_row,
    task_from_row,
    task_to_row,
    task_update_to_row,
    user_from_row,
    user_to_row,
    user_update_to_row,
)
from bpd_dashboard.models import (
    AppState,
    Program,
    ProgramCreate,
    ProgramUpdate,
    StoreCredentials,
    Task,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
    User,
    UserCreate,
    UserUpdate,
    status_progress,
)
from bpd_dashboard.repositories import ChangeEvent, ChangeSubscription, RemoteStore
from bpd_dashboard.services.config_service import ConfigService
from bpd_dashboard.services.pubsub import Observer, Subscription, SubscriptionRegistry

logger = logging.getLogger(__name__)

StoreFactory = Callable[[StoreCredentials], RemoteStore]
Payload = TypeVar("Payload", bound=BaseModel)


class ConnectionState(str, Enum):
    """Connection lifecycle of the sync service."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def new_id(prefix: str) -> str:
    """Generate a time-based entity id such as ``t-1735460080014-3f9a1c``."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StateSyncService:
    """Single source of truth for the dashboard state.

    Create one per application (or per test) and call initialize() before use
    and dispose() when done.
    """

    def __init__(
        self,
        config_service: ConfigService,
        store_factory: StoreFactory | None = None,
        on_reset: Callable[[], None] | None = None,
    ):
        """Initialize the service.

        Args:
            config_service: Source of configuration and credentials
            store_factory: Builds a RemoteStore for a credential pair
                (defaults to the REST store)
            on_reset: Called after clear_credentials() so the host can reload
        """
        self.config_service = config_service
        self._store_factory = store_factory or (
            lambda credentials: create_store(credentials, config_service.config)
        )
        self._on_reset = on_reset

        self._store: RemoteStore | None = None
        self._changes: ChangeSubscription | None = None
        self._connection_state = ConnectionState.DISCONNECTED

        self._seed = AppState()
        self._state = AppState()
        self._observers = SubscriptionRegistry()
        self._pending: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        """A shallow copy of the current snapshot."""
        return self._state.shallow_copy()

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection_state

    @property
    def is_connected(self) -> bool:
        return self._connection_state == ConnectionState.CONNECTED

    def has_credentials(self) -> bool:
        """Whether any credential source currently resolves."""
        return self.config_service.has_credentials()

    def _set_connection(self, new_state: ConnectionState) -> None:
        if new_state != self._connection_state:
            logger.info("connection %s -> %s", self._connection_state.value, new_state.value)
        self._connection_state = new_state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, seed: AppState | Mapping[str, Any]) -> bool:
        """Load the seed snapshot, then try to connect.

        The seed is published before any network round trip so observers
        always have data to show.

        Returns:
            True if the remote store connection succeeded
        """
        try:
            seed_state = seed if isinstance(seed, AppState) else AppState.model_validate(seed)
        except ValidationError as e:
            logger.error("Invalid seed data, starting empty: %s", e)
            seed_state = AppState()
        self._seed = seed_state.shallow_copy()
        self._state = self._fresh_seed_state()
        self._notify()

        connected = await self.reconnect()

        if self._state.users and self._state.current_user is None:
            self._state.current_user = self._state.users[0]
            self._notify()
        return connected

    def _fresh_seed_state(self) -> AppState:
        state = self._seed.shallow_copy()
        if state.current_user is None and state.users:
            state.current_user = state.users[0]
        return state

    async def reconnect(self, url: str | None = None, key: str | None = None) -> bool:
        """(Re)connect to the remote store.

        Credentials resolve from explicit arguments, then the persisted
        override, then the environment. Any previous connection is torn down
        first.

        Returns:
            True once the handshake read and the first full sync succeeded
        """
        try:
            credentials = self.config_service.resolve_credentials(url, key)
        except Exception as e:
            logger.warning("Could not resolve store credentials: %s", e)
            credentials = None
        await self._teardown()

        if credentials is None:
            logger.warning(
                "No store credentials found; running in local mode. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY or save credentials in settings."
            )
            self._set_connection(ConnectionState.DISCONNECTED)
            return False

        self._set_connection(ConnectionState.CONNECTING)
        try:
            self._store = self._store_factory(credentials)
            # Cheap handshake read before the full sync
            await self._store.select("users")
            if not await self.sync():
                raise ConnectionError("initial sync failed")
            if self.config_service.config.sync.realtime:
                self._changes = await self._store.subscribe_changes(self._on_remote_change)
        except Exception as e:
            logger.warning("Store handshake with %s failed: %s", credentials.url, e)
            await self._teardown()
            self._set_connection(ConnectionState.DISCONNECTED)
            return False

        self._set_connection(ConnectionState.CONNECTED)
        logger.info("Connected to store at %s", credentials.url)
        self._notify()
        return True

    async def _teardown(self) -> None:
        changes, self._changes = self._changes, None
        store, self._store = self._store, None
        try:
            if changes is not None:
                await changes.close()
            if store is not None:
                await store.close()
        except Exception:
            logger.warning("Error closing store connection", exc_info=True)

    async def dispose(self) -> None:
        """Close the connection, cancel in-flight syncs and drop observers."""
        pending, self._pending = self._pending, set()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await self._teardown()
        self._set_connection(ConnectionState.DISCONNECTED)
        self._observers.clear()

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def sync(self) -> bool:
        """Refetch all collections and replace the snapshot.

        On failure the previous snapshot is kept, the service is marked
        disconnected and observers are still notified.

        Returns:
            True if the refetch succeeded
        """
        store = self._store
        if store is None:
            return False

        try:
            task_rows, program_rows, user_rows = await asyncio.gather(
                store.select("tasks", order_by="updated_at", descending=True),
                store.select("programs"),
                store.select("users"),
            )
            tasks = [task_from_row(row) for row in task_rows]
            programs = [program_from_row(row) for row in program_rows]
            users = [user_from_row(row) for row in user_rows]
        except Exception as e:
            if store is not self._store:
                logger.debug("Ignoring sync failure from a closed store: %s", e)
                return False
            logger.warning("Sync failed: %s", e)
            self._set_connection(ConnectionState.DISCONNECTED)
            self._notify()
            return False

        if store is not self._store:
            logger.debug("Discarding sync result from a closed store")
            return False

        current = self._state.current_user
        self._state = AppState(tasks=tasks, programs=programs, users=users)
        self._state.current_user = self._state.find_user(current.id if current else None)

        if self._connection_state == ConnectionState.DISCONNECTED:
            self._set_connection(ConnectionState.CONNECTED)
        self._notify()
        return True

    def _on_remote_change(self, event: ChangeEvent) -> None:
        logger.debug("Remote update received for %s", event.table)
        task = asyncio.get_running_loop().create_task(self.sync())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_for_pending_syncs(self) -> None:
        """Wait for syncs triggered by remote change events."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Subscription:
        """Register *observer* and immediately deliver the current snapshot.

        Returns:
            A Subscription; call it (or its unsubscribe()) to stop updates
        """
        subscription = self._observers.subscribe(observer)
        try:
            observer(self._state.shallow_copy())
        except Exception:
            logger.exception("Error in state observer %d", subscription.handle)
        return subscription

    def _notify(self) -> None:
        self._observers.publish(self._state)

    # ------------------------------------------------------------------
    # Write-through mutations
    # ------------------------------------------------------------------

    def _actor(self) -> str:
        user = self._state.current_user
        return user.name if user and user.name else "System"

    def _accepts_writes(self, action: str) -> bool:
        if self._store is None:
            logger.debug("%s dropped: no remote store configured", action)
            return False
        return True

    @staticmethod
    def _parse(action: str, model: type[Payload], payload: Any) -> Payload | None:
        """Validate a caller payload; invalid input is logged and dropped."""
        if isinstance(payload, model):
            return payload
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.warning("%s dropped: invalid payload: %s", action, e)
            return None

    async def _write(self, action: str, operation: Callable[[RemoteStore], Awaitable[None]]) -> bool:
        """Run a store write, then resync whatever the outcome.

        Returns:
            False if there is no store to write to
        """
        store = self._store
        if store is None:
            logger.debug("%s dropped: no remote store configured", action)
            return False
        try:
            await operation(store)
        except Exception as e:
            logger.warning("%s failed: %s", action, e)
        await self.sync()
        return True

    async def add_task(self, task: TaskCreate | Mapping[str, Any]) -> str | None:
        """Create a task.

        Returns:
            The generated task id, or None if the write was dropped
        """
        if not self._accepts_writes("add task"):
            return None
        payload = self._parse("add task", TaskCreate, task)
        if payload is None:
            return None
        record = Task(
            id=new_id("t"),
            updated_at=_now(),
            updated_by=self._actor(),
            **payload.model_dump(),
        )
        row = task_to_row(record)
        if await self._write("add task", lambda store: store.insert("tasks", row)):
            return record.id
        return None

    async def update_task(self, task_id: str, updates: TaskUpdate | Mapping[str, Any]) -> None:
        """Apply a partial update to a task and stamp the audit fields."""
        if not self._accepts_writes("update task"):
            return
        payload = self._parse("update task", TaskUpdate, updates)
        if payload is None:
            return
        row = task_update_to_row(payload)
        row["updated_at"] = _now()
        row["updated_by"] = self._actor()
        await self._write("update task", lambda store: store.update("tasks", task_id, row))

    async def update_task_status(self, task_id: str, status: TaskStatus | str) -> None:
        """Move a task to *status* with its conventional progress value."""
        if not self._accepts_writes("update task"):
            return
        try:
            status = TaskStatus(status)
        except ValueError:
            logger.warning("update task dropped: unknown status %r", status)
            return
        await self.update_task(
            task_id, TaskUpdate(status=status, progress=status_progress(status))
        )

    async def delete_task(self, task_id: str) -> None:
        await self._write("delete task", lambda store: store.delete("tasks", task_id))

    async def add_program(self, program: ProgramCreate | Mapping[str, Any]) -> str | None:
        if not self._accepts_writes("add program"):
            return None
        payload = self._parse("add program", ProgramCreate, program)
        if payload is None:
            return None
        current = self._state.current_user
        record = Program(
            id=new_id("p"),
            created_at=_now(),
            created_by=current.id if current else "System",
            **payload.model_dump(),
        )
        row = program_to_row(record)
        if await self._write("add program", lambda store: store.insert("programs", row)):
            return record.id
        return None

    async def update_program(
        self, program_id: str, updates: ProgramUpdate | Mapping[str, Any]
    ) -> None:
        # Renames do not cascade: tasks keep the program name they were filed under.
        if not self._accepts_writes("update program"):
            return
        payload = self._parse("update program", ProgramUpdate, updates)
        if payload is None:
            return
        row = program_update_to_row(payload)
        await self._write("update program", lambda store: store.update("programs", program_id, row))

    async def delete_program(self, program_id: str) -> None:
        await self._write("delete program", lambda store: store.delete("programs", program_id))

    async def add_user(self, user: UserCreate | Mapping[str, Any]) -> str | None:
        if not self._accepts_writes("add user"):
            return None
        payload = self._parse("add user", UserCreate, user)
        if payload is None:
            return None
        record = User(id=new_id("u"), **payload.model_dump())
        row = user_to_row(record)
        if await self._write("add user", lambda store: store.insert("users", row)):
            return record.id
        return None

    async def update_user(self, user_id: str, updates: UserUpdate | Mapping[str, Any]) -> None:
        if not self._accepts_writes("update user"):
            return
        payload = self._parse("update user", UserUpdate, updates)
        if payload is None:
            return
        row = user_update_to_row(payload)
        await self._write("update user", lambda store: store.update("users", user_id, row))

    async def delete_user(self, user_id: str) -> None:
        await self._write("delete user", lambda store: store.delete("users", user_id))

    # ------------------------------------------------------------------
    # Local-only operations
    # ------------------------------------------------------------------

    def set_current_user(self, user_id: str | None) -> User | None:
        """Switch the acting user. Not persisted remotely.

        Returns:
            The matching user, or None if the id is unknown
        """
        self._state.current_user = self._state.find_user(user_id)
        self._notify()
        return self._state.current_user

    async def save_credentials(self, url: str, key: str) -> bool:
        """Persist a credential override and reconnect with it."""
        try:
            self.config_service.save_credentials(url, key)
        except (ValueError, OSError) as e:
            logger.warning("Could not save store credentials: %s", e)
            return False
        return await self.reconnect()

    async def clear_credentials(self) -> None:
        """Erase the credential override and hard-reset to the seed snapshot."""
        try:
            self.config_service.clear_credentials()
        except OSError as e:
            logger.warning("Could not clear store credentials: %s", e)
        await self._teardown()
        self._set_connection(ConnectionState.DISCONNECTED)
        self._state = self._fresh_seed_state()
        self._notify()
        if self._on_reset is not None:
            self._on_reset()
