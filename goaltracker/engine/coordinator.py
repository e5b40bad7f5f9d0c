"""Reconciliation coordinator — owns the only mutable handle to AppState.

Startup arbitrates between the local snapshot and the remote copy (remote
wins; an absent remote is seeded from local). Afterwards every effective
mutation is written to the local cache synchronously and re-arms a single
debounce timer; when it fires, whatever the state is *then* gets pushed.
Consistency model is last-writer-wins: there is no merge and no queue.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from goaltracker.engine.cache import LocalCache
from goaltracker.engine.errors import SessionError
from goaltracker.engine.models import AppState, SyncState, SyncStatus
from goaltracker.engine.normalizer import normalize
from goaltracker.engine.remote import RemoteStore
from goaltracker.engine.seed import default_state

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DEBOUNCE_SECONDS = 0.6
DEFAULT_TIMEOUT_SECONDS = 10.0


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "Remote store did not respond in time"
    return str(exc) or exc.__class__.__name__


class SyncCoordinator:
    def __init__(
        self,
        remote: RemoteStore,
        cache: LocalCache,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.remote = remote
        self.cache = cache
        self.debounce_seconds = debounce_seconds
        self.timeout_seconds = timeout_seconds

        self._state = cache.load()
        self._status = SyncStatus.loading
        self._error: str | None = None
        self._user_id: str | None = None

        self._initial_load_complete = False
        self._startup_done = False
        self._replication_enabled = False
        self._closed = False
        # Bumped by reset(); a startup fetch from an older generation is discarded
        self._generation = 0

        self._timer: asyncio.Task | None = None
        self._pushes: set[asyncio.Task] = set()
        self._push_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sync_state(self) -> SyncState:
        return SyncState(
            status=self._status,
            error=self._error if self._status == SyncStatus.error else None,
            user_id=self._user_id,
            initial_load_complete=self._initial_load_complete,
        )

    @property
    def has_pending_push(self) -> bool:
        return (self._timer is not None and not self._timer.done()) or bool(self._pushes)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def start(self, user_id: str) -> SyncState:
        """Run the startup protocol once for ``user_id``."""
        self._ensure_open()
        if self._user_id is not None:
            raise SessionError(f"Session already started for {self._user_id}")
        self._user_id = user_id
        self._set_status(SyncStatus.loading)
        generation = self._generation

        try:
            remote = await self._call(self.remote.fetch(user_id))
            if self._closed:
                return self.sync_state
            if self._generation != generation:
                logger.info("State for %s was reset during startup, keeping the reset", user_id)
            elif remote is not None:
                logger.info("Adopting remote state for %s", user_id)
                self._state = remote
                self.cache.save(remote)
            else:
                logger.info("No remote state for %s, seeding from local", user_id)
                async with self._push_lock:
                    if self._generation == generation:
                        await self._call(self.remote.upsert(user_id, self._state, _now()))
        except Exception as e:
            logger.warning("Initial sync for %s failed: %s", user_id, e)
            self._set_error(_describe(e))
        else:
            self._initial_load_complete = True
            self._replication_enabled = True
            self._set_status(SyncStatus.ready)
        finally:
            self._startup_done = True

        return self.sync_state

    async def close(self) -> None:
        """Tear the session down: drop any armed timer, let an in-flight push land."""
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        if self._pushes:
            await asyncio.gather(*self._pushes, return_exceptions=True)
        logger.info("Session closed for %s", self._user_id)

    async def flush(self) -> None:
        """Push the pending state now instead of waiting for the quiet period."""
        if self._timer is not None and not self._timer.done():
            self._cancel_timer()
            self._spawn_push()
        if self._pushes:
            await asyncio.gather(*self._pushes, return_exceptions=True)

    # ------------------------------------------------------------------
    # Write side
    # ------------------------------------------------------------------

    def update(self, mutate: Callable[[AppState], AppState]) -> AppState:
        """Apply a state operation, repair invariants, persist, schedule replication.

        Must be called from within a running event loop. A mutation that ends
        up equal to the current document is a no-op.
        """
        self._ensure_open()
        candidate, _ = normalize(mutate(self._state))
        if candidate == self._state:
            return self._state

        self._state = candidate
        self.cache.save(candidate)
        if self._startup_done and not self._replication_enabled:
            # First mutation after a failed startup
            self._initial_load_complete = True
            self._replication_enabled = True
        if self._replication_enabled:
            self._arm()
        return candidate

    async def reset(self) -> AppState:
        """Wipe local data back to the seed and overwrite the remote copy (best effort)."""
        self._ensure_open()
        self._cancel_timer()
        self._generation += 1
        self.cache.clear()
        fresh = default_state()
        self._state = fresh
        self.cache.save(fresh)

        if self._user_id is not None:
            async with self._push_lock:
                self._set_status(SyncStatus.ready)
                try:
                    await self._call(self.remote.upsert(self._user_id, fresh, _now()))
                except Exception as e:
                    logger.warning("Remote overwrite after reset failed for %s: %s", self._user_id, e)
        return fresh

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionError("Session is closed")

    def _set_status(self, status: SyncStatus) -> None:
        self._status = status
        if status != SyncStatus.error:
            self._error = None

    def _set_error(self, message: str) -> None:
        self._status = SyncStatus.error
        self._error = message

    async def _call(self, aw: Awaitable[T]) -> T:
        if self.timeout_seconds is None:
            return await aw
        return await asyncio.wait_for(aw, self.timeout_seconds)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _arm(self) -> None:
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._fire_after_quiet_period())

    async def _fire_after_quiet_period(self) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._timer = None
        self._spawn_push()

    def _spawn_push(self) -> None:
        task = asyncio.get_running_loop().create_task(self._push())
        self._pushes.add(task)
        task.add_done_callback(self._pushes.discard)

    async def _push(self) -> None:
        async with self._push_lock:
            user_id = self._user_id
            if user_id is None:
                return
            # Snapshot under the lock so the remote never sees an older state after a newer one
            snapshot = self._state
            self._set_status(SyncStatus.saving)
            try:
                await self._call(self.remote.upsert(user_id, snapshot, _now()))
            except Exception as e:
                logger.warning("Saving state for %s failed: %s", user_id, e)
                self._set_error(_describe(e))
            else:
                logger.debug("Saved state for %s", user_id)
                self._set_status(SyncStatus.ready)


def _now() -> datetime:
    return datetime.now(timezone.utc)
