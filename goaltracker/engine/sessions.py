"""Active-session holder — one signed-in user per installation."""

from __future__ import annotations

import logging
from typing import Callable

from goaltracker.config import settings
from goaltracker.db import async_session
from goaltracker.engine.cache import LocalCache
from goaltracker.engine.coordinator import SyncCoordinator
from goaltracker.engine.errors import SessionError
from goaltracker.engine.remote import SqlRemoteStore

logger = logging.getLogger(__name__)


def build_coordinator() -> SyncCoordinator:
    return SyncCoordinator(
        remote=SqlRemoteStore(async_session),
        cache=LocalCache(settings.local_cache_dir),
        debounce_seconds=settings.sync_debounce_ms / 1000,
        timeout_seconds=settings.remote_timeout_seconds,
    )


class SessionManager:
    def __init__(self, factory: Callable[[], SyncCoordinator] = build_coordinator):
        self._factory = factory
        self.current: SyncCoordinator | None = None

    async def sign_in(self, user_id: str) -> SyncCoordinator:
        """Start a session for ``user_id``, tearing down any previous one first."""
        await self.sign_out()
        coordinator = self._factory()
        self.current = coordinator
        logger.info("Starting session for %s", user_id)
        await coordinator.start(user_id)
        return coordinator

    async def sign_out(self) -> None:
        if self.current is None:
            return
        coordinator, self.current = self.current, None
        await coordinator.close()

    async def shutdown(self) -> None:
        """Flush the pending write, then close. Used when the process stops."""
        if self.current is not None:
            await self.current.flush()
        await self.sign_out()

    def require(self) -> SyncCoordinator:
        if self.current is None:
            raise SessionError("No active session")
        return self.current


session_manager = SessionManager()


def get_session_manager() -> SessionManager:
    return session_manager
