"""Remote store — authoritative per-user copy of the AppState document.

Table app_state: user_id (primary key), data (JSONB), updated_at. One row per
user; upsert replaces the document wholesale (last writer wins, no merge).
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from goaltracker.engine.models import AppState

SCHEMA_SQL = (
    "CREATE TABLE IF NOT EXISTS app_state ("
    "user_id TEXT PRIMARY KEY, "
    "data JSONB NOT NULL, "
    "updated_at TIMESTAMPTZ NOT NULL DEFAULT now())"
)


class RemoteStore(Protocol):
    async def fetch(self, user_id: str) -> AppState | None:
        """Return the stored document, or None when the user has none yet."""
        ...

    async def upsert(self, user_id: str, state: AppState, updated_at: datetime) -> None:
        """Insert or replace the user's document. Raises on failure."""
        ...


class SqlRemoteStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def ensure_schema(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text(SCHEMA_SQL))
            await session.commit()

    async def fetch(self, user_id: str) -> AppState | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text("SELECT data FROM app_state WHERE user_id = :user_id"),
                {"user_id": user_id},
            )
            row = result.fetchone()
        if row is None or row[0] is None:
            return None
        data = row[0]
        # asyncpg hands JSONB back as text unless a codec is registered
        if isinstance(data, (str, bytes)):
            return AppState.model_validate_json(data)
        return AppState.model_validate(data)

    async def upsert(self, user_id: str, state: AppState, updated_at: datetime) -> None:
        async with self._session_factory() as session:
            await session.execute(
                text(
                    "INSERT INTO app_state (user_id, data, updated_at) "
                    "VALUES (:user_id, CAST(:data AS JSONB), :updated_at) "
                    "ON CONFLICT (user_id) DO UPDATE "
                    "SET data = EXCLUDED.data, updated_at = EXCLUDED.updated_at"
                ),
                {
                    "user_id": user_id,
                    "data": json.dumps(state.to_document(), ensure_ascii=False),
                    "updated_at": updated_at,
                },
            )
            await session.commit()
