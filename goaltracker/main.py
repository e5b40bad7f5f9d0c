from contextlib import asynccontextmanager

from fastapi import FastAPI

from goaltracker.db import async_session
from goaltracker.engine.remote import SqlRemoteStore
from goaltracker.engine.router import router as tracker_router
from goaltracker.engine.sessions import session_manager
from goaltracker.logging_setup import setup_logging

logger = setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await SqlRemoteStore(async_session).ensure_schema()
    except Exception as e:
        # Remote tier unavailable: sessions still work local-only and report "error"
        logger.warning("Could not ensure app_state table: %s", e)
    yield
    await session_manager.shutdown()


app = FastAPI(title="GoalTracker", version="0.1.0", lifespan=lifespan)
app.include_router(tracker_router)


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "tracker": {
            "session": "/tracker/session",
            "status": "/tracker/status",
            "state": "/tracker/state",
            "goals": "/tracker/goals",
            "entries": "/tracker/entries/{date}/checks",
            "widgets": "/tracker/widgets",
            "notification": "/tracker/notification",
            "metrics": "/tracker/metrics",
            "heatmap": "/tracker/heatmap",
            "reset": "/tracker/reset",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
