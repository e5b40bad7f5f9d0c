from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from goaltracker.config import settings

_ASYNC_SCHEMES = ("postgres://", "postgresql://")


def async_database_url(url: str) -> str:
    """Point plain Postgres URLs (as hosting providers hand them out) at asyncpg."""
    for scheme in _ASYNC_SCHEMES:
        if url.startswith(scheme):
            return "postgresql+asyncpg://" + url[len(scheme):]
    return url


engine = create_async_engine(async_database_url(settings.database_url), pool_pre_ping=True)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
