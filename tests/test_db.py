"""Tests for database URL handling."""

from goaltracker.db import async_database_url


class TestAsyncDatabaseUrl:
    def test_postgres_scheme(self):
        assert async_database_url("postgres://u:p@h:5432/db") == "postgresql+asyncpg://u:p@h:5432/db"

    def test_postgresql_scheme(self):
        assert async_database_url("postgresql://h/db") == "postgresql+asyncpg://h/db"

    def test_already_async(self):
        url = "postgresql+asyncpg://h/db"
        assert async_database_url(url) == url
