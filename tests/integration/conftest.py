"""
Fixtures for tests that need PostgreSQL.

The pool is opened once per session against DATABASE_URL. When the
database cannot be reached the dependent tests are skipped.
"""

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository import PostgresRecordStore, run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="session")
def pool() -> ConnectionPool:
    """Create connection pool for integration tests."""
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=False)
    try:
        pool.open(wait=True, timeout=3)
    except PoolTimeout:
        pool.close()
        pytest.skip(f"PostgreSQL not reachable at {settings.database_url}")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_store(pool: ConnectionPool) -> PostgresRecordStore:
    """Record store over a clean registrations table."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM registrations")
    return PostgresRecordStore(pool)
