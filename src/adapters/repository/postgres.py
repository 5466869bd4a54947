"""
PostgreSQL repository adapter - Implements RecordStore protocol.

This module provides the PostgreSQL implementation of the domain's
record store port using psycopg3 with raw SQL.

Store Design:
-------------
1. **Ids and timestamps** come from the database (gen_random_uuid(),
   now() on insert, clock_timestamp() on update), so callers always see the
   store's canonical values.

2. **Partial updates** only touch columns named in _UPDATABLE_COLUMNS.
   Column names are whitelisted before they reach SQL; values are always
   passed as parameters.

3. **Invariants** live in the schema: status is CHECK-constrained to the
   RegistrationStatus values and error_message must be set exactly when
   status is 'failed'.

4. **Connectivity failures** (OperationalError, PoolTimeout) surface as the
   domain's StoreUnavailable. Other database errors propagate unchanged.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool, PoolTimeout

from src.domain.exceptions import NotFound, StoreUnavailable
from src.domain.ports import EmailEntry, RegistrationRecord, RegistrationStatus

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, email, first_name, last_name, event_id, status, verification_code, "
    "provider_response, error_message, created_at, updated_at"
)

_UPDATABLE_COLUMNS = frozenset(
    {"status", "verification_code", "provider_response", "error_message"}
)


class PostgresRecordStore:
    """
    Implements RecordStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def create(self, entry: EmailEntry, event_id: str) -> RegistrationRecord:
        """
        Insert a PENDING record for entry.

        Args:
            entry: Registrant data (email stored verbatim)
            event_id: Provider event identifier

        Returns:
            The inserted row as a RegistrationRecord
        """
        query = f"""
            INSERT INTO registrations (email, first_name, last_name, event_id, status)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING {_COLUMNS}
        """
        params = (
            entry.email,
            entry.first_name,
            entry.last_name,
            event_id,
            RegistrationStatus.PENDING.value,
        )

        with self._cursor() as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
        return _to_record(row)

    def update(self, record_id: str, **fields: Any) -> None:
        """
        Merge fields into the record and set updated_at to the database clock.

        Raises:
            ValueError: If no fields are given or a field is not updatable
            NotFound: If no record has this id
        """
        if not fields:
            raise ValueError("update() needs at least one field")
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        assignments = [
            sql.SQL("{} = %s").format(sql.Identifier(name)) for name in fields
        ]
        assignments.append(sql.SQL("updated_at = clock_timestamp()"))
        query = sql.SQL("UPDATE registrations SET {} WHERE id = %s").format(
            sql.SQL(", ").join(assignments)
        )
        params = [_to_db_value(name, value) for name, value in fields.items()]
        params.append(_parse_id(record_id))

        with self._cursor() as cursor:
            cursor.execute(query, params)
            if cursor.rowcount == 0:
                raise NotFound(record_id)

    def fetch(self, record_id: str) -> RegistrationRecord:
        """
        Load one record by id.

        Raises:
            NotFound: If no record has this id
        """
        query = f"SELECT {_COLUMNS} FROM registrations WHERE id = %s"

        with self._cursor() as cursor:
            cursor.execute(query, (_parse_id(record_id),))
            row = cursor.fetchone()
        if row is None:
            raise NotFound(record_id)
        return _to_record(row)

    def delete(self, record_id: str) -> None:
        """
        Delete one record by id.

        Raises:
            NotFound: If no record has this id
        """
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM registrations WHERE id = %s", (_parse_id(record_id),))
            if cursor.rowcount == 0:
                raise NotFound(record_id)

    def list(self) -> list[RegistrationRecord]:
        """Return all records, newest first."""
        query = f"SELECT {_COLUMNS} FROM registrations ORDER BY created_at DESC, id DESC"

        with self._cursor() as cursor:
            cursor.execute(query)
            rows = cursor.fetchall()
        return [_to_record(row) for row in rows]

    def ping(self) -> None:
        """Check database connectivity (used by the health endpoint)."""
        with self._cursor() as cursor:
            cursor.execute("SELECT 1")

    @contextmanager
    def _cursor(self) -> Iterator[psycopg.Cursor[dict[str, Any]]]:
        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                yield cursor
        except (psycopg.OperationalError, PoolTimeout) as exc:
            raise StoreUnavailable(f"Record store unavailable: {exc}") from exc


def _parse_id(record_id: str) -> uuid.UUID:
    # Ids are UUIDs; anything else cannot exist in the table
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        raise NotFound(record_id) from None


def _to_db_value(name: str, value: Any) -> Any:
    if name == "provider_response":
        return Jsonb(value if value is not None else {})
    if isinstance(value, RegistrationStatus):
        return value.value
    return value


def _to_record(row: dict[str, Any] | None) -> RegistrationRecord:
    if row is None:
        raise StoreUnavailable("Record store returned no row")
    return RegistrationRecord(
        id=str(row["id"]),
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        event_id=row["event_id"],
        status=RegistrationStatus(row["status"]),
        verification_code=row["verification_code"],
        provider_response=row["provider_response"] or {},
        error_message=row["error_message"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
