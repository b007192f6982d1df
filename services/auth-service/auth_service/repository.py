"""Database repository for account credentials.

Expected schema::

    CREATE TABLE accounts (
        account_id    UUID PRIMARY KEY,
        email         TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
    );
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool, PoolTimeout

from .domain.account import Account
from .domain.contracts import DuplicateKeyError, StoreUnavailableError

logger = logging.getLogger(__name__)


class AccountRepository:
    """Postgres-backed credential store."""

    def __init__(self, pool: ConnectionPool, *, timeout_seconds: float = 5.0) -> None:
        """Store the connection pool and the time budget applied to every call."""
        self._pool = pool
        self._timeout = timeout_seconds

    def create_account(self, email: str, password_hash: str) -> str:
        """Insert an account row and return its identifier.

        The unique index on ``email`` is the only uniqueness check; a conflicting
        concurrent insert surfaces as ``DuplicateKeyError``.
        """
        account_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection(timeout=self._timeout) as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    self._apply_statement_timeout(cur)
                    cur.execute(
                        """
                        INSERT INTO accounts (account_id, email, password_hash, created_at)
                        VALUES (%s, %s, %s, %s)
                        RETURNING account_id
                        """,
                        (account_id, email, password_hash, now),
                    )
                    row = cur.fetchone()
                conn.commit()
        except pg_errors.UniqueViolation as exc:
            raise DuplicateKeyError("account email already registered") from exc
        except (psycopg.Error, PoolTimeout) as exc:
            logger.warning("account insert failed: %s", type(exc).__name__)
            raise StoreUnavailableError("account store unavailable") from exc
        return str(row[0])

    def find_by_email(self, email: str) -> Account | None:
        """Fetch the account registered under ``email`` or return ``None``."""
        try:
            with self._pool.connection(timeout=self._timeout) as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    self._apply_statement_timeout(cur)
                    cur.execute(
                        """
                        SELECT account_id, email, password_hash, created_at
                        FROM accounts
                        WHERE email = %s
                        """,
                        (email,),
                    )
                    row = cur.fetchone()
        except (psycopg.Error, PoolTimeout) as exc:
            logger.warning("account lookup failed: %s", type(exc).__name__)
            raise StoreUnavailableError("account store unavailable") from exc
        if not row:
            return None
        return self._map_record(row)

    def _apply_statement_timeout(self, cur: psycopg.Cursor) -> None:
        cur.execute(
            "SELECT set_config('statement_timeout', %s, true)",
            (str(int(self._timeout * 1000)),),
        )

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(
            account_id=str(row[0]),
            email=row[1],
            password_hash=row[2],
            created_at=row[3],
        )
