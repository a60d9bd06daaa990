"""PostgreSQL client for the CDC source-of-truth database."""

from __future__ import annotations
import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Generator, List, Optional, Union

import psycopg
from psycopg.rows import dict_row

from .config import DbConfig
from .models import Order, User

logger = logging.getLogger(__name__)


class SourceDatabase:
    """Client for the ``users``/``orders`` tables that Debezium captures."""

    def __init__(
        self,
        config: Optional[DbConfig] = None,
        *,
        dsn: Optional[str] = None,
    ):
        """Initialize source database client.

        Args:
            config: Connection settings, defaults to ``DbConfig()``
            dsn: PostgreSQL connection string, if provided overrides ``config``
        """
        self.config = config or DbConfig()
        self._dsn = dsn or self.config.dsn()

    @contextmanager
    def connection(self) -> Generator[psycopg.Connection, None, None]:
        """Get a database connection context manager."""
        with psycopg.connect(self._dsn, autocommit=True, row_factory=dict_row) as conn:
            yield conn

    def execute(self, sql: str, params: Optional[tuple] = None) -> int:
        """Execute SQL statement and return the affected row count."""
        logger.info(f"Executing SQL: {sql.strip()}")
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return cur.rowcount

    def fetch_all(self, sql: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Execute SQL and fetch all rows as dicts."""
        logger.debug(f"Fetching SQL: {sql.strip()}")
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return cur.fetchall()

    def fetch_one(self, sql: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        """Execute SQL and fetch one row as a dict, or None."""
        logger.debug(f"Fetching one SQL: {sql.strip()}")
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return cur.fetchone()

    def insert_user(self, email: str, name: str) -> User:
        """Insert a user and return the stored row."""
        row = self.fetch_one(
            """
            INSERT INTO users (email, name)
            VALUES (%s, %s)
            RETURNING *
            """,
            (email, name),
        )
        return User(**row)

    def insert_order(
        self,
        user_id: int,
        total_amount: Union[Decimal, float, str],
        status: str = "pending",
    ) -> Order:
        """Insert an order and return the stored row."""
        row = self.fetch_one(
            """
            INSERT INTO orders (user_id, total_amount, status)
            VALUES (%s, %s, %s)
            RETURNING *
            """,
            (user_id, Decimal(str(total_amount)), status),
        )
        return Order(**row)

    def get_all_users(self) -> List[User]:
        return [User(**row) for row in self.fetch_all("SELECT * FROM users ORDER BY id")]

    def get_all_orders(self) -> List[Order]:
        return [Order(**row) for row in self.fetch_all("SELECT * FROM orders ORDER BY id")]

    def get_user_by_email(self, email: str) -> Optional[User]:
        row = self.fetch_one("SELECT * FROM users WHERE email = %s", (email,))
        return User(**row) if row else None

    def update_user_name(self, email: str, name: str) -> int:
        return self.execute(
            "UPDATE users SET name = %s, updated_at = CURRENT_TIMESTAMP WHERE email = %s",
            (name, email),
        )

    def delete_user(self, email: str) -> int:
        return self.execute("DELETE FROM users WHERE email = %s", (email,))

    def get_replication_slot(self, slot_name: str) -> Optional[Dict[str, Any]]:
        """Look up a logical replication slot created by Debezium."""
        return self.fetch_one(
            """
            SELECT slot_name, plugin, slot_type, active
            FROM pg_replication_slots
            WHERE slot_name = %s
            """,
            (slot_name,),
        )

    def publication_exists(self, publication_name: str) -> bool:
        row = self.fetch_one(
            "SELECT pubname FROM pg_publication WHERE pubname = %s",
            (publication_name,),
        )
        return row is not None

    def get_publication_tables(self, publication_name: str) -> List[str]:
        rows = self.fetch_all(
            """
            SELECT tablename FROM pg_publication_tables
            WHERE pubname = %s
            ORDER BY tablename
            """,
            (publication_name,),
        )
        return [row["tablename"] for row in rows]

    def health_check(self) -> bool:
        """Check if PostgreSQL is reachable."""
        try:
            row = self.fetch_one("SELECT 1 AS ok")
            return row == {"ok": 1}
        except psycopg.Error as e:
            logger.warning(f"Health check failed: {e}")
            return False
