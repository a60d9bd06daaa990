"""Iceberg tables queried through Trino."""

from __future__ import annotations
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import trino.dbapi

from ..config import TrinoConfig
from ..models import QueryColumn, QueryResult

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _identifier(value: str) -> str:
    if not _IDENTIFIER.match(value):
        raise ValueError(f"invalid SQL identifier: {value!r}")
    return value


class TrinoQueryClient:
    """Runs SQL on Trino and materializes the full result set."""

    def __init__(self, config: Optional[TrinoConfig] = None):
        self.config = config or TrinoConfig()

    def connect(self) -> trino.dbapi.Connection:
        return trino.dbapi.connect(
            host=self.config.host,
            port=self.config.port,
            user=self.config.user,
            catalog=self.config.catalog,
            schema=self.config.schema_name,
            http_scheme=self.config.http_scheme,
        )

    def execute_query(self, sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Execute SQL and fetch every page of the result.

        Args:
            sql: SQL statement, ``?`` placeholders for ``params``
            params: Optional positional parameters

        Returns:
            QueryResult with column metadata and one dict per row
        """
        logger.debug(f"Trino SQL: {sql.strip()}")
        conn = self.connect()
        try:
            cursor = conn.cursor()
            if params:
                cursor.execute(sql, list(params))
            else:
                cursor.execute(sql)
            rows = cursor.fetchall()
            columns = [
                QueryColumn(name=desc[0], type=str(desc[1]))
                for desc in (cursor.description or [])
            ]
        finally:
            conn.close()

        names = [column.name for column in columns]
        data: List[Dict[str, Any]] = [dict(zip(names, row)) for row in rows]
        return QueryResult(columns=columns, data=data)

    def list_schemas(self, catalog: Optional[str] = None) -> List[str]:
        catalog = _identifier(catalog or self.config.catalog)
        result = self.execute_query(f"SHOW SCHEMAS IN {catalog}")
        return [row["Schema"] for row in result.data]

    def list_tables(self, namespace: str) -> List[str]:
        catalog = _identifier(self.config.catalog)
        result = self.execute_query(f"SHOW TABLES IN {catalog}.{_identifier(namespace)}")
        return [row["Table"] for row in result.data]

    def create_namespace(self, namespace: str) -> None:
        catalog = _identifier(self.config.catalog)
        self.execute_query(f"CREATE SCHEMA IF NOT EXISTS {catalog}.{_identifier(namespace)}")

    def create_table(self, namespace: str, table_name: str, columns: str) -> None:
        """Create an Iceberg table from a column definition list."""
        self.execute_query(
            f"CREATE TABLE IF NOT EXISTS {self.qualified(namespace, table_name)} (\n"
            f"  {columns.strip()}\n)"
        )

    def insert_into(self, namespace: str, table_name: str, columns: str, values: str) -> None:
        """Insert raw ``VALUES`` tuples, e.g. ``"(1, 'foo', 1.5)"``."""
        self.execute_query(
            f"INSERT INTO {self.qualified(namespace, table_name)} ({columns}) VALUES {values}"
        )

    def query_table(self, namespace: str, table_name: str) -> List[Dict[str, Any]]:
        return self.execute_query(f"SELECT * FROM {self.qualified(namespace, table_name)}").data

    def find_rows(
        self,
        namespace: str,
        table_name: str,
        field: str,
        value: Any,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """Rows whose ``field`` equals ``value``."""
        return self.execute_query(
            f"SELECT {columns} FROM {self.qualified(namespace, table_name)} "
            f"WHERE {_identifier(field)} = ?",
            [value],
        ).data

    def qualified(self, namespace: str, table_name: str) -> str:
        return f"{_identifier(self.config.catalog)}.{_identifier(namespace)}.{_identifier(table_name)}"

    def health_check(self) -> bool:
        try:
            return len(self.execute_query("SELECT 1").data) == 1
        except Exception as e:
            logger.warning(f"Health check failed: {e}")
            return False


_client: Optional[TrinoQueryClient] = None


def get_trino_client(config: Optional[TrinoConfig] = None) -> TrinoQueryClient:
    """Shared client, created on first use."""
    global _client
    if _client is None:
        _client = TrinoQueryClient(config)
    return _client


def reset_trino_client() -> None:
    global _client
    _client = None


def execute_trino_query(sql: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
    return get_trino_client().execute_query(sql, params)
