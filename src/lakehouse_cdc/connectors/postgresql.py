"""Debezium PostgreSQL source connector definition."""

from __future__ import annotations
from typing import Any, Dict, List

from pydantic import Field, field_validator

from .base import ConnectorDefinition


class PostgresSourceConnector(ConnectorDefinition):
    """Configuration for the Debezium ``PostgresConnector``.

    Args:
        topic_prefix: Prefix of the change topics, ``<prefix>.<schema>.<table>``
        table_include_list: Qualified tables captured from the WAL
        plugin_name: Logical decoding plugin (pgoutput or decoderbufs)
        publication_name: Publication Debezium reads when using pgoutput
        slot_name: Logical replication slot owned by the connector
    """

    name: str = Field(default="postgres-source", min_length=1)
    connector_class: str = Field(
        default="io.debezium.connector.postgresql.PostgresConnector", min_length=1)

    # Database connection (as seen from the Connect worker)
    hostname: str = Field(default="postgres", min_length=1, description="PostgreSQL hostname")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", min_length=1, description="PostgreSQL user")
    password: str = Field(default="postgres", description="PostgreSQL password")
    dbname: str = Field(default="app", min_length=1, description="PostgreSQL database")

    # CDC configuration
    topic_prefix: str = Field(default="dbz", min_length=1)
    table_include_list: List[str] = Field(
        default_factory=lambda: ["public.users", "public.orders"])
    plugin_name: str = Field(default="pgoutput")
    publication_name: str = Field(default="debezium_pub", min_length=1)
    slot_name: str = Field(default="debezium_slot", min_length=1)

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("plugin_name")
    @classmethod
    def validate_plugin_name(cls, v: str) -> str:
        allowed = ["pgoutput", "decoderbufs"]
        if v not in allowed:
            raise ValueError(f"plugin_name must be one of {allowed}, got {v}")
        return v

    @field_validator("table_include_list")
    @classmethod
    def validate_tables(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("table_include_list must not be empty")
        for table in v:
            if "." not in table:
                raise ValueError(f"table '{table}' must be schema-qualified")
        return v

    def connector_properties(self) -> Dict[str, Any]:
        return {
            "database.hostname": self.hostname,
            "database.port": self.port,
            "database.user": self.user,
            "database.password": self.password,
            "database.dbname": self.dbname,
            "topic.prefix": self.topic_prefix,
            "table.include.list": self.table_include_list,
            "plugin.name": self.plugin_name,
            "publication.name": self.publication_name,
            "slot.name": self.slot_name,
        }

    def topic_for(self, table: str) -> str:
        """Change topic name for a captured table."""
        qualified = table if "." in table else f"public.{table}"
        return f"{self.topic_prefix}.{qualified}"

    @property
    def topics(self) -> List[str]:
        return [self.topic_for(table) for table in self.table_include_list]
