"""Elasticsearch sink connector definition."""

from __future__ import annotations
from typing import Any, Dict, List

from pydantic import Field, field_validator

from .base import ConnectorDefinition


class ElasticsearchSinkConnector(ConnectorDefinition):
    """Configuration for the Elasticsearch sink.

    Documents land in an index named after the change topic, e.g.
    ``dbz.public.users``, keyed by the record key field ``id``.
    """

    name: str = Field(default="elasticsearch-sink", min_length=1)
    connector_class: str = Field(
        default="io.debezium.connector.jdbc.JdbcSinkConnector", min_length=1)

    connection_url: str = Field(
        default="jdbc:elasticsearch://elasticsearch:9200", min_length=1,
        description="Elasticsearch endpoint as seen from the Connect worker")
    topics_regex: str = Field(default="dbz.public.*", min_length=1)
    insert_mode: str = Field(default="upsert")
    primary_key_mode: str = Field(default="record_key")
    primary_key_fields: List[str] = Field(default_factory=lambda: ["id"])

    @field_validator("insert_mode")
    @classmethod
    def validate_insert_mode(cls, v: str) -> str:
        allowed = ["insert", "upsert", "update"]
        if v not in allowed:
            raise ValueError(f"insert_mode must be one of {allowed}, got {v}")
        return v

    @field_validator("primary_key_mode")
    @classmethod
    def validate_primary_key_mode(cls, v: str) -> str:
        allowed = ["none", "kafka", "record_key", "record_value"]
        if v not in allowed:
            raise ValueError(f"primary_key_mode must be one of {allowed}, got {v}")
        return v

    def connector_properties(self) -> Dict[str, Any]:
        props: Dict[str, Any] = {
            "connection.url": self.connection_url,
            "topics.regex": self.topics_regex,
            "insert.mode": self.insert_mode,
            "primary.key.mode": self.primary_key_mode,
        }
        if self.primary_key_fields:
            props["primary.key.fields"] = self.primary_key_fields
        return props

    @staticmethod
    def index_for(topic: str) -> str:
        """Index the sink writes a topic to."""
        return topic
