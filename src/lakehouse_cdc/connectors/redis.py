"""Redis sink connector definition."""

from __future__ import annotations
from typing import Any, Dict, List

from pydantic import Field, field_validator

from .base import ConnectorDefinition


class RedisSinkConnector(ConnectorDefinition):
    """Configuration for the Redis Kafka Connect sink.

    ``ExtractField$Key`` followed by ``Cast$Key`` turns the Debezium key
    struct into the plain stringified primary key, so a row with id 123 is
    stored under the Redis key ``"123"``. Values are the untouched Debezium
    envelope JSON.
    """

    name: str = Field(default="redis-sink", min_length=1)
    connector_class: str = Field(
        default="com.redis.kafka.connect.RedisSinkConnector", min_length=1)

    topics: List[str] = Field(default_factory=lambda: ["dbz.public.users"])
    redis_uri: str = Field(default="redis://redis:6379", min_length=1)
    redis_type: str = Field(default="STRING", description="Redis data structure written")
    key_field: str = Field(default="id", min_length=1, description="Field pulled out of the key struct")

    @field_validator("redis_uri")
    @classmethod
    def validate_redis_uri(cls, v: str) -> str:
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("redis_uri must start with 'redis://' or 'rediss://'")
        return v

    @field_validator("redis_type")
    @classmethod
    def validate_redis_type(cls, v: str) -> str:
        allowed = ["STRING", "JSON", "HASH", "STREAM", "LIST", "SET", "ZSET"]
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"redis_type must be one of {allowed}, got {v}")
        return v

    def connector_properties(self) -> Dict[str, Any]:
        return {
            "topics": self.topics,
            "redis.uri": self.redis_uri,
            "redis.type": self.redis_type,
            "key.converter": "org.apache.kafka.connect.json.JsonConverter",
            "key.converter.schemas.enable": True,
            "value.converter": "org.apache.kafka.connect.storage.StringConverter",
            "transforms": "extractKey,castKey",
            "transforms.extractKey.type": "org.apache.kafka.connect.transforms.ExtractField$Key",
            "transforms.extractKey.field": self.key_field,
            "transforms.castKey.type": "org.apache.kafka.connect.transforms.Cast$Key",
            "transforms.castKey.spec": "string",
        }
