"""Environment-driven settings for the lakehouse CDC stack."""

from __future__ import annotations
import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def env_default(name: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable without prefix."""
    return os.environ.get(name, default)


def pg_env_default(name: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable with PG_ prefix."""
    return os.environ.get(f"PG_{name}", default)


def trino_env_default(name: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable with TRINO_ prefix."""
    return os.environ.get(f"TRINO_{name}", default)


class DbConfig(BaseModel):
    """Connection settings for the PostgreSQL source database."""

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: str = "postgres"
    database: str = "app"
    connect_timeout: int = 10

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            raise ValueError("port must be between 1 and 65535")
        return v

    def dsn(self) -> str:
        """Build PostgreSQL connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
            f"?connect_timeout={self.connect_timeout}"
        )

    @classmethod
    def from_env(cls) -> DbConfig:
        return cls(
            host=pg_env_default("HOST", "localhost"),
            port=int(pg_env_default("PORT", "5432")),
            user=pg_env_default("USER", "postgres"),
            password=pg_env_default("PASSWORD", "postgres"),
            database=pg_env_default("DATABASE", "app"),
        )


class TrinoConfig(BaseModel):
    """Connection settings for the Trino coordinator."""

    host: str = "localhost"
    port: int = 8080
    user: str = "test"
    catalog: str = "iceberg"
    schema_name: str = "default"
    http_scheme: str = "http"

    @property
    def server(self) -> str:
        return f"{self.http_scheme}://{self.host}:{self.port}"

    @classmethod
    def from_env(cls) -> TrinoConfig:
        return cls(
            host=trino_env_default("HOST", "localhost"),
            port=int(trino_env_default("PORT", "8080")),
            user=trino_env_default("USER", "test"),
            catalog=trino_env_default("CATALOG", "iceberg"),
            schema_name=trino_env_default("SCHEMA", "default"),
        )


class HarnessSettings(BaseModel):
    """Endpoints of every service the harness talks to."""

    debezium_url: str = Field(
        default="http://localhost:8083", description="Kafka Connect worker running Debezium")
    elasticsearch_sink_url: str = Field(
        default="http://localhost:8084", description="Kafka Connect worker running the Elasticsearch sink")
    iceberg_sink_url: str = Field(
        default="http://localhost:8085", description="Kafka Connect worker running the Iceberg sink")
    redis_sink_url: str = Field(
        default="http://localhost:8086", description="Kafka Connect worker running the Redis sink")
    elasticsearch_url: str = Field(
        default="http://localhost:9200", description="Elasticsearch node")
    redis_url: str = Field(
        default="redis://localhost:6379", description="Redis server")
    db: DbConfig = Field(default_factory=DbConfig)
    trino: TrinoConfig = Field(default_factory=TrinoConfig)

    @field_validator(
        "debezium_url", "elasticsearch_sink_url", "iceberg_sink_url",
        "redis_sink_url", "elasticsearch_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with 'http://' or 'https://'")
        return v.rstrip("/")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("redis_url must use the redis://, rediss:// or unix:// scheme")
        return v

    @classmethod
    def from_env(cls) -> HarnessSettings:
        """Build settings from the process environment."""
        return cls(
            debezium_url=env_default("DEBEZIUM_URL", "http://localhost:8083"),
            elasticsearch_sink_url=env_default(
                "ELASTICSEARCH_SINK_URL", "http://localhost:8084"),
            iceberg_sink_url=env_default("ICEBERG_SINK_URL", "http://localhost:8085"),
            redis_sink_url=env_default("REDIS_SINK_URL", "http://localhost:8086"),
            elasticsearch_url=env_default("ELASTICSEARCH_URL", "http://localhost:9200"),
            redis_url=env_default("REDIS_URL", "redis://localhost:6379"),
            db=DbConfig.from_env(),
            trino=TrinoConfig.from_env(),
        )
