"""Lakehouse CDC

Connector definitions, control-plane and store clients, and poll-until-visible
helpers for a PostgreSQL → Debezium → Kafka → Iceberg/Elasticsearch/Redis stack.
"""

from .config import DbConfig, HarnessSettings, TrinoConfig
from .connect import KafkaConnectClient, RegistrationOutcome
from .connectors import (
    ConnectorDefinition,
    RawConnector,
    PostgresSourceConnector,
    ElasticsearchSinkConnector,
    IcebergSinkConnector,
    RedisSinkConnector,
    POSTGRES_SOURCE_CONNECTOR,
    ELASTICSEARCH_SINK_CONNECTOR,
    ICEBERG_SINK_CONNECTOR,
    REDIS_SINK_CONNECTOR,
)
from .db import SourceDatabase
from .exceptions import (
    HarnessError,
    PollTimeoutError,
    ConnectorTimeoutError,
    UnexpectedResponseError,
    WarmupError,
    PartialWarmupError,
)
from .models import User, Order, ConnectorStatus, QueryResult
from .polling import PollAttempt, PollResult, poll_until_found, apoll_until_found, wait_until
from .stores import (
    TrinoQueryClient,
    SearchStore,
    CacheStore,
    execute_trino_query,
    get_trino_client,
    reset_trino_client,
    create_elasticsearch_client,
    create_redis_client,
    extract_after,
)
from .warmup import PipelineWarmup, Sink, WarmupReport

__all__ = [
    # Configuration
    "DbConfig",
    "HarnessSettings",
    "TrinoConfig",

    # Control plane
    "KafkaConnectClient",
    "RegistrationOutcome",

    # Connector definitions
    "ConnectorDefinition",
    "RawConnector",
    "PostgresSourceConnector",
    "ElasticsearchSinkConnector",
    "IcebergSinkConnector",
    "RedisSinkConnector",
    "POSTGRES_SOURCE_CONNECTOR",
    "ELASTICSEARCH_SINK_CONNECTOR",
    "ICEBERG_SINK_CONNECTOR",
    "REDIS_SINK_CONNECTOR",

    # Source database and stores
    "SourceDatabase",
    "TrinoQueryClient",
    "SearchStore",
    "CacheStore",
    "execute_trino_query",
    "get_trino_client",
    "reset_trino_client",
    "create_elasticsearch_client",
    "create_redis_client",
    "extract_after",

    # Polling
    "PollAttempt",
    "PollResult",
    "poll_until_found",
    "apoll_until_found",
    "wait_until",
    "PipelineWarmup",
    "Sink",
    "WarmupReport",

    # Errors
    "HarnessError",
    "PollTimeoutError",
    "ConnectorTimeoutError",
    "UnexpectedResponseError",
    "WarmupError",
    "PartialWarmupError",

    # Data models
    "User",
    "Order",
    "ConnectorStatus",
    "QueryResult",
]

__version__ = "0.1.0"
