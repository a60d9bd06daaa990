"""Connector definitions for the CDC lakehouse stack."""

from typing import Dict

from .base import ConnectorDefinition, RawConnector
from .postgresql import PostgresSourceConnector
from .elasticsearch import ElasticsearchSinkConnector
from .iceberg import IcebergSinkConnector
from .redis import RedisSinkConnector

POSTGRES_SOURCE_CONNECTOR = PostgresSourceConnector()
ELASTICSEARCH_SINK_CONNECTOR = ElasticsearchSinkConnector()
ICEBERG_SINK_CONNECTOR = IcebergSinkConnector()
REDIS_SINK_CONNECTOR = RedisSinkConnector()

DEFAULT_CONNECTORS: Dict[str, ConnectorDefinition] = {
    connector.name: connector
    for connector in (
        POSTGRES_SOURCE_CONNECTOR,
        ELASTICSEARCH_SINK_CONNECTOR,
        ICEBERG_SINK_CONNECTOR,
        REDIS_SINK_CONNECTOR,
    )
}

__all__ = [
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
    "DEFAULT_CONNECTORS",
]
