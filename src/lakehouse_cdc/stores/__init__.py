"""Downstream read surfaces of the CDC pipeline."""

from .iceberg import (
    TrinoQueryClient,
    execute_trino_query,
    get_trino_client,
    reset_trino_client,
)
from .search import SearchStore, create_elasticsearch_client
from .cache import CacheStore, create_redis_client, extract_after

__all__ = [
    "TrinoQueryClient",
    "execute_trino_query",
    "get_trino_client",
    "reset_trino_client",
    "SearchStore",
    "create_elasticsearch_client",
    "CacheStore",
    "create_redis_client",
    "extract_after",
]
