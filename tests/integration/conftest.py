"""Fixtures for tests against the running CDC stack."""

import pytest
from lakehouse_cdc.config import HarnessSettings
from lakehouse_cdc.connect import KafkaConnectClient
from lakehouse_cdc.db import SourceDatabase
from lakehouse_cdc.stores.cache import CacheStore
from lakehouse_cdc.stores.iceberg import TrinoQueryClient
from lakehouse_cdc.stores.search import SearchStore
from lakehouse_cdc.warmup import PipelineWarmup


@pytest.fixture(scope="session")
def settings():
    return HarnessSettings.from_env()


@pytest.fixture(scope="session")
def db(settings):
    return SourceDatabase(settings.db)


@pytest.fixture(scope="session")
def trino_client(settings):
    return TrinoQueryClient(settings.trino)


@pytest.fixture(scope="session")
def search(settings):
    store = SearchStore(node=settings.elasticsearch_url)
    yield store
    store.close()


@pytest.fixture(scope="session")
def cache(settings):
    store = CacheStore(url=settings.redis_url)
    yield store
    store.close()


@pytest.fixture(scope="session")
def debezium(settings):
    with KafkaConnectClient(settings.debezium_url) as client:
        yield client


@pytest.fixture(scope="session")
def pipeline(settings, db, trino_client, search, cache):
    """Warm-up driver sharing the session's store clients."""
    warmup = PipelineWarmup(
        settings, db=db, trino_client=trino_client, search=search, cache=cache)
    yield warmup
    warmup.close()
