"""Sink probes and the pipeline warm-up sequence.

A freshly started sink can take minutes before the first record lands:
Kafka Connect's data poll blocks for up to 60s while idle, and the Iceberg
sink additionally needs its worker to join the control topic and answer a
commit request from the coordinator. Warming up means registering the
connectors, inserting one uniquely keyed user and waiting, with a generous
deadline, until that user can be read back from the sink. Later checks run
against a warm pipeline and can use much shorter deadlines.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

import redis

from .config import HarnessSettings
from .connect import KafkaConnectClient, RegistrationOutcome
from .connectors import (
    ELASTICSEARCH_SINK_CONNECTOR,
    ICEBERG_SINK_CONNECTOR,
    POSTGRES_SOURCE_CONNECTOR,
    REDIS_SINK_CONNECTOR,
)
from .connectors.base import ConnectorDefinition
from .db import SourceDatabase
from .exceptions import PartialWarmupError, WarmupError
from .models import User
from .polling import DEFAULT_TRANSIENT, PollResult, apoll_until_found, poll_until_found
from .stores.cache import CacheStore
from .stores.iceberg import TrinoQueryClient
from .stores.search import SEARCH_TRANSIENT_ERRORS, SearchStore

logger = logging.getLogger(__name__)

USERS_INDEX = ELASTICSEARCH_SINK_CONNECTOR.index_for(POSTGRES_SOURCE_CONNECTOR.topic_for("users"))
ICEBERG_NAMESPACE, ICEBERG_USERS_TABLE = ICEBERG_SINK_CONNECTOR.tables[0].split(".", 1)

SOURCE_TIMEOUT = 30.0
SINK_TIMEOUT = 60.0
SYNC_TIMEOUT = 90.0

REDIS_TRANSIENT_ERRORS = (redis.ConnectionError, redis.TimeoutError)


class Sink(str, Enum):
    """Downstream stores fed by the Debezium change topics."""

    ICEBERG = "iceberg"
    ELASTICSEARCH = "elasticsearch"
    REDIS = "redis"


@dataclass(frozen=True)
class SinkProfile:
    """Per-sink timing and connector wiring."""

    connector: ConnectorDefinition
    interval: float
    warmup_timeout: float
    label: str


SINK_PROFILES: Dict[Sink, SinkProfile] = {
    Sink.ICEBERG: SinkProfile(ICEBERG_SINK_CONNECTOR, 3.0, 240.0, "Iceberg"),
    Sink.ELASTICSEARCH: SinkProfile(ELASTICSEARCH_SINK_CONNECTOR, 2.0, 120.0, "Elasticsearch"),
    Sink.REDIS: SinkProfile(REDIS_SINK_CONNECTOR, 2.0, 120.0, "Redis"),
}


def poll_trino_until_found(
    trino_client: TrinoQueryClient,
    email: str,
    max_wait: float,
    interval: float = 3.0,
) -> PollResult:
    """Poll ``iceberg.cdc.users`` until a row with ``email`` is committed."""
    return poll_until_found(
        lambda: trino_client.find_rows(
            ICEBERG_NAMESPACE, ICEBERG_USERS_TABLE, "email", email, columns="email"),
        max_wait,
        interval,
        target=f"{ICEBERG_NAMESPACE}.{ICEBERG_USERS_TABLE} email={email}",
    )


def poll_es_until_found(
    store: SearchStore,
    index: str,
    field: str,
    value: str,
    max_wait: float,
    interval: float = 2.0,
) -> PollResult:
    """Poll an index with a ``term`` query until a document matches."""
    return poll_until_found(
        lambda: store.find_by_term(index, field, value),
        max_wait,
        interval,
        transient=SEARCH_TRANSIENT_ERRORS,
        target=f"{index} {field}={value}",
    )


def poll_redis_for_id(
    store: CacheStore,
    target_id: int,
    max_wait: float,
    interval: float = 2.0,
) -> PollResult:
    """Poll Redis by direct key lookup until the key exists."""
    return poll_until_found(
        lambda: store.get(target_id),
        max_wait,
        interval,
        transient=REDIS_TRANSIENT_ERRORS,
        target=f"redis key {target_id}",
    )


@dataclass(frozen=True)
class WarmupReport:
    """Outcome of warming up one sink."""

    sink: Sink
    registration: RegistrationOutcome
    user: User
    result: PollResult

    @property
    def elapsed(self) -> float:
        return self.result.elapsed


class PipelineWarmup:
    """Drives the source connector, sink connectors and sink probes."""

    def __init__(
        self,
        settings: Optional[HarnessSettings] = None,
        *,
        db: Optional[SourceDatabase] = None,
        trino_client: Optional[TrinoQueryClient] = None,
        search: Optional[SearchStore] = None,
        cache: Optional[CacheStore] = None,
        connect_clients: Optional[Dict[str, KafkaConnectClient]] = None,
    ):
        self.settings = settings or HarnessSettings.from_env()
        self.db = db or SourceDatabase(self.settings.db)
        self._trino = trino_client
        self._search = search
        self._cache = cache
        self._connect: Dict[str, KafkaConnectClient] = dict(connect_clients or {})
        # Clients created here; injected ones are left open by close()
        self._owned: List[object] = []

    @property
    def trino(self) -> TrinoQueryClient:
        if self._trino is None:
            self._trino = TrinoQueryClient(self.settings.trino)
        return self._trino

    @property
    def search(self) -> SearchStore:
        if self._search is None:
            self._search = SearchStore(node=self.settings.elasticsearch_url)
            self._owned.append(self._search)
        return self._search

    @property
    def cache(self) -> CacheStore:
        if self._cache is None:
            self._cache = CacheStore(url=self.settings.redis_url)
            self._owned.append(self._cache)
        return self._cache

    def connect_client(self, base_url: str) -> KafkaConnectClient:
        """One client per Connect worker."""
        if base_url not in self._connect:
            self._connect[base_url] = KafkaConnectClient(base_url)
            self._owned.append(self._connect[base_url])
        return self._connect[base_url]

    def sink_url(self, sink: Sink) -> str:
        return {
            Sink.ICEBERG: self.settings.iceberg_sink_url,
            Sink.ELASTICSEARCH: self.settings.elasticsearch_sink_url,
            Sink.REDIS: self.settings.redis_sink_url,
        }[sink]

    def ensure_source(self, timeout: float = SOURCE_TIMEOUT) -> RegistrationOutcome:
        """Register the Debezium source if needed and wait for it to run."""
        return self.connect_client(self.settings.debezium_url).ensure_running(
            POSTGRES_SOURCE_CONNECTOR, timeout)

    def ensure_sink(self, sink: Sink, timeout: float = SINK_TIMEOUT) -> RegistrationOutcome:
        return self.connect_client(self.sink_url(sink)).ensure_running(
            SINK_PROFILES[sink].connector, timeout)

    def insert_marker(self, sink: Sink, kind: str = "warmup") -> User:
        """Insert a user whose email is unique to this run."""
        email = f"{sink.value}-{kind}-{time.time_ns() // 1000}@example.com"
        return self.db.insert_user(email, f"{SINK_PROFILES[sink].label} {kind.title()} User")

    def probe_for(self, sink: Sink, user: User) -> Callable[[], object]:
        """Zero-argument read that returns the user's record(s) in ``sink``."""
        if sink is Sink.ICEBERG:
            return lambda: self.trino.find_rows(
                ICEBERG_NAMESPACE, ICEBERG_USERS_TABLE, "email", user.email, columns="email")
        if sink is Sink.ELASTICSEARCH:
            return lambda: self.search.find_by_term(USERS_INDEX, "email.keyword", user.email)
        return lambda: self.cache.get(user.id)

    def transient_errors_for(self, sink: Sink) -> tuple:
        if sink is Sink.ELASTICSEARCH:
            return SEARCH_TRANSIENT_ERRORS
        if sink is Sink.REDIS:
            return REDIS_TRANSIENT_ERRORS
        return DEFAULT_TRANSIENT

    def wait_for_user(
        self,
        sink: Sink,
        user: User,
        max_wait: float = SYNC_TIMEOUT,
        interval: Optional[float] = None,
    ) -> PollResult:
        """Poll ``sink`` until ``user`` is visible there."""
        return poll_until_found(
            self.probe_for(sink, user),
            max_wait,
            interval or SINK_PROFILES[sink].interval,
            transient=self.transient_errors_for(sink),
            target=f"{sink.value} user {user.email}",
        )

    def warm_up(self, sink: Sink, timeout: Optional[float] = None) -> WarmupReport:
        """Register connectors, insert a marker user and wait for it in ``sink``.

        Raises:
            ConnectorTimeoutError: If a connector never reached RUNNING
            WarmupError: If the marker did not show up within the deadline
        """
        profile = SINK_PROFILES[sink]
        if timeout is None:
            timeout = profile.warmup_timeout
        self.ensure_source()
        registration = self.ensure_sink(sink)
        user = self.insert_marker(sink)
        logger.info(f"Warming up {profile.label} with {user.email} (id={user.id})")

        result = self.wait_for_user(sink, user, timeout)
        if not result.found:
            raise WarmupError(profile.label, timeout)
        logger.info(f"{profile.label} warm after {result.elapsed:.1f}s")
        return WarmupReport(sink, registration, user, result)

    async def warm_up_async(self, sink: Sink, timeout: Optional[float] = None) -> WarmupReport:
        """Warm up ``sink`` without blocking the event loop.

        Runs the same sequence as :meth:`warm_up`, source gate first.
        """
        await asyncio.to_thread(self.ensure_source)
        return await self._warm_up_sink_async(sink, timeout)

    async def _warm_up_sink_async(self, sink: Sink, timeout: Optional[float]) -> WarmupReport:
        profile = SINK_PROFILES[sink]
        if timeout is None:
            timeout = profile.warmup_timeout
        registration = await asyncio.to_thread(self.ensure_sink, sink)
        user = await asyncio.to_thread(self.insert_marker, sink)
        probe = self.probe_for(sink, user)

        result = await apoll_until_found(
            lambda: asyncio.to_thread(probe),
            timeout,
            profile.interval,
            transient=self.transient_errors_for(sink),
            target=f"{sink.value} user {user.email}",
        )
        if not result.found:
            raise WarmupError(profile.label, timeout)
        return WarmupReport(sink, registration, user, result)

    async def warm_up_all(
        self,
        sinks: Sequence[Sink],
        timeout: Optional[float] = None,
    ) -> List[WarmupReport]:
        """Warm up several sinks concurrently once the source is running.

        Every sink runs to completion even if another fails.

        Raises:
            ConnectorTimeoutError: If the source connector never reached RUNNING
            PartialWarmupError: If any sink failed; carries the reports of the rest
        """
        await asyncio.to_thread(self.ensure_source)
        results = await asyncio.gather(
            *(self._warm_up_sink_async(sink, timeout) for sink in sinks),
            return_exceptions=True,
        )

        reports: List[WarmupReport] = []
        failures: Dict[str, BaseException] = {}
        for sink, result in zip(sinks, results):
            if isinstance(result, WarmupReport):
                reports.append(result)
            elif isinstance(result, Exception):
                logger.error(f"{SINK_PROFILES[sink].label} warmup failed: {result}")
                failures[SINK_PROFILES[sink].label] = result
            else:
                raise result
        if failures:
            raise PartialWarmupError(failures, reports)
        return reports

    def close(self) -> None:
        """Close the clients this pipeline created."""
        while self._owned:
            self._owned.pop().close()
