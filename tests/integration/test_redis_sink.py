"""Redis sink connector against the running stack."""

import pytest
from lakehouse_cdc.stores.cache import extract_after
from lakehouse_cdc.warmup import SYNC_TIMEOUT, Sink, poll_redis_for_id

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def warm(pipeline):
    return pipeline.warm_up(Sink.REDIS)


@pytest.fixture(scope="module")
def sink_client(pipeline, warm):
    return pipeline.connect_client(pipeline.sink_url(Sink.REDIS))


class TestConnectorLifecycle:

    def test_connector_exists(self, sink_client):
        assert sink_client.connector_exists("redis-sink")

    def test_running(self, sink_client):
        sink_client.wait_for_running("redis-sink", 10)


class TestChangePropagation:

    def test_envelope_structure(self, cache, warm):
        """Test the stored value is the full envelope with an after image."""
        after = cache.get_after(warm.user.id)

        assert {"id", "email", "name"} <= set(after)

    def test_primary_key_is_redis_key(self, cache, warm):
        after = extract_after(cache.get(str(warm.user.id)))

        assert after["id"] == warm.user.id
        assert after["email"] == warm.user.email

    def test_new_rows_propagate(self, pipeline, cache, warm):
        user = pipeline.insert_marker(Sink.REDIS, "sync")

        result = poll_redis_for_id(cache, user.id, SYNC_TIMEOUT)

        assert result.found
        after = extract_after(result.value)
        assert after["email"] == user.email
        assert after["name"] == "Redis Sync User"

    def test_matches_source_row(self, db, cache, warm):
        after = cache.get_after(warm.user.id)
        row = db.fetch_one("SELECT id, email, name FROM users WHERE id = %s", (warm.user.id,))

        assert after["email"] == row["email"]
        assert after["name"] == row["name"]
