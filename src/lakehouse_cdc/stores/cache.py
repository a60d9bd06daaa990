"""Redis keys written by the Redis sink."""

from __future__ import annotations
import json
import logging
from typing import Any, Dict, Optional, Union

import redis

from ..config import env_default

logger = logging.getLogger(__name__)


def create_redis_client(url: Optional[str] = None) -> redis.Redis:
    """Redis client for ``url``, falling back to ``$REDIS_URL``."""
    url = url or env_default("REDIS_URL", "redis://localhost:6379")
    return redis.Redis.from_url(url, decode_responses=True)


def extract_after(value: Union[str, bytes]) -> Dict[str, Any]:
    """Row image after the change from a Debezium envelope.

    The sink stores ``{"schema": {...}, "payload": {"before": ..., "after": {...}}}``;
    envelopes written without a schema carry the fields at the top level.

    Raises:
        ValueError: If the value is not an envelope with an ``after`` image
    """
    envelope = json.loads(value)
    payload = envelope.get("payload", envelope) if isinstance(envelope, dict) else None
    after = payload.get("after") if isinstance(payload, dict) else None
    if not isinstance(after, dict):
        raise ValueError("value is not a Debezium envelope with an 'after' record")
    return after


class CacheStore:
    """GET-only view of the Redis sink, keyed by stringified primary key."""

    def __init__(self, client: Optional[redis.Redis] = None, *, url: Optional[str] = None):
        self.client = client or create_redis_client(url)

    def get(self, key: Union[str, int]) -> Optional[str]:
        return self.client.get(str(key))

    def get_after(self, key: Union[str, int]) -> Optional[Dict[str, Any]]:
        """Decoded ``after`` image stored under ``key``, or None if absent."""
        value = self.get(key)
        if value is None:
            return None
        return extract_after(value)

    def health_check(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"Health check failed: {e}")
            return False

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> CacheStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
