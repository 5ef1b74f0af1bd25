"""Networked cache store backed by Redis"""

import logging
from typing import List

import redis

from billing_gateway.domain.exceptions import CacheBackendError, CacheKeyNotFoundError
from billing_gateway.domain.models import CacheStoreStats
from billing_gateway.infrastructure.cache.base import KeyValueStore

logger = logging.getLogger(__name__)


class RedisStore(KeyValueStore):
    """
    Cache entries stored as plain Redis strings under a namespace prefix.

    Redis evicts expired keys on its own, so expiry is delegated to it: a
    ttl of 0 writes a key without EXPIRE, and the sweep has nothing to do.
    """

    backend_name = "redis"

    def __init__(self, client: redis.Redis, namespace: str = "billing-gateway:"):
        self.client = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, redis_url: str, namespace: str = "billing-gateway:") -> "RedisStore":
        client = redis.Redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client, namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def _namespace_keys(self) -> List[str]:
        return list(self.client.scan_iter(match=f"{self.namespace}*"))

    def get(self, key: str) -> str:
        try:
            value = self.client.get(self._key(key))
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis get failed: {e}") from e
        if value is None:
            raise CacheKeyNotFoundError(key)
        return value

    def set(self, key: str, value: str, ttl_seconds: int = 0) -> None:
        try:
            if ttl_seconds > 0:
                self.client.set(self._key(key), value, ex=ttl_seconds)
            else:
                self.client.set(self._key(key), value)
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis set failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis delete failed: {e}") from e

    def clear_all(self) -> None:
        try:
            keys = self._namespace_keys()
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis clear failed: {e}") from e
        logger.info("Cache cleared", extra={"backend": self.backend_name, "removed": len(keys)})

    def delete_expired(self) -> int:
        return 0

    def get_stats(self) -> CacheStoreStats:
        """
        Count namespace keys by TTL: -1 is a permanent key, -2 a key that
        Redis evicted between the scan and the TTL lookup.
        """
        try:
            keys = self._namespace_keys()
            pipe = self.client.pipeline()
            for key in keys:
                pipe.ttl(key)
            ttls = pipe.execute() if keys else []
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis scan failed: {e}") from e
        expired = sum(1 for ttl in ttls if ttl == -2)
        return CacheStoreStats(
            total_entries=len(keys),
            expired_entries=expired,
            active_entries=len(keys) - expired,
            permanent_entries=sum(1 for ttl in ttls if ttl == -1),
            backend=self.backend_name,
        )

    def ping(self) -> None:
        try:
            self.client.ping()
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis ping failed: {e}") from e

    def close(self) -> None:
        self.client.close()
