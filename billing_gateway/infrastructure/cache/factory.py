"""Select the cache backend from configuration"""

from billing_gateway.config import Settings
from billing_gateway.infrastructure.cache.base import KeyValueStore
from billing_gateway.infrastructure.cache.redis_store import RedisStore
from billing_gateway.infrastructure.cache.sqlite_store import SQLiteStore


def build_store(config: Settings) -> KeyValueStore:
    if config.cache_backend == "redis":
        return RedisStore.from_url(config.redis_url, namespace=config.redis_namespace)
    return SQLiteStore.from_url(config.cache_database_url)
