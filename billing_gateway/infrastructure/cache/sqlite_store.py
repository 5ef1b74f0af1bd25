"""Embedded file-backed cache store (SQLite through SQLAlchemy)"""

import logging
from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from billing_gateway.domain.exceptions import CacheBackendError, CacheKeyNotFoundError
from billing_gateway.domain.models import NEVER_EXPIRES, CacheStoreStats
from billing_gateway.infrastructure.cache.base import KeyValueStore
from billing_gateway.infrastructure.database.models import Base
from billing_gateway.infrastructure.database.repositories import CacheRepository
from billing_gateway.infrastructure.database.session import build_engine, build_session_factory
from billing_gateway.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)


class SQLiteStore(KeyValueStore):
    """Cache rows in a single table; expiry is checked on every read"""

    backend_name = "sqlite"

    def __init__(self, engine: Engine, clock: Clock = utcnow):
        self.engine = engine
        self.clock = clock
        self.session_factory = build_session_factory(engine)
        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            raise CacheBackendError(f"Failed to initialize cache table: {e}") from e

    @classmethod
    def from_url(cls, database_url: str, clock: Clock = utcnow) -> "SQLiteStore":
        return cls(build_engine(database_url), clock=clock)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise CacheBackendError(f"Cache store error: {e}") from e
        finally:
            db.close()

    def get(self, key: str) -> str:
        now = self.clock()
        data = None
        with self._session() as db:
            repo = CacheRepository(db)
            record = repo.get(key)
            if record is not None:
                if record.expires_at != NEVER_EXPIRES and record.expires_at <= now:
                    repo.delete(key)
                else:
                    data = record.data
        if data is None:
            raise CacheKeyNotFoundError(key)
        return data

    def set(self, key: str, value: str, ttl_seconds: int = 0) -> None:
        now = self.clock()
        expires_at = NEVER_EXPIRES if ttl_seconds == 0 else now + timedelta(seconds=ttl_seconds)
        with self._session() as db:
            CacheRepository(db).upsert(key, value, created_at=now, expires_at=expires_at)

    def delete(self, key: str) -> None:
        with self._session() as db:
            CacheRepository(db).delete(key)

    def clear_all(self) -> None:
        with self._session() as db:
            removed = CacheRepository(db).delete_all()
        logger.info("Cache cleared", extra={"backend": self.backend_name, "removed": removed})

    def delete_expired(self) -> int:
        with self._session() as db:
            removed = CacheRepository(db).delete_expired(self.clock())
        logger.info("Expired cache entries removed", extra={"backend": self.backend_name, "removed": removed})
        return removed

    def get_stats(self) -> CacheStoreStats:
        now = self.clock()
        with self._session() as db:
            repo = CacheRepository(db)
            total = repo.count_all()
            expired = repo.count_expired(now)
            permanent = repo.count_permanent()
        return CacheStoreStats(
            total_entries=total,
            expired_entries=expired,
            active_entries=total - expired,
            permanent_entries=permanent,
            backend=self.backend_name,
        )

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))

    def close(self) -> None:
        self.engine.dispose()
