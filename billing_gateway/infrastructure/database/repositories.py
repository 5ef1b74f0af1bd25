"""Data access layer for cache rows"""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from billing_gateway.domain.models import NEVER_EXPIRES
from billing_gateway.infrastructure.database.models import CacheRecord


class CacheRepository:
    """Repository for cache rows"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _expired(now: datetime):
        # Permanent rows carry the sentinel, which sorts before any real time
        return and_(CacheRecord.expires_at != NEVER_EXPIRES, CacheRecord.expires_at <= now)

    def get(self, cache_key: str) -> Optional[CacheRecord]:
        return self.db.get(CacheRecord, cache_key)

    def upsert(self, cache_key: str, data: str, created_at: datetime, expires_at: datetime) -> CacheRecord:
        """Insert or overwrite a row (last write wins)"""
        record = self.db.get(CacheRecord, cache_key)
        if record is None:
            record = CacheRecord(cache_key=cache_key)
            self.db.add(record)
        record.data = data
        record.created_at = created_at
        record.expires_at = expires_at
        self.db.flush()
        return record

    def delete(self, cache_key: str) -> int:
        return self.db.query(CacheRecord).filter(CacheRecord.cache_key == cache_key).delete()

    def delete_all(self) -> int:
        return self.db.query(CacheRecord).delete()

    def delete_expired(self, now: datetime) -> int:
        return self.db.query(CacheRecord).filter(self._expired(now)).delete(synchronize_session=False)

    def count_all(self) -> int:
        return self.db.query(func.count(CacheRecord.cache_key)).scalar() or 0

    def count_expired(self, now: datetime) -> int:
        return self.db.query(func.count(CacheRecord.cache_key)).filter(self._expired(now)).scalar() or 0

    def count_permanent(self) -> int:
        return self.db.query(func.count(CacheRecord.cache_key)).filter(CacheRecord.expires_at == NEVER_EXPIRES).scalar() or 0
