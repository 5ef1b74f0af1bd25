"""SQLAlchemy ORM models for the embedded cache store"""

from sqlalchemy import Column, DateTime, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CacheRecord(Base):
    """One cached value; expires_at == NEVER_EXPIRES marks a permanent row"""

    __tablename__ = "inquiry_cache"

    cache_key = Column(Text, primary_key=True)
    data = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
