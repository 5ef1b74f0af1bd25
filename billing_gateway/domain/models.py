"""Domain models - pure Python dataclasses representing gateway entities"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

# Expiry value for entries that never go stale; always compared explicitly
NEVER_EXPIRES = datetime(1, 1, 1)

SUCCESS_RC = "00"


@dataclass(frozen=True)
class Credentials:
    """Upstream account credentials"""

    username: str
    api_key: str = field(repr=False)


@dataclass(frozen=True)
class InquiryCacheConfig:
    """Active cache policy for subscriber inquiries"""

    cache_enabled: bool = True
    cache_ttl: int = 0  # seconds, 0 = never expire
    cache_key_prefix: str = "pln_inquiry:"


@dataclass
class CacheEntry:
    """Cached subscriber inquiry result"""

    customer_no: str
    payload: Dict[str, Any]
    created_at: datetime
    expires_at: datetime = NEVER_EXPIRES

    @property
    def never_expires(self) -> bool:
        return self.expires_at == NEVER_EXPIRES

    def is_fresh(self, now: datetime) -> bool:
        return self.never_expires or now < self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customer_no": self.customer_no,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        return cls(
            customer_no=data["customer_no"],
            payload=data["payload"],
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
        )


@dataclass
class InquiryStatsSnapshot:
    """Point-in-time copy of the inquiry counters"""

    total_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    api_requests: int = 0
    error_count: int = 0
    average_response_time_ms: float = 0.0


@dataclass
class CacheStoreStats:
    """Entry counts reported by a cache backend"""

    total_entries: int
    expired_entries: int
    active_entries: int
    permanent_entries: int = 0
    backend: Optional[str] = None
