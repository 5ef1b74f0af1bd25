"""Key-value store contract shared by every cache backend"""

from abc import ABC, abstractmethod

from billing_gateway.domain.models import CacheStoreStats


class KeyValueStore(ABC):
    """
    String key-value store with per-entry expiry.

    A ttl of 0 means the entry never expires. Backends must keep that
    distinct from an entry whose expiry has already elapsed.

    Raises (all methods):
        CacheBackendError: When the backend cannot be reached
    """

    backend_name = "unknown"

    @abstractmethod
    def get(self, key: str) -> str:
        """
        Raises:
            CacheKeyNotFoundError: Key is absent or expired
        """

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int = 0) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def clear_all(self) -> None:
        ...

    @abstractmethod
    def delete_expired(self) -> int:
        """Remove entries whose expiry elapsed; permanent entries are kept"""

    @abstractmethod
    def get_stats(self) -> CacheStoreStats:
        ...

    @abstractmethod
    def ping(self) -> None:
        ...

    def close(self) -> None:
        pass
