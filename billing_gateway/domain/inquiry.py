"""Cache-aside subscriber (PLN) inquiry with running statistics"""

import json
import logging
import threading
import time
from dataclasses import replace
from datetime import timedelta
from typing import Optional, Protocol

from starlette.concurrency import run_in_threadpool

from billing_gateway.domain.exceptions import CacheBackendError, CacheKeyNotFoundError, UpstreamError
from billing_gateway.domain.models import (
    NEVER_EXPIRES,
    SUCCESS_RC,
    CacheEntry,
    CacheStoreStats,
    InquiryCacheConfig,
    InquiryStatsSnapshot,
)
from billing_gateway.infrastructure.cache.base import KeyValueStore
from billing_gateway.infrastructure.clients.schemas import InquiryData, InquiryResponse
from billing_gateway.infrastructure.observability.logging import log_inquiry
from billing_gateway.infrastructure.observability.metrics import cache_write_failure_counter, record_inquiry
from billing_gateway.utils.clock import Clock, utcnow

logger = logging.getLogger(__name__)

CACHED_MESSAGE = "PLN inquiry completed successfully (cached)"
FETCHED_MESSAGE = "PLN inquiry completed successfully"
DEFAULT_SUCCESS_TEXT = "Transaksi Sukses"


class InquiryClient(Protocol):
    async def inquiry_pln(self, customer_no: str) -> InquiryResponse:
        ...


class InquiryStats:
    """
    Process-lifetime inquiry counters, safe to share between workers.

    The average response time is a two-point running average,
    ``(old + new) / 2``, not a true mean: recent requests dominate it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._data = InquiryStatsSnapshot()

    def record(
        self,
        hit: bool,
        api_request: bool = False,
        error: bool = False,
        duration_ms: Optional[float] = None,
    ) -> None:
        with self._lock:
            data = self._data
            data.total_requests += 1
            if hit:
                data.cache_hits += 1
            else:
                data.cache_misses += 1
            if api_request:
                data.api_requests += 1
            if error:
                data.error_count += 1
            if duration_ms is not None:
                if data.average_response_time_ms == 0:
                    data.average_response_time_ms = duration_ms
                else:
                    data.average_response_time_ms = (data.average_response_time_ms + duration_ms) / 2

    def snapshot(self) -> InquiryStatsSnapshot:
        with self._lock:
            return replace(self._data)


class InquiryCacheService:
    """
    Serves subscriber inquiries from the cache store, falling back to upstream.

    Only rc "00" answers are cached. Lookups for the same key are not
    serialized: two concurrent misses both reach upstream and the last
    write wins, which is harmless for static subscriber data. Store calls
    on the inquiry path run in the threadpool so a slow backend does not
    stall the event loop.
    """

    def __init__(
        self,
        client: InquiryClient,
        store: KeyValueStore,
        stats: Optional[InquiryStats] = None,
        config: Optional[InquiryCacheConfig] = None,
        clock: Clock = utcnow,
    ):
        self.client = client
        self.store = store
        self.stats = stats or InquiryStats()
        self.clock = clock
        self._config = config or InquiryCacheConfig()
        self._config_lock = threading.Lock()

    @property
    def config(self) -> InquiryCacheConfig:
        with self._config_lock:
            return self._config

    def cache_key(self, customer_no: str, config: Optional[InquiryCacheConfig] = None) -> str:
        return (config or self.config).cache_key_prefix + customer_no

    async def inquiry(self, customer_no: str, ref_id: str) -> InquiryResponse:
        """
        Look up a subscriber, using the cache when enabled.

        Raises:
            UpstreamError: Upstream could not be reached; nothing is cached
        """
        start_time = time.perf_counter()
        config = self.config

        if config.cache_enabled:
            cached = await run_in_threadpool(self._read_entry, config, customer_no)
            if cached is not None:
                response = self._response_from_cache(cached, ref_id)
                duration_ms = (time.perf_counter() - start_time) * 1000
                self.stats.record(hit=True, duration_ms=duration_ms)
                record_inquiry("hit")
                log_inquiry(ref_id, customer_no, "hit", response.data.rc, duration_ms)
                return response
            logger.info("PLN inquiry cache miss", extra={"customer_no": customer_no, "ref_id": ref_id})

        try:
            response = await self.client.inquiry_pln(customer_no)
        except UpstreamError as e:
            self.stats.record(hit=False, api_request=True, error=True)
            record_inquiry("error")
            logger.error(
                "Upstream PLN inquiry failed",
                extra={"customer_no": customer_no, "ref_id": ref_id, "error": str(e)},
            )
            raise

        self._backfill(response, ref_id)
        if config.cache_enabled and response.is_success:
            await run_in_threadpool(self._write_entry, config, customer_no, response)

        duration_ms = (time.perf_counter() - start_time) * 1000
        self.stats.record(hit=False, api_request=True, duration_ms=duration_ms)
        record_inquiry("miss")
        log_inquiry(ref_id, customer_no, "miss", response.data.rc, duration_ms)
        return response

    def _read_entry(self, config: InquiryCacheConfig, customer_no: str) -> Optional[InquiryData]:
        """Return the cached subscriber data, or None; stale or unreadable entries are dropped"""
        key = self.cache_key(customer_no, config)
        try:
            raw = self.store.get(key)
        except CacheKeyNotFoundError:
            return None
        except CacheBackendError as e:
            logger.warning("Cache read failed, falling back to upstream", extra={"cache_key": key, "error": str(e)})
            return None

        try:
            entry = CacheEntry.from_dict(json.loads(raw))
            data = InquiryData.model_validate(entry.payload)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry", extra={"cache_key": key, "error": str(e)})
            self._discard(key)
            return None

        if not entry.is_fresh(self.clock()):
            logger.info("Discarding stale cache entry", extra={"cache_key": key})
            self._discard(key)
            return None
        return data

    def _write_entry(self, config: InquiryCacheConfig, customer_no: str, response: InquiryResponse) -> None:
        """Best-effort write-back; a failure is logged and never fails the inquiry"""
        key = self.cache_key(customer_no, config)
        now = self.clock()
        expires_at = NEVER_EXPIRES if config.cache_ttl == 0 else now + timedelta(seconds=config.cache_ttl)
        entry = CacheEntry(
            customer_no=customer_no,
            payload=response.data.model_dump(),
            created_at=now,
            expires_at=expires_at,
        )
        try:
            self.store.set(key, json.dumps(entry.to_dict()), config.cache_ttl)
        except CacheBackendError as e:
            cache_write_failure_counter.inc()
            logger.warning("Failed to cache PLN inquiry response", extra={"cache_key": key, "error": str(e)})

    def _discard(self, key: str) -> None:
        try:
            self.store.delete(key)
        except CacheBackendError as e:
            logger.warning("Failed to delete cache entry", extra={"cache_key": key, "error": str(e)})

    @staticmethod
    def _response_from_cache(cached: InquiryData, ref_id: str) -> InquiryResponse:
        # The cached ref_id belongs to whoever populated the entry
        data = cached.model_copy(update={"ref_id": ref_id})
        return InquiryResponse(data=data, message=CACHED_MESSAGE, status=1)

    @staticmethod
    def _backfill(response: InquiryResponse, ref_id: str) -> None:
        """Fill envelope gaps in a successful upstream reply; the rc is never touched"""
        data = response.data
        if not data.ref_id:
            data.ref_id = ref_id
        if not data.message and data.rc == SUCCESS_RC:
            data.message = DEFAULT_SUCCESS_TEXT
        if not response.message:
            response.message = FETCHED_MESSAGE
        if response.status == 0 and data.rc == SUCCESS_RC:
            response.status = 1

    # Administration

    def clear_cache(self, customer_no: str) -> None:
        logger.info("Clearing PLN inquiry cache", extra={"customer_no": customer_no})
        self.store.delete(self.cache_key(customer_no))

    def clear_all_cache(self) -> None:
        logger.info("Clearing all PLN inquiry cache")
        self.store.clear_all()

    def delete_expired_cache(self) -> int:
        logger.info("Deleting expired PLN inquiry cache entries")
        return self.store.delete_expired()

    def get_stats(self) -> InquiryStatsSnapshot:
        return self.stats.snapshot()

    def get_cache_stats(self) -> CacheStoreStats:
        return self.store.get_stats()

    def get_cache_config(self) -> InquiryCacheConfig:
        return self.config

    def set_cache_config(
        self,
        cache_enabled: bool,
        cache_ttl: int = 0,
        cache_key_prefix: Optional[str] = None,
    ) -> InquiryCacheConfig:
        """Swap the policy for subsequent calls; existing entries keep their expiry"""
        if cache_ttl < 0:
            raise ValueError("cache_ttl must be >= 0")
        with self._config_lock:
            self._config = InquiryCacheConfig(
                cache_enabled=cache_enabled,
                cache_ttl=cache_ttl,
                cache_key_prefix=self._config.cache_key_prefix if cache_key_prefix is None else cache_key_prefix,
            )
            config = self._config
        logger.info(
            "PLN inquiry cache configuration updated",
            extra={
                "cache_enabled": config.cache_enabled,
                "cache_ttl": config.cache_ttl,
                "cache_key_prefix": config.cache_key_prefix,
            },
        )
        return config
