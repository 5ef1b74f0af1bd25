"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request

from billing_gateway.config import settings
from billing_gateway.domain.inquiry import InquiryCacheService
from billing_gateway.domain.models import InquiryCacheConfig
from billing_gateway.infrastructure.cache.base import KeyValueStore
from billing_gateway.infrastructure.cache.factory import build_store
from billing_gateway.infrastructure.clients.upstream import UpstreamClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_upstream_client() -> UpstreamClient:
    """Provide upstream billing API client instance"""
    return UpstreamClient()


def get_cache_store(request: Request) -> KeyValueStore:
    """Provide the process-wide cache store, opened on first use"""
    state = request.app.state
    if getattr(state, "cache_store", None) is None:
        state.cache_store = build_store(settings)
    return state.cache_store


def get_inquiry_service(
    request: Request,
    client: UpstreamClient = Depends(get_upstream_client),
    store: KeyValueStore = Depends(get_cache_store),
) -> InquiryCacheService:
    """Provide the inquiry service; its stats and policy live for the process"""
    state = request.app.state
    if getattr(state, "inquiry_service", None) is None:
        state.inquiry_service = InquiryCacheService(
            client,
            store,
            config=InquiryCacheConfig(
                cache_enabled=settings.inquiry_cache_enabled,
                cache_ttl=settings.inquiry_cache_ttl_seconds,
                cache_key_prefix=settings.inquiry_cache_key_prefix,
            ),
        )
    return state.inquiry_service
