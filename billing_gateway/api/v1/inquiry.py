"""PLN subscriber inquiry and inquiry cache administration"""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from billing_gateway.api.dependencies import get_inquiry_service
from billing_gateway.api.v1.schemas import CacheConfigRequest, InquiryRequest, SuccessResponse
from billing_gateway.domain.inquiry import InquiryCacheService

router = APIRouter()

# Mounted under both caller dialects
admin_router = APIRouter()


@router.post("/pln/inquiry", response_model=SuccessResponse)
async def inquiry_pln(body: InquiryRequest, service: InquiryCacheService = Depends(get_inquiry_service)):
    """
    Look up a PLN subscriber.

    Served from the cache when possible; the reply always carries the
    caller's own ref_id.
    """
    response = await service.inquiry(body.customer_no, body.ref_id)
    return SuccessResponse(message=response.message, data=response.model_dump())


@admin_router.get("/pln/stats", response_model=SuccessResponse)
def get_stats(service: InquiryCacheService = Depends(get_inquiry_service)):
    return SuccessResponse(message="PLN inquiry statistics", data=asdict(service.get_stats()))


@admin_router.get("/pln/cache/stats", response_model=SuccessResponse)
def get_cache_stats(service: InquiryCacheService = Depends(get_inquiry_service)):
    return SuccessResponse(message="PLN inquiry cache statistics", data=asdict(service.get_cache_stats()))


@admin_router.delete("/pln/cache/expired", response_model=SuccessResponse)
def delete_expired_cache(service: InquiryCacheService = Depends(get_inquiry_service)):
    removed = service.delete_expired_cache()
    return SuccessResponse(message="Expired cache entries removed", data={"removed": removed})


@admin_router.delete("/pln/cache/{customer_no}", response_model=SuccessResponse)
def clear_cache(customer_no: str, service: InquiryCacheService = Depends(get_inquiry_service)):
    service.clear_cache(customer_no)
    return SuccessResponse(message=f"Cache cleared for customer: {customer_no}")


@admin_router.delete("/pln/cache", response_model=SuccessResponse)
def clear_all_cache(service: InquiryCacheService = Depends(get_inquiry_service)):
    service.clear_all_cache()
    return SuccessResponse(message="All cache cleared successfully")


@admin_router.get("/pln/cache/config", response_model=SuccessResponse)
def get_cache_config(service: InquiryCacheService = Depends(get_inquiry_service)):
    return SuccessResponse(message="PLN inquiry cache configuration", data=asdict(service.get_cache_config()))


@admin_router.put("/pln/cache/config", response_model=SuccessResponse)
def update_cache_config(body: CacheConfigRequest, service: InquiryCacheService = Depends(get_inquiry_service)):
    config = service.set_cache_config(body.cache_enabled, body.cache_ttl, body.cache_key_prefix)
    return SuccessResponse(message="Cache configuration updated successfully", data=asdict(config))
