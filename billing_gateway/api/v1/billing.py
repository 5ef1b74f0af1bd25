"""Balance, price list, transaction and postpaid bill endpoints"""

import logging

from fastapi import APIRouter, Depends, Query

from billing_gateway.api.dependencies import get_request_id, get_upstream_client
from billing_gateway.api.v1.schemas import BillCheckRequest, BillPayRequest, SuccessResponse, TransactionRequest
from billing_gateway.domain.exceptions import InvalidRequestError
from billing_gateway.infrastructure.clients.upstream import PRICE_TYPES, UpstreamClient

router = APIRouter()


@router.get("/balance", response_model=SuccessResponse)
async def get_balance(client: UpstreamClient = Depends(get_upstream_client)):
    """Current deposit held with the upstream provider"""
    response = await client.check_balance()
    return SuccessResponse(message="Balance retrieved successfully", data=response.model_dump())


@router.get("/prices", response_model=SuccessResponse)
async def get_prices(
    price_type: str = Query("", alias="type", description="prabayar | pascabayar"),
    client: UpstreamClient = Depends(get_upstream_client),
):
    if price_type not in PRICE_TYPES:
        raise InvalidRequestError("type must be prabayar or pascabayar", code="INVALID_TYPE")
    response = await client.get_prices(price_type)
    return SuccessResponse(message="Price list retrieved successfully", data=response.model_dump())


@router.post("/transactions/topup", response_model=SuccessResponse)
async def topup(
    body: TransactionRequest,
    request_id: str = Depends(get_request_id),
    client: UpstreamClient = Depends(get_upstream_client),
):
    """
    Submit a prepaid topup.

    A non-"00" rc is returned as-is with HTTP 200: upstream answered, the
    transaction just did not go through.
    """
    response = await client.topup(body.ref_id, body.customer_no, body.buyer_sku)
    logging.info(
        "Topup submitted",
        extra={"request_id": request_id, "ref_id": body.ref_id, "rc": response.rc},
    )
    return SuccessResponse(message="Topup processed", data=response.model_dump())


@router.post("/transactions/pay", response_model=SuccessResponse)
async def pay(
    body: TransactionRequest,
    request_id: str = Depends(get_request_id),
    client: UpstreamClient = Depends(get_upstream_client),
):
    response = await client.pay(body.ref_id, body.customer_no, body.buyer_sku)
    logging.info(
        "Payment submitted",
        extra={"request_id": request_id, "ref_id": body.ref_id, "rc": response.rc},
    )
    return SuccessResponse(message="Payment processed", data=response.model_dump())


@router.get("/transactions/{ref_id}/status", response_model=SuccessResponse)
async def get_status(ref_id: str, client: UpstreamClient = Depends(get_upstream_client)):
    response = await client.check_status(ref_id)
    return SuccessResponse(message="Transaction status retrieved", data=response.model_dump())


@router.post("/pascabayar/check", response_model=SuccessResponse)
async def check_bill(body: BillCheckRequest, client: UpstreamClient = Depends(get_upstream_client)):
    response = await client.check_bill(body.ref_id, body.customer_no, body.buyer_sku)
    return SuccessResponse(message="Bill checked", data=response.model_dump())


@router.post("/pascabayar/pay", response_model=SuccessResponse)
async def pay_bill(
    body: BillPayRequest,
    request_id: str = Depends(get_request_id),
    client: UpstreamClient = Depends(get_upstream_client),
):
    response = await client.pay_bill(body.ref_id, body.customer_no, body.buyer_sku, body.amount)
    logging.info(
        "Bill payment submitted",
        extra={"request_id": request_id, "ref_id": body.ref_id, "rc": response.rc},
    )
    return SuccessResponse(message="Bill paid", data=response.model_dump())
