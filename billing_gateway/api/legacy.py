"""Legacy GET-query dialect (/otomax): the same operations with query parameters"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from billing_gateway.api.dependencies import get_inquiry_service, get_request_id, get_upstream_client
from billing_gateway.api.errors import error_response
from billing_gateway.api.v1.schemas import CallbackRequest, LegacyTransactionResponse, SuccessResponse
from billing_gateway.domain.exceptions import InvalidRequestError
from billing_gateway.domain.inquiry import InquiryCacheService
from billing_gateway.infrastructure.clients.schemas import BillResponse, TransactionResponse
from billing_gateway.infrastructure.clients.upstream import PRICE_TYPES, UpstreamClient

router = APIRouter()

STATUS_MAP = {"sukses": "success", "success": "success", "pending": "pending"}


def _require(**params: str) -> None:
    missing = [name for name, value in params.items() if not value]
    if missing:
        raise InvalidRequestError(
            f"Missing required parameters: {', '.join(missing)}",
            code="MISSING_PARAMETERS",
        )


def _parse_amount(amount: str) -> Optional[float]:
    if not amount:
        return None
    try:
        return float(amount)
    except ValueError:
        raise InvalidRequestError(f"Invalid amount format: {amount!r}", code="INVALID_AMOUNT")


def _to_legacy(response: TransactionResponse | BillResponse, amount: float = 0) -> LegacyTransactionResponse:
    data = response.data
    return LegacyTransactionResponse(
        ref_id=data.ref_id,
        customer_no=data.customer_no,
        buyer_sku=data.buyer_sku,
        amount=getattr(data, "amount", 0) or getattr(data, "price", 0) or amount,
        status=STATUS_MAP.get(data.status.lower(), "failed"),
        message=data.message,
        rc=data.rc,
        sn=data.sn,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/transaction", response_model=SuccessResponse)
async def process_transaction(
    ref_id: str = Query(""),
    customer_no: str = Query(""),
    buyer_sku: str = Query(""),
    type: str = Query("prabayar"),
    amount: str = Query(""),
    request_id: str = Depends(get_request_id),
    client: UpstreamClient = Depends(get_upstream_client),
):
    """
    Process a transaction.

    - prabayar: a single topup call
    - pascabayar: bill check, then payment of the checked amount; a failed
      check is reported without attempting payment
    """
    _require(ref_id=ref_id, customer_no=customer_no, buyer_sku=buyer_sku)
    requested_amount = _parse_amount(amount)
    logging.info(
        "Processing legacy transaction",
        extra={"request_id": request_id, "ref_id": ref_id, "customer_no": customer_no, "type": type},
    )

    if type == "prabayar":
        response = await client.topup(ref_id, customer_no, buyer_sku)
        return SuccessResponse(message="Transaction processed", data=_to_legacy(response).model_dump())

    if type != "pascabayar":
        raise InvalidRequestError(f"Invalid transaction type: {type}", code="INVALID_TYPE")

    check = await client.check_bill(ref_id, customer_no, buyer_sku)
    if not check.is_success:
        return SuccessResponse(message="Bill check failed", data=_to_legacy(check).model_dump())

    bill_amount = check.data.amount or requested_amount or 0
    paid = await client.pay_bill(ref_id, customer_no, buyer_sku, bill_amount)
    return SuccessResponse(message="Transaction processed", data=_to_legacy(paid, bill_amount).model_dump())


@router.get("/status", response_model=SuccessResponse)
async def check_status(ref_id: str = Query(""), client: UpstreamClient = Depends(get_upstream_client)):
    _require(ref_id=ref_id)
    response = await client.check_status(ref_id)
    return SuccessResponse(message="Transaction status retrieved", data=_to_legacy(response).model_dump())


@router.get("/pascabayar/check", response_model=SuccessResponse)
async def check_bill(
    ref_id: str = Query(""),
    customer_no: str = Query(""),
    buyer_sku: str = Query(""),
    client: UpstreamClient = Depends(get_upstream_client),
):
    _require(ref_id=ref_id, customer_no=customer_no, buyer_sku=buyer_sku)
    response = await client.check_bill(ref_id, customer_no, buyer_sku)
    return SuccessResponse(message="Bill checked", data=response.data.model_dump())


@router.get("/pascabayar/pay", response_model=SuccessResponse)
async def pay_bill(
    ref_id: str = Query(""),
    customer_no: str = Query(""),
    buyer_sku: str = Query(""),
    amount: str = Query(""),
    client: UpstreamClient = Depends(get_upstream_client),
):
    _require(ref_id=ref_id, customer_no=customer_no, buyer_sku=buyer_sku, amount=amount)
    response = await client.pay_bill(ref_id, customer_no, buyer_sku, _parse_amount(amount))
    return SuccessResponse(message="Bill paid", data=response.data.model_dump())


@router.get("/pln/inquiry", response_model=SuccessResponse)
async def inquiry_pln(
    ref_id: str = Query(""),
    customer_no: str = Query(""),
    service: InquiryCacheService = Depends(get_inquiry_service),
):
    _require(ref_id=ref_id, customer_no=customer_no)
    # PLN customer numbers are 10 to 15 digits long
    if not 10 <= len(customer_no) <= 15:
        raise InvalidRequestError(
            "Invalid customer number format. PLN customer numbers should be 10-15 digits",
            code="INVALID_CUSTOMER_NO",
        )
    response = await service.inquiry(customer_no, ref_id)
    return SuccessResponse(message=response.message, data=response.model_dump())


@router.get("/products", response_model=SuccessResponse)
async def get_products(type: str = Query(""), client: UpstreamClient = Depends(get_upstream_client)):
    if type not in PRICE_TYPES:
        raise InvalidRequestError("type must be prabayar or pascabayar", code="INVALID_TYPE")
    response = await client.get_prices(type)
    return SuccessResponse(message="Product list retrieved", data=[p.model_dump() for p in response.data])


@router.post("/callback", response_model=SuccessResponse)
def process_callback(
    body: CallbackRequest,
    request_id: str = Depends(get_request_id),
    client: UpstreamClient = Depends(get_upstream_client),
):
    """Accept a transaction status callback from upstream after checking its signature"""
    if not client.validate_webhook(body.ref_id, body.sign):
        logging.warning("Invalid callback signature", extra={"request_id": request_id, "ref_id": body.ref_id})
        return error_response(401, "INVALID_SIGNATURE", "Callback signature does not match")

    logging.info(
        "Callback received",
        extra={"request_id": request_id, "ref_id": body.ref_id, "rc": body.rc, "status": body.status},
    )
    return SuccessResponse(message="Callback processed")
