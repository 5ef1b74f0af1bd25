"""Pydantic schemas for API request/response validation"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class TransactionRequest(BaseModel):
    """Request body for POST /api/v1/transactions/topup and /pay"""

    ref_id: str = Field(..., min_length=1, description="Caller correlation id")
    customer_no: str = Field(..., min_length=1, description="Destination number")
    buyer_sku: str = Field(..., min_length=1, description="Product code")


class BillCheckRequest(TransactionRequest):
    """Request body for POST /api/v1/pascabayar/check"""

    pass


class BillPayRequest(TransactionRequest):
    """Request body for POST /api/v1/pascabayar/pay"""

    amount: float = Field(..., gt=0, description="Bill amount returned by the check")


class InquiryRequest(BaseModel):
    """Request body for POST /api/v1/pln/inquiry"""

    ref_id: str = Field(..., min_length=1)
    customer_no: str = Field(..., min_length=1, description="PLN customer number")


class CacheConfigRequest(BaseModel):
    """Request body for PUT /pln/cache/config"""

    cache_enabled: bool
    cache_ttl: int = Field(0, ge=0, description="Entry lifetime in seconds, 0 = never expire")
    cache_key_prefix: Optional[str] = None


class CallbackRequest(BaseModel):
    """Transaction callback pushed by the upstream API"""

    ref_id: str = Field(..., min_length=1)
    customer_no: str = ""
    buyer_sku: str = ""
    message: str = ""
    rc: str = ""
    sn: str = ""
    status: str = ""
    price: float = 0
    sign: str = Field(..., min_length=1)


class LegacyTransactionResponse(BaseModel):
    """Flat transaction reply for the GET-query dialect"""

    ref_id: str
    customer_no: str = ""
    buyer_sku: str = ""
    amount: float = 0
    status: str
    message: str = ""
    rc: str = ""
    sn: str = ""
    timestamp: str


class SuccessResponse(BaseModel):
    success: bool = True
    message: str = ""
    data: Optional[Any] = None


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: str = ""


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail
