"""Pydantic models for upstream billing API responses.

Every field carries a default: the upstream omits fields freely (failed
transactions have no serial number, balance replies have no rc) and
sends explicit nulls the same way, so a null also falls back to the default.
Decoding only fails when the body is not JSON or a field has an impossible type.
"""

from typing import Any, List

from pydantic import BaseModel, Field, model_validator

from billing_gateway.domain.models import SUCCESS_RC


class UpstreamModel(BaseModel):
    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """An explicit null means the same as an omitted field"""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class ResultData(UpstreamModel):
    """Fields shared by every rc-bearing upstream payload"""

    ref_id: str = ""
    customer_no: str = ""
    message: str = ""
    rc: str = ""
    status: str = ""


class UpstreamEnvelope(UpstreamModel):
    message: str = ""
    status: int = 0

    @property
    def rc(self) -> str:
        return getattr(self.data, "rc", "")

    @property
    def is_success(self) -> bool:
        """True only for rc "00"; anything else is a business failure"""
        return self.rc == SUCCESS_RC


class BalanceData(UpstreamModel):
    deposit: float = 0


class BalanceResponse(UpstreamEnvelope):
    data: BalanceData = Field(default_factory=BalanceData)


class Product(UpstreamModel):
    code: str = ""
    name: str = ""
    type: str = ""
    category: str = ""
    price: float = 0
    price_type: str = ""
    status: str = ""
    description: str = ""


class PriceListResponse(UpstreamEnvelope):
    data: List[Product] = Field(default_factory=list)


class TransactionData(ResultData):
    buyer_sku: str = ""
    sn: str = ""
    buyer_last_saldo: float = 0
    buyer_saldo: float = 0
    price: float = 0
    timestamp: str = ""


class TransactionResponse(UpstreamEnvelope):
    data: TransactionData = Field(default_factory=TransactionData)


class BillDetail(UpstreamModel):
    customer_name: str = ""
    bill_period: str = ""
    due_date: str = ""
    bill_amount: float = 0
    admin_fee: float = 0
    total_amount: float = 0


class BillData(ResultData):
    buyer_sku: str = ""
    amount: float = 0
    admin_fee: float = 0
    total: float = 0
    sn: str = ""
    timestamp: str = ""
    bill_details: BillDetail = Field(default_factory=BillDetail)


class BillResponse(UpstreamEnvelope):
    data: BillData = Field(default_factory=BillData)


class InquiryData(ResultData):
    meter_no: str = ""
    subscriber_id: str = ""
    name: str = ""
    segment_power: str = ""


class InquiryResponse(UpstreamEnvelope):
    data: InquiryData = Field(default_factory=InquiryData)
