"""Signed-request HTTP client for the upstream billing API"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import ValidationError

from billing_gateway.config import settings
from billing_gateway.domain.exceptions import (
    DecodeError,
    RetriesExhaustedError,
    TransportError,
    UpstreamError,
    UpstreamHTTPError,
)
from billing_gateway.domain.models import Credentials
from billing_gateway.domain.signing import Operation, sign_for, verify
from billing_gateway.infrastructure.clients.schemas import (
    BalanceResponse,
    BillResponse,
    InquiryResponse,
    PriceListResponse,
    TransactionResponse,
    UpstreamEnvelope,
)
from billing_gateway.infrastructure.observability.metrics import (
    upstream_failure_counter,
    upstream_latency_histogram,
)
from billing_gateway.utils.redaction import redact_payload

logger = logging.getLogger(__name__)

USER_AGENT = "billing-gateway/0.1.0"
PRICE_TYPES = ("", "prabayar", "pascabayar")

R = TypeVar("R", bound=UpstreamEnvelope)


class UpstreamClient:
    """Client for the upstream billing API"""

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_attempts: int | None = None,
        backoff_seconds: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credentials = credentials or Credentials(
            username=settings.upstream_username,
            api_key=settings.upstream_api_key.get_secret_value(),
        )
        self.base_url = (base_url or settings.upstream_base_url).rstrip("/")
        self.timeout = settings.http_timeout_seconds if timeout is None else timeout
        self.retry_attempts = settings.upstream_retry_attempts if retry_attempts is None else retry_attempts
        self.backoff_seconds = settings.upstream_backoff_seconds if backoff_seconds is None else backoff_seconds
        self.transport = transport

        if self.retry_attempts < 1:
            raise ValueError("retry_attempts must be at least 1")

    def _signed(self, operation: Operation, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Build the request body: credentials, operation fields and signature"""
        payload: Dict[str, Any] = {
            "username": self.credentials.username,
            "api_key": self.credentials.api_key,
            **fields,
        }
        payload["sign"] = sign_for(operation, self.credentials.username, self.credentials.api_key, fields)
        return payload

    async def check_balance(self) -> BalanceResponse:
        """Fetch the account deposit"""
        payload = self._signed(Operation.BALANCE, {})
        return await self._post("/cek-saldo", payload, BalanceResponse)

    async def get_prices(self, price_type: str = "") -> PriceListResponse:
        """
        Fetch the product price list.

        Args:
            price_type: "" for everything, "prabayar" or "pascabayar"
        """
        if price_type not in PRICE_TYPES:
            raise ValueError(f"Unknown price type: {price_type!r}")
        fields: Dict[str, Any] = {}
        if price_type:
            fields["type"] = price_type
        payload = self._signed(Operation.PRICE_LIST, fields)
        return await self._post("/daftar-harga", payload, PriceListResponse)

    async def topup(self, ref_id: str, customer_no: str, buyer_sku: str) -> TransactionResponse:
        payload = self._signed(
            Operation.TOPUP,
            {"buyer_sku": buyer_sku, "customer_no": customer_no, "ref_id": ref_id},
        )
        return await self._post("/topup", payload, TransactionResponse)

    async def pay(self, ref_id: str, customer_no: str, buyer_sku: str) -> TransactionResponse:
        payload = self._signed(
            Operation.PAY,
            {"buyer_sku": buyer_sku, "customer_no": customer_no, "ref_id": ref_id},
        )
        return await self._post("/pascabayar", payload, TransactionResponse)

    async def check_status(self, ref_id: str) -> TransactionResponse:
        payload = self._signed(Operation.STATUS, {"ref_id": ref_id})
        return await self._post("/cek-status", payload, TransactionResponse)

    async def check_bill(self, ref_id: str, customer_no: str, buyer_sku: str) -> BillResponse:
        payload = self._signed(
            Operation.BILL_CHECK,
            {"buyer_sku": buyer_sku, "customer_no": customer_no, "ref_id": ref_id},
        )
        return await self._post("/pascabayar/check", payload, BillResponse)

    async def pay_bill(self, ref_id: str, customer_no: str, buyer_sku: str, amount: float) -> BillResponse:
        payload = self._signed(
            Operation.BILL_PAY,
            {"buyer_sku": buyer_sku, "customer_no": customer_no, "ref_id": ref_id, "amount": amount},
        )
        return await self._post("/pascabayar/pay", payload, BillResponse)

    async def inquiry_pln(self, customer_no: str) -> InquiryResponse:
        """Look up PLN subscriber metadata by customer number"""
        payload = self._signed(Operation.PLN_INQUIRY, {"customer_no": customer_no})
        logger.info(
            "Sending PLN inquiry to upstream",
            extra={"customer_no": customer_no, "username": self.credentials.username},
        )
        response = await self._post("/inquiry-pln", payload, InquiryResponse)
        logger.info(
            "PLN inquiry response received from upstream",
            extra={
                "customer_no": customer_no,
                "rc": response.data.rc,
                "status": response.data.status,
            },
        )
        return response

    def validate_webhook(self, ref_id: str, sign: str) -> bool:
        """Check the signature on a transaction callback pushed by upstream"""
        return verify(self.credentials.username, self.credentials.api_key, ref_id, sign)

    async def _post(self, endpoint: str, payload: Dict[str, Any], response_model: Type[R]) -> R:
        """
        POST a signed payload and decode the reply.

        Retry strategy:
        - Up to ``retry_attempts`` attempts in total
        - Linear backoff: sleep attempt_index * backoff_seconds (0, 1, 2, ...)
        - Retries on network failures, non-200 statuses and undecodable bodies
        - The business rc is never inspected here

        Raises:
            RetriesExhaustedError: Every attempt failed; wraps the last error
        """
        url = f"{self.base_url}{endpoint}"
        safe_payload = redact_payload(payload)
        last_error: Optional[UpstreamError] = None

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            for attempt in range(self.retry_attempts):
                if attempt > 0:
                    await asyncio.sleep(attempt * self.backoff_seconds)

                logger.debug(
                    "Upstream request",
                    extra={"endpoint": endpoint, "attempt": attempt + 1, "payload": safe_payload},
                )
                start_time = time.perf_counter()
                try:
                    with upstream_latency_histogram.labels(endpoint=endpoint).time():
                        response = await client.post(url, json=payload)
                except httpx.TimeoutException as e:
                    last_error = TransportError(f"Upstream timeout after {self.timeout}s", endpoint)
                    last_error.__cause__ = e
                except httpx.RequestError as e:
                    last_error = TransportError(f"Upstream request failed: {e}", endpoint)
                    last_error.__cause__ = e
                else:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    logger.info(
                        "Upstream response",
                        extra={
                            "endpoint": endpoint,
                            "attempt": attempt + 1,
                            "status_code": response.status_code,
                            "duration_ms": duration_ms,
                        },
                    )
                    logger.debug("Upstream response body", extra={"endpoint": endpoint, "body": response.text})

                    if response.status_code != httpx.codes.OK:
                        last_error = UpstreamHTTPError(
                            f"Upstream HTTP error {response.status_code}",
                            endpoint,
                            status_code=response.status_code,
                            body=response.text,
                        )
                    else:
                        try:
                            return response_model.model_validate_json(response.content)
                        except ValidationError as e:
                            last_error = DecodeError(f"Invalid response from upstream: {e}", endpoint)
                            last_error.__cause__ = e

                upstream_failure_counter.labels(endpoint=endpoint, kind=_failure_kind(last_error)).inc()
                logger.warning(
                    "Upstream attempt failed",
                    extra={
                        "endpoint": endpoint,
                        "attempt": attempt + 1,
                        "max_attempts": self.retry_attempts,
                        "error": str(last_error),
                    },
                )

        upstream_failure_counter.labels(endpoint=endpoint, kind="exhausted").inc()
        logger.error(
            "Upstream retries exhausted",
            extra={"endpoint": endpoint, "attempts": self.retry_attempts},
        )
        raise RetriesExhaustedError(endpoint, self.retry_attempts, last_error) from last_error


def _failure_kind(error: Optional[UpstreamError]) -> str:
    if isinstance(error, UpstreamHTTPError):
        return "http"
    if isinstance(error, DecodeError):
        return "decode"
    return "transport"
