"""Unit tests for the upstream billing API client"""

from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from billing_gateway.domain.exceptions import (
    DecodeError,
    RetriesExhaustedError,
    TransportError,
    UpstreamHTTPError,
)
from billing_gateway.domain.signing import sign
from billing_gateway.infrastructure.clients.upstream import UpstreamClient
from conftest import TEST_API_KEY, TEST_USERNAME, UPSTREAM_BASE_URL, subscriber_reply, upstream_reply


async def test_inquiry_request_is_signed_over_customer_no(fake_upstream, upstream_client):
    fake_upstream.reply("/inquiry-pln", subscriber_reply())

    response = await upstream_client.inquiry_pln("12345678901")

    assert response.is_success
    assert response.data.name == "JOHN"
    [body] = fake_upstream.calls_to("/inquiry-pln")
    assert body["username"] == TEST_USERNAME
    assert body["api_key"] == TEST_API_KEY
    assert body["customer_no"] == "12345678901"
    assert body["sign"] == sign(TEST_USERNAME, TEST_API_KEY, "12345678901")


async def test_transaction_signs_ref_id(fake_upstream, upstream_client):
    fake_upstream.reply("/topup", upstream_reply(ref_id="REF001", rc="00", status="Sukses", sn="SN1"))

    response = await upstream_client.topup("REF001", "08123456789", "xld10")

    assert response.data.sn == "SN1"
    [body] = fake_upstream.calls_to("/topup")
    assert body["buyer_sku"] == "xld10"
    assert body["sign"] == sign(TEST_USERNAME, TEST_API_KEY, "REF001")


async def test_balance_and_price_list_sign_literals(fake_upstream, upstream_client):
    fake_upstream.reply("/cek-saldo", upstream_reply(deposit=250000))
    fake_upstream.reply("/daftar-harga", httpx.Response(200, json={"data": [{"code": "xld10", "price": 10250}]}))

    balance = await upstream_client.check_balance()
    prices = await upstream_client.get_prices("prabayar")

    assert balance.data.deposit == 250000
    assert prices.data[0].code == "xld10"
    assert fake_upstream.calls_to("/cek-saldo")[0]["sign"] == sign(TEST_USERNAME, TEST_API_KEY, "deposit")
    price_body = fake_upstream.calls_to("/daftar-harga")[0]
    assert price_body["sign"] == sign(TEST_USERNAME, TEST_API_KEY, "pricelist")
    assert price_body["type"] == "prabayar"


async def test_get_prices_rejects_unknown_type(upstream_client):
    with pytest.raises(ValueError):
        await upstream_client.get_prices("bogus")


async def test_bill_pay_sends_amount(fake_upstream, upstream_client):
    fake_upstream.reply("/pascabayar/pay", upstream_reply(ref_id="REF9", rc="00", amount=150000))

    response = await upstream_client.pay_bill("REF9", "530000000001", "pln", 150000)

    assert response.data.amount == 150000
    assert fake_upstream.calls_to("/pascabayar/pay")[0]["amount"] == 150000


async def test_succeeds_on_third_attempt(fake_upstream, upstream_client):
    """Two HTTP failures followed by a good reply: exactly three calls"""
    fake_upstream.reply(
        "/inquiry-pln",
        httpx.Response(500, text="boom"),
        httpx.Response(503, text="busy"),
        subscriber_reply(),
    )

    response = await upstream_client.inquiry_pln("12345678901")

    assert response.is_success
    assert len(fake_upstream.calls_to("/inquiry-pln")) == 3


async def test_exhausted_after_configured_attempts(fake_upstream, upstream_client):
    fake_upstream.reply("/inquiry-pln", httpx.Response(500, text="boom"))

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await upstream_client.inquiry_pln("12345678901")

    assert exc_info.value.attempts == 3
    assert exc_info.value.endpoint == "/inquiry-pln"
    assert isinstance(exc_info.value.last_error, UpstreamHTTPError)
    assert exc_info.value.last_error.status_code == 500
    assert len(fake_upstream.calls_to("/inquiry-pln")) == 3


async def test_network_failure_is_transport_error(fake_upstream, upstream_client):
    fake_upstream.reply("/cek-status", httpx.ConnectError("connection refused"))

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await upstream_client.check_status("REF001")

    assert isinstance(exc_info.value.last_error, TransportError)


async def test_timeout_is_transport_error(fake_upstream, upstream_client):
    fake_upstream.reply("/cek-status", httpx.ReadTimeout("too slow"))

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await upstream_client.check_status("REF001")

    assert isinstance(exc_info.value.last_error, TransportError)
    assert "timeout" in str(exc_info.value.last_error)


async def test_undecodable_body_is_decode_error(fake_upstream, upstream_client):
    fake_upstream.reply("/cek-status", httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(RetriesExhaustedError) as exc_info:
        await upstream_client.check_status("REF001")

    assert isinstance(exc_info.value.last_error, DecodeError)


async def test_business_failure_is_not_retried(fake_upstream, upstream_client):
    """A non-"00" rc is a valid answer, returned after one call"""
    fake_upstream.reply("/inquiry-pln", subscriber_reply(customer_no="99999999999", rc="14"))

    response = await upstream_client.inquiry_pln("99999999999")

    assert not response.is_success
    assert response.rc == "14"
    assert len(fake_upstream.calls_to("/inquiry-pln")) == 1


async def test_backoff_is_linear(fake_upstream, credentials):
    fake_upstream.reply("/inquiry-pln", httpx.Response(500))
    client = UpstreamClient(
        credentials=credentials,
        base_url=UPSTREAM_BASE_URL,
        retry_attempts=3,
        backoff_seconds=1.0,
        transport=httpx.MockTransport(fake_upstream.handler),
    )

    with patch("billing_gateway.infrastructure.clients.upstream.asyncio.sleep", new_callable=AsyncMock) as sleep:
        with pytest.raises(RetriesExhaustedError):
            await client.inquiry_pln("12345678901")

    assert sleep.await_args_list == [call(1.0), call(2.0)]


@pytest.mark.parametrize("attempts", [0, -1])
def test_rejects_non_positive_attempts(credentials, attempts):
    with pytest.raises(ValueError):
        UpstreamClient(credentials=credentials, retry_attempts=attempts)


def test_explicit_arguments_override_settings(credentials):
    client = UpstreamClient(credentials=credentials, timeout=2.5, retry_attempts=1, backoff_seconds=0)

    assert client.timeout == 2.5
    assert client.retry_attempts == 1
    assert client.backoff_seconds == 0


def test_validate_webhook(upstream_client):
    good = sign(TEST_USERNAME, TEST_API_KEY, "REF001")
    assert upstream_client.validate_webhook("REF001", good)
    assert not upstream_client.validate_webhook("REF002", good)


async def test_null_fields_decode_as_defaults(fake_upstream, upstream_client):
    """A successful topup with a null serial number is an answer, not a decode failure"""
    fake_upstream.reply(
        "/topup",
        httpx.Response(
            200,
            json={"data": {"ref_id": "REF001", "rc": "00", "status": "Sukses", "sn": None, "price": None}, "message": None},
        ),
    )

    response = await upstream_client.topup("REF001", "08123456789", "xld10")

    assert response.is_success
    assert response.data.sn == ""
    assert response.data.price == 0
    assert response.message == ""
    assert len(fake_upstream.calls_to("/topup")) == 1


async def test_null_inquiry_fields_decode_as_defaults(fake_upstream, upstream_client):
    fake_upstream.reply(
        "/inquiry-pln",
        httpx.Response(
            200,
            json={"data": {"customer_no": "12345678901", "rc": "00", "name": "JOHN", "meter_no": None, "segment_power": None}},
        ),
    )

    response = await upstream_client.inquiry_pln("12345678901")

    assert response.is_success
    assert response.data.meter_no == ""
    assert response.data.name == "JOHN"
    assert len(fake_upstream.calls_to("/inquiry-pln")) == 1


async def test_null_data_and_list_entries(fake_upstream, upstream_client):
    fake_upstream.reply("/cek-saldo", httpx.Response(200, json={"data": None}))
    fake_upstream.reply("/daftar-harga", httpx.Response(200, json={"data": [{"code": "xld10", "price": None, "description": None}]}))

    balance = await upstream_client.check_balance()
    prices = await upstream_client.get_prices()

    assert balance.data.deposit == 0
    assert prices.data[0].price == 0
    assert prices.data[0].description == ""
