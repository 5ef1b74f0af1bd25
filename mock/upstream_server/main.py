"""Mock upstream billing API for local runs and e2e tests.

Checks request signatures with MOCK_USERNAME / MOCK_API_KEY and answers
with canned data. Customer numbers outside SUBSCRIBERS answer rc "14";
buyer_sku "FAIL" makes transactions fail with rc "40".
"""

import hashlib
import os
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request

app = FastAPI(title="Mock Upstream Billing API", version="1.0.0")

USERNAME = os.getenv("MOCK_USERNAME", "mockuser")
API_KEY = os.getenv("MOCK_API_KEY", "mock-key")

SUBSCRIBERS = {
    "12345678901": {"name": "JOHN", "meter_no": "14012345678", "subscriber_id": "523011234567", "segment_power": "R1 /000001300"},
    "53201234567": {"name": "SITI AMINAH", "meter_no": "14098765432", "subscriber_id": "523019876543", "segment_power": "R1M /000000900"},
}

PRODUCTS = [
    {"code": "xld10", "name": "XL 10.000", "type": "prabayar", "category": "Pulsa", "price": 10250, "price_type": "fixed", "status": "active", "description": "Pulsa XL 10rb"},
    {"code": "pln20", "name": "PLN 20.000", "type": "prabayar", "category": "PLN", "price": 20150, "price_type": "fixed", "status": "active", "description": "Token PLN 20rb"},
    {"code": "pln", "name": "PLN Pascabayar", "type": "pascabayar", "category": "PLN", "price": 2500, "price_type": "admin", "status": "active", "description": "Tagihan PLN"},
]


def expected_sign(field: str) -> str:
    return hashlib.md5(f"{USERNAME}{API_KEY}{field}".encode("utf-8")).hexdigest()


async def signed_body(request: Request, field: str) -> Dict[str, Any]:
    body = await request.json()
    if body.get("username") != USERNAME:
        raise HTTPException(status_code=401, detail="unknown username")
    variable = field if field in ("deposit", "pricelist") else str(body.get(field, ""))
    if body.get("sign") != expected_sign(variable):
        raise HTTPException(status_code=401, detail="invalid signature")
    return body


def transaction_data(body: Dict[str, Any]) -> Dict[str, Any]:
    failed = body.get("buyer_sku") == "FAIL"
    return {
        "ref_id": body["ref_id"],
        "customer_no": body.get("customer_no", ""),
        "buyer_sku": body.get("buyer_sku", ""),
        "message": "Transaksi Gagal" if failed else "Transaksi Sukses",
        "rc": "40" if failed else "00",
        "status": "Gagal" if failed else "Sukses",
        "sn": "" if failed else f"SN{body['ref_id']}",
        "buyer_last_saldo": 1_000_000,
        "price": 10250,
    }


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/cek-saldo")
async def balance(request: Request):
    await signed_body(request, "deposit")
    return {"data": {"deposit": 1_000_000}}


@app.post("/daftar-harga")
async def price_list(request: Request):
    body = await signed_body(request, "pricelist")
    price_type = body.get("type")
    return {"data": [p for p in PRODUCTS if not price_type or p["type"] == price_type]}


@app.post("/topup")
async def topup(request: Request):
    body = await signed_body(request, "ref_id")
    return {"data": transaction_data(body)}


@app.post("/pascabayar")
async def pay(request: Request):
    body = await signed_body(request, "ref_id")
    return {"data": transaction_data(body)}


@app.post("/cek-status")
async def status(request: Request):
    body = await signed_body(request, "ref_id")
    return {"data": transaction_data(body)}


@app.post("/pascabayar/check")
async def check_bill(request: Request):
    body = await signed_body(request, "ref_id")
    return {
        "data": {
            **transaction_data(body),
            "amount": 150000,
            "admin_fee": 2500,
            "total": 152500,
            "bill_details": {"customer_name": "JOHN", "bill_period": "202610", "due_date": "2026-10-20", "bill_amount": 150000, "admin_fee": 2500, "total_amount": 152500},
        }
    }


@app.post("/pascabayar/pay")
async def pay_bill(request: Request):
    body = await signed_body(request, "ref_id")
    return {"data": {**transaction_data(body), "amount": body.get("amount", 0), "admin_fee": 2500}}


@app.post("/inquiry-pln")
async def inquiry_pln(request: Request):
    body = await signed_body(request, "customer_no")
    customer_no = body["customer_no"]
    subscriber = SUBSCRIBERS.get(customer_no)
    if subscriber is None:
        return {"data": {"customer_no": customer_no, "message": "Nomor pelanggan tidak ditemukan", "rc": "14", "status": "Gagal"}}
    return {"data": {"customer_no": customer_no, "message": "Transaksi Sukses", "rc": "00", "status": "Sukses", **subscriber}}
