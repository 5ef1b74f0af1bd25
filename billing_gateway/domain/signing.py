"""Request signing for the upstream billing API.

Every outbound call carries ``sign = md5(username + api_key + field)`` as a
lowercase hex digest. The variable ``field`` depends on the operation and is
chosen through :data:`SIGNATURE_POLICY`, so call sites never pick it by hand.
"""

import hashlib
import hmac
from enum import Enum
from typing import Callable, Dict, Mapping


def sign(identifier: str, secret: str, variable_field: str) -> str:
    """Return the upstream signature for one request. Pure and deterministic."""
    data = f"{identifier}{secret}{variable_field}"
    return hashlib.md5(data.encode("utf-8")).hexdigest()


def verify(identifier: str, secret: str, variable_field: str, token: str) -> bool:
    """Check a signature received from upstream (webhooks) in constant time"""
    expected = sign(identifier, secret, variable_field)
    return hmac.compare_digest(expected, token or "")


class Operation(str, Enum):
    BALANCE = "balance"
    PRICE_LIST = "price_list"
    TOPUP = "topup"
    PAY = "pay"
    STATUS = "status"
    BILL_CHECK = "bill_check"
    BILL_PAY = "bill_pay"
    PLN_INQUIRY = "pln_inquiry"
    WEBHOOK = "webhook"


def _literal(value: str) -> Callable[[Mapping[str, str]], str]:
    return lambda fields: value


def _field(name: str) -> Callable[[Mapping[str, str]], str]:
    return lambda fields: fields[name]


# Operation -> selector of the field that feeds the signature
SIGNATURE_POLICY: Dict[Operation, Callable[[Mapping[str, str]], str]] = {
    Operation.BALANCE: _literal("deposit"),
    Operation.PRICE_LIST: _literal("pricelist"),
    Operation.TOPUP: _field("ref_id"),
    Operation.PAY: _field("ref_id"),
    Operation.STATUS: _field("ref_id"),
    Operation.BILL_CHECK: _field("ref_id"),
    Operation.BILL_PAY: _field("ref_id"),
    Operation.PLN_INQUIRY: _field("customer_no"),
    Operation.WEBHOOK: _field("ref_id"),
}


def sign_for(operation: Operation, identifier: str, secret: str, fields: Mapping[str, str]) -> str:
    """
    Sign a request for ``operation`` using the policy table.

    Raises:
        KeyError: If ``fields`` lacks the field the operation signs over
    """
    variable_field = SIGNATURE_POLICY[operation](fields)
    return sign(identifier, secret, variable_field)
