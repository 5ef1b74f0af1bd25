"""Unit tests for log redaction helpers"""

from billing_gateway.utils.redaction import mask, redact_payload


def test_mask_keeps_edges():
    assert mask("0123456789abcdef") == "0123***cdef"


def test_mask_short_values():
    assert mask("short") == "***"
    assert mask("") == "***"


def test_redact_payload_drops_secrets():
    payload = {
        "username": "user",
        "api_key": "secret",
        "customer_no": "12345678901",
        "sign": "0123456789abcdef0123456789abcdef",
    }

    redacted = redact_payload(payload)

    assert "api_key" not in redacted
    assert redacted["username"] == "user"
    assert redacted["customer_no"] == "12345678901"
    assert redacted["sign"] == "0123***cdef"
    # Original payload is still sent as-is
    assert payload["api_key"] == "secret"
