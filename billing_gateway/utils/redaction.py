"""Helpers for keeping credentials out of log records"""

from typing import Any, Dict

SECRET_FIELDS = frozenset({"api_key", "key", "password"})
MASKED_FIELDS = frozenset({"sign"})


def mask(value: str, visible: int = 4) -> str:
    """Keep the first and last ``visible`` characters of a token"""
    if not value or len(value) <= visible * 2:
        return "***"
    return f"{value[:visible]}***{value[-visible:]}"


def redact_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of an outbound payload that is safe to log"""
    redacted = {}
    for name, value in payload.items():
        if name in SECRET_FIELDS:
            continue
        if name in MASKED_FIELDS and isinstance(value, str):
            redacted[name] = mask(value)
        else:
            redacted[name] = value
    return redacted
