"""Header redaction for logs and reprs."""

from __future__ import annotations

from typing import Mapping


SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "x-api-key",
}

BEARER_PREFIX = "Bearer "


def redact_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Return headers with sensitive values replaced, safe to log."""
    if not headers:
        return {}
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def strip_bearer_prefix(token: str) -> str:
    """Drop one leading ``"Bearer "`` so callers may pass either form of a token."""
    if token.startswith(BEARER_PREFIX):
        return token[len(BEARER_PREFIX) :]
    return token
