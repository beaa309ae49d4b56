"""Settings for the client created when a request has none injected."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

TIMEOUT_ENV_VAR = "FLUENT_HTTP_TIMEOUT"
USER_AGENT_ENV_VAR = "FLUENT_HTTP_USER_AGENT"


@dataclass(frozen=True)
class RequestOptions:
    timeout: float | None = 30.0
    follow_redirects: bool = True
    trust_env: bool = False
    headers: Mapping[str, str] = field(default_factory=dict)
    transport: httpx.AsyncBaseTransport | None = None

    @classmethod
    def from_env(cls) -> "RequestOptions":
        """Build options from ``FLUENT_HTTP_TIMEOUT`` and ``FLUENT_HTTP_USER_AGENT``."""
        kwargs: dict[str, Any] = {}
        raw_timeout = os.getenv(TIMEOUT_ENV_VAR)
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ValueError(f"{TIMEOUT_ENV_VAR} must be a number, got {raw_timeout!r}") from exc
            # zero or negative disables the timeout
            kwargs["timeout"] = timeout if timeout > 0 else None
        user_agent = os.getenv(USER_AGENT_ENV_VAR)
        if user_agent:
            kwargs["headers"] = {"User-Agent": user_agent}
        return cls(**kwargs)

    def client_kwargs(self) -> dict[str, Any]:
        return {
            "timeout": self.timeout,
            "follow_redirects": self.follow_redirects,
            "trust_env": self.trust_env,
            "headers": dict(self.headers),
            "transport": self.transport,
        }
