"""Exceptions raised by fluent_http."""

from __future__ import annotations

from typing import Mapping


class FluentHttpError(Exception):
    """Base exception for all fluent_http failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.cause = cause

    def __str__(self) -> str:
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class InvalidArgumentError(FluentHttpError, ValueError):
    """Raised by configuration calls for a missing or blank required argument."""

    def __init__(self, argument: str, message: str | None = None) -> None:
        super().__init__(message or f"{argument} must not be None or blank")
        self.argument = argument


class UnsuccessfulResponseError(FluentHttpError):
    """Raised by terminal actions when the response status is not 2xx."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        reason_phrase: str,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        request_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, body=body, headers=headers)
        self.reason_phrase = reason_phrase
        self.request_id = request_id


class DeserializationError(FluentHttpError):
    """Raised when a response body cannot be read into the requested type."""
