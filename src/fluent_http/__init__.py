"""Fluent builder for composing and sending HTTP requests."""

from .exceptions import (
    DeserializationError,
    FluentHttpError,
    InvalidArgumentError,
    UnsuccessfulResponseError,
)
from .models import HttpMethod, JsonBody, ResponseModel, TextBody
from .request import HttpRequest, new_request
from .request_options import RequestOptions

__all__ = [
    "DeserializationError",
    "FluentHttpError",
    "HttpMethod",
    "HttpRequest",
    "InvalidArgumentError",
    "JsonBody",
    "RequestOptions",
    "ResponseModel",
    "TextBody",
    "UnsuccessfulResponseError",
    "new_request",
]
