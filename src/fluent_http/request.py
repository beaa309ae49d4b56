"""Fluent request descriptor and the pipeline that sends it."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from .exceptions import DeserializationError, InvalidArgumentError, UnsuccessfulResponseError
from .models import (
    DEFAULT_TEXT_CONTENT_TYPE,
    HttpMethod,
    JsonBody,
    RequestBody,
    TextBody,
    match_keys_case_insensitively,
)
from .request_options import RequestOptions
from .security import redact_headers, strip_bearer_prefix

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


# httpx rejects a raw "?" or "#" in a path and sends a "%" that starts no escape as-is
_STRAY_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _escape_segment(segment: str) -> str:
    segment = _STRAY_PERCENT.sub("%25", segment)
    return segment.replace("?", "%3F").replace("#", "%23")


def _join_path(path: str, segment: str) -> str:
    segment = _escape_segment(segment.lstrip("/"))
    if path.endswith("/"):
        return path + segment
    return f"{path}/{segment}"


def _build_url(
    uri: str,
    path_segments: Iterable[str],
    query_parameters: Iterable[tuple[str, str]],
) -> httpx.URL:
    url = httpx.URL(uri)

    segments = list(path_segments)
    if segments:
        # raw_path keeps the base path percent-encoded, so %2F survives the rebuild
        path = url.raw_path.decode("ascii").partition("?")[0]
        for segment in segments:
            path = _join_path(path, segment)
        url = url.copy_with(path=path)

    pairs = list(query_parameters)
    if pairs:
        # appended to the raw query so the base query string is sent exactly as given
        added = str(httpx.QueryParams(pairs)).encode("ascii")
        url = url.copy_with(query=url.query + b"&" + added if url.query else added)
    return url


class HttpRequest:
    """Accumulates the intent of one HTTP request until a terminal action sends it.

    Configuration calls mutate the descriptor and return it, so calls can be
    chained. Nothing touches the network until one of
    :meth:`ensure_success_status_code`, :meth:`read_response_as_string` or
    :meth:`read_json_response_as` is awaited.

    The ``client`` is owned by the caller and is never closed here. When no
    client is given, each terminal action opens a short-lived
    ``httpx.AsyncClient`` configured from ``options`` (or from the environment,
    see :meth:`RequestOptions.from_env`) and closes it before returning.
    """

    def __init__(
        self,
        uri: str,
        client: httpx.AsyncClient | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> None:
        if _is_blank(uri):
            raise InvalidArgumentError("uri")
        self._uri = uri
        self.client = client
        self.options = options
        self.method = HttpMethod.GET
        self.headers: dict[str, str] | None = None
        self.path_segments: list[str] | None = None
        self.query_parameters: list[tuple[str, str]] | None = None
        self.body: RequestBody | None = None

    @property
    def uri(self) -> str:
        return self._uri

    def __repr__(self) -> str:
        return (
            f"HttpRequest(method={self.method.value}, uri={self._uri!r}, "
            f"headers={redact_headers(self.headers)!r})"
        )

    # Headers

    def _existing_header_name(self, name: str) -> str | None:
        if not self.headers:
            return None
        lowered = name.lower()
        for key in self.headers:
            if key.lower() == lowered:
                return key
        return None

    def set_header(self, name: str, value: str) -> "HttpRequest":
        if _is_blank(name):
            raise InvalidArgumentError("name")
        if value is None:
            raise InvalidArgumentError("value")
        if self.headers is None:
            self.headers = {}
        existing = self._existing_header_name(name)
        if existing is not None and existing != name:
            del self.headers[existing]
        self.headers[name] = value
        return self

    def set_bearer_auth(self, token: str) -> "HttpRequest":
        """Set ``Authorization: Bearer <token>``; a token already carrying the prefix is accepted."""
        if token is None:
            raise InvalidArgumentError("token")
        return self.set_header("Authorization", f"Bearer {strip_bearer_prefix(token)}")

    def set_user_agent(self, user_agent: str) -> "HttpRequest":
        return self.set_header("User-Agent", user_agent)

    def accept_content_type(self, content_type: str, replace: bool = False) -> "HttpRequest":
        """Add ``content_type`` to the Accept header.

        Repeated calls build up a comma separated list. Pass ``replace=True``
        to discard whatever was accepted before.
        """
        existing = self._existing_header_name("Accept")
        if existing is not None and not replace:
            content_type = f"{self.headers[existing]},{content_type}"
        return self.set_header("Accept", content_type)

    def accept_json(self, replace: bool = False) -> "HttpRequest":
        return self.accept_content_type("application/json", replace)

    def accept_xml(self, replace: bool = False) -> "HttpRequest":
        return self.accept_content_type("application/xml", replace)

    def accept_plain_text(self, replace: bool = False) -> "HttpRequest":
        return self.accept_content_type("text/plain", replace)

    def accept_html(self, replace: bool = False) -> "HttpRequest":
        return self.accept_content_type("text/html", replace)

    # URL

    def add_path_segment(self, segment: str) -> "HttpRequest":
        if self.path_segments is None:
            self.path_segments = []
        self.path_segments.append(segment)
        return self

    def add_query_parameter(self, name: str, value: str) -> "HttpRequest":
        """Append a query pair. Repeated names are all sent, in call order."""
        if self.query_parameters is None:
            self.query_parameters = []
        self.query_parameters.append((name, value))
        return self

    def build_url(self) -> httpx.URL:
        """Return the URL a terminal action would send to, without sending anything."""
        return _build_url(self._uri, self.path_segments or (), self.query_parameters or ())

    # Method

    def _set_method(self, method: HttpMethod) -> "HttpRequest":
        self.method = method
        return self

    def as_a_get_request(self) -> "HttpRequest":
        return self._set_method(HttpMethod.GET)

    def as_a_post_request(self) -> "HttpRequest":
        return self._set_method(HttpMethod.POST)

    def as_a_put_request(self) -> "HttpRequest":
        return self._set_method(HttpMethod.PUT)

    def as_a_patch_request(self) -> "HttpRequest":
        return self._set_method(HttpMethod.PATCH)

    def as_a_delete_request(self) -> "HttpRequest":
        return self._set_method(HttpMethod.DELETE)

    def as_a_trace_request(self) -> "HttpRequest":
        return self._set_method(HttpMethod.TRACE)

    def as_a_head_request(self) -> "HttpRequest":
        return self._set_method(HttpMethod.HEAD)

    def as_an_options_request(self) -> "HttpRequest":
        return self._set_method(HttpMethod.OPTIONS)

    # Body

    def with_json_body(self, body: Any) -> "HttpRequest":
        """Send ``body`` as JSON. Serialization is deferred until the request is sent."""
        if body is None:
            raise InvalidArgumentError("body")
        self.body = JsonBody(body)
        return self

    def with_text_body(self, body: str, content_type: str = DEFAULT_TEXT_CONTENT_TYPE) -> "HttpRequest":
        if body is None:
            raise InvalidArgumentError("body")
        if _is_blank(content_type):
            raise InvalidArgumentError("content_type")
        self.body = TextBody(body, content_type)
        return self

    # Sending

    async def _build_wire_request(self, client: httpx.AsyncClient) -> httpx.Request:
        url = self.build_url()
        headers = httpx.Headers(self.headers or {})
        content: bytes | None = None
        if self.body is not None:
            content, content_type = await self.body.render()
            # a Content-Type set by the caller wins over the body's own
            if "content-type" not in headers:
                headers["Content-Type"] = content_type
        return client.build_request(self.method.value, url, headers=headers, content=content)

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        options = self.options or RequestOptions.from_env()
        async with httpx.AsyncClient(**options.client_kwargs()) as client:
            yield client

    async def _send(self, client: httpx.AsyncClient) -> httpx.Response:
        request = await self._build_wire_request(client)
        logger.debug(
            "Sending %s %s headers=%s",
            request.method,
            request.url,
            redact_headers(request.headers),
        )
        response = await client.send(request, stream=True)
        logger.debug(
            "Received %s %s for %s %s",
            response.status_code,
            response.reason_phrase,
            request.method,
            request.url,
        )
        return response

    @asynccontextmanager
    async def _exchange(self) -> AsyncIterator[httpx.Response]:
        async with self._client_scope() as client:
            response = await self._send(client)
            try:
                yield response
            finally:
                await response.aclose()

    @staticmethod
    async def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        body = None
        try:
            await response.aread()
            body = response.text
        except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError) as exc:
            logger.debug("Could not read body of %s response: %s", response.status_code, exc)

        raise UnsuccessfulResponseError(
            f"Response status code does not indicate success: "
            f"{response.status_code} ({response.reason_phrase})",
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            body=body,
            headers=dict(response.headers),
            request_id=response.headers.get("x-request-id"),
        )

    async def ensure_success_status_code(self) -> None:
        """Send the request and raise :class:`UnsuccessfulResponseError` unless it returned 2xx."""
        async with self._exchange() as response:
            await self._raise_for_status(response)

    async def read_response_as_string(self) -> str:
        """Send the request and return the body decoded with the response's charset."""
        async with self._exchange() as response:
            await self._raise_for_status(response)
            await response.aread()
            return response.text

    async def read_json_response_as(self, response_type: type[T]) -> T:
        """Send the request and validate the JSON body as ``response_type``.

        Object keys are matched to field names without regard to case. Any
        pydantic-compatible type works: models, dataclasses, builtin
        containers, ``Any``.
        """
        async with self._exchange() as response:
            await self._raise_for_status(response)
            await response.aread()
            return _deserialize(response, response_type)


def _deserialize(response: httpx.Response, response_type: type[T]) -> T:
    type_name = getattr(response_type, "__name__", repr(response_type))
    try:
        payload = response.json()
    except ValueError as exc:
        raise DeserializationError(
            f"Response body is not valid JSON for {type_name}",
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
            cause=exc,
        ) from exc

    payload = match_keys_case_insensitively(response_type, payload)
    try:
        return TypeAdapter(response_type).validate_python(payload)
    except ValidationError as exc:
        raise DeserializationError(
            f"Response body does not match {type_name}: {exc.error_count()} validation error(s)",
            status_code=response.status_code,
            body=payload,
            headers=dict(response.headers),
            cause=exc,
        ) from exc


def new_request(
    uri: str,
    client: httpx.AsyncClient | None = None,
    *,
    options: RequestOptions | None = None,
) -> HttpRequest:
    """Start a fluent request against ``uri``."""
    return HttpRequest(uri, client, options=options)
