"""Request methods, body variants and response model helpers."""

from __future__ import annotations

import dataclasses
import types
from collections import abc
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Mapping, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_core import to_json

JSON_CONTENT_TYPE = "application/json"
DEFAULT_TEXT_CONTENT_TYPE = "text/plain"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    TRACE = "TRACE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class JsonBody:
    """A value serialized to JSON when the request is sent."""

    value: Any

    async def render(self) -> tuple[bytes, str]:
        return to_json(self.value, by_alias=True), JSON_CONTENT_TYPE


@dataclass(frozen=True)
class TextBody:
    """A string sent as UTF-8 with the given content type."""

    text: str
    content_type: str = DEFAULT_TEXT_CONTENT_TYPE

    async def render(self) -> tuple[bytes, str]:
        return self.text.encode("utf-8"), f"{self.content_type}; charset=utf-8"


RequestBody = Union[JsonBody, TextBody]


def _field_types(target: Any) -> dict[str, Any]:
    """Map the JSON key of each field of a model or dataclass to its annotation."""
    if get_origin(target) is not None or not isinstance(target, type):
        return {}
    if issubclass(target, BaseModel):
        return {info.alias or name: info.annotation for name, info in target.model_fields.items()}
    if dataclasses.is_dataclass(target):
        try:
            hints = get_type_hints(target)
        except NameError:
            # forward references to classes local to a function cannot be resolved
            hints = {}
        return {f.name: hints.get(f.name, Any) for f in dataclasses.fields(target)}
    return {}


def _pick_union_member(members: tuple[Any, ...], value: Any) -> Any:
    candidates = [member for member in members if member is not type(None)]
    if isinstance(value, Mapping):
        shaped = [member for member in candidates if _field_types(member)]
        if shaped:
            keys = {key.lower() for key in value if isinstance(key, str)}
            return max(shaped, key=lambda member: len(keys & {k.lower() for k in _field_types(member)}))
    for member in candidates:
        origin = get_origin(member)
        if not isinstance(origin, type):
            continue
        if isinstance(value, Mapping) and issubclass(origin, abc.Mapping):
            return member
        if isinstance(value, (list, tuple)) and issubclass(origin, (abc.Sequence, abc.Set)):
            return member
    return Any


def match_keys_case_insensitively(target: Any, value: Any) -> Any:
    """Rename mapping keys to the field names of ``target`` ignoring case.

    Walks ``value`` alongside the type: containers, ``Optional``/unions,
    ``Annotated`` and the fields of nested models and dataclasses are all
    followed. Exact matches take precedence over case variants. Keys with no
    matching field are passed through untouched.
    """
    origin = get_origin(target)
    if origin is not None:
        args = get_args(target)
        if origin is Annotated:
            return match_keys_case_insensitively(args[0], value)
        if origin is Union or origin is types.UnionType:
            return match_keys_case_insensitively(_pick_union_member(args, value), value)
        if not isinstance(origin, type) or not args:
            return value
        if issubclass(origin, abc.Mapping) and isinstance(value, Mapping) and len(args) == 2:
            return {key: match_keys_case_insensitively(args[1], item) for key, item in value.items()}
        if issubclass(origin, tuple) and isinstance(value, (list, tuple)):
            if len(args) == 2 and args[1] is Ellipsis:
                return [match_keys_case_insensitively(args[0], item) for item in value]
            return [match_keys_case_insensitively(arg, item) for arg, item in zip(args, value)] + list(
                value[len(args) :]
            )
        if issubclass(origin, (abc.Sequence, abc.Set)) and isinstance(value, (list, tuple)):
            return [match_keys_case_insensitively(args[0], item) for item in value]
        return value

    if not isinstance(value, Mapping):
        return value
    fields = _field_types(target)
    if not fields:
        return value
    by_lower = {key.lower(): key for key in fields}
    matched: dict[Any, Any] = {}
    for key, item in value.items():
        canonical = by_lower.get(key.lower(), key) if isinstance(key, str) else key
        if canonical in matched and key != canonical:
            continue
        matched[canonical] = item
    return {
        key: match_keys_case_insensitively(fields[key], item) if key in fields else item
        for key, item in matched.items()
    }


class ResponseModel(BaseModel):
    """Base for response types whose fields match JSON keys regardless of case."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _match_keys(cls, value: Any) -> Any:
        return match_keys_case_insensitively(cls, value)
