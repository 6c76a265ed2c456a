"""
JSON encoding of request bodies and decoding of response bodies.

Field names of pydantic models and dataclasses are sent in camelCase;
explicit aliases and dictionary keys go out unchanged. Response bodies are
decoded into the request's declared response type with pydantic; keys are
matched ignoring case and underscores, so an API answering
``{"UserName": ...}`` or ``{"userName": ...}`` fills a ``user_name`` field.
"""

import collections.abc
import dataclasses
import json
import types
import typing
from functools import lru_cache
from typing import Any, Dict, Optional, Union

import pydantic
from pydantic import BaseModel, TypeAdapter
from pydantic_core import to_jsonable_python

from resilient_http.shared.exceptions import DeserializationError
from resilient_http.infrastructure.http.config import JsonSerializerSettings

JSON_CONTENT_TYPE = "application/json; charset=utf-8"

_UNION_TYPES = (Union, getattr(types, "UnionType", Union))
_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, collections.abc.Sequence, collections.abc.Set)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping)


def to_camel_case(key: str) -> str:
    """Convert ``snake_case`` or ``PascalCase`` to ``camelCase``."""
    parts = [part for part in key.split("_") if part]
    if not parts:
        return key
    head, tail = parts[0], parts[1:]
    return head[:1].lower() + head[1:] + "".join(part[:1].upper() + part[1:] for part in tail)


def _normalize_key(key: str) -> str:
    return key.replace("_", "").lower()


def _wire_name(name: str, alias: Optional[str], camel_case: bool) -> str:
    if alias:
        return alias
    return to_camel_case(name) if camel_case else name


def _encode(value: Any, camel_case: bool) -> Any:
    """Convert ``value`` to JSON data, renaming declared field names only.

    Explicit aliases win over camelCase; mapping keys are never renamed.
    """
    if isinstance(value, BaseModel):
        encoded = {}
        for name, field in type(value).model_fields.items():
            if field.exclude:
                continue
            alias = field.serialization_alias or field.alias
            encoded[_wire_name(name, alias, camel_case)] = _encode(getattr(value, name), camel_case)
        return encoded

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            _wire_name(f.name, None, camel_case): _encode(getattr(value, f.name), camel_case)
            for f in dataclasses.fields(value)
        }

    if isinstance(value, collections.abc.Mapping):
        return {
            key if isinstance(key, (str, int)) else to_jsonable_python(key): _encode(item, camel_case)
            for key, item in value.items()
        }

    if isinstance(value, (list, tuple, set, frozenset)):
        return [_encode(item, camel_case) for item in value]

    return to_jsonable_python(value)


@lru_cache(maxsize=256)
def _adapter(target_type: Any) -> TypeAdapter:
    return TypeAdapter(target_type)


def _field_map(target_type: Any) -> Optional[Dict[str, tuple]]:
    """Map normalized key -> (input key, annotation) for models and dataclasses."""
    if isinstance(target_type, type) and issubclass(target_type, BaseModel):
        mapping = {}
        for name, field in target_type.model_fields.items():
            input_key = field.validation_alias if isinstance(field.validation_alias, str) else (field.alias or name)
            mapping[_normalize_key(name)] = (input_key, field.annotation)
            mapping[_normalize_key(input_key)] = (input_key, field.annotation)
        return mapping

    if dataclasses.is_dataclass(target_type) and isinstance(target_type, type):
        hints = typing.get_type_hints(target_type)
        return {
            _normalize_key(f.name): (f.name, hints.get(f.name, Any))
            for f in dataclasses.fields(target_type)
        }

    return None


def _accepts(target_type: Any, data: Any) -> bool:
    """Whether key matching against ``target_type`` applies to the shape of ``data``."""
    origin = typing.get_origin(target_type)
    if origin in _UNION_TYPES:
        return any(_accepts(arg, data) for arg in typing.get_args(target_type))
    if isinstance(data, list):
        return origin in _SEQUENCE_ORIGINS
    if isinstance(data, dict):
        return origin in _MAPPING_ORIGINS or _field_map(target_type) is not None
    return False


def match_keys(target_type: Any, data: Any) -> Any:
    """Rename keys in ``data`` to the field names ``target_type`` expects."""
    origin = typing.get_origin(target_type)
    args = typing.get_args(target_type)

    if origin in _UNION_TYPES:
        for arg in args:
            if arg is not type(None) and _accepts(arg, data):
                return match_keys(arg, data)
        return data

    if origin in _SEQUENCE_ORIGINS and args and isinstance(data, list):
        if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
            return [match_keys(arg, item) for arg, item in zip(args, data)] + data[len(args):]
        return [match_keys(args[0], item) for item in data]

    if origin in _MAPPING_ORIGINS and len(args) == 2 and isinstance(data, dict):
        return {k: match_keys(args[1], v) for k, v in data.items()}

    fields = _field_map(target_type)
    if fields is None or not isinstance(data, dict):
        return data

    matched = {}
    for key, value in data.items():
        entry = fields.get(_normalize_key(key)) if isinstance(key, str) else None
        if entry is None:
            matched[key] = value
            continue
        input_key, annotation = entry
        matched[input_key] = match_keys(annotation, value)
    return matched


class JsonSerializer:
    """JSON codec used by the request executor."""

    def __init__(self, settings: Optional[JsonSerializerSettings] = None):
        self.settings = settings or JsonSerializerSettings()

    def serialize(self, body: Any) -> bytes:
        """Encode a request body as UTF-8 JSON."""
        data = _encode(body, self.settings.camel_case)
        return json.dumps(data, ensure_ascii=self.settings.ensure_ascii).encode("utf-8")

    def deserialize(self, content: bytes, target_type: Any = Any) -> Any:
        """
        Decode a response body into ``target_type``.

        Raises:
            DeserializationError: If the body is empty, not JSON, or does not
                validate against ``target_type``
        """
        if not content or not content.strip():
            raise DeserializationError("Response body is empty", target_type=target_type)

        try:
            data = json.loads(content)
        except ValueError as e:
            raise DeserializationError(f"Response body is not valid JSON: {e}", target_type=target_type) from e

        if self.settings.case_insensitive:
            data = match_keys(target_type, data)

        try:
            return _adapter(target_type).validate_python(data)
        except pydantic.ValidationError as e:
            type_name = getattr(target_type, "__name__", str(target_type))
            raise DeserializationError(
                f"Response body does not match {type_name}: {e.error_count()} validation error(s)",
                target_type=target_type
            ) from e
