"""
Strict JSON request-body decoding.

Responsibility: Read a size-limited body, decode exactly one JSON value into a
caller-chosen type and report failures with a precise DecodeError subclass
instead of a generic parse error. No HTTP responses are produced here.

Checks run in this order: size, emptiness, syntax, unknown keys, field types,
trailing values. The target value is only returned once every check passed.
"""

import dataclasses
import json
import logging
import re
import types
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin, get_type_hints

from pydantic import AliasChoices, AliasPath, BaseModel, TypeAdapter, ValidationError
from starlette.requests import Request
from typing_extensions import is_typeddict

from ingestkit.core.config import ALLOW_UNKNOWN_FIELDS, MAX_JSON_SIZE
from ingestkit.core.errors import (
    BodyTooLargeError,
    EmptyBodyError,
    MalformedSyntaxError,
    MissingFieldError,
    MultipleValuesError,
    UnknownFieldError,
    WrongFieldTypeError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# JSON insignificant whitespace (RFC 8259); str.strip() would accept more
_JSON_WS = re.compile(r"[ \t\n\r]*")

# skips string tokens so a literal quoted earlier in the body is not matched
_CONSTANT_SCAN = re.compile(r'"(?:[^"\\]|\\.)*"|(-?Infinity|NaN)')

_LIST_ORIGINS = (list, set, frozenset)


@dataclass(frozen=True)
class JSONIngestSpec:
    """Decode policy for a single call."""

    max_body_size: int = MAX_JSON_SIZE
    allow_unknown_fields: bool = False

    @classmethod
    def from_config(cls) -> "JSONIngestSpec":
        return cls(max_body_size=MAX_JSON_SIZE, allow_unknown_fields=ALLOW_UNKNOWN_FIELDS)


class _NonStandardLiteral(ValueError):
    def __init__(self, literal: str) -> None:
        self.literal = literal
        super().__init__(f"invalid literal {literal}")


def _reject_constant(literal: str) -> Any:
    raise _NonStandardLiteral(literal)


_decoder = json.JSONDecoder(parse_constant=_reject_constant)


@lru_cache(maxsize=128)
def _adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _byte_offset(text: str, pos: int) -> int:
    return len(text[:pos].encode("utf-8"))


def _constant_offset(text: str, start: int) -> int:
    """Position of the first NaN/Infinity literal outside a string, which is where the scanner stopped."""
    for match in _CONSTANT_SCAN.finditer(text, start):
        if match.group(1):
            return match.start(1)
    return start


def _format_loc(loc: tuple[int | str, ...]) -> str:
    out = ""
    for part in loc:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out = f"{out}.{part}" if out else str(part)
    return out


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _alias_keys(alias: Any) -> list[tuple[str, bool]]:
    """Top-level JSON keys an alias accepts, each flagged True when it maps straight to the field."""
    if isinstance(alias, str):
        return [(alias, True)]
    if isinstance(alias, AliasPath):
        head = alias.path[0] if alias.path else None
        return [(head, len(alias.path) == 1)] if isinstance(head, str) else []
    if isinstance(alias, AliasChoices):
        return [key for choice in alias.choices for key in _alias_keys(choice)]
    return []


def _declared_fields(annotation: Any) -> dict[str, Any] | None:
    """Map accepted JSON keys to their annotations, or None if ``annotation`` is not record-like."""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        config = annotation.model_config
        by_name = bool(config.get("populate_by_name") or config.get("validate_by_name"))
        known: dict[str, Any] = {}
        for name, info in annotation.model_fields.items():
            alias = info.validation_alias if info.validation_alias is not None else info.alias
            if alias is None or by_name:
                known[name] = info.annotation
            for key, direct in _alias_keys(alias):
                # an AliasPath key holds a container, not the field value
                known[key] = info.annotation if direct else Any
        return known
    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        hints = get_type_hints(annotation, include_extras=True)
        return {f.name: hints.get(f.name, Any) for f in dataclasses.fields(annotation)}
    if is_typeddict(annotation):
        return get_type_hints(annotation, include_extras=True)
    return None


def _shape_matches(value: Any, annotation: Any) -> bool:
    if annotation is Any:
        return True
    origin = get_origin(annotation)
    if isinstance(value, dict):
        return _declared_fields(annotation) is not None or origin is dict or annotation is dict
    if isinstance(value, list):
        return origin in _LIST_ORIGINS or origin is tuple or annotation in (list, tuple)
    return False


def find_unknown_key(value: Any, annotation: Any, path: str = "") -> str | None:
    """
    Return the dotted path of the first object key in ``value`` that ``annotation`` does not declare.

    Only structure is inspected here; values of the wrong type are left for
    validation to report.
    """
    origin = get_origin(annotation)
    if origin is Annotated:
        return find_unknown_key(value, get_args(annotation)[0], path)

    if origin is Union or origin is types.UnionType:
        candidates = [
            arg for arg in get_args(annotation)
            if arg is not type(None) and _shape_matches(value, arg)
        ]
        found = [find_unknown_key(value, arg, path) for arg in candidates]
        if not found or any(f is None for f in found):
            return None
        return found[0]

    if isinstance(value, dict):
        known = _declared_fields(annotation)
        if known is not None:
            for key, item in value.items():
                if key not in known:
                    return _join(path, key)
                nested = find_unknown_key(item, known[key], _join(path, key))
                if nested:
                    return nested
            return None
        if origin is dict:
            args = get_args(annotation)
            item_type = args[1] if len(args) == 2 else Any
            for key, item in value.items():
                nested = find_unknown_key(item, item_type, _join(path, key))
                if nested:
                    return nested
        return None

    if isinstance(value, list):
        args = get_args(annotation)
        if origin in _LIST_ORIGINS:
            item_types = [args[0] if args else Any] * len(value)
        elif origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                item_types = [args[0]] * len(value)
            else:
                item_types = list(args)
        else:
            return None
        for i, (item, item_type) in enumerate(zip(value, item_types)):
            nested = find_unknown_key(item, item_type, f"{path}[{i}]")
            if nested:
                return nested
    return None


def decode_json(body: bytes, spec: JSONIngestSpec, target: type[T]) -> T:
    """
    Decode ``body`` into a new ``target`` value.

    Args:
        body: Raw request body.
        spec: Size limit and unknown-field policy for this call.
        target: Any type pydantic can validate, usually a BaseModel subclass.

    Returns:
        The fully validated value.

    Raises:
        BodyTooLargeError, EmptyBodyError, MalformedSyntaxError,
        UnknownFieldError, MissingFieldError, WrongFieldTypeError,
        MultipleValuesError.

    Values nested too deeply to decode are reported as MalformedSyntaxError.
    """
    if len(body) > spec.max_body_size:
        raise BodyTooLargeError(spec.max_body_size)

    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedSyntaxError(e.start) from e

    start = _JSON_WS.match(text).end()
    if start == len(text):
        raise EmptyBodyError()

    try:
        value, end = _decoder.raw_decode(text, start)
    except json.JSONDecodeError as e:
        raise MalformedSyntaxError(_byte_offset(text, e.pos)) from e
    except _NonStandardLiteral as e:
        raise MalformedSyntaxError(_byte_offset(text, _constant_offset(text, start))) from e
    except RecursionError as e:
        raise MalformedSyntaxError(_byte_offset(text, start)) from e

    if not spec.allow_unknown_fields:
        try:
            unknown = find_unknown_key(value, target)
        except RecursionError as e:
            raise MalformedSyntaxError(_byte_offset(text, start)) from e
        if unknown is not None:
            raise UnknownFieldError(unknown)

    try:
        result = _adapter(target).validate_json(text[start:end], strict=True)
    except RecursionError as e:
        raise MalformedSyntaxError(_byte_offset(text, start)) from e
    except ValidationError as e:
        first = e.errors()[0]
        loc = _format_loc(tuple(first.get("loc", ())))
        kind = first.get("type")
        if kind == "missing":
            raise MissingFieldError(loc) from e
        if kind == "extra_forbidden":
            raise UnknownFieldError(loc) from e
        if kind in ("json_invalid", "recursion_loop"):
            raise MalformedSyntaxError(_byte_offset(text, start)) from e
        raise WrongFieldTypeError(loc) from e

    if _JSON_WS.match(text, end).end() != len(text):
        raise MultipleValuesError()

    logger.debug("[json_decoder:decode_json] decoded %s from %d bytes", getattr(target, "__name__", target), len(body))
    return result


async def read_body_limited(request: Request, limit: int) -> bytes:
    """Read the request body, failing as soon as more than ``limit`` bytes arrive."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise BodyTooLargeError(limit)
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise BodyTooLargeError(limit)
    return bytes(body)


async def read_json(request: Request, spec: JSONIngestSpec, target: type[T]) -> T:
    """Read the body of ``request`` and decode it strictly into ``target``."""
    body = await read_body_limited(request, spec.max_body_size)
    return decode_json(body, spec, target)
