"""Conversion of decoded JSON results into typed values.

Every call site declares the shape it expects:

- ``Shape.single(target)``: the result is one value, returned as ``[value]``
- ``Shape.many(target)``: the result is a JSON array, each element converted

Targets are plain type expressions: ``int``, ``float``, ``str``, ``bool``,
``Any`` (opaque pass-through), ``X | None``, ``list[X]``, ``dict[str, X]``,
fixed tuples such as ``tuple[int, Record]`` for heterogeneous entries, and
dataclass record types.
"""

from __future__ import annotations

import dataclasses
import functools
import types
import typing
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .errors import SteemResponseError, SteemTransformationError
from .protocol import ResponseEnvelope

#: Field name a record can declare to receive the tag of a tagged variant.
VARIANT_TAG_FIELD = "op_type"


class ShapeKind(Enum):
    """Top-level layout of a result."""

    SINGLE = "single"
    MANY = "many"


@dataclass(frozen=True)
class Shape:
    """Expected layout and element type of a result."""

    kind: ShapeKind
    target: Any

    @classmethod
    def single(cls, target: Any = Any) -> Shape:
        return cls(ShapeKind.SINGLE, target)

    @classmethod
    def many(cls, target: Any = Any) -> Shape:
        return cls(ShapeKind.MANY, target)


def describe(target: Any) -> str:
    """Readable name of a target for error messages."""
    if isinstance(target, type) and not typing.get_args(target):
        return target.__name__
    return str(target).replace("typing.", "")


def _fail(value: Any, target: Any, reason: str = "") -> SteemTransformationError:
    message = f"Cannot convert {value!r:.200} to {describe(target)}"
    if reason:
        message = f"{message}: {reason}"
    return SteemTransformationError(message, value=value, target=describe(target))


@functools.lru_cache(maxsize=None)
def _record_hints(cls: type) -> dict[str, Any]:
    return typing.get_type_hints(cls)


def _convert_record(value: Any, target: type) -> Any:
    tag: str | None = None
    # Tagged variant: ["vote", {...}]
    if (
        isinstance(value, list)
        and len(value) == 2
        and isinstance(value[0], str)
        and isinstance(value[1], dict)
    ):
        tag, value = value
    if not isinstance(value, dict):
        raise _fail(value, target, "expected a JSON object")

    hints = _record_hints(target)
    kwargs: dict[str, Any] = {}
    for field in dataclasses.fields(target):
        if not field.init:
            continue
        if field.name in value:
            if tag is None:
                kwargs[field.name] = convert(value[field.name], hints[field.name])
                continue
            # Variant bodies differ per tag; a field that does not fit keeps
            # its default.
            try:
                kwargs[field.name] = convert(value[field.name], hints[field.name])
            except SteemTransformationError:
                continue
        elif field.name == VARIANT_TAG_FIELD and tag is not None:
            kwargs[field.name] = tag
    try:
        return target(**kwargs)
    except TypeError as err:
        raise _fail(value, target, str(err)) from err


def convert(value: Any, target: Any) -> Any:
    """Convert one decoded JSON value into ``target``.

    Raises:
        SteemTransformationError: If the value does not fit the target
    """
    if target is Any or target is object:
        return value

    origin = typing.get_origin(target)
    args = typing.get_args(target)

    if origin is Union or origin is types.UnionType:
        if value is None and type(None) in args:
            return None
        candidates = [arg for arg in args if arg is not type(None)]
        for candidate in candidates[:-1]:
            try:
                return convert(value, candidate)
            except SteemTransformationError:
                continue
        return convert(value, candidates[-1])

    if value is None:
        raise _fail(value, target, "value is null")

    if origin is list:
        if not isinstance(value, list):
            raise _fail(value, target, "expected a JSON array")
        item_type = args[0] if args else Any
        return [convert(item, item_type) for item in value]

    if origin is tuple:
        if not isinstance(value, list):
            raise _fail(value, target, "expected a JSON array")
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(convert(item, args[0]) for item in value)
        if len(value) != len(args):
            raise _fail(value, target, f"expected {len(args)} elements")
        return tuple(convert(item, arg) for item, arg in zip(value, args))

    if origin is dict:
        if not isinstance(value, dict):
            raise _fail(value, target, "expected a JSON object")
        value_type = args[1] if len(args) == 2 else Any
        return {str(key): convert(item, value_type) for key, item in value.items()}

    if dataclasses.is_dataclass(target) and isinstance(target, type):
        return _convert_record(value, target)

    if target is bool:
        if isinstance(value, bool):
            return value
        raise _fail(value, target)

    if target is int:
        if isinstance(value, bool):
            raise _fail(value, target)
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError as err:
                raise _fail(value, target) from err
        raise _fail(value, target)

    if target is float:
        if isinstance(value, bool):
            raise _fail(value, target)
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError as err:
                raise _fail(value, target) from err
        raise _fail(value, target)

    if target is str:
        if isinstance(value, str):
            return value
        raise _fail(value, target)

    if isinstance(target, type) and isinstance(value, target):
        return value

    raise _fail(value, target, "unsupported target")


def transform(envelope: ResponseEnvelope, shape: Shape) -> list[Any]:
    """Turn a response envelope into the list of typed values.

    Raises:
        SteemResponseError: If the node reported an error
        SteemTransformationError: If any element does not fit ``shape``
    """
    if envelope.error is not None:
        raise SteemResponseError(
            envelope.error.code, envelope.error.message, envelope.error.data
        )

    result = envelope.result
    if shape.kind is ShapeKind.SINGLE:
        return [convert(result, shape.target)]

    if not isinstance(result, list):
        raise _fail(result, list[shape.target], "expected a JSON array")
    return [convert(item, shape.target) for item in result]
