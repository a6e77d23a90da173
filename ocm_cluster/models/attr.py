# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Tri-state attribute values.

A declarative configuration distinguishes three situations for an optional
attribute: the value is not determined yet (unknown, typically before the
first apply), the user explicitly left it out (null), or it holds a value.
``Attr`` keeps the three apart so that translation code never confuses
"not decided" with "absent".
"""

from enum import Enum
from typing import Any, Callable, Generic, TypeVar, get_args

from pydantic import GetCoreSchemaHandler, TypeAdapter
from pydantic_core import core_schema

T = TypeVar("T")


class AttrState(str, Enum):
    """States an attribute can be in."""

    UNKNOWN = "unknown"
    NULL = "null"
    KNOWN = "known"


class Attr(Generic[T]):
    """
    Immutable tagged value: ``Unknown | Null | Known(value)``.

    Inside pydantic models a missing field should default to
    ``Attr.unknown()``; a raw ``None`` coerces to ``Attr.null()`` and any
    other raw value is validated against ``T`` and wrapped as known.
    """

    __slots__ = ("_state", "_value")

    def __init__(self, state: AttrState, value: T | None = None):
        if state != AttrState.KNOWN and value is not None:
            raise ValueError(f"Attr in state '{state.value}' cannot hold a value")
        self._state = state
        self._value = value

    @classmethod
    def unknown(cls) -> "Attr[Any]":
        return cls(AttrState.UNKNOWN)

    @classmethod
    def null(cls) -> "Attr[Any]":
        return cls(AttrState.NULL)

    @classmethod
    def of(cls, value: T) -> "Attr[T]":
        if value is None:
            raise ValueError("Use Attr.null() for an explicitly absent value")
        return cls(AttrState.KNOWN, value)

    @property
    def state(self) -> AttrState:
        return self._state

    @property
    def is_unknown(self) -> bool:
        return self._state == AttrState.UNKNOWN

    @property
    def is_null(self) -> bool:
        return self._state == AttrState.NULL

    @property
    def is_known(self) -> bool:
        return self._state == AttrState.KNOWN

    @property
    def value(self) -> T | None:
        """The held value, or None when the attribute is unknown or null."""
        return self._value

    def value_or(self, default: T) -> T:
        return self._value if self.is_known else default

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Attr):
            return NotImplemented
        return self._state == other._state and self._value == other._value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.is_known:
            return f"Attr.of({self._value!r})"
        return f"Attr.{self._state.value}()"

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        args = get_args(source_type)
        inner = TypeAdapter(args[0]) if args else None
        return core_schema.no_info_plain_validator_function(
            _make_validator(inner),
            serialization=core_schema.plain_serializer_function_ser_schema(
                _serialize_attr, when_used="always"
            ),
        )


def _make_validator(inner: TypeAdapter | None) -> Callable[[Any], Attr]:
    def validate(raw: Any) -> Attr:
        if isinstance(raw, Attr):
            if raw.is_known and inner is not None:
                return Attr.of(inner.validate_python(raw.value))
            return raw
        if raw is None:
            return Attr.null()
        if inner is not None:
            raw = inner.validate_python(raw)
        return Attr.of(raw)

    return validate


def _serialize_attr(attr: Attr) -> Any:
    return attr.value
