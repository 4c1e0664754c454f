"""Typed reply tree produced by the RESP parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from redwire.errors import split_error_text


@dataclass(frozen=True, slots=True)
class Status:
    value: str


@dataclass(frozen=True, slots=True)
class Error:
    text: str

    @property
    def kind(self) -> str | None:
        return split_error_text(self.text)[0]

    @property
    def message(self) -> str:
        return split_error_text(self.text)[1]


@dataclass(frozen=True, slots=True)
class Integer:
    value: int


@dataclass(frozen=True, slots=True)
class BulkString:
    value: bytes | None

    def text(self, encoding: str = "utf-8") -> str | None:
        if self.value is None:
            return None
        return self.value.decode(encoding, errors="replace")


@dataclass(frozen=True, slots=True)
class Array:
    items: tuple[Reply, ...] | None


Reply = Status | Error | Integer | BulkString | Array

NIL_BULK = BulkString(None)
NIL_ARRAY = Array(None)


def is_nil(reply: Reply) -> bool:
    match reply:
        case BulkString(value=None) | Array(items=None):
            return True
        case Status() | Error() | Integer() | BulkString() | Array():
            return False
    raise TypeError(f"not a reply: {reply!r}")


def variant_name(reply: object) -> str:
    match reply:
        case BulkString(value=None):
            return "nil BulkString"
        case Array(items=None):
            return "nil Array"
        case Status() | Error() | Integer() | BulkString() | Array():
            return type(reply).__name__
    return type(reply).__name__


def to_python(reply: Reply, encoding: str = "utf-8") -> Any:
    """Convert a reply tree into JSON-friendly values.

    Bulk strings that are not valid text come back as ``repr`` of the bytes.
    """
    match reply:
        case Status(value=value):
            return value
        case Error(text=text):
            return {"error": text}
        case Integer(value=value):
            return value
        case BulkString(value=None) | Array(items=None):
            return None
        case BulkString(value=value):
            try:
                return value.decode(encoding)
            except UnicodeDecodeError:
                return repr(value)
        case Array(items=items):
            return [to_python(item, encoding) for item in items]
    raise TypeError(f"not a reply: {reply!r}")
