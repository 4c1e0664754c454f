"""Reply decoders, one per result shape a command wrapper can ask for."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
import re
from typing import Callable, NoReturn, TypeVar

from redwire.errors import RedisCommandError, TypeMismatchError
from redwire.protocol.reply import Array, BulkString, Error, Integer, Reply, Status, is_nil, variant_name


T = TypeVar("T")
Decoder = Callable[[Reply], T]

_DECIMAL_RE = re.compile(rb"-?[0-9]+")


@dataclass(frozen=True, slots=True)
class ServerTime:
    seconds: int
    microseconds: int

    def as_datetime(self) -> datetime:
        # Out-of-range microseconds carry into the seconds.
        return datetime.fromtimestamp(self.seconds, UTC) + timedelta(microseconds=self.microseconds)


def _raise_error(reply: Error) -> NoReturn:
    raise RedisCommandError.from_text(reply.text)


def _mismatch(expected: str, reply: object) -> TypeMismatchError:
    return TypeMismatchError(expected=expected, actual=variant_name(reply))


def _element_text(item: Reply, expected: str) -> str:
    match item:
        case Error():
            _raise_error(item)
        case BulkString(value=None):
            return ""
        case BulkString(value=value):
            return value.decode("utf-8", errors="replace")
        case Status(value=value):
            return value
        case Integer() | Array():
            raise _mismatch(expected, item)
    raise _mismatch(expected, item)


def as_optional_text(reply: Reply) -> str | None:
    match reply:
        case Error():
            _raise_error(reply)
        case Status(value=value):
            return value
        case BulkString():
            return reply.text()
        case Integer() | Array():
            raise _mismatch("optional text", reply)
    raise _mismatch("optional text", reply)


def as_integer(reply: Reply) -> int:
    match reply:
        case Error():
            _raise_error(reply)
        case Integer(value=value):
            return value
        case Status() | BulkString() | Array():
            raise _mismatch("integer", reply)
    raise _mismatch("integer", reply)


def as_text_list(reply: Reply) -> list[str] | None:
    match reply:
        case Error():
            _raise_error(reply)
        case Array(items=None):
            return None
        case Array(items=items):
            return [_element_text(item, "list of text") for item in items]
        case Status() | Integer() | BulkString():
            raise _mismatch("list of text", reply)
    raise _mismatch("list of text", reply)


def as_integer_list(reply: Reply) -> list[int] | None:
    match reply:
        case Error():
            _raise_error(reply)
        case Array(items=None):
            return None
        case Array(items=items):
            return [as_integer(item) for item in items]
        case Status() | Integer() | BulkString():
            raise _mismatch("list of integers", reply)
    raise _mismatch("list of integers", reply)


def as_mapping(reply: Reply) -> dict[str, str]:
    """Pair up a flat ``[k1, v1, k2, v2, ...]`` array, preserving order."""
    match reply:
        case Error():
            _raise_error(reply)
        case Array(items=None):
            raise _mismatch("key/value array", reply)
        case Array(items=items) if len(items) % 2:
            raise TypeMismatchError(
                expected="key/value array with an even element count",
                actual=f"Array of {len(items)} elements",
            )
        case Array(items=items):
            texts = [_element_text(item, "key/value array") for item in items]
            return dict(zip(texts[0::2], texts[1::2]))
        case Status() | Integer() | BulkString():
            raise _mismatch("key/value array", reply)
    raise _mismatch("key/value array", reply)


def as_unit(reply: Reply) -> None:
    match reply:
        case Error():
            _raise_error(reply)
        case Status() | Integer() | BulkString() | Array():
            return None
    raise _mismatch("any reply", reply)


def as_raw(reply: Reply) -> Reply | None:
    match reply:
        case Error():
            _raise_error(reply)
        case Status() | Integer() | BulkString() | Array():
            return None if is_nil(reply) else reply
    raise _mismatch("any reply", reply)


def _timestamp_part(item: Reply) -> int:
    match item:
        case Error():
            _raise_error(item)
        case Integer(value=value):
            return value
        # Redis itself sends TIME as two decimal bulk strings.
        case BulkString(value=value) if value is not None and _DECIMAL_RE.fullmatch(value):
            return int(value)
        case Status() | BulkString() | Array():
            raise _mismatch("integer timestamp part", item)
    raise _mismatch("integer timestamp part", item)


def as_timestamp(reply: Reply) -> ServerTime:
    match reply:
        case Error():
            _raise_error(reply)
        case Array(items=None):
            raise _mismatch("two-element integer array", reply)
        case Array(items=items) if len(items) != 2:
            raise TypeMismatchError(
                expected="two-element integer array",
                actual=f"Array of {len(items)} elements",
            )
        case Array(items=(seconds, microseconds)):
            return ServerTime(seconds=_timestamp_part(seconds), microseconds=_timestamp_part(microseconds))
        case Status() | Integer() | BulkString():
            raise _mismatch("two-element integer array", reply)
    raise _mismatch("two-element integer array", reply)


def parse_client_line(line: str) -> dict[str, str]:
    attributes: dict[str, str] = {}
    for field in line.split(" "):
        if not field:
            continue
        key, _, value = field.partition("=")
        attributes[key] = value
    return attributes


def as_client_list(reply: Reply) -> list[dict[str, str]]:
    """Decode ``CLIENT LIST`` output into one attribute map per client."""
    text = as_optional_text(reply) or ""
    return [parse_client_line(line) for line in text.splitlines() if line.strip()]


def parse_info(text: str) -> dict[str, dict[str, str]]:
    """Split an ``INFO`` payload into ``{section: {field: value}}``.

    Fields that appear before any ``# Section`` header land in ``""``.
    """
    sections: dict[str, dict[str, str]] = {}
    current = ""
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("#"):
            current = line.lstrip("#").strip().lower()
            sections.setdefault(current, {})
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        sections.setdefault(current, {})[key] = value
    return sections


def as_optional_integer(reply: Reply) -> int | None:
    """Integer, or ``None`` for commands that answer a missing key with nil."""
    match reply:
        case Error():
            _raise_error(reply)
        case Integer(value=value):
            return value
        case BulkString(value=None) | Array(items=None):
            return None
        case Status() | BulkString() | Array():
            raise _mismatch("optional integer", reply)
    raise _mismatch("optional integer", reply)
