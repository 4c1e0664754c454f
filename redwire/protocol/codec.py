"""RESP request encoding and incremental reply parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Iterable, Sequence

from redwire.errors import EncodingError, IncompleteReplyError, ProtocolError
from redwire.protocol.reply import NIL_ARRAY, NIL_BULK, Array, BulkString, Error, Integer, Reply, Status


CRLF = b"\r\n"
DEFAULT_MAX_BULK_BYTES = 512 * 1024 * 1024
DEFAULT_MAX_LINE_BYTES = 65_536
DEFAULT_MAX_DEPTH = 512
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_NUMBER_RE = re.compile(rb"-?[0-9]+")


def encode_arg(value: object) -> bytes:
    # bool is an int subclass; flags must be spelled out as literal tokens.
    if isinstance(value, bool):
        raise EncodingError("boolean arguments are ambiguous; pass an explicit token")
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, int):
        return str(value).encode("ascii")
    if isinstance(value, float):
        return repr(value).encode("ascii")
    raise EncodingError(f"cannot encode argument of type {type(value).__name__}")


def encode_command(command: str | bytes, *args: object) -> bytes:
    """Serialize one command as a RESP array of bulk strings."""
    tokens = [encode_arg(command), *(encode_arg(arg) for arg in args)]
    if not tokens[0]:
        raise EncodingError("command name must not be empty")
    payload = [b"*%d\r\n" % len(tokens)]
    for token in tokens:
        payload.append(b"$%d\r\n" % len(token))
        payload.append(token)
        payload.append(CRLF)
    return b"".join(payload)


def encode_pipeline(commands: Iterable[Sequence[object]]) -> bytes:
    chunks: list[bytes] = []
    for command in commands:
        if not command:
            raise EncodingError("pipeline entries must contain a command name")
        chunks.append(encode_command(command[0], *command[1:]))  # type: ignore[arg-type]
    return b"".join(chunks)


@dataclass(slots=True)
class _ArrayFrame:
    count: int
    items: list[Reply] = field(default_factory=list)


class ReplyReader:
    """Buffer fed with raw bytes from which whole replies are taken.

    ``read_reply`` either returns one complete reply, dropping exactly its
    bytes from the buffer, or raises ``IncompleteReplyError`` and keeps every
    byte. Elements of a partially received array that were already decoded
    are kept on a frame stack, so each element is decoded once no matter how
    many chunks the reply arrives in.
    """

    def __init__(
        self,
        *,
        max_bulk_bytes: int = DEFAULT_MAX_BULK_BYTES,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.max_bulk_bytes = max_bulk_bytes
        self.max_line_bytes = max_line_bytes
        self.max_depth = max_depth
        self._buffer = bytearray()
        self._pos = 0
        self._frames: list[_ArrayFrame] = []
        self._eof = False

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        if self._eof:
            raise ProtocolError("data fed after end of stream")
        self._buffer.extend(data)

    def feed_eof(self) -> None:
        self._eof = True

    def read_reply(self) -> Reply:
        while True:
            value = self._read_element()
            if value is None:
                continue
            while self._frames:
                frame = self._frames[-1]
                frame.items.append(value)
                if len(frame.items) < frame.count:
                    break
                self._frames.pop()
                value = Array(tuple(frame.items))
            if not self._frames:
                del self._buffer[: self._pos]
                self._pos = 0
                return value

    def _read_element(self) -> Reply | None:
        """Decode the element at the cursor and advance past it.

        Returns ``None`` after opening a non-empty array; its elements follow.
        """
        pos = self._pos
        self._require(pos + 1)
        prefix = self._buffer[pos : pos + 1]
        line, pos = self._readline(pos + 1)

        value: Reply
        if prefix == b"+":
            value = Status(line.decode("utf-8", errors="replace"))
        elif prefix == b"-":
            value = Error(line.decode("utf-8", errors="replace"))
        elif prefix == b":":
            value = Integer(self._number(line, "integer"))
        elif prefix == b"$":
            length = self._number(line, "bulk length")
            if length == -1:
                value = NIL_BULK
            elif length < -1:
                raise ProtocolError(f"invalid bulk length {length}")
            elif length > self.max_bulk_bytes:
                raise ProtocolError(f"bulk length {length} exceeds limit {self.max_bulk_bytes}")
            else:
                end = pos + length
                self._require(end + 2)
                if self._buffer[end : end + 2] != CRLF:
                    raise ProtocolError("bulk string is not terminated by CRLF")
                value = BulkString(bytes(self._buffer[pos:end]))
                pos = end + 2
        elif prefix == b"*":
            count = self._number(line, "array length")
            if count == -1:
                value = NIL_ARRAY
            elif count < -1:
                raise ProtocolError(f"invalid array length {count}")
            elif count == 0:
                value = Array(())
            else:
                if len(self._frames) >= self.max_depth:
                    raise ProtocolError(f"array nesting exceeds {self.max_depth} levels")
                self._frames.append(_ArrayFrame(count))
                self._pos = pos
                return None
        else:
            raise ProtocolError(f"unknown reply type prefix {bytes(prefix)!r}")
        self._pos = pos
        return value

    def _readline(self, pos: int) -> tuple[bytes, int]:
        end = self._buffer.find(CRLF, pos)
        if end < 0:
            if len(self._buffer) - pos > self.max_line_bytes:
                raise ProtocolError(f"reply line exceeds {self.max_line_bytes} bytes")
            self._require(len(self._buffer) + 1)
        if end - pos > self.max_line_bytes:
            raise ProtocolError(f"reply line exceeds {self.max_line_bytes} bytes")
        return bytes(self._buffer[pos:end]), end + 2

    def _require(self, end: int) -> None:
        if len(self._buffer) >= end:
            return
        if self._eof:
            raise ProtocolError("premature end of stream")
        raise IncompleteReplyError(f"need {end - len(self._buffer)} more byte(s)")

    @staticmethod
    def _number(line: bytes, what: str) -> int:
        if not _NUMBER_RE.fullmatch(line):
            raise ProtocolError(f"invalid {what} {line!r}")
        value = int(line)
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ProtocolError(f"{what} {value} is outside the 64-bit range")
        return value


def decode_reply(data: bytes) -> tuple[Reply, int]:
    """Decode the first complete reply in ``data``.

    Returns the reply and the number of bytes it occupied. Raises
    ``IncompleteReplyError`` when ``data`` ends inside the reply.
    """
    reader = ReplyReader()
    reader.feed(data)
    reply = reader.read_reply()
    return reply, len(data) - reader.buffered
