"""In-memory transport that answers each request with a scripted reply."""

from __future__ import annotations

import asyncio
from collections import deque

from redwire.connection import Connection
from redwire.protocol.codec import decode_reply
from redwire.protocol.reply import to_python


STALL = None


def split_requests(payload: bytes) -> list[list[str]]:
    commands: list[list[str]] = []
    while payload:
        request, consumed = decode_reply(payload)
        commands.append(to_python(request))
        payload = payload[consumed:]
    return commands


class ScriptedTransport:
    """Feeds one scripted reply per request, optionally in small chunks.

    ``events`` records ``("write", bytes)`` and ``("read", bytes)`` in the
    order they happen. A ``STALL`` entry never answers.
    """

    def __init__(self, replies: list[bytes | None], *, chunk_size: int | None = None) -> None:
        self.events: list[tuple[str, bytes]] = []
        self.requests: list[list[str]] = []
        self._script = deque(replies)
        self._pending = bytearray()
        self._chunk_size = chunk_size
        self._ready: asyncio.Event | None = None
        self._closed = False
        self.eof_after_script = False

    def _event(self) -> asyncio.Event:
        if self._ready is None:
            self._ready = asyncio.Event()
        return self._ready

    async def write(self, data: bytes) -> None:
        self.events.append(("write", bytes(data)))
        for command in split_requests(bytes(data)):
            self.requests.append(command)
            reply = self._script.popleft() if self._script else STALL
            if reply is not STALL:
                self._pending.extend(reply)
        if self._pending:
            self._event().set()
        await asyncio.sleep(0)

    async def read(self, max_bytes: int) -> bytes:
        while not self._pending:
            if self._closed or (self.eof_after_script and not self._script):
                return b""
            ready = self._event()
            ready.clear()
            await ready.wait()
        size = min(max_bytes, self._chunk_size or max_bytes, len(self._pending))
        chunk = bytes(self._pending[:size])
        del self._pending[:size]
        self.events.append(("read", chunk))
        await asyncio.sleep(0)
        return chunk

    def close(self) -> None:
        self._closed = True
        if self._ready is not None:
            self._ready.set()

    def is_closing(self) -> bool:
        return self._closed


def scripted_connection(replies: list[bytes | None], **kwargs: object) -> tuple[Connection, ScriptedTransport]:
    transport = ScriptedTransport(replies, **kwargs)  # type: ignore[arg-type]
    return Connection(transport, name="scripted"), transport
