"""Byte transports and the single-stream RESP connection built on them."""

from __future__ import annotations

import asyncio
from typing import Protocol

from redwire.config.schema import ConnectionConfig, parse_redis_url, redact_redis_url
from redwire.core.logging import get_logger
from redwire.errors import IncompleteReplyError, RedisCommandError, TransportError
from redwire.protocol.codec import ReplyReader, encode_command
from redwire.protocol.reply import Error, Reply


READ_CHUNK_BYTES = 65_536

logger = get_logger("redwire.connection")


class Transport(Protocol):
    async def write(self, data: bytes) -> None: ...

    async def read(self, max_bytes: int) -> bytes: ...

    def close(self) -> None: ...

    def is_closing(self) -> bool: ...


class StreamTransport:
    """Adapter over an already-connected ``asyncio`` stream pair."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer

    async def write(self, data: bytes) -> None:
        try:
            self._writer.write(data)
            await self._writer.drain()
        except (ConnectionError, OSError) as exc:
            raise TransportError(f"write failed: {exc}") from exc

    async def read(self, max_bytes: int) -> bytes:
        try:
            return await self._reader.read(max_bytes)
        except (ConnectionError, OSError) as exc:
            raise TransportError(f"read failed: {exc}") from exc

    def close(self) -> None:
        if not self._writer.is_closing():
            self._writer.close()

    def is_closing(self) -> bool:
        return self._writer.is_closing()


class Connection:
    """One RESP stream: writes requests and reads whole replies in order.

    A connection never interleaves requests on its own; callers sharing one
    must go through a :class:`~redwire.pool.ConnectionPool`.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        reader: ReplyReader | None = None,
        name: str = "",
    ) -> None:
        self.transport = transport
        self.name = name
        self._replies = reader or ReplyReader()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed or self.transport.is_closing()

    async def send(self, payload: bytes) -> None:
        if self.closed:
            raise TransportError("connection is closed")
        await self.transport.write(payload)

    async def read_reply(self) -> Reply:
        while True:
            try:
                return self._replies.read_reply()
            except IncompleteReplyError:
                pass
            if self.closed:
                raise TransportError("connection is closed")
            chunk = await self.transport.read(READ_CHUNK_BYTES)
            if chunk:
                self._replies.feed(chunk)
                continue
            if self._replies.buffered:
                # Raises ProtocolError for the truncated reply.
                self._replies.feed_eof()
                continue
            raise TransportError("connection closed by server")

    async def call(self, command: str, *args: object) -> Reply:
        """Round-trip one command without any locking; setup use only."""
        await self.send(encode_command(command, *args))
        reply = await self.read_reply()
        if isinstance(reply, Error):
            raise RedisCommandError.from_text(reply.text)
        return reply

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.transport.close()
        logger.debug("connection closed", extra={"payload": {"connection": self.name}})

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Connection {self.name or id(self)} {state}>"


async def open_connection(config: ConnectionConfig) -> Connection:
    """Connect, authenticate and select the configured database."""
    endpoint = parse_redis_url(config.url)
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(endpoint.host, endpoint.port),
            timeout=config.connect_timeout_seconds,
        )
    except TimeoutError as exc:
        raise TransportError(f"connect to {endpoint.address} timed out") from exc
    except OSError as exc:
        raise TransportError(f"connect to {endpoint.address} failed: {exc}") from exc

    connection = Connection(
        StreamTransport(reader, writer),
        reader=ReplyReader(max_bulk_bytes=config.max_bulk_bytes),
        name=endpoint.address,
    )
    try:
        if endpoint.password is not None:
            if endpoint.username:
                await connection.call("AUTH", endpoint.username, endpoint.password)
            else:
                await connection.call("AUTH", endpoint.password)
        if endpoint.db:
            await connection.call("SELECT", endpoint.db)
        if config.client_name:
            await connection.call("CLIENT", "SETNAME", config.client_name)
    except BaseException:
        connection.close()
        raise

    logger.info(
        "connection established",
        extra={"payload": {"redis_url": redact_redis_url(config.url), "db": endpoint.db}},
    )
    return connection
