"""Connection pool with guaranteed release or disposal on every exit path."""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from redwire.connection import Connection
from redwire.core.logging import get_logger
from redwire.errors import RedisCommandError, TransportError, TypeMismatchError


ConnectionFactory = Callable[[], Awaitable[Connection]]

logger = get_logger("redwire.pool")


class ConnectionPool:
    """Hands out at most one caller per connection at a time.

    A connection is returned to the idle set only when the protocol stream is
    known to be aligned: after a normal exit, a server error reply or a
    decode mismatch. Any other exception, including cancellation and
    timeouts, leaves a reply possibly still owed, so the connection is closed.
    """

    def __init__(self, factory: ConnectionFactory | None, *, max_connections: int = 8) -> None:
        self._factory = factory
        self.max_connections = max(1, int(max_connections))
        self._slots = asyncio.BoundedSemaphore(self.max_connections)
        self._idle: deque[Connection] = deque()
        self._in_use: set[Connection] = set()
        self._closed = False

    @classmethod
    def from_connection(cls, connection: Connection) -> ConnectionPool:
        """Serialize every caller onto one injected connection."""
        pool = cls(None, max_connections=1)
        pool._idle.append(connection)
        return pool

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def idle(self) -> int:
        return len(self._idle)

    @property
    def in_use(self) -> int:
        return len(self._in_use)

    @property
    def size(self) -> int:
        return self.idle + self.in_use

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Connection]:
        conn = await self._acquire()
        try:
            yield conn
        except (RedisCommandError, TypeMismatchError):
            self._release(conn)
            raise
        except BaseException as exc:
            self._discard(conn, reason=f"{type(exc).__name__}: {exc}")
            raise
        else:
            self._release(conn)

    async def _acquire(self) -> Connection:
        if self._closed:
            raise TransportError("connection pool is closed")
        await self._slots.acquire()
        try:
            if self._closed:
                raise TransportError("connection pool is closed")
            while self._idle:
                candidate = self._idle.popleft()
                if not candidate.closed:
                    self._in_use.add(candidate)
                    return candidate
            if self._factory is None:
                raise TransportError("connection is no longer available")
            conn = await self._factory()
        except BaseException:
            self._slots.release()
            raise
        self._in_use.add(conn)
        logger.debug("connection opened", extra={"payload": {"pool_size": self.size}})
        return conn

    def _release(self, conn: Connection) -> None:
        self._in_use.discard(conn)
        if self._closed or conn.closed:
            conn.close()
        else:
            self._idle.append(conn)
        self._slots.release()

    def _discard(self, conn: Connection, *, reason: str) -> None:
        self._in_use.discard(conn)
        conn.close()
        self._slots.release()
        logger.warning(
            "connection discarded",
            extra={"payload": {"connection": conn.name, "reason": reason, "pool_size": self.size}},
        )

    def close(self) -> None:
        self._closed = True
        while self._idle:
            self._idle.popleft().close()
