"""Command executor: encode, send, await exactly one reply, decode."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Sequence, TypeVar, overload

from redwire.connection import Connection
from redwire.core.logging import emit_metric, get_logger
from redwire.errors import CommandTimeoutError, RedisCommandError
from redwire.pool import ConnectionPool
from redwire.protocol.codec import encode_command, encode_pipeline
from redwire.protocol.decoders import as_raw
from redwire.protocol.reply import Error, Reply


T = TypeVar("T")

logger = get_logger("redwire.executor")


class _Unset:
    def __repr__(self) -> str:
        return "<unset>"


UNSET: Any = _Unset()


def _command_name(command: str | bytes) -> str:
    if isinstance(command, bytes):
        return command.decode("utf-8", errors="replace").upper()
    return str(command).upper()


class CommandExecutor:
    """Issues commands over a pool; never retries.

    Whether a command may be repeated after a transport failure depends on
    the command, so that decision stays with the caller.
    """

    def __init__(self, pool: ConnectionPool, *, command_timeout: float | None = None) -> None:
        self.pool = pool
        self.command_timeout = command_timeout

    @classmethod
    def for_connection(cls, connection: Connection, *, command_timeout: float | None = None) -> CommandExecutor:
        return cls(ConnectionPool.from_connection(connection), command_timeout=command_timeout)

    @overload
    async def execute(
        self,
        command: str | bytes,
        *args: object,
        decoder: None = None,
        timeout: float | None = ...,
    ) -> Reply: ...

    @overload
    async def execute(
        self,
        command: str | bytes,
        *args: object,
        decoder: Callable[[Reply], T],
        timeout: float | None = ...,
    ) -> T: ...

    async def execute(
        self,
        command: str | bytes,
        *args: object,
        decoder: Callable[[Reply], Any] | None = None,
        timeout: float | None = UNSET,
    ) -> Any:
        payload = encode_command(command, *args)
        name = _command_name(command)
        (reply,) = await self._run(name, payload, expected=1, timeout=timeout)
        if isinstance(reply, Error):
            raise RedisCommandError.from_text(reply.text)
        if decoder is None:
            return reply
        return decoder(reply)

    async def execute_text(
        self,
        command: str | bytes,
        *args: object,
        timeout: float | None = UNSET,
    ) -> Reply | None:
        """Raw reply tree for results without a fixed shape; ``None`` for nil."""
        return await self.execute(command, *args, decoder=as_raw, timeout=timeout)

    async def pipeline(
        self,
        commands: Sequence[Sequence[object]],
        *,
        raise_on_error: bool = True,
        timeout: float | None = UNSET,
    ) -> list[Reply]:
        """Send every command in one write and read their replies in order.

        All replies are consumed before an error reply is raised, so the
        connection stays aligned either way.
        """
        if not commands:
            return []
        payload = encode_pipeline(commands)
        name = f"PIPELINE[{len(commands)}]"
        replies = await self._run(name, payload, expected=len(commands), timeout=timeout)
        if raise_on_error:
            for reply in replies:
                if isinstance(reply, Error):
                    raise RedisCommandError.from_text(reply.text)
        return replies

    async def _run(self, name: str, payload: bytes, *, expected: int, timeout: float | None) -> list[Reply]:
        seconds = self.command_timeout if timeout is UNSET else timeout
        started = time.perf_counter()
        try:
            if seconds is None:
                replies = await self._round_trip(payload, expected)
            else:
                replies = await asyncio.wait_for(self._round_trip(payload, expected), timeout=seconds)
        except TimeoutError as exc:
            logger.warning("command timed out", extra={"command": name, "payload": {"timeout_seconds": seconds}})
            raise CommandTimeoutError(name, seconds) from exc  # type: ignore[arg-type]
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        emit_metric(
            logger,
            name="command_latency_ms",
            value=elapsed_ms,
            command=name,
            payload={"request_bytes": len(payload), "replies": expected},
        )
        return replies

    async def _round_trip(self, payload: bytes, expected: int) -> list[Reply]:
        async with self.pool.connection() as conn:
            await conn.send(payload)
            return [await conn.read_reply() for _ in range(expected)]

    def close(self) -> None:
        self.pool.close()
