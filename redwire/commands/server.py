"""Server administration commands.

Each method is a single executor call: fixed command tokens plus the decoder
for the reply shape Redis documents for that command.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from redwire.executor import CommandExecutor
from redwire.protocol.decoders import (
    ServerTime,
    as_client_list,
    as_integer,
    as_mapping,
    as_optional_integer,
    as_optional_text,
    as_text_list,
    as_timestamp,
    as_unit,
)
from redwire.protocol.reply import Reply


class ClientReplyMode(str, Enum):
    ON = "ON"
    OFF = "OFF"
    SKIP = "SKIP"


class ServerCommands:
    executor: CommandExecutor

    async def bgrewriteaof(self) -> str | None:
        return await self.executor.execute("BGREWRITEAOF", decoder=as_optional_text)

    async def bgsave(self) -> str | None:
        return await self.executor.execute("BGSAVE", decoder=as_optional_text)

    async def client_getname(self) -> str | None:
        return await self.executor.execute("CLIENT", "GETNAME", decoder=as_optional_text)

    async def client_list(self) -> list[dict[str, str]]:
        return await self.executor.execute("CLIENT", "LIST", decoder=as_client_list)

    async def client_pause(self, timeout_ms: int) -> None:
        await self.executor.execute("CLIENT", "PAUSE", timeout_ms, decoder=as_unit)

    async def client_reply(self, mode: ClientReplyMode) -> None:
        # OFF and SKIP suppress the server's reply, so only ON can be awaited.
        if ClientReplyMode(mode) is not ClientReplyMode.ON:
            raise ValueError("CLIENT REPLY OFF/SKIP would leave the connection waiting for a reply")
        await self.executor.execute("CLIENT", "REPLY", ClientReplyMode(mode).value, decoder=as_unit)

    async def client_setname(self, name: str) -> None:
        await self.executor.execute("CLIENT", "SETNAME", name, decoder=as_unit)

    async def command(self) -> Reply | None:
        return await self.executor.execute_text("COMMAND")

    async def command_count(self) -> int:
        return await self.executor.execute("COMMAND", "COUNT", decoder=as_integer)

    async def command_info(self, *names: str) -> Reply | None:
        return await self.executor.execute_text("COMMAND", "INFO", *names)

    async def config_get(self, pattern: str) -> dict[str, str]:
        return await self.executor.execute("CONFIG", "GET", pattern, decoder=as_mapping)

    async def config_resetstat(self) -> None:
        await self.executor.execute("CONFIG", "RESETSTAT", decoder=as_unit)

    async def config_rewrite(self) -> None:
        await self.executor.execute("CONFIG", "REWRITE", decoder=as_unit)

    async def config_set(self, key: str, value: str | int | float | bytes) -> None:
        await self.executor.execute("CONFIG", "SET", key, value, decoder=as_unit)

    async def dbsize(self) -> int:
        return await self.executor.execute("DBSIZE", decoder=as_integer)

    async def debug_object(self, key: str | bytes) -> str | None:
        return await self.executor.execute("DEBUG", "OBJECT", key, decoder=as_optional_text)

    async def debug_segfault(self) -> str | None:
        return await self.executor.execute("DEBUG", "SEGFAULT", decoder=as_optional_text)

    async def flushall(self, asynchronous: bool = False) -> None:
        args = ["ASYNC"] if asynchronous else []
        await self.executor.execute("FLUSHALL", *args, decoder=as_unit)

    async def flushdb(self, asynchronous: bool = False) -> None:
        args = ["ASYNC"] if asynchronous else []
        await self.executor.execute("FLUSHDB", *args, decoder=as_unit)

    async def info(self, section: str | None = None) -> str | None:
        args = [section] if section else []
        return await self.executor.execute("INFO", *args, decoder=as_optional_text)

    async def lastsave(self) -> datetime:
        seconds = await self.executor.execute("LASTSAVE", decoder=as_integer)
        return datetime.fromtimestamp(seconds, UTC)

    async def memory_doctor(self) -> str | None:
        return await self.executor.execute("MEMORY", "DOCTOR", decoder=as_optional_text)

    async def memory_help(self) -> list[str] | None:
        return await self.executor.execute("MEMORY", "HELP", decoder=as_text_list)

    async def memory_malloc_stats(self) -> str | None:
        return await self.executor.execute("MEMORY", "MALLOC-STATS", decoder=as_optional_text)

    async def memory_purge(self) -> str | None:
        return await self.executor.execute("MEMORY", "PURGE", decoder=as_optional_text)

    async def memory_stats(self) -> Reply | None:
        return await self.executor.execute_text("MEMORY", "STATS")

    async def memory_usage(self, key: str | bytes, samples: int | None = None) -> int | None:
        args: list[object] = ["SAMPLES", samples] if samples is not None else []
        return await self.executor.execute("MEMORY", "USAGE", key, *args, decoder=as_optional_integer)

    async def role(self) -> Reply | None:
        return await self.executor.execute_text("ROLE")

    async def save(self) -> None:
        await self.executor.execute("SAVE", decoder=as_unit)

    async def time(self) -> ServerTime:
        return await self.executor.execute("TIME", decoder=as_timestamp)

    async def shutdown(self, save: bool = True) -> None:
        await self.executor.execute("SHUTDOWN", "SAVE" if save else "NOSAVE", decoder=as_unit)

    async def slaveof(self, host: str, port: int) -> None:
        await self.executor.execute("SLAVEOF", host, port, decoder=as_unit)

    async def slowlog(self, subcommand: str, *args: object) -> Reply | None:
        return await self.executor.execute_text("SLOWLOG", subcommand, *args)
