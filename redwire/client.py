"""High-level client: an executor plus the command catalogue."""

from __future__ import annotations

from types import TracebackType

from redwire.commands.server import ServerCommands
from redwire.config.schema import AppConfig, ConnectionConfig, PoolConfig
from redwire.connection import Connection, open_connection
from redwire.executor import CommandExecutor
from redwire.pool import ConnectionPool
from redwire.protocol.decoders import as_optional_text, as_unit


class Redis(ServerCommands):
    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    @classmethod
    def from_config(
        cls,
        connection: ConnectionConfig,
        pool: PoolConfig | None = None,
    ) -> Redis:
        """Build a pooled client; connections are opened lazily on first use."""
        pool_config = pool or PoolConfig()

        async def _factory() -> Connection:
            return await open_connection(connection)

        executor = CommandExecutor(
            ConnectionPool(_factory, max_connections=pool_config.max_connections),
            command_timeout=connection.command_timeout_seconds,
        )
        return cls(executor)

    @classmethod
    def from_app_config(cls, config: AppConfig) -> Redis:
        return cls.from_config(config.connection, config.pool)

    @classmethod
    def from_connection(cls, connection: Connection, *, command_timeout: float | None = None) -> Redis:
        return cls(CommandExecutor.for_connection(connection, command_timeout=command_timeout))

    async def ping(self, message: str | None = None) -> str | None:
        args = [message] if message is not None else []
        return await self.executor.execute("PING", *args, decoder=as_optional_text)

    async def echo(self, message: str | bytes) -> str | None:
        return await self.executor.execute("ECHO", message, decoder=as_optional_text)

    async def select(self, db: int) -> None:
        """Switch the database of a single-connection client.

        SELECT only affects the connection that runs it, so pooled clients
        take their database from the connection url instead.
        """
        if self.executor.pool.max_connections > 1:
            raise ValueError("SELECT is per connection; set the database in the redis url for pooled clients")
        await self.executor.execute("SELECT", db, decoder=as_unit)

    def close(self) -> None:
        self.executor.close()

    async def __aenter__(self) -> Redis:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
