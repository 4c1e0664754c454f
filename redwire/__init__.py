"""Asyncio Redis command/response engine."""

from .client import Redis
from .connection import Connection, StreamTransport, open_connection
from .errors import (
    CommandTimeoutError,
    EncodingError,
    IncompleteReplyError,
    ProtocolError,
    RedisCommandError,
    RedwireError,
    TransportError,
    TypeMismatchError,
)
from .executor import CommandExecutor
from .pool import ConnectionPool

__all__ = [
    "CommandExecutor",
    "CommandTimeoutError",
    "Connection",
    "ConnectionPool",
    "EncodingError",
    "IncompleteReplyError",
    "ProtocolError",
    "Redis",
    "RedisCommandError",
    "RedwireError",
    "StreamTransport",
    "TransportError",
    "TypeMismatchError",
    "open_connection",
]
