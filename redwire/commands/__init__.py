"""Command catalogue built on the executor."""

from .server import ClientReplyMode, ServerCommands

__all__ = ["ClientReplyMode", "ServerCommands"]
