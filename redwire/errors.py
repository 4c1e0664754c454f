"""Exception taxonomy for the command/response engine."""

from __future__ import annotations

import re


_ERROR_KIND_RE = re.compile(r"[A-Z][A-Z0-9_]*")


class RedwireError(Exception):
    """Base class for every error raised by redwire."""


class EncodingError(RedwireError):
    """A command argument has no byte representation."""


class ProtocolError(RedwireError):
    """Malformed bytes on the wire; the stream can no longer be trusted."""


class IncompleteReplyError(RedwireError):
    """The buffer holds only part of a reply; more bytes are needed."""


class TransportError(RedwireError):
    """The underlying connection failed or was closed."""


class CommandTimeoutError(TransportError):
    def __init__(self, command: str, timeout: float) -> None:
        super().__init__(f"command '{command}' timed out after {timeout:g}s")
        self.command = command
        self.timeout = timeout


class RedisCommandError(RedwireError):
    """The server answered with an error reply."""

    def __init__(self, message: str, kind: str | None = None) -> None:
        super().__init__(f"{kind} {message}".strip() if kind else message)
        self.kind = kind
        self.message = message

    @classmethod
    def from_text(cls, text: str) -> "RedisCommandError":
        kind, message = split_error_text(text)
        return cls(message, kind=kind)


class TypeMismatchError(RedwireError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"expected {expected} reply, got {actual}")
        self.expected = expected
        self.actual = actual


def split_error_text(text: str) -> tuple[str | None, str]:
    """Split ``"WRONGTYPE Operation against..."`` into kind and message.

    The leading word counts as the error kind only when it is an upper-case
    token, which is how Redis prefixes its error replies.
    """
    head, _, rest = text.partition(" ")
    if _ERROR_KIND_RE.fullmatch(head):
        return head, rest
    return None, text
