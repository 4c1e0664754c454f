"""RESP wire codec, reply model and result decoders."""

from .codec import ReplyReader, decode_reply, encode_command, encode_pipeline
from .reply import Array, BulkString, Error, Integer, Reply, Status, is_nil, to_python

__all__ = [
    "Array",
    "BulkString",
    "Error",
    "Integer",
    "Reply",
    "ReplyReader",
    "Status",
    "decode_reply",
    "encode_command",
    "encode_pipeline",
    "is_nil",
    "to_python",
]
