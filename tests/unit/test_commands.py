import asyncio
from datetime import UTC, datetime

import pytest

from redwire.client import Redis
from redwire.commands.server import ClientReplyMode
from redwire.config.schema import ConnectionConfig, PoolConfig
from redwire.protocol.decoders import ServerTime
from redwire.protocol.reply import Array, BulkString, Integer

from scripted import scripted_connection


def _client(replies):
    conn, transport = scripted_connection(replies)
    return Redis.from_connection(conn), transport


@pytest.mark.parametrize(
    ("call", "reply", "tokens", "expected"),
    [
        (lambda c: c.bgrewriteaof(), b"+Background append only file rewriting started\r\n", ["BGREWRITEAOF"],
         "Background append only file rewriting started"),
        (lambda c: c.bgsave(), b"+Background saving started\r\n", ["BGSAVE"], "Background saving started"),
        (lambda c: c.client_getname(), b"$-1\r\n", ["CLIENT", "GETNAME"], None),
        (lambda c: c.client_pause(250), b"+OK\r\n", ["CLIENT", "PAUSE", "250"], None),
        (lambda c: c.client_reply(ClientReplyMode.ON), b"+OK\r\n", ["CLIENT", "REPLY", "ON"], None),
        (lambda c: c.client_setname("worker-1"), b"+OK\r\n", ["CLIENT", "SETNAME", "worker-1"], None),
        (lambda c: c.command_count(), b":240\r\n", ["COMMAND", "COUNT"], 240),
        (lambda c: c.config_resetstat(), b"+OK\r\n", ["CONFIG", "RESETSTAT"], None),
        (lambda c: c.config_rewrite(), b"+OK\r\n", ["CONFIG", "REWRITE"], None),
        (lambda c: c.config_set("maxmemory", 1024), b"+OK\r\n", ["CONFIG", "SET", "maxmemory", "1024"], None),
        (lambda c: c.dbsize(), b":7\r\n", ["DBSIZE"], 7),
        (lambda c: c.debug_object("k"), b"+Value at:0x7f refcount:1\r\n", ["DEBUG", "OBJECT", "k"],
         "Value at:0x7f refcount:1"),
        (lambda c: c.flushall(), b"+OK\r\n", ["FLUSHALL"], None),
        (lambda c: c.flushall(asynchronous=True), b"+OK\r\n", ["FLUSHALL", "ASYNC"], None),
        (lambda c: c.flushdb(asynchronous=True), b"+OK\r\n", ["FLUSHDB", "ASYNC"], None),
        (lambda c: c.info("memory"), b"$18\r\n# Memory\r\nused:1\r\n\r\n", ["INFO", "memory"],
         "# Memory\r\nused:1\r\n"),
        (lambda c: c.memory_doctor(), b"$7\r\nhealthy\r\n", ["MEMORY", "DOCTOR"], "healthy"),
        (lambda c: c.memory_help(), b"*2\r\n+MEMORY DOCTOR\r\n+MEMORY USAGE\r\n", ["MEMORY", "HELP"],
         ["MEMORY DOCTOR", "MEMORY USAGE"]),
        (lambda c: c.memory_purge(), b"+OK\r\n", ["MEMORY", "PURGE"], "OK"),
        (lambda c: c.memory_usage("k"), b":72\r\n", ["MEMORY", "USAGE", "k"], 72),
        (lambda c: c.memory_usage("gone", samples=0), b"$-1\r\n", ["MEMORY", "USAGE", "gone", "SAMPLES", "0"], None),
        (lambda c: c.save(), b"+OK\r\n", ["SAVE"], None),
        (lambda c: c.slaveof("10.0.0.2", 6380), b"+OK\r\n", ["SLAVEOF", "10.0.0.2", "6380"], None),
        (lambda c: c.ping(), b"+PONG\r\n", ["PING"], "PONG"),
        (lambda c: c.echo(b"\x00bin"), b"$4\r\n\x00bin\r\n", ["ECHO", "\x00bin"], "\x00bin"),
        (lambda c: c.select(2), b"+OK\r\n", ["SELECT", "2"], None),
    ],
)
def test_command_tokens_and_decoding(call, reply, tokens, expected) -> None:
    client, transport = _client([reply])
    assert asyncio.run(call(client)) == expected
    assert transport.requests == [tokens]


def test_config_get_returns_ordered_mapping() -> None:
    client, transport = _client([b"*4\r\n$9\r\nmaxmemory\r\n$1\r\n0\r\n$16\r\nmaxmemory-policy\r\n$10\r\nnoeviction\r\n"])
    result = asyncio.run(client.config_get("maxmemory*"))
    assert list(result.items()) == [("maxmemory", "0"), ("maxmemory-policy", "noeviction")]
    assert transport.requests == [["CONFIG", "GET", "maxmemory*"]]


def test_client_list_parses_attribute_maps() -> None:
    text = b"id=3 addr=127.0.0.1:6001 name=a\nid=4 addr=127.0.0.1:6002 name=b\n"
    client, _ = _client([b"$%d\r\n%s\r\n" % (len(text), text)])
    clients = asyncio.run(client.client_list())
    assert [entry["name"] for entry in clients] == ["a", "b"]


def test_time_and_lastsave() -> None:
    client, transport = _client([b"*2\r\n$10\r\n1523900000\r\n$6\r\n123456\r\n", b":1523900000\r\n"])

    async def _scenario():
        return await client.time(), await client.lastsave()

    server_time, lastsave = asyncio.run(_scenario())
    assert server_time == ServerTime(1523900000, 123456)
    assert lastsave == datetime(2018, 4, 16, 17, 33, 20, tzinfo=UTC)
    assert transport.requests == [["TIME"], ["LASTSAVE"]]


def test_raw_reply_commands() -> None:
    replies = [
        b"*3\r\n$6\r\nmaster\r\n:0\r\n*0\r\n",
        b"*1\r\n*3\r\n:1\r\n:1523900000\r\n:15\r\n",
        b"*-1\r\n",
    ]
    client, transport = _client(replies)

    async def _scenario():
        return await client.role(), await client.slowlog("GET", 10), await client.command_info("nosuch")

    role, slowlog, info = asyncio.run(_scenario())
    assert role == Array((BulkString(b"master"), Integer(0), Array(())))
    assert slowlog.items[0].items[2] == Integer(15)
    assert info is None
    assert transport.requests == [["ROLE"], ["SLOWLOG", "GET", "10"], ["COMMAND", "INFO", "nosuch"]]


def test_shutdown_sends_save_mode() -> None:
    client, transport = _client([b"+OK\r\n", b"+OK\r\n"])

    async def _scenario():
        await client.shutdown()
        await client.shutdown(save=False)

    asyncio.run(_scenario())
    assert transport.requests == [["SHUTDOWN", "SAVE"], ["SHUTDOWN", "NOSAVE"]]


@pytest.mark.parametrize("mode", [ClientReplyMode.OFF, ClientReplyMode.SKIP, "SKIP"])
def test_client_reply_rejects_modes_without_a_reply(mode) -> None:
    client, transport = _client([])
    with pytest.raises(ValueError):
        asyncio.run(client.client_reply(mode))
    assert transport.requests == []


def test_select_is_rejected_on_pooled_client() -> None:
    client = Redis.from_config(ConnectionConfig(), PoolConfig(max_connections=4))
    with pytest.raises(ValueError, match="redis url"):
        asyncio.run(client.select(2))
    assert client.executor.pool.size == 0


def test_select_runs_on_single_slot_pool() -> None:
    client, transport = _client([b"+OK\r\n", b"$1\r\nv\r\n"])

    async def _scenario():
        await client.select(3)
        return await client.executor.execute("GET", "k")

    assert asyncio.run(_scenario()) == BulkString(b"v")
    assert transport.requests == [["SELECT", "3"], ["GET", "k"]]
