import asyncio

import pytest

from redwire.errors import ProtocolError, RedisCommandError, TransportError, TypeMismatchError
from redwire.pool import ConnectionPool

from scripted import scripted_connection


def _factory(opened: list):
    async def _open():
        conn, _ = scripted_connection([])
        opened.append(conn)
        return conn

    return _open


def test_pool_reuses_released_connection() -> None:
    opened: list = []
    pool = ConnectionPool(_factory(opened), max_connections=4)

    async def _scenario():
        async with pool.connection() as first:
            assert pool.in_use == 1
        async with pool.connection() as second:
            pass
        return first, second

    first, second = asyncio.run(_scenario())
    assert first is second
    assert len(opened) == 1
    assert pool.idle == 1
    assert pool.in_use == 0


def test_pool_never_exceeds_max_connections() -> None:
    opened: list = []
    pool = ConnectionPool(_factory(opened), max_connections=2)
    peak = 0

    async def _hold():
        nonlocal peak
        async with pool.connection():
            peak = max(peak, pool.in_use)
            await asyncio.sleep(0.01)

    async def _scenario():
        await asyncio.gather(*(_hold() for _ in range(6)))

    asyncio.run(_scenario())
    assert peak == 2
    assert len(opened) == 2
    assert pool.size == 2


@pytest.mark.parametrize("error", [RedisCommandError("boom", kind="ERR"), TypeMismatchError("integer", "Status")])
def test_reply_level_errors_release_connection(error) -> None:
    opened: list = []
    pool = ConnectionPool(_factory(opened), max_connections=1)

    async def _scenario():
        with pytest.raises(type(error)):
            async with pool.connection():
                raise error

    asyncio.run(_scenario())
    assert pool.idle == 1
    assert not opened[0].closed


@pytest.mark.parametrize("error", [ProtocolError("bad prefix"), TransportError("reset"), RuntimeError("bug")])
def test_stream_level_errors_discard_connection(error) -> None:
    opened: list = []
    pool = ConnectionPool(_factory(opened), max_connections=1)

    async def _scenario():
        with pytest.raises(type(error)):
            async with pool.connection():
                raise error
        # The slot is free again, so a fresh connection can be opened.
        async with pool.connection():
            pass

    asyncio.run(_scenario())
    assert opened[0].closed
    assert len(opened) == 2
    assert pool.size == 1


def test_factory_failure_frees_slot() -> None:
    attempts = 0

    async def _failing():
        nonlocal attempts
        attempts += 1
        raise TransportError("refused")

    pool = ConnectionPool(_failing, max_connections=1)

    async def _scenario():
        for _ in range(2):
            with pytest.raises(TransportError):
                async with pool.connection():
                    pass

    asyncio.run(_scenario())
    assert attempts == 2
    assert pool.size == 0


def test_single_connection_pool_is_unusable_after_discard() -> None:
    conn, _ = scripted_connection([])
    pool = ConnectionPool.from_connection(conn)

    async def _scenario():
        with pytest.raises(ProtocolError):
            async with pool.connection():
                raise ProtocolError("desynchronised")
        with pytest.raises(TransportError):
            async with pool.connection():
                pass

    asyncio.run(_scenario())
    assert conn.closed


def test_close_closes_idle_and_rejects_acquire() -> None:
    opened: list = []
    pool = ConnectionPool(_factory(opened), max_connections=2)

    async def _scenario():
        async with pool.connection():
            pass
        pool.close()
        with pytest.raises(TransportError):
            async with pool.connection():
                pass

    asyncio.run(_scenario())
    assert pool.closed
    assert opened[0].closed
    assert pool.idle == 0
