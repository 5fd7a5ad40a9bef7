"""Redis client lifecycle tests."""

import pytest

from taskhub import redis_client


class FailingClient:
    def __init__(self):
        self.closed = False

    async def ping(self):
        raise ConnectionError("redis is down")

    async def aclose(self):
        self.closed = True


@pytest.mark.asyncio
async def test_failed_ping_closes_client(monkeypatch):
    client = FailingClient()
    monkeypatch.setattr(redis_client.aioredis, "from_url", lambda *a, **kw: client)

    with pytest.raises(ConnectionError):
        await redis_client.init_redis()

    assert client.closed
    with pytest.raises(RuntimeError):
        redis_client.get_redis()
