import asyncio

import pytest

from newsletter_confirm.subscriptions import storage as storage_module
from newsletter_confirm.subscriptions.storage import SCHEMA_SQL, PostgresStorage


class FakeConnection:
    def __init__(self) -> None:
        self.statements: list[str] = []

    async def execute(self, query: str, *args: object) -> str:
        self.statements.append(query)
        return "OK"


class FakeAcquire:
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn

    async def __aenter__(self) -> FakeConnection:
        return self.conn

    async def __aexit__(self, *exc_info: object) -> None:
        return None


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.closed = False

    def acquire(self) -> FakeAcquire:
        return FakeAcquire(self.conn)

    async def close(self) -> None:
        self.closed = True


def test_connect_creates_schema_once(monkeypatch: pytest.MonkeyPatch) -> None:
    pools: list[FakePool] = []

    async def fake_create_pool(**kwargs: object) -> FakePool:
        assert kwargs["dsn"] == "postgresql://localhost/news"
        pools.append(FakePool())
        return pools[-1]

    monkeypatch.setattr(storage_module.asyncpg, "create_pool", fake_create_pool)

    async def run() -> None:
        storage = PostgresStorage("postgresql://localhost/news")
        await storage.connect()
        await storage.connect()
        assert len(pools) == 1
        assert pools[0].conn.statements == [SCHEMA_SQL]

        await storage.delete(storage_module.uuid4())
        assert pools[0].conn.statements[-1].startswith("DELETE FROM subscriptions")

        await storage.close()
        assert pools[0].closed
        assert storage.pool is None

    asyncio.run(run())
