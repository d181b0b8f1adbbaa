from types import SimpleNamespace

import pytest

from dal.canonical import TranslatedQuery
from dal.postgres.config import PostgresConfig
from dal.postgres.query_target import PostgresQueryTarget


def _config(**overrides):
    values = dict(
        host="localhost",
        port=5435,
        database="dws_prod",
        user="dba",
        password="",
        min_pool_size=1,
        max_pool_size=10,
    )
    values.update(overrides)
    return PostgresConfig(**values)


@pytest.mark.asyncio
async def test_postgres_connect_fetch_and_close(monkeypatch):
    """Ensure the asyncpg pool is created once, queried with positional binds and closed."""
    captured = {}
    pool = SimpleNamespace(closed=False)

    async def fake_create_pool(**kwargs):
        captured.update(kwargs)
        return pool

    async def fake_fetch(sql, *args):
        captured["sql"] = sql
        captured["args"] = args
        return [{"number0": "MS001", "name": "Town"}]

    async def fake_fetchval(sql):
        captured["probe"] = sql
        return 1

    async def fake_close():
        pool.closed = True

    pool.fetch = fake_fetch
    pool.fetchval = fake_fetchval
    pool.close = fake_close
    monkeypatch.setattr("dal.postgres.query_target.asyncpg.create_pool", fake_create_pool)

    target = PostgresQueryTarget(_config())
    await target.connect()
    await target.probe()
    rows = await target.fetch(TranslatedQuery(text="SELECT * FROM t WHERE a = $1", binds=["x"]))

    assert captured["host"] == "localhost"
    assert captured["port"] == 5435
    assert captured["password"] is None
    assert captured["min_size"] == 1
    assert captured["max_size"] == 10
    assert captured["probe"] == "SELECT 1"
    assert captured["sql"] == "SELECT * FROM t WHERE a = $1"
    assert captured["args"] == ("x",)
    assert rows == [{"number0": "MS001", "name": "Town"}]

    await target.close()
    assert pool.closed is True
    await target.close()


@pytest.mark.asyncio
async def test_postgres_fetch_requires_connect():
    target = PostgresQueryTarget(_config())
    with pytest.raises(RuntimeError, match="not initialized"):
        await target.fetch(TranslatedQuery(text="SELECT 1", binds=[]))


def test_postgres_config_defaults(monkeypatch):
    for name in ("DB_HOST", "DB_PORT", "DB_NAME", "DB_USER", "DB_POOL_MIN", "DB_POOL_MAX"):
        monkeypatch.delenv(name, raising=False)
    config = PostgresConfig.from_env()
    assert config.host == "localhost"
    assert config.port == 5435
    assert config.database == "dws_prod"
    assert config.user == "dba"
    assert (config.min_pool_size, config.max_pool_size) == (1, 10)


def test_postgres_config_from_env(monkeypatch):
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_PORT", "5432")
    monkeypatch.setenv("DB_POOL_MAX", "4")
    config = PostgresConfig.from_env()
    assert config.host == "db.internal"
    assert config.port == 5432
    assert config.max_pool_size == 4
