"""
Unit tests for store construction and bot wiring.
"""

from unittest.mock import AsyncMock

import pytest

from commands import load_all_commands
from core import bot as bot_module
from core import db
from core.queue.engine import QueueEngine


class TestBuildStore:
    """Tests for backend selection."""

    @pytest.mark.asyncio
    async def test_no_backend(self):
        assert await db.build_store(None, None) is None

    @pytest.mark.asyncio
    async def test_postgres_backend(self, monkeypatch):
        pool = object()
        monkeypatch.setattr(db, "get_pool", AsyncMock(return_value=pool))
        ensure = AsyncMock()
        monkeypatch.setattr("db.queue.ensure_schema", ensure)

        store = await db.build_store("postgresql://localhost/queue", None)

        assert type(store).__name__ == "PostgresQueueStore"
        assert store.pool is pool
        ensure.assert_awaited_once_with(pool)

    @pytest.mark.asyncio
    async def test_redis_wins(self, monkeypatch):
        client = AsyncMock()
        monkeypatch.setattr("db.queue_redis.build_client", lambda url: client)

        store = await db.build_store("postgresql://localhost/queue", "redis://localhost:6379/0")

        assert type(store).__name__ == "RedisQueueStore"
        client.ping.assert_awaited_once()


class TestBotSetup:
    """Tests for the setup hook."""

    @pytest.mark.asyncio
    async def test_setup_hook_wires_engine_and_commands(self, monkeypatch, store):
        monkeypatch.setattr(bot_module.db, "build_store", AsyncMock(return_value=store))
        bot = bot_module.Bot()

        await bot.setup_hook()

        assert isinstance(bot.queue_engine, QueueEngine)
        assert bot.queue_engine.store is store
        assert getattr(bot, "on_message", None) is not None

    @pytest.mark.asyncio
    async def test_setup_hook_survives_store_failure(self, monkeypatch):
        monkeypatch.setattr(bot_module.db, "build_store", AsyncMock(side_effect=OSError("refused")))
        bot = bot_module.Bot()

        await bot.setup_hook()

        assert bot.queue_engine is None

    @pytest.mark.asyncio
    async def test_load_all_commands(self):
        bot = bot_module.Bot()

        loaded = await load_all_commands(bot)

        assert loaded == ["commands.queue"]
