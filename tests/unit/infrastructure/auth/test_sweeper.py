"""Unit tests for the background state sweeper."""

from unittest.mock import AsyncMock

import pytest

from hsm.infrastructure.auth.sweeper import StateSweeper


class TestSweepOnce:
    @pytest.mark.asyncio
    async def test_delegates_to_store(self):
        store = AsyncMock()
        store.sweep.return_value = 3
        sweeper = StateSweeper(store, interval_seconds=300)

        assert await sweeper.sweep_once() == 3
        store.sweep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_contained(self, caplog):
        store = AsyncMock()
        store.sweep.side_effect = RuntimeError("database is locked")
        sweeper = StateSweeper(store, interval_seconds=300)

        assert await sweeper.sweep_once() == 0
        assert "OAuth state sweep failed" in caplog.text


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        sweeper = StateSweeper(AsyncMock(), interval_seconds=300)
        assert not sweeper.running

        await sweeper.start()
        try:
            assert sweeper.running
            await sweeper.start()  # Idempotent
            assert sweeper.running
        finally:
            await sweeper.stop()

        assert not sweeper.running

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        sweeper = StateSweeper(AsyncMock(), interval_seconds=300)
        await sweeper.stop()
        assert not sweeper.running
