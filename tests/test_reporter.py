"""Периодическая отправка координат водителя."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.services.reporter import LocationReporter


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_sends_position(self):
        source = AsyncMock(return_value=(18.52, 73.85))
        sink = AsyncMock()
        r = LocationReporter("drv-1", source, sink, interval=30)

        assert await r.run_once() is True
        sink.assert_awaited_once()
        driver_id, lat, lon, ts = sink.await_args.args
        assert (driver_id, lat, lon) == ("drv-1", 18.52, 73.85)
        assert ts.tzinfo is None
        assert (r.sent, r.failed) == (1, 0)

    @pytest.mark.asyncio
    async def test_geolocation_error_is_skipped(self):
        source = AsyncMock(side_effect=RuntimeError("permission denied"))
        sink = AsyncMock()
        r = LocationReporter("drv-1", source, sink, interval=30)

        assert await r.run_once() is False
        sink.assert_not_awaited()
        assert r.failed == 1

    @pytest.mark.asyncio
    async def test_no_position(self):
        sink = AsyncMock()
        r = LocationReporter("drv-1", AsyncMock(return_value=None), sink, interval=30)
        assert await r.run_once() is False
        sink.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sink_error_is_skipped(self):
        sink = AsyncMock(side_effect=ConnectionError("offline"))
        r = LocationReporter("drv-1", AsyncMock(return_value=(1.0, 2.0)), sink, interval=30)
        assert await r.run_once() is False
        assert (r.sent, r.failed) == (0, 1)


class TestLoop:
    @pytest.mark.asyncio
    async def test_keeps_going_after_failures(self):
        positions = [RuntimeError("no fix"), None, (18.0, 73.0), (18.1, 73.1)]

        async def source():
            item = positions.pop(0) if positions else (18.2, 73.2)
            if isinstance(item, Exception):
                raise item
            return item

        sink = AsyncMock()
        r = LocationReporter("drv-1", source, sink, interval=0)
        r.start()
        for _ in range(100):
            if r.sent >= 3:
                break
            await asyncio.sleep(0.01)
        await r.stop()

        assert r.failed == 2
        assert r.sent >= 3
        assert sink.await_args_list[0].args[1:3] == (18.0, 73.0)

    @pytest.mark.asyncio
    async def test_reports_immediately_on_start(self):
        sink = AsyncMock()
        r = LocationReporter("drv-1", AsyncMock(return_value=(1.0, 2.0)), sink, interval=3600)
        r.start()
        await asyncio.sleep(0.05)
        await r.stop()
        assert sink.await_count == 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        r = LocationReporter("drv-1", AsyncMock(), AsyncMock(), interval=1)
        await r.stop()
