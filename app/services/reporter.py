"""
Периодическая отправка координат водителя: сразу при старте и дальше каждые N секунд.
Ошибка геолокации или отправки пишется в лог и пропускается — без ретраев
и без остановки таймера.
"""
from __future__ import annotations

import asyncio
import datetime as dt
from typing import Awaitable, Callable, Optional, Tuple

from ..config import settings
from ..utils.logger import get_logger
from ..utils.timeutil import utcnow

logger = get_logger(__name__)

# источник позиции: вернуть (lat, lon) или None, если геолокация недоступна
PositionSource = Callable[[], Awaitable[Optional[Tuple[float, float]]]]
# приёмник: report(driver_id, lat, lon, timestamp)
Sink = Callable[[str, float, float, dt.datetime], Awaitable[None]]


class LocationReporter:
    def __init__(self, driver_id: str, position_source: PositionSource, sink: Sink,
                 interval: float | None = None):
        self.driver_id = driver_id
        self.position_source = position_source
        self.sink = sink
        self.interval = interval if interval is not None else settings.LOCATION_REPORT_INTERVAL_SEC
        self.sent = 0
        self.failed = 0
        self._task: asyncio.Task | None = None

    async def run_once(self) -> bool:
        try:
            pos = await self.position_source()
        except Exception as e:
            self.failed += 1
            logger.warning(f"geolocation error for driver={self.driver_id}: {e}")
            return False
        if pos is None:
            self.failed += 1
            logger.warning(f"geolocation not available for driver={self.driver_id}")
            return False

        lat, lon = pos
        try:
            await self.sink(self.driver_id, lat, lon, utcnow())
        except Exception as e:
            self.failed += 1
            logger.error(f"location report failed for driver={self.driver_id}: {e}")
            return False

        self.sent += 1
        logger.debug(f"driver={self.driver_id} at {lat:.5f},{lon:.5f}")
        return True

    async def run(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name=f"reporter-{self.driver_id}")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
