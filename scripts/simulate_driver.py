"""Имитация водителя: шлёт координаты в API по таймеру (по умолчанию раз в 30 секунд)."""

import argparse
import asyncio
import random
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx

from app.config import settings
from app.services.reporter import LocationReporter
from app.utils.logger import get_logger

logger = get_logger("simulate_driver")


def make_source(lat: float, lon: float, jitter: float, drop_rate: float):
    # случайное блуждание вокруг стартовой точки; иногда «геолокация недоступна»
    pos = [lat, lon]

    async def source():
        if random.random() < drop_rate:
            return None
        pos[0] += random.uniform(-jitter, jitter)
        pos[1] += random.uniform(-jitter, jitter)
        return pos[0], pos[1]

    return source


def make_sink(client: httpx.AsyncClient):
    async def sink(driver_id, lat, lon, ts):
        r = await client.post("/api/locations", json={
            "latitude": lat, "longitude": lon, "timestamp": ts.isoformat() + "Z",
        })
        r.raise_for_status()
    return sink


async def main(args):
    headers = {"Authorization": f"Bearer {args.token}"}
    async with httpx.AsyncClient(base_url=args.api, headers=headers, timeout=settings.HTTP_TIMEOUT_SEC) as client:
        reporter = LocationReporter(
            driver_id=args.driver,
            position_source=make_source(args.lat, args.lon, args.jitter, args.drop_rate),
            sink=make_sink(client),
            interval=args.interval,
        )
        logger.info(f"reporting as driver={args.driver} every {reporter.interval}s → {args.api}")
        try:
            await reporter.run()
        finally:
            logger.info(f"sent={reporter.sent} failed={reporter.failed}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate a driver reporting location")
    parser.add_argument("--api", default="http://127.0.0.1:8000")
    parser.add_argument("--token", required=True, help="access token водителя")
    parser.add_argument("--driver", default="driver")
    parser.add_argument("--lat", type=float, default=18.5204)    # Пуне
    parser.add_argument("--lon", type=float, default=73.8567)
    parser.add_argument("--jitter", type=float, default=0.01)
    parser.add_argument("--drop-rate", type=float, default=0.0)
    parser.add_argument("--interval", type=float, default=settings.LOCATION_REPORT_INTERVAL_SEC)
    try:
        asyncio.run(main(parser.parse_args()))
    except KeyboardInterrupt:
        pass
