from __future__ import annotations

import time
from collections import OrderedDict

import httpx

from ..config import settings
from ..errors import UpstreamUnavailable
from ..utils.logger import get_logger

logger = get_logger(__name__)

class _CityCache:
    """
    город -> (lat, lon) с ограничением по размеру (LRU) и по времени жизни.
    nominatim просит не дёргать его одинаковыми запросами.
    """

    def __init__(self, maxsize: int, ttl: float):
        self.maxsize = maxsize
        self.ttl = ttl
        self._items: "OrderedDict[str, tuple[float, tuple[float, float]]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: str) -> bool:
        return key in self._items

    def get(self, key: str, now: float | None = None) -> tuple[float, float] | None:
        item = self._items.get(key)
        if item is None:
            return None
        now = time.monotonic() if now is None else now
        stored_at, coords = item
        if now - stored_at > self.ttl:
            del self._items[key]
            return None
        self._items.move_to_end(key)
        return coords

    def put(self, key: str, coords: tuple[float, float], now: float | None = None) -> None:
        now = time.monotonic() if now is None else now
        self._items[key] = (now, coords)
        self._items.move_to_end(key)
        while len(self._items) > self.maxsize:
            self._items.popitem(last=False)

    def clear(self) -> None:
        self._items.clear()


_cache = _CityCache(settings.GEOCODER_CACHE_SIZE, settings.GEOCODER_CACHE_TTL_SEC)


async def _search(client: httpx.AsyncClient, city: str) -> list[dict]:
    try:
        r = await client.get(
            settings.GEOCODER_URL,
            params={"format": "json", "q": city},
            headers={"User-Agent": settings.GEOCODER_USER_AGENT},
        )
        r.raise_for_status()
        return r.json() or []
    except (httpx.HTTPError, ValueError) as e:
        raise UpstreamUnavailable(f"geocoder: {e}")


async def geocode(city: str, client: httpx.AsyncClient | None = None) -> tuple[float, float] | None:
    """
    Первый результат геокодера. Любая ошибка или пустой ответ — None («пина нет»).
    """
    key = (city or "").strip().lower()
    if not key:
        return None
    cached = _cache.get(key)
    if cached is not None:
        return cached

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SEC) as c:
                data = await _search(c, city)
        else:
            data = await _search(client, city)
    except UpstreamUnavailable as e:
        logger.warning(f"geocoding failed for {city!r}: {e.detail}")
        return None

    if not data:
        return None
    try:
        coords = (float(data[0]["lat"]), float(data[0]["lon"]))
    except (KeyError, TypeError, ValueError):
        logger.warning(f"geocoder returned unexpected payload for {city!r}")
        return None

    _cache.put(key, coords)
    return coords


async def route_pins(from_city: str, to_city: str) -> dict:
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SEC) as client:
        src = await geocode(from_city, client)
        dst = await geocode(to_city, client)

    def _pin(city, coords):
        return {"city": city, "lat": coords[0], "lon": coords[1]} if coords else None

    return {"from": _pin(from_city, src), "to": _pin(to_city, dst)}
