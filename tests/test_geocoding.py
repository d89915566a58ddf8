"""Геокодер городов для пинов маршрута."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.services import geocoding


@pytest.fixture(autouse=True)
def clear_cache():
    geocoding._cache.clear()
    yield
    geocoding._cache.clear()


def client_for(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestGeocode:
    @pytest.mark.asyncio
    async def test_first_result(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=[{"lat": "18.5204", "lon": "73.8567"}, {"lat": "0", "lon": "0"}])

        async with client_for(handler) as c:
            assert await geocoding.geocode("Pune", c) == (18.5204, 73.8567)
            # второй раз — из кэша
            assert await geocoding.geocode(" pune ", c) == (18.5204, 73.8567)
        assert len(calls) == 1
        assert calls[0].url.params["q"] == "Pune"
        assert calls[0].headers["user-agent"]

    @pytest.mark.asyncio
    async def test_empty_result(self):
        async with client_for(lambda r: httpx.Response(200, json=[])) as c:
            assert await geocoding.geocode("Atlantis", c) is None

    @pytest.mark.asyncio
    async def test_server_error_means_no_pin(self):
        async with client_for(lambda r: httpx.Response(503)) as c:
            assert await geocoding.geocode("Pune", c) is None
        assert len(geocoding._cache) == 0

    @pytest.mark.asyncio
    async def test_network_error_means_no_pin(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        async with client_for(handler) as c:
            assert await geocoding.geocode("Pune", c) is None

    @pytest.mark.asyncio
    async def test_garbage_payload(self):
        async with client_for(lambda r: httpx.Response(200, json=[{"name": "Pune"}])) as c:
            assert await geocoding.geocode("Pune", c) is None

    @pytest.mark.asyncio
    async def test_blank_city(self):
        assert await geocoding.geocode("  ") is None


class TestRoutePins:
    @pytest.mark.asyncio
    async def test_missing_pin_is_none(self):
        fake = AsyncMock(side_effect=[(18.52, 73.85), None])
        with patch.object(geocoding, "geocode", fake):
            pins = await geocoding.route_pins("Pune", "Nowhere")
        assert pins == {"from": {"city": "Pune", "lat": 18.52, "lon": 73.85}, "to": None}
        assert fake.await_count == 2


class TestCityCache:
    def test_evicts_least_recently_used(self):
        cache = geocoding._CityCache(maxsize=2, ttl=3600)
        cache.put("pune", (18.5, 73.8), now=0)
        cache.put("mumbai", (19.0, 72.8), now=1)
        assert cache.get("pune", now=2) == (18.5, 73.8)   # pune стал свежее mumbai

        cache.put("nashik", (20.0, 73.7), now=3)
        assert len(cache) == 2
        assert "mumbai" not in cache
        assert "pune" in cache and "nashik" in cache

    def test_entries_expire(self):
        cache = geocoding._CityCache(maxsize=10, ttl=60)
        cache.put("pune", (18.5, 73.8), now=0)
        assert cache.get("pune", now=60) == (18.5, 73.8)
        assert cache.get("pune", now=61) is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_module_cache_is_bounded(self):
        def handler(request):
            return httpx.Response(200, json=[{"lat": "1", "lon": "2"}])

        with patch.object(geocoding, "_cache", geocoding._CityCache(maxsize=3, ttl=3600)):
            async with client_for(handler) as c:
                for i in range(10):
                    await geocoding.geocode(f"City {i}", c)
            assert len(geocoding._cache) == 3
            assert "city 9" in geocoding._cache
            assert "city 0" not in geocoding._cache
