"""City geocoding against a Nominatim-compatible search endpoint.

Nominatim's usage policy allows at most one request per second and asks for a
User-Agent with contact details. All upstream calls therefore go through one
asyncio lock that spaces them at least `min_interval` seconds apart. Results
are cached in memory by city+province for the life of the process, and
concurrent lookups of the same key share a single upstream request.
"""

import asyncio
import logging
import math
import time
from typing import Callable, Dict, Optional, Tuple

import httpx

from cateringhub.config import settings

logger = logging.getLogger(__name__)

Coordinates = Tuple[float, float]


class Geocoder:
    def __init__(
        self,
        base_url: str,
        user_agent: str,
        country: str = "Philippines",
        min_interval: float = 1.0,
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url
        self.user_agent = user_agent
        self.country = country
        self.min_interval = min_interval
        self.timeout = timeout
        self._transport = transport
        self._clock = clock
        self._cache: Dict[str, Coordinates] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None
        self.request_count = 0

    @classmethod
    def from_settings(cls) -> "Geocoder":
        return cls(
            base_url=settings.geocoding_base_url,
            user_agent=settings.geocoding_user_agent,
            country=settings.geocoding_country,
            min_interval=settings.geocoding_min_interval_seconds,
            timeout=settings.geocoding_timeout_seconds,
        )

    @staticmethod
    def cache_key(city: str, province: Optional[str] = None) -> str:
        city_key = city.strip().upper()
        if province and province.strip():
            return f"{city_key},{province.strip().upper()}"
        return city_key

    def cached(self, city: str, province: Optional[str] = None) -> Optional[Coordinates]:
        return self._cache.get(self.cache_key(city, province))

    def clear_cache(self):
        self._cache.clear()

    def build_query(self, city: str, province: Optional[str] = None) -> str:
        parts = [city.strip().title()]
        if province and province.strip():
            parts.append(province.strip().title())
        parts.append(self.country)
        return ", ".join(parts)

    async def geocode_city(self, city: str, province: Optional[str] = None) -> Optional[Coordinates]:
        """(lat, lng) for a city, or None. Failures are not cached, so a later call retries."""
        if not city or not city.strip():
            return None
        key = self.cache_key(city, province)
        if key in self._cache:
            return self._cache[key]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._lookup(key, self.build_query(city, province)))
            self._inflight[key] = task
            task.add_done_callback(lambda _t, k=key: self._inflight.pop(k, None))
        # One caller going away must not cancel the lookup for the others
        return await asyncio.shield(task)

    async def _lookup(self, key: str, query: str) -> Optional[Coordinates]:
        async with self._lock:
            if key in self._cache:
                return self._cache[key]
            if self._last_request_at is not None:
                wait = self._last_request_at + self.min_interval - self._clock()
                if wait > 0:
                    await asyncio.sleep(wait)
            try:
                coords = await self._request(query)
            finally:
                self._last_request_at = self._clock()
        if coords is not None:
            self._cache[key] = coords
        return coords

    async def _request(self, query: str) -> Optional[Coordinates]:
        params = {"q": query, "format": "json", "limit": 1}
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        self.request_count += 1
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(self.base_url, params=params, headers=headers)
            if resp.status_code >= 400:
                logger.warning(f"Geocoding error {resp.status_code} for {query!r}: {resp.text[:200]}")
                return None
            results = resp.json()
            if not results:
                logger.info(f"No geocoding result for {query!r}")
                return None
            lat = float(results[0]["lat"])
            lng = float(results[0]["lon"])
        except httpx.HTTPError as e:
            logger.warning(f"Geocoding request failed for {query!r}: {e}")
            return None
        except (ValueError, KeyError, TypeError, IndexError) as e:
            logger.warning(f"Unexpected geocoding payload for {query!r}: {e}")
            return None

        if not (math.isfinite(lat) and math.isfinite(lng)):
            logger.warning(f"Non-finite coordinates for {query!r}: {lat}, {lng}")
            return None
        return lat, lng


_geocoder: Optional[Geocoder] = None


def get_geocoder() -> Geocoder:
    global _geocoder
    if _geocoder is None:
        _geocoder = Geocoder.from_settings()
    return _geocoder
