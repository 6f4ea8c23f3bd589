"""Reverse geocoding via geocode.maps.co.

The free tier allows roughly one request per second, so successive lookups
are spaced by ``min_interval`` seconds with a blocking sleep.
"""

import logging
import time

import httpx

from outage_tracker.config import settings
from outage_tracker.errors import FetchError, MalformedResponseError

logger = logging.getLogger(__name__)

# Throttled or temporarily unavailable; worth another attempt
RETRY_STATUSES = {429, 500, 502, 503, 504}


class GeocodeClient:
    def __init__(
        self,
        api_key: str,
        *,
        url: str | None = None,
        min_interval: float | None = None,
        status_retries: int | None = None,
        retry_backoff: float = 2.0,
        client: httpx.Client | None = None,
        sleep=time.sleep,
        clock=time.monotonic,
    ):
        self._api_key = api_key
        self._url = url or settings.geocode_url
        self._min_interval = settings.geocode_min_interval_seconds if min_interval is None else min_interval
        self._status_retries = settings.http_retries if status_retries is None else status_retries
        self._retry_backoff = retry_backoff
        self._client = client or httpx.Client(
            timeout=settings.http_timeout_seconds,
            transport=httpx.HTTPTransport(retries=settings.http_retries),
        )
        self._sleep = sleep
        self._clock = clock
        self._last_call: float | None = None

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _throttle(self):
        if self._last_call is not None:
            wait = self._min_interval - (self._clock() - self._last_call)
            if wait > 0:
                self._sleep(wait)
        self._last_call = self._clock()

    def _get_with_retries(self, params: dict) -> httpx.Response:
        """GET the geocoder, retrying RETRY_STATUSES up to ``status_retries`` times."""
        attempt = 0
        while True:
            self._throttle()
            resp = self._client.get(self._url, params=params)
            if resp.status_code not in RETRY_STATUSES or attempt >= self._status_retries:
                return resp
            delay = self._retry_backoff * 2 ** attempt
            logger.info("Geocoder answered %d, retrying in %.1fs", resp.status_code, delay)
            self._sleep(delay)
            attempt += 1

    def reverse(self, lat: float, lon: float) -> dict:
        """Raw reverse-geocode result for a point."""
        params = {"lat": f"{lat:f}", "lon": f"{lon:f}", "api_key": self._api_key}
        try:
            resp = self._get_with_retries(params)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Reverse geocode failed for {lat:f},{lon:f}: {e}") from e
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"Reverse geocode returned non-JSON for {lat:f},{lon:f}") from e
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Reverse geocode returned {type(data).__name__}, expected object")
        return data

    def county_for(self, lat: float, lon: float) -> str | None:
        """County string of the address at (lat, lon), e.g. "Forsyth County"; None if absent."""
        address = self.reverse(lat, lon).get("address") or {}
        if not isinstance(address, dict):
            raise MalformedResponseError("Reverse geocode 'address' is not an object")
        county = address.get("county")
        if not county:
            logger.debug("No county in geocode result for %f,%f", lat, lon)
            return None
        return str(county)
