"""Duke Energy outage map client.

The public map publishes a config file holding a consumer key/secret pair;
those are sent as HTTP Basic auth to the counties and outages endpoints,
both parameterized by jurisdiction (e.g. DEC, DEP, DEF, DEI).
"""

import logging

import httpx
from pydantic import ValidationError

from outage_tracker.config import settings
from outage_tracker.errors import ConfigurationError, FetchError, MalformedResponseError
from outage_tracker.schemas.outage import AreaOfInterest, CountyRecord, OutageEvent, ProviderCredentials

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": "outage-tracker/0.1 (outage reconciliation)",
    "Accept": "application/json",
}


class OutageMapClient:
    def __init__(
        self,
        jurisdiction: str,
        *,
        config_url: str | None = None,
        api_base: str | None = None,
        client: httpx.Client | None = None,
    ):
        self.jurisdiction = jurisdiction
        self._config_url = config_url or settings.outage_map_config_url
        self._api_base = (api_base or settings.outage_map_api_base).rstrip("/")
        self._client = client or httpx.Client(
            headers=HEADERS,
            timeout=settings.http_timeout_seconds,
            transport=httpx.HTTPTransport(retries=settings.http_retries),
        )
        self._auth: httpx.BasicAuth | None = None

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # --- auth handshake ---

    def fetch_credentials(self) -> ProviderCredentials:
        data = self._get_json(self._config_url)
        try:
            creds = ProviderCredentials.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(f"Outage map config missing consumer credentials: {e}") from e
        if not creds.consumer_key or not creds.consumer_secret:
            raise ConfigurationError("Outage map config returned empty consumer credentials")
        return creds

    def authenticate(self):
        """Fetch the consumer credentials once; later calls reuse them."""
        self._ensure_auth()

    def _ensure_auth(self) -> httpx.BasicAuth:
        if self._auth is None:
            creds = self.fetch_credentials()
            self._auth = httpx.BasicAuth(creds.consumer_key, creds.consumer_secret)
            logger.debug("Outage map credentials loaded")
        return self._auth

    # --- data endpoints ---

    def fetch_counties(self) -> list[AreaOfInterest]:
        data = self._get_json(
            f"{self._api_base}/counties",
            params={"jurisdiction": self.jurisdiction},
            auth=self._ensure_auth(),
        )
        return _parse_counties(data)

    def fetch_outages(self) -> list[OutageEvent]:
        data = self._get_json(
            f"{self._api_base}/outages",
            params={"jurisdiction": self.jurisdiction},
            auth=self._ensure_auth(),
        )
        events = _parse_outages(data)
        logger.info("Outage map: fetched %d events for %s", len(events), self.jurisdiction)
        return events

    def _get_json(self, url: str, params: dict | None = None, auth: httpx.Auth | None = None):
        try:
            resp = self._client.get(url, params=params, auth=auth)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"GET {url} failed: {e}") from e
        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"GET {url} returned non-JSON body") from e


def _data_items(data) -> list:
    if not isinstance(data, dict) or not isinstance(data.get("data"), list):
        raise MalformedResponseError("Expected an object with a 'data' list")
    return data["data"]


def _parse_outages(data) -> list[OutageEvent]:
    """Parse the outages payload, dropping individual records that don't validate."""
    events = []
    for item in _data_items(data):
        try:
            events.append(OutageEvent.model_validate(item))
        except ValidationError as e:
            ident = item.get("sourceEventNumber") if isinstance(item, dict) else None
            logger.warning("Skipping malformed outage record %s: %s", ident, e.errors()[0]["msg"])
    return events


def _parse_counties(data) -> list[AreaOfInterest]:
    """Parse the counties payload, dropping individual records that don't validate."""
    areas = []
    for item in _data_items(data):
        try:
            areas.append(CountyRecord.model_validate(item).to_area())
        except ValidationError as e:
            ident = item.get("countyName") if isinstance(item, dict) else None
            logger.warning("Skipping malformed county record %s: %s", ident, e.errors()[0]["msg"])
    return areas
