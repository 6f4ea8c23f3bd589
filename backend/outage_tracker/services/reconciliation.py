"""One polling cycle: fetch → geocode → classify → upsert → deactivate stale.

Events matching the service area are written together with their hull in a
single transaction each; after every event has been seen, anything still
flagged active that this cycle did not match is deactivated in both tables.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Protocol

from sqlalchemy.orm import Session

from outage_tracker.config import ReconcileConfig
from outage_tracker.database import unit_of_work
from outage_tracker.errors import (
    ConfigurationError,
    CycleAbortedError,
    FetchError,
    MalformedResponseError,
    StorageError,
)
from outage_tracker.schemas.outage import (
    AreaOfInterest,
    CycleReport,
    EventError,
    MatchedEvent,
    OutageEvent,
)
from outage_tracker.services.coordinate_store import CoordinateStore
from outage_tracker.services.geo_classifier import classify
from outage_tracker.services.outage_store import OutageStore

logger = logging.getLogger(__name__)

MAP_URL = "https://www.google.com/maps/search/{lat:f},+{lon:f}"

# Last completed cycle, served by the API
_last_report: CycleReport | None = None

# Serializes cycles started by the scheduler and the admin endpoint
cycle_lock = threading.Lock()


class OutageFeed(Protocol):
    def authenticate(self) -> None: ...
    def fetch_counties(self) -> list[AreaOfInterest]: ...
    def fetch_outages(self) -> list[OutageEvent]: ...


class Geocoder(Protocol):
    def county_for(self, lat: float, lon: float) -> str | None: ...


class ReconciliationEngine:
    def __init__(
        self,
        config: ReconcileConfig,
        session_factory: Callable[[], Session],
        feed: OutageFeed,
        geocoder: Geocoder,
    ):
        self.config = config
        self._session_factory = session_factory
        self._feed = feed
        self._geocoder = geocoder

    def run_cycle(self) -> CycleReport:
        global _last_report
        started = datetime.now(timezone.utc)
        report = CycleReport(started_at=started, jurisdiction=self.config.jurisdiction)
        logger.info("Starting reconciliation cycle for %s (service area: %s)",
                    self.config.jurisdiction, ", ".join(sorted(self.config.service_areas)))

        self._authenticate()
        report.areas = self._fetch_areas()
        events = self._fetch_outages()
        report.fetched_count = len(events)

        matched_ids: set[str] = set()
        # Naive UTC; SQLite DateTime columns drop tzinfo anyway
        seen_at = started.replace(tzinfo=None)
        with self._session_factory() as db:
            outages = OutageStore(db)
            coords = CoordinateStore(db)

            for event in events:
                if event.event_id in matched_ids:
                    logger.debug("Duplicate event %s in fetch, already stored", event.event_id)
                    continue
                raw_county, county = self._classify(event, report)
                if county is None:
                    report.skipped_count += 1
                    continue
                try:
                    with unit_of_work(db):
                        outages.upsert(
                            event.event_id,
                            county,
                            event.customers_affected,
                            device_lat=event.device_lat,
                            device_lon=event.device_lon,
                            cause=event.cause,
                            seen_at=seen_at,
                        )
                        hull_size = coords.replace(
                            event.event_id, [(p.lat, p.lng) for p in event.convex_hull]
                        )
                except StorageError as e:
                    logger.error("Storage failure on event %s: %s", event.event_id, e)
                    raise CycleAbortedError("storage", f"Writing event {event.event_id} failed: {e}") from e

                matched_ids.add(event.event_id)
                report.matched.append(MatchedEvent(
                    event_id=event.event_id,
                    county=county,
                    customers_affected=event.customers_affected,
                    device_lat=event.device_lat,
                    device_lon=event.device_lon,
                    raw_county=raw_county,
                    cause=event.cause,
                    hull_points=hull_size,
                    hull=event.convex_hull,
                    map_url=MAP_URL.format(lat=event.device_lat, lon=event.device_lon),
                ))

            report.deactivated = self._deactivate_stale(db, outages, coords, matched_ids)

        report.finished_at = datetime.now(timezone.utc)
        _last_report = report
        logger.info(
            "Cycle complete: %d fetched, %d matched, %d skipped, %d deactivated, %d errors",
            report.fetched_count, len(report.matched), report.skipped_count,
            report.deactivated_count, len(report.errors),
        )
        return report

    def _authenticate(self):
        try:
            self._feed.authenticate()
        except (FetchError, MalformedResponseError, ConfigurationError) as e:
            logger.error("Outage map authentication failed: %s", e)
            raise CycleAbortedError("auth", str(e)) from e

    def _fetch_areas(self) -> list[AreaOfInterest]:
        try:
            areas = self._feed.fetch_counties()
        except (FetchError, MalformedResponseError) as e:
            logger.warning("Counties fetch failed, continuing without area summaries: %s", e)
            return []
        return [a for a in areas if a.county_name in self.config.service_areas]

    def _fetch_outages(self) -> list[OutageEvent]:
        try:
            return self._feed.fetch_outages()
        except (FetchError, MalformedResponseError) as e:
            logger.error("Outages fetch failed, nothing reconciled: %s", e)
            raise CycleAbortedError("fetch", str(e)) from e

    def _classify(self, event: OutageEvent, report: CycleReport) -> tuple[str | None, str | None]:
        """Geocoded county text and its service-area token (None when not a match)."""
        try:
            raw_county = self._geocoder.county_for(event.device_lat, event.device_lon)
        except FetchError as e:
            logger.warning("Skipping event %s: geocode failed: %s", event.event_id, e)
            report.errors.append(EventError(event_id=event.event_id, kind="fetch", detail=str(e)))
            return None, None
        except MalformedResponseError as e:
            logger.warning("Skipping event %s: bad geocode response: %s", event.event_id, e)
            report.errors.append(EventError(event_id=event.event_id, kind="malformed", detail=str(e)))
            return None, None
        return raw_county, classify(raw_county, self.config.service_areas)

    def _deactivate_stale(
        self,
        db: Session,
        outages: OutageStore,
        coords: CoordinateStore,
        matched_ids: set[str],
    ) -> list[str]:
        try:
            with unit_of_work(db):
                stale = sorted(outages.active_ids() - matched_ids)
                for event_id in stale:
                    logger.info("Deactivating outage %s", event_id)
                    outages.deactivate(event_id)
                    coords.deactivate(event_id)
        except StorageError as e:
            logger.error("Storage failure while deactivating stale events: %s", e)
            raise CycleAbortedError("storage", f"Deactivating stale events failed: {e}") from e
        return stale


def get_last_report() -> CycleReport | None:
    return _last_report


def run_configured_cycle() -> CycleReport:
    """Build clients from settings and run one cycle under the process-wide lock."""
    from outage_tracker.config import settings
    from outage_tracker.database import SessionLocal
    from outage_tracker.services.geocode_client import GeocodeClient
    from outage_tracker.services.outage_map_client import OutageMapClient

    config = settings.reconcile_config()
    with cycle_lock, OutageMapClient(config.jurisdiction) as feed, \
            GeocodeClient(config.geocode_api_key) as geocoder:
        engine = ReconciliationEngine(config, SessionLocal, feed, geocoder)
        return engine.run_cycle()
