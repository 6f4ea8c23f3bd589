"""Run one reconciliation cycle from the command line and print its summary.

Exit codes: 0 on success, 1 if the cycle aborted, 2 on a configuration error.
"""

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from outage_tracker.config import settings
from outage_tracker.database import init_db
from outage_tracker.errors import ConfigurationError, CycleAbortedError
from outage_tracker.schemas.outage import CycleReport

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _default_log_level() -> str:
    level = settings.log_level.upper()
    return level if level in LOG_LEVELS else "INFO"


def format_report(report: CycleReport) -> str:
    lines = []
    for area in report.areas:
        if area.active_events_count > 0:
            lines.append(
                f"{area.name}, Customers Served: {area.customers_served}, "
                f"Active Outage Count: {area.active_events_count}, "
                f"Customers Affected: {area.max_customers_affected}"
            )
        else:
            lines.append(f"{area.name}, Customers Served: {area.customers_served} No Active Outages")

    for ev in report.matched:
        lines.append("")
        lines.append(f"Latitude {ev.device_lat:f}")
        lines.append(f"Longitude {ev.device_lon:f}")
        lines.append(f"County: {ev.raw_county or ev.county}")
        lines.append(f"Customers Affected: {ev.customers_affected}")
        lines.append(f"Event ID: {ev.event_id}")
        lines.append(f"Outage Type: {ev.cause or 'Unknown'}")
        lines.append(f"Boundary Points: {ev.hull_points}")
        for point in ev.hull:
            lines.append(f"  {point.lat:f}, {point.lng:f}")
        lines.append(f"Outage Location URL: {ev.map_url}")

    if report.errors:
        lines.append("")
        lines.append(f"Skipped {len(report.errors)} event(s) after errors:")
        for err in report.errors:
            lines.append(f"  {err.event_id} [{err.kind}] {err.detail}")

    lines.append("")
    lines.append(f"Matched outages: {len(report.matched)} of {report.fetched_count} fetched")
    lines.append(f"Total count of outages cleared: {report.deactivated_count}")
    return "\n".join(lines)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="outage_tracker",
        description="Fetch outages, store service-area matches and deactivate cleared ones.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=_default_log_level(),
        help="Logging level (default: %(default)s)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only print the final counts")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    from outage_tracker.services.reconciliation import run_configured_cycle

    try:
        settings.reconcile_config()
        init_db()
        report = run_configured_cycle()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except CycleAbortedError as e:
        print(f"Cycle aborted [{e.kind}]: {e.detail}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        print(f"Database unavailable: {e}", file=sys.stderr)
        return 1

    if args.quiet:
        print(f"Matched: {len(report.matched)}  Cleared: {report.deactivated_count}")
    else:
        print(format_report(report))
    return 0
