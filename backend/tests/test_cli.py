"""Tests for the one-shot CLI driver and the scheduler job wrapper."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from outage_tracker import cli
from outage_tracker.errors import ConfigurationError, CycleAbortedError
from outage_tracker.schemas.outage import AreaOfInterest, CycleReport, EventError, HullPoint, MatchedEvent
from outage_tracker.tasks import scheduler


def _report():
    return CycleReport(
        started_at=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
        jurisdiction="DEC",
        areas=[
            AreaOfInterest(name="Forsyth", county_name="Forsyth", customers_served=180000,
                           active_events_count=2, max_customers_affected=300),
            AreaOfInterest(name="Guilford", county_name="Guilford", customers_served=250000),
        ],
        matched=[MatchedEvent(
            event_id="E1", county="Forsyth", customers_affected=42,
            device_lat=36.1, device_lon=-80.2, raw_county="Forsyth County", cause="Tree on line", hull_points=3,
            hull=[HullPoint(lat=36.1, lng=-80.25), HullPoint(lat=36.11, lng=-80.24), HullPoint(lat=36.09, lng=-80.2)],
            map_url="https://www.google.com/maps/search/36.100000,+-80.200000",
        )],
        deactivated=["E0"],
        fetched_count=5,
        errors=[EventError(event_id="E4", kind="fetch", detail="timeout")],
    )


@pytest.fixture
def cli_settings():
    fake = MagicMock()
    fake.log_level = "INFO"
    with patch.object(cli, "settings", fake), patch.object(cli, "init_db"):
        yield fake


def test_format_report_lists_areas_events_and_counts():
    text = cli.format_report(_report())
    assert "Forsyth, Customers Served: 180000, Active Outage Count: 2, Customers Affected: 300" in text
    assert "Guilford, Customers Served: 250000 No Active Outages" in text
    assert "Event ID: E1" in text
    assert "County: Forsyth County" in text
    assert "Outage Type: Tree on line" in text
    assert "Boundary Points: 3\n  36.100000, -80.250000\n  36.110000, -80.240000\n  36.090000, -80.200000\n" in text
    assert "E4 [fetch] timeout" in text
    assert "Total count of outages cleared: 1" in text


def test_main_success_exits_zero(cli_settings, capsys):
    with patch("outage_tracker.services.reconciliation.run_configured_cycle", return_value=_report()):
        assert cli.main([]) == 0
    assert "Matched outages: 1 of 5 fetched" in capsys.readouterr().out


def test_main_quiet(cli_settings, capsys):
    with patch("outage_tracker.services.reconciliation.run_configured_cycle", return_value=_report()):
        assert cli.main(["--quiet"]) == 0
    assert capsys.readouterr().out.strip() == "Matched: 1  Cleared: 1"


def test_main_configuration_error_exits_two(cli_settings, capsys):
    cli_settings.reconcile_config.side_effect = ConfigurationError("SERVICE_AREA is empty")
    with patch("outage_tracker.services.reconciliation.run_configured_cycle") as run:
        assert cli.main([]) == 2
        run.assert_not_called()
    assert "Configuration error" in capsys.readouterr().err


def test_main_aborted_cycle_exits_one(cli_settings, capsys):
    with patch(
        "outage_tracker.services.reconciliation.run_configured_cycle",
        side_effect=CycleAbortedError("auth", "401 Unauthorized"),
    ):
        assert cli.main([]) == 1
    assert "Cycle aborted [auth]: 401 Unauthorized" in capsys.readouterr().err



def test_main_rejects_unknown_log_level(cli_settings, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--log-level", "verbose"])
    assert exc.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_main_accepts_lowercase_log_level(cli_settings):
    with patch("outage_tracker.services.reconciliation.run_configured_cycle", return_value=_report()):
        assert cli.main(["--log-level", "debug", "--quiet"]) == 0


def test_bad_configured_log_level_falls_back_to_info(cli_settings):
    cli_settings.log_level = "chatty"
    assert cli._default_log_level() == "INFO"


def test_scheduler_job_logs_aborted_cycle(caplog):
    with patch(
        "outage_tracker.services.reconciliation.run_configured_cycle",
        side_effect=CycleAbortedError("fetch", "connection refused"),
    ):
        scheduler._run_reconcile()
    assert "aborted (fetch)" in caplog.text
