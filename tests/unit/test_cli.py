"""Tests for the CI monitor and report commands."""

import logging
from datetime import UTC, datetime

import pytest

from src.cli import ci_monitor, performance_report
from src.core.config import settings
from src.core.logging import configure_cli_logging
from src.interface.github_client import CIFetchError
from src.models.ci_models import Alert
from src.services import ci_monitor_service, ci_report_service


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "ci_data_dir", str(tmp_path))
    return tmp_path


@pytest.mark.unit
class TestCIMonitorCommand:
    """Tests for the monitor exit codes."""

    def test_mock_run_writes_reports(self, data_dir):
        exit_code = ci_monitor.main(["--mock", "--quiet"])

        assert exit_code in (0, 1)
        assert (data_dir / "latest-summary.json").exists()

    def test_critical_alert_exits_non_zero(self, data_dir, monkeypatch):
        summary = ci_report_service.placeholder_summary()
        summary.alerts = [
            Alert(type="error", category="reliability", message="High failure rate", severity="high")
        ]

        async def fake_analysis(**_kwargs):
            return summary, []

        monkeypatch.setattr(ci_monitor_service, "run_performance_analysis", fake_analysis)

        assert ci_monitor.main([]) == 1

    def test_warnings_only_exit_zero(self, data_dir, monkeypatch):
        summary = ci_report_service.placeholder_summary()
        summary.alerts = [Alert(type="warning", category="cache", message="Cache hit rate low", severity="high")]

        async def fake_analysis(**_kwargs):
            return summary, []

        monkeypatch.setattr(ci_monitor_service, "run_performance_analysis", fake_analysis)

        assert ci_monitor.main(["-v"]) == 0

    def test_unreachable_provider_exits_non_zero(self, data_dir, monkeypatch):
        async def failing_analysis(**_kwargs):
            raise CIFetchError("HTTP 503: unavailable")

        monkeypatch.setattr(ci_monitor_service, "run_performance_analysis", failing_analysis)

        assert ci_monitor.main([]) == 1

    def test_quiet_and_verbose_are_exclusive(self):
        with pytest.raises(SystemExit):
            ci_monitor.build_parser().parse_args(["--quiet", "--verbose"])


@pytest.mark.unit
class TestPerformanceReportCommand:
    """Tests for the report command."""

    def test_missing_data_exits_non_zero(self, data_dir):
        assert performance_report.main([]) == 1
        assert not (data_dir / "report.html").exists()

    def test_report_generated_after_monitor_run(self, data_dir):
        runs = ci_monitor_service.create_mock_runs(now=datetime(2026, 3, 2, tzinfo=UTC))
        summary = ci_report_service.placeholder_summary()
        ci_report_service.save_performance_data(summary, runs)

        assert performance_report.main([]) == 0
        assert (data_dir / "report.html").exists()


@pytest.mark.unit
@pytest.mark.parametrize(
    ("flags", "expected"),
    [({}, logging.INFO), ({"quiet": True}, logging.WARNING), ({"verbose": True}, logging.DEBUG)],
)
def test_cli_log_levels(flags, expected):
    assert configure_cli_logging(**flags) == expected
    assert logging.getLogger().level == expected
