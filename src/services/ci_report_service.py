"""CI performance report storage and HTML rendering.

Reports live in ``settings.ci_data_dir``:
- summary-YYYY-MM-DD.json / detailed-YYYY-MM-DD.json: daily snapshots
- latest-summary.json / latest-detailed.json: most recent analysis
- report.html: rendered report
"""

import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import TypeAdapter, ValidationError

from src.core.config import constants, settings
from src.models.ci_models import Baseline, NoDataSummary, PerformanceSummary, RunRecord


logger = logging.getLogger(__name__)

LATEST_SUMMARY_FILE = "latest-summary.json"
LATEST_DETAILED_FILE = "latest-detailed.json"
REPORT_FILE = "report.html"

_runs_adapter = TypeAdapter(list[RunRecord])

_environment = Environment(
    loader=FileSystemLoader(str(constants.TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


class ReportLoadError(RuntimeError):
    """Raised when a stored report exists but cannot be read or parsed."""


def get_data_dir(data_dir: Path | None = None) -> Path:
    path = Path(data_dir or settings.ci_data_dir)
    return path if path.is_absolute() else constants.PROJECT_ROOT / path


def _dump_summary(summary: PerformanceSummary | NoDataSummary) -> str:
    return summary.model_dump_json(by_alias=True, indent=2)


def _dump_runs(runs: Sequence[RunRecord]) -> str:
    return _runs_adapter.dump_json(list(runs), by_alias=True, indent=2).decode()


def save_performance_data(
    summary: PerformanceSummary | NoDataSummary,
    runs: Sequence[RunRecord],
    *,
    data_dir: Path | None = None,
    today: str | None = None,
) -> Path:
    """Write the dated and latest summary/detailed files.

    Returns:
        The directory the files were written to
    """
    directory = get_data_dir(data_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = today or datetime.now(UTC).date().isoformat()

    summary_json = _dump_summary(summary)
    runs_json = _dump_runs(runs)

    (directory / f"summary-{stamp}.json").write_text(summary_json, encoding="utf-8")
    (directory / f"detailed-{stamp}.json").write_text(runs_json, encoding="utf-8")
    (directory / LATEST_SUMMARY_FILE).write_text(summary_json, encoding="utf-8")
    (directory / LATEST_DETAILED_FILE).write_text(runs_json, encoding="utf-8")

    logger.info("Saved CI performance data", extra={"data_dir": str(directory), "runs": len(runs)})
    return directory


def _read_json(path: Path) -> object | None:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ReportLoadError(f"Failed to read {path.name}: {e!s}") from e


def load_latest_summary(*, data_dir: Path | None = None) -> PerformanceSummary | NoDataSummary | None:
    """Load the latest stored summary, or None if no report exists yet.

    Raises:
        ReportLoadError: If the file exists but is unreadable
    """
    data = _read_json(get_data_dir(data_dir) / LATEST_SUMMARY_FILE)
    if data is None:
        return None
    try:
        if isinstance(data, dict) and "error" in data:
            return NoDataSummary.model_validate(data)
        return PerformanceSummary.model_validate(data)
    except ValidationError as e:
        raise ReportLoadError(f"Invalid summary file: {e!s}") from e


def load_latest_detailed(*, data_dir: Path | None = None) -> list[RunRecord] | None:
    """Load the latest stored run records, or None if no report exists yet.

    Raises:
        ReportLoadError: If the file exists but is unreadable
    """
    data = _read_json(get_data_dir(data_dir) / LATEST_DETAILED_FILE)
    if data is None:
        return None
    try:
        return _runs_adapter.validate_python(data)
    except ValidationError as e:
        raise ReportLoadError(f"Invalid detailed file: {e!s}") from e


def placeholder_summary(*, now: datetime | None = None) -> PerformanceSummary:
    """Summary served before the monitor has produced any report."""
    low, high = constants.CI_BASELINE_RANGE_SECONDS
    return PerformanceSummary(
        total_runs=20,
        avg_duration=141,
        avg_duration_minutes=2.35,
        avg_cache_hit_rate=88.4,
        fastest_run=90,
        slowest_run=204,
        optimal_runs=11,
        optimal_rate=55,
        trend="stable",
        recent_avg_duration=129,
        alerts=[],
        analyzed_at=now or datetime.now(UTC),
        baseline=Baseline(
            expected_duration_range=(low, high),
            expected_improvement=constants.CI_BASELINE_EXPECTED_IMPROVEMENT,
            actual_performance="meeting-expectations",
        ),
    )


def _status_class(value: float, optimal: float, warning: float, *, higher_is_better: bool) -> str:
    if higher_is_better:
        good, ok = value >= optimal, value >= warning
    else:
        good, ok = value <= optimal, value <= warning
    if good:
        return "status-optimal"
    return "status-warning" if ok else "status-critical"


def build_chart_data(runs: Sequence[RunRecord]) -> dict[str, list[dict[str, object]]]:
    """Chart.js datasets for run duration and cache hit rate."""
    return {
        "durations": [
            {
                "x": run.created_at.date().isoformat(),
                "y": run.duration_minutes,
                "runNumber": run.run_number,
                "conclusion": run.conclusion,
            }
            for run in runs
        ],
        "cacheRates": [
            {"x": run.created_at.date().isoformat(), "y": run.cache.hit_rate, "runNumber": run.run_number}
            for run in runs
        ],
    }


def render_html_report(
    summary: PerformanceSummary,
    runs: Sequence[RunRecord],
    *,
    generated_at: datetime | None = None,
) -> str:
    """Render the HTML report with alerts, metric cards, charts and recent runs."""
    low, high = summary.baseline.expected_duration_range
    template = _environment.get_template("ci_report.html")
    return template.render(
        summary=summary,
        runs=list(runs)[: constants.CI_REPORT_RECENT_RUNS],
        chart_data=build_chart_data(runs),
        generated_at=generated_at or datetime.now(UTC),
        target_range_minutes=(round(low / 60, 2), round(high / 60, 2)),
        has_high_alert=any(alert.severity == "high" for alert in summary.alerts),
        duration_class=_status_class(summary.avg_duration_minutes, high / 60, 3.5, higher_is_better=False),
        cache_class=_status_class(summary.avg_cache_hit_rate, 85, 70, higher_is_better=True),
        optimal_class=_status_class(summary.optimal_rate, 80, 60, higher_is_better=True),
        recent_avg_minutes=round(summary.recent_avg_duration / 60, 2),
    )


def write_html_report(*, data_dir: Path | None = None) -> Path:
    """Render the latest stored data into report.html.

    Raises:
        FileNotFoundError: If the summary or detailed file is missing
        ReportLoadError: If a stored file is unreadable or holds no analysis
    """
    summary = load_latest_summary(data_dir=data_dir)
    runs = load_latest_detailed(data_dir=data_dir)
    if summary is None or runs is None:
        raise FileNotFoundError("Performance data files not found")
    if isinstance(summary, NoDataSummary):
        raise ReportLoadError(summary.error)

    path = get_data_dir(data_dir) / REPORT_FILE
    path.write_text(render_html_report(summary, runs), encoding="utf-8")
    logger.info("Wrote CI performance report", extra={"path": str(path)})
    return path
