"""CI run statistics: averages, trend classification and threshold alerts.

Runs are always ordered most-recent-first. The recent partition is the first
``CI_TREND_RECENT_WINDOW`` runs; everything after it is the older partition
the trend is measured against.
"""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from dateutil.parser import isoparse

from src.core.config import constants
from src.models.ci_models import (
    Alert,
    Baseline,
    CacheAnalysis,
    CacheStep,
    NoDataSummary,
    PerformanceSummary,
    RunRecord,
    Thresholds,
)


logger = logging.getLogger(__name__)

CACHE_HIT_KEYWORDS = ("npm", "playwright", "next", "prisma")


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, unlike the built-in banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def calculate_duration(started_at: str | None, completed_at: str | None) -> int:
    """Seconds between two ISO timestamps; 0 when either is missing."""
    if not started_at or not completed_at:
        return 0
    return int(round_half_up((isoparse(completed_at) - isoparse(started_at)).total_seconds()))


def analyze_cache_effectiveness(jobs: Sequence[dict[str, Any]]) -> CacheAnalysis:
    """Measure cache hits across the steps of a run's jobs.

    A cache step is any step whose name mentions "cache" and is not a post
    step. It counts as a hit when it succeeded and caches one of the known
    dependency sets.
    """
    steps: list[CacheStep] = []
    for job in jobs:
        for step in job.get("steps") or []:
            name = step.get("name", "")
            lowered = name.lower()
            if "cache" not in lowered or "post" in lowered:
                continue
            steps.append(
                CacheStep(
                    name=name,
                    conclusion=step.get("conclusion"),
                    duration=calculate_duration(step.get("started_at"), step.get("completed_at")),
                    is_hit=step.get("conclusion") == "success"
                    and any(keyword in lowered for keyword in CACHE_HIT_KEYWORDS),
                )
            )

    hits = sum(1 for step in steps if step.is_hit)
    hit_rate = hits / len(steps) * 100 if steps else 0.0
    return CacheAnalysis(total_steps=len(steps), hits=hits, hit_rate=round_half_up(hit_rate, 2), details=steps)


def is_optimal(run: RunRecord, thresholds: Thresholds | None = None) -> bool:
    """A run is optimal when it is fast enough and its cache hit rate is high enough."""
    thresholds = thresholds or Thresholds()
    return run.duration <= thresholds.total_time and run.cache.hit_rate >= thresholds.cache_hit_rate


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def classify_trend(runs: Sequence[RunRecord], thresholds: Thresholds) -> str:
    """Compare the recent partition's mean duration against the older one's."""
    recent = runs[: constants.CI_TREND_RECENT_WINDOW]
    older = runs[constants.CI_TREND_RECENT_WINDOW :]
    if not older:
        return "stable"

    recent_avg = _mean([run.duration for run in recent])
    older_avg = _mean([run.duration for run in older])
    change = thresholds.degradation_percent / 100

    if recent_avg > older_avg * (1 + change):
        return "degrading"
    if recent_avg < older_avg * (1 - change):
        return "improving"
    return "stable"


def generate_alerts(
    runs: Sequence[RunRecord],
    avg_duration: float,
    avg_cache_hit_rate: float,
    thresholds: Thresholds,
) -> list[Alert]:
    """Build threshold alerts for a non-empty run sequence."""
    alerts: list[Alert] = []

    if avg_duration > thresholds.total_time:
        alerts.append(
            Alert(
                type="warning",
                category="performance",
                message=(
                    f"Average CI duration ({round_half_up(avg_duration / 60):g} min) exceeds threshold "
                    f"({thresholds.total_time / 60:g} min)"
                ),
                severity="medium",
            )
        )

    if avg_cache_hit_rate < thresholds.cache_hit_rate:
        alerts.append(
            Alert(
                type="warning",
                category="cache",
                message=(
                    f"Cache hit rate ({round_half_up(avg_cache_hit_rate, 2):g}%) below optimal threshold "
                    f"({thresholds.cache_hit_rate:g}%)"
                ),
                severity="high",
            )
        )

    window = runs[: constants.CI_FAILURE_WINDOW]
    failures = sum(1 for run in window if run.conclusion != "success")
    if failures >= constants.CI_FAILURE_ALERT_COUNT:
        alerts.append(
            Alert(
                type="error",
                category="reliability",
                message=f"High failure rate in recent runs ({failures}/{constants.CI_FAILURE_WINDOW})",
                severity="high",
            )
        )

    return alerts


def summarize(
    runs: Sequence[RunRecord],
    thresholds: Thresholds | None = None,
    *,
    now: datetime | None = None,
) -> PerformanceSummary | NoDataSummary:
    """Aggregate a most-recent-first run sequence into a performance summary.

    Args:
        runs: Analyzed runs, newest first
        thresholds: Alerting thresholds; defaults apply when omitted
        now: Analysis timestamp, defaults to the current time

    Returns:
        PerformanceSummary, or NoDataSummary when there are no runs
    """
    thresholds = thresholds or Thresholds()
    analyzed_at = now or datetime.now(UTC)

    if not runs:
        logger.warning("No CI runs to summarize")
        return NoDataSummary(analyzed_at=analyzed_at)

    durations = [run.duration for run in runs]
    avg_duration = _mean(durations)
    avg_cache_hit_rate = _mean([run.cache.hit_rate for run in runs])
    optimal_runs = sum(1 for run in runs if is_optimal(run, thresholds))
    recent = runs[: constants.CI_TREND_RECENT_WINDOW]
    low, high = constants.CI_BASELINE_RANGE_SECONDS

    return PerformanceSummary(
        total_runs=len(runs),
        avg_duration=int(round_half_up(avg_duration)),
        avg_duration_minutes=round_half_up(avg_duration / 60, 2),
        avg_cache_hit_rate=round_half_up(avg_cache_hit_rate, 2),
        fastest_run=min(durations),
        slowest_run=max(durations),
        optimal_runs=optimal_runs,
        optimal_rate=int(round_half_up(optimal_runs / len(runs) * 100)),
        trend=classify_trend(runs, thresholds),
        recent_avg_duration=int(round_half_up(_mean([run.duration for run in recent]))),
        alerts=generate_alerts(runs, avg_duration, avg_cache_hit_rate, thresholds),
        analyzed_at=analyzed_at,
        baseline=Baseline(
            expected_duration_range=(low, high),
            expected_improvement=constants.CI_BASELINE_EXPECTED_IMPROVEMENT,
            actual_performance="meeting-expectations" if avg_duration <= high else "below-expectations",
        ),
    )


def has_critical_alerts(summary: PerformanceSummary | NoDataSummary) -> bool:
    """True when any alert is an error (used for the monitor's exit code)."""
    return any(alert.type == "error" for alert in summary.alerts)
