"""CI performance monitor: turns workflow runs into analyzed run records.

Runs are analyzed one at a time with a delay between remote calls. A run
whose jobs cannot be fetched is skipped; failing to list the runs at all
aborts the analysis with CIFetchError.
"""

import asyncio
import logging
import random
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from dateutil.parser import isoparse
from pydantic import ValidationError

from src.core.config import constants, settings
from src.core.logging import span
from src.interface.github_client import CIFetchError, GitHubActionsClient
from src.models.ci_models import CacheAnalysis, NoDataSummary, PerformanceSummary, RunRecord, Thresholds
from src.services import ci_report_service, ci_statistics


logger = logging.getLogger(__name__)

PLACEHOLDER_SEED = 19


def _job_duration(jobs: list[dict[str, Any]], name: str) -> int:
    job = next((job for job in jobs if job.get("name") == name), None)
    if job is None:
        return 0
    return ci_statistics.calculate_duration(job.get("started_at"), job.get("completed_at"))


async def analyze_workflow_run(
    client: GitHubActionsClient,
    run: dict[str, Any],
    thresholds: Thresholds,
) -> RunRecord | None:
    """Analyze one workflow run.

    Returns:
        The run record, or None when the run could not be analyzed
    """
    logger.debug("Analyzing run", extra={"run_number": run.get("run_number"), "created_at": run.get("created_at")})
    try:
        jobs = await client.fetch_workflow_jobs(run["id"])
        duration = ci_statistics.calculate_duration(run.get("run_started_at"), run.get("updated_at"))
        record = RunRecord(
            run_id=run["id"],
            run_number=run["run_number"],
            branch=run.get("head_branch"),
            event=run.get("event"),
            conclusion=run.get("conclusion"),
            created_at=isoparse(run["created_at"]),
            duration=duration,
            duration_minutes=ci_statistics.round_half_up(duration / 60, 2),
            test_job_duration=_job_duration(jobs, "Test"),
            security_job_duration=_job_duration(jobs, "Security Scan"),
            cache=ci_statistics.analyze_cache_effectiveness(jobs),
        )
    except (CIFetchError, KeyError, TypeError, ValueError, ValidationError) as e:
        logger.warning("Failed to analyze run", extra={"run_number": run.get("run_number"), "error": str(e)})
        return None

    record.is_optimal = ci_statistics.is_optimal(record, thresholds)
    return record


async def collect_run_records(
    client: GitHubActionsClient,
    *,
    thresholds: Thresholds,
    delay_seconds: float | None = None,
) -> list[RunRecord]:
    """Fetch and analyze recent runs, newest first, skipping runs that fail.

    Raises:
        CIFetchError: If the list of runs cannot be fetched
    """
    delay = settings.ci_request_delay_seconds if delay_seconds is None else delay_seconds
    runs = await client.fetch_workflow_runs()

    records: list[RunRecord] = []
    for run in runs:
        record = await analyze_workflow_run(client, run, thresholds)
        if record is not None:
            records.append(record)
        await asyncio.sleep(delay)

    logger.info("Analyzed workflow runs", extra={"fetched": len(runs), "analyzed": len(records)})
    return records


def create_mock_runs(
    count: int = constants.CI_MOCK_RUN_COUNT,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
    thresholds: Thresholds | None = None,
) -> list[RunRecord]:
    """Synthetic daily runs for offline use and placeholder API data.

    Every tenth run failed and every fifth ran on a feature branch. Durations
    fall in 90-209 s and hit rates in 80-99 %.
    """
    now = now or datetime.now(UTC)
    rng = rng or random.Random()
    thresholds = thresholds or Thresholds()

    runs: list[RunRecord] = []
    for i in range(count):
        duration = rng.randint(90, 209)
        hit_rate = rng.randint(80, 99)
        run = RunRecord(
            run_id=1_000_000 + i,
            run_number=50 - i,
            branch="feature/test" if i % 5 == 0 else "main",
            event="push",
            conclusion="failure" if i % 10 == 0 else "success",
            created_at=now - timedelta(days=i),
            duration=duration,
            duration_minutes=ci_statistics.round_half_up(duration / 60, 2),
            test_job_duration=duration - 30,
            security_job_duration=45,
            cache=CacheAnalysis(total_steps=4, hits=hit_rate * 4 // 100, hit_rate=hit_rate),
        )
        run.is_optimal = ci_statistics.is_optimal(run, thresholds)
        runs.append(run)
    return runs


async def run_performance_analysis(
    *,
    use_mock: bool = False,
    client: GitHubActionsClient | None = None,
    thresholds: Thresholds | None = None,
    data_dir: Path | None = None,
) -> tuple[PerformanceSummary | NoDataSummary, list[RunRecord]]:
    """Collect runs, summarize them and save the report files.

    Args:
        use_mock: Use synthetic runs instead of calling the CI provider
        client: Client to use; one is built from settings when omitted
        thresholds: Alerting thresholds; taken from settings when omitted
        data_dir: Report directory override

    Returns:
        (summary, runs)

    Raises:
        CIFetchError: If the CI provider is unavailable
    """
    thresholds = thresholds or Thresholds.from_settings()

    with span("ci_monitor_service.run_performance_analysis"):
        if use_mock:
            logger.info("Using mock CI data")
            runs = create_mock_runs(thresholds=thresholds)
        elif client is not None:
            runs = await collect_run_records(client, thresholds=thresholds)
        else:
            async with GitHubActionsClient.from_settings() as owned_client:
                runs = await collect_run_records(owned_client, thresholds=thresholds)

        summary = ci_statistics.summarize(runs, thresholds)
        ci_report_service.save_performance_data(summary, runs, data_dir=data_dir)
        return summary, runs


def placeholder_runs(*, now: datetime | None = None) -> list[RunRecord]:
    """Run records served before the monitor has produced any report.

    Seeded so repeated requests see the same data.
    """
    return create_mock_runs(now=now, rng=random.Random(PLACEHOLDER_SEED))
