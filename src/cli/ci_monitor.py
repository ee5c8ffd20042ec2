"""CI performance monitor command.

Usage:
    python scripts/ci_performance_monitor.py            # Run full analysis
    python scripts/ci_performance_monitor.py --quiet    # Minimal output
    python scripts/ci_performance_monitor.py --mock     # Use mock data (offline mode)

Exits 1 when the analysis raises a critical alert or the CI provider is unreachable.
"""

import argparse
import asyncio
import logging
from collections.abc import Sequence

from src.core.logging import configure_cli_logging
from src.interface.github_client import CIFetchError
from src.models.ci_models import NoDataSummary, PerformanceSummary
from src.services import ci_monitor_service, ci_report_service, ci_statistics


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Analyze GitHub Actions workflow performance")
    parser.add_argument("--mock", action="store_true", help="Use mock data for testing (offline mode)")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Minimal output")
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Verbose output with detailed analysis")
    parser.epilog = f"Performance data is saved to: {ci_report_service.get_data_dir()}"
    return parser


def report_summary(summary: PerformanceSummary | NoDataSummary) -> None:
    """Log the human-readable summary of an analysis."""
    if isinstance(summary, NoDataSummary):
        logger.warning("No runs analyzed: %s", summary.error)
        return

    logger.info("PERFORMANCE SUMMARY")
    logger.info("Total runs analyzed: %d", summary.total_runs)
    logger.info("Average duration: %s minutes", summary.avg_duration_minutes)
    logger.info("Cache hit rate: %s%%", summary.avg_cache_hit_rate)
    logger.info("Optimal runs: %d/%d (%d%%)", summary.optimal_runs, summary.total_runs, summary.optimal_rate)
    logger.info("Performance trend: %s", summary.trend)

    low, high = summary.baseline.expected_duration_range
    logger.info("BASELINE COMPARISON")
    logger.info("Expected: %s-%s seconds", low, high)
    logger.info("Actual: %s minutes", summary.avg_duration_minutes)
    logger.info("Status: %s", summary.baseline.actual_performance.replace("-", " "))

    if not summary.alerts:
        logger.info("No performance alerts")
    for alert in summary.alerts:
        log = logger.error if alert.type == "error" else logger.warning
        log("[%s] %s", alert.severity.upper(), alert.message)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the analysis and return the process exit code."""
    args = build_parser().parse_args(argv)

    configure_cli_logging(quiet=args.quiet, verbose=args.verbose)

    logger.info("Starting CI Performance Analysis")
    try:
        summary, _ = asyncio.run(ci_monitor_service.run_performance_analysis(use_mock=args.mock))
    except CIFetchError as e:
        logger.error("Performance analysis failed: %s", e)
        logger.error("Run with --mock to use offline data")
        return 1

    report_summary(summary)

    if ci_statistics.has_critical_alerts(summary):
        return 1
    logger.info("Analysis complete!")
    return 0
