"""Render the latest CI performance data into an HTML report.

Usage:
    python scripts/generate_performance_report.py

Run the CI performance monitor first; exits 1 if its data files are missing.
"""

import argparse
import logging
from collections.abc import Sequence

from src.core.logging import configure_cli_logging
from src.services import ci_report_service


logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    """Write report.html next to the stored data and return the exit code."""
    parser = argparse.ArgumentParser(description="Generate an HTML report from CI performance data")
    parser.parse_args(argv)
    configure_cli_logging()

    logger.info("Generating CI Performance Report")
    try:
        path = ci_report_service.write_html_report()
    except (FileNotFoundError, ci_report_service.ReportLoadError) as e:
        logger.error("Report generation failed: %s", e)
        return 1

    logger.info("Report generated: %s", path)
    return 0
