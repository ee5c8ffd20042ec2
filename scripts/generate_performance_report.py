#!/usr/bin/env python3
"""Generate an HTML report from the latest CI performance data.

Usage:
    uv run python scripts/generate_performance_report.py
"""

import sys

from src.cli.performance_report import main


if __name__ == "__main__":
    sys.exit(main())
