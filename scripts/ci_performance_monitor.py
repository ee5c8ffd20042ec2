#!/usr/bin/env python3
"""Collect and analyze GitHub Actions workflow performance.

Usage:
    uv run python scripts/ci_performance_monitor.py [--mock] [--quiet | --verbose]
"""

import sys

from src.cli.ci_monitor import main


if __name__ == "__main__":
    sys.exit(main())
