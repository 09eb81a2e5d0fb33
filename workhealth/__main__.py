"""Command-line entry for workhealth.

Analyses one calendar day and prints the metrics (and optional insights)
as JSON on stdout.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import NoReturn

from . import _init_logging, run_analysis
from .core.exceptions import ConfigurationError, UpstreamFetchError
from .insights.models import TabType


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the workhealth CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="workhealth",
        description="Work health scoring for a day of calendar meetings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m workhealth --sample                      # Score the built-in sample day
  python -m workhealth --events-file day.json        # Score events exported to JSON
  python -m workhealth --date 2025-09-15 --insights   # Live Google Calendar + insights
        """,
    )

    parser.add_argument(
        "--date",
        metavar="YYYY-MM-DD",
        help="Day to analyse (default: today in the selected timezone)",
    )
    parser.add_argument(
        "--timezone",
        metavar="TZ",
        help="IANA timezone (default: WORKHEALTH_DEFAULT_TIMEZONE or America/Los_Angeles)",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--events-file",
        metavar="PATH",
        help="Read raw events from a JSON file instead of Google Calendar",
    )
    source.add_argument(
        "--sample",
        action="store_true",
        help="Use the built-in sample day",
    )
    parser.add_argument(
        "--insights",
        action="store_true",
        help="Also produce personalized insights",
    )
    parser.add_argument(
        "--tab",
        choices=[tab.value for tab in TabType],
        default="overview",
        help="Insight tab (default: overview)",
    )
    parser.add_argument("--user-id", metavar="ID", help="User id for the insight cache")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    return parser


def main() -> NoReturn:
    """Run the workhealth CLI.

    Exit codes: 0 on success, 2 for configuration errors, 3 when the event
    source is unavailable.
    """
    parser = _create_parser()
    args = parser.parse_args()

    _init_logging("DEBUG" if args.debug else "INFO")

    try:
        result = run_analysis(args)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    except UpstreamFetchError as exc:
        hint = " (retryable)" if exc.retryable else ""
        print(f"Could not fetch calendar events{hint}: {exc}", file=sys.stderr)
        sys.exit(3)
    except ValueError as exc:
        parser.error(str(exc))

    json.dump(result, sys.stdout, indent=2)
    sys.stdout.write("\n")
    sys.exit(0)


if __name__ == "__main__":
    main()
