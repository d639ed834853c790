"""
Command-line interface for the recent changes tool.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .analyzer import MetadataTypesError, RecentChangesAnalyzer
from .reporting import records_to_json, save_results_json
from .salesforce import SalesforceConnection, SalesforceError


def _non_negative_int(value: str) -> int:
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
    if days < 0:
        raise argparse.ArgumentTypeError("must be zero or greater")
    return days


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sf-recent-changes",
        description="Visualize recently modified metadata and generate package.xml",
    )

    parser.add_argument(
        "-o", "--target-org",
        default=None,
        help="The org to connect to (alias or username known to the sf CLI). "
             "Required unless SF_INSTANCE_URL and SF_ACCESS_TOKEN are set"
    )

    parser.add_argument(
        "-d", "--days",
        type=_non_negative_int,
        default=15,
        help="Number of days to look back. Default: 15"
    )

    parser.add_argument(
        "-c", "--created",
        action="store_true",
        help="Filter by created date instead of last modified date"
    )

    parser.add_argument(
        "-t", "--types",
        default="",
        help='Comma-separated list of metadata types to check, or "all"'
    )

    parser.add_argument(
        "-m", "--mine",
        action="store_true",
        help="Only show changes made by the current user"
    )

    parser.add_argument(
        "--api-version",
        default=None,
        help="API version to use. Default: the org's (or SF_API_VERSION)"
    )

    parser.add_argument(
        "--output-dir",
        default="./output",
        help="Output directory for the generated manifest. Default: ./output"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the changed components as JSON after the report"
    )

    parser.add_argument(
        "--save-json",
        action="store_true",
        help="Also save the changed components to recent_changes.json in the output directory"
    )

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Do not display a progress bar"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser


def connect(args: argparse.Namespace) -> SalesforceConnection:
    if args.target_org:
        return SalesforceConnection.from_org(args.target_org, api_version=args.api_version)
    return SalesforceConnection.from_env(api_version=args.api_version)


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    if not args.target_org and not (
        os.environ.get("SF_INSTANCE_URL") and os.environ.get("SF_ACCESS_TOKEN")
    ):
        parser.error("--target-org is required")

    try:
        connection = connect(args)
        analyzer = RecentChangesAnalyzer(
            connection=connection,
            days=args.days,
            created=args.created,
            types=args.types,
            mine=args.mine,
            output_dir=Path(args.output_dir),
            show_progress=not args.no_progress,
        )
        records = analyzer.run()

        if args.json:
            print(json.dumps(records_to_json(records), indent=2))

        if args.save_json:
            results_file = save_results_json(records, Path(args.output_dir))
            print(f"Results saved to: {results_file}")
    except (SalesforceError, MetadataTypesError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
