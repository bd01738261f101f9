"""Command-line interface for timetable-pipeline."""

import argparse
import logging
import sys

from timetable_pipeline.api import extract, splice, validate
from timetable_pipeline.gtfs.models import (
    DEFAULT_ROUTE_COLOR,
    DEFAULT_ROUTING_URL,
    ExtractConfig,
    SpliceConfig,
)
from timetable_pipeline.version import VERSION


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def cmd_extract(args: argparse.Namespace) -> int:
    """Execute extract command."""
    setup_logging(args.verbose)

    config = ExtractConfig(
        input_path=args.input,
        output_path=args.output,
        overrides_path=args.overrides,
        routing_url=args.routing_url,
        routing_profile=args.routing_profile,
        routing_timeout=args.routing_timeout,
        max_points_per_request=args.max_points,
        request_delay=args.request_delay,
        max_retries=args.max_retries,
        retry_delay=args.retry_delay,
        route_ids=args.route_ids,
        pretty=args.pretty,
        default_route_color=args.default_color,
    )

    try:
        manifest = extract(config)
        print("\nExtraction successful!")
        print(f"Output: {args.output}")
        print(f"Stats: {manifest.stats}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Extraction failed")
        return 1


def cmd_splice(args: argparse.Namespace) -> int:
    """Execute splice command."""
    setup_logging(args.verbose)

    config = SpliceConfig(
        output_path=args.output,
        overrides_path=args.overrides,
        pretty=args.pretty,
    )

    try:
        manifest = splice(config)
        print("\nSplice successful!")
        print(f"Stats: {manifest.splice['stats']}")
        return 0
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Splice failed")
        return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Execute validate command."""
    setup_logging(args.verbose)

    try:
        report = validate(args.input)
        if report.valid:
            print("\nValidation successful!")
            print(f"Stats: {report.stats}")
            if report.warnings:
                print(f"Warnings ({len(report.warnings)}):")
                for warning in report.warnings:
                    print(f"  - {warning}")
            return 0
        else:
            print(f"\nValidation failed with {len(report.errors)} errors:")
            for error in report.errors:
                print(f"  - {error}")
            return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Validation failed")
        return 1


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="timetable-pipeline",
        description="Convert a GTFS feed into map and timetable viewer JSON",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Extract command
    extract_parser = subparsers.add_parser(
        "extract", help="Build all JSON documents, querying the routing service for shapes"
    )
    extract_parser.add_argument(
        "--input", default="gtfs_raw", help="Path to GTFS directory (default: gtfs_raw)"
    )
    extract_parser.add_argument("--output", default=".", help="Output directory (default: .)")
    extract_parser.add_argument(
        "--overrides",
        default="manual_shapes.json",
        help="Manual shape override table (default: manual_shapes.json)",
    )
    extract_parser.add_argument(
        "--routing-url",
        default=DEFAULT_ROUTING_URL,
        help=f"OSRM server base URL (default: {DEFAULT_ROUTING_URL})",
    )
    extract_parser.add_argument(
        "--routing-profile", default="driving", help="OSRM profile (default: driving)"
    )
    extract_parser.add_argument(
        "--routing-timeout",
        type=float,
        default=30.0,
        help="Routing request timeout in seconds (default: 30)",
    )
    extract_parser.add_argument(
        "--max-points",
        type=int,
        default=21,
        help="Maximum points per routing request (default: 21)",
    )
    extract_parser.add_argument(
        "--request-delay",
        type=float,
        default=1.5,
        help="Seconds to wait between patterns (default: 1.5)",
    )
    extract_parser.add_argument(
        "--max-retries",
        type=int,
        default=3,
        help="Attempts per routing request (default: 3)",
    )
    extract_parser.add_argument(
        "--retry-delay",
        type=float,
        default=1.0,
        help="Initial retry backoff in seconds, doubled per attempt (default: 1.0)",
    )
    extract_parser.add_argument(
        "--route",
        dest="route_ids",
        action="append",
        help="Only extract this route id (repeatable, default: all routes)",
    )
    extract_parser.add_argument(
        "--default-color",
        default=DEFAULT_ROUTE_COLOR,
        help=f"Color for routes without route_color (default: {DEFAULT_ROUTE_COLOR})",
    )
    extract_parser.add_argument("--pretty", action="store_true", help="Indent JSON output")
    extract_parser.set_defaults(func=cmd_extract)

    # Splice command
    splice_parser = subparsers.add_parser(
        "splice", help="Re-apply manual shapes to extracted geometry without routing"
    )
    splice_parser.add_argument(
        "--output", default=".", help="Directory holding extracted output (default: .)"
    )
    splice_parser.add_argument(
        "--overrides",
        default="manual_shapes.json",
        help="Manual shape override table (default: manual_shapes.json)",
    )
    splice_parser.add_argument("--pretty", action="store_true", help="Indent JSON output")
    splice_parser.set_defaults(func=cmd_splice)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate extracted output")
    validate_parser.add_argument("--input", required=True, help="Path to output directory")
    validate_parser.set_defaults(func=cmd_validate)

    # Parse and execute
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
