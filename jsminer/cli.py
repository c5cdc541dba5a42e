"""
Command-line interface for the JS Miner static asset scanner.

Scans a live page URL or a collected resources document and writes a
JSON or HTML report, plus the archives of recovered files.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog
from dotenv import load_dotenv
from pydantic import ValidationError

from jsminer import __version__
from jsminer.models import ScannerType

SCANNER_CHOICES = [s.value for s in ScannerType]


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure structlog for CLI output."""
    import logging

    log_level = "DEBUG" if debug else "INFO" if verbose else "WARNING"

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _pairs(values: list[str], separator: str) -> dict[str, str]:
    """Parse ``NAME<sep>VALUE`` options."""
    result: dict[str, str] = {}
    for value in values:
        name, sep, rest = value.partition(separator)
        if not sep or not name.strip():
            raise ValueError(f"Expected NAME{separator}VALUE, got {value!r}")
        result[name.strip()] = rest.strip()
    return result


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="jsminer",
        description="JS Miner - find secrets, dependency confusion and leaked sources in static assets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  jsminer https://example.com
  jsminer collected.json --scan-mode active --archive-dir loot/
  jsminer https://app.example.com --referrer https://example.com --scanners subdomains secrets
  jsminer https://example.com --report-format html -o report.html

Targets:
  A page URL (http:// or https://) is fetched and its scripts and stylesheets
  collected. Any other target is read as a collector JSON document:
  {"pageUrl": ..., "referrer": ..., "resources": [{"url", "type", "isInline", ...}]}

Scan Modes:
  passive   - dependency, subdomains, secrets, cloud, inline_maps, endpoints
  active    - passive scanners plus active_maps and static_dump
""",
    )

    parser.add_argument("target", help="Page URL or collector JSON file")

    parser.add_argument(
        "--referrer",
        default="",
        help="Referrer of the page, used to pick the audited root domain",
    )

    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output file path for report (default: stdout)",
    )

    parser.add_argument(
        "--report-format",
        choices=["json", "html"],
        default="json",
        dest="report_format",
        help="Report output format (default: json)",
    )

    parser.add_argument(
        "--archive-dir",
        default=None,
        help="Directory receiving the zip archives of recovered files",
    )

    parser.add_argument(
        "--scan-mode",
        choices=["passive", "active"],
        default=None,
        dest="scan_mode",
        help="Default scanner set (default: passive)",
    )

    parser.add_argument(
        "--scanners",
        nargs="+",
        choices=SCANNER_CHOICES,
        default=None,
        help="Specific scanners to run, in order (overrides --scan-mode)",
    )

    parser.add_argument(
        "-t", "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: 10)",
    )

    parser.add_argument(
        "--entropy-threshold",
        type=float,
        default=None,
        dest="entropy_threshold",
        help="Entropy at which a secret counts as high entropy (default: 3.5)",
    )

    parser.add_argument(
        "--cookie",
        action="append",
        default=[],
        help="Ambient cookie NAME=VALUE (can be specified multiple times)",
    )

    parser.add_argument(
        "--header",
        action="append",
        default=[],
        help="Ambient header 'NAME: VALUE' (can be specified multiple times)",
    )

    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Run scanners one after another",
    )

    parser.add_argument(
        "--no-verify-ssl",
        action="store_true",
        help="Disable SSL certificate verification",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", action="version", version=f"JS Miner {__version__}")

    return parser


async def run_scan(args: argparse.Namespace) -> int:
    """
    Execute the scan.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (1 when configuration fails or HIGH issues exist)
    """
    from jsminer.archive import export_downloads
    from jsminer.collector import CollectionError, load_collected_page
    from jsminer.models import ScanConfig, Severity
    from jsminer.orchestrator import ScanOrchestrator
    from jsminer.reports import ReportGenerator

    logger = structlog.get_logger(__name__)

    try:
        config = ScanConfig.from_env(
            scan_mode=args.scan_mode,
            enabled_scanners=[ScannerType(s) for s in args.scanners] if args.scanners else None,
            timeout=args.timeout,
            entropy_threshold=args.entropy_threshold,
            cookies=_pairs(args.cookie, "=") or None,
            custom_headers=_pairs(args.header, ":") or None,
            parallel=False if args.sequential else None,
            verify_ssl=False if args.no_verify_ssl else None,
        )
    except (ValidationError, ValueError) as e:
        logger.error("configuration_error", error=str(e))
        return 1

    logger.info(
        "scan_starting",
        target=args.target,
        scanners=[s.value for s in config.scanners],
        parallel=config.parallel,
    )

    async with ScanOrchestrator(config) as orchestrator:
        if args.target.startswith(("http://", "https://")):
            report = await orchestrator.scan_url(args.target, referrer=args.referrer)
        else:
            try:
                page = load_collected_page(args.target)
            except CollectionError as e:
                logger.error("collection_error", error=str(e))
                return 1
            if args.referrer:
                page = page.model_copy(update={"referrer": args.referrer})
            report = await orchestrator.scan_page(page)

    reporter = ReportGenerator(report)
    output = reporter.generate_json() if args.report_format == "json" else reporter.generate_html()

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(output)
        logger.info("report_saved", path=str(output_path.absolute()))
    else:
        print(output)

    if args.archive_dir:
        archives = export_downloads(report.issues, args.archive_dir)
        logger.info("archives_saved", directory=args.archive_dir, count=len(archives))

    counts = report.severity_counts
    logger.info(
        "scan_summary",
        total_issues=sum(counts.values()),
        high=counts[Severity.HIGH],
        medium=counts[Severity.MEDIUM],
        low=counts[Severity.LOW],
        information=counts[Severity.INFORMATION],
        failed_scanners=[s.value for s in report.errors],
        duration=f"{report.duration_seconds:.2f}s",
    )

    return 1 if counts[Severity.HIGH] > 0 else 0


def main() -> None:
    """Main entry point for CLI."""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args()

    configure_logging(verbose=args.verbose, debug=args.debug)

    try:
        exit_code = asyncio.run(run_scan(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nScan interrupted by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        logger = structlog.get_logger(__name__)
        logger.error("fatal_error", error=str(e))
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
