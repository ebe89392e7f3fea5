"""
Command-line interface for wastewater ingestion.

Usage:
    wastewater init-db
    wastewater ingest [--input FILE] [--url URL] [--no-notify] [--metrics-file PATH]
    wastewater trends [--site SITE --target TARGET]
"""

import argparse
import sys
from pathlib import Path
from typing import BinaryIO

from src.batch.pipeline import IngestionPipeline
from src.batch.readers import HttpSource
from src.core.config import PipelineSettings, load_settings
from src.core.errors import PipelineError
from src.notify.webhook import WebhookNotifier, format_trend_message
from src.observability.logger import get_logger, setup_logger
from src.observability.metrics import write_metrics
from src.warehouse.connection import DatabaseConnectionPool
from src.warehouse.sample_store import SampleStore
from src.warehouse.schema_mgmt import SchemaManager
from src.warehouse.trends import TrendQuery


logger = get_logger(__name__)


def init_db_command(args, settings: PipelineSettings) -> int:
    """
    Create the sample table if it does not exist.

    Args:
        args: Command-line arguments
        settings: Loaded settings
    """
    with DatabaseConnectionPool.from_settings(settings) as pool:
        SchemaManager(pool, logger=logger).ensure_schema()
    return 0


def open_source(args, settings: PipelineSettings) -> BinaryIO:
    """
    Open the CSV to ingest: a local file if --input was given, else a download.

    Raises:
        FileNotFoundError: If --input does not exist
        FetchError: If the download fails
    """
    if args.input:
        return Path(args.input).open("rb")

    with HttpSource(
        args.url or settings.wastewater_url,
        timeout=settings.fetch_timeout_seconds,
        logger=logger,
    ) as source:
        return source.fetch()


def ingest_command(args, settings: PipelineSettings) -> int:
    """
    Ingest one CSV (local file or download) and report trends.

    Args:
        args: Command-line arguments
        settings: Loaded settings
    """
    notifier = None
    if settings.webhook_url and not args.no_notify:
        notifier = WebhookNotifier(settings.webhook_url, logger=logger)

    try:
        with DatabaseConnectionPool.from_settings(settings) as pool:
            SchemaManager(pool, logger=logger).ensure_schema()
            pipeline = IngestionPipeline(SampleStore(pool, logger=logger), logger=logger)

            with open_source(args, settings) as stream:
                result = pipeline.run(
                    stream,
                    TrendQuery(pool, logger=logger),
                    pairs=settings.watch,
                    notifier=notifier,
                )
    finally:
        if notifier is not None:
            notifier.close()

    report = result.report
    print(
        f"inserted={report.inserted} skipped_duplicate={report.skipped_duplicate} "
        f"failed_conversion={report.failed_conversion} total={report.total}"
    )
    if result.summaries:
        print(format_trend_message(result.summaries))

    if args.metrics_file:
        write_metrics(args.metrics_file)
    return 0


def trends_command(args, settings: PipelineSettings) -> int:
    """
    Print latest-vs-previous trends without ingesting.

    Args:
        args: Command-line arguments
        settings: Loaded settings
    """
    if bool(args.site) != bool(args.target):
        logger.error("--site and --target must be given together")
        return 2

    with DatabaseConnectionPool.from_settings(settings) as pool:
        store = SampleStore(pool, logger=logger)
        if args.site:
            pairs = [(args.site, args.target)]
        else:
            pairs = settings.watch or store.list_locations()
        summaries = TrendQuery(pool, logger=logger).summarize(pairs)

    print(format_trend_message(summaries))
    return 0


COMMANDS = {
    "init-db": init_db_command,
    "ingest": ingest_command,
    "trends": trends_command,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wastewater",
        description="Wastewater surveillance ingestion pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create the table
  wastewater init-db

  # Download the published CSV, store new samples, post trends
  wastewater ingest

  # Ingest a local copy without notifying
  wastewater ingest --input data/Downloadable_Wastewater.csv --no-notify

  # Show the trend for one site
  wastewater trends --site "Tacoma Central" --target SARS-CoV-2

Connection settings come from DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD
(a .env file in the working directory is read first).
        """
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: env LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file (default: search from the working directory)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create the sample table")

    ingest_parser = subparsers.add_parser("ingest", help="Ingest the wastewater CSV")
    ingest_parser.add_argument(
        "--input",
        help="Read a local CSV file instead of downloading"
    )
    ingest_parser.add_argument(
        "--url",
        help="Download from this URL (default: env URL_WAGOV_WASTEWATER)"
    )
    ingest_parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Do not post trends to the webhook"
    )
    ingest_parser.add_argument(
        "--metrics-file",
        help="Write Prometheus metrics to this textfile after the run"
    )

    trends_parser = subparsers.add_parser("trends", help="Show latest-vs-previous trends")
    trends_parser.add_argument("--site", help="Site name")
    trends_parser.add_argument("--target", help="PCR pathogen target")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = load_settings(args.env_file)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logger(level=args.log_level or settings.log_level, format_type=settings.log_format)

    try:
        return COMMANDS[args.command](args, settings)
    except (PipelineError, OSError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
