"""
Admin CLI for inspecting load logs.

Usage:
    medallion-admin load-log --layer <layer> [options]
    medallion-admin load-summary --layer <layer> [options]
    medallion-admin failures [--limit N] [options]
"""

import argparse
import sys
from datetime import datetime

from ..config.settings import DatabaseSettings
from ..observability.logger import configure_all, get_logger
from ..utils.validation import InvalidInputError, validate_layer, validate_limit
from ..warehouse.connection import DatabaseConnectionPool
from ..warehouse.load_log import read_failures, read_load_log, summarize_load_log
from ..warehouse.store import PostgresLayerStore

logger = get_logger(__name__)


def format_timestamp(ts: datetime | str | None) -> str:
    """Format timestamp for display."""
    if isinstance(ts, str):
        return ts
    return ts.strftime("%Y-%m-%d %H:%M:%S") if ts else "N/A"


def load_log_command(store, args) -> None:
    """Print the step log of the last batch of a layer."""
    layer = validate_layer(args.layer)
    entries = read_load_log(store, layer)

    if not entries:
        print(f"\nNo load log entries for layer: {layer}")
        print("The layer may not have been loaded yet, or its last batch rolled back.")
        return

    print(f"\n{'=' * 90}")
    print(f"LOAD LOG: {layer.upper()}")
    print(f"{'=' * 90}\n")
    print(f"{'Logged at':<20} {'Job':<32} {'Step':<10} {'Seconds':>10} {'Message'}")
    print(f"{'-' * 90}")
    for entry in entries:
        print(
            f"{format_timestamp(entry.logged_at):<20} {entry.job_name:<32} "
            f"{entry.step_name:<10} {entry.total_duration:>10.3f} {entry.message}"
        )
    print(f"\n{'=' * 90}\n")


def load_summary_command(store, args) -> None:
    """Print the per-job totals of a layer's step log."""
    layer = validate_layer(args.layer)
    summary = summarize_load_log(store, layer)

    if not summary:
        print(f"\nNo load log entries for layer: {layer}")
        return

    print(f"\n{'=' * 60}")
    print(f"LOAD SUMMARY: {layer.upper()}")
    print(f"{'=' * 60}\n")
    print(f"{'Job':<32} {'Processes':>10} {'Seconds':>12}")
    print(f"{'-' * 60}")
    for job in summary:
        print(f"{job['job_name']:<32} {job['total_processes']:>10} {job['total_duration']:>12.3f}")
    total = sum(job["total_duration"] for job in summary)
    print(f"{'-' * 60}")
    print(f"{'Total':<32} {'':>10} {total:>12.3f}")
    print(f"\n{'=' * 60}\n")


def failures_command(store, args) -> None:
    """Print the most recent failed batches."""
    limit = validate_limit(args.limit)
    failures = read_failures(store, limit=limit)

    if not failures:
        print("\nNo failed batches recorded.")
        return

    print(f"\n{'=' * 100}")
    print("FAILED BATCHES")
    print(f"{'=' * 100}\n")
    print(f"{'Logged at':<20} {'Batch':<20} {'Job':<32} {'Step':<10} {'Error'}")
    print(f"{'-' * 100}")
    for failure in failures:
        print(
            f"{format_timestamp(failure.logged_at):<20} {failure.batch_name:<20} "
            f"{failure.job_name or '-':<32} {failure.step_name or '-':<10} {failure.error_type}"
        )

    if args.detailed:
        print("\nError Messages:")
        print(f"{'-' * 100}\n")
        for failure in failures:
            print(f"{failure.batch_name} ({format_timestamp(failure.logged_at)})")
            print(f"  {failure.message}")
            print()
    print(f"\n{'=' * 100}\n")


COMMANDS = {
    "load-log": load_log_command,
    "load-summary": load_summary_command,
    "failures": failures_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="medallion-admin",
        description="Inspect warehouse load logs",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    # Global database connection options; unset values fall back to DB_* variables
    parser.add_argument("--db-host", default=None, help="Database host (default: DB_HOST)")
    parser.add_argument("--db-port", type=int, default=None, help="Database port (default: DB_PORT)")
    parser.add_argument("--db-name", default=None, help="Database name (default: DB_NAME)")
    parser.add_argument("--db-user", default=None, help="Database user (default: DB_USER)")
    parser.add_argument("--db-password", default=None, help="Database password (default: DB_PASSWORD)")
    parser.add_argument(
        "--log-format",
        default="text",
        choices=["json", "text"],
        help="Log format (default: text)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    log_parser = subparsers.add_parser("load-log", help="Show the step log of a layer")
    log_parser.add_argument("--layer", required=True, help="bronze, silver or gold")

    summary_parser = subparsers.add_parser("load-summary", help="Per-job totals of a layer's step log")
    summary_parser.add_argument("--layer", required=True, help="bronze, silver or gold")

    failures_parser = subparsers.add_parser("failures", help="Show recent failed batches")
    failures_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Maximum number of failures to display (default: 20)"
    )
    failures_parser.add_argument(
        "--detailed",
        action="store_true",
        help="Show full error messages"
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for admin CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_all(format_type=args.log_format)

    overrides = {
        "host": args.db_host,
        "port": args.db_port,
        "database": args.db_name,
        "user": args.db_user,
        "password": args.db_password,
    }
    settings = DatabaseSettings().with_env_overrides().model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )

    pool = None
    try:
        pool = DatabaseConnectionPool.from_settings(settings)
        pool.open()
        COMMANDS[args.command](PostgresLayerStore(pool), args)
    except InvalidInputError as e:
        print(f"\nError: {e}")
        sys.exit(2)
    except Exception as e:
        logger.error(f"Error running {args.command}: {e}", exc_info=True)
        print(f"\nError: {e}")
        sys.exit(1)
    finally:
        if pool is not None:
            pool.close()


if __name__ == "__main__":
    main()
