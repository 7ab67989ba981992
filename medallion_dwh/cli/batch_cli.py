"""
Command-line interface for the layer batches.

Usage:
    medallion-batch init-db [options]
    medallion-batch bronze|silver|gold [options]
    medallion-batch run [--layers bronze silver gold] [options]
"""

import argparse
import sys

from pyspark.sql import SparkSession

from ..batch.pipeline import MedallionPipeline
from ..batch.readers import CSVReader
from ..config.settings import DEFAULT_CONFIG_PATH, DatabaseSettings, PipelineSettings, load_settings
from ..core.catalog import BRONZE, LAYERS
from ..core.models.batch_result import BatchResult
from ..observability.logger import configure_all, get_logger
from ..observability.metrics import start_metrics_server
from ..utils.validation import InvalidInputError, validate_file_path, validate_layers
from ..warehouse.connection import DatabaseConnectionPool
from ..warehouse.schema_mgmt import SchemaManager
from ..warehouse.store import InMemoryLayerStore, PostgresLayerStore

logger = get_logger(__name__)


def create_spark_session(app_name: str = "medallion-dwh") -> SparkSession:
    """
    Create a local Spark session for reading the source extracts.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.ui.enabled", "false") \
        .config("spark.sql.shuffle.partitions", "4") \
        .getOrCreate()

    spark.sparkContext.setLogLevel("WARN")
    return spark


def database_settings(args, settings: PipelineSettings) -> DatabaseSettings:
    """Database settings from the config file, with command-line values on top."""
    overrides = {
        "host": args.db_host,
        "port": args.db_port,
        "database": args.db_name,
        "user": args.db_user,
        "password": args.db_password,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    return settings.database.model_copy(update=overrides)


def report(results: list[BatchResult]) -> int:
    """Log a summary of the batch results and return the exit code."""
    logger.info("=" * 60)
    for result in results:
        if result.succeeded:
            logger.info(
                f"{result.batch_name}: COMMITTED ({result.rows_written} rows, "
                f"{result.duration_seconds:.3f} seconds)"
            )
            for step in result.steps:
                logger.info(f"  {step.job_name}: {step.rows_written} rows")
        else:
            failure = result.failure
            logger.error(
                f"{result.batch_name}: ROLLED BACK at {failure.job_name or '-'} "
                f"({failure.step_name or '-'}): {failure.error_type}: {failure.message}"
            )
    logger.info("=" * 60)
    return 0 if all(result.succeeded for result in results) else 1


def init_db_command(args) -> int:
    """Create the warehouse schemas and tables."""
    settings = load_settings(args.config, env_file=args.env_file)
    pool = DatabaseConnectionPool.from_settings(database_settings(args, settings))
    pool.open()
    try:
        if args.drop:
            SchemaManager(pool).drop_all()
        count = SchemaManager(pool).initialize()
        logger.info(f"Warehouse ready: {count} tables")
        return 0
    finally:
        pool.close()


def layers_command(args, layers: list[str]) -> int:
    """Run one or more layer batches."""
    settings = load_settings(args.config, env_file=args.env_file)

    if args.metrics_port:
        start_metrics_server(args.metrics_port)

    spark = None
    reader = None
    if BRONZE in layers:
        logger.info("Creating Spark session...")
        spark = create_spark_session()
        reader = CSVReader(spark)

    pool = None
    try:
        if args.dry_run:
            logger.info("DRY RUN MODE: batches run against an in-memory store, nothing is written")
            store = InMemoryLayerStore()
        else:
            pool = DatabaseConnectionPool.from_settings(database_settings(args, settings))
            pool.open()
            store = PostgresLayerStore(pool)

        pipeline = MedallionPipeline(store, settings, reader=reader)
        results = pipeline.run(layers)

        if args.dry_run:
            for table_name, count in store.row_counts().items():
                logger.info(f"DRY RUN: {table_name} would hold {count} rows")

        return report(results)
    finally:
        if pool is not None:
            pool.close()
        if spark is not None:
            spark.stop()


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help=f"Pipeline configuration YAML (default: {DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Optional .env file holding DB_* variables"
    )
    parser.add_argument("--db-host", default=None, help="Database host (overrides config)")
    parser.add_argument("--db-port", type=int, default=None, help="Database port (overrides config)")
    parser.add_argument("--db-name", default=None, help="Database name (overrides config)")
    parser.add_argument("--db-user", default=None, help="Database user (overrides config)")
    parser.add_argument("--db-password", default=None, help="Database password (default: DB_PASSWORD)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "text"],
        help="Log format (default: LOG_FORMAT or json)"
    )


def _add_batch_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run against an in-memory store instead of the database"
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Expose Prometheus metrics on this port while the batch runs"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="medallion-batch",
        description="Bronze/Silver/Gold warehouse batches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create schemas and tables
  medallion-batch init-db

  # Full run: bronze, then silver, then gold
  medallion-batch run

  # Rebuild silver from the current bronze tables
  medallion-batch silver

  # Try the whole pipeline without touching the database
  medallion-batch run --dry-run --log-format text
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init-db", help="Create warehouse schemas and tables")
    init_parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop the warehouse schemas first"
    )
    _add_common_arguments(init_parser)

    for layer in LAYERS:
        layer_parser = subparsers.add_parser(layer, help=f"Reload the {layer} layer")
        _add_common_arguments(layer_parser)
        _add_batch_arguments(layer_parser)

    run_parser = subparsers.add_parser("run", help="Run several layers in order")
    run_parser.add_argument(
        "--layers",
        nargs="+",
        default=list(LAYERS),
        help="Layers to run (default: bronze silver gold)"
    )
    _add_common_arguments(run_parser)
    _add_batch_arguments(run_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_all(level=args.log_level, format_type=args.log_format)

    try:
        validate_file_path(args.config, "config")
        if args.command == "init-db":
            exit_code = init_db_command(args)
        elif args.command == "run":
            exit_code = layers_command(args, validate_layers(args.layers))
        else:
            exit_code = layers_command(args, [args.command])
    except InvalidInputError as e:
        logger.error(f"Invalid input: {e}")
        exit_code = 2
    except Exception as e:
        logger.error(f"Error during {args.command}: {e}", exc_info=True)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
