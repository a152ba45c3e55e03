"""Command-line entry point: load one FRED series into a ClickHouse table.

Required arguments:
    --series      FRED series id (case-insensitive at the API)
    --table       destination table, optionally ``database.table``
    --api         FRED API key (defaults to $FRED_API_KEY)

Optional arguments:
    --host        sink host. Default: 127.0.0.1
    --user        sink user. Default: "default"
    --password    sink password. Default: ""

The table created has these fields:

    seriesId    String     series ID requested
    date        Date       date of metric value
    value       Float32    value of metric

Any existing table of the same name is dropped first.
"""
from __future__ import annotations

import argparse
import os
import sys
from typing import Sequence

from fred_loader.clients.fred_client import DEFAULT_TIMEOUT, FRED_OBSERVATIONS_URL
from fred_loader.db.session import build_dsn
from fred_loader.db.utils import DateFloorPolicy
from fred_loader.errors import FredLoadError
from fred_loader.pipeline import PipelineConfig, run_pipeline
from fred_loader.utils.load_run_logger import run_log_table_from_env
from fred_loader.utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="cli")

EXIT_OK = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="fred-loader",
        description="Pull a single FRED series and (re)create a table holding it.",
        epilog=__doc__.split("\n\n", 1)[1] if __doc__ else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--series", required=True, help="FRED series id")
    parser.add_argument("--table", required=True, help="Destination table")
    parser.add_argument("--api", default=os.getenv("FRED_API_KEY"), help="FRED API key")
    parser.add_argument("--host", default=None, help="Sink host (default 127.0.0.1)")
    parser.add_argument("--user", default=None, help='Sink user (default "default")')
    parser.add_argument("--password", default=None, help="Sink password (default empty)")
    parser.add_argument("--port", type=int, default=None, help="Sink HTTP port (default 8123)")
    parser.add_argument("--database", default=None, help="Sink database (default 'default')")
    parser.add_argument("--dsn", default=None, help="Full SQLAlchemy URL; overrides host/user/password")
    parser.add_argument("--base-url", default=os.getenv("FRED_BASE_URL", FRED_OBSERVATIONS_URL))
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(os.getenv("FRED_TIMEOUT_SEC", DEFAULT_TIMEOUT)),
        help="HTTP timeout in seconds",
    )
    parser.add_argument(
        "--floor-policy",
        choices=[p.value for p in DateFloorPolicy],
        default=DateFloorPolicy.DROP.value,
        help="drop: skip rows before 1970-01-01; keep: load every row",
    )
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    """Translate parsed arguments into a PipelineConfig."""
    dsn = args.dsn or build_dsn(
        host=args.host,
        user=args.user,
        password=args.password,
        port=args.port,
        database=args.database,
    )
    return PipelineConfig(
        series_id=args.series,
        table=args.table,
        api_key=args.api or "",
        dsn=dsn,
        base_url=args.base_url,
        timeout_seconds=args.timeout,
        floor_policy=DateFloorPolicy(args.floor_policy),
        run_log_table=run_log_table_from_env(),
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the loader CLI and return a process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.api:
        parser.error("--api is required (or set FRED_API_KEY)")

    setup_logging(level=args.log_level, job_name="fred_loader")
    config = config_from_args(args)
    logger.info(f"Loading series '{config.series_id}' into '{config.table}'")
    try:
        result = run_pipeline(config)
    except FredLoadError as exc:
        print(f"fred-loader: {exc.stage} failed: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    print(f"loaded {result.rows_loaded} rows into {result.table}")
    print(result.elapsed_text())
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
