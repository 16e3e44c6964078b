"""Command line entrypoint for rebuilding bucket profiles."""

import argparse
import logging

from exchange_planner.app_logging import configure_logging
from exchange_planner.containers import AppContainer, build_container
from exchange_planner.domain.catalog import EXCHANGE_SYSTEM_IDS
from exchange_planner.errors import ExchangePlannerError


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the rebuild command."""
    parser = argparse.ArgumentParser(
        prog="sync-bucket-profiles",
        description="Rebuild exchange bucket profiles under a version label",
    )
    parser.add_argument(
        "--version", required=True, help="Profile version label, e.g. 2026-10-v1"
    )
    parser.add_argument(
        "--system",
        dest="system_id",
        choices=EXCHANGE_SYSTEM_IDS,
        default=None,
        help="Rebuild a single exchange system (default: all)",
    )
    return parser


def main(argv: list[str] | None = None, container: AppContainer | None = None) -> int:
    """Rebuild bucket profiles and print row counts.

    Returns the process exit code: 0 on success, 1 when a rebuild fails on
    inconsistent catalog data.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    resolved = container or build_container()
    configure_logging(resolved.settings.log_level)
    logger = logging.getLogger(__name__)

    system_ids = [args.system_id] if args.system_id else None
    try:
        results = resolved.bucket_profile_builder.rebuild_many(args.version, system_ids)
    except ExchangePlannerError as exc:
        logger.error("Bucket profile rebuild failed: %s", exc)
        return 1

    for result in results:
        print(f"{result.system_id}: {result.row_count} rows")
    print(f"total: {sum(result.row_count for result in results)} rows")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
