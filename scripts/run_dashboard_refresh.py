#!/usr/bin/env python3
"""CLI entry point for the dashboard snapshot refresh.

Usage:
    # Refresh data.json for today (UTC)
    GOOGLE_APPLICATION_CREDENTIALS=./keys/service-account.json \
        python scripts/run_dashboard_refresh.py

    # Build as of a specific day without writing
    python scripts/run_dashboard_refresh.py --date 2026-09-30 --dry-run

    # Custom output and campaign config
    python scripts/run_dashboard_refresh.py --output public/data.json \
        --campaign-config config/campaign.json
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import aiohttp

from membership_dashboard.config import DashboardConfig, load_config
from membership_dashboard.pipeline import (
    DashboardRefreshService,
    format_summary,
    write_snapshot,
)
from membership_dashboard.schemas import DashboardSnapshot
from membership_dashboard.warehouse import WarehouseClient


logger = logging.getLogger("run_dashboard_refresh")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Refresh the membership dashboard snapshot")
    parser.add_argument(
        "--output",
        type=str,
        help="Snapshot path (defaults to DASHBOARD_OUTPUT_PATH or data.json)",
    )
    parser.add_argument(
        "--campaign-config",
        type=str,
        help="Campaign JSON (defaults to CAMPAIGN_CONFIG_PATH or config/campaign.json)",
    )
    parser.add_argument(
        "--date",
        type=str,
        help="Reporting day (YYYY-MM-DD). Defaults to today in UTC.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build the snapshot and print the summary without writing it",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


async def refresh(
    config: DashboardConfig,
    warehouse: WarehouseClient,
    today=None,
) -> DashboardSnapshot:
    """Run one refresh with a fresh aiohttp session."""
    timeout = aiohttp.ClientTimeout(total=300, connect=30)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        service = DashboardRefreshService(config, warehouse, session)
        return await service.run_once(today)


async def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_args(argv)

    setup_logging(args.verbose)

    try:
        today = (
            datetime.strptime(args.date, "%Y-%m-%d").date() if args.date else None
        )
        config = load_config(
            campaign_config_path=args.campaign_config, output_path=args.output
        )
        warehouse = WarehouseClient.from_config(config)

        try:
            snapshot = await refresh(config, warehouse, today)
        finally:
            await warehouse.aclose()

        if args.dry_run:
            logger.info("Dry run, not writing %s", config.output_path)
        else:
            write_snapshot(snapshot, config.output_path)

    except Exception as exc:
        logger.error("Dashboard refresh failed: %s", exc, exc_info=args.verbose)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print()
    for line in format_summary(snapshot):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
