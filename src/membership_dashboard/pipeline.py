"""Dashboard refresh orchestrator.

Sequence: global subscription state, then trial metrics alongside ad spend,
then the four period reports concurrently, then one snapshot write.
"""
import asyncio
import logging
import os
import stat
import tempfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

import aiohttp

from .config import DashboardConfig
from .dates import PERIOD_KEYS, build_period_windows, utc_today
from .metrics import (
    build_period,
    calculate_trial_roi,
    fetch_ad_spend,
    fetch_global_state,
    fetch_trial_metrics,
)
from .schemas import DashboardSnapshot, SnapshotMeta
from .warehouse import WarehouseClient


logger = logging.getLogger(__name__)


BASE_SOURCES = ["memberpress", "ga4"]


class DashboardRefreshService:
    """Builds the dashboard snapshot for one run."""

    def __init__(
        self,
        config: DashboardConfig,
        warehouse: WarehouseClient,
        session: aiohttp.ClientSession,
    ) -> None:
        """Initialize refresh service.

        Args:
            config: Run configuration
            warehouse: Warehouse client
            session: aiohttp session for the Meta API
        """
        self.config = config
        self.warehouse = warehouse
        self.session = session

    async def run_once(self, today: Optional[date] = None) -> DashboardSnapshot:
        """Fetch everything and assemble the snapshot.

        Any failure outside the ad spend fetch propagates and aborts the run.

        Args:
            today: Reporting day (defaults to today, UTC)

        Returns:
            DashboardSnapshot
        """
        today = today or utc_today()
        logger.info("Starting dashboard refresh for %s", today.isoformat())

        global_state = await fetch_global_state(self.warehouse)

        trials, ad_spend = await asyncio.gather(
            fetch_trial_metrics(
                self.warehouse, self.config.campaign, as_of=today
            ),
            fetch_ad_spend(
                self.config.campaign, self.config.meta, self.session, today=today
            ),
        )
        trial_roi = calculate_trial_roi(trials, ad_spend, self.config.campaign)

        if not ad_spend.is_live:
            logger.warning(
                "Ad spend source is %s%s",
                ad_spend.source.value,
                f" ({ad_spend.degraded_reason})" if ad_spend.degraded_reason else "",
            )

        windows = build_period_windows(today)
        reports = await asyncio.gather(
            *(
                build_period(self.warehouse, windows[key], global_state)
                for key in PERIOD_KEYS
            )
        )

        sources = list(BASE_SOURCES)
        if ad_spend.is_live:
            sources.append("facebook_ads")

        snapshot = DashboardSnapshot(
            meta=SnapshotMeta(generated_at=datetime.now(timezone.utc), sources=sources),
            global_state=global_state,
            trial_roi=trial_roi,
            periods=dict(zip(PERIOD_KEYS, reports)),
        )

        logger.info("Dashboard refresh complete for %s", today.isoformat())
        return snapshot


def _output_mode(output_path: Path) -> int:
    """Mode for the new file: the existing file's, else what open() would give."""
    try:
        return stat.S_IMODE(output_path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_snapshot(snapshot: DashboardSnapshot, output_path: str | Path) -> int:
    """Write the snapshot JSON, replacing any previous file atomically.

    Args:
        snapshot: Snapshot to write
        output_path: Destination path

    Returns:
        Number of bytes written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    payload = snapshot.to_json().encode("utf-8")
    mode = _output_mode(output_path)

    fd, tmp_name = tempfile.mkstemp(
        dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, output_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Wrote %s (%.1f KB)", output_path, len(payload) / 1024)
    return len(payload)


def format_summary(snapshot: DashboardSnapshot) -> list[str]:
    """Human-readable run summary."""
    state = snapshot.global_state
    lines = [f"Active subs: {state.total_active} | MRR: ${state.total_mrr:,.2f}"]

    d30 = snapshot.periods.get("30d")
    if d30 is not None:
        kpis = d30.kpis
        lines.append("30-day summary:")
        lines.append(
            f"  Sessions: {kpis.website_sessions} | Signups: {kpis.new_signups}"
            f" | Retention: {kpis.retention_rate}%"
        )
        lines.append(
            f"  Conv Rate: {kpis.conversion_rate}% | Churned: {kpis.churned}"
        )

    roi = snapshot.trial_roi
    lines.append(
        f"Trial ROI: {roi.roi_status.value} | Trials: {roi.trials_started}"
        f" | Conversion: {roi.conversion_rate}% | Cost/trial: ${roi.cost_per_trial:,.2f}"
        f" | Ad spend: ${roi.ad_spend.total_spend_usd:,.2f} ({roi.ad_spend.source.value})"
    )
    return lines
