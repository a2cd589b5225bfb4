"""MemberPress subscription metrics from the warehouse."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from google.cloud import bigquery

from ..dates import DateRange
from ..schemas import DailySignups, GlobalSubscriptionState, PlanTier, StatusCount
from ..warehouse import WarehouseClient, queries
from .calculations import ratio_pct, round_half_up, safe_float, safe_int


logger = logging.getLogger(__name__)


TOP_PLAN_LIMIT = 8


@dataclass(frozen=True)
class SubscriptionSnapshot:
    """Subscriptions created inside one window."""

    new_subs: int = 0
    new_active: int = 0
    new_cancelled: int = 0
    new_pending: int = 0
    new_suspended: int = 0
    new_mrr: float = 0.0
    churned: int = 0
    daily: list[DailySignups] = field(default_factory=list)

    @property
    def retention_rate(self) -> float:
        """Share of new subscriptions still active, as a 1dp percentage."""
        return ratio_pct(self.new_active, self.new_subs, digits=1)


def _window_params(window: DateRange) -> list[bigquery.ScalarQueryParameter]:
    return [
        bigquery.ScalarQueryParameter("start_date", "DATE", window.start_date),
        bigquery.ScalarQueryParameter("end_date", "DATE", window.end_date),
    ]


def _first_row(rows: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    return rows[0] if rows else None


def _snapshot_from_rows(
    summary: Optional[dict[str, Any]],
    churn: Optional[dict[str, Any]],
    daily_rows: list[dict[str, Any]],
) -> SubscriptionSnapshot:
    daily = [
        DailySignups(
            day=row["day"],
            new_subs=safe_int(row.get("new_subs")),
            still_active=safe_int(row.get("still_active")),
        )
        for row in daily_rows
    ]
    churned = safe_int(churn.get("churned")) if churn else 0

    if summary is None:
        return SubscriptionSnapshot(churned=churned, daily=daily)

    return SubscriptionSnapshot(
        new_subs=safe_int(summary.get("new_subs")),
        new_active=safe_int(summary.get("new_active")),
        new_cancelled=safe_int(summary.get("new_cancelled")),
        new_pending=safe_int(summary.get("new_pending")),
        new_suspended=safe_int(summary.get("new_suspended")),
        new_mrr=round_half_up(safe_float(summary.get("new_mrr")), 2),
        churned=churned,
        daily=daily,
    )


async def fetch_subscription_metrics(
    warehouse: WarehouseClient, window: DateRange
) -> SubscriptionSnapshot:
    """Fetch counts for subscriptions created inside a window.

    Args:
        warehouse: Warehouse client
        window: Reporting window

    Returns:
        SubscriptionSnapshot (zero-valued when nothing matched)
    """
    table = warehouse.subscriptions_table
    params = _window_params(window)

    summary_rows, churn_rows, daily_rows = await asyncio.gather(
        warehouse.query(
            queries.SUBSCRIPTION_SUMMARY.format(table=table),
            params,
            label="subscription_summary",
        ),
        warehouse.query(
            queries.SUBSCRIPTION_CHURN.format(table=table),
            params,
            label="subscription_churn",
        ),
        warehouse.query(
            queries.SUBSCRIPTION_DAILY.format(table=table),
            params,
            label="subscription_daily",
        ),
    )

    snapshot = _snapshot_from_rows(
        _first_row(summary_rows), _first_row(churn_rows), daily_rows
    )
    logger.info(
        "Subscriptions %s: %s new, %s active, %s churned",
        window,
        snapshot.new_subs,
        snapshot.new_active,
        snapshot.churned,
    )
    return snapshot


async def fetch_global_state(warehouse: WarehouseClient) -> GlobalSubscriptionState:
    """Fetch subscription totals that do not depend on a reporting window."""
    table = warehouse.subscriptions_table

    totals_rows, plan_rows, status_rows = await asyncio.gather(
        warehouse.query(
            queries.GLOBAL_ACTIVE_TOTALS.format(table=table),
            label="global_active_totals",
        ),
        warehouse.query(
            queries.GLOBAL_TOP_PLANS.format(table=table),
            [bigquery.ScalarQueryParameter("plan_limit", "INT64", TOP_PLAN_LIMIT)],
            label="global_top_plans",
        ),
        warehouse.query(
            queries.GLOBAL_STATUS_HISTOGRAM.format(table=table),
            label="global_status_histogram",
        ),
    )

    totals = _first_row(totals_rows) or {}

    plans = [
        PlanTier(
            price=safe_float(row.get("price")),
            period_type=row.get("period_type"),
            active_count=safe_int(row.get("active_count")),
            mrr=round_half_up(safe_float(row.get("plan_mrr")), 2),
        )
        for row in plan_rows[:TOP_PLAN_LIMIT]
    ]
    statuses = [
        StatusCount(status=row.get("status"), count=safe_int(row.get("cnt")))
        for row in status_rows
    ]

    state = GlobalSubscriptionState(
        total_active=safe_int(totals.get("total_active")),
        total_mrr=round_half_up(safe_float(totals.get("total_mrr")), 2),
        monthly_subs=safe_int(totals.get("monthly_subs")),
        annual_subs=safe_int(totals.get("annual_subs")),
        plans=plans,
        all_statuses=statuses,
    )
    logger.info(
        "Global state: %s active, MRR %.2f, %s plans",
        state.total_active,
        state.total_mrr,
        len(state.plans),
    )
    return state
