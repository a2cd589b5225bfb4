"""Per-period dashboard report builder."""
import asyncio
import logging

from ..dates import PeriodWindow
from ..schemas import (
    FunnelStage,
    GlobalSubscriptionState,
    PeriodKpis,
    PeriodReport,
    SubscriptionBreakdown,
    TrafficSourceCount,
)
from ..warehouse import WarehouseClient
from .calculations import pct_change, ratio_pct
from .sessions import SessionAggregate, fetch_daily_sessions, fetch_session_metrics
from .subscriptions import SubscriptionSnapshot, fetch_subscription_metrics
from .traffic import TRAFFIC_SOURCE_ORDER


logger = logging.getLogger(__name__)


def build_kpis(
    subs: SubscriptionSnapshot,
    prev_subs: SubscriptionSnapshot,
    sessions: SessionAggregate,
    prev_sessions: SessionAggregate,
    global_state: GlobalSubscriptionState,
) -> PeriodKpis:
    """Derive the KPI tiles for one period.

    The previous active count is reconstructed from the current total by
    swapping this period's new active members for last period's.
    """
    previous_active = global_state.total_active - subs.new_active + prev_subs.new_active

    return PeriodKpis(
        total_active_subs=global_state.total_active,
        active_subs_change=pct_change(global_state.total_active, previous_active),
        total_mrr=global_state.total_mrr,
        new_signups=subs.new_subs,
        signups_change=pct_change(subs.new_subs, prev_subs.new_subs),
        retention_rate=subs.retention_rate,
        retention_change=pct_change(subs.retention_rate, prev_subs.retention_rate),
        website_sessions=sessions.total_sessions,
        sessions_change=pct_change(sessions.total_sessions, prev_sessions.total_sessions),
        conversion_rate=ratio_pct(subs.new_subs, sessions.total_sessions, digits=2),
        churned=subs.churned,
        churn_change=pct_change(subs.churned, prev_subs.churned),
    )


def build_funnel(
    subs: SubscriptionSnapshot, sessions: SessionAggregate
) -> list[FunnelStage]:
    return [
        FunnelStage(stage="Sessions", value=sessions.total_sessions, source="ga4"),
        FunnelStage(stage="New Signups", value=subs.new_subs, source="memberpress"),
        FunnelStage(stage="Active Members", value=subs.new_active, source="memberpress"),
    ]


def build_traffic_sources(sessions: SessionAggregate) -> list[TrafficSourceCount]:
    """Channel buckets with sessions, in dashboard order."""
    return [
        TrafficSourceCount(source=name, sessions=sessions.by_source[name])
        for name in TRAFFIC_SOURCE_ORDER
        if sessions.by_source.get(name)
    ]


async def build_period(
    warehouse: WarehouseClient,
    window: PeriodWindow,
    global_state: GlobalSubscriptionState,
) -> PeriodReport:
    """Fetch and assemble the report for one period.

    Args:
        warehouse: Warehouse client
        window: Current and comparison windows
        global_state: Run-scoped subscription totals

    Returns:
        PeriodReport
    """
    logger.info("Building %s: %s (vs %s)", window.key, window.current, window.previous)

    subs, sessions, prev_subs, prev_sessions, daily_sessions = await asyncio.gather(
        fetch_subscription_metrics(warehouse, window.current),
        fetch_session_metrics(warehouse, window.current),
        fetch_subscription_metrics(warehouse, window.previous),
        fetch_session_metrics(warehouse, window.previous),
        fetch_daily_sessions(warehouse, window.current),
    )

    return PeriodReport(
        kpis=build_kpis(subs, prev_subs, sessions, prev_sessions, global_state),
        funnel=build_funnel(subs, sessions),
        traffic_sources=build_traffic_sources(sessions),
        daily_signups=subs.daily,
        daily_sessions=daily_sessions,
        subscription_breakdown=SubscriptionBreakdown(
            monthly=global_state.monthly_subs,
            annual=global_state.annual_subs,
            new_active=subs.new_active,
            new_cancelled=subs.new_cancelled,
            new_pending=subs.new_pending,
            new_suspended=subs.new_suspended,
        ),
    )
