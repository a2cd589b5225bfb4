"""Output models for the dashboard snapshot."""
from .snapshot import (
    AdCampaign,
    AdSpendSource,
    AdSpendSummary,
    DailySessions,
    DailySignups,
    DashboardSnapshot,
    FunnelStage,
    GlobalSubscriptionState,
    PeriodKpis,
    PeriodReport,
    PlanTier,
    RoiStatus,
    SnapshotMeta,
    StatusCount,
    SubscriptionBreakdown,
    TrafficSourceCount,
    TrialRoiReport,
    WeeklyCohort,
)

__all__ = [
    "AdCampaign",
    "AdSpendSource",
    "AdSpendSummary",
    "DailySessions",
    "DailySignups",
    "DashboardSnapshot",
    "FunnelStage",
    "GlobalSubscriptionState",
    "PeriodKpis",
    "PeriodReport",
    "PlanTier",
    "RoiStatus",
    "SnapshotMeta",
    "StatusCount",
    "SubscriptionBreakdown",
    "TrafficSourceCount",
    "TrialRoiReport",
    "WeeklyCohort",
]
