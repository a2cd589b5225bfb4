"""Pydantic models for the dashboard JSON snapshot.

Field names are snake_case in Python and camelCase in the written file.
"""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AdSpendSource(str, Enum):
    """Which code path produced the ad spend figure."""

    FACEBOOK_API = "facebook_api"
    MANUAL = "manual"
    FALLBACK = "fallback"
    NONE = "none"


class RoiStatus(str, Enum):
    """Trial campaign ROI verdict."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"
    UNKNOWN = "unknown"


class SnapshotModel(BaseModel):
    """Base model: immutable, camelCase on the wire."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class PlanTier(SnapshotModel):
    price: float
    period_type: Optional[str] = None
    active_count: int
    mrr: float


class StatusCount(SnapshotModel):
    status: Optional[str] = None
    count: int


class GlobalSubscriptionState(SnapshotModel):
    """Run-scoped subscription totals, independent of any period."""

    total_active: int = 0
    total_mrr: float = 0.0
    monthly_subs: int = 0
    annual_subs: int = 0
    plans: list[PlanTier] = Field(default_factory=list)
    all_statuses: list[StatusCount] = Field(default_factory=list)


class DailySignups(SnapshotModel):
    day: date
    new_subs: int
    still_active: int


class DailySessions(SnapshotModel):
    day: date
    sessions: int


class PeriodKpis(SnapshotModel):
    total_active_subs: int
    active_subs_change: float
    total_mrr: float
    new_signups: int
    signups_change: float
    retention_rate: float
    retention_change: float
    website_sessions: int
    sessions_change: float
    conversion_rate: float
    churned: int
    churn_change: float


class FunnelStage(SnapshotModel):
    stage: str
    value: int
    source: str


class TrafficSourceCount(SnapshotModel):
    source: str
    sessions: int


class SubscriptionBreakdown(SnapshotModel):
    monthly: int
    annual: int
    new_active: int
    new_cancelled: int
    new_pending: int
    new_suspended: int


class PeriodReport(SnapshotModel):
    """Everything the dashboard shows for one period."""

    kpis: PeriodKpis
    funnel: list[FunnelStage]
    traffic_sources: list[TrafficSourceCount]
    daily_signups: list[DailySignups]
    daily_sessions: list[DailySessions]
    subscription_breakdown: SubscriptionBreakdown


class AdCampaign(SnapshotModel):
    name: str
    spend: float
    impressions: int
    clicks: int


class AdSpendSummary(SnapshotModel):
    total_spend_usd: float = Field(..., alias="totalSpendUSD")
    campaigns: list[AdCampaign] = Field(default_factory=list)
    source: AdSpendSource


class WeeklyCohort(SnapshotModel):
    week_start: date
    trials_started: int
    converted: int
    cancelled: int
    in_trial: int


class TrialRoiReport(SnapshotModel):
    """Trial campaign conversion and ROI figures."""

    campaign_start_date: date
    trial_price: float
    trials_started: int
    converted: int
    cancelled: int
    pending: int
    in_trial: int
    completed_trials: int
    conversion_rate: float
    weekly_cohorts: list[WeeklyCohort] = Field(default_factory=list)
    ad_spend: AdSpendSummary
    cost_per_trial: float
    projected_ltv: float
    roi: Optional[float] = None
    roi_status: RoiStatus


class SnapshotMeta(SnapshotModel):
    generated_at: datetime
    sources: list[str]


class DashboardSnapshot(SnapshotModel):
    """Top-level document written for the dashboard."""

    meta: SnapshotMeta
    global_state: GlobalSubscriptionState
    trial_roi: TrialRoiReport
    periods: dict[str, PeriodReport]

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
