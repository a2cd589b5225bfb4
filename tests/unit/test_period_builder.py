"""Unit tests for the per-period report builder."""
from datetime import date

import pytest

from conftest import FakeWarehouse, standard_responses
from membership_dashboard.dates import build_period_windows
from membership_dashboard.metrics.periods import build_kpis, build_period, build_traffic_sources
from membership_dashboard.metrics.sessions import SessionAggregate
from membership_dashboard.metrics.subscriptions import SubscriptionSnapshot
from membership_dashboard.schemas import GlobalSubscriptionState


WINDOWS = build_period_windows(date(2026, 10, 19))
GLOBAL_STATE = GlobalSubscriptionState(
    total_active=120, total_mrr=2456.5, monthly_subs=100, annual_subs=20
)


def _previous_window_aware_responses():
    """Current window answers with standard rows, previous window with smaller ones."""
    responses = standard_responses()
    current_start = WINDOWS["30d"].current.start_date

    def summary(params):
        if params["start_date"] == current_start:
            return standard_responses()["subscription_summary"]
        return [{"new_subs": 5, "new_active": 2, "new_cancelled": 3, "new_mrr": 38.0}]

    def churn(params):
        if params["start_date"] == current_start:
            return [{"churned": 1}]
        return [{"churned": 4}]

    def sessions(params):
        if params["start_suffix"] == current_start.strftime("%Y%m%d"):
            return standard_responses()["sessions_by_source"]
        return [{"source": "google", "medium": "organic", "sessions": 400}]

    responses["subscription_summary"] = summary
    responses["subscription_churn"] = churn
    responses["sessions_by_source"] = sessions
    return responses


@pytest.mark.asyncio
async def test_build_period_kpis():
    warehouse = FakeWarehouse(_previous_window_aware_responses())

    report = await build_period(warehouse, WINDOWS["30d"], GLOBAL_STATE)
    kpis = report.kpis

    assert kpis.total_active_subs == 120
    # previous active = 120 - 8 + 2 = 114
    assert kpis.active_subs_change == 5.3
    assert kpis.total_mrr == 2456.5
    assert kpis.new_signups == 10
    assert kpis.signups_change == 100.0
    assert kpis.retention_rate == 80.0
    assert kpis.retention_change == 100.0
    assert kpis.website_sessions == 500
    assert kpis.sessions_change == 25.0
    assert kpis.conversion_rate == 2.0
    assert kpis.churned == 1
    assert kpis.churn_change == -75.0


@pytest.mark.asyncio
async def test_build_period_runs_five_fetches():
    warehouse = FakeWarehouse(_previous_window_aware_responses())

    await build_period(warehouse, WINDOWS["7d"], GLOBAL_STATE)

    labels = warehouse.labels()
    assert labels.count("subscription_summary") == 2
    assert labels.count("sessions_by_source") == 2
    assert labels.count("sessions_daily") == 1


@pytest.mark.asyncio
async def test_build_period_sections(fake_warehouse):
    report = await build_period(fake_warehouse, WINDOWS["30d"], GLOBAL_STATE)

    assert [(s.stage, s.value, s.source) for s in report.funnel] == [
        ("Sessions", 500, "ga4"),
        ("New Signups", 10, "memberpress"),
        ("Active Members", 8, "memberpress"),
    ]
    assert [(t.source, t.sessions) for t in report.traffic_sources] == [
        ("Organic Search", 300),
        ("Direct", 150),
        ("Social", 50),
    ]
    assert len(report.daily_signups) == 2
    assert len(report.daily_sessions) == 2

    breakdown = report.subscription_breakdown
    assert (breakdown.monthly, breakdown.annual) == (100, 20)
    assert (breakdown.new_active, breakdown.new_cancelled, breakdown.new_pending, breakdown.new_suspended) == (
        8,
        1,
        1,
        0,
    )


@pytest.mark.asyncio
async def test_build_period_without_data():
    report = await build_period(FakeWarehouse(), WINDOWS["ytd"], GlobalSubscriptionState())

    assert report.kpis.conversion_rate == 0
    assert report.kpis.signups_change == 0
    assert report.kpis.active_subs_change == 0
    assert report.traffic_sources == []
    assert [stage.value for stage in report.funnel] == [0, 0, 0]


def test_build_kpis_unchanged_active_when_new_active_equal():
    subs = SubscriptionSnapshot(new_subs=4, new_active=3)

    kpis = build_kpis(subs, subs, SessionAggregate(), SessionAggregate(), GLOBAL_STATE)

    assert kpis.active_subs_change == 0.0
    assert kpis.retention_change == 0.0


def test_traffic_sources_skip_zero_buckets():
    sessions = SessionAggregate(
        total_sessions=30, by_source={"Email": 10, "Referral": 0, "Paid Search": 20}
    )

    assert [(t.source, t.sessions) for t in build_traffic_sources(sessions)] == [
        ("Paid Search", 20),
        ("Email", 10),
    ]
