"""Shared fixtures: an in-memory warehouse and campaign/run configuration."""
from datetime import date
from pathlib import Path
from typing import Any, Callable, Union

import pytest

from membership_dashboard.config import CampaignConfig, DashboardConfig, MetaCredentials


Response = Union[list[dict[str, Any]], Callable[[dict[str, Any]], list[dict[str, Any]]], Exception]


class FakeWarehouse:
    """Stands in for WarehouseClient; answers queries by label."""

    subscriptions_table = "`test-project.LWJ.Mepr_Subscriptions`"
    ga4_events_table = "`test-project.analytics_1.events_*`"

    def __init__(self, responses: dict[str, Response] | None = None) -> None:
        self.responses: dict[str, Response] = dict(responses or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def query(self, sql, params=(), label="query"):
        values = {param.name: param.value for param in params}
        self.calls.append((label, values))

        response = self.responses.get(label, [])
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(values)
        return response

    def labels(self) -> list[str]:
        return [label for label, _ in self.calls]


def standard_responses() -> dict[str, Response]:
    """Warehouse rows for a small but complete run."""
    return {
        "global_active_totals": [
            {"total_active": 120, "total_mrr": 2456.5, "monthly_subs": 100, "annual_subs": 20}
        ],
        "global_top_plans": [
            {"price": 19.0, "period_type": "months", "active_count": 80, "plan_mrr": 1520.0},
            {"price": 190.0, "period_type": "years", "active_count": 20, "plan_mrr": 3800.0},
        ],
        "global_status_histogram": [
            {"status": "active", "cnt": 120},
            {"status": "cancelled", "cnt": 40},
            {"status": "pending", "cnt": 3},
        ],
        "subscription_summary": [
            {
                "new_subs": 10,
                "new_active": 8,
                "new_cancelled": 1,
                "new_pending": 1,
                "new_suspended": 0,
                "new_mrr": 152.0,
            }
        ],
        "subscription_churn": [{"churned": 1}],
        "subscription_daily": [
            {"day": date(2026, 10, 17), "new_subs": 4, "still_active": 3},
            {"day": date(2026, 10, 18), "new_subs": 6, "still_active": 5},
        ],
        "sessions_by_source": [
            {"source": "google", "medium": "organic", "sessions": 300},
            {"source": "(direct)", "medium": "(none)", "sessions": 150},
            {"source": "facebook", "medium": "paid_social", "sessions": 50},
        ],
        "sessions_daily": [
            {"day_str": "20261017", "sessions": 240},
            {"day_str": "20261018", "sessions": 260},
        ],
        "trial_summary": [
            {"trials_started": 40, "converted": 10, "in_trial": 15, "cancelled": 10, "pending": 5}
        ],
        "trial_weekly_cohorts": [
            {"week_start": date(2026, 9, 7), "trials_started": 25, "converted": 10, "in_trial": 0, "cancelled": 8},
            {"week_start": date(2026, 10, 5), "trials_started": 15, "converted": 0, "in_trial": 15, "cancelled": 2},
        ],
    }


@pytest.fixture
def fake_warehouse() -> FakeWarehouse:
    return FakeWarehouse(standard_responses())


@pytest.fixture
def campaign() -> CampaignConfig:
    return CampaignConfig(
        campaign_start_date=date(2026, 9, 1),
        trial_price=1.0,
        avg_paid_price=29.0,
        avg_months_retained=6.0,
        ad_account_id="1234567890",
        manual_ad_spend=500.0,
    )


def make_config(
    campaign: CampaignConfig,
    output_path: Path = Path("data.json"),
    access_token: str | None = None,
    ad_account_id: str | None = None,
) -> DashboardConfig:
    return DashboardConfig(
        project_id="test-project",
        location="US",
        subscriptions_dataset="LWJ",
        ga4_dataset="analytics_1",
        output_path=output_path,
        max_concurrent_queries=4,
        campaign=campaign,
        meta=MetaCredentials(access_token=access_token, ad_account_id=ad_account_id),
    )
