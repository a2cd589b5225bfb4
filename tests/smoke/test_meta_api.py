"""Smoke test for Meta Marketing API campaign insights.

Validates that the fields the ad spend fetcher reads are present.

Run with valid credentials:
    META_ACCESS_TOKEN=... META_AD_ACCOUNT_ID=... pytest tests/smoke/test_meta_api.py -v
"""
import os
from datetime import date, timedelta

import aiohttp
import pytest

from membership_dashboard.metrics.ad_spend import MetaAdSpendCollector


@pytest.mark.skipif(
    not os.getenv("META_ACCESS_TOKEN"), reason="META_ACCESS_TOKEN not set"
)
@pytest.mark.asyncio
async def test_meta_campaign_insight_fields():
    """Validate campaign-level insight fields.

    PASS Criteria:
    - No error payload
    - Each row has campaign_name and spend; impressions and clicks present
    """
    ad_account_id = os.getenv("META_AD_ACCOUNT_ID")
    if not ad_account_id:
        pytest.skip("META_AD_ACCOUNT_ID not set")

    until = date.today() - timedelta(days=1)
    since = until - timedelta(days=30)

    async with aiohttp.ClientSession() as session:
        collector = MetaAdSpendCollector(
            access_token=os.environ["META_ACCESS_TOKEN"],
            ad_account_id=ad_account_id,
            session=session,
            api_version=os.getenv("META_API_VERSION", "v18.0"),
        )
        rows = await collector.fetch_campaign_insights(since, until)

    if not rows:
        pytest.skip("No campaign spend in the last 30 days")

    row = rows[0]
    assert "campaign_name" in row, "Missing 'campaign_name' field"
    assert "spend" in row, "Missing 'spend' field"
    assert "impressions" in row, "Missing 'impressions' field"
    assert "clicks" in row, "Missing 'clicks' field"

    print(f"Meta API fields validated: {', '.join(row.keys())}")
