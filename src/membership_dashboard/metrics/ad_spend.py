"""Meta Marketing API ad spend for the trial campaign.

The ad spend figure is best-effort: missing credentials or any API failure
degrade to the configured manual amount (or zero) with a provenance tag, and
never fail the refresh.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import aiohttp

from ..config import CampaignConfig, MetaCredentials
from ..dates import utc_today
from ..exceptions import AdSpendApiError
from ..schemas import AdCampaign, AdSpendSource, AdSpendSummary
from .calculations import round_half_up, safe_float, safe_int


logger = logging.getLogger(__name__)


GRAPH_API_BASE = "https://graph.facebook.com"

INSIGHT_FIELDS = ["campaign_id", "campaign_name", "spend", "impressions", "clicks"]


def _redact_text(text: str, secrets: list[Optional[str]]) -> str:
    if not text:
        return text
    redacted = text
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, "[REDACTED]")
    return redacted


@dataclass(frozen=True)
class AdSpendResult:
    """Ad spend with the code path that produced it.

    Only FACEBOOK_API results are authoritative; every other source carries
    a manual or zero figure, and degraded ones say why in degraded_reason.
    """

    total_spend_usd: float
    source: AdSpendSource
    campaigns: list[AdCampaign] = field(default_factory=list)
    degraded_reason: Optional[str] = None

    @property
    def is_live(self) -> bool:
        return self.source == AdSpendSource.FACEBOOK_API

    def to_summary(self) -> AdSpendSummary:
        return AdSpendSummary(
            total_spend_usd=self.total_spend_usd,
            campaigns=self.campaigns,
            source=self.source,
        )


class MetaAdSpendCollector:
    """Async client for campaign-level Meta Ads insights."""

    def __init__(
        self,
        access_token: str,
        ad_account_id: str,
        session: aiohttp.ClientSession,
        api_version: str = "v18.0",
    ) -> None:
        """Initialize Meta ad spend collector.

        Args:
            access_token: Meta Marketing API access token (sent as Bearer)
            ad_account_id: Ad account ID (with or without 'act_' prefix)
            session: aiohttp session for requests
            api_version: Graph API version
        """
        self._access_token = access_token

        if not ad_account_id.startswith("act_"):
            ad_account_id = f"act_{ad_account_id}"
        self.ad_account_id = ad_account_id

        self.session = session
        self.api_version = api_version

    def _redact(self, text: str) -> str:
        return _redact_text(text, [self._access_token])

    @property
    def insights_url(self) -> str:
        return f"{GRAPH_API_BASE}/{self.api_version}/{self.ad_account_id}/insights"

    async def _get_page(self, url: str, params: Optional[dict] = None) -> dict:
        headers = {"Authorization": f"Bearer {self._access_token}"}

        async with self.session.get(url, params=params, headers=headers) as response:
            try:
                result = await response.json(content_type=None)
            except (aiohttp.ContentTypeError, json.JSONDecodeError, ValueError):
                result = None

            if isinstance(result, dict) and result.get("error"):
                error = result["error"]
                message = (
                    error.get("message", "unknown error")
                    if isinstance(error, dict)
                    else str(error)
                )
                raise AdSpendApiError(self._redact(message), status=response.status)

            if response.status != 200:
                error_body = await response.text()
                raise AdSpendApiError(
                    self._redact(error_body[:500]), status=response.status
                )

            if not isinstance(result, dict):
                raise AdSpendApiError("Unexpected response body", status=response.status)

            return result

    async def fetch_campaign_insights(self, since: date, until: date) -> list[dict]:
        """Fetch campaign-level spend/impressions/clicks for a date range.

        Args:
            since: First day (inclusive)
            until: Last day (inclusive)

        Returns:
            List of insight objects, one per campaign
        """
        params = {
            "level": "campaign",
            "time_range": json.dumps(
                {"since": since.isoformat(), "until": until.isoformat()}
            ),
            "fields": ",".join(INSIGHT_FIELDS),
            "limit": "500",
        }

        result = await self._get_page(self.insights_url, params)
        all_data: list[dict] = list(result.get("data", []))

        while "paging" in result and "next" in result["paging"]:
            result = await self._get_page(result["paging"]["next"])
            all_data.extend(result.get("data", []))

        logger.info(
            "Fetched %s campaign insights for %s..%s",
            len(all_data),
            since.isoformat(),
            until.isoformat(),
        )
        return all_data


def summarize_insights(rows: list[dict[str, Any]], currency_rate: float = 1.0) -> AdSpendResult:
    """Convert insight rows to a live AdSpendResult.

    Spend is converted to USD with currency_rate; campaigns are sorted by
    spend, highest first.
    """
    campaigns = [
        AdCampaign(
            name=row.get("campaign_name") or row.get("campaign_id") or "(unnamed)",
            spend=round_half_up(safe_float(row.get("spend")) * currency_rate, 2),
            impressions=safe_int(row.get("impressions")),
            clicks=safe_int(row.get("clicks")),
        )
        for row in rows
    ]
    campaigns.sort(key=lambda campaign: campaign.spend, reverse=True)

    total = sum(safe_float(row.get("spend")) for row in rows) * currency_rate

    return AdSpendResult(
        total_spend_usd=round_half_up(total, 2),
        source=AdSpendSource.FACEBOOK_API,
        campaigns=campaigns,
    )


def _fallback_result(campaign: CampaignConfig, reason: str) -> AdSpendResult:
    spend = campaign.manual_ad_spend if campaign.manual_ad_spend is not None else 0.0
    return AdSpendResult(
        total_spend_usd=round_half_up(spend, 2),
        source=AdSpendSource.FALLBACK,
        degraded_reason=reason,
    )


async def fetch_ad_spend(
    campaign: CampaignConfig,
    credentials: MetaCredentials,
    session: aiohttp.ClientSession,
    today: Optional[date] = None,
) -> AdSpendResult:
    """Fetch campaign ad spend since the campaign start, degrading on failure.

    Args:
        campaign: Campaign configuration (start date, manual spend, currency rate)
        credentials: Meta access token and ad account
        session: aiohttp session
        today: Last day of the spend window (defaults to today, UTC)

    Returns:
        AdSpendResult tagged facebook_api, manual, fallback or none
    """
    if not credentials.is_configured:
        if campaign.manual_ad_spend is not None:
            logger.info(
                "Meta credentials not configured, using manual ad spend %.2f",
                campaign.manual_ad_spend,
            )
            return AdSpendResult(
                total_spend_usd=round_half_up(campaign.manual_ad_spend, 2),
                source=AdSpendSource.MANUAL,
            )

        logger.warning(
            "Meta credentials not configured and no manual ad spend, reporting 0"
        )
        return AdSpendResult(
            total_spend_usd=0.0,
            source=AdSpendSource.NONE,
            degraded_reason="Meta credentials not configured",
        )

    until = today or utc_today()
    since = campaign.campaign_start_date

    try:
        collector = MetaAdSpendCollector(
            access_token=credentials.access_token,
            ad_account_id=credentials.ad_account_id,
            session=session,
            api_version=credentials.api_version,
        )
        rows = await collector.fetch_campaign_insights(since, until)
        result = summarize_insights(rows, campaign.currency_rate)

    except Exception as exc:
        reason = _redact_text(str(exc), [credentials.access_token])
        logger.error("Meta ad spend fetch failed, using fallback: %s", reason)
        return _fallback_result(campaign, reason)

    logger.info(
        "Ad spend since %s: %.2f USD across %s campaigns",
        since.isoformat(),
        result.total_spend_usd,
        len(result.campaigns),
    )
    return result
