"""Trial campaign cohorts from MemberPress subscriptions.

A trial is a subscription created on or after the campaign start at the
configured trial price. An active trial older than TRIAL_CONVERSION_DAYS
counts as converted; a younger one is still in trial.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from google.cloud import bigquery

from ..config import CampaignConfig
from ..dates import utc_today
from ..schemas import WeeklyCohort
from ..warehouse import WarehouseClient, queries
from .calculations import ratio_pct, safe_int


logger = logging.getLogger(__name__)


TRIAL_CONVERSION_DAYS = 30


@dataclass(frozen=True)
class TrialMetrics:
    """Trial funnel counts since the campaign start."""

    trials_started: int = 0
    converted: int = 0
    cancelled: int = 0
    pending: int = 0
    in_trial: int = 0
    weekly_cohorts: list[WeeklyCohort] = field(default_factory=list)

    @property
    def completed_trials(self) -> int:
        """Trials with a final outcome (pending and in-trial excluded)."""
        return self.converted + self.cancelled

    @property
    def conversion_rate(self) -> float:
        return ratio_pct(self.converted, self.completed_trials, digits=1)


def _trial_params(
    campaign: CampaignConfig, as_of: date
) -> list[bigquery.ScalarQueryParameter]:
    return [
        bigquery.ScalarQueryParameter(
            "campaign_start", "DATE", campaign.campaign_start_date
        ),
        bigquery.ScalarQueryParameter("trial_price", "FLOAT64", campaign.trial_price),
        bigquery.ScalarQueryParameter(
            "conversion_days", "INT64", TRIAL_CONVERSION_DAYS
        ),
        bigquery.ScalarQueryParameter("as_of", "DATE", as_of),
    ]


async def fetch_trial_metrics(
    warehouse: WarehouseClient,
    campaign: CampaignConfig,
    as_of: Optional[date] = None,
) -> TrialMetrics:
    """Fetch trial totals and weekly cohorts for the campaign.

    Args:
        warehouse: Warehouse client
        campaign: Campaign configuration (start date, trial price)
        as_of: Reporting day; trials created after it are excluded and the
            conversion cutoff is measured from it (defaults to today, UTC)

    Returns:
        TrialMetrics (zero-valued when no trials exist yet)
    """
    table = warehouse.subscriptions_table
    params = _trial_params(campaign, as_of or utc_today())

    summary_rows, cohort_rows = await asyncio.gather(
        warehouse.query(
            queries.TRIAL_SUMMARY.format(table=table), params, label="trial_summary"
        ),
        warehouse.query(
            queries.TRIAL_WEEKLY_COHORTS.format(table=table),
            params,
            label="trial_weekly_cohorts",
        ),
    )

    cohorts = [
        WeeklyCohort(
            week_start=row["week_start"],
            trials_started=safe_int(row.get("trials_started")),
            converted=safe_int(row.get("converted")),
            cancelled=safe_int(row.get("cancelled")),
            in_trial=safe_int(row.get("in_trial")),
        )
        for row in cohort_rows
    ]
    cohorts.sort(key=lambda cohort: cohort.week_start)

    if not summary_rows:
        logger.info("No trials since %s", campaign.campaign_start_date)
        return TrialMetrics(weekly_cohorts=cohorts)

    summary = summary_rows[0]
    metrics = TrialMetrics(
        trials_started=safe_int(summary.get("trials_started")),
        converted=safe_int(summary.get("converted")),
        cancelled=safe_int(summary.get("cancelled")),
        pending=safe_int(summary.get("pending")),
        in_trial=safe_int(summary.get("in_trial")),
        weekly_cohorts=cohorts,
    )
    logger.info(
        "Trials since %s: %s started, %s converted, %s cancelled",
        campaign.campaign_start_date,
        metrics.trials_started,
        metrics.converted,
        metrics.cancelled,
    )
    return metrics
