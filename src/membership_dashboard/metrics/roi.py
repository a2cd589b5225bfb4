"""Trial campaign ROI derivation."""
from typing import Optional

from ..config import CampaignConfig
from ..schemas import RoiStatus, TrialRoiReport
from .ad_spend import AdSpendResult
from .calculations import round_half_up
from .trials import TrialMetrics


POSITIVE_ROI_THRESHOLD = 0.2
NEGATIVE_ROI_THRESHOLD = -0.1


def cost_per_trial(ad_spend: float, trials_started: int) -> float:
    if trials_started <= 0:
        return 0.0
    return round_half_up(ad_spend / trials_started, 2)


def projected_ltv(
    conversion_rate: float, avg_paid_price: float, avg_months_retained: float
) -> float:
    """Expected paid revenue per trial started."""
    return round_half_up(
        (conversion_rate / 100) * avg_paid_price * avg_months_retained, 2
    )


def roi_ratio(ltv: float, cost: float) -> Optional[float]:
    if not cost:
        return None
    return (ltv - cost) / cost


def roi_status(ratio: Optional[float]) -> RoiStatus:
    """Classify an ROI ratio.

    positive above 0.2, negative at or below -0.1, neutral in between,
    unknown without ad spend.
    """
    if ratio is None:
        return RoiStatus.UNKNOWN
    if ratio > POSITIVE_ROI_THRESHOLD:
        return RoiStatus.POSITIVE
    if ratio > NEGATIVE_ROI_THRESHOLD:
        return RoiStatus.NEUTRAL
    return RoiStatus.NEGATIVE


def calculate_trial_roi(
    trials: TrialMetrics, ad_spend: AdSpendResult, campaign: CampaignConfig
) -> TrialRoiReport:
    """Combine trial cohorts with ad spend into the ROI report.

    Args:
        trials: Trial counts and cohorts since the campaign start
        ad_spend: Ad spend result (any provenance)
        campaign: Campaign pricing and retention assumptions

    Returns:
        TrialRoiReport
    """
    conversion_rate = trials.conversion_rate
    cost = cost_per_trial(ad_spend.total_spend_usd, trials.trials_started)
    ltv = projected_ltv(
        conversion_rate, campaign.avg_paid_price, campaign.avg_months_retained
    )
    ratio = roi_ratio(ltv, cost)

    return TrialRoiReport(
        campaign_start_date=campaign.campaign_start_date,
        trial_price=campaign.trial_price,
        trials_started=trials.trials_started,
        converted=trials.converted,
        cancelled=trials.cancelled,
        pending=trials.pending,
        in_trial=trials.in_trial,
        completed_trials=trials.completed_trials,
        conversion_rate=conversion_rate,
        weekly_cohorts=trials.weekly_cohorts,
        ad_spend=ad_spend.to_summary(),
        cost_per_trial=cost,
        projected_ltv=ltv,
        roi=ratio,
        roi_status=roi_status(ratio),
    )
