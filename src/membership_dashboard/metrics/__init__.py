"""Dashboard metrics layer.

Fetches from:
- BigQuery MemberPress export (subscriptions, trials)
- BigQuery GA4 export (sessions by channel and day)
- Meta Marketing API (trial campaign ad spend, best-effort)

and derives the per-period reports and trial ROI.
"""
from .ad_spend import AdSpendResult, fetch_ad_spend
from .calculations import pct_change, round_half_up
from .periods import build_period
from .roi import calculate_trial_roi, roi_status
from .subscriptions import fetch_global_state, fetch_subscription_metrics
from .sessions import fetch_daily_sessions, fetch_session_metrics
from .traffic import classify_traffic_source
from .trials import fetch_trial_metrics

__all__ = [
    "AdSpendResult",
    "build_period",
    "calculate_trial_roi",
    "classify_traffic_source",
    "fetch_ad_spend",
    "fetch_daily_sessions",
    "fetch_global_state",
    "fetch_session_metrics",
    "fetch_subscription_metrics",
    "fetch_trial_metrics",
    "pct_change",
    "roi_status",
    "round_half_up",
]
