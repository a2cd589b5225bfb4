"""Runtime configuration for the dashboard refresh.

Environment variables select the warehouse, output path and Meta credentials;
the campaign record (trial pricing, LTV assumptions, manual ad spend) lives in
a JSON file so it can be edited without touching the environment.
"""
import json
import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)


class CampaignConfig(BaseModel):
    """Trial campaign parameters used by the ROI calculation."""

    model_config = ConfigDict(frozen=True)

    campaign_start_date: date = Field(..., description="First day of the trial campaign")
    trial_price: float = Field(..., ge=0, description="Price that identifies a trial subscription")
    avg_paid_price: float = Field(..., ge=0, description="Average monthly price once converted")
    avg_months_retained: float = Field(..., ge=0, description="Average paid months per converted member")
    ad_account_id: Optional[str] = Field(None, description="Meta ad account (with or without 'act_')")
    manual_ad_spend: Optional[float] = Field(
        None, ge=0, description="USD spend to report when the Meta API is unavailable"
    )
    currency_rate: float = Field(
        1.0, gt=0, description="Multiplier converting ad account currency to USD"
    )


@dataclass(frozen=True)
class MetaCredentials:
    """Meta Graph API access settings."""

    access_token: Optional[str]
    ad_account_id: Optional[str]
    api_version: str = "v18.0"

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token and self.ad_account_id)


@dataclass(frozen=True)
class DashboardConfig:
    """Complete configuration for one refresh run."""

    project_id: str
    location: str
    subscriptions_dataset: str
    ga4_dataset: str
    output_path: Path
    max_concurrent_queries: int
    campaign: CampaignConfig
    meta: MetaCredentials


def load_campaign_config(config_path: str | Path) -> CampaignConfig:
    """Load and validate the campaign JSON file.

    Args:
        config_path: Path to the campaign configuration JSON

    Returns:
        Validated CampaignConfig

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the file is not valid JSON or misses fields
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(
            f"Campaign config not found: {config_path}. "
            "Copy config/campaign.example.json and fill it in."
        )

    with open(config_file, encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Campaign config is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError("Campaign config must be a JSON object")

    try:
        return CampaignConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid campaign config {config_path}: {exc}") from exc


def load_config(
    campaign_config_path: Optional[str | Path] = None,
    output_path: Optional[str | Path] = None,
) -> DashboardConfig:
    """Build the run configuration from environment variables.

    Args:
        campaign_config_path: Overrides CAMPAIGN_CONFIG_PATH
        output_path: Overrides DASHBOARD_OUTPUT_PATH

    Returns:
        DashboardConfig for a single refresh run
    """
    campaign_path = campaign_config_path or os.getenv(
        "CAMPAIGN_CONFIG_PATH", "config/campaign.json"
    )
    campaign = load_campaign_config(campaign_path)

    try:
        max_queries = int(os.getenv("BQ_MAX_CONCURRENT_QUERIES", "8"))
    except ValueError as exc:
        raise ConfigurationError("BQ_MAX_CONCURRENT_QUERIES must be an integer") from exc

    if max_queries < 1:
        raise ConfigurationError("BQ_MAX_CONCURRENT_QUERIES must be at least 1")

    meta = MetaCredentials(
        access_token=os.getenv("META_ACCESS_TOKEN") or None,
        ad_account_id=os.getenv("META_AD_ACCOUNT_ID") or campaign.ad_account_id,
        api_version=os.getenv("META_API_VERSION", "v18.0"),
    )

    config = DashboardConfig(
        project_id=os.getenv("BQ_PROJECT_ID", "lwj-data-storage"),
        location=os.getenv("BQ_LOCATION", "US"),
        subscriptions_dataset=os.getenv("MEMBERPRESS_DATASET", "LWJ"),
        ga4_dataset=os.getenv("GA4_DATASET", "analytics_301113294"),
        output_path=Path(
            output_path or os.getenv("DASHBOARD_OUTPUT_PATH", "data.json")
        ),
        max_concurrent_queries=max_queries,
        campaign=campaign,
        meta=meta,
    )

    logger.info("Warehouse: %s (%s)", config.project_id, config.location)
    logger.info("Campaign config: %s", campaign_path)
    logger.debug(
        "Meta credentials configured: %s", "yes" if meta.is_configured else "no"
    )

    return config
