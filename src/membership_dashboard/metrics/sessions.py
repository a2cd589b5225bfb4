"""GA4 session metrics from the BigQuery export."""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from google.cloud import bigquery

from ..dates import DateRange
from ..schemas import DailySessions
from ..warehouse import WarehouseClient, queries
from .calculations import safe_int
from .traffic import bucket_sessions


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionAggregate:
    """Sessions in a window, total and per channel bucket."""

    total_sessions: int = 0
    by_source: dict[str, int] = field(default_factory=dict)


def _suffix_params(window: DateRange) -> list[bigquery.ScalarQueryParameter]:
    start_suffix, end_suffix = window.table_suffixes()
    return [
        bigquery.ScalarQueryParameter("start_suffix", "STRING", start_suffix),
        bigquery.ScalarQueryParameter("end_suffix", "STRING", end_suffix),
    ]


async def fetch_session_metrics(
    warehouse: WarehouseClient, window: DateRange
) -> SessionAggregate:
    """Count sessions per traffic channel for a window.

    Args:
        warehouse: Warehouse client
        window: Reporting window (inclusive day shards)

    Returns:
        SessionAggregate with grand total and bucket sums
    """
    rows = await warehouse.query(
        queries.SESSIONS_BY_SOURCE.format(table=warehouse.ga4_events_table),
        _suffix_params(window),
        label="sessions_by_source",
    )

    counted = [
        (row.get("source"), row.get("medium"), safe_int(row.get("sessions")))
        for row in rows
    ]
    aggregate = SessionAggregate(
        total_sessions=sum(sessions for _, _, sessions in counted),
        by_source=bucket_sessions(counted),
    )
    logger.info("Sessions %s: %s", window, aggregate.total_sessions)
    return aggregate


async def fetch_daily_sessions(
    warehouse: WarehouseClient, window: DateRange
) -> list[DailySessions]:
    """Session counts per calendar day, ascending."""
    rows = await warehouse.query(
        queries.SESSIONS_DAILY.format(table=warehouse.ga4_events_table),
        _suffix_params(window),
        label="sessions_daily",
    )

    return [
        DailySessions(
            day=datetime.strptime(row["day_str"], "%Y%m%d").date(),
            sessions=safe_int(row.get("sessions")),
        )
        for row in rows
    ]
