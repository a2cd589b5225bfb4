"""Reporting windows for the dashboard periods.

All windows are calendar days in UTC. A window covers created_at values from
start_date 00:00 up to end_date 00:00 for the warehouse timestamp filters, and
the inclusive day shards start_date..end_date for GA4 event tables.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional


PERIOD_LOOKBACK_DAYS = {"7d": 7, "30d": 30, "90d": 90}
PERIOD_KEYS = ("7d", "30d", "90d", "ytd")


@dataclass(frozen=True)
class DateRange:
    """Calendar-day window."""

    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days

    def table_suffixes(self) -> tuple[str, str]:
        """Return the GA4 events_* shard suffixes (YYYYMMDD) for this window."""
        return (
            self.start_date.strftime("%Y%m%d"),
            self.end_date.strftime("%Y%m%d"),
        )

    def __str__(self) -> str:
        return f"{self.start_date.isoformat()} -> {self.end_date.isoformat()}"


@dataclass(frozen=True)
class PeriodWindow:
    """A reporting window and the window it is compared against."""

    key: str
    current: DateRange
    previous: DateRange


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def date_range(days_back: int, today: Optional[date] = None) -> DateRange:
    """Window ending today and starting days_back days earlier."""
    if days_back < 0:
        raise ValueError("days_back must be non-negative")
    end = today or utc_today()
    return DateRange(start_date=end - timedelta(days=days_back), end_date=end)


def year_to_date_range(today: Optional[date] = None) -> DateRange:
    end = today or utc_today()
    return DateRange(start_date=date(end.year, 1, 1), end_date=end)


def previous_range(current: DateRange) -> DateRange:
    """Same-length window immediately preceding ``current``."""
    length = timedelta(days=current.days)
    return DateRange(
        start_date=current.start_date - length,
        end_date=current.start_date,
    )


def ytd_previous_range(today: Optional[date] = None) -> DateRange:
    """Comparator for the YTD period.

    Twice the elapsed year-to-date days counted back from today. This is not a
    year-over-year comparison.
    """
    current = year_to_date_range(today)
    return date_range(current.days * 2, today=current.end_date)


def build_period_windows(today: Optional[date] = None) -> dict[str, PeriodWindow]:
    """Build the four dashboard periods keyed by 7d/30d/90d/ytd."""
    today = today or utc_today()

    windows: dict[str, PeriodWindow] = {}
    for key, days_back in PERIOD_LOOKBACK_DAYS.items():
        current = date_range(days_back, today=today)
        windows[key] = PeriodWindow(
            key=key, current=current, previous=previous_range(current)
        )

    windows["ytd"] = PeriodWindow(
        key="ytd",
        current=year_to_date_range(today),
        previous=ytd_previous_range(today),
    )
    return windows
