"""GA4 traffic channel classification."""
from typing import Iterable, Optional


PAID_SEARCH = "Paid Search"
ORGANIC_SEARCH = "Organic Search"
EMAIL = "Email"
REFERRAL = "Referral"
SOCIAL = "Social"
DIRECT = "Direct"

# Order the dashboard lists channels in
TRAFFIC_SOURCE_ORDER = (ORGANIC_SEARCH, DIRECT, REFERRAL, PAID_SEARCH, EMAIL, SOCIAL)

_MEDIUM_BUCKETS = {
    "cpc": PAID_SEARCH,
    "paid": PAID_SEARCH,
    "organic": ORGANIC_SEARCH,
    "organic_search": ORGANIC_SEARCH,
    "email": EMAIL,
    "referral": REFERRAL,
    "social": SOCIAL,
    "paid_social": SOCIAL,
}


def classify_traffic_source(source: Optional[str], medium: Optional[str]) -> str:
    """Map a GA4 (source, medium) pair to a channel bucket.

    Only the medium decides the bucket; unknown or missing mediums are Direct.
    """
    return _MEDIUM_BUCKETS.get(medium, DIRECT)


def bucket_sessions(rows: Iterable[tuple[Optional[str], Optional[str], int]]) -> dict[str, int]:
    """Sum session counts per channel bucket."""
    buckets: dict[str, int] = {}
    for source, medium, sessions in rows:
        key = classify_traffic_source(source, medium)
        buckets[key] = buckets.get(key, 0) + sessions
    return buckets
