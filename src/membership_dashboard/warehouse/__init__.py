"""BigQuery access for MemberPress and GA4 exports."""
from .client import WarehouseClient

__all__ = ["WarehouseClient"]
