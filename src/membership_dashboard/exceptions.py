"""Custom exceptions for the dashboard refresh."""
from typing import Optional


class DashboardError(Exception):
    """Base exception for all dashboard refresh errors."""


class ConfigurationError(DashboardError):
    """Raised when the campaign configuration is missing fields or malformed."""


class AdSpendApiError(DashboardError):
    """Raised for Meta Graph API failures (HTTP errors or error payloads)."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        self.message = message
        if status is None:
            super().__init__(f"Meta API error: {message}")
        else:
            super().__init__(f"Meta API error (HTTP {status}): {message}")
