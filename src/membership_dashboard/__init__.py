"""Membership dashboard snapshot builder (MemberPress + GA4 + Meta Ads)."""

__version__ = "0.1.0"
