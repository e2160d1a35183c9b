"""
Time source for audit stamps and date-based dependency checks.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC now, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
