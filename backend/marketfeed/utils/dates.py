"""Date and time helpers"""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_today() -> date:
    """Today's calendar day in local time, used as the feed partition key"""
    return date.today()


def seconds_until(moment: datetime, now: datetime) -> int:
    """Whole seconds from now until moment, never negative"""
    return max(0, int((moment - now).total_seconds()))
