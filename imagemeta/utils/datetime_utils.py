"""Datetime utility functions for consistent timezone handling."""

from datetime import date, datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def get_current_utc_datetime() -> datetime:
    """
    Get current datetime in UTC timezone.

    Returns:
        datetime: Current UTC datetime with timezone info

    Example:
        >>> now = get_current_utc_datetime()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware datetime."""
    return (moment - EPOCH) // timedelta(milliseconds=1)


def to_usage_date(moment: datetime | date) -> str:
    """Calendar day in the fixed-width ``YYYY-MM-DD`` form the ledger keys on."""
    if isinstance(moment, datetime):
        moment = moment.astimezone(timezone.utc).date()
    return moment.isoformat()


def window_cutoff_ms(now: datetime, days: int) -> int:
    """Exclusive lower bound of a trailing window of ``days`` ending at ``now``."""
    return to_epoch_ms(now - timedelta(days=days))
