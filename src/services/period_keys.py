"""Period key derivation for habit cadences.

Keys:
    daily   -> YYYY-MM-DD
    weekly  -> YYYY-Www, ww = ceil(day_of_year / 7); weeks restart at 01 every
               January 1st and do not follow ISO-8601 week numbering
    monthly -> YYYY-MM
"""

from datetime import UTC, datetime

from src.domain.habit import Frequency


DAYS_PER_WEEK = 7


def _as_utc(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(UTC)
    if now.tzinfo is None:
        return now.replace(tzinfo=UTC)
    return now.astimezone(UTC)


def week_of_year(moment: datetime) -> int:
    """1-based week number counted in whole days from January 1st."""
    day_of_year = moment.timetuple().tm_yday
    return (day_of_year + DAYS_PER_WEEK - 1) // DAYS_PER_WEEK


def derive_period_key(frequency: Frequency | str, now: datetime | None = None) -> str:
    """Return the bucket identifier the given instant falls into for a cadence.

    Args:
        frequency: Habit cadence
        now: Instant to bucket; defaults to the current time. Naive values are read as UTC.

    Returns:
        Period key string
    """
    moment = _as_utc(now)
    frequency = Frequency(frequency)

    if frequency is Frequency.WEEKLY:
        return f"{moment.year}-W{week_of_year(moment):02d}"
    if frequency is Frequency.MONTHLY:
        return f"{moment.year}-{moment.month:02d}"
    return moment.date().isoformat()
