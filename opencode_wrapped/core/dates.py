"""
Calendar helpers.

Day-keys are ``YYYY-MM-DD`` strings in local time. Weeks start on Sunday.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# Wrapped for the current year opens on this day
RELEASE_MONTH = 12
RELEASE_DAY = 20

MIN_YEAR = 2020


def local_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime."""
    return datetime.fromtimestamp(timestamp_ms / 1000)


def year_of(timestamp_ms: int) -> int:
    """Calendar year of an epoch-millis timestamp in local time."""
    return local_datetime(timestamp_ms).year


def format_day_key(day: Union[date, datetime]) -> str:
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def day_key_from_millis(timestamp_ms: int) -> str:
    return format_day_key(local_datetime(timestamp_ms))


def parse_day_key(key: str) -> date:
    year, month, day = (int(part) for part in key.split("-"))
    return date(year, month, day)


def weekday_index(day: Union[date, datetime]) -> int:
    """Weekday with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7


def days_between(earlier: str, later: str) -> int:
    """Whole days from one day-key to another."""
    return (parse_day_key(later) - parse_day_key(earlier)).days


def format_short_date(day: Union[date, datetime]) -> str:
    """Format as ``Mon D``, e.g. ``Jan 5``."""
    return f"{MONTH_ABBR[day.month - 1]} {day.day}"


def generate_weeks_for_year(year: int, today: Optional[date] = None) -> List[List[str]]:
    """Lay out the year as Sunday-first week columns for the heatmap.

    Each week holds seven entries. Days outside the year, and days after
    ``today`` when rendering the current year, are empty strings.

    Args:
        year: Year to lay out
        today: Reference date (defaults to the local current date)

    Returns:
        List of weeks, each a list of seven day-keys or ""
    """
    today = today or date.today()
    first = date(year, 1, 1)
    start = first - timedelta(days=weekday_index(first))
    end = today if year == today.year else date(year, 12, 31)

    weeks: List[List[str]] = []
    current = start
    while current <= end:
        week = []
        for _ in range(7):
            in_range = current.year == year and current <= end
            week.append(format_day_key(current) if in_range else "")
            current += timedelta(days=1)
        weeks.append(week)
    return weeks


def get_intensity_level(count: int, max_count: int) -> int:
    """Bucket a day's count into 0..4 relative to the busiest day."""
    if count == 0 or max_count == 0:
        return 0

    ratio = count / max_count
    if ratio <= 0.25:
        return 1
    if ratio <= 0.5:
        return 2
    if ratio <= 0.75:
        return 3
    return 4


@dataclass(frozen=True)
class Availability:
    """Whether a wrapped can be generated for a year, and why not."""
    available: bool
    message: Optional[str] = None


def is_wrapped_available(year: int, today: Optional[date] = None) -> Availability:
    """Check the release gate for ``year``.

    Past years are always available and future years never are. The
    current year opens on December 20th.
    """
    today = today or date.today()

    if year < today.year:
        return Availability(available=True)

    if year > today.year:
        return Availability(
            available=False,
            message=f"OpenCode Wrapped {year} isn't available yet. The future hasn't been written!",
        )

    release = date(year, RELEASE_MONTH, RELEASE_DAY)
    if today < release:
        days_until = (release - today).days
        return Availability(
            available=False,
            message=(
                f"OpenCode Wrapped {year} isn't ready yet!\n\n"
                f"Come back on December 20th to unwrap your coding year in review.\n\n"
                f"Only {days_until} days to go!"
            ),
        )

    return Availability(available=True)


def is_valid_year(year: int, today: Optional[date] = None) -> bool:
    """Years from 2020 up to next year are accepted."""
    today = today or date.today()
    return MIN_YEAR <= year <= today.year + 1
