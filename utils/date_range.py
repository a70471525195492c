"""
Local-day helpers for browsing and searching tubuyaki by date.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from utils.errors import ValidationError
import re

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def local_timezone(name: Optional[str] = None) -> tzinfo:
    """Resolve the timezone that defines a "day".

    Args:
        name: IANA timezone name (optional, uses the system local zone if None)

    Returns:
        tzinfo object
    """
    if name:
        try:
            return ZoneInfo(name)
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"Unknown timezone: {name}") from e
    return datetime.now().astimezone().tzinfo


def start_of_day(moment: datetime, tz: tzinfo) -> datetime:
    """Midnight of the local day containing `moment`"""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz)
    local = moment.astimezone(tz)
    return datetime.combine(local.date(), time.min, tzinfo=tz)


def parse_date(value: Union[str, date, None], field: str) -> Optional[date]:
    """Parse a YYYY-MM-DD string (or datetime/date) into a date.

    Raises:
        ValidationError: value is not a valid date
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    message = f"{field} must be a date in YYYY-MM-DD format"
    if not DATE_PATTERN.fullmatch(text):
        raise ValidationError(message)
    try:
        return date.fromisoformat(text)
    except ValueError:
        # e.g. 2025-02-30
        raise ValidationError(message) from None


def day_range(
    date_from: Optional[date], date_to: Optional[date], tz: tzinfo
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Convert an inclusive local date range to [created_from, created_before)."""
    created_from = datetime.combine(date_from, time.min, tzinfo=tz) if date_from else None
    created_before = (
        datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=tz) if date_to else None
    )
    return created_from, created_before
