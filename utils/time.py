"""Time utilities for UTC timestamp handling.

Upload timestamps are exchanged as ISO-8601 strings in the same shape a
browser's ``Date.prototype.toISOString`` produces (millisecond precision,
``Z`` suffix). Comparisons between stored and freshly scraped values happen on
UTC calendar dates, never on local wall-clock time.
"""

import calendar
import re
from datetime import date, datetime, timedelta, timezone


_MONTH_NAMES = (
    'january', 'february', 'march', 'april', 'may', 'june',
    'july', 'august', 'september', 'october', 'november', 'december',
)
_MONTH_DAY_YEAR_RE = re.compile(r'([A-Za-z]+)\s+(\d{1,2}),?\s+(\d{4})')


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def to_iso_z(value: datetime) -> str:
    """Format an aware (or UTC-naive) datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime('%Y-%m-%dT%H:%M:%S.') + f'{value.microsecond // 1000:03d}Z'


def from_epoch_millis(value) -> datetime | None:
    """Convert epoch milliseconds into an aware UTC datetime.

    Returns ``None`` when the value is not numeric or out of range.
    """

    try:
        millis = float(value)
    except (TypeError, ValueError):
        return None
    if millis != millis or millis in (float('inf'), float('-inf')):
        return None
    try:
        return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)
    except OverflowError:
        return None


def parse_iso_utc(value: str | None) -> datetime | None:
    """Parse an ISO-8601 string into an aware UTC datetime.

    * A trailing ``Z`` is accepted.
    * Naive strings are treated as UTC.

    Returns ``None`` if the input cannot be parsed.
    """

    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def utc_calendar_date(value) -> date | None:
    """Return the UTC calendar date of an ISO string or datetime."""

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(timezone.utc).date()
    parsed = parse_iso_utc(value)
    return parsed.date() if parsed else None


def parse_month_day_year(text: str | None) -> date | None:
    """Parse an English ``"Month Day, Year"`` string (``"Jan 1, 2025"`` too)."""

    if not text:
        return None
    match = _MONTH_DAY_YEAR_RE.search(text)
    if not match:
        return None

    month_token = match.group(1).lower()
    month_index = next(
        (index for index, name in enumerate(_MONTH_NAMES) if name.startswith(month_token)),
        None,
    )
    if month_index is None:
        return None

    try:
        return date(int(match.group(3)), month_index + 1, int(match.group(2)))
    except ValueError:
        return None


def midday_utc(value: date) -> datetime:
    """Pin a calendar date to 12:00 UTC."""

    return datetime(value.year, value.month, value.day, 12, 0, 0, tzinfo=timezone.utc)


def months_before(value: datetime, months: int) -> datetime:
    """Step ``months`` calendar months back, clamping to the month's last day."""

    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    days_in_month = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, days_in_month))
