"""Date range helpers for report requests."""

from datetime import date, timedelta

from tsheets_report.errors import InvalidDateRangeError


def parse_iso_date(value: str) -> date:
    """Parse a YYYY-MM-DD string.

    Raises:
        InvalidDateRangeError: If the value is not an ISO calendar date.
    """
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise InvalidDateRangeError(f"Invalid date '{value}'. Use YYYY-MM-DD") from None


def last_week_range(today: date | None = None) -> tuple[date, date]:
    """Return the previous full Sunday-to-Saturday week."""
    today = today or date.today()
    # date.weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (today.weekday() + 1) % 7
    start = today - timedelta(days=days_since_sunday + 7)
    return start, start + timedelta(days=6)


def resolve_date_range(
    start_date: str | None,
    end_date: str | None,
    today: date | None = None,
) -> tuple[date, date]:
    """Turn optional ISO strings into a concrete inclusive range.

    Both missing means last week; a single date means a one-day range.

    Raises:
        InvalidDateRangeError: On malformed dates or when start is after end.
    """
    start_date = (start_date or "").strip()
    end_date = (end_date or "").strip()

    if not start_date and not end_date:
        return last_week_range(today)

    start = parse_iso_date(start_date or end_date)
    end = parse_iso_date(end_date or start_date)
    if start > end:
        raise InvalidDateRangeError(f"Start date {start} is after end date {end}")
    return start, end
