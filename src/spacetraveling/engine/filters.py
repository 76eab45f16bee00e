"""Custom Jinja2 filters for the site templates."""

from datetime import datetime
from zoneinfo import ZoneInfo

# date-fns pt-BR abbreviations, as shown on the listing and article pages.
PT_BR_MONTHS = ("jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez")


def format_date(value: datetime | None, timezone: str | None = None) -> str:
    """Format a publication date as ``dd MMM yyyy`` in Brazilian Portuguese.

    Args:
        value: Datetime to format. Naive values are formatted as they are.
        timezone: IANA zone to display the date in

    Returns:
        e.g. ``15 mar 2021``, or an empty string for unpublished documents

    """
    if value is None:
        return ""
    if timezone and value.tzinfo is not None:
        value = value.astimezone(ZoneInfo(timezone))
    return f"{value.day:02d} {PT_BR_MONTHS[value.month - 1]} {value.year}"


def isoformat(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.isoformat()
