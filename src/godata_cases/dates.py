"""Date parsing for lab data and encoding for the Go.Data API."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from godata_cases.config import DateOrder
from godata_cases.exceptions import ConfigurationError

_FORMATS: dict[DateOrder, tuple[str, ...]] = {
    DateOrder.YMD: ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d", "%Y%m%d"),
    DateOrder.DMY: ("%d-%m-%Y", "%d/%m/%Y", "%d.%m.%Y", "%d-%m-%y", "%d/%m/%y"),
    DateOrder.MDY: ("%m-%d-%Y", "%m/%d/%Y", "%m.%d.%Y", "%m-%d-%y", "%m/%d/%y"),
}


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range used to restrict the case lookup table."""

    start: date
    end: date

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


def parse_source_date(value: Any, order: DateOrder = DateOrder.YMD) -> Optional[date]:
    """
    Parse a lab data date. Accepts date/datetime objects or strings in the given order.
    Returns None for empty values; raises ConfigurationError when unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    # Drop any time part ("2024-03-01 10:15:00", "2024-03-01T10:15:00")
    head = text.replace("T", " ").split(" ")[0]
    for fmt in _FORMATS[order]:
        try:
            return datetime.strptime(head, fmt).date()
        except ValueError:
            continue
    raise ConfigurationError(f"Could not parse date {text!r} as {order.value}")


def encode_platform_date(value: date) -> str:
    """Encode a date the way Go.Data stores it: midnight UTC ISO-8601 with milliseconds."""
    return f"{value:%Y-%m-%d}T00:00:00.000Z"


def parse_platform_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a Go.Data date-time (e.g. 2024-03-01T00:00:00.000Z) to an aware UTC datetime.
    Returns None for empty values; raises ValueError when unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def date_window(dates: Iterable[Optional[date]], epiwindow: int = 0) -> DateWindow:
    """
    Window spanning the given dates, extended back by epiwindow days.
    Cases reported up to epiwindow days before the earliest lab date are included.
    """
    known = [d for d in dates if d is not None]
    if not known:
        raise ConfigurationError("No reference dates found; cannot determine date range.")
    return DateWindow(start=min(known) - timedelta(days=epiwindow), end=max(known))
