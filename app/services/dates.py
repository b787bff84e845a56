"""Date parsing and half-open stay intervals."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

MONTH_NAMES = [
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
]

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_DMY_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
# Tried in order after the ISO and DD/MM/YYYY shapes
_FALLBACK_FORMATS = ("%d.%m.%Y", "%d-%m-%Y", "%Y/%m/%d", "%d %B %Y", "%d %b %Y", "%B %d, %Y", "%b %d, %Y")


@dataclass(frozen=True)
class Interval:
    """[start, end) in whole days."""
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_flexible_date(raw) -> date | None:
    """Parse a date-ish value to a plain date. Returns None instead of raising."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None
    s = raw.strip()
    if not s:
        return None

    m = _ISO_PREFIX.match(s)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    m = _DMY_SLASH.match(s)
    if m:
        return _safe_date(int(m.group(3)), int(m.group(2)), int(m.group(1)))

    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def _positive_int(value, default: int = 1) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def derive_interval(stay) -> Interval | None:
    """Best-effort occupancy interval of a stay; None when no date is known."""
    check_in = parse_flexible_date(getattr(stay, "check_in", None))
    check_out = parse_flexible_date(getattr(stay, "check_out", None))

    if check_in and check_out and check_out > check_in:
        return Interval(check_in, check_out)
    if check_in:
        nights = _positive_int(getattr(stay, "nights_count", None))
        return Interval(check_in, check_in + timedelta(days=nights))
    if check_out:
        return Interval(check_out - timedelta(days=1), check_out)
    return None


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    # Touching ends do not overlap: checkout day is free for a new check-in
    return a_start < b_end and a_end > b_start


def _next_month(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def month_range(year: int, month: int) -> tuple[date, date]:
    start = date(year, month, 1)
    return start, _next_month(start)


def year_range(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year + 1, 1, 1)


def interval_covers_month(interval: Interval, month: int) -> bool:
    """True if any day of the interval falls in `month`, in any year."""
    if interval.end <= interval.start:
        return False
    bucket = date(interval.start.year, interval.start.month, 1)
    for _ in range(12):
        if bucket >= interval.end:
            return False
        if bucket.month == month:
            return True
        bucket = _next_month(bucket)
    # Twelve consecutive buckets cover every month
    return True


def nights_between(check_in, check_out) -> int | None:
    start = parse_flexible_date(check_in)
    end = parse_flexible_date(check_out)
    if not start or not end:
        return None
    days = (end - start).days
    return days if days > 0 else None


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]


def format_long_date(raw) -> str:
    """e.g. 10 de junho de 2024; '-' when the value is not a date."""
    d = parse_flexible_date(raw)
    if not d:
        return "-"
    return f"{d.day} de {month_name(d.month)} de {d.year}"


def format_short_date(raw) -> str:
    d = parse_flexible_date(raw)
    if not d:
        return "-"
    return d.strftime("%d/%m/%Y")
