"""Group a filtered stay collection into year -> month buckets."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from app.schemas.filters import StayFilter
from app.services.dates import derive_interval, parse_flexible_date
from app.services.stay_filter import sort_by_recency


@dataclass
class MonthGroup:
    month: int
    stays: list = field(default_factory=list)


@dataclass
class YearGroup:
    year: int
    months: list[MonthGroup] = field(default_factory=list)


def group_anchor(stay) -> date | None:
    """Interval start, else check-out, else Jan-1 of the stored year."""
    interval = derive_interval(stay)
    if interval:
        return interval.start
    check_out = parse_flexible_date(getattr(stay, "check_out", None))
    if check_out:
        return check_out
    try:
        return date(int(getattr(stay, "year", None)), 1, 1)
    except (TypeError, ValueError):
        return None


def export_order(stays: Iterable) -> list:
    """Oldest first. Drives colour assignment."""
    def key(stay):
        anchor = group_anchor(stay) or date.min
        return anchor, int(getattr(stay, "id", 0) or 0)
    return sorted(stays, key=key)


def group_for_export(stays: Iterable, flt: StayFilter | None = None) -> list[YearGroup]:
    """Year desc, month desc, stays by recency. A pinned filter year/month wins over each stay's anchor."""
    flt = flt or StayFilter()
    buckets: dict[tuple[int, int], list] = {}
    for stay in stays:
        anchor = group_anchor(stay)
        year = flt.year if flt.year is not None else (anchor.year if anchor else 0)
        month = flt.month if flt.month is not None else (anchor.month if anchor else 1)
        buckets.setdefault((year, month), []).append(stay)

    groups: list[YearGroup] = []
    for (year, month) in sorted(buckets, reverse=True):
        if not groups or groups[-1].year != year:
            groups.append(YearGroup(year=year))
        groups[-1].months.append(MonthGroup(month=month, stays=sort_by_recency(buckets[(year, month)])))
    return groups


def count_grouped(groups: list[YearGroup]) -> int:
    return sum(len(m.stays) for g in groups for m in g.months)
