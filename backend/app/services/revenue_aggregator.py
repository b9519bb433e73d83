"""Calendar bucketing and summary metrics for lesson revenue."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from backend.app.services.revenue_calculator import LessonRevenue


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def period_start(value: date, granularity: Granularity) -> date:
    """Truncate a date to the first day of its period (weeks start on Monday)."""
    value = _as_date(value)
    if granularity == Granularity.DAY:
        return value
    if granularity == Granularity.WEEK:
        return value - timedelta(days=value.weekday())
    if granularity == Granularity.MONTH:
        return value.replace(day=1)
    if granularity == Granularity.QUARTER:
        first_month = 3 * ((value.month - 1) // 3) + 1
        return date(value.year, first_month, 1)
    return date(value.year, 1, 1)


def period_end(value: date, granularity: Granularity) -> date:
    start = period_start(value, granularity)
    if granularity == Granularity.DAY:
        return start
    if granularity == Granularity.WEEK:
        return start + timedelta(days=6)
    if granularity == Granularity.MONTH:
        next_start = date(start.year + (start.month == 12), start.month % 12 + 1, 1)
        return next_start - timedelta(days=1)
    if granularity == Granularity.QUARTER:
        next_month = start.month + 3
        next_start = date(start.year + (next_month > 12), (next_month - 1) % 12 + 1, 1)
        return next_start - timedelta(days=1)
    return date(start.year, 12, 31)


def period_key(value: date, granularity: Granularity) -> str:
    start = period_start(value, granularity)
    if granularity in (Granularity.DAY, Granularity.WEEK):
        return start.isoformat()
    if granularity == Granularity.MONTH:
        return f"{start.year:04d}-{start.month:02d}"
    if granularity == Granularity.QUARTER:
        return f"{start.year:04d}-Q{(start.month - 1) // 3 + 1}"
    return f"{start.year:04d}"


def default_group_by(range_: Granularity) -> Granularity:
    # Yearly views chart months, every other view charts days
    return Granularity.MONTH if range_ == Granularity.YEAR else Granularity.DAY


def resolve_date_range(
    range_: Granularity,
    start_date: Optional[date],
    end_date: Optional[date],
    today: date,
) -> Tuple[date, date]:
    """Expand the requested dates to whole periods of ``range_``.

    Missing dates default to ``today``. A yearly range without both dates covers
    the current calendar year.
    """
    if range_ == Granularity.YEAR and not (start_date and end_date):
        return date(today.year, 1, 1), date(today.year, 12, 31)
    start = start_date or today
    end = end_date or today
    return period_start(start, range_), period_end(end, range_)


@dataclass(frozen=True)
class RevenueSummary:
    total_revenue: float = 0.0
    total_hours: float = 0.0
    billed_hours: float = 0.0
    average_hourly_rate: float = 0.0
    lessons_completed: int = 0
    completed_revenue: float = 0.0
    projected_revenue: float = 0.0
    lesson_count: int = 0

    @property
    def average_revenue_per_lesson(self) -> float:
        return self.total_revenue / self.lesson_count if self.lesson_count else 0.0


@dataclass(frozen=True)
class AggregatedRevenue:
    start_date: date
    end_date: date
    granularity: Granularity
    summary: RevenueSummary
    buckets: Dict[str, float] = field(default_factory=dict)
    lesson_details: List[LessonRevenue] = field(default_factory=list)


def aggregate(
    revenues: Iterable[LessonRevenue],
    granularity: Granularity,
    start_date: date | datetime,
    end_date: date | datetime,
    today: date,
) -> AggregatedRevenue:
    """Bucket lesson revenue by period and compute the summary metrics.

    Both range endpoints are inclusive. Lessons dated on or before ``today`` are
    completed; later ones count as projected revenue.
    """
    start = _as_date(start_date)
    end = _as_date(end_date)

    in_range = sorted(
        (r for r in revenues if start <= r.lesson.date <= end),
        key=lambda r: (r.lesson.date, r.lesson.id),
    )

    buckets: Dict[str, float] = {}
    total_revenue = 0.0
    total_hours = 0.0
    billed_hours = 0.0
    completed = 0
    completed_revenue = 0.0
    projected_revenue = 0.0

    for revenue in in_range:
        key = period_key(revenue.lesson.date, granularity)
        buckets[key] = buckets.get(key, 0.0) + revenue.lesson_total

        total_revenue += revenue.lesson_total
        total_hours += revenue.lesson.hours
        billed_hours += revenue.billed_hours
        if revenue.lesson.date <= today:
            completed += 1
            completed_revenue += revenue.lesson_total
        else:
            projected_revenue += revenue.lesson_total

    summary = RevenueSummary(
        total_revenue=total_revenue,
        total_hours=total_hours,
        billed_hours=billed_hours,
        average_hourly_rate=total_revenue / billed_hours if billed_hours > 0 else 0.0,
        lessons_completed=completed,
        completed_revenue=completed_revenue,
        projected_revenue=projected_revenue,
        lesson_count=len(in_range),
    )
    return AggregatedRevenue(
        start_date=start,
        end_date=end,
        granularity=granularity,
        summary=summary,
        buckets=dict(sorted(buckets.items())),
        lesson_details=in_range,
    )
