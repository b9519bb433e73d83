from datetime import date, datetime

import pytest

from backend.app.services.revenue_aggregator import (
    Granularity,
    aggregate,
    default_group_by,
    period_key,
    period_start,
    resolve_date_range,
)
from backend.app.services.revenue_calculator import LessonRecord, Participant, compute_revenues

ALICE = Participant(student_id=1, first_name="Alice", last_name="Martin", hourly_rate=40.0)
BOB = Participant(student_id=2, first_name="Bob", last_name="Durand", hourly_rate=20.0)


def _revenues(*specs):
    records = [
        LessonRecord(id=i, date=day, title=f"Leçon {i}", duration="", hours=hours, participants=tuple(people))
        for i, (day, hours, people) in enumerate(specs, start=1)
    ]
    return compute_revenues(records)


@pytest.mark.parametrize(
    "granularity, expected",
    [
        (Granularity.DAY, "2024-03-14"),
        (Granularity.WEEK, "2024-03-11"),
        (Granularity.MONTH, "2024-03"),
        (Granularity.QUARTER, "2024-Q1"),
        (Granularity.YEAR, "2024"),
    ],
)
def test_period_keys_truncate_to_period_start(granularity, expected):
    assert period_key(date(2024, 3, 14), granularity) == expected


def test_period_start_of_fourth_quarter():
    assert period_start(date(2024, 11, 30), Granularity.QUARTER) == date(2024, 10, 1)


def test_resolve_month_range_covers_whole_months():
    start, end = resolve_date_range(Granularity.MONTH, date(2024, 2, 10), date(2024, 3, 5), today=date(2024, 6, 1))
    assert (start, end) == (date(2024, 2, 1), date(2024, 3, 31))


def test_resolve_week_range_uses_monday_to_sunday():
    start, end = resolve_date_range(Granularity.WEEK, None, None, today=date(2024, 3, 14))
    assert (start, end) == (date(2024, 3, 11), date(2024, 3, 17))


def test_resolve_year_range_without_dates_is_current_year():
    start, end = resolve_date_range(Granularity.YEAR, date(2020, 5, 1), None, today=date(2024, 3, 14))
    assert (start, end) == (date(2024, 1, 1), date(2024, 12, 31))


def test_resolve_quarter_range():
    start, end = resolve_date_range(Granularity.QUARTER, date(2024, 12, 2), date(2024, 12, 2), today=date(2024, 1, 1))
    assert (start, end) == (date(2024, 10, 1), date(2024, 12, 31))


def test_default_group_by():
    assert default_group_by(Granularity.YEAR) == Granularity.MONTH
    assert default_group_by(Granularity.MONTH) == Granularity.DAY


def test_range_endpoints_are_inclusive():
    revenues = _revenues(
        (date(2024, 2, 29), 1.0, [ALICE]),
        (date(2024, 3, 1), 1.0, [ALICE]),
        (date(2024, 3, 31), 1.0, [ALICE]),
        (date(2024, 4, 1), 1.0, [ALICE]),
    )
    result = aggregate(revenues, Granularity.DAY, datetime(2024, 3, 1, 18, 0), date(2024, 3, 31), today=date(2025, 1, 1))
    assert [r.lesson.date for r in result.lesson_details] == [date(2024, 3, 1), date(2024, 3, 31)]


def test_buckets_sum_lessons_and_omit_empty_periods():
    revenues = _revenues(
        (date(2024, 1, 3), 1.0, [ALICE]),
        (date(2024, 1, 20), 1.5, [ALICE, BOB]),
        (date(2024, 3, 2), 2.0, [BOB]),
    )
    result = aggregate(revenues, Granularity.MONTH, date(2024, 1, 1), date(2024, 12, 31), today=date(2025, 1, 1))
    assert result.buckets == pytest.approx({"2024-01": 130.0, "2024-03": 40.0})
    assert "2024-02" not in result.buckets
    assert result.summary.total_revenue == pytest.approx(170.0)


def test_average_rate_is_weighted_by_billed_hours():
    revenues = _revenues(
        (date(2024, 1, 3), 3.0, [ALICE]),
        (date(2024, 1, 4), 1.0, [BOB]),
    )
    summary = aggregate(revenues, Granularity.DAY, date(2024, 1, 1), date(2024, 1, 31), today=date(2025, 1, 1)).summary
    # (120 + 20) / 4h, not the plain mean of 40 and 20
    assert summary.average_hourly_rate == pytest.approx(35.0)
    assert summary.average_hourly_rate * summary.billed_hours == pytest.approx(summary.total_revenue)
    assert summary.total_hours == pytest.approx(4.0)


def test_projection_uses_today_not_range_end():
    revenues = _revenues(
        (date(2024, 3, 9), 1.0, [ALICE]),
        (date(2024, 3, 10), 1.0, [ALICE]),
        (date(2024, 3, 11), 1.0, [BOB]),
    )
    summary = aggregate(revenues, Granularity.DAY, date(2024, 3, 1), date(2024, 3, 31), today=date(2024, 3, 10)).summary
    assert summary.lessons_completed == 2
    assert summary.completed_revenue == pytest.approx(80.0)
    assert summary.projected_revenue == pytest.approx(20.0)
    assert summary.completed_revenue + summary.projected_revenue == pytest.approx(summary.total_revenue)


def test_past_range_has_no_projected_revenue():
    revenues = _revenues((date(2023, 5, 1), 1.0, [ALICE]))
    summary = aggregate(revenues, Granularity.DAY, date(2023, 1, 1), date(2023, 12, 31), today=date(2024, 3, 10)).summary
    assert summary.projected_revenue == 0
    assert summary.lessons_completed == 1


def test_empty_input_gives_zero_summary():
    result = aggregate([], Granularity.DAY, date(2024, 1, 1), date(2024, 1, 31), today=date(2024, 1, 15))
    assert result.buckets == {}
    assert result.lesson_details == []
    assert result.summary.total_revenue == 0
    assert result.summary.average_hourly_rate == 0
    assert result.summary.average_revenue_per_lesson == 0


def test_average_rate_times_billed_hours_is_total_for_shared_lesson():
    revenues = _revenues((date(2024, 3, 10), 1.5, [ALICE, BOB]))
    summary = aggregate(revenues, Granularity.DAY, date(2024, 3, 1), date(2024, 3, 31), today=date(2025, 1, 1)).summary
    assert summary.total_revenue == pytest.approx(90.0)
    assert summary.total_hours == pytest.approx(1.5)
    assert summary.billed_hours == pytest.approx(3.0)
    assert summary.average_hourly_rate == pytest.approx(30.0)
    assert summary.average_hourly_rate * summary.billed_hours == pytest.approx(summary.total_revenue)
