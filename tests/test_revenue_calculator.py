from datetime import date
from types import SimpleNamespace

import pytest

from backend.app.services.revenue_calculator import (
    DEFAULT_COURSE_TITLE,
    LessonRecord,
    Participant,
    coerce_hourly_rate,
    compute_lesson_revenue,
    compute_revenues,
)


def _record(lesson_id=1, day=date(2024, 3, 10), duration="1h30", participants=()):
    return LessonRecord(
        id=lesson_id,
        date=day,
        title="Algèbre",
        duration=duration,
        hours={"1h30": 1.5, "1h": 1.0, "2h": 2.0}[duration],
        participants=tuple(participants),
    )


ALICE = Participant(student_id=1, first_name="Alice", last_name="Martin", hourly_rate=40.0)
BOB = Participant(student_id=2, first_name="Bob", last_name="Durand", hourly_rate=20.0)


def test_single_participant_contribution():
    result = compute_lesson_revenue(_record(participants=[ALICE]))
    assert result.lesson_total == pytest.approx(60.0)
    assert result.per_student[0].contribution == pytest.approx(60.0)


def test_each_participant_billed_full_duration():
    result = compute_lesson_revenue(_record(participants=[ALICE, BOB]))
    assert [c.contribution for c in result.per_student] == pytest.approx([60.0, 30.0])
    assert result.lesson_total == pytest.approx(90.0)
    assert result.lesson_total == pytest.approx(sum(c.contribution for c in result.per_student))
    assert result.billed_hours == pytest.approx(3.0)


def test_student_filter_keeps_only_that_participant():
    result = compute_lesson_revenue(_record(participants=[ALICE, BOB]), student_id=2)
    assert [c.student_id for c in result.per_student] == [2]
    assert result.lesson_total == pytest.approx(30.0)
    assert result.representative.full_name == "Bob Durand"


def test_filtered_out_lesson_is_omitted_not_zeroed():
    lessons = [_record(1, participants=[ALICE]), _record(2, participants=[ALICE, BOB])]
    results = compute_revenues(lessons, student_id=2)
    assert [r.lesson.id for r in results] == [2]


def test_unknown_student_filter_yields_nothing():
    assert compute_revenues([_record(participants=[ALICE, BOB])], student_id=999) == []


def test_empty_participants_use_placeholder_representative():
    result = compute_lesson_revenue(_record(participants=[]))
    assert result.is_empty
    assert result.lesson_total == 0
    assert result.representative.first_name == "Inconnu"
    assert result.representative.last_name == "Élève"


def test_results_are_sorted_by_date():
    lessons = [
        _record(1, day=date(2024, 3, 12), participants=[ALICE]),
        _record(2, day=date(2024, 3, 1), participants=[ALICE]),
    ]
    assert [r.lesson.id for r in compute_revenues(lessons)] == [2, 1]


@pytest.mark.parametrize("value", [None, "", "abc", 0, -5, float("nan"), "NaN"])
def test_unusable_rates_fall_back_to_default(value):
    assert coerce_hourly_rate(value, 30) == 30.0


def test_valid_rates_are_kept():
    assert coerce_hourly_rate("42.50", 30) == 42.5
    assert coerce_hourly_rate(25, 30) == 25.0


def _student(student_id, rate, first="Eva", last="Petit"):
    return SimpleNamespace(id=student_id, first_name=first, last_name=last, hourly_rate=rate)


def _lesson_model(student=None, linked=(), duration="1:30", course=None):
    return SimpleNamespace(
        id=7,
        date=date(2024, 3, 10),
        title="Physique",
        duration=duration,
        course_id=course.id if course else None,
        course=course,
        student=student,
        lesson_students=[SimpleNamespace(student=s) for s in linked],
    )


def test_record_prefers_multi_student_list_over_legacy_field():
    legacy = _student(1, 50)
    linked = [_student(2, 40), _student(3, None)]
    record = LessonRecord.from_model(_lesson_model(student=legacy, linked=linked), default_rate=30)
    assert [p.student_id for p in record.participants] == [2, 3]
    assert [p.hourly_rate for p in record.participants] == [40.0, 30.0]
    assert record.hours == pytest.approx(1.5)


def test_record_falls_back_to_legacy_student():
    record = LessonRecord.from_model(_lesson_model(student=_student(1, 50)), default_rate=30)
    assert [p.student_id for p in record.participants] == [1]
    assert record.course_title == DEFAULT_COURSE_TITLE


def test_record_deduplicates_participants():
    twin = _student(2, 40)
    record = LessonRecord.from_model(_lesson_model(linked=[twin, twin]), default_rate=30)
    assert len(record.participants) == 1


def test_record_with_corrupt_duration_contributes_zero():
    record = LessonRecord.from_model(_lesson_model(student=_student(1, 50), duration="n/a"), default_rate=30)
    assert record.hours == 0
    assert compute_lesson_revenue(record).lesson_total == 0
