"""Per-lesson revenue computation.

Every participant of a lesson is billed the full lesson duration at their own
hourly rate; the lesson total is the sum of those contributions. Corrupt or
legacy records degrade to safe defaults instead of raising.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional, Tuple

from backend.app.services.duration import parse_duration_to_hours

DEFAULT_COURSE_TITLE = "Cours non spécifié"
PLACEHOLDER_FIRST_NAME = "Inconnu"
PLACEHOLDER_LAST_NAME = "Élève"


def coerce_hourly_rate(value, default: float) -> float:
    """Return a usable positive hourly rate, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return float(default)
    try:
        rate = float(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return float(default)
    if not math.isfinite(rate) or rate <= 0:
        return float(default)
    return rate


@dataclass(frozen=True)
class Participant:
    student_id: int
    first_name: str
    last_name: str
    hourly_rate: float

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


PLACEHOLDER_PARTICIPANT = Participant(
    student_id=0,
    first_name=PLACEHOLDER_FIRST_NAME,
    last_name=PLACEHOLDER_LAST_NAME,
    hourly_rate=0.0,
)


@dataclass(frozen=True)
class Contribution:
    student_id: int
    first_name: str
    last_name: str
    hourly_rate: float
    contribution: float

    def to_dict(self) -> dict:
        return {
            "id": self.student_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "hourlyRate": self.hourly_rate,
            "contribution": self.contribution,
        }


@dataclass(frozen=True)
class LessonRecord:
    """Canonical, read-only view of a lesson used by the revenue pipeline."""

    id: int
    date: date
    title: str
    duration: str
    hours: float
    course_id: Optional[int] = None
    course_title: str = DEFAULT_COURSE_TITLE
    participants: Tuple[Participant, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, lesson, default_rate: float) -> "LessonRecord":
        """Build a record from a Lesson row, resolving which participant list applies."""
        linked = [link.student for link in (lesson.lesson_students or []) if link.student is not None]
        students = linked if linked else [s for s in (lesson.student,) if s is not None]

        participants: List[Participant] = []
        seen = set()
        for student in students:
            if student.id in seen:
                continue
            seen.add(student.id)
            participants.append(
                Participant(
                    student_id=student.id,
                    first_name=student.first_name or "",
                    last_name=student.last_name or "",
                    hourly_rate=coerce_hourly_rate(student.hourly_rate, default_rate),
                )
            )

        course = getattr(lesson, "course", None)
        return cls(
            id=lesson.id,
            date=lesson.date,
            title=lesson.title or "",
            duration=lesson.duration or "",
            hours=parse_duration_to_hours(lesson.duration),
            course_id=lesson.course_id,
            course_title=(course.title if course is not None and course.title else DEFAULT_COURSE_TITLE),
            participants=tuple(participants),
        )


@dataclass(frozen=True)
class LessonRevenue:
    lesson: LessonRecord
    per_student: Tuple[Contribution, ...]
    lesson_total: float

    @property
    def is_empty(self) -> bool:
        return not self.per_student

    @property
    def billed_hours(self) -> float:
        return self.lesson.hours * len(self.per_student)

    @property
    def representative(self) -> Participant:
        if not self.per_student:
            return PLACEHOLDER_PARTICIPANT
        first = self.per_student[0]
        return Participant(first.student_id, first.first_name, first.last_name, first.hourly_rate)

    def to_detail(self) -> dict:
        return {
            "id": self.lesson.id,
            "date": self.lesson.date.isoformat(),
            "title": self.lesson.title,
            "duration": self.lesson.duration,
            "hours": self.lesson.hours,
            "courseTitle": self.lesson.course_title,
            "revenue": self.lesson_total,
            "students": [c.to_dict() for c in self.per_student],
        }


def compute_lesson_revenue(lesson: LessonRecord, student_id: Optional[int] = None) -> LessonRevenue:
    participants = lesson.participants
    if student_id is not None:
        participants = tuple(p for p in participants if p.student_id == student_id)

    contributions = tuple(
        Contribution(
            student_id=p.student_id,
            first_name=p.first_name,
            last_name=p.last_name,
            hourly_rate=p.hourly_rate,
            contribution=p.hourly_rate * lesson.hours,
        )
        for p in participants
    )
    total = sum((c.contribution for c in contributions), 0.0)
    return LessonRevenue(lesson=lesson, per_student=contributions, lesson_total=total)


def compute_revenues(lessons: Iterable[LessonRecord], student_id: Optional[int] = None) -> List[LessonRevenue]:
    """Compute revenue for each lesson, dropping lessons left without participants."""
    results = []
    for lesson in lessons:
        revenue = compute_lesson_revenue(lesson, student_id)
        if revenue.is_empty:
            continue
        results.append(revenue)
    results.sort(key=lambda r: (r.lesson.date, r.lesson.id))
    return results
