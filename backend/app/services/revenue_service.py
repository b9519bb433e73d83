"""Revenue query pipeline: fetch lessons, compute revenue, aggregate, render."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from backend.app.core.settings import get_settings
from backend.app.core.time import utc_today
from backend.app.models.lesson import Lesson
from backend.app.models.lesson_student import LessonStudent
from backend.app.models.student import Student
from backend.app.models.user import User
from backend.app.schemas.revenue import (
    ExportLesson,
    ExportStudent,
    LessonRevenueDetail,
    ReportPeriod,
    RevenueExport,
    RevenueOverview,
)
from backend.app.services.report_exporter import ReportFilters, RenderedReport, render_report
from backend.app.services.revenue_aggregator import AggregatedRevenue, Granularity, aggregate
from backend.app.services.revenue_calculator import LessonRecord, compute_revenues

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevenueQuery:
    """Immutable request context threaded through every pipeline stage."""

    tutor_id: int
    start_date: date
    end_date: date
    course_id: Optional[int] = None
    student_id: Optional[int] = None
    group_by: Granularity = Granularity.DAY
    today: date = field(default_factory=utc_today)


def fetch_lesson_records(db: Session, query: RevenueQuery) -> List[LessonRecord]:
    """Load the tutor's lessons in the window and convert them to canonical records."""
    lessons_q = (
        db.query(Lesson)
        .options(
            joinedload(Lesson.student),
            joinedload(Lesson.course),
            selectinload(Lesson.lesson_students).joinedload(LessonStudent.student),
        )
        .filter(
            Lesson.tutor_id == query.tutor_id,
            Lesson.date >= query.start_date,
            Lesson.date <= query.end_date,
        )
    )
    if query.course_id is not None:
        lessons_q = lessons_q.filter(Lesson.course_id == query.course_id)
    if query.student_id is not None:
        lessons_q = lessons_q.filter(
            or_(
                Lesson.student_id == query.student_id,
                Lesson.lesson_students.any(LessonStudent.student_id == query.student_id),
            )
        )

    default_rate = get_settings().default_hourly_rate
    lessons = lessons_q.order_by(Lesson.date.asc(), Lesson.id.asc()).all()
    return [LessonRecord.from_model(lesson, default_rate) for lesson in lessons]


def compute_revenue_report(db: Session, query: RevenueQuery) -> AggregatedRevenue:
    records = fetch_lesson_records(db, query)
    revenues = compute_revenues(records, student_id=query.student_id)
    report = aggregate(revenues, query.group_by, query.start_date, query.end_date, query.today)
    logger.info(
        "Revenue computed for tutor %s (%s to %s): %d lesson(s)",
        query.tutor_id,
        query.start_date,
        query.end_date,
        report.summary.lesson_count,
    )
    return report


def get_revenue_overview(db: Session, query: RevenueQuery) -> RevenueOverview:
    report = compute_revenue_report(db, query)
    summary = report.summary
    return RevenueOverview(
        total_revenue=summary.total_revenue,
        average_hourly_rate=summary.average_hourly_rate,
        lessons_completed=summary.lessons_completed,
        completed_revenue=summary.completed_revenue,
        projected_revenue=summary.projected_revenue,
        total_hours=summary.total_hours,
        billed_hours=summary.billed_hours,
        lesson_count=summary.lesson_count,
        group_by=report.granularity.value,
        period=ReportPeriod(start_date=report.start_date, end_date=report.end_date),
        revenue_by_period=report.buckets,
        lesson_details=[LessonRevenueDetail.model_validate(r.to_detail()) for r in report.lesson_details],
    )


def get_revenue_export(db: Session, query: RevenueQuery) -> RevenueExport:
    """Flat lesson list used by the export screen before a PDF is requested."""
    report = compute_revenue_report(db, query)
    lessons = []
    for revenue in report.lesson_details:
        student = revenue.representative
        lessons.append(
            ExportLesson(
                id=revenue.lesson.id,
                date=revenue.lesson.date,
                duration=revenue.lesson.duration,
                title=revenue.lesson.title,
                student=ExportStudent(first_name=student.first_name, last_name=student.last_name),
                price=revenue.lesson_total,
                course_title=revenue.lesson.course_title,
            )
        )
    return RevenueExport(
        revenue_total=report.summary.total_revenue,
        lessons=lessons,
        period=ReportPeriod(start_date=query.start_date, end_date=query.end_date),
    )


def get_tutor_display_name(db: Session, tutor_id: int) -> str:
    tutor = db.query(User).filter(User.id == tutor_id).first()
    return tutor.display_name if tutor else ""


def get_student_filter_name(db: Session, tutor_id: int, student_id: Optional[int]) -> Optional[str]:
    if student_id is None:
        return None
    student = db.query(Student).filter(Student.id == student_id, Student.tutor_id == tutor_id).first()
    return student.full_name if student else None


def generate_revenue_pdf(
    db: Session,
    query: RevenueQuery,
    generated_at: Optional[datetime] = None,
) -> RenderedReport:
    report = compute_revenue_report(db, query)
    filters = ReportFilters(
        tutor_name=get_tutor_display_name(db, query.tutor_id),
        student_name=get_student_filter_name(db, query.tutor_id, query.student_id),
    )
    rendered = render_report(
        report.summary,
        report.lesson_details,
        (query.start_date, query.end_date),
        filters,
        generated_at=generated_at,
    )
    logger.info(
        "Revenue PDF generated for tutor %s: %d page(s), %d bytes",
        query.tutor_id,
        rendered.page_count,
        len(rendered.content),
    )
    return rendered
