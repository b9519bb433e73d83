"""Revenue reporting schemas (camelCase on the wire)."""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StudentContribution(CamelModel):
    id: int
    first_name: str
    last_name: str
    hourly_rate: float
    contribution: float


class LessonRevenueDetail(CamelModel):
    id: int
    date: date
    title: str
    duration: str
    hours: float
    course_title: str
    revenue: float
    students: List[StudentContribution]


class ReportPeriod(CamelModel):
    start_date: date
    end_date: date


class RevenueOverview(CamelModel):
    total_revenue: float
    average_hourly_rate: float
    lessons_completed: int
    completed_revenue: float
    projected_revenue: float
    total_hours: float
    # Participant-hours; averageHourlyRate * billedHours == totalRevenue
    billed_hours: float
    lesson_count: int
    group_by: str
    period: ReportPeriod
    revenue_by_period: Dict[str, float]
    lesson_details: List[LessonRevenueDetail]


class ExportStudent(CamelModel):
    first_name: str
    last_name: str


class ExportLesson(CamelModel):
    id: int
    date: date
    duration: str
    title: str
    student: ExportStudent
    price: float
    course_title: Optional[str] = None


class RevenueExport(CamelModel):
    revenue_total: float
    lessons: List[ExportLesson]
    period: ReportPeriod


class GeneratePdfRequest(CamelModel):
    tutor_id: int
    start_date: date
    end_date: date
    student_id: Optional[int] = None

    @field_validator("student_id", mode="before")
    @classmethod
    def _all_students(cls, value):
        # The export screen sends "all" when no student is selected
        if value in ("", "all"):
            return None
        return value


class GeneratePdfResponse(CamelModel):
    success: bool
    pdf_data: str
    filename: str
