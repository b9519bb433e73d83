"""Revenue endpoints: dashboard figures, export listing and PDF report."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.orm import Session

from backend.app.core.time import utc_today
from backend.app.db.session import get_db
from backend.app.dependencies.auth import ensure_tutor_access, get_current_user, get_optional_user
from backend.app.models.user import User
from backend.app.schemas.revenue import (
    GeneratePdfRequest,
    GeneratePdfResponse,
    RevenueExport,
    RevenueOverview,
)
from backend.app.services.report_exporter import ReportRenderingError
from backend.app.services.revenue_aggregator import Granularity, default_group_by, resolve_date_range
from backend.app.services.revenue_service import (
    RevenueQuery,
    generate_revenue_pdf,
    get_revenue_export,
    get_revenue_overview,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/revenue", tags=["revenue"])


def _ensure_ordered(start_date: date, end_date: date, location: str) -> None:
    if start_date > end_date:
        raise RequestValidationError(
            [
                {
                    "loc": (location, "endDate"),
                    "msg": "endDate must be on or after startDate",
                    "type": "value_error",
                }
            ]
        )


def _parse_student_filter(value: str | None) -> int | None:
    if value is None or value in ("", "all"):
        return None
    try:
        return int(value)
    except ValueError:
        raise RequestValidationError(
            [{"loc": ("query", "studentId"), "msg": "studentId must be an integer or 'all'", "type": "int_parsing"}]
        )


@router.get("", response_model=RevenueOverview)
async def get_revenue(
    tutor_id: int = Query(..., alias="tutorId"),
    range_: Granularity = Query(default=Granularity.MONTH, alias="range"),
    group_by: Granularity | None = Query(default=None, alias="groupBy"),
    course_id: int | None = Query(default=None, alias="courseId"),
    student_id: str | None = Query(default=None, alias="studentId"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    if current_user is not None:
        ensure_tutor_access(current_user, tutor_id)
    if start_date and end_date:
        _ensure_ordered(start_date, end_date, "query")

    today = utc_today()
    window_start, window_end = resolve_date_range(range_, start_date, end_date, today)
    query = RevenueQuery(
        tutor_id=tutor_id,
        start_date=window_start,
        end_date=window_end,
        course_id=course_id,
        student_id=_parse_student_filter(student_id),
        group_by=group_by or default_group_by(range_),
        today=today,
    )
    return get_revenue_overview(db, query)


@router.get("/export", response_model=RevenueExport)
async def get_revenue_export_listing(
    tutor_id: int = Query(..., alias="tutorId"),
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    student_id: str | None = Query(default=None, alias="studentId"),
    db: Session = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    if current_user is not None:
        ensure_tutor_access(current_user, tutor_id)
    _ensure_ordered(start_date, end_date, "query")

    query = RevenueQuery(
        tutor_id=tutor_id,
        start_date=start_date,
        end_date=end_date,
        student_id=_parse_student_filter(student_id),
    )
    return get_revenue_export(db, query)


@router.post("/generate-pdf", response_model=GeneratePdfResponse)
async def generate_pdf(
    payload: GeneratePdfRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_tutor_access(current_user, payload.tutor_id)
    _ensure_ordered(payload.start_date, payload.end_date, "body")

    query = RevenueQuery(
        tutor_id=payload.tutor_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        student_id=payload.student_id,
    )
    try:
        rendered = generate_revenue_pdf(db, query)
    except ReportRenderingError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Erreur interne du serveur")

    return GeneratePdfResponse(success=True, pdf_data=rendered.data_uri(), filename=rendered.filename)
