import base64
import math
import re
from datetime import date, datetime, timedelta

import pytest

from backend.app.services import report_exporter
from backend.app.services.report_exporter import (
    FIRST_PAGE_ROWS,
    ROWS_PER_PAGE,
    ReportFilters,
    ReportRenderingError,
    calculation_label,
    format_currency,
    plan_pages,
    render_report,
    report_filename,
    truncate,
)
from backend.app.services.revenue_aggregator import Granularity, aggregate
from backend.app.services.revenue_calculator import LessonRecord, Participant, compute_revenues

ALICE = Participant(student_id=1, first_name="Alice", last_name="Martin", hourly_rate=40.0)
BOB = Participant(student_id=2, first_name="Bob", last_name="Durand", hourly_rate=20.0)
FILTERS = ReportFilters(tutor_name="Claire Dupont")
GENERATED_AT = datetime(2024, 4, 2, 9, 30)
PERIOD = (date(2024, 1, 1), date(2024, 3, 31))


def _aggregated(count):
    records = [
        LessonRecord(
            id=i,
            date=date(2024, 1, 1) + timedelta(days=i % 90),
            title=f"Leçon {i}",
            duration="1h30",
            hours=1.5,
            participants=(ALICE,),
        )
        for i in range(count)
    ]
    return aggregate(compute_revenues(records), Granularity.DAY, PERIOD[0], PERIOD[1], today=date(2024, 4, 2))


def _render(count, filters=FILTERS):
    report = _aggregated(count)
    return render_report(
        report.summary,
        report.lesson_details,
        PERIOD,
        filters,
        generated_at=GENERATED_AT,
        compress=False,
    )


def _page_objects(pdf: bytes) -> int:
    return len(re.findall(rb"/Type /Page(?!s)", pdf))


def test_plan_pages_fills_first_page_then_fixed_pages():
    assert plan_pages(0) == [(0, 0)]
    assert plan_pages(FIRST_PAGE_ROWS) == [(0, FIRST_PAGE_ROWS)]
    rows = FIRST_PAGE_ROWS + ROWS_PER_PAGE + 1
    assert plan_pages(rows) == [
        (0, FIRST_PAGE_ROWS),
        (FIRST_PAGE_ROWS, FIRST_PAGE_ROWS + ROWS_PER_PAGE),
        (FIRST_PAGE_ROWS + ROWS_PER_PAGE, rows),
    ]


@pytest.mark.parametrize("rows", [0, 1, 15, 16, 45, 46, 100])
def test_page_count_formula(rows):
    expected = 1 + math.ceil(max(0, rows - FIRST_PAGE_ROWS) / ROWS_PER_PAGE)
    assert len(plan_pages(rows)) == expected
    assert sum(stop - start for start, stop in plan_pages(rows)) == rows


def test_single_page_report():
    rendered = _render(3)
    assert rendered.content.startswith(b"%PDF")
    assert rendered.page_count == 1
    assert _page_objects(rendered.content) == 1
    assert b"Page 1 sur 1" in rendered.content
    assert b"Claire Dupont" in rendered.content


def test_long_report_paginates_and_numbers_every_page():
    rows = FIRST_PAGE_ROWS + ROWS_PER_PAGE + 1
    rendered = _render(rows)
    assert rendered.page_count == 3
    assert _page_objects(rendered.content) == 3
    for page in range(1, 4):
        assert f"Page {page} sur 3".encode() in rendered.content
    assert b"sur 2)" not in rendered.content


def test_empty_report_still_renders_document():
    rendered = _render(0)
    assert rendered.page_count == 1
    assert _page_objects(rendered.content) == 1
    assert b"Page 1 sur 1" in rendered.content


def test_student_filter_name_in_header():
    rendered = _render(1, ReportFilters(tutor_name="Claire Dupont", student_name="Bob Durand"))
    assert b"Bob Durand" in rendered.content


def test_filename_and_data_uri():
    rendered = _render(1)
    assert rendered.filename == "bilan_financier_01-01-2024_31-03-2024.pdf"
    uri = rendered.data_uri()
    assert uri.startswith("data:application/pdf;base64,")
    assert base64.b64decode(uri.split(",", 1)[1]) == rendered.content


def test_report_filename_format():
    assert report_filename(date(2024, 3, 1), date(2024, 3, 9)) == "bilan_financier_01-03-2024_09-03-2024.pdf"


def test_format_currency_french_style():
    assert format_currency(1234.5) == "1 234,50 €"
    assert format_currency(0) == "0,00 €"


def test_truncate_with_ellipsis():
    assert truncate("Court", 25) == "Court"
    assert truncate("Préparation intensive au baccalauréat", 25) == "Préparation intensive ..."
    assert len(truncate("x" * 40, 25)) == 25


def test_calculation_label_uses_combined_rate():
    record = LessonRecord(id=1, date=date(2024, 1, 1), title="T", duration="1h30", hours=1.5, participants=(ALICE, BOB))
    revenue = compute_revenues([record])[0]
    assert calculation_label(revenue) == "60 €/h × 1h30min"


def test_rendering_failure_is_wrapped(monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(report_exporter, "_draw_summary", explode)
    report = _aggregated(1)
    with pytest.raises(ReportRenderingError):
        render_report(report.summary, report.lesson_details, PERIOD, FILTERS, compress=False)
