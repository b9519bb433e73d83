"""Revenue report rendering (PDF) with reportlab.

The layout is fixed: A4 portrait, a coloured header band and summary block on
the first page, one table row per lesson, and a footer on every page carrying
"Page i sur N". Rows are assigned to pages before anything is drawn, and footers
are stamped once every page exists so that N is final.
"""

import base64
import logging
from dataclasses import dataclass
from datetime import date, datetime
from io import BytesIO
from typing import List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from backend.app.core.settings import get_settings
from backend.app.core.time import utc_now
from backend.app.services.duration import format_hours
from backend.app.services.revenue_aggregator import RevenueSummary
from backend.app.services.revenue_calculator import LessonRevenue

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
PAGE_HEIGHT_MM = 297
MARGIN_MM = 20
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN_MM * mm

HEADER_BAND_MM = 40
ROW_HEIGHT_MM = 8
FIRST_PAGE_TABLE_TOP_MM = 130
FIRST_PAGE_ROWS_TOP_MM = FIRST_PAGE_TABLE_TOP_MM + ROW_HEIGHT_MM
NEXT_PAGE_ROWS_TOP_MM = MARGIN_MM
BODY_BOTTOM_MM = 262

FIRST_PAGE_ROWS = int((BODY_BOTTOM_MM - FIRST_PAGE_ROWS_TOP_MM) // ROW_HEIGHT_MM)
ROWS_PER_PAGE = int((BODY_BOTTOM_MM - NEXT_PAGE_ROWS_TOP_MM) // ROW_HEIGHT_MM)

TITLE_MAX_CHARS = 25
STUDENT_MAX_CHARS = 22

PRIMARY_COLOR = colors.HexColor("#050f8b")
SECONDARY_COLOR = colors.HexColor("#dfb529")
TEXT_COLOR = colors.HexColor("#374151")
LIGHT_GRAY = colors.HexColor("#f3f4f6")
ROW_TINT = colors.HexColor("#f8fafc")
FOOTER_GRAY = colors.HexColor("#808080")

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

TABLE_HEADERS = ("Date", "Leçon", "Élève", "Durée", "Calcul", "Montant")
COLUMN_PROPORTIONS = (0.13, 0.25, 0.20, 0.11, 0.18, 0.13)
COLUMN_WIDTHS = tuple(CONTENT_WIDTH * p for p in COLUMN_PROPORTIONS)

EMPTY_BODY_MESSAGE = "Aucune leçon sur cette période."
LEGAL_LINES = (
    "Document établi à titre informatif à partir des leçons enregistrées ; il ne constitue pas une facture.",
    "Chaque élève est facturé sur la durée complète de la leçon, à son propre tarif horaire.",
)


class ReportRenderingError(Exception):
    """Raised when the PDF document cannot be produced."""


@dataclass(frozen=True)
class ReportFilters:
    tutor_name: str
    student_name: Optional[str] = None


@dataclass(frozen=True)
class RenderedReport:
    content: bytes
    filename: str
    page_count: int

    def data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:application/pdf;base64,{encoded}"


def format_currency(value: float) -> str:
    """Format an amount the French way, e.g. ``1 234,56 €``."""
    text = f"{value:,.2f}".replace(",", " ").replace(".", ",")
    return f"{text} €"


def format_rate(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value)} €"
    return format_currency(value)


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3] + "..."


def report_filename(start_date: date, end_date: date) -> str:
    return f"bilan_financier_{start_date.strftime('%d-%m-%Y')}_{end_date.strftime('%d-%m-%Y')}.pdf"


def plan_pages(row_count: int) -> List[Tuple[int, int]]:
    """Split ``row_count`` table rows into ``(start, stop)`` slices, one per page.

    The first page holds FIRST_PAGE_ROWS rows below the header and summary; later
    pages hold ROWS_PER_PAGE. The page count is therefore
    ``1 + ceil(max(0, row_count - FIRST_PAGE_ROWS) / ROWS_PER_PAGE)``, not a plain
    ``ceil(row_count / ROWS_PER_PAGE)``.
    """
    pages = [(0, min(row_count, FIRST_PAGE_ROWS))]
    cursor = pages[0][1]
    while cursor < row_count:
        stop = min(row_count, cursor + ROWS_PER_PAGE)
        pages.append((cursor, stop))
        cursor = stop
    return pages


def calculation_label(revenue: LessonRevenue) -> str:
    rate = sum(c.hourly_rate for c in revenue.per_student)
    return f"{format_rate(rate)}/h × {format_hours(revenue.lesson.hours)}"


def _y(top_mm: float) -> float:
    return PAGE_HEIGHT - top_mm * mm


def _fit(text: str, font: str, size: float, width: float) -> str:
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


class _Footer:
    def __init__(self, tutor_name: str, generated_on: str):
        self.tutor_name = tutor_name
        self.generated_on = generated_on

    def __call__(self, c: canvas.Canvas, page_number: int, page_count: int) -> None:
        left = MARGIN_MM * mm
        right = PAGE_WIDTH - MARGIN_MM * mm
        c.saveState()
        c.setStrokeColor(LIGHT_GRAY)
        c.line(left, _y(272), right, _y(272))
        c.setFillColor(FOOTER_GRAY)
        c.setFont(FONT, 8)
        c.drawString(left, _y(277), self.tutor_name)
        c.drawCentredString(PAGE_WIDTH / 2, _y(277), f"Page {page_number} sur {page_count}")
        c.drawRightString(right, _y(277), f"Généré le {self.generated_on}")
        c.setFont(FONT, 7)
        for offset, line in enumerate(LEGAL_LINES):
            c.drawCentredString(PAGE_WIDTH / 2, _y(283 + 4 * offset), line)
        c.restoreState()


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers footers until the total page count is known."""

    def __init__(self, *args, footer: _Footer, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []
        self._footer = footer

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._footer(self, self._pageNumber, page_count)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)


def _draw_header(c: canvas.Canvas, period: Tuple[date, date], filters: ReportFilters, generated_at: datetime) -> None:
    app_name = get_settings().app_name
    c.setFillColor(PRIMARY_COLOR)
    c.rect(0, _y(HEADER_BAND_MM), PAGE_WIDTH, HEADER_BAND_MM * mm, stroke=0, fill=1)

    c.setFillColor(colors.white)
    c.setFont(FONT_BOLD, 24)
    c.drawString(MARGIN_MM * mm, _y(25), app_name)
    c.setFont(FONT, 14)
    c.drawString(MARGIN_MM * mm, _y(35), "Rapport financier")

    c.setFillColor(TEXT_COLOR)
    c.setFont(FONT_BOLD, 12)
    c.drawString(MARGIN_MM * mm, _y(50), "Période sélectionnée :")
    c.setFont(FONT, 12)
    c.drawString(MARGIN_MM * mm, _y(58), f"Du {format_date(period[0])} au {format_date(period[1])}")
    c.drawString(MARGIN_MM * mm, _y(66), f"Rapport généré le : {generated_at.strftime('%d/%m/%Y à %H:%M')}")
    c.drawString(MARGIN_MM * mm, _y(74), f"Tuteur : {filters.tutor_name}")
    if filters.student_name:
        c.setFont(FONT_BOLD, 12)
        c.drawString(MARGIN_MM * mm, _y(82), f"Étudiant(s) : {filters.student_name}")


def _draw_summary(c: canvas.Canvas, summary: RevenueSummary) -> None:
    left = MARGIN_MM * mm
    c.setFillColor(LIGHT_GRAY)
    c.rect(left, _y(115), CONTENT_WIDTH, 27 * mm, stroke=0, fill=1)

    c.setFillColor(PRIMARY_COLOR)
    c.setFont(FONT_BOLD, 16)
    c.drawString(left + 5 * mm, _y(96), "Résumé")
    c.setFont(FONT, 12)
    c.drawString(left + 5 * mm, _y(103), f"Revenu total : {format_currency(summary.total_revenue)}")
    c.drawString(left + 5 * mm, _y(108), f"Nombre de leçons : {summary.lesson_count}")
    c.drawString(
        left + 5 * mm,
        _y(113),
        f"Revenu moyen par leçon : {format_currency(summary.average_revenue_per_lesson)}",
    )

    c.setFont(FONT_BOLD, 14)
    c.drawString(left, _y(125), "Détail des leçons")


def _draw_table_header(c: canvas.Canvas) -> None:
    left = MARGIN_MM * mm
    c.setFillColor(SECONDARY_COLOR)
    c.rect(left, _y(FIRST_PAGE_TABLE_TOP_MM + ROW_HEIGHT_MM), CONTENT_WIDTH, ROW_HEIGHT_MM * mm, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont(FONT_BOLD, 10)
    x = left
    for header, width in zip(TABLE_HEADERS, COLUMN_WIDTHS):
        c.drawString(x + 2 * mm, _y(FIRST_PAGE_TABLE_TOP_MM + 5.5), header)
        x += width


def _draw_row(c: canvas.Canvas, revenue: LessonRevenue, index: int, top_mm: float) -> None:
    left = MARGIN_MM * mm
    if index % 2 == 0:
        c.setFillColor(ROW_TINT)
        c.rect(left, _y(top_mm + ROW_HEIGHT_MM), CONTENT_WIDTH, ROW_HEIGHT_MM * mm, stroke=0, fill=1)

    c.setFillColor(TEXT_COLOR)
    c.setFont(FONT, 8)
    baseline = _y(top_mm + 5.5)
    pad = 2 * mm
    cells = (
        format_date(revenue.lesson.date),
        truncate(revenue.lesson.title, TITLE_MAX_CHARS),
        truncate(revenue.representative.full_name, STUDENT_MAX_CHARS),
        format_hours(revenue.lesson.hours),
        calculation_label(revenue),
    )
    x = left
    for text, width in zip(cells, COLUMN_WIDTHS):
        c.drawString(x + pad, baseline, _fit(text, FONT, 8, width - 2 * pad))
        x += width
    c.drawRightString(left + CONTENT_WIDTH - pad, baseline, format_currency(revenue.lesson_total))


def render_report(
    summary: RevenueSummary,
    lesson_details: Sequence[LessonRevenue],
    period: Tuple[date, date],
    filters: ReportFilters,
    generated_at: Optional[datetime] = None,
    compress: Optional[bool] = None,
) -> RenderedReport:
    """Render the revenue report and return the PDF bytes with a suggested filename."""
    generated_at = generated_at or utc_now()
    if compress is None:
        compress = get_settings().pdf_compression
    pages = plan_pages(len(lesson_details))

    buffer = BytesIO()
    try:
        c = _NumberedCanvas(
            buffer,
            pagesize=A4,
            pageCompression=1 if compress else 0,
            footer=_Footer(filters.tutor_name, format_date(generated_at.date())),
        )
        c.setTitle("Bilan financier")
        c.setAuthor(get_settings().app_name)

        for page_index, (start, stop) in enumerate(pages):
            if page_index == 0:
                _draw_header(c, period, filters, generated_at)
                _draw_summary(c, summary)
                _draw_table_header(c)
                rows_top = FIRST_PAGE_ROWS_TOP_MM
                if not lesson_details:
                    c.setFillColor(TEXT_COLOR)
                    c.setFont(FONT, 10)
                    c.drawString(MARGIN_MM * mm + 2 * mm, _y(rows_top + 5.5), EMPTY_BODY_MESSAGE)
            else:
                rows_top = NEXT_PAGE_ROWS_TOP_MM
            for offset, index in enumerate(range(start, stop)):
                _draw_row(c, lesson_details[index], index, rows_top + offset * ROW_HEIGHT_MM)
            c.showPage()
        c.save()
    except Exception as exc:
        logger.exception("Revenue report rendering failed")
        raise ReportRenderingError("Unable to render revenue report") from exc

    content = buffer.getvalue()
    buffer.close()
    return RenderedReport(
        content=content,
        filename=report_filename(period[0], period[1]),
        page_count=len(pages),
    )
