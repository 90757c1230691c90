from __future__ import annotations

import datetime as dt
import io
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from .weeks import CONTENT_SEPARATOR, WeekRecord, WeekdayConfig, format_hours

DAY_NAMES = ("Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag")

MONTH_NAMES = (
    "Januar",
    "Februar",
    "März",
    "April",
    "Mai",
    "Juni",
    "Juli",
    "August",
    "September",
    "Oktober",
    "November",
    "Dezember",
)

HOURS_SUFFIX_PATTERN = re.compile(r"\s*\((\d+(?:\.\d+)?)\s*h\)\s*$")

# Page geometry in millimetres, measured from the top-left corner.
MARGIN_LEFT = 20.0
MARGIN_RIGHT = 190.0
TABLE_TOP = 50.0
HEADER_HEIGHT = 15.0
ROW_HEIGHT = 20.0
TOTAL_ROW_HEIGHT = 12.0
LINE_SPACING = 4.0
TABLE_WIDTH = 170.0
COL_DAY = 25.0
COL_INDIVIDUAL_HOURS = 20.0
COL_TOTAL_HOURS = 25.0
COL_ACTIVITIES = TABLE_WIDTH - COL_DAY - COL_INDIVIDUAL_HOURS - COL_TOTAL_HOURS

PAGE_WIDTH, PAGE_HEIGHT = A4


@dataclass(frozen=True, slots=True)
class UserInfo:
    name: str
    company: str
    department: str
    profession: str
    training_year: str


@dataclass(frozen=True, slots=True)
class ReportData:
    month: str
    year: str
    date_range: str
    weeks: Sequence[WeekRecord]
    user_info: UserInfo
    weekday_config: WeekdayConfig
    start_date: dt.date
    end_date: dt.date


@dataclass(frozen=True, slots=True)
class ActivityLine:
    text: str
    hours: float
    annotated: bool


@dataclass(frozen=True, slots=True)
class DayRow:
    name: str
    date: dt.date
    lines: Tuple[ActivityLine, ...]
    total_hours: float


@dataclass(frozen=True, slots=True)
class WeekPage:
    number: int
    trainee: str
    training_year: str
    start_date: dt.date
    end_date: dt.date
    rows: Tuple[DayRow, ...]
    total_hours: float


def format_date(value: dt.date) -> str:
    return value.strftime("%d.%m.%Y")


def month_label(value: dt.date) -> str:
    return MONTH_NAMES[value.month - 1]


def parse_activity(segment: str) -> ActivityLine:
    match = HOURS_SUFFIX_PATTERN.search(segment)
    if not match:
        return ActivityLine(text=segment.strip(), hours=0.0, annotated=False)
    return ActivityLine(text=segment[: match.start()].strip(), hours=float(match.group(1)), annotated=True)


def parse_day_content(content: str) -> Tuple[ActivityLine, ...]:
    """Split a stored day string back into its activities."""
    if not content:
        return ()
    segments = [segment for segment in content.split(CONTENT_SEPARATOR) if segment.strip()]
    return tuple(parse_activity(segment) for segment in segments)


def day_total(lines: Sequence[ActivityLine], configured_hours: float) -> float:
    if any(line.annotated for line in lines):
        return sum(line.hours for line in lines)
    if lines:
        return configured_hours
    return 0.0


def rendered_day_indexes(config: WeekdayConfig) -> range:
    """Monday to Friday, extended to Saturday or Sunday when the weekend is worked."""
    if config.sunday.enabled:
        return range(7)
    if config.saturday.enabled:
        return range(6)
    return range(5)


def layout_week(report: ReportData, week: WeekRecord, number: int) -> WeekPage:
    day_indexes = rendered_day_indexes(report.weekday_config)
    rows: List[DayRow] = []
    for day_index in day_indexes:
        content = week.activities[day_index] if day_index < len(week.activities) else ""
        lines = parse_day_content(content)
        configured = report.weekday_config.for_index(day_index).hours
        rows.append(
            DayRow(
                name=DAY_NAMES[day_index],
                date=week.day_date(day_index),
                lines=lines,
                total_hours=day_total(lines, configured),
            )
        )
    return WeekPage(
        number=number,
        trainee=report.user_info.name,
        training_year=report.user_info.training_year,
        start_date=week.start_date,
        end_date=week.day_date(day_indexes[-1]),
        rows=tuple(rows),
        total_hours=sum(row.total_hours for row in rows),
    )


def layout_report(report: ReportData) -> List[WeekPage]:
    return [layout_week(report, week, index + 1) for index, week in enumerate(report.weeks)]


def _x(value: float) -> float:
    return value * mm


def _y(value: float) -> float:
    return PAGE_HEIGHT - value * mm


def _box(pdf: canvas.Canvas, left: float, top: float, width: float, height: float, fill: bool = False) -> None:
    pdf.rect(_x(left), _y(top + height), width * mm, height * mm, stroke=1, fill=1 if fill else 0)


def _draw_header(pdf: canvas.Canvas, page: WeekPage) -> None:
    pdf.setFont("Helvetica-Bold", 16)
    pdf.drawString(_x(MARGIN_LEFT), _y(25), "Ausbildungsnachweis Nr. ")
    pdf.setFontSize(14)
    pdf.drawString(_x(120), _y(25), str(page.number))
    pdf.setFontSize(12)
    pdf.drawRightString(_x(MARGIN_RIGHT), _y(25), page.trainee)

    pdf.setFont("Helvetica", 10)
    pdf.drawString(
        _x(MARGIN_LEFT),
        _y(35),
        f"Woche vom {format_date(page.start_date)} bis {format_date(page.end_date)}",
    )
    pdf.drawRightString(_x(MARGIN_RIGHT), _y(35), f"Ausbildungsjahr: {page.training_year}")


def _draw_table_head(pdf: canvas.Canvas) -> None:
    pdf.setFillColorRGB(240 / 255, 240 / 255, 240 / 255)
    pdf.rect(_x(MARGIN_LEFT), _y(TABLE_TOP + HEADER_HEIGHT), TABLE_WIDTH * mm, HEADER_HEIGHT * mm, stroke=0, fill=1)
    pdf.setFillColorRGB(0, 0, 0)

    left = MARGIN_LEFT
    for width in (COL_DAY, COL_ACTIVITIES, COL_INDIVIDUAL_HOURS, COL_TOTAL_HOURS):
        _box(pdf, left, TABLE_TOP, width, HEADER_HEIGHT)
        left += width

    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawString(_x(22), _y(TABLE_TOP + 10), "Tag")
    pdf.drawString(_x(50), _y(TABLE_TOP + 10), "Ausgeführte Arbeiten, Unterricht, Unterweisungen, etc.")
    pdf.drawCentredString(_x(155), _y(TABLE_TOP + 10), "Stunden")
    pdf.drawString(_x(170), _y(TABLE_TOP + 6), "Gesamt-")
    pdf.drawString(_x(170), _y(TABLE_TOP + 10), "stunden")


def _draw_day_row(pdf: canvas.Canvas, row: DayRow, top: float) -> None:
    left = MARGIN_LEFT
    _box(pdf, left, top, COL_DAY, ROW_HEIGHT)
    pdf.setFont("Helvetica", 9)
    pdf.drawString(_x(left + 2), _y(top + 7), row.name)
    pdf.setFontSize(8)
    pdf.drawString(_x(left + 2), _y(top + 13), format_date(row.date))
    pdf.setFontSize(9)

    left += COL_DAY
    _box(pdf, left, top, COL_ACTIVITIES, ROW_HEIGHT)
    hours_left = left + COL_ACTIVITIES
    _box(pdf, hours_left, top, COL_INDIVIDUAL_HOURS, ROW_HEIGHT)

    text_top = top + 6
    for line in row.lines:
        wrapped = simpleSplit(line.text, "Helvetica", 9, (COL_ACTIVITIES - 4) * mm)
        if text_top >= top + ROW_HEIGHT - 2 or not wrapped:
            continue
        pdf.drawString(_x(left + 2), _y(text_top), wrapped[0])
        if line.hours > 0:
            pdf.drawCentredString(_x(hours_left + 10), _y(text_top), format_hours(line.hours))
        text_top += LINE_SPACING

    total_left = hours_left + COL_INDIVIDUAL_HOURS
    _box(pdf, total_left, top, COL_TOTAL_HOURS, ROW_HEIGHT)
    if row.total_hours > 0:
        pdf.drawCentredString(_x(total_left + 12), _y(top + 12), format_hours(row.total_hours))


def _draw_footer(pdf: canvas.Canvas, page: WeekPage, top: float) -> None:
    left = MARGIN_LEFT + COL_DAY + COL_ACTIVITIES
    pdf.setFont("Helvetica-Bold", 9)
    _box(pdf, left, top, COL_INDIVIDUAL_HOURS, TOTAL_ROW_HEIGHT)
    _box(pdf, left + COL_INDIVIDUAL_HOURS, top, COL_TOTAL_HOURS, TOTAL_ROW_HEIGHT)
    pdf.drawString(_x(left + 2), _y(top + 8), "Gesamt:")
    pdf.drawCentredString(_x(left + COL_INDIVIDUAL_HOURS + 12), _y(top + 8), format_hours(page.total_hours))

    remarks_top = top + 20
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(_x(MARGIN_LEFT), _y(remarks_top), "Besondere Bemerkungen:")
    pdf.setFont("Helvetica", 10)
    remarks_width = (TABLE_WIDTH - 10) / 2
    pdf.drawString(_x(MARGIN_LEFT), _y(remarks_top + 12), "Auszubildender:")
    _box(pdf, MARGIN_LEFT, remarks_top + 15, remarks_width, 20)
    pdf.drawString(_x(MARGIN_LEFT + remarks_width + 10), _y(remarks_top + 12), "Ausbilder:")
    _box(pdf, MARGIN_LEFT + remarks_width + 10, remarks_top + 15, remarks_width, 20)

    signature_top = remarks_top + 45
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(_x(MARGIN_LEFT), _y(signature_top), "Für die Richtigkeit:")
    signature_width = (TABLE_WIDTH - 20) / 2
    pdf.line(_x(MARGIN_LEFT), _y(signature_top + 15), _x(MARGIN_LEFT + signature_width - 10), _y(signature_top + 15))
    pdf.line(_x(MARGIN_LEFT + signature_width + 10), _y(signature_top + 15), _x(MARGIN_RIGHT), _y(signature_top + 15))
    pdf.setFont("Helvetica", 9)
    pdf.drawString(_x(MARGIN_LEFT), _y(signature_top + 22), "Auszubildender")
    pdf.drawString(_x(MARGIN_LEFT + signature_width + 10), _y(signature_top + 22), "Ausbilder")


def _draw_week_page(pdf: canvas.Canvas, page: WeekPage) -> None:
    _draw_header(pdf, page)
    _draw_table_head(pdf)
    top = TABLE_TOP + HEADER_HEIGHT
    for row in page.rows:
        _draw_day_row(pdf, row, top)
        top += ROW_HEIGHT
    _draw_footer(pdf, page, top)


def render_report_pdf(report: ReportData) -> bytes:
    """Render one A4 page per week and return the PDF document."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(f"Berichtsheft {report.date_range}")
    pdf.setAuthor(report.user_info.name)
    pdf.setSubject(f"{report.user_info.profession} - {report.month} {report.year}")
    pages = layout_report(report)
    for page in pages:
        _draw_week_page(pdf, page)
        pdf.showPage()
    if not pages:
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def render_report_xlsx(report: ReportData) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Berichtsheft"
    ws.append([f"Berichtsheft {report.user_info.name}", report.date_range])
    ws["A1"].font = Font(bold=True)
    ws.append(["Nr.", "Woche", "Datum", "Tag", "Tätigkeit", "Stunden", "Gesamtstunden"])
    for cell in ws[2]:
        cell.font = Font(bold=True)
    for page, week in zip(layout_report(report), report.weeks):
        for row in page.rows:
            lines = row.lines or (ActivityLine(text="", hours=0.0, annotated=False),)
            for position, line in enumerate(lines):
                ws.append(
                    [
                        page.number,
                        week.week_key,
                        format_date(row.date),
                        row.name,
                        line.text,
                        line.hours if line.hours > 0 else None,
                        row.total_hours if position == 0 else None,
                    ]
                )
        ws.append([None, None, None, None, "Gesamt", None, page.total_hours])
        ws.cell(row=ws.max_row, column=5).font = Font(bold=True)
    for column, width in zip("ABCDEFG", (6, 14, 12, 12, 60, 10, 14)):
        ws.column_dimensions[column].width = width
    for row in ws.iter_rows(min_row=3, min_col=5, max_col=5):
        for cell in row:
            cell.alignment = Alignment(wrap_text=True, vertical="top")
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
