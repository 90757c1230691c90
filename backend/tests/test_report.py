from __future__ import annotations

import datetime as dt
import io
import re

import pytest
from openpyxl import load_workbook

from berichtsheft.report import (
    ActivityLine,
    ReportData,
    UserInfo,
    day_total,
    format_date,
    layout_report,
    month_label,
    parse_day_content,
    render_report_pdf,
    render_report_xlsx,
    rendered_day_indexes,
)
from berichtsheft.weeks import DayConfig, WeekdayConfig, WeekRecord

PAGE_MARKER = re.compile(rb"/Type /Page\b")


def _week(number: int, start: dt.date, activities, total: float = 40.0) -> WeekRecord:
    return WeekRecord(
        week_key=f"{start:%Y-%m}-W{number}",
        week_number=number,
        activities=tuple(activities),
        total_hours=total,
        start_date=start,
    )


def _report(weeks, config: WeekdayConfig = None) -> ReportData:
    start = weeks[0].start_date if weeks else dt.date(2024, 9, 2)
    end = weeks[-1].end_date if weeks else dt.date(2024, 9, 8)
    return ReportData(
        month=month_label(start),
        year=str(start.year),
        date_range=f"{format_date(start)} - {format_date(end)}",
        weeks=weeks,
        user_info=UserInfo(
            name="Lena Vogel",
            company="Ausbildungsbetrieb",
            department="EDV",
            profession="Fachinformatiker für Anwendungsentwicklung",
            training_year="1",
        ),
        weekday_config=config or WeekdayConfig.default(),
        start_date=start,
        end_date=end,
    )


def test_format_helpers():
    assert format_date(dt.date(2024, 3, 5)) == "05.03.2024"
    assert month_label(dt.date(2024, 3, 5)) == "März"


def test_parse_day_content_reads_hour_suffix():
    lines = parse_day_content("Server aufgesetzt (5h); Ticket 42 (2.5h); Lesen")
    assert lines == (
        ActivityLine("Server aufgesetzt", 5.0, True),
        ActivityLine("Ticket 42", 2.5, True),
        ActivityLine("Lesen", 0.0, False),
    )


@pytest.mark.parametrize("content", ["", "; ;", "Notiz (xh)", "(h)", "Klammer (3 Stunden)"])
def test_parse_day_content_tolerates_malformed_input(content):
    for line in parse_day_content(content):
        assert line.hours == 0.0
        assert not line.annotated


def test_day_total_prefers_annotated_hours():
    assert day_total(parse_day_content("A (3h); B (2h)"), 8.0) == 5.0
    assert day_total(parse_day_content("A; B"), 8.0) == 8.0
    assert day_total((), 8.0) == 0.0
    assert day_total(parse_day_content("Ferien (0h)"), 8.0) == 0.0


def test_rendered_day_indexes():
    workday = DayConfig(True, 8.0)
    off = DayConfig(False, 0.0)
    assert list(rendered_day_indexes(WeekdayConfig.default())) == [0, 1, 2, 3, 4]
    saturday = WeekdayConfig(workday, workday, workday, workday, workday, workday, off)
    assert list(rendered_day_indexes(saturday)) == [0, 1, 2, 3, 4, 5]
    sunday = WeekdayConfig(workday, workday, workday, workday, workday, off, workday)
    assert list(rendered_day_indexes(sunday)) == list(range(7))


def test_layout_numbers_pages_and_sums_days():
    weeks = [
        _week(1, dt.date(2024, 9, 2), ["Einführung (8h)", "Ferien (0h)", "", "Schule", "", "", ""]),
        _week(4, dt.date(2024, 9, 23), ["A (3h); B (5h)", "", "", "", "", "", ""]),
    ]
    pages = layout_report(_report(weeks))
    assert [page.number for page in pages] == [1, 2]

    first = pages[0]
    assert [row.name for row in first.rows] == ["Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag"]
    assert [row.total_hours for row in first.rows] == [8.0, 0.0, 0.0, 8.0, 0.0]
    assert first.total_hours == 16.0
    assert first.end_date == dt.date(2024, 9, 6)
    assert first.rows[3].date == dt.date(2024, 9, 5)

    assert pages[1].rows[0].lines[1] == ActivityLine("B", 5.0, True)
    assert pages[1].total_hours == 8.0


def test_render_pdf_has_one_page_per_week():
    weeks = [
        _week(1, dt.date(2024, 9, 2), ["Einführung (8h)", "", "", "", "", "", ""]),
        _week(2, dt.date(2024, 9, 9), ["Ferien (0h)", "Sehr lange Beschreibung " * 20, "", "", "", "", ""]),
        _week(3, dt.date(2024, 9, 16), ["Schule; Hausaufgaben; Projekt; Lernen; Review; Test", "", "", "", "", "", ""]),
    ]
    pdf = render_report_pdf(_report(weeks))
    assert pdf.startswith(b"%PDF")
    assert len(PAGE_MARKER.findall(pdf)) == 3


def test_render_pdf_without_weeks_is_a_blank_document():
    pdf = render_report_pdf(_report([]))
    assert pdf.startswith(b"%PDF")
    assert len(PAGE_MARKER.findall(pdf)) == 1


def test_render_xlsx_lists_activities():
    weeks = [_week(1, dt.date(2024, 9, 2), ["A (3h); B (5h)", "Schule", "", "", "", "", ""])]
    content = render_report_xlsx(_report(weeks))
    ws = load_workbook(io.BytesIO(content)).active
    assert ws.title == "Berichtsheft"
    assert ws["A1"].value == "Berichtsheft Lena Vogel"
    assert [cell.value for cell in ws[2]] == ["Nr.", "Woche", "Datum", "Tag", "Tätigkeit", "Stunden", "Gesamtstunden"]
    rows = [[cell.value for cell in row] for row in ws.iter_rows(min_row=3)]
    assert rows[0] == [1, "2024-09-W1", "02.09.2024", "Montag", "A", 3, 8]
    assert rows[1] == [1, "2024-09-W1", "02.09.2024", "Montag", "B", 5, None]
    assert rows[2][4] == "Schule"
    assert rows[2][6] == 8
    assert rows[-1] == [None, None, None, None, "Gesamt", None, 16]
