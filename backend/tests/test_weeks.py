from __future__ import annotations

import datetime as dt

import pytest

from berichtsheft.weeks import (
    DEFAULT_VACATION_MARKER,
    DatedContent,
    DayConfig,
    VacationPeriod,
    WeekdayConfig,
    build_weeks,
    first_monday_on_or_before,
    format_activity_content,
    group_entries,
    is_vacation_day,
    week_key,
)

TRAINING_START = dt.date(2024, 9, 4)  # Wednesday
FIRST_MONDAY = dt.date(2024, 9, 2)


@pytest.mark.parametrize(
    "day,expected",
    [
        (dt.date(2024, 9, 2), dt.date(2024, 9, 2)),
        (dt.date(2024, 9, 4), dt.date(2024, 9, 2)),
        (dt.date(2024, 9, 8), dt.date(2024, 9, 2)),
        (dt.datetime(2024, 9, 8, 23, 30), dt.date(2024, 9, 2)),
    ],
)
def test_first_monday_on_or_before(day, expected):
    assert first_monday_on_or_before(day) == expected


def test_vacation_check_ignores_time_of_day():
    periods = [VacationPeriod(dt.date(2024, 12, 23), dt.date(2024, 12, 27))]
    assert is_vacation_day(dt.datetime(2024, 12, 27, 18, 45), periods)
    assert is_vacation_day(dt.date(2024, 12, 23), periods)
    assert not is_vacation_day(dt.date(2024, 12, 28), periods)
    assert not is_vacation_day(dt.date(2024, 12, 23), [])


def test_format_activity_content():
    content = format_activity_content([("Server aufgesetzt", 5.0), ("Ticket 42", 2.5), ("Pause", 0.0), ("Lesen", None)])
    assert content == "Server aufgesetzt (5h); Ticket 42 (2.5h); Pause; Lesen"
    assert format_activity_content([]) == ""


def test_week_key_uses_month_of_week_start():
    assert week_key(dt.date(2024, 9, 30), 5) == "2024-09-W5"


def test_single_entry_builds_one_week():
    entries = [DatedContent(dt.date(2024, 9, 4), "Einführung (8h)")]
    weeks = build_weeks(entries, [], WeekdayConfig.default(), TRAINING_START)
    assert len(weeks) == 1
    week = weeks[0]
    assert week.week_key == "2024-09-W1"
    assert week.week_number == 1
    assert week.start_date == FIRST_MONDAY
    assert week.end_date == dt.date(2024, 9, 8)
    assert week.activities == ("", "", "Einführung (8h)", "", "", "", "")
    assert week.total_hours == 40


def test_vacation_day_is_marked_and_not_counted():
    entries = [
        DatedContent(dt.date(2024, 9, 9), "Soll nicht erscheinen (8h)"),
        DatedContent(dt.date(2024, 9, 10), "Projektarbeit (8h)"),
    ]
    vacations = [VacationPeriod(dt.date(2024, 9, 9), dt.date(2024, 9, 9), "Brückentag")]
    weeks = build_weeks(entries, vacations, WeekdayConfig.default(), TRAINING_START)
    assert len(weeks) == 1
    assert weeks[0].week_key == "2024-09-W2"
    assert weeks[0].activities[0] == DEFAULT_VACATION_MARKER
    assert weeks[0].activities[1] == "Projektarbeit (8h)"
    assert weeks[0].total_hours == 32


def test_vacation_on_disabled_day_still_shows_marker():
    entries = [DatedContent(dt.date(2024, 9, 13), "Freitag (8h)")]
    vacations = [VacationPeriod(dt.date(2024, 9, 14), dt.date(2024, 9, 15))]
    weeks = build_weeks(entries, vacations, WeekdayConfig.default(), TRAINING_START, vacation_marker="Urlaub (0h)")
    assert weeks[0].activities[5:] == ("Urlaub (0h)", "Urlaub (0h)")


def test_disabled_weekday_ignores_stale_entry():
    workday = DayConfig(True, 8.0)
    off = DayConfig(False, 0.0)
    config = WeekdayConfig(workday, workday, off, workday, workday, off, off)
    entries = [
        DatedContent(dt.date(2024, 9, 11), "Alter Eintrag (8h)"),
        DatedContent(dt.date(2024, 9, 12), "Schule (8h)"),
    ]
    weeks = build_weeks(entries, [], config, TRAINING_START)
    assert weeks[0].activities[2] == ""
    assert weeks[0].activities[3] == "Schule (8h)"
    assert weeks[0].total_hours == 32


def test_configured_hours_per_day_are_summed():
    config = WeekdayConfig(
        DayConfig(True, 8.0),
        DayConfig(True, 8.0),
        DayConfig(True, 6.0),
        DayConfig(True, 8.0),
        DayConfig(True, 4.5),
        DayConfig(True, 3.0),
        DayConfig(False, 0.0),
    )
    weeks = build_weeks([DatedContent(dt.date(2024, 9, 2), "A (8h)")], [], config, TRAINING_START)
    assert weeks[0].total_hours == 37.5


def test_weeks_without_entries_are_omitted():
    entries = [
        DatedContent(dt.date(2024, 9, 3), "A (8h)"),
        DatedContent(dt.date(2024, 9, 24), "B (8h)"),
    ]
    weeks = build_weeks(entries, [], WeekdayConfig.default(), TRAINING_START)
    assert [week.week_number for week in weeks] == [1, 4]
    assert [week.week_key for week in weeks] == ["2024-09-W1", "2024-09-W4"]


def test_weeks_are_sorted_chronologically():
    entries = [
        DatedContent(dt.date(2024, 11, 4), "Woche 10 (8h)"),
        DatedContent(dt.date(2024, 10, 28), "Woche 9 (8h)"),
        DatedContent(dt.date(2024, 9, 2), "Woche 1 (8h)"),
    ]
    weeks = build_weeks(entries, [], WeekdayConfig.default(), TRAINING_START)
    assert [week.week_number for week in weeks] == [1, 9, 10]
    assert weeks[-1].week_key == "2024-11-W10"


def test_entries_before_first_monday_are_dropped():
    entries = [
        DatedContent(dt.date(2024, 8, 30), "Vorher (8h)"),
        DatedContent(dt.date(2024, 9, 2), "Start (8h)"),
    ]
    weeks = build_weeks(entries, [], WeekdayConfig.default(), TRAINING_START)
    assert len(weeks) == 1
    assert weeks[0].activities[0] == "Start (8h)"


def test_later_entry_for_same_day_wins():
    entries = [
        DatedContent(dt.date(2024, 9, 2), "Erst (8h)"),
        DatedContent(dt.date(2024, 9, 2), "Dann (8h)"),
    ]
    grouped = group_entries(entries, FIRST_MONDAY)
    assert grouped[(1, FIRST_MONDAY)][0] == "Dann (8h)"


def test_build_weeks_is_deterministic():
    entries = [DatedContent(dt.date(2024, 9, 2) + dt.timedelta(days=offset), f"Tag {offset} (8h)") for offset in range(30)]
    vacations = [VacationPeriod(dt.date(2024, 9, 16), dt.date(2024, 9, 20))]
    first = build_weeks(entries, vacations, WeekdayConfig.default(), TRAINING_START)
    second = build_weeks(list(reversed(entries)), vacations, WeekdayConfig.default(), TRAINING_START)
    assert first == second


def test_overlapping_vacations_act_as_union():
    vacations = [
        VacationPeriod(dt.date(2024, 9, 9), dt.date(2024, 9, 11), "Urlaub"),
        VacationPeriod(dt.date(2024, 9, 10), dt.date(2024, 9, 12), "Seminar"),
    ]
    entries = [DatedContent(dt.date(2024, 9, 13), "Rückkehr (8h)")]
    weeks = build_weeks(entries, vacations, WeekdayConfig.default(), TRAINING_START)
    assert weeks[0].activities[:5] == (DEFAULT_VACATION_MARKER,) * 4 + ("Rückkehr (8h)",)
    assert weeks[0].total_hours == 8
