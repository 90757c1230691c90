"""Grouping of dated entries into report weeks.

Weeks are counted from the Monday on or before the training start: the week
containing that Monday is week 1. Each week carries seven Monday-indexed day
slots and the number of scheduled hours, which counts every enabled day that
is not covered by a vacation period whether or not something was logged.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

DEFAULT_VACATION_MARKER = "Ferien (0h)"
CONTENT_SEPARATOR = "; "

DateLike = Union[dt.date, dt.datetime]


@dataclass(frozen=True, slots=True)
class DayConfig:
    enabled: bool
    hours: float


@dataclass(frozen=True, slots=True)
class WeekdayConfig:
    monday: DayConfig
    tuesday: DayConfig
    wednesday: DayConfig
    thursday: DayConfig
    friday: DayConfig
    saturday: DayConfig
    sunday: DayConfig

    @classmethod
    def default(cls) -> "WeekdayConfig":
        workday = DayConfig(True, 8.0)
        weekend = DayConfig(False, 0.0)
        return cls(workday, workday, workday, workday, workday, weekend, weekend)

    @property
    def days(self) -> Tuple[DayConfig, ...]:
        return (
            self.monday,
            self.tuesday,
            self.wednesday,
            self.thursday,
            self.friday,
            self.saturday,
            self.sunday,
        )

    def for_index(self, day_index: int) -> DayConfig:
        """Config for a Monday-indexed weekday (0 = Monday … 6 = Sunday)."""
        return self.days[day_index]

    def for_date(self, day: dt.date) -> DayConfig:
        return self.for_index(day.weekday())


@dataclass(frozen=True, slots=True)
class VacationPeriod:
    start_date: dt.date
    end_date: dt.date
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DatedContent:
    date: dt.date
    content: str


@dataclass(frozen=True, slots=True)
class WeekRecord:
    week_key: str
    week_number: int
    activities: Tuple[str, ...]
    total_hours: float
    start_date: dt.date

    @property
    def end_date(self) -> dt.date:
        return self.start_date + dt.timedelta(days=6)

    def day_date(self, day_index: int) -> dt.date:
        return self.start_date + dt.timedelta(days=day_index)


def _as_date(value: DateLike) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    return value


def first_monday_on_or_before(day: DateLike) -> dt.date:
    day = _as_date(day)
    return day - dt.timedelta(days=day.weekday())


def is_vacation_day(day: DateLike, periods: Iterable[VacationPeriod]) -> bool:
    day = _as_date(day)
    return any(_as_date(period.start_date) <= day <= _as_date(period.end_date) for period in periods)


def format_hours(value: float) -> str:
    return f"{value:g}"


def format_activity_content(activities: Iterable[Tuple[str, Optional[float]]]) -> str:
    """Join ``(description, duration)`` pairs into a day's content string.

    A zero or missing duration is written without the ``(…h)`` suffix.
    """
    parts: List[str] = []
    for description, duration in activities:
        if duration:
            parts.append(f"{description} ({format_hours(duration)}h)")
        else:
            parts.append(description)
    return CONTENT_SEPARATOR.join(parts)


def week_key(week_start: dt.date, week_number: int) -> str:
    return f"{week_start:%Y-%m}-W{week_number}"


WeekSlots = Mapping[Tuple[int, dt.date], Mapping[int, str]]


def group_entries(entries: Iterable[DatedContent], first_monday: dt.date) -> WeekSlots:
    buckets: Dict[Tuple[int, dt.date], Dict[int, str]] = {}
    for entry in entries:
        day = _as_date(entry.date)
        if day < first_monday:
            continue
        days_diff = (day - first_monday).days
        week_number = days_diff // 7 + 1
        week_start = first_monday + dt.timedelta(days=(week_number - 1) * 7)
        buckets.setdefault((week_number, week_start), {})[day.weekday()] = entry.content
    return MappingProxyType({key: MappingProxyType(slots) for key, slots in buckets.items()})


def _build_record(
    week_number: int,
    week_start: dt.date,
    slots: Mapping[int, str],
    vacations: Sequence[VacationPeriod],
    config: WeekdayConfig,
    vacation_marker: str,
) -> WeekRecord:
    activities: List[str] = []
    total = 0.0
    for day_index in range(7):
        day = week_start + dt.timedelta(days=day_index)
        day_config = config.for_index(day_index)
        if is_vacation_day(day, vacations):
            activities.append(vacation_marker)
        elif day_config.enabled:
            activities.append(slots.get(day_index, ""))
            total += day_config.hours
        else:
            activities.append("")
    return WeekRecord(
        week_key=week_key(week_start, week_number),
        week_number=week_number,
        activities=tuple(activities),
        total_hours=total,
        start_date=week_start,
    )


def build_weeks(
    entries: Iterable[DatedContent],
    vacations: Iterable[VacationPeriod],
    config: WeekdayConfig,
    reference_start: DateLike,
    vacation_marker: str = DEFAULT_VACATION_MARKER,
) -> List[WeekRecord]:
    first_monday = first_monday_on_or_before(reference_start)
    periods = tuple(vacations)
    grouped = group_entries(entries, first_monday)
    return [
        _build_record(week_number, week_start, grouped[(week_number, week_start)], periods, config, vacation_marker)
        for week_number, week_start in sorted(grouped)
    ]
