"""Distribution of a day's hour budget across its activities.

Activities that already carry a duration keep it. The hours left over are
split across the remaining activities in half-hour steps: every activity gets
the same base share (rounded down to 0.5, at least 0.5) and the leading
activities absorb the remaining half hours one by one.

Activities with a duration are returned first, followed by the ones whose
duration was computed here. Both groups keep their input order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

HOUR_STEP = 0.5


@dataclass(frozen=True, slots=True)
class PlannedActivity:
    description: str
    duration: Optional[float] = None


@dataclass(frozen=True, slots=True)
class AllocatedActivity:
    description: str
    duration: float


def _floor_to_step(value: float) -> float:
    return math.floor(value / HOUR_STEP) * HOUR_STEP


def split_remaining_hours(remaining_hours: float, count: int) -> List[float]:
    """Return ``count`` half-hour shares for ``remaining_hours``.

    The sum exceeds ``remaining_hours`` when the budget cannot give every
    share the 0.5 h minimum.
    """
    if count <= 0:
        return []
    if remaining_hours <= 0:
        return [0.0] * count
    base_hours = _floor_to_step(remaining_hours / count)
    if base_hours < HOUR_STEP:
        base_hours = HOUR_STEP
    distributed_hours = base_hours * count
    leftover_hours = max(0.0, remaining_hours - distributed_hours)
    extra_slots = math.floor(leftover_hours / HOUR_STEP)
    return [base_hours + HOUR_STEP if index < extra_slots else base_hours for index in range(count)]


def allocate(total_budget_hours: float, activities: Iterable[PlannedActivity]) -> List[AllocatedActivity]:
    if total_budget_hours < 0:
        raise ValueError("total_budget_hours must not be negative")

    with_time: List[PlannedActivity] = []
    without_time: List[PlannedActivity] = []
    for activity in activities:
        if activity.duration is None:
            without_time.append(activity)
        else:
            with_time.append(activity)

    used_hours = sum(float(activity.duration) for activity in with_time)
    remaining_hours = max(0.0, total_budget_hours - used_hours)
    shares = split_remaining_hours(remaining_hours, len(without_time))

    allocated = [AllocatedActivity(activity.description, float(activity.duration)) for activity in with_time]
    allocated.extend(
        AllocatedActivity(activity.description, share) for activity, share in zip(without_time, shares)
    )
    return allocated


def total_hours(activities: Sequence[AllocatedActivity]) -> float:
    return sum(activity.duration for activity in activities)
