"""
Time Shift Planner

Decides whether an activity happened during the work window and, if so,
where to move it.

Rules:
- The decision uses the activity's local wall-clock start on its own
  calendar day. The window is open at both ends: an activity starting
  exactly on a bound is not shifted.
- A shifted activity ends at a random second in
  [window start - 10 min, window start - 1 min), keeping its elapsed time,
  so it always finishes before the window opens and the offset is not a
  constant.
- delta_seconds is the signed offset (new start - old start). It is later
  applied to the UTC start, never to the local one.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from schemas import StravaActivity

# New end time is drawn from [lower - EARLIEST, lower - LATEST).
NEW_END_EARLIEST_BEFORE = timedelta(minutes=10)
NEW_END_LATEST_BEFORE = timedelta(minutes=1)


@dataclass(frozen=True)
class HourMinute:
    hour: int
    minute: int

    def __post_init__(self):
        if not (0 <= self.hour <= 23 and 0 <= self.minute <= 59):
            raise ValueError(f"invalid time of day {self.hour:02d}:{self.minute:02d}")

    @classmethod
    def parse(cls, value: str) -> "HourMinute":
        hour, minute = value.split(":")
        return cls(int(hour), int(minute))

    def on(self, day: datetime) -> datetime:
        """This time of day on the same calendar date as `day`."""
        return day.replace(hour=self.hour, minute=self.minute, second=0, microsecond=0)

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class ShiftPlan:
    within_work_window: bool
    start_time_local: datetime
    end_time_local: datetime
    new_start_time_local: Optional[datetime] = None
    new_end_time_local: Optional[datetime] = None
    delta_seconds: int = 0


def is_between_time_bounds(moment: datetime, lower: HourMinute, upper: HourMinute) -> bool:
    return lower.on(moment) < moment < upper.on(moment)


def plan_time_shift(
    activity: StravaActivity,
    lower: HourMinute,
    upper: HourMinute,
    rng: Optional[random.Random] = None,
) -> ShiftPlan:
    rng = rng or random.Random()
    start_local = activity.start_time_local
    elapsed = timedelta(seconds=activity.elapsed_time)
    end_local = start_local + elapsed

    if not is_between_time_bounds(start_local, lower, upper):
        return ShiftPlan(
            within_work_window=False,
            start_time_local=start_local,
            end_time_local=end_local,
        )

    window_open = lower.on(start_local)
    earliest_end = window_open - NEW_END_EARLIEST_BEFORE
    latest_end = window_open - NEW_END_LATEST_BEFORE
    span_seconds = int((latest_end - earliest_end).total_seconds())
    new_end_local = earliest_end + timedelta(seconds=rng.randrange(span_seconds))
    new_start_local = new_end_local - elapsed

    return ShiftPlan(
        within_work_window=True,
        start_time_local=start_local,
        end_time_local=end_local,
        new_start_time_local=new_start_local,
        new_end_time_local=new_end_local,
        delta_seconds=int((new_start_local - start_local).total_seconds()),
    )
