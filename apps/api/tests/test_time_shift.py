"""
Tests for the work-window time shift planner.

Covers:
- window membership is strict at both bounds and uses local wall-clock time
- shifted activities end in [window start - 10 min, window start - 1 min)
- elapsed time is preserved and delta_seconds = new start - old start
"""
import random
from datetime import datetime, timedelta

import pytest

from schemas import StravaActivity
from services.time_shift import HourMinute, is_between_time_bounds, plan_time_shift
from fixtures.strava_payloads import make_activity

NINE = HourMinute(9, 0)
FIVE_PM = HourMinute(17, 0)


def _activity(local: str, utc: str = "2024-01-10T15:00:00Z", elapsed: int = 3600, offset: float = -18000.0) -> StravaActivity:
    return StravaActivity.model_validate(
        make_activity(start_date=utc, start_date_local=local, elapsed_time=elapsed, utc_offset=offset)
    )


class TestHourMinute:
    def test_parse(self):
        assert HourMinute.parse("09:30") == HourMinute(9, 30)

    def test_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            HourMinute(24, 0)

    def test_on_keeps_calendar_day(self):
        moment = datetime(2024, 1, 10, 10, 42, 17)
        assert NINE.on(moment) == datetime(2024, 1, 10, 9, 0, 0)


class TestWindowMembership:
    @pytest.mark.parametrize("local,expected", [
        ("2024-01-10T10:00:00Z", True),
        ("2024-01-10T09:00:01Z", True),
        ("2024-01-10T16:59:59Z", True),
        ("2024-01-10T09:00:00Z", False),  # lower bound is exclusive
        ("2024-01-10T17:00:00Z", False),  # upper bound is exclusive
        ("2024-01-10T08:30:00Z", False),
        ("2024-01-10T18:15:00Z", False),
        ("2024-01-10T00:30:00Z", False),
    ])
    def test_strict_bounds(self, local, expected):
        plan = plan_time_shift(_activity(local), NINE, FIVE_PM, random.Random(1))
        assert plan.within_work_window is expected

    def test_outside_window_produces_no_shift(self):
        plan = plan_time_shift(_activity("2024-01-10T07:15:00Z"), NINE, FIVE_PM, random.Random(1))
        assert plan.new_start_time_local is None
        assert plan.new_end_time_local is None
        assert plan.delta_seconds == 0

    def test_decision_uses_local_time_not_utc(self):
        # 06:00 local is 11:00 UTC: inside the window in UTC, outside locally.
        activity = _activity("2024-01-10T06:00:00Z", utc="2024-01-10T11:00:00Z")
        assert plan_time_shift(activity, NINE, FIVE_PM, random.Random(1)).within_work_window is False

    def test_is_between_time_bounds(self):
        assert is_between_time_bounds(datetime(2024, 1, 10, 12, 0), NINE, FIVE_PM)
        assert not is_between_time_bounds(datetime(2024, 1, 10, 9, 0), NINE, FIVE_PM)


class TestShiftPlan:
    def test_example_ride(self):
        """10:00 local start, UTC-5, one hour long."""
        plan = plan_time_shift(_activity("2024-01-10T10:00:00Z"), NINE, FIVE_PM, random.Random(42))

        assert plan.within_work_window is True
        assert plan.start_time_local == datetime(2024, 1, 10, 10, 0, 0)
        assert plan.end_time_local == datetime(2024, 1, 10, 11, 0, 0)
        assert datetime(2024, 1, 10, 8, 50, 0) <= plan.new_end_time_local < datetime(2024, 1, 10, 8, 59, 0)
        assert plan.new_start_time_local == plan.new_end_time_local - timedelta(hours=1)
        assert plan.delta_seconds < 0
        assert plan.start_time_local + timedelta(seconds=plan.delta_seconds) == plan.new_start_time_local

    def test_new_end_always_before_window_for_any_draw(self):
        for seed in range(200):
            rng = random.Random(seed)
            hour = rng.randint(9, 16)
            minute = rng.randint(1, 59)
            elapsed = rng.randint(60, 6 * 3600)
            activity = _activity(f"2024-03-05T{hour:02d}:{minute:02d}:00Z", elapsed=elapsed)

            plan = plan_time_shift(activity, NINE, FIVE_PM, rng)

            assert plan.within_work_window
            assert plan.new_end_time_local < datetime(2024, 3, 5, 9, 0)
            assert plan.new_end_time_local >= datetime(2024, 3, 5, 8, 50)
            assert plan.new_end_time_local - plan.new_start_time_local == timedelta(seconds=elapsed)
            assert plan.delta_seconds == int((plan.new_start_time_local - plan.start_time_local).total_seconds())

    def test_draw_is_not_constant(self):
        activity = _activity("2024-01-10T10:00:00Z")
        ends = {plan_time_shift(activity, NINE, FIVE_PM, random.Random(seed)).new_end_time_local for seed in range(20)}
        assert len(ends) > 1

    def test_custom_window(self):
        plan = plan_time_shift(
            _activity("2024-01-10T08:30:00Z", elapsed=1800),
            HourMinute(8, 0),
            HourMinute(12, 0),
            random.Random(3),
        )
        assert plan.within_work_window
        assert datetime(2024, 1, 10, 7, 50) <= plan.new_end_time_local < datetime(2024, 1, 10, 7, 59)
