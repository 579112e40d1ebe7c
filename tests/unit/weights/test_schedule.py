"""Tests for the gradual weight schedule."""

import pytest

from indexpool.errors import WeightBelowMinimum, WeightNotNormalized
from indexpool.weights import (
    ScheduleState,
    WeightSchedule,
    change_duration,
    interpolate_weight,
    interpolate_weights,
    validate_end_weights,
)
from tests.helpers import DAY, ONE, T0, fp, fps


class TestInterpolateWeight:
    """Linear interpolation of one weight."""

    def test_endpoints(self):
        assert interpolate_weight(fp("0.3"), fp("0.1"), 0) == fp("0.3")
        assert interpolate_weight(fp("0.3"), fp("0.1"), ONE) == fp("0.1")

    def test_halfway_decreasing(self):
        assert interpolate_weight(fp("0.3"), fp("0.1"), ONE // 2) == fp("0.2")

    def test_halfway_increasing(self):
        assert interpolate_weight(fp("0.1"), fp("0.5"), ONE // 2) == fp("0.3")

    def test_constant_when_start_equals_end(self):
        assert interpolate_weight(fp("0.25"), fp("0.25"), ONE // 3) == fp("0.25")

    def test_progress_above_one_clamps(self):
        assert interpolate_weight(fp("0.1"), fp("0.5"), 2 * ONE) == fp("0.5")


class TestInterpolateWeights:
    """Interpolating a full set keeps it normalized."""

    def test_sum_stays_one_mid_schedule(self):
        start = fps(["0.3", "0.55", "0.1", "0.05"])
        end = fps(["0.1", "0.3", "0.5", "0.1"])
        for progress in (1, ONE // 3, ONE // 7, ONE - 1):
            assert sum(interpolate_weights(start, end, progress)) == ONE

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            interpolate_weights(fps(["0.5", "0.5"]), fps(["1"]), ONE // 2)


class TestWeightSchedule:
    """Schedule window, progress and state."""

    def test_progress(self):
        schedule = WeightSchedule(start_time=T0, end_time=T0 + 100)
        assert schedule.progress(T0 - 1) == 0
        assert schedule.progress(T0) == 0
        assert schedule.progress(T0 + 25) == ONE // 4
        assert schedule.progress(T0 + 100) == ONE
        assert schedule.progress(T0 + 1000) == ONE

    def test_zero_length_window_is_complete(self):
        schedule = WeightSchedule(start_time=T0, end_time=T0)
        assert schedule.progress(T0) == ONE
        assert schedule.state(T0) is ScheduleState.SETTLED

    def test_state(self):
        schedule = WeightSchedule(start_time=T0, end_time=T0 + DAY)
        assert schedule.state(T0) is ScheduleState.REBALANCING
        assert schedule.state(T0 + DAY) is ScheduleState.SETTLED

    def test_starting_clamps_past_start_to_now(self):
        schedule = WeightSchedule.starting(T0, T0 - 50, T0 + 100)
        assert schedule.start_time == T0
        assert schedule.end_time == T0 + 100

    def test_starting_end_not_before_start(self):
        schedule = WeightSchedule.starting(T0, T0 - 50, T0 - 10)
        assert schedule.end_time == schedule.start_time == T0
        assert schedule.duration == 0

    def test_future_start_kept(self):
        schedule = WeightSchedule.starting(T0, T0 + 10, T0 + 20)
        assert schedule.progress(T0 + 5) == 0
        assert schedule.start_time == T0 + 10


class TestValidateEndWeights:
    """End weight checks before a schedule starts."""

    def test_valid(self):
        validate_end_weights(fps(["0.5", "0.49", "0.01"]))

    def test_below_minimum(self):
        with pytest.raises(WeightBelowMinimum):
            validate_end_weights(fps(["0.5", "0.495", "0.005"]))

    def test_not_normalized(self):
        with pytest.raises(WeightNotNormalized):
            validate_end_weights(fps(["0.5", "0.3"]))

    def test_custom_floor(self):
        with pytest.raises(WeightBelowMinimum):
            validate_end_weights(fps(["0.95", "0.05"]), min_weight=fp("0.1"))


class TestChangeDuration:
    """Duration at 1% per day for the steepest token."""

    def test_reweigh_reference(self):
        duration = change_duration(
            fps(["0.3", "0.55", "0.1", "0.05"]),
            fps(["0.1", "0.3", "0.5", "0.1"]),
            DAY * 100,
        )
        assert duration == 3_456_000

    def test_one_percent_is_one_day(self):
        assert change_duration(fps(["0.5", "0.5"]), fps(["0.51", "0.49"]), DAY * 100) == DAY

    def test_no_change(self):
        assert change_duration(fps(["0.5", "0.5"]), fps(["0.5", "0.5"]), DAY * 100) == 0
