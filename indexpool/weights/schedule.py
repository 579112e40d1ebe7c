"""Gradual weight schedule.

A pool-wide ``(start_time, end_time)`` window drives linear interpolation of
every token's weight from its start weight to its end weight. Both endpoint
sets sum to ``ONE``, so the interpolated set does too.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from indexpool.constants import MIN_WEIGHT, ONE
from indexpool.errors import WeightBelowMinimum, WeightNotNormalized
from indexpool.math.fixed_point import div_down, mul_down


class ScheduleState(str, Enum):
    """Where the pool is within its weight schedule."""

    SETTLED = "settled"
    REBALANCING = "rebalancing"


@dataclass(frozen=True)
class WeightSchedule:
    """Time window of the current gradual weight update.

    Attributes:
        start_time: Unix timestamp (seconds) when interpolation starts
        end_time: Unix timestamp (seconds) when end weights are reached
    """

    start_time: int = 0
    end_time: int = 0

    @classmethod
    def starting(cls, now: int, start_time: int, end_time: int) -> WeightSchedule:
        """Build a schedule, clamping a past start time up to ``now``.

        The end time is never earlier than the (clamped) start time.
        """
        start = max(start_time, now)
        return cls(start_time=start, end_time=max(end_time, start))

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    def progress(self, now: int) -> int:
        """Fraction of the window elapsed at ``now`` as a fixed-point value in [0, ONE]."""
        if now >= self.end_time:
            return ONE
        if now <= self.start_time:
            return 0
        return div_down(now - self.start_time, self.end_time - self.start_time)

    def state(self, now: int) -> ScheduleState:
        if now >= self.end_time:
            return ScheduleState.SETTLED
        return ScheduleState.REBALANCING


def interpolate_weight(start_weight: int, end_weight: int, progress: int) -> int:
    """Linearly interpolate one weight.

    Args:
        start_weight: Weight at progress 0
        end_weight: Weight at progress ONE
        progress: Fixed-point fraction of the window elapsed

    Returns:
        The interpolated weight, moving from start toward end
    """
    if progress == 0 or start_weight == end_weight:
        return start_weight
    if progress >= ONE:
        return end_weight

    if start_weight > end_weight:
        return start_weight - mul_down(start_weight - end_weight, progress)
    return start_weight + mul_down(end_weight - start_weight, progress)


def interpolate_weights(
    start_weights: Sequence[int], end_weights: Sequence[int], progress: int
) -> list[int]:
    """Interpolate a full weight set.

    Per-token rounding leaves the set at most a few units away from ``ONE``
    mid-schedule; that drift is put on the largest weight so the returned
    set sums to exactly ``ONE``.
    """
    weights = [
        interpolate_weight(start, end, progress)
        for start, end in zip(start_weights, end_weights, strict=True)
    ]
    residual = sum(weights) - ONE
    if residual and abs(residual) < len(weights):
        largest = max(range(len(weights)), key=weights.__getitem__)
        weights[largest] -= residual
    return weights


def validate_end_weights(end_weights: Sequence[int], min_weight: int = MIN_WEIGHT) -> None:
    """Check that a schedule's end weights are usable.

    Raises:
        WeightBelowMinimum: If any end weight is below min_weight
        WeightNotNormalized: If the end weights do not sum to exactly ONE
    """
    for weight in end_weights:
        if weight < min_weight:
            raise WeightBelowMinimum(f"End weight {weight} below minimum {min_weight}")
    total = sum(end_weights)
    if total != ONE:
        raise WeightNotNormalized(f"End weights sum to {total}, expected {ONE}")


def change_duration(
    from_weights: Sequence[int],
    to_weights: Sequence[int],
    seconds_per_unit_change: int,
) -> int:
    """Seconds needed so the steepest-moving weight respects the speed cap.

    ``max |to - from| / ONE * seconds_per_unit_change``. With the default
    speed the steepest token moves 1% per day; every other token moves less.
    """
    max_delta = max(
        (abs(to - frm) for frm, to in zip(from_weights, to_weights, strict=True)),
        default=0,
    )
    return max_delta * seconds_per_unit_change // ONE
