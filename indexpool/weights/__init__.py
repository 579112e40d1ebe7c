"""Weight math: normalization, uninitialized-token pricing and schedules."""

from .normalizer import normalize
from .schedule import (
    ScheduleState,
    WeightSchedule,
    change_duration,
    interpolate_weight,
    interpolate_weights,
    validate_end_weights,
)
from .uninitialized import adjusted_start_weight_on_initialization, uninitialized_weight

__all__ = [
    "normalize",
    "uninitialized_weight",
    "adjusted_start_weight_on_initialization",
    "WeightSchedule",
    "ScheduleState",
    "interpolate_weight",
    "interpolate_weights",
    "validate_end_weights",
    "change_duration",
]
