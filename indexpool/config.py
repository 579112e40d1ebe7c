"""Pool configuration."""

from dataclasses import dataclass

from indexpool.constants import (
    MAX_TOKENS,
    MIN_TOKENS,
    MIN_WEIGHT,
    ONE_DAY_SECONDS,
    UNINITIALIZED_WEIGHT,
    WEIGHT_CHANGE_DAYS_PER_UNIT,
)


@dataclass(frozen=True)
class PoolConfig:
    """Centralized configuration for an index pool.

    Holds the weight floor, the uninitialized baseline and the rebalancing
    speed so tests can run pools with different parameters.

    Attributes:
        min_weight: Floor for every end weight (default: 1%)
        uninitialized_weight: Baseline weight of a token below its minimum
            balance or being removed (default: 1%)
        min_tokens: Smallest allowed basket (default: 2)
        max_tokens: Largest allowed basket (default: 50)
        seconds_per_unit_change: Seconds a full 100% weight move would take.
            The default caps the steepest token at 1% absolute change per day.
    """

    min_weight: int = MIN_WEIGHT
    uninitialized_weight: int = UNINITIALIZED_WEIGHT
    min_tokens: int = MIN_TOKENS
    max_tokens: int = MAX_TOKENS
    seconds_per_unit_change: int = ONE_DAY_SECONDS * WEIGHT_CHANGE_DAYS_PER_UNIT


# Default configuration instance
DEFAULT_POOL_CONFIG = PoolConfig()
