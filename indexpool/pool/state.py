"""Pool state: token records, minimum balances and the weight schedule.

``PoolState`` is the whole mutable state of one index pool. Operations work
on a ``clone()`` and the pool swaps the clone in only once every check has
passed, so a failed operation leaves no partial state behind.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum

import structlog

from indexpool.constants import MIN_WEIGHT
from indexpool.errors import UnknownToken
from indexpool.weights.schedule import (
    ScheduleState,
    WeightSchedule,
    interpolate_weights,
    validate_end_weights,
)

logger = structlog.get_logger()


class RemovalFlag(str, Enum):
    """Removal status of a token record.

    SAVE marks a token supplied to a reindex call while it is being
    classified; it is never persisted. REMOVE marks a token omitted by a
    reindex: it can only be swapped out from then on.
    """

    NONE = "none"
    SAVE = "save"
    REMOVE = "remove"


@dataclass(frozen=True)
class TokenRecord:
    """Weight data for one member token.

    Attributes:
        start_weight: Weight at the start of the current schedule
        end_weight: Weight at the end of the current schedule
        scaling_factor: Multiplier bringing native amounts to 18 decimals,
            fixed at registration
        pending_target_weight: Real target of a token still being
            initialized, 0 once initialized
        removal_flag: Whether the token is being wound down
    """

    start_weight: int
    end_weight: int
    scaling_factor: int
    pending_target_weight: int = 0
    removal_flag: RemovalFlag = RemovalFlag.NONE

    @property
    def marked_for_removal(self) -> bool:
        return self.removal_flag is RemovalFlag.REMOVE


@dataclass
class PoolState:
    """Schedule plus per-token records of one pool.

    Attributes:
        tokens: Member tokens in registration order
        records: Token records keyed by token address
        minimum_balances: Initialization thresholds of tokens still below them
        schedule: Pool-wide interpolation window
    """

    tokens: list[str] = field(default_factory=list)
    records: dict[str, TokenRecord] = field(default_factory=dict)
    minimum_balances: dict[str, int] = field(default_factory=dict)
    schedule: WeightSchedule = field(default_factory=WeightSchedule)

    def clone(self) -> PoolState:
        return copy.deepcopy(self)

    def record(self, token: str) -> TokenRecord:
        """Get the record for a member token.

        Raises:
            UnknownToken: If the token is not a member of the pool
        """
        record = self.records.get(token)
        if record is None:
            raise UnknownToken(f"Token {token} is not in the pool")
        return record

    def min_balance(self, token: str) -> int:
        """Minimum balance of a token still being initialized, 0 otherwise."""
        return self.minimum_balances.get(token, 0)

    def is_initialized(self, token: str) -> bool:
        return self.min_balance(token) == 0

    def schedule_state(self, now: int) -> ScheduleState:
        return self.schedule.state(now)

    def current_weights(self, now: int) -> list[int]:
        """Live interpolated weights in ``tokens`` order."""
        records = [self.record(token) for token in self.tokens]
        return interpolate_weights(
            [r.start_weight for r in records],
            [r.end_weight for r in records],
            self.schedule.progress(now),
        )

    def current_weight_map(self, now: int) -> dict[str, int]:
        return dict(zip(self.tokens, self.current_weights(now), strict=True))

    def update_record(self, token: str, **changes: object) -> None:
        self.records[token] = replace(self.record(token), **changes)

    def start_gradual_update(
        self,
        now: int,
        start_time: int,
        end_time: int,
        start_weights: Mapping[str, int],
        end_weights: Mapping[str, int],
        min_weight: int = MIN_WEIGHT,
    ) -> None:
        """Start (or restart) the weight schedule.

        Both mappings must cover exactly the member tokens. End weights are
        validated before anything changes.

        Raises:
            UnknownToken: If the mappings do not match the member tokens
            WeightBelowMinimum: If an end weight is below min_weight
            WeightNotNormalized: If the end weights do not sum to ONE
        """
        members = set(self.tokens)
        if set(start_weights) != members or set(end_weights) != members:
            raise UnknownToken("Schedule weights must cover exactly the pool tokens")

        validate_end_weights([end_weights[t] for t in self.tokens], min_weight)

        self.schedule = WeightSchedule.starting(now, start_time, end_time)
        for token in self.tokens:
            self.update_record(
                token,
                start_weight=start_weights[token],
                end_weight=end_weights[token],
            )

        logger.debug(
            "schedule_started",
            start_time=self.schedule.start_time,
            end_time=self.schedule.end_time,
            token_count=len(self.tokens),
        )
