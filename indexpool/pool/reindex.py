"""Reindex planning: adding and removing basket members.

A reindex call names the tokens the basket should hold and their long-run
weights. Every supplied token is classified as new or existing, and every
current member left out is being removed. Two normalization passes then give
the schedule's start and end weights:

- start weights: live weights with each new token pinned at the 1% baseline
  (existing members shrink just enough to make room);
- end weights: the desired weights with every token that is still
  uninitialized or being removed pinned at the baseline.

Planning is pure. ``IndexPool`` applies the resulting ``ReindexPlan`` to a
copy of its state and commits it in one step.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import structlog

from indexpool.config import DEFAULT_POOL_CONFIG, PoolConfig
from indexpool.constants import ONE
from indexpool.errors import (
    ArrayLengthMismatch,
    DuplicateToken,
    InvalidZeroMinimumBalance,
    MaxTokensError,
    MinTokensError,
    WeightBelowMinimum,
    WeightNotNormalized,
)
from indexpool.weights.normalizer import normalize
from indexpool.weights.schedule import change_duration

from .state import PoolState, RemovalFlag, TokenRecord

logger = structlog.get_logger()


class TokenClass(str, Enum):
    """Role of a token in a reindex call."""

    NEW = "new"
    EXISTING = "existing"
    REMOVED = "removed"


@dataclass(frozen=True)
class ReindexPlan:
    """Everything a reindex changes, computed before anything is committed.

    Attributes:
        tokens: Slot order used for the weight arrays (supplied tokens, then
            removed members)
        classes: Classification of every slot
        start_weights: Immediate start weights, summing to ONE
        end_weights: Intermediate end weights, summing to ONE
        pending_target_weights: Real targets of tokens still to be
            initialized (0 for the others)
        minimum_balances: Thresholds of tokens still to be initialized
        registrations: New tokens the vault does not hold yet
        duration: Schedule length in seconds
    """

    tokens: tuple[str, ...]
    classes: dict[str, TokenClass]
    start_weights: tuple[int, ...]
    end_weights: tuple[int, ...]
    pending_target_weights: dict[str, int]
    minimum_balances: dict[str, int]
    registrations: tuple[str, ...]
    duration: int

    def tokens_of(self, token_class: TokenClass) -> list[str]:
        return [t for t in self.tokens if self.classes[t] is token_class]


def validate_reindex_inputs(
    tokens: Sequence[str],
    desired_weights: Sequence[int],
    minimum_balances: Sequence[int],
) -> None:
    """Check the shape of a reindex call.

    Raises:
        ArrayLengthMismatch: If the three arrays differ in length
        InvalidZeroMinimumBalance: If any minimum balance is zero
        WeightNotNormalized: If desired weights do not sum to ONE
        DuplicateToken: If a token is supplied twice
    """
    if not (len(tokens) == len(desired_weights) == len(minimum_balances)):
        raise ArrayLengthMismatch(
            f"tokens={len(tokens)}, weights={len(desired_weights)}, "
            f"minimum_balances={len(minimum_balances)}"
        )
    if any(balance == 0 for balance in minimum_balances):
        raise InvalidZeroMinimumBalance("Invalid zero minimum balance")
    total = sum(desired_weights)
    if total != ONE:
        raise WeightNotNormalized(f"Desired weights sum to {total}, expected {ONE}")
    if len(set(tokens)) != len(tokens):
        raise DuplicateToken("A token appears more than once")


def classify_tokens(
    state: PoolState, members: Sequence[str], tokens: Sequence[str]
) -> dict[str, TokenClass]:
    """Classify supplied tokens as new or existing, and omitted members as removed.

    A token is new when the pool has no record of it or its record never had
    a start weight. A removal-flagged member supplied again is existing.
    """
    member_set = set(members)
    supplied = set(tokens)
    classes: dict[str, TokenClass] = {}
    for token in tokens:
        record = state.records.get(token)
        if token not in member_set or record is None or record.start_weight == 0:
            classes[token] = TokenClass.NEW
        else:
            classes[token] = TokenClass.EXISTING
    for token in members:
        if token not in supplied:
            classes[token] = TokenClass.REMOVED
    return classes


def plan_reindex(
    state: PoolState,
    members: Sequence[str],
    tokens: Sequence[str],
    desired_weights: Sequence[int],
    minimum_balances: Sequence[int],
    now: int,
    config: PoolConfig = DEFAULT_POOL_CONFIG,
) -> ReindexPlan:
    """Compute the start/end weights and bookkeeping of a reindex.

    Args:
        state: Current pool state (not modified)
        members: Current pool tokens as reported by the vault
        tokens: Tokens the basket should hold
        desired_weights: Long-run weights of ``tokens``, summing to ONE
        minimum_balances: Initialization thresholds of ``tokens`` (used for
            new tokens only)
        now: Current timestamp
        config: Pool configuration

    Returns:
        The reindex plan

    Raises:
        ArrayLengthMismatch, InvalidZeroMinimumBalance, WeightNotNormalized,
        DuplicateToken: On malformed input
        MinTokensError, MaxTokensError: If the basket size is out of bounds
    """
    validate_reindex_inputs(tokens, desired_weights, minimum_balances)
    for weight in desired_weights:
        if weight < config.min_weight:
            raise WeightBelowMinimum(f"Desired weight {weight} below minimum {config.min_weight}")
    if len(tokens) < config.min_tokens:
        raise MinTokensError(f"Reindex needs at least {config.min_tokens} tokens")

    classes = classify_tokens(state, members, tokens)
    removed = [t for t in members if classes.get(t) is TokenClass.REMOVED]
    slots = list(tokens) + removed
    if len(slots) > config.max_tokens:
        raise MaxTokensError(f"Pool would hold {len(slots)} tokens, max is {config.max_tokens}")

    live = state.current_weight_map(now)
    baseline = config.uninitialized_weight
    member_set = set(members)

    current_weights: list[int] = []
    initial_fixed: list[int] = []
    desired_slots: list[int] = []
    final_fixed: list[int] = []
    pending: dict[str, int] = {}
    thresholds: dict[str, int] = {}

    for token, desired, minimum in zip(tokens, desired_weights, minimum_balances, strict=True):
        if classes[token] is TokenClass.NEW:
            current_weights.append(0)
            initial_fixed.append(baseline)
            final_fixed.append(baseline)
            pending[token] = desired
            thresholds[token] = minimum
        elif not state.is_initialized(token):
            # Existing but still below its threshold: keep it pinned, retarget
            current_weights.append(live[token])
            initial_fixed.append(0)
            final_fixed.append(baseline)
            pending[token] = desired
            thresholds[token] = state.min_balance(token)
        else:
            current_weights.append(live[token])
            initial_fixed.append(0)
            final_fixed.append(0)
        desired_slots.append(desired)

    for token in removed:
        current_weights.append(live[token])
        initial_fixed.append(0)
        desired_slots.append(0)
        final_fixed.append(baseline)

    start_weights = normalize(current_weights, initial_fixed)
    end_weights = normalize(desired_slots, final_fixed)

    supplied_count = len(tokens)
    desired_duration = change_duration(
        current_weights[:supplied_count], desired_weights, config.seconds_per_unit_change
    )
    removal_duration = change_duration(
        current_weights[supplied_count:], [baseline] * len(removed), config.seconds_per_unit_change
    )

    registrations = tuple(
        t for t in tokens if classes[t] is TokenClass.NEW and t not in member_set
    )

    logger.debug(
        "reindex_planned",
        new=[t for t in tokens if classes[t] is TokenClass.NEW],
        removed=removed,
        desired_duration=desired_duration,
        removal_duration=removal_duration,
    )

    return ReindexPlan(
        tokens=tuple(slots),
        classes=classes,
        start_weights=tuple(start_weights),
        end_weights=tuple(end_weights),
        pending_target_weights=pending,
        minimum_balances=thresholds,
        registrations=registrations,
        duration=max(desired_duration, removal_duration),
    )


def apply_reindex_plan(
    state: PoolState,
    plan: ReindexPlan,
    scaling_factors: dict[str, int],
    now: int,
    config: PoolConfig = DEFAULT_POOL_CONFIG,
) -> None:
    """Apply a reindex plan to a working copy of the pool state.

    Supplied tokens are flagged SAVE, then every member still unflagged is
    marked REMOVE and the SAVE flags are cleared.

    Args:
        state: Working state, modified in place
        plan: Result of plan_reindex
        scaling_factors: Scaling factor of every token in plan.registrations
        now: Current timestamp
        config: Pool configuration
    """
    for token in plan.registrations:
        state.tokens.append(token)
        state.records[token] = TokenRecord(
            start_weight=0, end_weight=0, scaling_factor=scaling_factors[token]
        )

    for token in plan.tokens:
        if plan.classes[token] is not TokenClass.REMOVED:
            state.update_record(token, removal_flag=RemovalFlag.SAVE)

    for token in state.tokens:
        saved = state.record(token).removal_flag is RemovalFlag.SAVE
        state.update_record(
            token,
            removal_flag=RemovalFlag.NONE if saved else RemovalFlag.REMOVE,
            pending_target_weight=plan.pending_target_weights.get(token, 0),
        )

    state.minimum_balances = dict(plan.minimum_balances)

    state.start_gradual_update(
        now,
        now,
        now + plan.duration,
        dict(zip(plan.tokens, plan.start_weights, strict=True)),
        dict(zip(plan.tokens, plan.end_weights, strict=True)),
        config.min_weight,
    )


def pinned_end_weights(
    desired_weights: Sequence[int], pins: Sequence[int]
) -> list[int]:
    """End weights with some slots pinned (e.g. uninitialized tokens at 1%).

    ``pins[i] == 0`` leaves slot i free to scale around the pinned slots.
    """
    if not any(pins):
        return list(desired_weights)
    return normalize(desired_weights, pins)
