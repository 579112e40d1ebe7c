"""Swap guard for index pools.

Runs around every swap:

1. an uninitialized token cannot leave the pool;
2. a token being removed cannot enter the pool;
3. an uninitialized incoming token is priced with its minimum balance as a
   virtual balance and with its premium weight;
4. once a swap lifts an incoming token to its minimum balance, the token is
   initialized and a new schedule heads for the real reindex targets.
"""

from __future__ import annotations

import structlog

from indexpool.config import DEFAULT_POOL_CONFIG, PoolConfig
from indexpool.constants import ONE
from indexpool.errors import RemovedTokenDeposit, UninitializedTokenWithdrawal
from indexpool.weights.normalizer import normalize
from indexpool.weights.schedule import change_duration
from indexpool.weights.uninitialized import (
    adjusted_start_weight_on_initialization,
    uninitialized_weight,
)

from .state import PoolState, TokenRecord

logger = structlog.get_logger()


def check_swap_allowed(state: PoolState, token_in: str, token_out: str) -> None:
    """Enforce the withdrawal and deposit rules.

    Raises:
        UnknownToken: If either token is not a pool member
        UninitializedTokenWithdrawal: If token_out is still uninitialized
        RemovedTokenDeposit: If token_in is flagged for removal
    """
    record_in = state.record(token_in)
    state.record(token_out)

    if not state.is_initialized(token_out):
        logger.warning("uninitialized_token_withdrawal_rejected", token=token_out)
        raise UninitializedTokenWithdrawal(f"Token {token_out} has not reached its minimum balance")

    if record_in.marked_for_removal:
        logger.warning("removed_token_deposit_rejected", token=token_in)
        raise RemovedTokenDeposit(f"Token {token_in} is being removed from the pool")


def incoming_balance_and_weight(
    state: PoolState,
    token_in: str,
    balance_in: int,
    live_weight: int,
    config: PoolConfig = DEFAULT_POOL_CONFIG,
) -> tuple[int, int]:
    """Balance and weight the pricing formula sees for the incoming token.

    Returns:
        (balance, weight): the real balance and live weight for an
        initialized token, otherwise the minimum balance and the premium
        weight computed from the real balance
    """
    minimum = state.min_balance(token_in)
    if minimum == 0:
        return balance_in, live_weight
    weight = uninitialized_weight(balance_in, minimum, config.uninitialized_weight)
    return minimum, weight


def initialize_if_crossed(
    state: PoolState,
    token: str,
    balance_in: int,
    amount_in: int,
    now: int,
    config: PoolConfig = DEFAULT_POOL_CONFIG,
) -> bool:
    """Initialize ``token`` if this swap lifted it to its minimum balance.

    Works on a working copy of the state. On crossing: the minimum balance
    entry is cleared, the token restarts from its adjusted start weight, the
    real reindex targets are recovered by normalizing the stored end weights
    around all pending targets, and a new schedule heads for them. Other
    tokens still being initialized stay pinned at the baseline, the rest
    share their slack in proportion to their targets.

    Args:
        state: Working state, modified in place on crossing
        token: Incoming token of the swap
        balance_in: Real balance before the swap (native decimals)
        amount_in: Amount swapped in (native decimals)
        now: Current timestamp
        config: Pool configuration

    Returns:
        True if the token was initialized by this swap
    """
    minimum = state.min_balance(token)
    if minimum == 0 or balance_in + amount_in < minimum:
        return False

    baseline = config.uninitialized_weight
    tokens = state.tokens
    records = {t: state.record(t) for t in tokens}
    live = state.current_weight_map(now)

    # Leave every other member room for at least the weight floor
    cap = ONE - config.min_weight * (len(tokens) - 1)
    adjusted = min(
        adjusted_start_weight_on_initialization(balance_in, minimum, amount_in, baseline),
        cap,
    )
    start_weights = _floored_start_weights(
        [live[t] for t in tokens],
        tokens.index(token),
        adjusted,
        config.min_weight,
    )

    # Stored end weights have pending tokens pinned at the baseline; pinning
    # their real targets instead gives back the targets of the reindex. The
    # new end weights pin the remaining pending tokens at the baseline again
    # and scale every other token, this one included, uniformly.
    real_targets = normalize(
        [records[t].end_weight for t in tokens],
        [_reconstruction_pin(records[t]) for t in tokens],
    )
    end_weights = normalize(
        real_targets,
        [_end_pin(t, token, records[t], baseline) for t in tokens],
    )

    del state.minimum_balances[token]
    state.update_record(token, pending_target_weight=0)

    duration = change_duration(start_weights, end_weights, config.seconds_per_unit_change)
    state.start_gradual_update(
        now,
        now,
        now + duration,
        dict(zip(tokens, start_weights, strict=True)),
        dict(zip(tokens, end_weights, strict=True)),
        config.min_weight,
    )

    logger.info(
        "token_initialized",
        token=token,
        balance=balance_in + amount_in,
        minimum_balance=minimum,
        start_weight=start_weights[tokens.index(token)],
        target_weight=end_weights[tokens.index(token)],
        capped=adjusted == cap,
        duration=duration,
    )
    return True


def _floored_start_weights(
    live: list[int], index: int, adjusted: int, min_weight: int
) -> list[int]:
    """Normalize live weights around the adjusted start weight at ``index``.

    Members that the scaling would push below ``min_weight`` are pinned at it
    and the rest are normalized again. Each pass pins at least one more
    member, and the cap on ``adjusted`` leaves room for every pin.
    """
    fixed = [0] * len(live)
    fixed[index] = adjusted
    while True:
        weights = normalize(live, fixed)
        low = [i for i, w in enumerate(weights) if fixed[i] == 0 and w < min_weight]
        if not low:
            return weights
        for i in low:
            fixed[i] = min_weight


def _reconstruction_pin(record: TokenRecord) -> int:
    if record.pending_target_weight:
        return record.pending_target_weight
    if record.marked_for_removal:
        return record.end_weight
    return 0


def _end_pin(token: str, crossing_token: str, record: TokenRecord, baseline: int) -> int:
    if token == crossing_token:
        return 0
    if record.pending_target_weight or record.marked_for_removal:
        return baseline
    return 0
