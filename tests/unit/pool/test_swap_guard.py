"""Tests for the swap guard: withdrawal/deposit rules and initialization."""

import pytest

from indexpool.errors import RemovedTokenDeposit, UninitializedTokenWithdrawal, UnknownToken
from indexpool.pool import (
    PoolState,
    RemovalFlag,
    TokenRecord,
    check_swap_allowed,
    incoming_balance_and_weight,
    initialize_if_crossed,
)
from indexpool.weights import WeightSchedule
from tests.helpers import ONE, T0, TOKEN_A, TOKEN_B, TOKEN_C, TOKEN_D, TOKEN_E, fp, fps

TOKENS = [TOKEN_A, TOKEN_B, TOKEN_C, TOKEN_D]


@pytest.fixture
def reindexed_state() -> PoolState:
    """State right after adding D at a 10% target with minimum balance 1000."""
    start = fps(["0.396", "0.297", "0.297", "0.01"])
    end = fps(["0.55", "0.22", "0.22", "0.01"])
    records = {
        token: TokenRecord(start_weight=s, end_weight=e, scaling_factor=1)
        for token, s, e in zip(TOKENS, start, end, strict=True)
    }
    records[TOKEN_D] = TokenRecord(
        start_weight=fp("0.01"),
        end_weight=fp("0.01"),
        scaling_factor=1,
        pending_target_weight=fp("0.1"),
    )
    return PoolState(
        tokens=list(TOKENS),
        records=records,
        minimum_balances={TOKEN_D: 1000},
        schedule=WeightSchedule(start_time=T0, end_time=T0 + 864_000),
    )


class TestCheckSwapAllowed:
    """Which token pairs can be swapped."""

    def test_initialized_pair(self, reindexed_state):
        check_swap_allowed(reindexed_state, TOKEN_A, TOKEN_B)

    def test_uninitialized_token_can_enter(self, reindexed_state):
        check_swap_allowed(reindexed_state, TOKEN_D, TOKEN_A)

    def test_uninitialized_token_cannot_leave(self, reindexed_state):
        with pytest.raises(UninitializedTokenWithdrawal):
            check_swap_allowed(reindexed_state, TOKEN_A, TOKEN_D)

    def test_removed_token_cannot_enter(self, reindexed_state):
        reindexed_state.update_record(TOKEN_C, removal_flag=RemovalFlag.REMOVE)
        with pytest.raises(RemovedTokenDeposit):
            check_swap_allowed(reindexed_state, TOKEN_C, TOKEN_A)
        check_swap_allowed(reindexed_state, TOKEN_A, TOKEN_C)

    def test_unknown_token(self, reindexed_state):
        with pytest.raises(UnknownToken):
            check_swap_allowed(reindexed_state, TOKEN_E, TOKEN_A)
        with pytest.raises(UnknownToken):
            check_swap_allowed(reindexed_state, TOKEN_A, TOKEN_E)


class TestIncomingBalanceAndWeight:
    """Pricing substitutes for uninitialized incoming tokens."""

    def test_initialized_token_unchanged(self, reindexed_state):
        assert incoming_balance_and_weight(
            reindexed_state, TOKEN_A, 500, fp("0.396")
        ) == (500, fp("0.396"))

    def test_uninitialized_token_uses_minimum_and_premium(self, reindexed_state):
        balance, weight = incoming_balance_and_weight(reindexed_state, TOKEN_D, 0, fp("0.01"))
        assert balance == 1000
        assert weight == fp("0.011")


class TestInitializeIfCrossed:
    """Initialization when a swap lifts a token to its minimum balance."""

    def test_below_threshold_changes_nothing(self, reindexed_state):
        before = reindexed_state.clone()
        assert not initialize_if_crossed(reindexed_state, TOKEN_D, 900, 99, T0)
        assert reindexed_state == before

    def test_initialized_token_ignored(self, reindexed_state):
        assert not initialize_if_crossed(reindexed_state, TOKEN_A, 10**30, 1, T0)

    def test_crossing_restores_reindex_targets(self, reindexed_state):
        assert initialize_if_crossed(reindexed_state, TOKEN_D, 900, 100, T0)

        assert reindexed_state.min_balance(TOKEN_D) == 0
        records = [reindexed_state.record(t) for t in TOKENS]
        assert [r.end_weight for r in records] == fps(["0.5", "0.2", "0.2", "0.1"])
        assert [r.start_weight for r in records] == fps(["0.396", "0.297", "0.297", "0.01"])
        assert all(r.pending_target_weight == 0 for r in records)
        # steepest token is A: 0.396 -> 0.5
        assert reindexed_state.schedule == WeightSchedule(T0, T0 + 898_560)

    def test_overshoot_raises_start_weight(self, reindexed_state):
        assert initialize_if_crossed(reindexed_state, TOKEN_D, 900, 600, T0)
        start = [reindexed_state.record(t).start_weight for t in TOKENS]
        assert start[3] == fp("0.015")
        assert sum(start) == ONE

    def test_adjusted_start_is_capped(self, reindexed_state):
        assert initialize_if_crossed(reindexed_state, TOKEN_D, 0, 100_000, T0)
        start = [reindexed_state.record(t).start_weight for t in TOKENS]
        assert start == fps(["0.01", "0.01", "0.01", "0.97"])

    def test_other_members_keep_the_floor(self, reindexed_state):
        # Scaling alone would give [0.0132, 0.0099, 0.0099, 0.967]
        assert initialize_if_crossed(reindexed_state, TOKEN_D, 0, 96_700, T0)
        start = [reindexed_state.record(t).start_weight for t in TOKENS]
        assert start == fps(["0.013", "0.01", "0.01", "0.967"])
        assert sum(start) == ONE

    def test_crossing_mid_schedule_starts_from_live_weights(self, reindexed_state):
        now = T0 + 432_000
        live = reindexed_state.current_weight_map(now)
        assert initialize_if_crossed(reindexed_state, TOKEN_D, 1000, 0, now)
        for token in (TOKEN_A, TOKEN_B, TOKEN_C):
            assert reindexed_state.record(token).start_weight == live[token]
        assert reindexed_state.schedule.start_time == now

    def test_removed_token_stays_at_baseline(self, reindexed_state):
        reindexed_state.update_record(
            TOKEN_C, removal_flag=RemovalFlag.REMOVE, end_weight=fp("0.01")
        )
        reindexed_state.update_record(TOKEN_A, end_weight=fp("0.76"))
        assert initialize_if_crossed(reindexed_state, TOKEN_D, 1000, 0, T0)
        end = [reindexed_state.record(t).end_weight for t in TOKENS]
        assert end[2] == fp("0.01")
        assert end[3] == fp("0.1")
        assert sum(end) == ONE
