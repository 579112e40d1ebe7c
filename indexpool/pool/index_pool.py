"""Index pool: a weighted pool whose basket and weights a controller manages.

Public operations:
- ``create``: register a pool and its initial basket with the vault
- ``reweigh_tokens``: gradually retarget the weights of the current basket
- ``reindex_tokens``: add and remove basket members
- ``on_swap``: price a swap, guarding uninitialized and removed tokens

Every mutating operation builds its changes on a copy of the pool state and
swaps it in only after all checks pass. ``now`` is always supplied by the
caller.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

import structlog

from indexpool.config import DEFAULT_POOL_CONFIG, PoolConfig
from indexpool.constants import ONE, ZERO_ADDRESS
from indexpool.errors import (
    ArrayLengthMismatch,
    DuplicateToken,
    MaxTokensError,
    MinTokensError,
    ReentrancyError,
    SelfSwapError,
    SwapsDisabled,
    Unauthorized,
    UnknownToken,
    VaultError,
    WeightBelowMinimum,
    WeightNotNormalized,
)
from indexpool.math.fixed_point import Bfp
from indexpool.models.types import normalize_address
from indexpool.weights.schedule import (
    ScheduleState,
    WeightSchedule,
    change_duration,
    validate_end_weights,
)

from .pricing import (
    PricingFormula,
    SwapKind,
    SwapRequest,
    WeightedProductPricer,
    scale_down_down,
    scale_down_up,
    scale_up,
    scaling_factor_for_decimals,
)
from .reindex import TokenClass, apply_reindex_plan, pinned_end_weights, plan_reindex
from .state import PoolState, TokenRecord
from .swap_guard import check_swap_allowed, incoming_balance_and_weight, initialize_if_crossed
from .vault import Vault

logger = structlog.get_logger()


def _default_decimals(_token: str) -> int:
    return 18


@dataclass(frozen=True)
class GradualUpdateParams:
    """Snapshot of the current weight schedule, in pool token order."""

    start_time: int
    end_time: int
    start_weights: tuple[int, ...]
    end_weights: tuple[int, ...]
    new_token_target_weights: tuple[int, ...]


class IndexPool:
    """Weighted pool with controller-managed basket and weights.

    Use ``IndexPool.create`` to build one; the constructor only wires
    collaborators together.

    Args:
        vault: Token custody collaborator
        controller: Address allowed to reweigh and reindex
        state: Initial pool state
        config: Pool configuration
        pricer: Swap pricing formula (default: weighted product)
        token_decimals: Lookup for the decimals of tokens added later
        swap_enabled: Whether swaps are accepted
    """

    def __init__(
        self,
        vault: Vault,
        controller: str,
        state: PoolState,
        *,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        pricer: PricingFormula | None = None,
        token_decimals: Callable[[str], int] | None = None,
        swap_enabled: bool = True,
    ) -> None:
        self._vault = vault
        self._controller = normalize_address(controller)
        self._state = state
        self._config = config
        self._pricer = pricer or WeightedProductPricer()
        self._token_decimals = token_decimals or _default_decimals
        self._swap_enabled = swap_enabled
        self._in_progress = False
        self._pool_id: str | None = None

    @classmethod
    def create(
        cls,
        vault: Vault,
        tokens: Sequence[str],
        weights: Sequence[int],
        controller: str,
        now: int,
        *,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        pricer: PricingFormula | None = None,
        token_decimals: Callable[[str], int] | None = None,
        swap_enabled: bool = True,
    ) -> IndexPool:
        """Create a pool, register it and its tokens with the vault.

        Raises:
            MinTokensError: If fewer than config.min_tokens tokens
            MaxTokensError: If more than config.max_tokens tokens
            ArrayLengthMismatch: If tokens and weights differ in length
            DuplicateToken: If a token appears twice
            WeightBelowMinimum: If a weight is below the floor
            WeightNotNormalized: If the weights do not sum to ONE
            InvalidDecimals: If a token's decimals exceed 18
        """
        if len(tokens) < config.min_tokens:
            raise MinTokensError(f"Pool needs at least {config.min_tokens} tokens")
        if len(tokens) > config.max_tokens:
            raise MaxTokensError(f"Pool can hold at most {config.max_tokens} tokens")
        if len(tokens) != len(weights):
            raise ArrayLengthMismatch(f"tokens={len(tokens)}, weights={len(weights)}")

        tokens = [normalize_address(t) for t in tokens]
        if len(set(tokens)) != len(tokens):
            raise DuplicateToken("A token appears more than once")
        validate_end_weights(weights, config.min_weight)

        decimals_of = token_decimals or _default_decimals
        state = PoolState(
            tokens=list(tokens),
            records={
                token: TokenRecord(
                    start_weight=weight,
                    end_weight=weight,
                    scaling_factor=scaling_factor_for_decimals(decimals_of(token)),
                )
                for token, weight in zip(tokens, weights, strict=True)
            },
            schedule=WeightSchedule(start_time=now, end_time=now),
        )

        pool = cls(
            vault,
            controller,
            state,
            config=config,
            pricer=pricer,
            token_decimals=token_decimals,
            swap_enabled=swap_enabled,
        )
        pool._pool_id = vault.register_pool(pool)
        vault.register_tokens(pool._pool_id, tokens, [ZERO_ADDRESS] * len(tokens))

        logger.info(
            "index_pool_created",
            pool_id=pool._pool_id,
            tokens=tokens,
            swap_enabled=swap_enabled,
        )
        return pool

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def pool_id(self) -> str:
        if self._pool_id is None:
            raise VaultError("Pool is not registered with a vault")
        return self._pool_id

    @property
    def controller(self) -> str:
        return self._controller

    @property
    def swap_enabled(self) -> bool:
        return self._swap_enabled

    @property
    def config(self) -> PoolConfig:
        return self._config

    def get_tokens(self) -> list[str]:
        return list(self._state.tokens)

    def get_normalized_weights(self, now: int) -> list[int]:
        """Live weights of all tokens, in pool token order, summing to ONE."""
        return self._state.current_weights(now)

    def get_normalized_weight(self, token: str, now: int) -> int:
        """Live weight of one token.

        Raises:
            UnknownToken: If the token is not a pool member
        """
        token = normalize_address(token)
        self._state.record(token)
        return self._state.current_weight_map(now)[token]

    def get_scaling_factors(self) -> list[int]:
        return [self._state.record(t).scaling_factor for t in self._state.tokens]

    def get_scaling_factor(self, token: str) -> int:
        return self._state.record(normalize_address(token)).scaling_factor

    def get_gradual_weight_update_params(self) -> GradualUpdateParams:
        records = [self._state.record(t) for t in self._state.tokens]
        return GradualUpdateParams(
            start_time=self._state.schedule.start_time,
            end_time=self._state.schedule.end_time,
            start_weights=tuple(r.start_weight for r in records),
            end_weights=tuple(r.end_weight for r in records),
            new_token_target_weights=tuple(r.pending_target_weight for r in records),
        )

    def schedule_state(self, now: int) -> ScheduleState:
        return self._state.schedule_state(now)

    def min_balance(self, token: str) -> int:
        """Minimum balance of a token still being initialized, 0 otherwise."""
        return self._state.min_balance(normalize_address(token))

    def get_token_record(self, token: str) -> TokenRecord:
        return self._state.record(normalize_address(token))

    def removable_tokens(self, now: int) -> list[str]:
        """Removal-flagged tokens whose live weight has reached the floor."""
        weights = self._state.current_weight_map(now)
        return [
            token
            for token in self._state.tokens
            if self._state.record(token).marked_for_removal
            and weights[token] <= self._config.uninitialized_weight
        ]

    # =========================================================================
    # Controller operations
    # =========================================================================

    def set_swap_enabled(self, caller: str, enabled: bool) -> None:
        self._require_controller(caller)
        self._swap_enabled = enabled
        logger.info("swap_enabled_set", pool_id=self._pool_id, enabled=enabled)

    def reweigh_tokens(
        self,
        caller: str,
        tokens: Sequence[str],
        desired_weights: Sequence[int],
        now: int,
    ) -> None:
        """Gradually move the current basket to new weights.

        The schedule is as long as the steepest token needs at 1% per day.
        Tokens still being initialized or removed stay pinned at the 1%
        baseline; an uninitialized token's desired weight becomes its new
        pending target.

        Raises:
            Unauthorized: If caller is not the controller
            ArrayLengthMismatch: If tokens and weights differ in length
            WeightNotNormalized: If desired weights do not sum to ONE
            UnknownToken: If tokens are not exactly the pool members
            WeightBelowMinimum: If a resulting end weight, or the new pending
                target of an uninitialized token, is below the floor
        """
        self._require_controller(caller)
        with self._nonreentrant():
            if len(tokens) != len(desired_weights):
                raise ArrayLengthMismatch(
                    f"tokens={len(tokens)}, weights={len(desired_weights)}"
                )
            total = sum(desired_weights)
            if total != ONE:
                raise WeightNotNormalized(f"Desired weights sum to {total}, expected {ONE}")

            tokens = [normalize_address(t) for t in tokens]
            if len(set(tokens)) != len(tokens):
                raise DuplicateToken("A token appears more than once")
            members = self._state.tokens
            if set(tokens) != set(members):
                raise UnknownToken("Reweigh must list exactly the pool tokens")

            working = self._state.clone()
            desired = dict(zip(tokens, desired_weights, strict=True))
            ordered_desired = [desired[t] for t in members]
            current = working.current_weights(now)

            baseline = self._config.uninitialized_weight
            pins = []
            for token in members:
                record = working.record(token)
                if not working.is_initialized(token):
                    # Becomes an end weight once the token crosses its minimum
                    if desired[token] < self._config.min_weight:
                        raise WeightBelowMinimum(
                            f"Desired weight {desired[token]} below minimum "
                            f"{self._config.min_weight}"
                        )
                    working.update_record(token, pending_target_weight=desired[token])
                    pins.append(baseline)
                elif record.marked_for_removal:
                    pins.append(baseline)
                else:
                    pins.append(0)
            end_weights = pinned_end_weights(ordered_desired, pins)

            duration = change_duration(
                current, ordered_desired, self._config.seconds_per_unit_change
            )
            working.start_gradual_update(
                now,
                now,
                now + duration,
                dict(zip(members, current, strict=True)),
                dict(zip(members, end_weights, strict=True)),
                self._config.min_weight,
            )
            self._state = working

        logger.info(
            "reweigh_committed",
            pool_id=self._pool_id,
            start_time=now,
            end_time=now + duration,
        )

    def reindex_tokens(
        self,
        caller: str,
        tokens: Sequence[str],
        desired_weights: Sequence[int],
        minimum_balances: Sequence[int],
        now: int,
    ) -> None:
        """Change basket membership and retarget weights.

        New tokens enter at the 1% baseline with their minimum balance set and
        their desired weight kept as pending target. Members left out are
        flagged for removal and head to the baseline. New tokens are
        registered with the vault before the state change is committed.

        Raises:
            Unauthorized: If caller is not the controller
            ArrayLengthMismatch: If the three arrays differ in length
            InvalidZeroMinimumBalance: If a minimum balance is zero
            WeightNotNormalized: If desired weights do not sum to ONE
            WeightBelowMinimum: If a weight is below the floor
            MinTokensError, MaxTokensError: If the basket size is out of bounds
            ReentrancyError: If called while another operation is in progress
        """
        self._require_controller(caller)
        with self._nonreentrant():
            tokens = [normalize_address(t) for t in tokens]
            members, _ = self._vault.get_pool_tokens(self.pool_id)
            if set(members) != set(self._state.tokens):
                raise VaultError("Vault token list does not match pool records")

            plan = plan_reindex(
                self._state,
                members,
                tokens,
                desired_weights,
                minimum_balances,
                now,
                self._config,
            )
            scaling_factors = {
                token: scaling_factor_for_decimals(self._token_decimals(token))
                for token in plan.registrations
            }

            working = self._state.clone()
            apply_reindex_plan(working, plan, scaling_factors, now, self._config)

            if plan.registrations:
                self._vault.register_tokens(
                    self.pool_id,
                    list(plan.registrations),
                    [ZERO_ADDRESS] * len(plan.registrations),
                )
            self._state = working

        logger.info(
            "reindex_committed",
            pool_id=self._pool_id,
            new_tokens=plan.tokens_of(TokenClass.NEW),
            removed_tokens=plan.tokens_of(TokenClass.REMOVED),
            duration=plan.duration,
        )

    # =========================================================================
    # Swaps
    # =========================================================================

    def on_swap(self, request: SwapRequest, balance_in: int, balance_out: int, now: int) -> int:
        """Price a swap against the pool.

        Called by the vault with the current balances (native decimals).

        Returns:
            The calculated amount: amount out for GIVEN_IN, amount in for
            GIVEN_OUT (native decimals)

        Raises:
            SwapsDisabled: If swaps are paused
            SelfSwapError: If both sides are the same token
            UnknownToken: If a token is not a member
            UninitializedTokenWithdrawal: If token_out is uninitialized
            RemovedTokenDeposit: If token_in is being removed
            PricingError: If the pricing formula rejects the swap
        """
        with self._nonreentrant():
            if not self._swap_enabled:
                raise SwapsDisabled("Swaps are disabled for this pool")
            token_in = normalize_address(request.token_in)
            token_out = normalize_address(request.token_out)
            if token_in == token_out:
                raise SelfSwapError(f"Cannot swap {token_in} for itself")

            state = self._state
            check_swap_allowed(state, token_in, token_out)

            weights = state.current_weight_map(now)
            pricing_balance_in, weight_in = incoming_balance_and_weight(
                state, token_in, balance_in, weights[token_in], self._config
            )
            factor_in = state.record(token_in).scaling_factor
            factor_out = state.record(token_out).scaling_factor

            if request.kind is SwapKind.GIVEN_IN:
                amount_out = self._pricer.calc_out_given_in(
                    scale_up(pricing_balance_in, factor_in),
                    Bfp(weight_in),
                    scale_up(balance_out, factor_out),
                    Bfp(weights[token_out]),
                    scale_up(request.amount, factor_in),
                )
                amount_in = request.amount
                calculated = scale_down_down(amount_out, factor_out)
            else:
                amount_in_scaled = self._pricer.calc_in_given_out(
                    scale_up(pricing_balance_in, factor_in),
                    Bfp(weight_in),
                    scale_up(balance_out, factor_out),
                    Bfp(weights[token_out]),
                    scale_up(request.amount, factor_out),
                )
                amount_in = scale_down_up(amount_in_scaled, factor_in)
                calculated = amount_in

            if not state.is_initialized(token_in):
                working = state.clone()
                if initialize_if_crossed(
                    working, token_in, balance_in, amount_in, now, self._config
                ):
                    self._state = working

        logger.debug(
            "swap_priced",
            pool_id=self._pool_id,
            kind=request.kind.value,
            token_in=token_in,
            token_out=token_out,
            amount=request.amount,
            calculated=calculated,
        )
        return calculated

    # =========================================================================
    # Guards
    # =========================================================================

    def _require_controller(self, caller: str) -> None:
        if normalize_address(caller) != self._controller:
            logger.warning("unauthorized_caller", pool_id=self._pool_id, caller=caller)
            raise Unauthorized(f"Caller {caller} is not the pool controller")

    @contextmanager
    def _nonreentrant(self) -> Iterator[None]:
        if self._in_progress:
            raise ReentrancyError("Pool operation already in progress")
        self._in_progress = True
        try:
            yield
        finally:
            self._in_progress = False
