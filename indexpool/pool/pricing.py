"""Swap requests and the pricing formula capability.

The index pool does not own a pricing curve. It hands a per-token weight and
(possibly virtual) balances to a ``PricingFormula`` and gets an amount back.
``WeightedProductPricer`` is the default, backed by the weighted product math.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from indexpool.errors import InvalidDecimals
from indexpool.math.fixed_point import Bfp

from .weighted_math import calc_in_given_out, calc_out_given_in


class SwapKind(str, Enum):
    """Which side of the swap the request amount fixes."""

    GIVEN_IN = "given_in"
    GIVEN_OUT = "given_out"


@dataclass(frozen=True)
class SwapRequest:
    """A swap against the pool.

    Attributes:
        kind: GIVEN_IN (amount is the input) or GIVEN_OUT (amount is the output)
        token_in: Token entering the pool
        token_out: Token leaving the pool
        amount: Amount in the fixed token's native decimals
    """

    kind: SwapKind
    token_in: str
    token_out: str
    amount: int


@runtime_checkable
class PricingFormula(Protocol):
    """Swap math consumed by the pool. All values are 18-decimal scaled."""

    def calc_out_given_in(
        self, balance_in: Bfp, weight_in: Bfp, balance_out: Bfp, weight_out: Bfp, amount_in: Bfp
    ) -> Bfp: ...

    def calc_in_given_out(
        self, balance_in: Bfp, weight_in: Bfp, balance_out: Bfp, weight_out: Bfp, amount_out: Bfp
    ) -> Bfp: ...


class WeightedProductPricer:
    """Constant weighted product pricing."""

    def calc_out_given_in(
        self, balance_in: Bfp, weight_in: Bfp, balance_out: Bfp, weight_out: Bfp, amount_in: Bfp
    ) -> Bfp:
        return calc_out_given_in(balance_in, weight_in, balance_out, weight_out, amount_in)

    def calc_in_given_out(
        self, balance_in: Bfp, weight_in: Bfp, balance_out: Bfp, weight_out: Bfp, amount_out: Bfp
    ) -> Bfp:
        return calc_in_given_out(balance_in, weight_in, balance_out, weight_out, amount_out)


# =============================================================================
# Scaling helpers
# =============================================================================


def scaling_factor_for_decimals(decimals: int) -> int:
    """Factor that brings a token's native amounts to 18 decimals.

    Raises:
        InvalidDecimals: If decimals is negative or above 18
    """
    if decimals < 0 or decimals > 18:
        raise InvalidDecimals(f"Token decimals must be in [0, 18], got {decimals}")
    return 10 ** (18 - decimals)


def scale_up(amount: int, scaling_factor: int) -> Bfp:
    """Scale a native token amount to 18 decimals."""
    return Bfp.from_wei(amount * scaling_factor)


def scale_down_down(bfp: Bfp, scaling_factor: int) -> int:
    """Scale an 18-decimal result back to native decimals, rounding down."""
    return bfp.value // scaling_factor


def scale_down_up(bfp: Bfp, scaling_factor: int) -> int:
    """Scale an 18-decimal result back to native decimals, rounding up."""
    if bfp.value == 0:
        return 0
    return (bfp.value - 1) // scaling_factor + 1
