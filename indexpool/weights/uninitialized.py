"""Pricing weights for tokens below their minimum balance.

A token added by a reindex has negligible real liquidity until swaps bring
its balance up to its minimum balance. Until then the pool prices it at a
baseline weight plus a premium that depends on how far the balance is from
the threshold.
"""

from indexpool.constants import UNINITIALIZED_SHORTFALL_DAMPENER, UNINITIALIZED_WEIGHT
from indexpool.math.fixed_point import ONE_18, div_up, mul_up


def uninitialized_weight(
    balance_before_swap: int,
    minimum_balance: int,
    baseline: int = UNINITIALIZED_WEIGHT,
) -> int:
    """Compute the effective weight of an uninitialized token.

    Shortfall (balance below minimum):
        factor = 1 + (minimum - balance) / (10 * minimum)
    Surplus (balance at or above minimum):
        factor = 1 + (balance - minimum) / minimum

    Both ratios are rounded up, as is ``baseline * factor``.

    Args:
        balance_before_swap: Real token balance before the swap
        minimum_balance: Initialization threshold (non-zero)
        baseline: Uninitialized baseline weight (default: 1%)

    Returns:
        Weight to use in place of the token's interpolated weight

    Raises:
        ZeroDivisionError: If minimum_balance is zero
    """
    if balance_before_swap < minimum_balance:
        premium = div_up(
            minimum_balance - balance_before_swap,
            minimum_balance * UNINITIALIZED_SHORTFALL_DAMPENER,
        )
    else:
        premium = div_up(balance_before_swap - minimum_balance, minimum_balance)
    return mul_up(baseline, ONE_18 + premium)


def adjusted_start_weight_on_initialization(
    balance_in: int,
    minimum_balance: int,
    amount_in: int,
    baseline: int = UNINITIALIZED_WEIGHT,
) -> int:
    """Start weight for a token the instant it crosses its minimum balance.

    The baseline scaled by how far the post-swap balance exceeds the
    threshold. It may exceed the token's final target; it is only the start
    point of the next schedule.
    """
    if minimum_balance == 0:
        raise ZeroDivisionError("minimum_balance must be non-zero")
    return (balance_in + amount_in) * baseline // minimum_balance
