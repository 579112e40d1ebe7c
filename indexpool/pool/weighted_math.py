"""Weighted product pool math.

The swap formula the index pool prices against. Weights handed in here are
whatever the pool decides a token weighs right now: the live interpolated
weight, or the premium weight of an uninitialized token.
"""

from indexpool.errors import MaxInRatioError, MaxOutRatioError, ZeroBalanceError, ZeroWeightError
from indexpool.math.fixed_point import MAX_IN_RATIO, MAX_OUT_RATIO, ONE_18, Bfp


def _validate_inputs(balance_in: Bfp, weight_in: Bfp, balance_out: Bfp, weight_out: Bfp) -> None:
    if weight_in.value <= 0:
        raise ZeroWeightError("weight_in must be positive")
    if weight_out.value <= 0:
        raise ZeroWeightError("weight_out must be positive")
    if balance_in.value <= 0:
        raise ZeroBalanceError("balance_in must be positive")
    if balance_out.value <= 0:
        raise ZeroBalanceError("balance_out must be positive")


def calc_out_given_in(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_in: Bfp,
) -> Bfp:
    """Calculate output amount for a given input.

    Formula:
        amount_out = balance_out * (1 - (balance_in / (balance_in + amount_in))^(weight_in / weight_out))

    Args:
        balance_in: Scaled balance of input token (must be positive)
        weight_in: Weight of input token (must be positive)
        balance_out: Scaled balance of output token (must be positive)
        weight_out: Weight of output token (must be positive)
        amount_in: Scaled input amount

    Returns:
        Scaled output amount

    Raises:
        MaxInRatioError: If amount_in > balance_in * 0.3
        ZeroWeightError: If weight_in or weight_out is zero
        ZeroBalanceError: If balance_in or balance_out is zero
    """
    _validate_inputs(balance_in, weight_in, balance_out, weight_out)

    max_amount_in = balance_in.mul_down(MAX_IN_RATIO)
    if amount_in.value > max_amount_in.value:
        raise MaxInRatioError(f"Input {amount_in.value} exceeds 30% of balance {balance_in.value}")

    denominator = balance_in.add(amount_in)
    base = balance_in.div_up(denominator)
    exponent = weight_in.div_down(weight_out)
    power = base.pow_up(exponent)

    return balance_out.mul_down(power.complement())


def calc_in_given_out(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_out: Bfp,
) -> Bfp:
    """Calculate input amount for a given output.

    Formula:
        amount_in = balance_in * ((balance_out / (balance_out - amount_out))^(weight_out / weight_in) - 1)

    Raises:
        MaxOutRatioError: If amount_out > balance_out * 0.3
        ZeroWeightError: If weight_in or weight_out is zero
        ZeroBalanceError: If a balance is zero or amount_out >= balance_out
    """
    _validate_inputs(balance_in, weight_in, balance_out, weight_out)

    max_amount_out = balance_out.mul_down(MAX_OUT_RATIO)
    if amount_out.value > max_amount_out.value:
        raise MaxOutRatioError(
            f"Output {amount_out.value} exceeds 30% of balance {balance_out.value}"
        )
    if amount_out.value >= balance_out.value:
        raise ZeroBalanceError("amount_out must be less than balance_out")

    denominator = balance_out.sub(amount_out)
    base = balance_out.div_up(denominator)
    # rounded up for exact-output swaps
    exponent = weight_out.div_up(weight_in)
    power = base.pow_up(exponent)
    ratio = power.sub(Bfp(ONE_18))

    return balance_in.mul_up(ratio)
