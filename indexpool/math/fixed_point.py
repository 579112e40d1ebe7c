"""18-decimal fixed-point math for pool weights and balances.

Weights are plain integers scaled by 10^18 (``ONE`` is 100%). The raw helpers
(``mul_up``, ``div_up``, ...) are what the weight engine uses; ``Bfp`` wraps a
raw value for the weighted-product pricing formula, which also needs the
LogExpMath power function (port of Balancer's LogExpMath.sol).
"""

from __future__ import annotations

from typing import ClassVar

__all__ = [
    "Bfp",
    "LogExpMathError",
    "XOutOfBounds",
    "YOutOfBounds",
    "ProductOutOfBounds",
    "InvalidExponent",
    "mul_down",
    "mul_up",
    "div_down",
    "div_up",
    "mul_div_up",
    "pow_raw",
    "exp",
    "ONE_18",
    "MAX_IN_RATIO",
    "MAX_OUT_RATIO",
]

ONE_18 = 10**18
ONE_20 = 10**20
ONE_36 = 10**36

MAX_NATURAL_EXPONENT = 130 * ONE_18
MIN_NATURAL_EXPONENT = -41 * ONE_18

LN_36_LOWER_BOUND = ONE_18 - 10**17
LN_36_UPPER_BOUND = ONE_18 + 10**17

MILD_EXPONENT_BOUND = (1 << 254) // ONE_20

# x_n are exponents, a_n = e^x_n
X_18 = (128 * ONE_18, 64 * ONE_18)
A_18 = (
    38877084059945950922200000000000000000000000000000000000,  # e^128
    6235149080811616882910000000,  # e^64
)

X_20 = (
    3_200_000_000_000_000_000_000,  # 2^5
    1_600_000_000_000_000_000_000,  # 2^4
    800_000_000_000_000_000_000,  # 2^3
    400_000_000_000_000_000_000,  # 2^2
    200_000_000_000_000_000_000,  # 2^1
    100_000_000_000_000_000_000,  # 2^0
    50_000_000_000_000_000_000,  # 2^-1
    25_000_000_000_000_000_000,  # 2^-2
    12_500_000_000_000_000_000,  # 2^-3
    6_250_000_000_000_000_000,  # 2^-4
)
A_20 = (
    7_896_296_018_268_069_516_100_000_000_000_000,  # e^32
    888_611_052_050_787_263_676_000_000,  # e^16
    298_095_798_704_172_827_474_000,  # e^8
    5_459_815_003_314_423_907_810,  # e^4
    738_905_609_893_065_022_723,  # e^2
    271_828_182_845_904_523_536,  # e^1
    164_872_127_070_012_814_685,  # e^0.5
    128_402_541_668_774_148_407,  # e^0.25
    113_314_845_306_682_631_683,  # e^0.125
    106_449_445_891_785_942_956,  # e^0.0625
)


class LogExpMathError(ArithmeticError):
    """Base error for LogExpMath operations."""

    pass


class XOutOfBounds(LogExpMathError):
    """Base x is out of valid range."""

    pass


class YOutOfBounds(LogExpMathError):
    """Exponent y exceeds MILD_EXPONENT_BOUND."""

    pass


class ProductOutOfBounds(LogExpMathError):
    """y * ln(x) is outside the valid range for exp."""

    pass


class InvalidExponent(LogExpMathError):
    """Exponent is out of valid range after reduction."""

    pass


# =============================================================================
# Raw fixed-point helpers (unsigned, values scaled by 10^18)
# =============================================================================


def mul_down(a: int, b: int) -> int:
    """Multiply two fixed-point values, rounding down."""
    return (a * b) // ONE_18


def mul_up(a: int, b: int) -> int:
    """Multiply two fixed-point values, rounding up."""
    product = a * b
    if product == 0:
        return 0
    return (product - 1) // ONE_18 + 1


def div_down(a: int, b: int) -> int:
    """Divide two fixed-point values, rounding down."""
    if b == 0:
        raise ZeroDivisionError("fixed-point division by zero")
    return (a * ONE_18) // b


def div_up(a: int, b: int) -> int:
    """Divide two fixed-point values, rounding up."""
    if b == 0:
        raise ZeroDivisionError("fixed-point division by zero")
    if a == 0:
        return 0
    return (a * ONE_18 - 1) // b + 1


def mul_div_up(a: int, b: int, c: int) -> int:
    """Compute ceil(a * b / c) with a single rounding step.

    Args:
        a: First factor (non-negative)
        b: Second factor (non-negative)
        c: Divisor (positive)

    Returns:
        The exact product divided by c, rounded toward positive infinity

    Raises:
        ZeroDivisionError: If c is zero
    """
    if c == 0:
        raise ZeroDivisionError("mul_div_up division by zero")
    return -(-(a * b) // c)


# =============================================================================
# LogExpMath
# =============================================================================


def _div_trunc(a: int, b: int) -> int:
    """Integer division truncating toward zero (Solidity semantics).

    Python's // floors toward negative infinity, which differs for operands of
    different sign.
    """
    if b == 0:
        raise ZeroDivisionError("Division by zero in _div_trunc")
    if (a >= 0) == (b >= 0):
        return a // b
    return -(abs(a) // abs(b))


def _ln(a: int) -> int:
    """Natural logarithm of a positive 18-decimal value."""
    if a < ONE_18:
        return -_ln((ONE_18 * ONE_18) // a)

    sum_val = 0
    for x_n, a_n in zip(X_18, A_18):
        if a >= a_n * ONE_18:
            a //= a_n
            sum_val += x_n

    sum_val *= 100
    a *= 100

    for x_n, a_n in zip(X_20, A_20):
        if a >= a_n:
            a = (a * ONE_20) // a_n
            sum_val += x_n

    # ln(a) = 2 * arctanh((a - 1) / (a + 1)), six series terms
    z = ((a - ONE_20) * ONE_20) // (a + ONE_20)
    z_squared = (z * z) // ONE_20

    num = z
    series_sum = num
    for i in range(3, 12, 2):
        num = (num * z_squared) // ONE_20
        series_sum += num // i

    series_sum *= 2
    return (sum_val + series_sum) // 100


def _ln_36(x: int) -> int:
    """Natural logarithm with 36-decimal precision, for x close to ONE."""
    x *= ONE_18

    z = _div_trunc((x - ONE_36) * ONE_36, x + ONE_36)
    z_squared = _div_trunc(z * z, ONE_36)

    num = z
    series_sum = num
    for i in range(3, 16, 2):
        num = _div_trunc(num * z_squared, ONE_36)
        series_sum += _div_trunc(num, i)

    return series_sum * 2


def exp(x: int) -> int:
    """Compute e^x for an 18-decimal exponent.

    Raises:
        InvalidExponent: If x is outside [MIN_NATURAL_EXPONENT, MAX_NATURAL_EXPONENT]
    """
    if not (MIN_NATURAL_EXPONENT <= x <= MAX_NATURAL_EXPONENT):
        raise InvalidExponent(f"Exponent {x} outside valid range")

    if x < 0:
        return (ONE_18 * ONE_18) // exp(-x)

    if x >= X_18[0]:
        x -= X_18[0]
        first_an = A_18[0]
    elif x >= X_18[1]:
        x -= X_18[1]
        first_an = A_18[1]
    else:
        first_an = 1

    x *= 100

    product = ONE_20
    for x_n, a_n in zip(X_20[:8], A_20[:8]):
        if x >= x_n:
            x -= x_n
            product = (product * a_n) // ONE_20

    # Taylor series up to x^12 / 12!
    series_sum = ONE_20
    term = x
    series_sum += term
    for i in range(2, 13):
        term = ((term * x) // ONE_20) // i
        series_sum += term

    return (((product * series_sum) // ONE_20) * first_an) // 100


def pow_raw(x: int, y: int) -> int:
    """Compute x^y for non-negative 18-decimal values.

    Raises:
        XOutOfBounds: If x does not fit a signed 256-bit integer
        YOutOfBounds: If y exceeds MILD_EXPONENT_BOUND
        ProductOutOfBounds: If y * ln(x) is outside the valid range
    """
    if y == 0:
        return ONE_18
    if x == 0:
        return 0

    if x >= (1 << 255):
        raise XOutOfBounds(f"Base {x} too large")
    if y >= MILD_EXPONENT_BOUND:
        raise YOutOfBounds(f"Exponent {y} exceeds bound")

    if LN_36_LOWER_BOUND < x < LN_36_UPPER_BOUND:
        ln_36_x = _ln_36(x)
        div1 = _div_trunc(ln_36_x, ONE_18)
        rem1 = ln_36_x - div1 * ONE_18
        logx_times_y = div1 * y + _div_trunc(rem1 * y, ONE_18)
    else:
        logx_times_y = _ln(x) * y

    logx_times_y = _div_trunc(logx_times_y, ONE_18)

    if not (MIN_NATURAL_EXPONENT <= logx_times_y <= MAX_NATURAL_EXPONENT):
        raise ProductOutOfBounds(f"Product {logx_times_y} outside valid range")

    return exp(logx_times_y)


# =============================================================================
# Bfp wrapper
# =============================================================================


class Bfp:
    """18-decimal fixed-point number stored as int.

    Example: 1.5 is stored as 1_500_000_000_000_000_000
    """

    ONE: ClassVar[int] = ONE_18
    MAX_POW_RELATIVE_ERROR: ClassVar[int] = 10000  # 10^-14 relative error

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    def from_wei(cls, wei: int) -> Bfp:
        """Create from a raw value already scaled to 18 decimals."""
        return cls(wei)

    def mul_down(self, other: Bfp) -> Bfp:
        return Bfp(mul_down(self.value, other.value))

    def mul_up(self, other: Bfp) -> Bfp:
        return Bfp(mul_up(self.value, other.value))

    def div_down(self, other: Bfp) -> Bfp:
        return Bfp(div_down(self.value, other.value))

    def div_up(self, other: Bfp) -> Bfp:
        return Bfp(div_up(self.value, other.value))

    def complement(self) -> Bfp:
        """Return 1 - self. Clamps to 0 if self > 1."""
        return Bfp(max(0, self.ONE - self.value))

    def add(self, other: Bfp) -> Bfp:
        return Bfp(self.value + other.value)

    def sub(self, other: Bfp) -> Bfp:
        """Subtract other from self. Clamps to 0 if result would be negative."""
        return Bfp(max(0, self.value - other.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value <= other.value

    def __repr__(self) -> str:
        return f"Bfp({self.value})"

    def _max_pow_error(self, raw: int) -> int:
        return mul_up(raw, self.MAX_POW_RELATIVE_ERROR) + 1

    def pow_up(self, exponent: Bfp) -> Bfp:
        """Compute self^exponent with upward rounding."""
        raw = pow_raw(self.value, exponent.value)
        return Bfp(raw + self._max_pow_error(raw))


MAX_IN_RATIO = Bfp.from_wei(3 * 10**17)  # 30%
MAX_OUT_RATIO = Bfp.from_wei(3 * 10**17)  # 30%
