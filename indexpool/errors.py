"""Index pool error classes.

Every failure aborts the whole operation before any state is committed.
"""


class IndexPoolError(Exception):
    """Base error for index pool operations."""

    pass


class ArrayLengthMismatch(IndexPoolError):
    """Token, weight or minimum balance arrays have different lengths."""

    pass


class WeightNotNormalized(IndexPoolError):
    """A supplied or computed weight set does not sum to exactly 100%."""

    pass


class WeightBelowMinimum(IndexPoolError):
    """An end weight is below the configured floor."""

    pass


class InvalidZeroMinimumBalance(IndexPoolError):
    """A reindex call supplied a zero minimum balance."""

    pass


class Unauthorized(IndexPoolError):
    """Caller is not the pool controller."""

    pass


class UninitializedTokenWithdrawal(IndexPoolError):
    """Swap tried to take out a token that has not reached its minimum balance."""

    pass


class RemovedTokenDeposit(IndexPoolError):
    """Swap tried to put in a token that is being removed."""

    pass


class UnknownToken(IndexPoolError):
    """Token is not a member of the pool."""

    pass


class MinTokensError(IndexPoolError):
    """Pool would hold fewer tokens than allowed."""

    pass


class MaxTokensError(IndexPoolError):
    """Pool would hold more tokens than allowed."""

    pass


class InvalidDecimals(IndexPoolError):
    """Token decimals cannot be scaled to 18 decimals."""

    pass


class SwapsDisabled(IndexPoolError):
    """Swaps are paused for this pool."""

    pass


class ReentrancyError(IndexPoolError):
    """A mutating operation was invoked while another one is in progress."""

    pass


class UnknownPool(IndexPoolError):
    """No pool is registered under the requested id."""

    pass


class DuplicateToken(IndexPoolError):
    """The same token appears twice in one call."""

    pass


class SelfSwapError(IndexPoolError):
    """Swap has the same token on both sides."""

    pass


class VaultError(IndexPoolError):
    """Token custody operation failed (registration, balances)."""

    pass


# =============================================================================
# Pricing formula errors
# =============================================================================


class PricingError(IndexPoolError):
    """Base error for the weighted-product pricing formula."""

    pass


class MaxInRatioError(PricingError):
    """Input amount exceeds 30% of balance_in."""

    pass


class MaxOutRatioError(PricingError):
    """Output amount exceeds 30% of balance_out."""

    pass


class ZeroWeightError(PricingError):
    """Token weight must be positive."""

    pass


class ZeroBalanceError(PricingError):
    """Token balance must be positive for swaps."""

    pass
