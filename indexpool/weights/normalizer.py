"""Weight normalization.

Turns a set of "free" base weights plus a set of "fixed" weights into a
weight set summing to exactly ``ONE``. Fixed slots are authoritative and are
returned unchanged; free slots are scaled proportionally, all in the same
direction.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from indexpool.constants import ONE
from indexpool.errors import ArrayLengthMismatch, WeightNotNormalized
from indexpool.math.fixed_point import mul_div_up

logger = structlog.get_logger()


def normalize(base_weights: Sequence[int], fixed_weights: Sequence[int]) -> list[int]:
    """Normalize base weights around a set of fixed weights.

    Every slot where ``fixed_weights[i] != 0`` keeps that value. Every other
    slot is scaled from ``base_weights[i]`` by
    ``ceil(base[i] * delta / sum_base)`` where ``delta`` is the distance of
    ``sum_fixed + sum_base`` from ``ONE``. Weights shrink when the total is
    above ``ONE`` and grow when it is below.

    Rounding up can overshoot by less than one unit per free slot. That
    residual is absorbed by the first free slot (slot 0 unless it is fixed),
    so the result always sums to exactly ``ONE``.

    Args:
        base_weights: Candidate weights, index-aligned with fixed_weights
        fixed_weights: Authoritative weights, 0 marks a free slot

    Returns:
        Normalized weights summing to exactly ONE

    Raises:
        ArrayLengthMismatch: If the arrays differ in length
        WeightNotNormalized: If no valid normalization exists (fixed weights
            alone reach ONE while free slots exist, free base weights sum to
            zero, or all slots are fixed and do not sum to ONE)
    """
    if len(base_weights) != len(fixed_weights):
        raise ArrayLengthMismatch(
            f"base has {len(base_weights)} weights, fixed has {len(fixed_weights)}"
        )

    free_slots = [i for i, fixed in enumerate(fixed_weights) if fixed == 0]
    sum_fixed = sum(fixed_weights)

    if not free_slots:
        if sum_fixed != ONE:
            raise WeightNotNormalized(f"Fixed weights sum to {sum_fixed}, expected {ONE}")
        return list(fixed_weights)

    if sum_fixed >= ONE:
        raise WeightNotNormalized(
            f"Fixed weights sum to {sum_fixed}, leaving no room for {len(free_slots)} free slots"
        )

    sum_base = sum(base_weights[i] for i in free_slots)
    if sum_base == 0:
        raise WeightNotNormalized("Free base weights sum to zero")

    total = sum_fixed + sum_base
    shrink = total > ONE
    delta = abs(ONE - total)

    normalized = list(fixed_weights)
    for i in free_slots:
        adjustment = mul_div_up(base_weights[i], delta, sum_base)
        normalized[i] = base_weights[i] - adjustment if shrink else base_weights[i] + adjustment

    residual = sum(normalized) - ONE
    if residual == 0:
        return normalized

    absorber = free_slots[0]
    if abs(residual) <= len(free_slots) and normalized[absorber] >= residual:
        normalized[absorber] -= residual
    else:
        logger.warning(
            "normalization_residual_redistributed",
            residual=residual,
            free_slots=len(free_slots),
        )
        _redistribute_residual(normalized, free_slots, residual)

    return normalized


def _redistribute_residual(weights: list[int], free_slots: list[int], residual: int) -> None:
    """Spread a rounding residual over the free slots in place.

    Each free slot gives up (or receives) a share of the residual proportional
    to its weight, truncated toward zero. Whatever truncation leaves over goes
    to the largest free slot.

    Raises:
        WeightNotNormalized: If the free slots cannot absorb the residual
            without a negative weight
    """
    sum_free = sum(weights[i] for i in free_slots)
    if sum_free == 0 or (residual > 0 and residual > sum_free):
        raise WeightNotNormalized(f"Cannot absorb residual {residual} in free slots")

    sign = 1 if residual > 0 else -1
    magnitude = abs(residual)
    remaining = magnitude
    for i in free_slots:
        share = magnitude * weights[i] // sum_free
        weights[i] -= sign * share
        remaining -= share

    largest = max(free_slots, key=lambda i: weights[i])
    if sign > 0 and weights[largest] < remaining:
        raise WeightNotNormalized(f"Cannot absorb residual {residual} in free slots")
    weights[largest] -= sign * remaining
