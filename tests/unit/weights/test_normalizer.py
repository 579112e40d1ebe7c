"""Tests for weight normalization around fixed slots."""

import pytest

from indexpool.errors import ArrayLengthMismatch, WeightNotNormalized
from indexpool.weights import normalize
from tests.helpers import ONE, fps


class TestNormalizeExamples:
    """Reference normalizations."""

    def test_one_new_token_shrinks_existing(self):
        """A 1% new token takes 1% proportionally from the others."""
        result = normalize(fps(["0.8", "0.2", "0"]), fps(["0", "0", "0.01"]))
        assert result == fps(["0.792", "0.198", "0.01"])

    def test_two_new_tokens(self):
        result = normalize(fps(["0.8", "0.2", "0", "0"]), fps(["0", "0", "0.01", "0.01"]))
        assert result == fps(["0.784", "0.196", "0.01", "0.01"])

    def test_large_fixed_weight(self):
        result = normalize(fps(["0.5", "0.5", "0"]), fps(["0", "0", "0.2"]))
        assert result == fps(["0.4", "0.4", "0.2"])

    def test_fixed_slot_ignores_base_weight(self):
        """The base value under a fixed slot does not count toward the free sum."""
        result = normalize(fps(["0.6", "0.6", "0.3"]), fps(["0", "0", "0.2"]))
        assert result == fps(["0.4", "0.4", "0.2"])

    def test_free_weights_grow_when_total_below_one(self):
        """Removing weight from the fixed slot scales the free slots up."""
        result = normalize(fps(["0.6", "0.3", "0.1"]), fps(["0", "0", "0.01"]))
        assert result == fps(["0.66", "0.33", "0.01"])

    def test_fixed_slot_first(self):
        """Fixed slot at index 0 is returned unchanged."""
        result = normalize(fps(["0", "0.5", "0.5"]), fps(["0.1", "0", "0"]))
        assert result == fps(["0.1", "0.45", "0.45"])


class TestNormalizeInvariants:
    """Properties that hold for every valid input."""

    @pytest.mark.parametrize(
        "base,fixed",
        [
            ([1, 1, 1, 0], [0, 0, 0, 10**16]),
            ([333333333333333333, 333333333333333333, 333333333333333334, 0], [0, 0, 0, 7]),
            ([10**18 // 7] * 7 + [0], [0] * 7 + [3 * 10**16]),
            ([5 * 10**17, 3 * 10**17, 2 * 10**17, 0, 0], [0, 0, 0, 10**16, 2 * 10**16]),
            ([7, 11, 13, 0], [0, 0, 0, 10**18 - 1000]),
        ],
    )
    def test_sums_to_one_and_keeps_fixed(self, base, fixed):
        result = normalize(base, fixed)
        assert sum(result) == ONE
        for value, pinned in zip(result, fixed, strict=True):
            if pinned:
                assert value == pinned

    def test_free_slots_move_in_one_direction(self):
        base = fps(["0.5", "0.3", "0.2", "0"])
        result = normalize(base, fps(["0", "0", "0", "0.05"]))
        assert all(r <= b for r, b in zip(result[:3], base[:3], strict=True))

    def test_already_normalized_unchanged(self):
        base = fps(["0.25", "0.25", "0.5"])
        assert normalize(base, [0, 0, 0]) == base


class TestNormalizeErrors:
    """Inputs with no valid normalization."""

    def test_length_mismatch(self):
        with pytest.raises(ArrayLengthMismatch):
            normalize(fps(["0.5", "0.5"]), fps(["0", "0", "0.1"]))

    def test_fixed_weights_fill_pool_with_free_slots(self):
        with pytest.raises(WeightNotNormalized):
            normalize(fps(["0.5", "0.5", "0"]), fps(["0", "0", "1"]))

    def test_all_fixed_must_sum_to_one(self):
        assert normalize([0, 0], fps(["0.3", "0.7"])) == fps(["0.3", "0.7"])
        with pytest.raises(WeightNotNormalized):
            normalize([0, 0], fps(["0.3", "0.6"]))

    def test_free_base_weights_all_zero(self):
        with pytest.raises(WeightNotNormalized):
            normalize([0, 0, 0], fps(["0", "0", "0.1"]))
