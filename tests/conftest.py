"""Pytest configuration and fixtures."""

import pytest

from indexpool.pool import IndexPool, InMemoryVault
from tests.helpers import TOKEN_A, TOKEN_B, TOKEN_C, make_pool

SEED_BALANCE = 1_000_000 * 10**18


@pytest.fixture
def vault() -> InMemoryVault:
    """Fresh in-memory vault."""
    return InMemoryVault()


@pytest.fixture
def pool(vault: InMemoryVault) -> IndexPool:
    """Three-token pool at 40/30/30 with deep balances, created at T0."""
    return make_pool(
        vault,
        [TOKEN_A, TOKEN_B, TOKEN_C],
        ["0.4", "0.3", "0.3"],
        balances=[SEED_BALANCE] * 3,
    )
