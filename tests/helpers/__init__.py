"""Test helpers module for shared test utilities.

- constants: Token addresses, accounts and time constants
- factories: Fixed-point conversion and pool factory functions
"""

from tests.helpers.constants import (
    CONTROLLER,
    DAY,
    ONE,
    STRANGER,
    T0,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    TOKEN_D,
    TOKEN_E,
    TOKEN_USD6,
)
from tests.helpers.factories import fp, fps, make_pool

__all__ = [
    # Constants
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "TOKEN_D",
    "TOKEN_E",
    "TOKEN_USD6",
    "CONTROLLER",
    "STRANGER",
    "T0",
    "DAY",
    "ONE",
    # Factories
    "fp",
    "fps",
    "make_pool",
]
