"""Mathematical utilities for the index pool.

- Bfp and raw helpers: 18-decimal fixed-point arithmetic (Balancer-style)
"""

from indexpool.math.fixed_point import (
    ONE_18,
    Bfp,
    div_down,
    div_up,
    mul_div_up,
    mul_down,
    mul_up,
)

__all__ = ["Bfp", "ONE_18", "mul_down", "mul_up", "div_down", "div_up", "mul_div_up"]
