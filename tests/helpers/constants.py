"""Shared token constants for tests.

All addresses are lowercase for consistency with normalize_address().

Usage:
    from tests.helpers import TOKEN_A, CONTROLLER
"""

# =============================================================================
# Basket tokens
# =============================================================================

TOKEN_A = "0x1000000000000000000000000000000000000001"
TOKEN_B = "0x1000000000000000000000000000000000000002"
TOKEN_C = "0x1000000000000000000000000000000000000003"
TOKEN_D = "0x1000000000000000000000000000000000000004"
TOKEN_E = "0x1000000000000000000000000000000000000005"

# 6-decimal token (USDC-like)
TOKEN_USD6 = "0x1000000000000000000000000000000000000006"

# =============================================================================
# Accounts
# =============================================================================

CONTROLLER = "0xc0c0000000000000000000000000000000000001"
STRANGER = "0xbad0000000000000000000000000000000000002"

# =============================================================================
# Time
# =============================================================================

T0 = 1_700_000_000
DAY = 86_400

# =============================================================================
# Fixed point
# =============================================================================

ONE = 10**18
