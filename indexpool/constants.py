"""Protocol constants for index pools.

All weights are 18-decimal fixed-point fractions of ``ONE`` (100%).
"""

from indexpool.math.fixed_point import ONE_18

# 100% of pool value
ONE = ONE_18

# Floor for every end weight of a schedule (1%)
MIN_WEIGHT = 10**16

# Baseline weight for a token that has not reached its minimum balance, and
# for a token being wound down (1%)
UNINITIALIZED_WEIGHT = 10**16

# Pool membership bounds
MIN_TOKENS = 2
MAX_TOKENS = 50

ONE_DAY_SECONDS = 86_400

# Weight change speed cap: the steepest token moves at most 1% per day.
# duration = delta / ONE * ONE_DAY_SECONDS * WEIGHT_CHANGE_DAYS_PER_UNIT
WEIGHT_CHANGE_DAYS_PER_UNIT = 100

# Dampener applied to the shortfall premium of uninitialized tokens
UNINITIALIZED_SHORTFALL_DAMPENER = 10

# Asset manager placeholder used when registering tokens with the vault
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
