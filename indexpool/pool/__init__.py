"""Index pool package.

Provides IndexPool, its state, the reindex planner, the swap guard and the
vault and pricing collaborators.
"""

from .index_pool import GradualUpdateParams, IndexPool
from .pricing import (
    PricingFormula,
    SwapKind,
    SwapRequest,
    WeightedProductPricer,
    scaling_factor_for_decimals,
)
from .reindex import ReindexPlan, TokenClass, apply_reindex_plan, plan_reindex
from .state import PoolState, RemovalFlag, TokenRecord
from .swap_guard import check_swap_allowed, incoming_balance_and_weight, initialize_if_crossed
from .vault import InMemoryVault, Vault

__all__ = [
    # Pool
    "IndexPool",
    "GradualUpdateParams",
    "PoolState",
    "TokenRecord",
    "RemovalFlag",
    # Reindex
    "ReindexPlan",
    "TokenClass",
    "plan_reindex",
    "apply_reindex_plan",
    # Swap guard
    "check_swap_allowed",
    "incoming_balance_and_weight",
    "initialize_if_crossed",
    # Collaborators
    "Vault",
    "InMemoryVault",
    "PricingFormula",
    "WeightedProductPricer",
    "SwapKind",
    "SwapRequest",
    "scaling_factor_for_decimals",
]
