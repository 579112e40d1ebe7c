"""Pydantic models for the index pool HTTP service."""

from indexpool.models.api import (
    CreatePoolRequest,
    ErrorResponse,
    PoolResponse,
    ReindexRequest,
    ReweighRequest,
    TokenState,
    PoolSwapRequest,
    SwapResponse,
)
from indexpool.models.types import Address, Uint256
