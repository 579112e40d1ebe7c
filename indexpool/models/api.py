"""Pydantic models for the index pool HTTP API.

Weights and balances travel as uint256 decimal strings with 18-decimal fixed
point for weights (``"1000000000000000000"`` is 100%).
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from indexpool.models.types import Address, Uint256


class CreatePoolRequest(BaseModel):
    """Create a pool and seed its balances."""

    tokens: list[Address] = Field(description="Initial member tokens.")
    weights: list[Uint256] = Field(description="Initial weights, summing to 1e18.")
    balances: list[Uint256] | None = Field(
        default=None,
        description="Initial vault balances in native decimals. Defaults to zero.",
    )
    decimals: dict[Address, int] = Field(
        default_factory=dict,
        description="Token decimals. Tokens not listed have 18.",
    )
    swap_enabled: bool = Field(default=True, alias="swapEnabled")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def check_balances_length(self) -> "CreatePoolRequest":
        if self.balances is not None and len(self.balances) != len(self.tokens):
            raise ValueError("balances must have one entry per token")
        return self


class ReweighRequest(BaseModel):
    """Gradually retarget the weights of the current members."""

    tokens: list[Address]
    desired_weights: list[Uint256] = Field(alias="desiredWeights")

    model_config = {"populate_by_name": True}


class ReindexRequest(BaseModel):
    """Change basket membership and retarget weights."""

    tokens: list[Address]
    desired_weights: list[Uint256] = Field(alias="desiredWeights")
    minimum_balances: list[Uint256] = Field(alias="minimumBalances")

    model_config = {"populate_by_name": True}


class PoolSwapRequest(BaseModel):
    """Swap against a pool through the vault."""

    kind: Literal["given_in", "given_out"] = "given_in"
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount: Uint256

    model_config = {"populate_by_name": True}


class SwapResponse(BaseModel):
    """Settled swap amounts in native decimals."""

    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class TokenState(BaseModel):
    """Live state of one member token."""

    token: Address
    weight: Uint256 = Field(description="Live interpolated weight.")
    start_weight: Uint256 = Field(alias="startWeight")
    end_weight: Uint256 = Field(alias="endWeight")
    new_token_target_weight: Uint256 = Field(alias="newTokenTargetWeight")
    minimum_balance: Uint256 = Field(
        alias="minimumBalance",
        description="Initialization threshold, 0 once the token is initialized.",
    )
    balance: Uint256
    scaling_factor: Uint256 = Field(alias="scalingFactor")
    removing: bool = Field(description="Whether the token is flagged for removal.")

    model_config = {"populate_by_name": True}


class PoolResponse(BaseModel):
    """Pool state at the service clock."""

    id: str
    controller: Address
    swap_enabled: bool = Field(alias="swapEnabled")
    state: Literal["settled", "rebalancing"]
    start_time: int = Field(alias="startTime")
    end_time: int = Field(alias="endTime")
    tokens: list[TokenState]
    removable_tokens: list[Address] = Field(alias="removableTokens")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Error body returned for rejected operations."""

    error: str = Field(description="Error class name.")
    detail: str
