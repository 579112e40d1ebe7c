"""API endpoints for the index pool service."""

from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Depends, Header

from indexpool.models.api import (
    CreatePoolRequest,
    ErrorResponse,
    PoolResponse,
    PoolSwapRequest,
    ReindexRequest,
    ReweighRequest,
    SwapResponse,
    TokenState,
)
from indexpool.pool import IndexPool
from indexpool.pool.pricing import SwapKind
from indexpool.service import PoolService, get_default_service

logger = structlog.get_logger()

router = APIRouter(
    prefix="/pools",
    responses={
        400: {"model": ErrorResponse, "description": "Operation rejected"},
        403: {"model": ErrorResponse, "description": "Caller is not the controller"},
        404: {"model": ErrorResponse, "description": "Unknown pool"},
    },
)


def get_service() -> PoolService:
    """Dependency provider for the pool service.

    Override this in tests to inject a fresh service:
        app.dependency_overrides[get_service] = lambda: service
    """
    return get_default_service()


def get_clock() -> int:
    """Dependency provider for the current timestamp in seconds.

    Override this in tests to control time:
        app.dependency_overrides[get_clock] = lambda: 1_700_000_000
    """
    return int(datetime.now(UTC).timestamp())


def _pool_response(service: PoolService, pool: IndexPool, now: int) -> PoolResponse:
    params = pool.get_gradual_weight_update_params()
    weights = pool.get_normalized_weights(now)
    balances = service.balances(pool.pool_id)
    tokens = []
    for i, token in enumerate(pool.get_tokens()):
        record = pool.get_token_record(token)
        tokens.append(
            TokenState(
                token=token,
                weight=weights[i],
                start_weight=params.start_weights[i],
                end_weight=params.end_weights[i],
                new_token_target_weight=params.new_token_target_weights[i],
                minimum_balance=pool.min_balance(token),
                balance=balances[token],
                scaling_factor=record.scaling_factor,
                removing=record.marked_for_removal,
            )
        )
    return PoolResponse(
        id=pool.pool_id,
        controller=pool.controller,
        swap_enabled=pool.swap_enabled,
        state=pool.schedule_state(now).value,
        start_time=params.start_time,
        end_time=params.end_time,
        tokens=tokens,
        removable_tokens=pool.removable_tokens(now),
    )


@router.post("", status_code=201)
async def create_pool(
    body: CreatePoolRequest,
    caller: str = Header(alias="X-Caller"),
    service: PoolService = Depends(get_service),
    now: int = Depends(get_clock),
) -> PoolResponse:
    """Create a pool controlled by the caller."""
    pool = service.create_pool(
        body.tokens,
        [int(w) for w in body.weights],
        caller,
        now,
        balances=[int(b) for b in body.balances] if body.balances is not None else None,
        decimals=body.decimals,
        swap_enabled=body.swap_enabled,
    )
    return _pool_response(service, pool, now)


@router.get("/{pool_id}")
async def get_pool(
    pool_id: str,
    service: PoolService = Depends(get_service),
    now: int = Depends(get_clock),
) -> PoolResponse:
    """Pool state at the current time."""
    return _pool_response(service, service.get_pool(pool_id), now)


@router.post("/{pool_id}/reweigh")
async def reweigh(
    pool_id: str,
    body: ReweighRequest,
    caller: str = Header(alias="X-Caller"),
    service: PoolService = Depends(get_service),
    now: int = Depends(get_clock),
) -> PoolResponse:
    """Start a gradual weight change of the current members."""
    pool = service.get_pool(pool_id)
    pool.reweigh_tokens(caller, body.tokens, [int(w) for w in body.desired_weights], now)
    return _pool_response(service, pool, now)


@router.post("/{pool_id}/reindex")
async def reindex(
    pool_id: str,
    body: ReindexRequest,
    caller: str = Header(alias="X-Caller"),
    service: PoolService = Depends(get_service),
    now: int = Depends(get_clock),
) -> PoolResponse:
    """Change basket membership and start the weight change."""
    pool = service.get_pool(pool_id)
    pool.reindex_tokens(
        caller,
        body.tokens,
        [int(w) for w in body.desired_weights],
        [int(b) for b in body.minimum_balances],
        now,
    )
    return _pool_response(service, pool, now)


@router.post("/{pool_id}/swap")
async def swap(
    pool_id: str,
    body: PoolSwapRequest,
    service: PoolService = Depends(get_service),
    now: int = Depends(get_clock),
) -> SwapResponse:
    """Swap through the vault against the pool."""
    amount_in, amount_out = service.swap(
        pool_id,
        SwapKind(body.kind),
        body.token_in,
        body.token_out,
        int(body.amount),
        now,
    )
    logger.info(
        "swap_executed",
        pool_id=pool_id,
        token_in=body.token_in,
        token_out=body.token_out,
        amount_in=amount_in,
        amount_out=amount_out,
    )
    return SwapResponse(amount_in=amount_in, amount_out=amount_out)
