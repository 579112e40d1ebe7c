"""Token custody collaborator.

The vault is the authority on which tokens a pool holds and how much of each.
``InMemoryVault`` keeps that in dictionaries and routes swaps through the
pool's ``on_swap`` hook, updating balances with the result.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Protocol

import structlog

from indexpool.errors import UnknownPool, UnknownToken, VaultError
from indexpool.models.types import normalize_address

from .pricing import SwapKind, SwapRequest

if TYPE_CHECKING:
    from .index_pool import IndexPool

logger = structlog.get_logger()


class Vault(Protocol):
    """What an index pool needs from the custody service."""

    def register_pool(self, pool: IndexPool) -> str: ...

    def register_tokens(
        self, pool_id: str, tokens: Sequence[str], managers: Sequence[str]
    ) -> None: ...

    def get_pool_tokens(self, pool_id: str) -> tuple[list[str], list[int]]: ...


class InMemoryVault:
    """Vault keeping pool registrations and balances in memory."""

    def __init__(self) -> None:
        self._pools: dict[str, IndexPool] = {}
        # pool_id -> token -> balance, in registration order
        self._balances: dict[str, dict[str, int]] = {}
        self._managers: dict[str, dict[str, str]] = {}

    def register_pool(self, pool: IndexPool) -> str:
        pool_id = f"0x{len(self._pools) + 1:064x}"
        self._pools[pool_id] = pool
        self._balances[pool_id] = {}
        self._managers[pool_id] = {}
        logger.debug("vault_pool_registered", pool_id=pool_id)
        return pool_id

    def get_pool(self, pool_id: str) -> IndexPool:
        pool = self._pools.get(pool_id)
        if pool is None:
            raise UnknownPool(f"Pool {pool_id} is not registered")
        return pool

    def register_tokens(self, pool_id: str, tokens: Sequence[str], managers: Sequence[str]) -> None:
        """Register tokens for a pool with zero balance.

        Raises:
            UnknownPool: If the pool is not registered
            VaultError: If lengths differ or a token is already registered
        """
        balances = self._pool_balances(pool_id)
        if len(tokens) != len(managers):
            raise VaultError("tokens and managers must have the same length")
        already = [t for t in tokens if t in balances]
        if already or len(set(tokens)) != len(tokens):
            raise VaultError(f"Tokens already registered: {already or list(tokens)}")

        for token, manager in zip(tokens, managers, strict=True):
            balances[token] = 0
            self._managers[pool_id][token] = manager

        logger.info("vault_tokens_registered", pool_id=pool_id, tokens=list(tokens))

    def get_pool_tokens(self, pool_id: str) -> tuple[list[str], list[int]]:
        balances = self._pool_balances(pool_id)
        return list(balances), list(balances.values())

    def get_token_info(self, pool_id: str, token: str) -> tuple[int, str]:
        """Balance and asset manager of one registered token."""
        token = normalize_address(token)
        balances = self._pool_balances(pool_id)
        if token not in balances:
            raise UnknownToken(f"Token {token} is not registered for pool {pool_id}")
        return balances[token], self._managers[pool_id][token]

    def set_balance(self, pool_id: str, token: str, balance: int) -> None:
        """Set a registered token's balance directly (seeding liquidity)."""
        token = normalize_address(token)
        balances = self._pool_balances(pool_id)
        if token not in balances:
            raise UnknownToken(f"Token {token} is not registered for pool {pool_id}")
        if balance < 0:
            raise VaultError(f"Balance cannot be negative: {balance}")
        balances[token] = balance

    def swap(self, pool_id: str, request: SwapRequest, now: int) -> tuple[int, int]:
        """Execute a swap through the pool and settle balances.

        Returns:
            Tuple of (amount_in, amount_out) in native decimals
        """
        pool = self.get_pool(pool_id)
        balances = self._pool_balances(pool_id)
        request = replace(
            request,
            token_in=normalize_address(request.token_in),
            token_out=normalize_address(request.token_out),
        )
        for token in (request.token_in, request.token_out):
            if token not in balances:
                raise UnknownToken(f"Token {token} is not registered for pool {pool_id}")

        calculated = pool.on_swap(
            request,
            balances[request.token_in],
            balances[request.token_out],
            now,
        )
        if request.kind is SwapKind.GIVEN_IN:
            amount_in, amount_out = request.amount, calculated
        else:
            amount_in, amount_out = calculated, request.amount

        if amount_out > balances[request.token_out]:
            raise VaultError("Swap output exceeds pool balance")

        balances[request.token_in] += amount_in
        balances[request.token_out] -= amount_out

        logger.debug(
            "vault_swap_settled",
            pool_id=pool_id,
            token_in=request.token_in,
            token_out=request.token_out,
            amount_in=amount_in,
            amount_out=amount_out,
        )
        return amount_in, amount_out

    def _pool_balances(self, pool_id: str) -> dict[str, int]:
        balances = self._balances.get(pool_id)
        if balances is None:
            raise UnknownPool(f"Pool {pool_id} is not registered")
        return balances
