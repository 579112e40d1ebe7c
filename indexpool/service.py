"""Pool service: the vault plus every pool created through it.

The HTTP layer talks to a ``PoolService``; tests build their own and inject
it through the ``get_service`` dependency.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import structlog

from indexpool.config import DEFAULT_POOL_CONFIG, PoolConfig
from indexpool.errors import UnknownPool
from indexpool.models.types import normalize_address
from indexpool.pool import IndexPool, InMemoryVault
from indexpool.pool.pricing import SwapKind, SwapRequest

logger = structlog.get_logger()


class PoolService:
    """Creates pools on a shared vault and routes operations to them.

    Token decimals are kept service-wide: a token registered with some
    decimals keeps them for every pool, including pools that add it later
    through a reindex.
    """

    def __init__(
        self,
        vault: InMemoryVault | None = None,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
    ) -> None:
        self.vault = vault or InMemoryVault()
        self.config = config
        self._decimals: dict[str, int] = {}
        self._pool_ids: list[str] = []

    def token_decimals(self, token: str) -> int:
        return self._decimals.get(normalize_address(token), 18)

    def create_pool(
        self,
        tokens: Sequence[str],
        weights: Sequence[int],
        controller: str,
        now: int,
        *,
        balances: Sequence[int] | None = None,
        decimals: Mapping[str, int] | None = None,
        swap_enabled: bool = True,
    ) -> IndexPool:
        """Create a pool and seed its vault balances."""
        for token, value in (decimals or {}).items():
            self._decimals[normalize_address(token)] = value

        pool = IndexPool.create(
            self.vault,
            tokens,
            weights,
            controller,
            now,
            config=self.config,
            token_decimals=self.token_decimals,
            swap_enabled=swap_enabled,
        )
        if balances is not None:
            for token, balance in zip(pool.get_tokens(), balances, strict=True):
                self.vault.set_balance(pool.pool_id, token, balance)

        self._pool_ids.append(pool.pool_id)
        return pool

    def get_pool(self, pool_id: str) -> IndexPool:
        """Look up a pool created by this service.

        Raises:
            UnknownPool: If no such pool exists
        """
        if pool_id not in self._pool_ids:
            raise UnknownPool(f"Pool {pool_id} does not exist")
        return self.vault.get_pool(pool_id)

    def balances(self, pool_id: str) -> dict[str, int]:
        tokens, balances = self.vault.get_pool_tokens(pool_id)
        return dict(zip(tokens, balances, strict=True))

    def swap(
        self,
        pool_id: str,
        kind: SwapKind,
        token_in: str,
        token_out: str,
        amount: int,
        now: int,
    ) -> tuple[int, int]:
        """Swap through the vault.

        Returns:
            Tuple of (amount_in, amount_out) in native decimals
        """
        self.get_pool(pool_id)
        request = SwapRequest(kind=kind, token_in=token_in, token_out=token_out, amount=amount)
        return self.vault.swap(pool_id, request, now)


def _create_default_service() -> PoolService:
    logger.info("pool_service_created")
    return PoolService()


_default_service: PoolService | None = None


def get_default_service() -> PoolService:
    """Process-wide service used by the HTTP API, created on first use."""
    global _default_service
    if _default_service is None:
        _default_service = _create_default_service()
    return _default_service
