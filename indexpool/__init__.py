"""Index pool weight engine."""

from indexpool.pool import IndexPool, InMemoryVault
from indexpool.service import PoolService, get_default_service

__version__ = "0.1.0"
__all__ = ["IndexPool", "InMemoryVault", "PoolService", "get_default_service", "__version__"]
