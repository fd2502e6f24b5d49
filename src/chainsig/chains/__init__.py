"""Chain adapters for multi-chain support."""

from .base import ChainAdapter, PreparedTransaction
from .near import NearAdapter, NearChainConfig, NEARNetworks

__all__ = [
    "ChainAdapter",
    "PreparedTransaction",
    "NearAdapter",
    "NearChainConfig",
    "NEARNetworks",
]
