"""
API Package
===========

Observation sources.

Components:
- explorer.py: ExplorerClient, block explorer page fingerprinting (aiohttp)
- rpc.py: SupplyClient, totalSupply() reads through JSON-RPC (web3)
"""

from ..config import Config, MonitorMode
from .explorer import ExplorerClient, page_fingerprint
from .rpc import SupplyClient, ERC20_ABI


def build_source(config: Config):
    """Observation source for the configured mode."""
    if config.mode is MonitorMode.SUPPLY:
        return SupplyClient(config)
    return ExplorerClient(config)


__all__ = [
    "ExplorerClient",
    "page_fingerprint",
    "SupplyClient",
    "ERC20_ABI",
    "build_source",
]
