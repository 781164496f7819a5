"""
RPC Supply Client

Single responsibility: read totalSupply() (plus display metadata) from an
ERC-20 style contract through a JSON-RPC endpoint.
"""

import asyncio
import logging
from typing import Optional

from web3 import Web3
from web3.exceptions import Web3Exception

from ..config import Config
from ..errors import FetchError, UpstreamNotReadyError
from ..models import Observation

logger = logging.getLogger(__name__)

# Minimal ERC-20 view ABI
ERC20_ABI = [
    {
        "name": "totalSupply",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "decimals",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "name": "symbol",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]

# Errors raised by web3 and its HTTP transport (requests errors are OSErrors)
_RPC_ERRORS = (Web3Exception, OSError, ValueError)


def connect(url: str, timeout: float) -> Web3:
    return Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout}))


class SupplyClient:
    """
    Reads a token's total supply.

    The Web3 instance is built from the config unless one is injected.
    """

    def __init__(self, config: Config, w3: Optional[Web3] = None):
        self.rpc_url = config.rpc_url
        self.address = Web3.to_checksum_address(config.contract_address)
        self.w3 = w3 if w3 is not None else connect(config.rpc_url, config.http_timeout_sec)
        self._contract = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    @property
    def contract(self):
        if self._contract is None:
            self._contract = self.w3.eth.contract(address=self.address, abi=ERC20_ABI)
        return self._contract

    def _optional_view(self, name: str):
        """Call a display-only view; None if the contract does not have it."""
        try:
            return getattr(self.contract.functions, name)().call()
        except _RPC_ERRORS as e:
            logger.debug(f"{name}() unavailable on {self.address}: {e}")
            return None

    def read(self) -> Observation:
        """
        Read the current total supply (blocking).

        Raises:
            UpstreamNotReadyError: The node reports it is still syncing
            FetchError: The node or the contract call failed
        """
        logger.info(f"Reading totalSupply() of {self.address}")

        try:
            syncing = self.w3.eth.syncing
        except _RPC_ERRORS as e:
            raise FetchError(f"RPC unreachable: {e}") from e
        if syncing:
            raise UpstreamNotReadyError("RPC node is still syncing")

        try:
            supply = self.contract.functions.totalSupply().call()
        except _RPC_ERRORS as e:
            raise FetchError(f"totalSupply() call failed: {e}") from e

        decimals = self._optional_view("decimals")
        symbol = self._optional_view("symbol")

        return Observation.supply(
            value=int(supply),
            decimals=int(decimals) if decimals is not None else None,
            symbol=symbol or None,
            source_url=self.rpc_url,
        )

    async def fetch(self) -> Observation:
        """Run read() in a worker thread so the event loop is not blocked."""
        return await asyncio.to_thread(self.read)
