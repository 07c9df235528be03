"""
Raw JSON-RPC client for EVM chains (Base, Ethereum).

Serves as both the balance oracle (ERC-20 balanceOf through eth_call) and the
block resolver (block number for a unix timestamp).
"""
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx
from django.conf import settings

logger = logging.getLogger(__name__)

BALANCE_OF_SELECTOR = "0x70a08231"


class EvmRpcError(Exception):
    """Raised when an RPC endpoint is missing, unreachable or returns an error"""


class EvmRpcClient:
    """Direct RPC client for EVM chains"""

    def __init__(
        self,
        rpc_urls: Optional[Mapping[int, str]] = None,
        token_contracts: Optional[Mapping[int, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.rpc_urls = dict(rpc_urls if rpc_urls is not None else getattr(settings, "EVM_RPC_URLS", {}))
        self.token_contracts = dict(
            token_contracts if token_contracts is not None else getattr(settings, "REWARDS_TOKEN_CONTRACTS", {})
        )
        self.timeout = timeout if timeout is not None else getattr(settings, "EVM_RPC_TIMEOUT", 15.0)
        self.transport = transport
        self._request_id = 0
        self._block_cache: Dict[Tuple[int, int], int] = {}

    def _next_id(self) -> int:
        """Get next request ID"""
        self._request_id += 1
        return self._request_id

    def execute_rpc(self, chain_id: int, method: str, params: list) -> Any:
        """
        Execute a raw RPC call

        Args:
            chain_id: Chain whose configured endpoint receives the call
            method: RPC method name
            params: List of parameters

        Returns:
            The `result` member of the RPC response
        """
        rpc_url = self.rpc_urls.get(chain_id)
        if not rpc_url:
            raise EvmRpcError(f"No RPC URL configured for chain {chain_id}")

        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params,
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    rpc_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise EvmRpcError(f"RPC call {method} on chain {chain_id} failed: {exc}") from exc

        result = response.json()
        if "error" in result:
            raise EvmRpcError(f"RPC error: {result['error']}")

        return result.get("result")

    def balance_of(self, address: str, block_number: Optional[int], chain_id: int) -> int:
        """Raw token balance of `address`; `block_number=None` reads the latest block."""
        contract = self.token_contracts.get(chain_id)
        if not contract:
            raise EvmRpcError(f"No token contract configured for chain {chain_id}")

        account = address.lower().replace("0x", "", 1)
        call = {"to": contract, "data": BALANCE_OF_SELECTOR + account.rjust(64, "0")}
        block_tag = hex(block_number) if block_number is not None else "latest"

        result = self.execute_rpc(chain_id, "eth_call", [call, block_tag])
        if not result or result == "0x":
            return 0
        return int(result, 16)

    def get_block_number(self, chain_id: int) -> int:
        return int(self.execute_rpc(chain_id, "eth_blockNumber", []), 16)

    def get_block_timestamp(self, block_number: int, chain_id: int) -> int:
        block = self.execute_rpc(chain_id, "eth_getBlockByNumber", [hex(block_number), False])
        if not block:
            raise EvmRpcError(f"Block {block_number} not found on chain {chain_id}")
        return int(block["timestamp"], 16)

    def get_block_by_timestamp(self, ts: int, chain_id: int) -> int:
        """Last block mined at or before `ts` (binary search, cached per chain/ts)."""
        cache_key = (chain_id, ts)
        if cache_key in self._block_cache:
            return self._block_cache[cache_key]

        latest = self.get_block_number(chain_id)
        if self.get_block_timestamp(latest, chain_id) <= ts:
            block_number = latest
        else:
            low, high = 0, latest
            while low < high:
                mid = (low + high + 1) // 2
                if self.get_block_timestamp(mid, chain_id) <= ts:
                    low = mid
                else:
                    high = mid - 1
            block_number = low

        logger.info("Resolved timestamp %s to block %s on chain %s", ts, block_number, chain_id)
        self._block_cache[cache_key] = block_number
        return block_number
