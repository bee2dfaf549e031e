"""
Chain Provider - Ethereum RPC access for inclusion tracking

The MEV-Share client never talks to a node directly; it goes through the
ChainProvider capability below. Web3ChainProvider implements it with web3.py
(AsyncWeb3 over HTTP) for lookups and a raw `eth_subscribe("newHeads")`
websocket for new block notifications.

File: mevshare/provider.py
"""

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional, Protocol, Tuple, runtime_checkable

import aiohttp
import websockets
from hexbytes import HexBytes
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import TransactionNotFound, Web3Exception

from .constants import DEFAULT_HTTP_TIMEOUT_SECONDS, JSONRPC_VERSION
from .errors import ProviderError
from .utils import format_hash, parse_quantity


@runtime_checkable
class ChainProvider(Protocol):
    """
    Chain-RPC capabilities used by the client.

    Lookups return None when the node does not know the hash. Headers from
    `subscribe_new_heads` are mappings with at least an int `number`.
    """

    async def get_chain_id(self) -> int: ...

    async def get_block_number(self) -> int: ...

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]: ...

    async def get_raw_transaction(self, tx_hash: str) -> Optional[HexBytes]: ...

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]: ...

    def subscribe_new_heads(self) -> AsyncIterator[Dict[str, Any]]: ...

    async def estimate_fees(self) -> Tuple[int, int]: ...


def websocket_url_for(http_url: str) -> str:
    """Derive a websocket endpoint from an HTTP endpoint (http->ws, https->wss)."""
    if http_url.startswith("https://"):
        return "wss://" + http_url[len("https://"):]
    if http_url.startswith("http://"):
        return "ws://" + http_url[len("http://"):]
    return http_url


class Web3ChainProvider:
    """
    ChainProvider backed by web3.py and a websocket subscription.

    Node failures surface as ProviderError; an unknown hash is not a failure.
    """

    def __init__(
        self,
        http_url: str,
        ws_url: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ):
        self.http_url = http_url
        self.ws_url = ws_url or websocket_url_for(http_url)
        self.timeout = timeout
        self.logger = logging.getLogger(f"{__name__}.Web3ChainProvider")

        self.web3 = AsyncWeb3(
            AsyncHTTPProvider(
                http_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)},
            )
        )

    async def _call(self, description: str, awaitable) -> Any:
        try:
            return await awaitable
        except TransactionNotFound:
            return None
        except (Web3Exception, aiohttp.ClientError, asyncio.TimeoutError, ValueError, OSError) as e:
            self.logger.debug(f"{description} failed: {e}")
            raise ProviderError(f"{description} failed: {e}") from e

    async def get_chain_id(self) -> int:
        return await self._call("eth_chainId", self.web3.eth.chain_id)

    async def get_block_number(self) -> int:
        return await self._call("eth_blockNumber", self.web3.eth.block_number)

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        tx = await self._call(
            f"eth_getTransactionByHash({format_hash(tx_hash)})",
            self.web3.eth.get_transaction(tx_hash),
        )
        return dict(tx) if tx is not None else None

    async def get_raw_transaction(self, tx_hash: str) -> Optional[HexBytes]:
        raw = await self._call(
            f"eth_getRawTransactionByHash({format_hash(tx_hash)})",
            self.web3.eth.get_raw_transaction(tx_hash),
        )
        return HexBytes(raw) if raw is not None else None

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        receipt = await self._call(
            f"eth_getTransactionReceipt({format_hash(tx_hash)})",
            self.web3.eth.get_transaction_receipt(tx_hash),
        )
        return dict(receipt) if receipt is not None else None

    async def estimate_fees(self) -> Tuple[int, int]:
        """
        Suggested EIP-1559 fees.

        Returns:
            (max_fee_per_gas, max_priority_fee_per_gas) in wei. The max fee
            leaves room for two full base fee increases.
        """
        block = await self._call("eth_getBlockByNumber(latest)", self.web3.eth.get_block("latest"))
        priority_fee = await self._call("eth_maxPriorityFeePerGas", self.web3.eth.max_priority_fee)
        base_fee = parse_quantity(block.get("baseFeePerGas")) or 0
        return base_fee * 2 + priority_fee, priority_fee

    async def subscribe_new_heads(self) -> AsyncIterator[Dict[str, Any]]:
        """
        Yield new block headers as they arrive.

        The websocket is closed when the generator is closed or cancelled.
        Header `number` is normalized to int.

        Raises:
            ProviderError: On connection failure or a rejected subscription
        """
        try:
            async with websockets.connect(self.ws_url) as websocket:
                await websocket.send(json.dumps({
                    "jsonrpc": JSONRPC_VERSION,
                    "id": 1,
                    "method": "eth_subscribe",
                    "params": ["newHeads"],
                }))

                subscription_id = None
                async for message in websocket:
                    data = json.loads(message)

                    if subscription_id is None and data.get("id") == 1:
                        if "error" in data:
                            raise ProviderError(f"eth_subscribe rejected: {data['error']}")
                        subscription_id = data.get("result")
                        self.logger.debug(f"Subscribed to newHeads ({subscription_id})")
                        continue

                    params = data.get("params") or {}
                    header = params.get("result")
                    if not isinstance(header, dict) or "number" not in header:
                        continue

                    header = dict(header)
                    header["number"] = parse_quantity(header["number"])
                    yield header

        except websockets.exceptions.ConnectionClosed as e:
            raise ProviderError(f"newHeads subscription closed: {e}") from e
        except (websockets.exceptions.WebSocketException, OSError, ValueError) as e:
            raise ProviderError(f"newHeads subscription failed: {e}") from e


__all__ = [
    "ChainProvider",
    "Web3ChainProvider",
    "websocket_url_for",
]
