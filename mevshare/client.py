"""
MEV-Share Client

Facade over the signed JSON-RPC relay client, the SSE event stream, the
event-history REST API and the inclusion waiter. Submissions return pending
handles whose `inclusion()` waits on chain for the outcome.

Usage:
    async with MevShareClient(auth_signer, provider, network=1) as client:
        pending = await client.send_private_transaction(
            SendTransactionParams.build(raw_tx, hints=[HintPreference.HASH])
        )
        receipt, block = await pending.inclusion()

File: mevshare/client.py
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Union

import aiohttp

from .bundle import SendBundleParams, SignedTx, TxRef
from .constants import DEFAULT_HTTP_TIMEOUT_SECONDS, TX_WAIT_MAX_BLOCKS, MevShareMethod
from .errors import ProviderError, ResponseDeserializationError
from .networks import MevShareNetwork, Network, get_network
from .pending import PendingBundle, PendingTransaction
from .provider import ChainProvider
from .rest_client import MevShareRestClient
from .rpc_client import MevShareRpcClient
from .schemas import (
    EventHistory,
    EventHistoryInfo,
    GetEventHistoryParams,
    SendBundleResponse,
    SendTransactionParams,
    SimulateBundleParams,
    SimulateBundleResponse,
)
from .stream import MevShareStream, StreamItem
from .utils import format_hash, normalize_hash, to_quantity
from .waiter import InclusionWaiter

NetworkSelector = Union[Network, str, int, MevShareNetwork]


class MevShareClient:
    """
    Client for one MEV-Share network.

    Args:
        auth_signer: Account used to sign relay requests (`.address`,
            `.sign_message`). It identifies the searcher, it does not pay.
        provider: ChainProvider for the same chain
        network: Network, name, chain id or MevShareNetwork
        session: Optional aiohttp session shared by the HTTP clients; the
            caller keeps ownership
        timeout: HTTP timeout in seconds

    Raises:
        UnsupportedNetwork: No MEV-Share endpoints for `network`
    """

    def __init__(
        self,
        auth_signer: Any,
        provider: ChainProvider,
        network: NetworkSelector,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ):
        self.network = get_network(network)
        self.auth_signer = auth_signer
        self.provider = provider
        self.logger = logging.getLogger(f"{__name__}.MevShareClient")

        self.rpc = MevShareRpcClient(self.network.api_url, auth_signer, session=session, timeout=timeout)
        self.rest = MevShareRestClient(self.network.rest_url, session=session, timeout=timeout)
        self.stream = MevShareStream(self.network.stream_url, session=session)
        self.waiter = InclusionWaiter(provider)

        self.logger.info(
            f"MEV-Share client for {self.network.name} (chain {self.network.chain_id}), "
            f"auth {auth_signer.address}"
        )

    @classmethod
    async def from_provider(
        cls,
        auth_signer: Any,
        provider: ChainProvider,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ) -> "MevShareClient":
        """Build a client for the chain the provider is connected to."""
        chain_id = await provider.get_chain_id()
        return cls(auth_signer, provider, chain_id, session=session, timeout=timeout)

    async def close(self) -> None:
        await self.rpc.close()
        await self.rest.close()

    async def __aenter__(self) -> "MevShareClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    async def send_private_transaction(self, params: SendTransactionParams) -> PendingTransaction:
        """
        Send a signed transaction to the relay (`eth_sendPrivateTransaction`).

        Returns:
            PendingTransaction for the returned transaction hash
        """
        result = await self.rpc.post(MevShareMethod.SEND_PRIVATE_TRANSACTION, [params])
        try:
            tx_hash = normalize_hash(result)
        except ValueError as e:
            raise ResponseDeserializationError(str(result), reason=str(e)) from e
        self.logger.info(f"Private transaction accepted: {format_hash(tx_hash)}")
        return PendingTransaction(
            hash=tx_hash, waiter=self.waiter, max_block=params.max_block_number
        )

    async def send_bundle(self, params: SendBundleParams) -> PendingBundle:
        """Send a bundle to the relay (`mev_sendBundle`)."""
        response = await self.rpc.post(
            MevShareMethod.SEND_BUNDLE, [params], response_model=SendBundleResponse
        )
        self.logger.info(
            f"Bundle accepted: {format_hash(response.bundle_hash)} "
            f"(blocks {params.inclusion.block}-{params.inclusion.effective_max_block})"
        )
        return PendingBundle(hash=response.bundle_hash, request=params, waiter=self.waiter)

    async def simulate_bundle(
        self,
        params: SendBundleParams,
        sim_options: Optional[SimulateBundleParams] = None,
    ) -> SimulateBundleResponse:
        """
        Simulate a bundle (`mev_simBundle`).

        When the first body element references a transaction by hash, waits
        for it to land (up to TX_WAIT_MAX_BLOCKS past the target block),
        replaces the reference with its raw signed bytes and simulates on top
        of the block before it, unless `sim_options.parent_block` is set.

        Raises:
            TransactionTimeout: The referenced transaction did not land
            ProviderError: Its raw bytes could not be fetched
        """
        sim_options = sim_options or SimulateBundleParams()

        first = params.body[0] if params.body else None
        if isinstance(first, TxRef):
            max_block = params.inclusion.block + TX_WAIT_MAX_BLOCKS
            self.logger.info(
                f"Waiting for {format_hash(first.hash)} to land before simulating"
            )
            _, landed_block = await self.waiter.wait_for_tx(first.hash, max_block)

            raw = await self.provider.get_raw_transaction(first.hash)
            if raw is None:
                raise ProviderError(f"Raw transaction {first.hash} not available")

            params = params.with_body((SignedTx(tx=raw, can_revert=False), *params.body[1:]))
            if sim_options.parent_block is None:
                sim_options = sim_options.model_copy(update={"parent_block": landed_block - 1})

        return await self.rpc.post(
            MevShareMethod.SIM_BUNDLE, [params, sim_options], response_model=SimulateBundleResponse
        )

    # =========================================================================
    # STATS
    # =========================================================================

    async def get_user_stats(self, block_number: int) -> Dict[str, Any]:
        """Searcher reputation stats for the auth key (`flashbots_getUserStatsV2`)."""
        return await self.rpc.post(
            MevShareMethod.GET_USER_STATS, [{"blockNumber": to_quantity(block_number)}]
        )

    async def get_bundle_stats(self, bundle_hash: str, block_number: int) -> Dict[str, Any]:
        """Relay and builder status of a submitted bundle (`flashbots_getBundleStatsV2`)."""
        return await self.rpc.post(
            MevShareMethod.GET_BUNDLE_STATS,
            [{"bundleHash": normalize_hash(bundle_hash), "blockNumber": to_quantity(block_number)}],
        )

    # =========================================================================
    # EVENTS
    # =========================================================================

    def subscribe_events(self) -> AsyncIterator[StreamItem]:
        """Live MEV-Share events; see MevShareStream.subscribe."""
        return self.stream.subscribe()

    async def get_event_history_info(self) -> EventHistoryInfo:
        return await self.rest.get_event_history_info()

    async def get_event_history(
        self, params: Optional[GetEventHistoryParams] = None
    ) -> List[EventHistory]:
        return await self.rest.get_event_history(params)


__all__ = ["MevShareClient"]
