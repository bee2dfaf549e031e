"""
MEV-Share Network Endpoints

Maps chain ids (or explicit network names) to the pair of MEV-Share base
URLs: the SSE event stream and the JSON-RPC relay. Unsupported chains are
rejected when the client is built, never lazily at request time.

File: mevshare/networks.py
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union

from .constants import REST_API_PATH
from .errors import UnsupportedNetwork


class Network(str, Enum):
    """Named MEV-Share deployments."""
    MAINNET = "mainnet"
    GOERLI = "goerli"
    SEPOLIA = "sepolia"


@dataclass(frozen=True)
class MevShareNetwork:
    """Endpoints for one MEV-Share deployment."""

    name: str
    chain_id: int
    stream_url: str
    api_url: str

    @property
    def rest_url(self) -> str:
        """Base URL of the event-history REST API."""
        return f"{self.stream_url.rstrip('/')}/{REST_API_PATH}"


MAINNET = MevShareNetwork(
    name=Network.MAINNET.value,
    chain_id=1,
    stream_url="https://mev-share.flashbots.net",
    api_url="https://relay.flashbots.net",
)

GOERLI = MevShareNetwork(
    name=Network.GOERLI.value,
    chain_id=5,
    stream_url="https://mev-share-goerli.flashbots.net",
    api_url="https://relay-goerli.flashbots.net",
)

SEPOLIA = MevShareNetwork(
    name=Network.SEPOLIA.value,
    chain_id=11155111,
    stream_url="https://mev-share-sepolia.flashbots.net",
    api_url="https://relay-sepolia.flashbots.net",
)

NETWORKS: Dict[Network, MevShareNetwork] = {
    Network.MAINNET: MAINNET,
    Network.GOERLI: GOERLI,
    Network.SEPOLIA: SEPOLIA,
}

NETWORKS_BY_CHAIN_ID: Dict[int, MevShareNetwork] = {
    network.chain_id: network for network in NETWORKS.values()
}


def get_network(network: Union[Network, str, int, MevShareNetwork]) -> MevShareNetwork:
    """
    Resolve a network selector to its MEV-Share endpoints.

    Args:
        network: A Network, a network name ("mainnet"), a chain id, or an
            already resolved MevShareNetwork (returned unchanged)

    Returns:
        The matching MevShareNetwork

    Raises:
        UnsupportedNetwork: If nothing matches
    """
    if isinstance(network, MevShareNetwork):
        return network

    if isinstance(network, Network):
        return NETWORKS[network]

    if isinstance(network, str):
        try:
            return NETWORKS[Network(network.lower())]
        except ValueError:
            raise UnsupportedNetwork(network) from None

    if isinstance(network, int) and not isinstance(network, bool):
        resolved = NETWORKS_BY_CHAIN_ID.get(network)
        if resolved is None:
            raise UnsupportedNetwork(network)
        return resolved

    raise UnsupportedNetwork(network)
