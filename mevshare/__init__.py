"""
MEV-Share client.

Submit private transactions and bundles to the Flashbots MEV-Share relay,
follow the relay's event stream and wait for submissions to land on chain.
"""

from .bundle import (
    BodyHashIterator,
    Inclusion,
    Metadata,
    NestedBundle,
    Refund,
    RefundConfig,
    SendBundleParams,
    SignedTx,
    TxRef,
    Validity,
)
from .client import MevShareClient
from .config import MevShareConfig
from .constants import TX_WAIT_MAX_BLOCKS, HintPreference, KnownBuilder, MevShareMethod
from .errors import (
    BundleDiscard,
    BundleRevert,
    BundleTimeout,
    InclusionError,
    MevShareError,
    ProviderError,
    ResponseDeserializationError,
    RpcError,
    SigningError,
    TransactionRevert,
    TransactionTimeout,
    TransportError,
    UnsupportedNetwork,
)
from .networks import GOERLI, MAINNET, SEPOLIA, MevShareNetwork, Network, get_network
from .pending import PendingBundle, PendingTransaction
from .provider import ChainProvider, Web3ChainProvider
from .rest_client import MevShareRestClient
from .rpc_client import MevShareRpcClient
from .schemas import (
    EventHistory,
    EventHistoryInfo,
    EventTransaction,
    GetEventHistoryParams,
    MevShareEvent,
    Privacy,
    SendBundleResponse,
    SendTransactionParams,
    SimulateBundleParams,
    SimulateBundleResponse,
)
from .stream import MevShareStream
from .utils import setup_logging
from .waiter import InclusionWaiter

__version__ = "0.1.0"

__all__ = [
    "BodyHashIterator",
    "Inclusion",
    "Metadata",
    "NestedBundle",
    "Refund",
    "RefundConfig",
    "SendBundleParams",
    "SignedTx",
    "TxRef",
    "Validity",
    "MevShareClient",
    "MevShareConfig",
    "TX_WAIT_MAX_BLOCKS",
    "HintPreference",
    "KnownBuilder",
    "MevShareMethod",
    "BundleDiscard",
    "BundleRevert",
    "BundleTimeout",
    "InclusionError",
    "MevShareError",
    "ProviderError",
    "ResponseDeserializationError",
    "RpcError",
    "SigningError",
    "TransactionRevert",
    "TransactionTimeout",
    "TransportError",
    "UnsupportedNetwork",
    "GOERLI",
    "MAINNET",
    "SEPOLIA",
    "MevShareNetwork",
    "Network",
    "get_network",
    "PendingBundle",
    "PendingTransaction",
    "ChainProvider",
    "Web3ChainProvider",
    "MevShareRestClient",
    "MevShareRpcClient",
    "EventHistory",
    "EventHistoryInfo",
    "EventTransaction",
    "GetEventHistoryParams",
    "MevShareEvent",
    "Privacy",
    "SendBundleResponse",
    "SendTransactionParams",
    "SimulateBundleParams",
    "SimulateBundleResponse",
    "MevShareStream",
    "setup_logging",
    "InclusionWaiter",
]
