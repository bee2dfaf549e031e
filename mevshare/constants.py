"""
Constants for the MEV-Share client.

JSON-RPC method names, header names, hint and builder identifiers and the
default inclusion window used when the caller does not bound a wait.

File: mevshare/constants.py
"""

from enum import Enum

# =============================================================================
# JSON-RPC
# =============================================================================

JSONRPC_VERSION = "2.0"

SIGNATURE_HEADER = "X-Flashbots-Signature"
CONTENT_TYPE_JSON = "application/json"


class MevShareMethod(str, Enum):
    """JSON-RPC methods accepted by the MEV-Share relay (case-sensitive)."""
    SEND_PRIVATE_TRANSACTION = "eth_sendPrivateTransaction"
    SEND_BUNDLE = "mev_sendBundle"
    SIM_BUNDLE = "mev_simBundle"
    GET_USER_STATS = "flashbots_getUserStatsV2"
    GET_BUNDLE_STATS = "flashbots_getBundleStatsV2"


# =============================================================================
# INCLUSION
# =============================================================================

# Flashbots keeps retrying a private transaction for about 25 blocks.
# https://docs.flashbots.net/flashbots-auction/searchers/advanced/private-transaction
TX_WAIT_MAX_BLOCKS = 25

BUNDLE_VERSION = "v0.1"

# =============================================================================
# REST / STREAM
# =============================================================================

REST_API_PATH = "api/v1"
HISTORY_INFO_PATH = "history/info"
HISTORY_PATH = "history"

DEFAULT_HTTP_TIMEOUT_SECONDS = 30

# =============================================================================
# PRIVACY
# =============================================================================

class HintPreference(str, Enum):
    """Data about a submission that may be shared with searchers."""
    CALLDATA = "calldata"                   # transaction calldata
    CONTRACT_ADDRESS = "contract_address"   # `to` address
    FUNCTION_SELECTOR = "function_selector" # 4byte selector
    LOGS = "logs"                           # emitted logs
    HASH = "hash"                           # transaction or bundle hash
    TX_HASH = "tx_hash"                     # hashes of transactions in a bundle


class KnownBuilder(str, Enum):
    """Builders registered with MEV-Share. Any other name may be passed as a plain string."""
    FLASHBOTS = "flashbots"
    RSYNC = "rsync"
    BEAVERBUILD = "beaverbuild.org"
    BUILDER0X69 = "builder0x69"
    TITAN = "Titan"
    EIGENPHI = "EigenPhi"
    BOBA_BUILDER = "boba-builder"
