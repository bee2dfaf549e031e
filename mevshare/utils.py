"""
Utility Helpers for the MEV-Share Client

Logging setup, display formatting for hashes and addresses, and conversion
of JSON-RPC quantities (hex strings or plain integers) to Python ints.

File: mevshare/utils.py
"""

import logging
import time
from typing import Any, Optional, Union

from eth_utils import is_hex, to_hex
from hexbytes import HexBytes


def setup_logging(level: str = "INFO"):
    """
    Set up basic logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='[%(levelname)s] %(asctime)s %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def format_address(address: str, length: int = 8) -> str:
    """
    Format Ethereum address for display.

    Args:
        address: Full Ethereum address
        length: Number of characters to show from start/end

    Returns:
        Formatted address (e.g., "0x1234...7890")
    """
    if not address or len(address) < 10:
        return address

    return f"{address[:length]}...{address[-4:]}"


def format_hash(tx_hash: Union[str, bytes, None], length: int = 10) -> str:
    """
    Format transaction hash for display.

    Args:
        tx_hash: Full transaction hash (hex string or raw bytes)
        length: Number of characters to show from start

    Returns:
        Formatted hash (e.g., "0x1234567...")
    """
    if isinstance(tx_hash, (bytes, bytearray)):
        tx_hash = to_hex(tx_hash)
    if not tx_hash or len(tx_hash) < 10:
        return tx_hash or ""

    return f"{tx_hash[:length]}..."


def parse_quantity(value: Any) -> Optional[int]:
    """
    Convert a JSON-RPC quantity to an int.

    Providers and the relay are inconsistent: block numbers and fees arrive
    either as "0x"-prefixed hex strings or as plain JSON integers.

    Args:
        value: Hex string, decimal string, int or None

    Returns:
        Integer value, or None when value is None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Not a quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    raise ValueError(f"Not a quantity: {value!r}")


def to_quantity(value: int) -> str:
    """Encode an int as a JSON-RPC hex quantity."""
    return hex(value)


def normalize_hash(value: Union[str, bytes]) -> str:
    """
    Normalize a 32-byte hash to a lowercase "0x"-prefixed hex string.

    Raises:
        ValueError: If the value is not a 32-byte hash
    """
    if isinstance(value, (bytes, bytearray)):
        value = to_hex(HexBytes(value))
    if not isinstance(value, str) or not is_hex(value):
        raise ValueError(f"Invalid hash: {value!r}")
    if not value.startswith(("0x", "0X")):
        value = "0x" + value
    value = value.lower()
    if len(value) != 66:
        raise ValueError(f"Invalid hash length: {value!r}")
    return value


def normalize_hex_data(value: Union[str, bytes]) -> str:
    """Normalize arbitrary byte data to a lowercase "0x"-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        return to_hex(HexBytes(value))
    if not isinstance(value, str) or not is_hex(value):
        raise ValueError(f"Invalid hex data: {value!r}")
    if not value.startswith(("0x", "0X")):
        value = "0x" + value
    return value.lower()


def new_request_id_seed() -> int:
    # Coarse time-derived seed so independently started clients are unlikely
    # to share request ids. Not a security property.
    return time.time_ns() % 1_000_000
