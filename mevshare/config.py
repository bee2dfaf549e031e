"""
MEV-Share Client Configuration

Loads settings from environment variables (and a `.env` file, if present)
and builds the objects the client needs: the auth signer, an optional sender
account, the chain provider and the client itself.

Environment:
    AUTH_PRIVATE_KEY      key that signs relay requests (required)
    SENDER_PRIVATE_KEY    key that signs transactions (optional)
    PROVIDER_URL          HTTP chain RPC endpoint
    PROVIDER_WS_URL       websocket endpoint, derived from PROVIDER_URL if unset
    MEV_SHARE_NETWORK     network name or chain id; asked from the provider if unset
    LOG_LEVEL             DEBUG, INFO, WARNING or ERROR
    HTTP_TIMEOUT_SECONDS  timeout for relay and provider requests

File: mevshare/config.py
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv
from eth_account import Account
from eth_account.signers.local import LocalAccount

from .client import MevShareClient
from .constants import DEFAULT_HTTP_TIMEOUT_SECONDS
from .errors import UnsupportedNetwork
from .networks import get_network
from .provider import Web3ChainProvider, websocket_url_for
from .utils import format_address, setup_logging

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@dataclass
class MevShareConfig:
    """Settings for one MEV-Share client."""

    auth_private_key: str = field(repr=False)
    provider_url: str = "http://127.0.0.1:8545"
    provider_ws_url: Optional[str] = None
    sender_private_key: Optional[str] = field(default=None, repr=False)
    network: Optional[str] = None
    log_level: str = "INFO"
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "MevShareConfig":
        """
        Build and validate a config from the environment.

        Raises:
            ValueError: Missing or invalid settings
        """
        load_dotenv(dotenv_path)

        provider_url = os.getenv("PROVIDER_URL", "http://127.0.0.1:8545")
        config = cls(
            auth_private_key=os.getenv("AUTH_PRIVATE_KEY", ""),
            provider_url=provider_url,
            provider_ws_url=os.getenv("PROVIDER_WS_URL") or websocket_url_for(provider_url),
            sender_private_key=os.getenv("SENDER_PRIVATE_KEY") or None,
            network=os.getenv("MEV_SHARE_NETWORK") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            http_timeout_seconds=float(
                os.getenv("HTTP_TIMEOUT_SECONDS", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
            ),
        )
        config.validate()
        return config

    def validate(self) -> None:
        errors = []

        if not self.auth_private_key:
            errors.append("AUTH_PRIVATE_KEY is required")

        if not self.provider_url.startswith(("http://", "https://")):
            errors.append(f"PROVIDER_URL must be an http(s) URL: {self.provider_url}")

        if self.provider_ws_url and not self.provider_ws_url.startswith(("ws://", "wss://")):
            errors.append(f"PROVIDER_WS_URL must be a ws(s) URL: {self.provider_ws_url}")

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(f"Invalid LOG_LEVEL: {self.log_level}. Must be one of {VALID_LOG_LEVELS}")

        if self.http_timeout_seconds <= 0:
            errors.append("HTTP_TIMEOUT_SECONDS must be positive")

        if self.network is not None:
            try:
                get_network(int(self.network) if self.network.isdigit() else self.network)
            except UnsupportedNetwork as e:
                errors.append(str(e))

        if errors:
            raise ValueError("Invalid MEV-Share configuration: " + "; ".join(errors))

    def configure_logging(self) -> None:
        setup_logging(self.log_level)

    def create_auth_signer(self) -> LocalAccount:
        account = Account.from_key(self.auth_private_key)
        logger.info(f"Relay auth signer: {format_address(account.address)}")
        return account

    def create_sender(self) -> Optional[LocalAccount]:
        """Account that signs transactions, when SENDER_PRIVATE_KEY is set."""
        if not self.sender_private_key:
            return None
        return Account.from_key(self.sender_private_key)

    def create_provider(self) -> Web3ChainProvider:
        return Web3ChainProvider(
            self.provider_url,
            ws_url=self.provider_ws_url,
            timeout=self.http_timeout_seconds,
        )

    async def create_client(self) -> MevShareClient:
        """
        Build a MevShareClient from this config.

        Uses MEV_SHARE_NETWORK when set, otherwise asks the provider for its
        chain id.
        """
        auth_signer = self.create_auth_signer()
        provider = self.create_provider()

        if self.network is None:
            return await MevShareClient.from_provider(
                auth_signer, provider, timeout=self.http_timeout_seconds
            )

        network = int(self.network) if self.network.isdigit() else self.network
        return MevShareClient(
            auth_signer, provider, network, timeout=self.http_timeout_seconds
        )


__all__ = ["MevShareConfig"]
