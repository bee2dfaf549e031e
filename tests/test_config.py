"""
Configuration - Test Suite

File: tests/test_config.py
"""

import pytest

from conftest import AUTH_KEY, FakeChainProvider
from mevshare.client import MevShareClient
from mevshare.config import MevShareConfig
from mevshare.networks import GOERLI, SEPOLIA
from mevshare.provider import Web3ChainProvider


ENV_VARS = [
    "AUTH_PRIVATE_KEY",
    "SENDER_PRIVATE_KEY",
    "PROVIDER_URL",
    "PROVIDER_WS_URL",
    "MEV_SHARE_NETWORK",
    "LOG_LEVEL",
    "HTTP_TIMEOUT_SECONDS",
]


@pytest.fixture
def env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AUTH_PRIVATE_KEY", AUTH_KEY)
    return tmp_path / "missing.env"


class TestFromEnv:

    def test_defaults(self, env):
        config = MevShareConfig.from_env(env)

        assert config.provider_url == "http://127.0.0.1:8545"
        assert config.provider_ws_url == "ws://127.0.0.1:8545"
        assert config.network is None
        assert config.log_level == "INFO"
        assert config.sender_private_key is None

    def test_reads_environment(self, env, monkeypatch):
        monkeypatch.setenv("PROVIDER_URL", "https://node.example/rpc")
        monkeypatch.setenv("MEV_SHARE_NETWORK", "sepolia")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "5")

        config = MevShareConfig.from_env(env)

        assert config.provider_ws_url == "wss://node.example/rpc"
        assert config.network == "sepolia"
        assert config.log_level == "DEBUG"
        assert config.http_timeout_seconds == 5.0

    def test_reads_dotenv_file(self, env, monkeypatch, tmp_path):
        monkeypatch.delenv("AUTH_PRIVATE_KEY")
        dotenv = tmp_path / ".env"
        dotenv.write_text(f"AUTH_PRIVATE_KEY={AUTH_KEY}\n")

        config = MevShareConfig.from_env(dotenv)

        assert config.auth_private_key == AUTH_KEY

    def test_missing_auth_key(self, env, monkeypatch):
        monkeypatch.delenv("AUTH_PRIVATE_KEY")

        with pytest.raises(ValueError, match="AUTH_PRIVATE_KEY"):
            MevShareConfig.from_env(env)

    def test_unsupported_network(self, env, monkeypatch):
        monkeypatch.setenv("MEV_SHARE_NETWORK", "137")

        with pytest.raises(ValueError, match="137"):
            MevShareConfig.from_env(env)

    def test_invalid_log_level(self, env, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValueError, match="LOG_LEVEL"):
            MevShareConfig.from_env(env)

    def test_keys_not_in_repr(self, env):
        assert AUTH_KEY not in repr(MevShareConfig.from_env(env))


class TestFactories:

    def test_auth_signer(self):
        signer = MevShareConfig(auth_private_key=AUTH_KEY).create_auth_signer()

        assert signer.address.startswith("0x")
        assert len(signer.address) == 42

    def test_sender_optional(self):
        assert MevShareConfig(auth_private_key=AUTH_KEY).create_sender() is None
        sender = MevShareConfig(auth_private_key=AUTH_KEY, sender_private_key="0x" + "22" * 32).create_sender()
        assert sender is not None

    def test_provider(self):
        config = MevShareConfig(
            auth_private_key=AUTH_KEY,
            provider_url="https://node.example",
            provider_ws_url="wss://node.example/ws",
            http_timeout_seconds=7,
        )

        provider = config.create_provider()

        assert isinstance(provider, Web3ChainProvider)
        assert provider.ws_url == "wss://node.example/ws"
        assert provider.timeout == 7

    @pytest.mark.asyncio
    async def test_client_with_explicit_network(self):
        config = MevShareConfig(auth_private_key=AUTH_KEY, network="11155111")

        client = await config.create_client()

        assert isinstance(client, MevShareClient)
        assert client.network is SEPOLIA

    @pytest.mark.asyncio
    async def test_client_network_from_provider(self, monkeypatch):
        config = MevShareConfig(auth_private_key=AUTH_KEY)
        monkeypatch.setattr(config, "create_provider", lambda: FakeChainProvider(chain_id=5))

        client = await config.create_client()

        assert client.network is GOERLI
