"""Tests for network definitions and settings."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from snapwatch.core.errors import ConfigurationError
from snapwatch.core.models.config import NetworkConfig, Settings
from snapwatch.core.models.networks import (
    BUILTIN_NETWORKS,
    MAINNET,
    load_network_config,
    network_config_for,
    resolve_network_config,
)
from tests.pytest_plugins.mock_services import make_network_config

NETWORK_YAML = """
artifacts_repository: vegaprotocol/vega
genesis_url: https://example.com/genesis.json
data_nodes_rest:
  - https://api0.test
rpc_peers:
  - core_rest: https://api0.test
    endpoint: api0.test:26657
seeds:
  - abc@seed0.test:26656
bootstrap_peers:
  - core_rest: https://api0.test
    endpoint: /dns/api0.test/tcp/4001/ipfs/12D3Koo
failure_tolerant: true
"""


# ============================================================================
# NETWORK CONFIG TESTS
# ============================================================================


class TestValidateComplete:
    """Tests for NetworkConfig.validate_complete."""

    def test_complete(self):
        make_network_config().validate_complete()

    @pytest.mark.parametrize(
        ("field", "message"),
        [
            ("data_nodes_rest", "no data nodes rest endpoints"),
            ("bootstrap_peers", "no bootstrap peers"),
            ("rpc_peers", "no rpc peers"),
            ("seeds", "no seeds"),
        ],
    )
    def test_missing_list(self, field, message):
        config = make_network_config()
        setattr(config, field, [])
        with pytest.raises(ConfigurationError, match=message):
            config.validate_complete()

    def test_missing_genesis(self):
        with pytest.raises(ConfigurationError, match="no genesis url"):
            make_network_config(genesis_url="").validate_complete()

    def test_missing_repository(self):
        with pytest.raises(ConfigurationError, match="empty artifacts repository"):
            make_network_config(artifacts_repository="").validate_complete()


class TestBuiltinNetworks:
    """Tests for the built-in network table."""

    @pytest.mark.parametrize("name", sorted(BUILTIN_NETWORKS))
    def test_every_builtin_is_complete(self, name):
        network_config_for(name).validate_complete()

    def test_aliases(self):
        assert network_config_for("mirror") == network_config_for("mainnet-mirror")
        assert network_config_for("validator-testnet") == network_config_for("validators-testnet")

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError, match="unknown network name"):
            network_config_for("moonnet")

    def test_returns_copy(self):
        config = network_config_for("mainnet")
        config.seeds.clear()
        assert MAINNET.seeds

    def test_only_devnet_is_failure_tolerant(self):
        tolerant = {name for name, config in BUILTIN_NETWORKS.items() if config.failure_tolerant}
        assert tolerant == {"devnet1"}

    def test_mainnet_override(self):
        assert network_config_for("mainnet").binary_version_override == "v0.75.8-fix.1"

    def test_bootstrap_addresses(self):
        config = network_config_for("mainnet")
        assert all(address.startswith("/dns/") for address in config.bootstrap_peer_addresses)


class TestLoadNetworkConfig:
    """Tests for loading definitions from files and URLs."""

    @pytest.mark.asyncio
    async def test_from_file(self, tmp_path: Path):
        path = tmp_path / "network.yaml"
        path.write_text(NETWORK_YAML)

        config = await load_network_config(str(path))

        assert config.failure_tolerant is True
        assert config.rpc_peers[0].endpoint == "api0.test:26657"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            await load_network_config(str(tmp_path / "missing.yaml"))

    def test_invalid_definition(self):
        with pytest.raises(ConfigurationError, match="invalid network config"):
            NetworkConfig.from_dict({"seeds": "not-a-list"})

    @pytest.mark.asyncio
    async def test_from_url(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=NETWORK_YAML))
        real_client = httpx.AsyncClient

        def client_factory(**kwargs):
            return real_client(transport=transport, **kwargs)

        with patch("snapwatch.core.models.networks.httpx.AsyncClient", side_effect=client_factory):
            config = await load_network_config("https://example.com/network.yaml")

        assert config.data_nodes_rest == ["https://api0.test"]

    @pytest.mark.asyncio
    async def test_url_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        real_client = httpx.AsyncClient

        def client_factory(**kwargs):
            return real_client(transport=transport, **kwargs)

        with patch("snapwatch.core.models.networks.httpx.AsyncClient", side_effect=client_factory):
            with pytest.raises(ConfigurationError, match="failed to download"):
                await load_network_config("https://example.com/network.yaml")

    @pytest.mark.asyncio
    async def test_config_path_wins(self, tmp_path: Path):
        path = tmp_path / "network.yaml"
        path.write_text(NETWORK_YAML)

        config = await resolve_network_config("mainnet", str(path))

        assert config.data_nodes_rest == ["https://api0.test"]

    @pytest.mark.asyncio
    async def test_environment_name(self):
        config = await resolve_network_config("fairground")
        assert config.data_nodes_rest[0].startswith("https://api.n00.testnet")


# ============================================================================
# SETTINGS TESTS
# ============================================================================


class TestSettings:
    """Tests for application settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.environment == "mainnet"
        assert settings.network.healthy_blocks_threshold == 450
        assert settings.network.snapshot_window_max_offset == 6000
        assert settings.watchdog.max_blocks_lag == 500
        assert settings.logs.max_size_mb == 300

    def test_from_yaml(self, tmp_path: Path):
        path = tmp_path / "settings.yaml"
        path.write_text("environment: devnet1\nsupervisor:\n  health_check_interval: 5\n")

        settings = Settings.from_yaml(path)

        assert settings.environment == "devnet1"
        assert settings.supervisor.health_check_interval == 5

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("SNAPWATCH_ENVIRONMENT", "stagnet1")
        monkeypatch.setenv("SNAPWATCH_WATCHDOG__MAX_BLOCKS_LAG", "10")

        settings = Settings()

        assert settings.environment == "stagnet1"
        assert settings.watchdog.max_blocks_lag == 10

    def test_missing_yaml(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")
