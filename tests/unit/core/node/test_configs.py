"""Tests for the node configuration key sets."""

from __future__ import annotations

import tomllib

import pytest

from snapwatch.core.models.config import PostgreSQLCredentials
from snapwatch.core.models.statistics import RestartSnapshot
from snapwatch.core.node.configs import (
    P2P_PORT,
    config_files,
    data_node_config,
    tendermint_config,
    update_configs,
    vega_node_config,
    visor_run_config,
    with_p2p_port,
)
from snapwatch.core.storage.paths import PathManager

SNAPSHOT = RestartSnapshot(height=4000, hash="ABCDEF")


class TestWithP2PPort:
    """Tests for with_p2p_port."""

    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("203.0.113.7", f"203.0.113.7:{P2P_PORT}"),
            ("node.example.com", f"node.example.com:{P2P_PORT}"),
            ("node.example.com:26656", "node.example.com:26656"),
            ("203.0.113.7:1", "203.0.113.7:1"),
        ],
    )
    def test_port_handling(self, address, expected):
        assert with_p2p_port(address) == expected


class TestKeySets:
    """Tests for individual key sets."""

    def test_tendermint(self):
        values = tendermint_config(["a:26657", "b:26657"], ["s1@x:26656", "s2@y:26656"], SNAPSHOT)

        assert values["statesync.enable"] is True
        assert values["statesync.rpc_servers"] == "a:26657,b:26657"
        assert values["statesync.trust_height"] == 4000
        assert values["statesync.trust_hash"] == "ABCDEF"
        assert values["p2p.seeds"] == "s1@x:26656,s2@y:26656"
        assert values["p2p.laddr"] == f"tcp://0.0.0.0:{P2P_PORT}"
        assert "p2p.external_address" not in values

    def test_tendermint_external_address(self):
        values = tendermint_config([], [], SNAPSHOT, external_address="203.0.113.7")
        assert values["p2p.external_address"] == f"203.0.113.7:{P2P_PORT}"

    def test_vega_node(self, paths: PathManager):
        values = vega_node_config(paths, SNAPSHOT)
        assert values["Snapshot.StartHeight"] == 4000
        assert values["Broker.Socket.Enabled"] is True

    def test_data_node(self):
        credentials = PostgreSQLCredentials(user="u", password="p", database="d", port=6000)
        values = data_node_config(["/dns/a"], credentials)

        assert values["SQLStore.ConnectionConfig.Port"] == 6000
        assert values["SQLStore.ConnectionConfig.Username"] == "u"
        assert values["NetworkHistory.Store.BootstrapPeers"] == ["/dns/a"]
        assert values["AutoInitialiseFromNetworkHistory"] is True

    def test_visor_run(self, paths: PathManager):
        values = visor_run_config(paths)
        assert values["vega.binary.path"] == str(paths.vega_bin.resolve())
        assert values["data_node.binary.args"][:2] == ["datanode", "start"]


class TestUpdateConfigs:
    """Tests for patching an initialized node home."""

    def test_patches_every_file(self, paths: PathManager):
        files = config_files(paths)
        for path in files.values():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text('untouched = "yes"\n')

        update_configs(
            paths,
            snapshot=SNAPSHOT,
            rpc_peers=["a:26657"],
            seeds=["s@x:26656"],
            bootstrap_peers=["/dns/a"],
            credentials=PostgreSQLCredentials(),
        )

        documents = {}
        for role, path in files.items():
            with open(path, "rb") as f:
                documents[role] = tomllib.load(f)
            assert documents[role]["untouched"] == "yes"

        assert documents["visor"]["maxNumberOfRestarts"] == 0
        assert documents["tendermint"]["statesync"]["trust_hash"] == "ABCDEF"
        assert documents["vega"]["Snapshot"]["StartHeight"] == 4000
        assert documents["data-node"]["SQLStore"]["ConnectionConfig"]["Host"] == "localhost"
        assert documents["visor-run"]["vega"]["rpc"]["httpPath"] == "/rpc"
