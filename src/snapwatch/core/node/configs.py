"""Key sets patched into the local node's TOML configuration files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from snapwatch.core.runtime.templater import patch_toml_keys

if TYPE_CHECKING:
    from snapwatch.core.models.config import PostgreSQLCredentials
    from snapwatch.core.models.statistics import RestartSnapshot
    from snapwatch.core.storage.paths import PathManager

P2P_PORT = 36656
SOCKET_NAME = "vega.sock"

_WITH_PORT_RE = re.compile(r".*:\d{1,5}$")


def with_p2p_port(address: str) -> str:
    """Append the default p2p port when the address carries none."""
    if _WITH_PORT_RE.match(address):
        return address
    return f"{address}:{P2P_PORT}"


def visor_run_config(paths: PathManager) -> dict[str, Any]:
    vega_bin = str(paths.vega_bin.resolve())
    vega_home = str(paths.vega_home.resolve())
    return {
        "vega.binary.path": vega_bin,
        "data_node.binary.path": vega_bin,
        "vega.binary.args": ["start", "--home", vega_home, "--tendermint-home", str(paths.tendermint_home.resolve())],
        "data_node.binary.args": ["datanode", "start", "--home", vega_home],
        "vega.rpc.socketPath": str(paths.work_dir.resolve() / SOCKET_NAME),
        "vega.rpc.httpPath": "/rpc",
    }


def vega_node_config(paths: PathManager, snapshot: RestartSnapshot) -> dict[str, Any]:
    return {
        "Admin.Server.SocketPath": str(paths.work_dir.resolve() / SOCKET_NAME),
        "Admin.Server.HTTPPath": "/rpc",
        "Broker.Socket.Enabled": True,
        "Broker.Socket.DialTimeout": "4h",
        "Snapshot.StartHeight": snapshot.height,
    }


def tendermint_config(
    rpc_peers: list[str],
    seeds: list[str],
    snapshot: RestartSnapshot,
    external_address: str = "",
) -> dict[str, Any]:
    values: dict[str, Any] = {
        "log_level": "debug",
        "p2p.seeds": ",".join(seeds),
        "p2p.pex": True,
        "statesync.enable": True,
        "statesync.rpc_servers": ",".join(rpc_peers),
        "statesync.trust_period": "672h0m0s",
        "statesync.trust_height": snapshot.height,
        "statesync.trust_hash": snapshot.hash,
        "p2p.addr_book_strict": False,
        "p2p.seed_mode": True,
        "p2p.allow_duplicate_ip": True,
        "p2p.laddr": f"tcp://0.0.0.0:{P2P_PORT}",
    }
    if external_address:
        values["p2p.external_address"] = with_p2p_port(external_address)
    return values


def data_node_config(bootstrap_peers: list[str], credentials: PostgreSQLCredentials) -> dict[str, Any]:
    return {
        "SQLStore.RetentionPeriod": "standard",
        "SQLStore.ConnectionConfig.Host": credentials.host,
        "SQLStore.ConnectionConfig.Port": credentials.port,
        "SQLStore.ConnectionConfig.Username": credentials.user,
        "SQLStore.ConnectionConfig.Password": credentials.password,
        "SQLStore.ConnectionConfig.Database": credentials.database,
        "SQLStore.WipeOnStartup": True,
        "NetworkHistory.Store.BootstrapPeers": bootstrap_peers,
        "NetworkHistory.Initialise.MinimumBlockCount": 1000,
        "NetworkHistory.Initialise.Timeout": "4h",
        "NetworkHistory.RetryTimeout": "15s",
        "API.RateLimit.Rate": 300.0,
        "API.RateLimit.Burst": 1000,
        "AutoInitialiseFromNetworkHistory": True,
    }


def config_files(paths: PathManager) -> dict[str, Path]:
    """Location of every patched file, by role."""
    return {
        "visor-run": paths.visor_home / "genesis" / "run-config.toml",
        "visor": paths.visor_home / "config.toml",
        "vega": paths.vega_home / "config" / "node" / "config.toml",
        "tendermint": paths.tendermint_home / "config" / "config.toml",
        "data-node": paths.vega_home / "config" / "data-node" / "config.toml",
    }


def update_configs(
    paths: PathManager,
    snapshot: RestartSnapshot,
    rpc_peers: list[str],
    seeds: list[str],
    bootstrap_peers: list[str],
    credentials: PostgreSQLCredentials,
    external_address: str = "",
) -> None:
    """
    Patch every configuration file of an initialized node home.

    Raises:
        NodeSetupError: If a file cannot be read, parsed or written
    """
    files = config_files(paths)
    patch_toml_keys(files["visor-run"], visor_run_config(paths))
    patch_toml_keys(files["visor"], {"maxNumberOfRestarts": 0})
    patch_toml_keys(files["vega"], vega_node_config(paths, snapshot))
    patch_toml_keys(files["tendermint"], tendermint_config(rpc_peers, seeds, snapshot, external_address))
    patch_toml_keys(files["data-node"], data_node_config(bootstrap_peers, credentials))
