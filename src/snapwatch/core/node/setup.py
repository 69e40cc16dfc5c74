"""Local node preparation: binaries, node homes and configuration."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from snapwatch.core.errors import CommandError, NodeSetupError
from snapwatch.core.node.configs import update_configs
from snapwatch.core.runtime.artifacts import artifact_url, download_file, platform_parts, unzip_file
from snapwatch.core.runtime.process import execute_binary

if TYPE_CHECKING:
    from snapwatch.core.models.config import NetworkConfig, PostgreSQLCredentials
    from snapwatch.core.models.statistics import RestartSnapshot
    from snapwatch.core.network.resolver import NetworkResolver
    from snapwatch.core.network.snapshots import RestartSnapshotSelector
    from snapwatch.core.storage.paths import PathManager

logger = structlog.get_logger(__name__)

BINARY_KINDS = ("vega", "visor")


@dataclass
class LocalNodeDetails:
    """Everything a run needs to know about the prepared node."""

    vega_bin: Path
    visor_bin: Path
    vega_home: Path
    tendermint_home: Path
    visor_home: Path
    chain_id: str
    app_version: str
    network_height: int
    restart_snapshot: RestartSnapshot
    rpc_peers: list[str]

    @property
    def start_command(self) -> list[str]:
        return [str(self.visor_bin), "run", "--home", str(self.visor_home)]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "vega_bin": str(self.vega_bin),
            "visor_bin": str(self.visor_bin),
            "vega_home": str(self.vega_home),
            "tendermint_home": str(self.tendermint_home),
            "visor_home": str(self.visor_home),
            "chain_id": self.chain_id,
            "app_version": self.app_version,
            "network_height": self.network_height,
            "restart_snapshot": self.restart_snapshot.to_dict(),
            "rpc_peers": self.rpc_peers,
        }


class LocalNodeSetup:
    """
    Prepares a local node that state-syncs from a live network.

    The resolver and the selector are consulted once; their memoized answers
    seed every later step.
    """

    def __init__(
        self,
        network: NetworkConfig,
        paths: PathManager,
        resolver: NetworkResolver,
        selector: RestartSnapshotSelector,
        credentials: PostgreSQLCredentials,
        external_address: str = "",
    ) -> None:
        self.network = network
        self.paths = paths
        self.resolver = resolver
        self.selector = selector
        self.credentials = credentials
        self.external_address = external_address

    async def download_binary(self, kind: str, version: str) -> Path:
        """
        Download and extract one release binary into the binaries directory.

        Raises:
            NodeSetupError: If the artifact cannot be fetched or extracted
        """
        os_name, arch = platform_parts()
        url = artifact_url(self.network.artifacts_repository, version, kind, os_name, arch)
        archive = self.paths.work_dir / f"{kind}.zip"

        archive.unlink(missing_ok=True)
        await download_file(url, archive)

        logger.info("Extracting binary", kind=kind, destination=str(self.paths.binaries))
        unzip_file(archive, self.paths.binaries)
        archive.unlink(missing_ok=True)

        binary = self.paths.binaries / kind
        if not binary.exists():
            raise NodeSetupError(f"archive {url} does not contain the {kind} binary")
        return binary

    async def download_genesis(self) -> Path:
        """Fetch the network genesis into the tendermint home."""
        destination = self.paths.tendermint_home / "config" / "genesis.json"
        destination.parent.mkdir(parents=True, exist_ok=True)
        await download_file(self.network.genesis_url, destination)
        return destination

    async def init_node(self, chain_id: str) -> None:
        """
        Recreate every node home from scratch.

        Raises:
            NodeSetupError: If one of the init commands fails
        """
        for home in (self.paths.visor_home, self.paths.vega_home, self.paths.tendermint_home):
            if home.exists():
                logger.info("Removing directory", path=str(home))
                shutil.rmtree(home)

        steps = [
            ("vegavisor", self.paths.visor_bin, ["init", "--with-data-node", "--home", str(self.paths.visor_home)]),
            (
                "vega",
                self.paths.vega_bin,
                [
                    "init",
                    "--home",
                    str(self.paths.vega_home),
                    "--tendermint-home",
                    str(self.paths.tendermint_home),
                    "--output",
                    "json",
                    "full",
                ],
            ),
            ("data-node", self.paths.vega_bin, ["datanode", "init", "--home", str(self.paths.vega_home), chain_id]),
        ]

        for name, binary, args in steps:
            logger.info("Initializing", target=name, command=[str(binary), *args])
            try:
                await execute_binary(binary, args)
            except CommandError as e:
                raise NodeSetupError(f"failed to initialize {name}: {e}") from e
            logger.info("Initialized", target=name)

    async def setup(self) -> LocalNodeDetails:
        """
        Prepare the local node end to end.

        Raises:
            ResolutionError: If the network view cannot be resolved
            NodeSetupError: If downloading, initializing or patching fails
        """
        self.paths.create_directory_structure()

        app_version = await self.resolver.app_version()
        snapshot = await self.selector.select_restart_snapshot()
        height = await self.resolver.consensus_height()
        chain_id = await self.resolver.chain_id()
        rpc_peers = await self.resolver.healthy_rpc_peers()

        for kind in BINARY_KINDS:
            await self.download_binary(kind, app_version)

        logger.info(
            "Initializing local node",
            network_height=height,
            chain_id=chain_id,
            restart_snapshot=snapshot.to_dict(),
            rpc_peers=rpc_peers,
            bootstrap_peers=self.network.bootstrap_peer_addresses,
            genesis=self.network.genesis_url,
            seeds=self.network.seeds,
            version=app_version,
            override_release=self.network.binary_version_override or "no",
        )

        await self.init_node(chain_id)
        await self.download_genesis()

        logger.info("Updating node configs")
        update_configs(
            self.paths,
            snapshot=snapshot,
            rpc_peers=rpc_peers,
            seeds=self.network.seeds,
            bootstrap_peers=self.network.bootstrap_peer_addresses,
            credentials=self.credentials,
            external_address=self.external_address,
        )

        return LocalNodeDetails(
            vega_bin=self.paths.vega_bin,
            visor_bin=self.paths.visor_bin,
            vega_home=self.paths.vega_home,
            tendermint_home=self.paths.tendermint_home,
            visor_home=self.paths.visor_home,
            chain_id=chain_id,
            app_version=app_version,
            network_height=height,
            restart_snapshot=snapshot,
            rpc_peers=rpc_peers,
        )
