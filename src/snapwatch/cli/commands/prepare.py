"""Prepare command implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from rich.console import Console

from snapwatch.core.logs.setup import configure_logging
from snapwatch.core.models.networks import resolve_network_config
from snapwatch.core.network.client import StatisticsClient
from snapwatch.core.network.resolver import NetworkResolver
from snapwatch.core.network.snapshots import RestartSnapshotSelector
from snapwatch.core.node.setup import LocalNodeDetails, LocalNodeSetup
from snapwatch.core.storage.paths import PathManager

if TYPE_CHECKING:
    from snapwatch.core.models.config import NetworkConfig, Settings

console = Console()
logger = structlog.get_logger(__name__)


def create_client(settings: Settings) -> StatisticsClient:
    """Build the REST client from the network query settings."""
    return StatisticsClient(
        timeout=settings.network.request_timeout,
        retry_attempts=settings.network.retry_attempts,
        retry_delay=settings.network.retry_delay,
    )


async def prepare_network(
    settings: Settings,
    network: NetworkConfig,
    paths: PathManager,
    resolver: NetworkResolver,
    client: StatisticsClient,
) -> LocalNodeDetails:
    """Resolve the network view and prepare the local node."""
    selector = RestartSnapshotSelector(resolver, client, settings.network)
    setup = LocalNodeSetup(
        network=network,
        paths=paths,
        resolver=resolver,
        selector=selector,
        credentials=settings.postgresql,
        external_address=settings.external_address,
    )
    return await setup.setup()


async def run_prepare(settings: Settings) -> LocalNodeDetails:
    """Run the prepare command."""
    # Console only: prepare does not write main.log
    configure_logging(settings.logs.level, console=True)

    paths = PathManager(settings.work_dir)
    paths.create_directory_structure()

    network = await resolve_network_config(settings.environment, settings.config_path)

    async with create_client(settings) as client:
        resolver = NetworkResolver(network, client, settings.network)
        details = await prepare_network(settings, network, paths, resolver, client)

    console.print()
    console.print("[bold green]Local node prepared[/bold green]")
    console.print(f"  Chain ID: {details.chain_id}")
    console.print(f"  Version: {details.app_version}")
    console.print(f"  Restart snapshot: {details.restart_snapshot.height} ({details.restart_snapshot.hash})")
    console.print()
    console.print("To run your local node start:")
    console.print(f"  [bold]{' '.join(details.start_command)}[/bold]")
    return details
