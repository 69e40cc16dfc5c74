"""Run command implementation."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console

from snapwatch.cli.commands.prepare import create_client, prepare_network
from snapwatch.core.components.postgresql import PostgreSQLComponent
from snapwatch.core.components.supervisor import Supervisor
from snapwatch.core.components.visor import VisorComponent
from snapwatch.core.components.watchdog import NodeWatchdog
from snapwatch.core.errors import NoHealthyEndpointError, NoRestartSnapshotError, RuntimeHealthFailure, SnapwatchError
from snapwatch.core.logs.setup import MAIN_LOG_FILE, configure_logging, create_stream_logger
from snapwatch.core.models.networks import resolve_network_config
from snapwatch.core.network.resolver import NetworkResolver
from snapwatch.core.node.snapshots import local_snapshot_range
from snapwatch.core.runtime.container import DockerRuntime
from snapwatch.core.storage.paths import PathManager
from snapwatch.core.storage.results import write_results

if TYPE_CHECKING:
    from snapwatch.core.models.config import NetworkConfig, Settings

console = Console()
logger = structlog.get_logger(__name__)

KEY_SHOULD_SKIP_FAILURE = "should-skip-failure"
KEY_SNAPSHOT_MIN = "snapshot-min"
KEY_SNAPSHOT_MAX = "snapshot-max"
KEY_ERROR = "error"


def should_skip_failure(network: NetworkConfig, error: Exception) -> bool:
    """Whether a preparation failure is expected noise on this network."""
    return network.failure_tolerant and isinstance(error, (NoHealthyEndpointError, NoRestartSnapshotError))


def _write(paths: PathManager, duration: float, results: dict[str, Any]) -> None:
    logger.info("Snapshot testing finished", duration=str(timedelta(seconds=duration)))
    logger.info("Result", results=results)
    write_results(paths.results, results)


async def run_snapshot_testing(settings: Settings, duration: float) -> dict[str, Any]:
    """
    Run the run command.

    Args:
        settings: Application settings
        duration: Test window in seconds

    Returns:
        The results written to results.json
    """
    paths = PathManager(settings.work_dir)
    paths.create_directory_structure()

    configure_logging(
        settings.logs.level,
        log_file=paths.log_file(MAIN_LOG_FILE),
        console=settings.logs.console,
        max_bytes=settings.logs.max_size_mb * 1024 * 1024,
        backup_count=settings.logs.backup_count,
    )

    network = await resolve_network_config(settings.environment, settings.config_path)

    async with create_client(settings) as client:
        resolver = NetworkResolver(network, client, settings.network)

        try:
            await prepare_network(settings, network, paths, resolver, client)
        except SnapwatchError as e:
            if should_skip_failure(network, e):
                logger.warning("Failure on a failure-tolerant network, marking the result as skippable", error=str(e))
                _write(paths, duration, {KEY_SHOULD_SKIP_FAILURE: True})
            raise

        postgresql = PostgreSQLComponent(
            runtime=DockerRuntime(),
            credentials=settings.postgresql,
            stdout_sink=create_stream_logger(paths.log_file("psql-stdout.log")),
            stderr_sink=create_stream_logger(paths.log_file("psql-stderr.log")),
        )
        visor = VisorComponent(
            binary=paths.visor_bin,
            home=paths.visor_home,
            stdout_sink=create_stream_logger(paths.log_file("visor-stdout.log")),
            stderr_sink=create_stream_logger(paths.log_file("visor-stderr.log")),
            database_port=settings.postgresql.port,
            failure_tail_limit=settings.logs.failure_tail_limit,
        )
        watchdog = NodeWatchdog(
            peers=await resolver.healthy_endpoints(),
            client=client,
            config=settings.watchdog,
        )

        supervisor = Supervisor([postgresql, visor, watchdog], settings.supervisor)

        console.print(f"[bold blue]snapwatch[/bold blue] - supervising the local node for {timedelta(seconds=duration)}")
        try:
            results = await supervisor.run(duration)
        except RuntimeHealthFailure as e:
            # Launch and cleanup errors are fatal and leave no results file
            results = supervisor.results()
            results[KEY_ERROR] = str(e)
            results[KEY_SHOULD_SKIP_FAILURE] = False
            _write(paths, duration, results)
            raise

    snapshot_min, snapshot_max = await local_snapshot_range(paths)
    results[KEY_SNAPSHOT_MIN] = snapshot_min
    results[KEY_SNAPSHOT_MAX] = snapshot_max
    results[KEY_SHOULD_SKIP_FAILURE] = False

    _write(paths, duration, results)
    console.print(f"[green]Results written to {paths.results}[/green]")
    return results
