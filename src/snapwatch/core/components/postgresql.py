"""Container-backed PostgreSQL component."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from snapwatch.core.components.base import Component
from snapwatch.core.components.models import HealthStatus
from snapwatch.core.errors import SnapwatchError
from snapwatch.core.interfaces.container import OutputKind
from snapwatch.core.logs.monitor import LogMonitor
from snapwatch.core.logs.setup import close_stream_logger
from snapwatch.core.models.config import ContainerConfig, PostgreSQLCredentials

if TYPE_CHECKING:
    import logging

    from snapwatch.core.interfaces.container import IContainerRuntime

logger = structlog.get_logger(__name__)

CONTAINER_NAME = "snapshot-testing-postgresql"
IMAGE = "timescale/timescaledb:2.8.0-pg14"

SERVER_ARGS = {
    "max_connections": "50",
    "log_destination": "stderr",
    "work_mem": "5MB",
    "huge_pages": "off",
    "shared_memory_type": "sysv",
    "dynamic_shared_memory_type": "sysv",
    "shared_buffers": "2GB",
    "temp_buffers": "5MB",
}


def postgresql_container(credentials: PostgreSQLCredentials) -> ContainerConfig:
    """Build the database container definition for the given credentials."""
    command = ["postgres"]
    for key, value in SERVER_ARGS.items():
        command += ["-c", f"{key}={value}"]

    return ContainerConfig(
        name=CONTAINER_NAME,
        image=IMAGE,
        environment={
            "POSTGRES_USER": credentials.user,
            "POSTGRES_DB": credentials.database,
            "POSTGRES_PASSWORD": credentials.password,
        },
        command=command,
        ports={credentials.port: credentials.port},
    )


class PostgreSQLComponent(Component):
    """Runs the data-node database in a container and tails its output."""

    name = "postgresql"

    def __init__(
        self,
        runtime: IContainerRuntime,
        credentials: PostgreSQLCredentials,
        stdout_sink: logging.Logger,
        stderr_sink: logging.Logger,
    ) -> None:
        self.runtime = runtime
        self.container = postgresql_container(credentials)
        self.stdout_sink = stdout_sink
        self.stderr_sink = stderr_sink

        self._started = False
        self._streams: list[asyncio.Task[None]] = []
        self._log = logger.bind(component=self.name)

    async def _tail(self, kind: OutputKind, sink: logging.Logger) -> None:
        monitor = LogMonitor(sink, name=f"{self.name}-{kind.value}")
        try:
            lines = await asyncio.to_thread(self.runtime.stream_output, self.container.name, kind)
            await monitor.consume_in_thread(lines)
        except SnapwatchError as e:
            self._log.error("Failed to stream container output", stream=kind.value, error=str(e))

    async def start(self, stop: asyncio.Event) -> None:
        await self.runtime.run_container(self.container)
        self._started = True
        self._log.info("PostgreSQL container started", container=self.container.name)

        self._streams = [
            asyncio.create_task(self._tail(OutputKind.STDOUT, self.stdout_sink)),
            asyncio.create_task(self._tail(OutputKind.STDERR, self.stderr_sink)),
        ]

        await stop.wait()

    async def stop(self) -> None:
        if await self.runtime.container_exists(self.container.name):
            await self.runtime.remove_force(self.container.name)

        # Removing the container ends both followed streams
        if self._streams:
            await asyncio.gather(*self._streams, return_exceptions=True)
            self._streams = []
        close_stream_logger(self.stdout_sink)
        close_stream_logger(self.stderr_sink)

    async def cleanup(self) -> None:
        if await self.runtime.container_exists(self.container.name):
            self._log.info("Removing leftover container", container=self.container.name)
            await self.runtime.remove_force(self.container.name)

    async def healthy(self) -> HealthStatus:
        if not self._started:
            return HealthStatus(healthy=False, message="the postgresql has not been started")

        try:
            running = await self.runtime.container_running(self.container.name)
        except SnapwatchError as e:
            return HealthStatus(healthy=False, message=f"failed to check if container is running: {e}")

        if not running:
            return HealthStatus(healthy=False, message="container is not running")
        return HealthStatus(healthy=True)
