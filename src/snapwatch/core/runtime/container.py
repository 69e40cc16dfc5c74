"""Docker-backed container runtime."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

import docker
import structlog
from docker.errors import DockerException, NotFound

from snapwatch.core.errors import ContainerRuntimeError
from snapwatch.core.interfaces.container import OutputKind

if TYPE_CHECKING:
    from snapwatch.core.models.config import ContainerConfig

logger = structlog.get_logger(__name__)


def split_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Re-chunk a byte stream into newline-terminated lines."""
    pending = b""
    for chunk in chunks:
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for line in lines:
            yield line + b"\n"
    if pending:
        yield pending


class DockerRuntime:
    """
    Container runtime on top of the docker SDK.

    The SDK is blocking; every call is moved to a worker thread.
    """

    def __init__(self, client: Any | None = None) -> None:
        """
        Initialize the runtime.

        Args:
            client: Preconfigured docker client (defaults to docker.from_env())
        """
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            try:
                self._client = docker.from_env()
            except DockerException as e:
                raise ContainerRuntimeError(f"failed to create docker client from env: {e}") from e
        return self._client

    def _get(self, name: str) -> Any | None:
        try:
            return self.client.containers.get(name)
        except NotFound:
            return None

    def _run(self, config: ContainerConfig) -> None:
        self.client.containers.run(
            image=config.image,
            command=config.command or None,
            name=config.name,
            environment=config.environment,
            ports={f"{container}/tcp": host for container, host in config.ports.items()},
            network_mode="bridge",
            tty=True,
            detach=True,
        )

    async def run_container(self, config: ContainerConfig) -> None:
        logger.info("Starting container", name=config.name, image=config.image)
        try:
            await asyncio.to_thread(self._run, config)
        except DockerException as e:
            raise ContainerRuntimeError(f"failed to run container {config.name}: {e}") from e

    async def container_exists(self, name: str) -> bool:
        try:
            return await asyncio.to_thread(self._get, name) is not None
        except DockerException as e:
            raise ContainerRuntimeError(f"failed to look up container {name}: {e}") from e

    async def container_running(self, name: str) -> bool:
        try:
            container = await asyncio.to_thread(self._get, name)
        except DockerException as e:
            raise ContainerRuntimeError(f"failed to inspect container {name}: {e}") from e

        if container is None:
            raise ContainerRuntimeError(f"container {name} not found")
        return container.status == "running"

    def _remove(self, name: str) -> None:
        container = self._get(name)
        if container is not None:
            container.remove(force=True, v=True)

    async def remove_force(self, name: str) -> None:
        logger.info("Removing container", name=name)
        try:
            await asyncio.to_thread(self._remove, name)
        except DockerException as e:
            raise ContainerRuntimeError(f"failed to remove container {name}: {e}") from e

    def stream_output(self, name: str, kind: OutputKind) -> Iterator[bytes]:
        try:
            container = self.client.containers.get(name)
            chunks = container.logs(
                stream=True,
                follow=True,
                stdout=kind == OutputKind.STDOUT,
                stderr=kind == OutputKind.STDERR,
            )
        except DockerException as e:
            raise ContainerRuntimeError(f"failed to get {kind.value} stream of {name}: {e}") from e

        return split_lines(chunks)
