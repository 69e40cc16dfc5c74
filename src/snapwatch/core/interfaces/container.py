"""Container runtime interface definitions."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from snapwatch.core.models.config import ContainerConfig


class OutputKind(str, Enum):
    """Container output stream."""

    STDOUT = "stdout"
    STDERR = "stderr"


@runtime_checkable
class IContainerRuntime(Protocol):
    """Contract for the container engine the components run on."""

    async def run_container(self, config: ContainerConfig) -> None:
        """
        Create and start a detached container.

        Args:
            config: Image, name, environment, command and port mapping
        """
        ...

    async def container_exists(self, name: str) -> bool:
        """Check whether a container with this name exists, running or not."""
        ...

    async def container_running(self, name: str) -> bool:
        """Check whether the named container is running."""
        ...

    async def remove_force(self, name: str) -> None:
        """Force-remove the named container with its volumes."""
        ...

    def stream_output(self, name: str, kind: OutputKind) -> Iterator[bytes]:
        """
        Follow one output stream of a container.

        Blocking: consume it from a worker thread.

        Returns:
            Iterator of raw output lines
        """
        ...
