"""Base class for supervised components."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncio

    from snapwatch.core.components.models import ComponentResults, HealthStatus


class Component(ABC):
    """
    One long-lived unit run by the Supervisor.

    Subclasses must:
    1. Set `name` - unique within a run, used in logs and errors
    2. Implement start() - run until the stop event is set, raise on launch failure
    3. Implement stop() - release what start() acquired, idempotent
    4. Implement healthy() - cheap non-blocking probe
    5. Implement cleanup() - remove leftovers of earlier runs
    6. Implement result() - JSON-serializable contribution to results.json
    """

    name: str = "component"

    @abstractmethod
    async def start(self, stop: asyncio.Event) -> None:
        """
        Run the component.

        Returns once `stop` is set or the component finished on its own.

        Args:
            stop: Run-wide stop signal shared by every component

        Raises:
            Exception: Any error means the component failed to launch
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop the component. Called exactly once per run, even after failures."""

    @abstractmethod
    async def healthy(self) -> HealthStatus:
        """Report current health. Must return promptly."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Remove state left behind by an earlier run."""

    def result(self) -> ComponentResults:
        """Result map merged into the run results."""
        return {}
