"""Component supervisor - runs components concurrently and aggregates health."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import structlog

from snapwatch.core.errors import CleanupError, LaunchError, RuntimeHealthFailure, StopError
from snapwatch.core.models.config import SupervisorConfig
from snapwatch.core.storage.results import merge_results

if TYPE_CHECKING:
    from snapwatch.core.components.base import Component
    from snapwatch.core.components.models import ComponentResults

logger = structlog.get_logger(__name__)


class Supervisor:
    """
    Runs a fixed set of components for a bounded duration.

    Phases:
    1. Cleanup - sequential, any error aborts before anything starts
    2. Start - every component's start() in its own task
    3. Supervise - health sweep every interval until deadline or failure
    4. Stop - always, each component bounded by stop_timeout
    """

    def __init__(
        self,
        components: list[Component],
        config: SupervisorConfig | None = None,
    ) -> None:
        """
        Initialize the supervisor.

        Args:
            components: Components in start and stop order
            config: Sweep interval and stop timeout
        """
        names = [component.name for component in components]
        if len(set(names)) != len(names):
            raise ValueError(f"component names must be unique: {names}")

        self.components = list(components)
        self.config = config or SupervisorConfig()

        self.stop_errors: list[StopError] = []
        self._launch_error: LaunchError | None = None

    def results(self) -> ComponentResults:
        """Merged results; later components overwrite earlier keys."""
        return merge_results(*(component.result() for component in self.components))

    async def _cleanup(self) -> None:
        logger.info("Running cleanup for all the components")
        for component in self.components:
            logger.info("Cleaning up component", component=component.name)
            try:
                await component.cleanup()
            except Exception as e:
                raise CleanupError(component.name, f"failed to cleanup: {e}") from e

    async def _run_component(self, component: Component, stop: asyncio.Event) -> None:
        logger.info("Starting component", component=component.name)
        try:
            await component.start(stop)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Component failed to start", component=component.name, error=str(e))
            if self._launch_error is None:
                error = LaunchError(component.name, f"failed to start: {e}")
                error.__cause__ = e
                self._launch_error = error
            stop.set()
            return

        logger.info("Component finished", component=component.name)

    async def _check_health(self) -> dict[str, str]:
        logger.info("Running health check")
        unhealthy: dict[str, str] = {}
        for component in self.components:
            try:
                status = await component.healthy()
            except Exception as e:
                unhealthy[component.name] = f"health check raised: {e}"
                logger.error("Component unhealthy", component=component.name, reason=unhealthy[component.name])
                continue

            if not status.healthy:
                unhealthy[component.name] = status.message
                logger.error("Component unhealthy", component=component.name, reason=status.message)
                continue

            logger.info("Component healthy", component=component.name)
        return unhealthy

    async def _supervise(self, stop: asyncio.Event) -> None:
        interval = self.config.health_check_interval
        while not stop.is_set():
            # The interval restarts after each sweep
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=interval)
            if stop.is_set():
                return

            unhealthy = await self._check_health()
            if unhealthy:
                raise RuntimeHealthFailure(unhealthy)

    async def _stop_all(self) -> None:
        for component in self.components:
            logger.info("Stopping component", component=component.name)
            try:
                await asyncio.wait_for(component.stop(), timeout=self.config.stop_timeout)
            except TimeoutError as e:
                error = StopError(component.name, f"did not stop in {self.config.stop_timeout}s")
                error.__cause__ = e
            except Exception as e:
                error = StopError(component.name, f"failed to stop: {e}")
                error.__cause__ = e
            else:
                continue

            self.stop_errors.append(error)
            logger.error("Failed to stop component", component=component.name, error=str(error))

    async def run(self, duration: float | None = None, stop: asyncio.Event | None = None) -> ComponentResults:
        """
        Run every component until the deadline, a stop request or a failure.

        Args:
            duration: Seconds until the run ends successfully (None: until stopped)
            stop: External stop signal; setting it ends the run successfully

        Returns:
            Merged component results

        Raises:
            CleanupError: If a component failed to clean up
            LaunchError: If a component failed to start
            RuntimeHealthFailure: If a health sweep found unhealthy components
        """
        self._launch_error = None
        self.stop_errors = []
        await self._cleanup()

        stop = stop or asyncio.Event()
        loop = asyncio.get_running_loop()
        deadline = loop.call_later(duration, stop.set) if duration is not None else None

        logger.info("Starting the components", count=len(self.components), duration=duration)
        tasks = [
            asyncio.create_task(self._run_component(component, stop), name=f"component-{component.name}")
            for component in self.components
        ]

        try:
            await self._supervise(stop)
            if self._launch_error is not None:
                raise self._launch_error
        finally:
            if deadline is not None:
                deadline.cancel()
            stop.set()
            await self._stop_all()

            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        logger.info("All components finished")
        return self.results()
