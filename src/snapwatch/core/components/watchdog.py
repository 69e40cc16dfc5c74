"""Node watchdog - classifies the local node's liveness trajectory."""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING

import structlog

from snapwatch.core.components.base import Component
from snapwatch.core.components.models import ComponentResults, HealthStatus, NodeHealthRecord
from snapwatch.core.errors import ConfigurationError, SnapwatchError
from snapwatch.core.models.config import WatchdogConfig

if TYPE_CHECKING:
    from snapwatch.core.network.client import StatisticsClient

logger = structlog.get_logger(__name__)


class NodeWatchdog(Component):
    """
    Polls the local node and the network and records the node's trajectory.

    One reconcile() per poll interval:
    1. Network statistics (highest peer); total failure skips the tick
    2. Local statistics; failure records "Node unhealthy" and skips the tick
    3. Lag checks against the network and between core and data node
    4. Stall check against the last healthy height
    5. Otherwise a healthy tick; the first one is the catch-up
    """

    name = "watchdog"

    def __init__(
        self,
        peers: list[str],
        client: StatisticsClient,
        config: WatchdogConfig | None = None,
    ) -> None:
        """
        Initialize the watchdog.

        Args:
            peers: REST endpoints used as the network reference
            client: REST client shared with the rest of the run
            config: Poll interval, liveness timeout and lag threshold

        Raises:
            ConfigurationError: If no peer is given
        """
        if not peers:
            raise ConfigurationError("at least one rest endpoint is required")

        self.peers = list(peers)
        self.client = client
        self.config = config or WatchdogConfig()

        self.record = NodeHealthRecord()
        self._last_tick = time.monotonic()
        self._halt = asyncio.Event()
        self._log = logger.bind(component=self.name)

    def _lag(self, message: str) -> None:
        self.record.push_event(message)
        self._log.info(message)
        self.record.stamp("lagging")

    async def reconcile(self) -> None:
        """Run one observation and update the record."""
        try:
            network = await self.client.latest_statistics(self.peers)
        except SnapwatchError as e:
            self._log.info("Could not get valid response from any REST endpoint", peers=self.peers, error=str(e))
            return

        local_rest = self.config.local_node_rest
        try:
            local = await self.client.latest_statistics([local_rest])
        except SnapwatchError as e:
            self.record.push_event("Node unhealthy")
            self._log.info("Could not get valid response from local node", endpoint=local_rest, error=str(e))
            return

        if self.record.first_seen is None:
            self.record.push_event("Node response from /statistics first seen")
            self.record.stamp("first_seen")

        max_lag = self.config.max_blocks_lag

        if local.core_height < network.core_height:
            behind = network.core_height - local.core_height
            if behind > max_lag:
                self._lag(
                    f"Core blocks lag too big: local core({local.core_height}) is {behind} blocks behind "
                    f"rest of the network({network.core_height}), {max_lag} blocks allowed"
                )
                return

        if local.secondary_height < local.core_height:
            behind = local.core_height - local.secondary_height
            if behind > max_lag:
                self._lag(
                    f"Data node blocks lag too big: local data-node({local.secondary_height}) is {behind} "
                    f"blocks behind core({local.core_height}), {max_lag} blocks allowed"
                )
                return

        if local.core_height <= self.record.last_height:
            message = f"Node did not produce any block since last check. Last known block is {local.core_height}"
            self.record.push_event(message)
            self._log.info(message)
            self.record.stamp("block_production_stopped")
            return

        self.record.last_height = local.core_height
        self.record.stamp("healthy")

        if self.record.catch_up is None:
            self.record.stamp("catch_up")
            message = f"Node caught rest of the network up at block {local.core_height}"
        else:
            message = f"Local node is healthy, block is {local.core_height}"
        self.record.push_event(message)
        self._log.info(message)

    async def start(self, stop: asyncio.Event) -> None:
        self.record.stamp("started")
        self._halt.clear()
        # Either a supervisor stop or a direct stop() ends the wait
        relay = asyncio.create_task(self._relay_stop(stop))

        try:
            while not self._halt.is_set():
                self._last_tick = time.monotonic()

                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(self._halt.wait(), timeout=self.config.poll_interval)
                if self._halt.is_set():
                    break

                try:
                    await self.reconcile()
                except Exception as e:
                    self._log.exception("Watchdog tick failed", error=str(e))
        finally:
            relay.cancel()

        self._log.info("Watchdog stopped")

    async def _relay_stop(self, stop: asyncio.Event) -> None:
        await stop.wait()
        self._halt.set()

    async def stop(self) -> None:
        self._halt.set()

    async def cleanup(self) -> None:
        await self.stop()

    async def healthy(self) -> HealthStatus:
        since = time.monotonic() - self._last_tick
        if since < self.config.liveness_timeout:
            return HealthStatus(healthy=True)
        return HealthStatus(
            healthy=False,
            message=f"watchdog loop has not ticked for {since:.0f}s",
        )

    def result(self) -> ComponentResults:
        return self.record.to_results()
