"""Restart snapshot selection."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from snapwatch.core.errors import NoRestartSnapshotError, StatisticsError
from snapwatch.core.models.config import NetworkQueryConfig

if TYPE_CHECKING:
    from snapwatch.core.models.statistics import RestartSnapshot
    from snapwatch.core.network.client import StatisticsClient
    from snapwatch.core.network.resolver import NetworkResolver

logger = structlog.get_logger(__name__)


def snapshot_window(consensus_height: int, min_offset: int = 500, max_offset: int = 6000) -> tuple[int, int]:
    """
    Compute the inclusive height window a restart snapshot must fall in.

    The lower bound is clamped at zero for young networks.
    """
    return max(consensus_height - max_offset, 0), max(consensus_height - min_offset, 0)


class RestartSnapshotSelector:
    """Picks one restart snapshot inside the safe window behind the network head."""

    def __init__(
        self,
        resolver: NetworkResolver,
        client: StatisticsClient,
        config: NetworkQueryConfig | None = None,
    ) -> None:
        self.resolver = resolver
        self.client = client
        self.config = config or NetworkQueryConfig()
        self._lock = asyncio.Lock()
        self._selected: RestartSnapshot | None = None

    async def select_restart_snapshot(self) -> RestartSnapshot:
        """
        Select the restart snapshot.

        Healthy endpoints are walked in configuration order and each listing
        in its own order; the first snapshot inside the window wins. The
        result is memoized.

        Raises:
            NoHealthyEndpointError: If the network view cannot be resolved
            NoRestartSnapshotError: If no endpoint lists an in-window snapshot
        """
        endpoints = await self.resolver.healthy_endpoints()
        consensus_height = await self.resolver.consensus_height()

        async with self._lock:
            if self._selected is not None:
                return self._selected

            low, high = snapshot_window(
                consensus_height,
                min_offset=self.config.snapshot_window_min_offset,
                max_offset=self.config.snapshot_window_max_offset,
            )
            logger.info("Selecting restart snapshot", min_height=low, max_height=high)

            for endpoint in endpoints:
                try:
                    snapshots = await self.client.fetch_snapshots(endpoint)
                except StatisticsError as e:
                    logger.info("Failed to fetch snapshots", endpoint=endpoint, error=str(e))
                    continue

                for snapshot in snapshots:
                    if low <= snapshot.height <= high:
                        logger.info(
                            "Restart snapshot selected",
                            endpoint=endpoint,
                            height=snapshot.height,
                            hash=snapshot.hash,
                        )
                        self._selected = snapshot
                        return snapshot

                logger.info("No snapshot in window", endpoint=endpoint, listed=len(snapshots))

        raise NoRestartSnapshotError(
            f"no restart snapshot found between heights {low} and {high} on any healthy endpoint"
        )
