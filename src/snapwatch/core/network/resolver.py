"""Quorum resolver - one trusted network view from untrusted peers."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog

from snapwatch.core.errors import NoHealthyEndpointError, NoRPCPeersError, StatisticsError
from snapwatch.core.models.config import NetworkQueryConfig

if TYPE_CHECKING:
    from snapwatch.core.models.config import NetworkConfig
    from snapwatch.core.models.statistics import StatisticsSnapshot
    from snapwatch.core.network.client import StatisticsClient

logger = structlog.get_logger(__name__)

HEALTHY_BLOCKS_THRESHOLD = 450
HEALTHY_TIME_THRESHOLD = timedelta(seconds=300)


def unhealthy_reason(
    statistics: StatisticsSnapshot,
    consensus_height: int,
    blocks_threshold: int = HEALTHY_BLOCKS_THRESHOLD,
    time_threshold: timedelta = HEALTHY_TIME_THRESHOLD,
) -> str | None:
    """
    Apply the endpoint health criteria to one statistics response.

    Args:
        statistics: Response from the endpoint
        consensus_height: Network head height of the current pass
        blocks_threshold: Allowed block lag (core vs head, replica vs core)
        time_threshold: Allowed lag of internal time behind wall clock

    Returns:
        None if healthy, otherwise a human readable reason
    """
    core = statistics.core_height
    if core < consensus_height and consensus_height - core > blocks_threshold:
        return (
            f"core height({core}) is {consensus_height - core} behind the network "
            f"head({consensus_height}), only {blocks_threshold} blocks lag allowed"
        )

    secondary = statistics.secondary_height
    if secondary > 0 and secondary < core and core - secondary > blocks_threshold:
        return (
            f"data node is {core - secondary} blocks behind core, "
            f"only {blocks_threshold} blocks lag allowed"
        )

    if statistics.time_lag > time_threshold:
        return f"time lag is {statistics.time_lag}, only {time_threshold} allowed"

    return None


class NetworkResolver:
    """
    Resolves consensus height and healthy peers for one network.

    Every answer is memoized for the lifetime of the instance: the first
    successful resolution is authoritative and nothing is re-queried. Create
    one resolver per bootstrap.
    """

    def __init__(
        self,
        network: NetworkConfig,
        client: StatisticsClient,
        config: NetworkQueryConfig | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            network: Network definition with the endpoint and peer lists
            client: REST client used for every query
            config: Health thresholds (defaults when omitted)
        """
        self.network = network
        self.client = client
        self.config = config or NetworkQueryConfig()

        self._lock = asyncio.Lock()
        self._height: int | None = None
        self._healthy_endpoints: list[str] | None = None
        self._healthy_rpc_peers: list[str] | None = None
        self._chain_id: str | None = None
        self._app_version: str | None = None

    @property
    def _time_threshold(self) -> timedelta:
        return timedelta(seconds=self.config.healthy_time_threshold)

    async def consensus_height(self) -> int:
        """
        Get the network head height.

        Every data endpoint is queried once; the maximum successful height
        wins. Partial failures are tolerated.

        Raises:
            NoHealthyEndpointError: If every endpoint failed
        """
        async with self._lock:
            if self._height is not None:
                return self._height

            logger.info("Fetching statistics from all REST endpoints to get the network height")
            heights: list[int] = []
            for endpoint in self.network.data_nodes_rest:
                try:
                    statistics = await self.client.fetch_statistics(endpoint)
                except StatisticsError as e:
                    logger.info("Failed to get statistics", endpoint=endpoint, error=str(e))
                    continue

                heights.append(statistics.core_height)
                logger.info("Endpoint height", endpoint=endpoint, height=statistics.core_height)

            if not heights:
                raise NoHealthyEndpointError("no healthy rest endpoint found")

            self._height = max(heights)
            logger.info("Network head height resolved", height=self._height)
            return self._height

    async def is_endpoint_healthy(self, endpoint: str, consensus_height: int) -> bool:
        """Query one endpoint and apply the health criteria."""
        try:
            statistics = await self.client.fetch_statistics(endpoint)
        except StatisticsError as e:
            logger.info("Endpoint unhealthy: failed to get statistics", endpoint=endpoint, error=str(e))
            return False

        reason = unhealthy_reason(
            statistics,
            consensus_height,
            blocks_threshold=self.config.healthy_blocks_threshold,
            time_threshold=self._time_threshold,
        )
        if reason:
            logger.info("Endpoint unhealthy", endpoint=endpoint, reason=reason)
            return False

        logger.info("Endpoint healthy", endpoint=endpoint, height=statistics.core_height)
        return True

    async def healthy_endpoints(self) -> list[str]:
        """
        Get the data endpoints that pass every health criterion.

        Returns:
            Healthy endpoints in configuration order

        Raises:
            NoHealthyEndpointError: If the height is unknown or no endpoint is healthy
        """
        consensus_height = await self.consensus_height()

        async with self._lock:
            if self._healthy_endpoints is not None:
                return list(self._healthy_endpoints)

            logger.info("Getting all healthy REST endpoints for the network")
            healthy = [
                endpoint
                for endpoint in self.network.data_nodes_rest
                if await self.is_endpoint_healthy(endpoint, consensus_height)
            ]

            if not healthy:
                raise NoHealthyEndpointError("no healthy rest endpoint found")

            logger.info("Healthy REST endpoints resolved", endpoints=healthy)
            self._healthy_endpoints = healthy
            return list(healthy)

    async def healthy_rpc_peers(self) -> list[str]:
        """
        Get RPC peer addresses whose paired REST mirror is healthy.

        Peers without a REST mirror are skipped.

        Raises:
            NoRPCPeersError: If no peer is healthy
        """
        consensus_height = await self.consensus_height()

        async with self._lock:
            if self._healthy_rpc_peers is not None:
                return list(self._healthy_rpc_peers)

            logger.info("Looking for healthy RPC peers")
            healthy: list[str] = []
            for peer in self.network.rpc_peers:
                if not peer.core_rest:
                    logger.info("Peer has no core REST assigned, skipping", peer=peer.endpoint)
                    continue
                if await self.is_endpoint_healthy(peer.core_rest, consensus_height):
                    logger.info("RPC peer healthy", peer=peer.endpoint)
                    healthy.append(peer.endpoint)

            if not healthy:
                raise NoRPCPeersError("no healthy RPC peers found")

            self._healthy_rpc_peers = healthy
            return list(healthy)

    async def chain_id(self) -> str:
        """Get the chain id from the first data endpoint that reports one."""
        async with self._lock:
            if self._chain_id:
                return self._chain_id

            logger.info("Fetching the network chain id")
            for endpoint in self.network.data_nodes_rest:
                try:
                    statistics = await self.client.fetch_statistics(endpoint)
                except StatisticsError as e:
                    logger.info("Failed to get statistics", endpoint=endpoint, error=str(e))
                    continue

                if statistics.chain_id:
                    logger.info("Found network chain id", endpoint=endpoint, chain_id=statistics.chain_id)
                    self._chain_id = statistics.chain_id
                    return self._chain_id

        raise NoHealthyEndpointError("not received any valid response from statistics rest endpoints")

    async def app_version(self) -> str:
        """
        Get the release the network runs.

        The configured override wins; otherwise the first healthy endpoint
        reporting a version is used.
        """
        if self.network.binary_version_override:
            logger.info("Binary version overridden in config", version=self.network.binary_version_override)
            return self.network.binary_version_override

        endpoints = await self.healthy_endpoints()

        async with self._lock:
            if self._app_version:
                return self._app_version

            logger.info("Fetching the network app version")
            for endpoint in endpoints:
                try:
                    statistics = await self.client.fetch_statistics(endpoint)
                except StatisticsError as e:
                    logger.info("Failed to fetch valid response", endpoint=endpoint, error=str(e))
                    continue

                if statistics.app_version:
                    logger.info("Found network app version", endpoint=endpoint, version=statistics.app_version)
                    self._app_version = statistics.app_version
                    return self._app_version

        raise NoHealthyEndpointError(
            "failed to find the app version for the network: no valid response received from the healthy endpoints"
        )
