"""REST client for node `/statistics` and snapshot listing endpoints."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from snapwatch.core.errors import (
    EndpointRequestError,
    MalformedResponseError,
    NoHealthyEndpointError,
    StatisticsError,
)
from snapwatch.core.models.statistics import RestartSnapshot, StatisticsSnapshot
from snapwatch.core.network.retry import DEFAULT_ATTEMPTS, DEFAULT_DELAY, retry_async

logger = structlog.get_logger(__name__)

REQUEST_TIMEOUT = 5.0
SECONDARY_HEIGHT_HEADER = "x-block-height"
UINT64_MAX = 2**64 - 1

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


# ============================================================================
# RAW RESPONSE SCHEMAS
# ============================================================================


class _RawStatistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    block_height: str = Field(default="", alias="blockHeight")
    current_time: str = Field(default="", alias="currentTime")
    vega_time: str = Field(default="", alias="vegaTime")
    chain_id: str = Field(default="", alias="chainId")
    app_version: str = Field(default="", alias="appVersion")


class _StatisticsResponse(BaseModel):
    statistics: _RawStatistics = Field(default_factory=_RawStatistics)


class _RawSnapshotNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    block_height: str = Field(default="", alias="blockHeight")
    block_hash: str = Field(default="", alias="blockHash")
    core_version: str = Field(default="", alias="coreVersion")


class _RawSnapshotEdge(BaseModel):
    node: _RawSnapshotNode = Field(default_factory=_RawSnapshotNode)


class _RawSnapshotConnection(BaseModel):
    edges: list[_RawSnapshotEdge] = []


class _SnapshotsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    core_snapshots: _RawSnapshotConnection = Field(
        default_factory=_RawSnapshotConnection, alias="coreSnapshots"
    )


# ============================================================================
# FIELD PARSERS
# ============================================================================


def parse_uint64(value: str) -> int:
    """
    Parse a decimal string as an unsigned 64-bit integer.

    Raises:
        ValueError: If the value is empty, signed, non-decimal or out of range
    """
    if not value or not value.isascii() or not value.isdigit():
        raise ValueError(f"invalid unsigned integer: {value!r}")

    number = int(value)
    if number > UINT64_MAX:
        raise ValueError(f"value out of uint64 range: {value}")
    return number


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC3339 timestamp with up to nanosecond precision.

    Sub-microsecond digits are dropped.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if not value:
        raise ValueError("empty timestamp")

    normalized = _FRACTION_RE.sub(r"\1", value)
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"
    return datetime.fromisoformat(normalized)


def _endpoint_url(endpoint: str, path: str) -> str:
    return f"{endpoint.rstrip('/')}{path}"


class StatisticsClient:
    """
    Queries node REST endpoints.

    Single-shot methods (`get_*`) raise a typed StatisticsError on any
    failure. The `fetch_*` variants wrap them in the fixed-backoff retry every
    call site is expected to use.
    """

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        retry_attempts: int = DEFAULT_ATTEMPTS,
        retry_delay: float = DEFAULT_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            timeout: Per-request timeout in seconds
            retry_attempts: Attempts per endpoint for the fetch_* methods
            retry_delay: Fixed sleep between attempts
            transport: Optional transport override (used by tests)
        """
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_keepalive_connections=10, keepalive_expiry=30.0),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> StatisticsClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    async def _get(self, url: str, endpoint: str) -> httpx.Response:
        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EndpointRequestError(endpoint, f"failed to query {url}: {e}") from e
        return response

    async def get_statistics(self, endpoint: str) -> StatisticsSnapshot:
        """
        Query `/statistics` once.

        Args:
            endpoint: Base REST URL of one peer

        Returns:
            Parsed StatisticsSnapshot
        """
        response = await self._get(_endpoint_url(endpoint, "/statistics"), endpoint)

        try:
            raw = _StatisticsResponse.model_validate_json(response.content).statistics
        except ValidationError as e:
            raise MalformedResponseError(endpoint, f"failed to unmarshal statistics response: {e}") from e

        try:
            core_height = parse_uint64(raw.block_height)
        except ValueError as e:
            raise MalformedResponseError(endpoint, f"failed to parse block height: {e}") from e

        try:
            wall_clock_time = parse_timestamp(raw.current_time)
            internal_time = parse_timestamp(raw.vega_time)
        except ValueError as e:
            raise MalformedResponseError(endpoint, f"failed to parse statistics time: {e}") from e

        secondary_height = 0
        header = response.headers.get(SECONDARY_HEIGHT_HEADER, "")
        if header:
            try:
                secondary_height = parse_uint64(header)
            except ValueError as e:
                raise MalformedResponseError(endpoint, f"failed to parse data node block height: {e}") from e

        return StatisticsSnapshot(
            core_height=core_height,
            secondary_height=secondary_height,
            wall_clock_time=wall_clock_time,
            internal_time=internal_time,
            chain_id=raw.chain_id,
            app_version=raw.app_version,
        )

    async def get_snapshots(self, endpoint: str) -> list[RestartSnapshot]:
        """
        Query `/api/v2/snapshots` once.

        Returns:
            Snapshots in listing order
        """
        response = await self._get(_endpoint_url(endpoint, "/api/v2/snapshots"), endpoint)

        try:
            raw = _SnapshotsResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise MalformedResponseError(endpoint, f"failed to unmarshal snapshots response: {e}") from e

        snapshots = []
        for edge in raw.core_snapshots.edges:
            try:
                height = parse_uint64(edge.node.block_height)
            except ValueError as e:
                raise MalformedResponseError(
                    endpoint, f"failed to parse snapshot height({edge.node.block_height}): {e}"
                ) from e

            snapshots.append(
                RestartSnapshot(
                    height=height,
                    hash=edge.node.block_hash,
                    core_version=edge.node.core_version,
                )
            )

        return snapshots

    async def fetch_statistics(self, endpoint: str) -> StatisticsSnapshot:
        """Query `/statistics` with retries."""
        return await retry_async(
            lambda: self.get_statistics(endpoint),
            attempts=self.retry_attempts,
            delay=self.retry_delay,
        )

    async def fetch_snapshots(self, endpoint: str) -> list[RestartSnapshot]:
        """Query the snapshot listing with retries."""
        return await retry_async(
            lambda: self.get_snapshots(endpoint),
            attempts=self.retry_attempts,
            delay=self.retry_delay,
        )

    async def latest_statistics(self, endpoints: list[str]) -> StatisticsSnapshot:
        """
        Get the highest-height statistics among endpoints.

        Failing endpoints are skipped.

        Raises:
            NoHealthyEndpointError: If no endpoint was given or all failed
        """
        if not endpoints:
            raise NoHealthyEndpointError("no rest endpoint passed")

        latest: StatisticsSnapshot | None = None
        for endpoint in endpoints:
            try:
                statistics = await self.fetch_statistics(endpoint)
            except StatisticsError as e:
                logger.debug("Skipping endpoint", endpoint=endpoint, error=str(e))
                continue

            if latest is None or latest.core_height < statistics.core_height:
                latest = statistics

        if latest is None:
            raise NoHealthyEndpointError("all endpoints are unhealthy")

        return latest
