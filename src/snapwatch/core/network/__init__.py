"""Network queries: statistics client, quorum resolver and snapshot selection."""

from snapwatch.core.network.client import StatisticsClient
from snapwatch.core.network.resolver import NetworkResolver, unhealthy_reason
from snapwatch.core.network.retry import retry_async
from snapwatch.core.network.snapshots import RestartSnapshotSelector, snapshot_window

__all__ = [
    "NetworkResolver",
    "RestartSnapshotSelector",
    "StatisticsClient",
    "retry_async",
    "snapshot_window",
    "unhealthy_reason",
]
