"""Local node preparation and inspection."""

from snapwatch.core.node.setup import LocalNodeDetails, LocalNodeSetup
from snapwatch.core.node.snapshots import local_snapshot_range

__all__ = [
    "LocalNodeDetails",
    "LocalNodeSetup",
    "local_snapshot_range",
]
