"""Snapshot range of the local node's snapshot database."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from snapwatch.core.errors import CommandError, NodeSetupError, SnapshotDatabaseMissingError
from snapwatch.core.network.retry import retry_async
from snapwatch.core.runtime.process import execute_binary_json

if TYPE_CHECKING:
    from snapwatch.core.storage.paths import PathManager

logger = structlog.get_logger(__name__)

RANGE_ATTEMPTS = 3
RANGE_DELAY = 5.0


class _CliSnapshot(BaseModel):
    height: int = Field(validation_alias=AliasChoices("height", "Height"))


class _CliSnapshots(BaseModel):
    snapshots: list[_CliSnapshot] = Field(default=[], validation_alias=AliasChoices("snapshots", "Snapshots"))


async def local_snapshot_range(
    paths: PathManager,
    attempts: int = RANGE_ATTEMPTS,
    delay: float = RANGE_DELAY,
) -> tuple[int, int]:
    """
    Get the lowest and highest snapshot height the local node wrote.

    Runs `vega tools snapshot --home <vega_home> --output json`.

    Returns:
        (min height, max height)

    Raises:
        SnapshotDatabaseMissingError: If the node never created its snapshot database
        NodeSetupError: If the command fails or lists no snapshot
    """
    args = ["tools", "snapshot", "--home", str(paths.vega_home), "--output", "json"]

    try:
        output = await retry_async(lambda: execute_binary_json(paths.vega_bin, args), attempts=attempts, delay=delay)
    except CommandError as e:
        if "file does not exist" in str(e):
            raise SnapshotDatabaseMissingError("snapshot database does not exist on filesystem") from e
        raise NodeSetupError(f"failed to get snapshot from the cli: {e}") from e

    try:
        listing = _CliSnapshots.model_validate(output)
    except ValidationError as e:
        raise NodeSetupError(f"unexpected snapshot listing: {e}") from e

    heights = [snapshot.height for snapshot in listing.snapshots]
    if not heights:
        raise NodeSetupError("the local snapshot database lists no snapshot")

    logger.info("Local snapshot range", min_height=min(heights), max_height=max(heights))
    return min(heights), max(heights)
