"""Values parsed from the network REST API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any


@dataclass(frozen=True)
class StatisticsSnapshot:
    """One `/statistics` response from one endpoint."""

    core_height: int
    wall_clock_time: datetime
    internal_time: datetime
    secondary_height: int = 0  # 0 when the x-block-height header is absent
    chain_id: str = ""
    app_version: str = ""

    @property
    def time_lag(self) -> timedelta:
        """How far the chain's internal clock trails the wall clock."""
        return self.wall_clock_time - self.internal_time

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "core_height": self.core_height,
            "secondary_height": self.secondary_height,
            "wall_clock_time": self.wall_clock_time.isoformat(),
            "internal_time": self.internal_time.isoformat(),
            "chain_id": self.chain_id,
            "app_version": self.app_version,
        }


@dataclass(frozen=True)
class RestartSnapshot:
    """A core snapshot the local node can state-sync from."""

    height: int
    hash: str
    core_version: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "height": self.height,
            "hash": self.hash,
            "core_version": self.core_version,
        }
