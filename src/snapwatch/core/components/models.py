"""Data models for supervised components and the node watchdog."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

ComponentResults = dict[str, Any]


class NodeHealthStatus(str, Enum):
    """Verdict on the local node's trajectory."""

    HEALTHY = "HEALTHY"
    MAYBE = "MAYBE"
    UNHEALTHY = "UNHEALTHY"


@dataclass
class HealthStatus:
    """Answer of one component health probe."""

    healthy: bool
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"healthy": self.healthy, "message": self.message}


@dataclass(frozen=True)
class NodeEvent:
    """One entry of the watchdog event log."""

    time: datetime
    message: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"time": self.time.isoformat(), "event": self.message}


# Result keys written to results.json
KEY_STATUS = "status"
KEY_REASON = "reason"
KEY_STARTED = "test-startup"
KEY_FIRST_SEEN = "node-startup"
KEY_CATCH_UP = "node-catch-up"
KEY_LAST_LAG = "node-last-lag"
KEY_LAST_HEALTHY = "node-last-healthy"
KEY_CATCH_UP_DURATION = "catchup-duration"
KEY_STOPPED_PRODUCING_BLOCKS = "stopped-producing-blocks"
KEY_LAST_KNOWN_HEIGHT = "last-known-node-height"
KEY_EVENTS = "events"

_STAMPS = ("started", "first_seen", "catch_up", "lagging", "block_production_stopped", "healthy")


def _after(a: datetime | None, b: datetime | None) -> bool:
    """Strictly after; an unset instant precedes every set one."""
    if a is None:
        return False
    return b is None or a > b


def _format(instant: datetime | None) -> str:
    return instant.isoformat() if instant else ""


@dataclass
class NodeHealthRecord:
    """
    Trajectory of the local node as seen by one watchdog.

    Written only by the watchdog loop. Every stamp is taken from one
    strictly increasing clock, so two stamps never compare equal.
    """

    started: datetime | None = None  # watchdog started
    first_seen: datetime | None = None  # first valid local status response
    catch_up: datetime | None = None  # first healthy tick
    lagging: datetime | None = None  # last lag violation
    block_production_stopped: datetime | None = None  # last stalled tick
    healthy: datetime | None = None  # last healthy tick
    last_height: int = 0
    events: list[NodeEvent] = field(default_factory=list)

    _clock: datetime | None = field(default=None, repr=False, compare=False)

    def _now(self) -> datetime:
        now = datetime.now(UTC)
        if self._clock is not None and now <= self._clock:
            now = self._clock + timedelta(microseconds=1)
        self._clock = now
        return now

    def stamp(self, name: str) -> datetime:
        """
        Set one timestamp field to now.

        Args:
            name: One of started, first_seen, catch_up, lagging,
                block_production_stopped, healthy

        Returns:
            The instant recorded
        """
        if name not in _STAMPS:
            raise ValueError(f"unknown timestamp field: {name}")
        now = self._now()
        setattr(self, name, now)
        return now

    def push_event(self, message: str) -> None:
        """Append to the event log; empty messages are dropped."""
        if not message:
            return
        self.events.append(NodeEvent(time=self._now(), message=message))

    def classify(self) -> NodeHealthStatus:
        """Classify the trajectory. Pure: repeated calls agree."""
        if _after(self.block_production_stopped, self.healthy):
            return NodeHealthStatus.UNHEALTHY

        if self.catch_up is not None and _after(self.healthy, self.lagging):
            return NodeHealthStatus.HEALTHY

        if self.catch_up is not None:
            return NodeHealthStatus.MAYBE

        return NodeHealthStatus.UNHEALTHY

    def unhealthy_reason(self) -> str:
        """Human readable reason matching classify(); empty when healthy."""
        if _after(self.block_production_stopped, self.healthy):
            return f"Node stopped producing blocks at block {self.last_height}"

        if self.catch_up is not None and _after(self.healthy, self.lagging):
            return ""

        if self.catch_up is not None:
            return "Node caught up at some point but then started lagging"

        if self.first_seen is None:
            return "Node never produced a valid response for the /statistics endpoint"

        return "Node never caught the rest of the network up"

    @property
    def catch_up_duration(self) -> timedelta | None:
        if self.catch_up is None or self.started is None:
            return None
        return self.catch_up - self.started

    def to_results(self) -> ComponentResults:
        """Convert to the persisted result map."""
        duration = self.catch_up_duration
        return {
            KEY_STATUS: self.classify().value,
            KEY_REASON: self.unhealthy_reason(),
            KEY_STARTED: _format(self.started),
            KEY_FIRST_SEEN: _format(self.first_seen),
            KEY_CATCH_UP: _format(self.catch_up),
            KEY_LAST_LAG: _format(self.lagging),
            KEY_LAST_HEALTHY: _format(self.healthy),
            KEY_STOPPED_PRODUCING_BLOCKS: _format(self.block_production_stopped),
            KEY_LAST_KNOWN_HEIGHT: self.last_height,
            KEY_CATCH_UP_DURATION: str(duration) if duration is not None else "N/A",
            KEY_EVENTS: [event.to_dict() for event in self.events],
        }
