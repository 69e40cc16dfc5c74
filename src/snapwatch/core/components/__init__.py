"""Supervised components: database, node process and watchdog."""

from snapwatch.core.components.base import Component
from snapwatch.core.components.models import (
    ComponentResults,
    HealthStatus,
    NodeEvent,
    NodeHealthRecord,
    NodeHealthStatus,
)
from snapwatch.core.components.postgresql import PostgreSQLComponent
from snapwatch.core.components.supervisor import Supervisor
from snapwatch.core.components.visor import VisorComponent
from snapwatch.core.components.watchdog import NodeWatchdog

__all__ = [
    # Base classes
    "Component",
    "Supervisor",
    # Component implementations
    "NodeWatchdog",
    "PostgreSQLComponent",
    "VisorComponent",
    # Models
    "ComponentResults",
    "HealthStatus",
    "NodeEvent",
    "NodeHealthRecord",
    "NodeHealthStatus",
]
