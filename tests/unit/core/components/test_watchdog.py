"""Tests for NodeWatchdog."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from snapwatch.core.components.models import NodeHealthStatus
from snapwatch.core.components.watchdog import NodeWatchdog
from snapwatch.core.errors import ConfigurationError, EndpointRequestError, NoHealthyEndpointError
from snapwatch.core.models.config import WatchdogConfig
from snapwatch.core.models.statistics import StatisticsSnapshot

LOCAL = "https://local.test"
PEERS = ["https://api0.test", "https://api1.test"]
NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


def _statistics(core: int, secondary: int | None = None) -> StatisticsSnapshot:
    return StatisticsSnapshot(
        core_height=core,
        secondary_height=core if secondary is None else secondary,
        wall_clock_time=NOW,
        internal_time=NOW,
    )


class ScriptedNetwork:
    """Answers latest_statistics from per-tick scripts for the network and the local node."""

    def __init__(self, network: list, local: list) -> None:
        self.network = list(network)
        self.local = list(local)

    async def latest_statistics(self, endpoints: list[str]) -> StatisticsSnapshot:
        script = self.local if endpoints == [LOCAL] else self.network
        value = script.pop(0)
        if isinstance(value, Exception):
            raise value
        return value


def _watchdog(network: list, local: list, **config) -> NodeWatchdog:
    client = MagicMock()
    client.latest_statistics = AsyncMock(side_effect=ScriptedNetwork(network, local).latest_statistics)
    config.setdefault("poll_interval", 0.01)
    settings = WatchdogConfig(local_node_rest=LOCAL, **config)
    watchdog = NodeWatchdog(PEERS, client, settings)
    watchdog.record.stamp("started")
    return watchdog


async def _ticks(watchdog: NodeWatchdog, count: int) -> None:
    for _ in range(count):
        await watchdog.reconcile()


# ============================================================================
# CONSTRUCTION TESTS
# ============================================================================


class TestNodeWatchdogInit:
    """Tests for watchdog construction."""

    def test_requires_peers(self):
        with pytest.raises(ConfigurationError):
            NodeWatchdog([], MagicMock())

    def test_name(self):
        assert NodeWatchdog(PEERS, MagicMock()).name == "watchdog"


# ============================================================================
# RECONCILE TESTS
# ============================================================================


class TestReconcile:
    """Tests for one observation tick."""

    @pytest.mark.asyncio
    async def test_first_healthy_tick_is_catch_up(self):
        watchdog = _watchdog([_statistics(1000)], [_statistics(990)])

        await watchdog.reconcile()

        record = watchdog.record
        assert record.first_seen is not None
        assert record.catch_up is not None
        assert record.healthy is not None
        assert record.last_height == 990
        assert record.events[-1].message == "Node caught rest of the network up at block 990"

    @pytest.mark.asyncio
    async def test_network_failure_skips_tick(self):
        watchdog = _watchdog([NoHealthyEndpointError("all endpoints are unhealthy")], [])

        await watchdog.reconcile()

        assert watchdog.record.first_seen is None
        assert watchdog.record.events == []
        assert watchdog.client.latest_statistics.await_count == 1

    @pytest.mark.asyncio
    async def test_local_failure_records_event(self):
        watchdog = _watchdog([_statistics(1000)], [EndpointRequestError(LOCAL, "connection refused")])

        await watchdog.reconcile()

        assert [event.message for event in watchdog.record.events] == ["Node unhealthy"]
        assert watchdog.record.first_seen is None

    @pytest.mark.asyncio
    async def test_core_lag(self):
        watchdog = _watchdog([_statistics(2000)], [_statistics(1000)])

        await watchdog.reconcile()

        assert watchdog.record.lagging is not None
        assert watchdog.record.catch_up is None
        assert "Core blocks lag too big" in watchdog.record.events[-1].message

    @pytest.mark.asyncio
    async def test_lag_at_threshold_is_healthy(self):
        watchdog = _watchdog([_statistics(1500)], [_statistics(1000)])

        await watchdog.reconcile()

        assert watchdog.record.lagging is None
        assert watchdog.record.catch_up is not None

    @pytest.mark.asyncio
    async def test_data_node_lag(self):
        watchdog = _watchdog([_statistics(1000)], [_statistics(1000, secondary=100)])

        await watchdog.reconcile()

        assert watchdog.record.lagging is not None
        assert "Data node blocks lag too big" in watchdog.record.events[-1].message

    @pytest.mark.asyncio
    async def test_absent_data_node_height_counts_as_lag(self):
        watchdog = _watchdog([_statistics(1000)], [_statistics(1000, secondary=0)])

        await watchdog.reconcile()

        assert watchdog.record.lagging is not None

    @pytest.mark.asyncio
    async def test_stalled_node(self):
        watchdog = _watchdog([_statistics(1000), _statistics(1010)], [_statistics(1000), _statistics(1000)])

        await _ticks(watchdog, 2)

        assert watchdog.record.block_production_stopped is not None
        assert watchdog.record.last_height == 1000
        assert watchdog.record.classify() == NodeHealthStatus.UNHEALTHY
        assert "did not produce any block" in watchdog.record.events[-1].message

    @pytest.mark.asyncio
    async def test_later_healthy_tick_is_not_catch_up(self):
        watchdog = _watchdog([_statistics(1000), _statistics(1010)], [_statistics(1000), _statistics(1010)])

        await watchdog.reconcile()
        catch_up = watchdog.record.catch_up
        await watchdog.reconcile()

        assert watchdog.record.catch_up == catch_up
        assert watchdog.record.healthy > catch_up
        assert watchdog.record.events[-1].message == "Local node is healthy, block is 1010"


# ============================================================================
# SCENARIO TESTS
# ============================================================================


class TestScenarios:
    """End-to-end trajectories through several ticks."""

    @pytest.mark.asyncio
    async def test_never_reachable(self):
        error = EndpointRequestError(LOCAL, "connection refused")
        watchdog = _watchdog([_statistics(1000)] * 3, [error] * 3)

        await _ticks(watchdog, 3)

        assert watchdog.record.classify() == NodeHealthStatus.UNHEALTHY
        assert "never produced a valid response" in watchdog.record.unhealthy_reason()

    @pytest.mark.asyncio
    async def test_catches_up_then_stays_healthy(self):
        network = [_statistics(h) for h in (5000, 5010, 5020, 5030)]
        local = [_statistics(h) for h in (100, 2000, 5015, 5030)]
        watchdog = _watchdog(network, local)

        await _ticks(watchdog, 4)

        assert watchdog.record.classify() == NodeHealthStatus.HEALTHY
        assert watchdog.result()["catchup-duration"] != "N/A"

    @pytest.mark.asyncio
    async def test_catches_up_then_lags(self):
        network = [_statistics(h) for h in (5000, 6000)]
        local = [_statistics(h) for h in (5000, 5001)]
        watchdog = _watchdog(network, local)

        await _ticks(watchdog, 2)

        assert watchdog.record.classify() == NodeHealthStatus.MAYBE


# ============================================================================
# LIFECYCLE TESTS
# ============================================================================


class TestLifecycle:
    """Tests for start/stop and liveness."""

    @pytest.mark.asyncio
    async def test_loop_ticks_until_stop(self):
        network = [_statistics(1000 + i) for i in range(1000)]
        local = [_statistics(1000 + i) for i in range(1000)]
        watchdog = _watchdog(network, local)
        stop = asyncio.Event()

        task = asyncio.create_task(watchdog.start(stop))
        await asyncio.sleep(0.1)
        stop.set()
        await asyncio.wait_for(task, timeout=1.0)

        assert watchdog.record.started is not None
        assert watchdog.client.latest_statistics.await_count >= 2

    @pytest.mark.asyncio
    async def test_tick_errors_do_not_end_the_loop(self):
        watchdog = _watchdog([], [])
        watchdog.client.latest_statistics = AsyncMock(side_effect=RuntimeError("boom"))
        stop = asyncio.Event()

        task = asyncio.create_task(watchdog.start(stop))
        await asyncio.sleep(0.05)
        assert not task.done()

        stop.set()
        await asyncio.wait_for(task, timeout=1.0)
        assert watchdog.client.latest_statistics.await_count >= 2

    @pytest.mark.asyncio
    async def test_direct_stop_interrupts_wait(self):
        watchdog = _watchdog([], [], poll_interval=30.0)

        task = asyncio.create_task(watchdog.start(asyncio.Event()))
        await asyncio.sleep(0.05)
        await watchdog.stop()
        await asyncio.wait_for(task, timeout=1.0)

        watchdog.client.latest_statistics.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stop_set_before_start(self):
        watchdog = _watchdog([], [], poll_interval=30.0)
        stop = asyncio.Event()
        stop.set()

        await asyncio.wait_for(watchdog.start(stop), timeout=1.0)

        watchdog.client.latest_statistics.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_healthy_while_ticking(self):
        watchdog = _watchdog([], [])
        status = await watchdog.healthy()
        assert status.healthy

    @pytest.mark.asyncio
    async def test_unhealthy_when_loop_is_stuck(self):
        watchdog = _watchdog([], [], liveness_timeout=0.01)
        await asyncio.sleep(0.05)

        status = await watchdog.healthy()

        assert not status.healthy
        assert "has not ticked" in status.message
