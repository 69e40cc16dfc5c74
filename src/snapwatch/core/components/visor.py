"""Process-backed component running the node supervisor binary."""

from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from snapwatch.core.components.base import Component
from snapwatch.core.components.models import ComponentResults, HealthStatus
from snapwatch.core.errors import NodeSetupError
from snapwatch.core.logs.monitor import STREAM_LIMIT, FailureTail, LogMonitor
from snapwatch.core.logs.setup import close_stream_logger

if TYPE_CHECKING:
    import logging

logger = structlog.get_logger(__name__)

KEY_FAILURE_LOGS = "node-failure-logs"


async def wait_for_port(
    host: str,
    port: int,
    timeout: float = 60.0,
    interval: float = 5.0,
    connect_timeout: float = 3.0,
) -> None:
    """
    Wait until a TCP port accepts connections.

    Raises:
        TimeoutError: If the port did not open in time
    """

    async def probe() -> None:
        while True:
            try:
                _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=connect_timeout)
            except (OSError, TimeoutError):
                logger.info("Port still not open", host=host, port=port)
                await asyncio.sleep(interval)
                continue

            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()
            return

    await asyncio.wait_for(probe(), timeout=timeout)


class VisorComponent(Component):
    """
    Runs `visor run --home <visor_home>` once the database is reachable.

    Output of both streams goes through a LogMonitor sharing one FailureTail,
    exposed in the results when a failure signature was seen.
    """

    name = "vegavisor"

    def __init__(
        self,
        binary: Path | str,
        home: Path | str,
        stdout_sink: logging.Logger,
        stderr_sink: logging.Logger,
        database_port: int = 5432,
        database_wait: float = 60.0,
        start_grace: float = 30.0,
        failure_tail_limit: int = 5000,
    ) -> None:
        self.binary = Path(binary)
        self.home = Path(home)
        self.stdout_sink = stdout_sink
        self.stderr_sink = stderr_sink
        self.database_port = database_port
        self.database_wait = database_wait
        self.start_grace = start_grace
        self.failure_tail_limit = failure_tail_limit

        self.tail = FailureTail()
        self._process: asyncio.subprocess.Process | None = None
        self._started = False
        self._finished = False
        self._log = logger.bind(component=self.name)

    @property
    def command(self) -> list[str]:
        return [str(self.binary), "run", "--home", str(self.home)]

    async def start(self, stop: asyncio.Event) -> None:
        self._log.info("Waiting for postgresql to startup", port=self.database_port)
        try:
            await wait_for_port("127.0.0.1", self.database_port, timeout=self.database_wait)
        except TimeoutError as e:
            raise NodeSetupError(f"postgreSQL did not start in {self.database_wait:.0f} seconds") from e
        self._log.info("Found PostgreSQL running")

        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=self.start_grace)
        if stop.is_set():
            return

        self._log.info("Starting vegavisor", command=self.command)
        self._process = await asyncio.create_subprocess_exec(
            *self.command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT,
        )
        self._started = True

        streams = [
            asyncio.create_task(LogMonitor(self.stdout_sink, self.tail, "visor-stdout").consume_reader(self._process.stdout)),
            asyncio.create_task(LogMonitor(self.stderr_sink, self.tail, "visor-stderr").consume_reader(self._process.stderr)),
        ]
        exited = asyncio.create_task(self._process.wait())
        stopped = asyncio.create_task(stop.wait())

        try:
            await asyncio.wait({exited, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopped.cancel()

        if exited.done():
            self._finished = True
            self._log.error("vegavisor exited", returncode=self._process.returncode)

        await asyncio.gather(*streams, return_exceptions=True)

    async def _terminate(self) -> None:
        if self._process is None or self._process.returncode is not None:
            return

        self._log.info("Terminating vegavisor", pid=self._process.pid)
        self._process.terminate()
        try:
            await asyncio.wait_for(self._process.wait(), timeout=5.0)
        except TimeoutError:
            self._process.kill()
            await self._process.wait()

    async def stop(self) -> None:
        await self._terminate()
        if self._started:
            self._finished = True
        close_stream_logger(self.stdout_sink)
        close_stream_logger(self.stderr_sink)

    async def cleanup(self) -> None:
        await self._terminate()

    async def healthy(self) -> HealthStatus:
        # Not started yet counts as healthy
        if not self._started:
            return HealthStatus(healthy=True)
        if self._finished:
            code = self._process.returncode if self._process else None
            return HealthStatus(healthy=False, message=f"vegavisor process exited (code {code})")
        return HealthStatus(healthy=True)

    def result(self) -> ComponentResults:
        if self.tail.empty():
            return {}
        return {KEY_FAILURE_LOGS: self.tail.render(self.failure_tail_limit)}
