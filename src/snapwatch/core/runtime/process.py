"""External binary execution."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import structlog

from snapwatch.core.errors import CommandError

logger = structlog.get_logger(__name__)


async def execute_binary(path: Path | str, args: list[str]) -> str:
    """
    Run a binary to completion and return its stdout.

    Args:
        path: Binary to execute
        args: Command line arguments

    Returns:
        Decoded stdout

    Raises:
        CommandError: If the binary is missing or exits with a non-zero status
    """
    command = [str(path), *args]
    logger.debug("Executing binary", command=command)

    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CommandError(command, -1, str(e)) from e

    stdout, stderr = await proc.communicate()
    output = stdout.decode(errors="replace")

    if proc.returncode != 0:
        raise CommandError(command, proc.returncode or -1, output + stderr.decode(errors="replace"))

    return output


async def execute_binary_json(path: Path | str, args: list[str]) -> Any:
    """Run a binary and decode its stdout as JSON."""
    output = await execute_binary(path, args)

    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        raise CommandError([str(path), *args], 0, f"invalid json output: {e}: {output}") from e
