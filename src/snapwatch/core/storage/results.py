"""Persistence of the run verdict to `results.json`."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from snapwatch.core.errors import PersistenceError

logger = structlog.get_logger(__name__)


def merge_results(*results: dict[str, Any]) -> dict[str, Any]:
    """Merge result maps in order; later maps overwrite earlier keys."""
    merged: dict[str, Any] = {}
    for result in results:
        merged.update(result)
    return merged


def write_results(path: Path | str, results: dict[str, Any]) -> None:
    """
    Write the results map as indented JSON.

    Args:
        path: Destination file (its directory must exist)
        results: JSON-serializable result map

    Raises:
        PersistenceError: If the map cannot be serialized or written
    """
    path = Path(path)

    try:
        payload = json.dumps(results, indent=4, sort_keys=True, default=str)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"failed to marshal results: {e}") from e

    try:
        path.write_text(payload, encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"failed to write results file {path}: {e}") from e

    logger.info("Results written", path=str(path), keys=len(results))


def read_results(path: Path | str) -> dict[str, Any]:
    """Read a results file; a missing file reads as an empty map."""
    path = Path(path)
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise PersistenceError(f"failed to read results file {path}: {e}") from e
