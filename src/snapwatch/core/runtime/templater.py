"""TOML configuration patching by dotted key."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

import structlog
import tomli_w

from snapwatch.core.errors import NodeSetupError

logger = structlog.get_logger(__name__)


def set_dotted_key(document: dict[str, Any], key: str, value: Any) -> None:
    """
    Set a value by dotted path, creating intermediate tables.

    Raises:
        NodeSetupError: If a path segment exists but is not a table
    """
    *parents, leaf = key.split(".")
    table = document
    for part in parents:
        child = table.setdefault(part, {})
        if not isinstance(child, dict):
            raise NodeSetupError(f"cannot set {key}: {part} is not a table")
        table = child
    table[leaf] = value


def patch_toml_keys(path: Path | str, values: dict[str, Any]) -> None:
    """
    Overwrite keys of an existing TOML file.

    Keys not named in values are preserved.

    Args:
        path: TOML file to rewrite in place
        values: Mapping of dotted key (`p2p.seeds`) to new value

    Raises:
        NodeSetupError: If the file cannot be read, parsed or written
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise NodeSetupError(f"failed to parse TOML {path}: {e}") from e
    except OSError as e:
        raise NodeSetupError(f"failed to read {path}: {e}") from e

    for key, value in values.items():
        set_dotted_key(document, key, value)

    try:
        with open(path, "wb") as f:
            tomli_w.dump(document, f)
    except OSError as e:
        raise NodeSetupError(f"failed to write {path}: {e}") from e

    logger.debug("Config patched", path=str(path), keys=sorted(values))
