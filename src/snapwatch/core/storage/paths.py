"""Work directory layout."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PathManager:
    """Resolves every path the tool reads or writes under one work dir."""

    work_dir: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "work_dir", Path(self.work_dir))

    @property
    def logs(self) -> Path:
        return self.work_dir / "logs"

    @property
    def binaries(self) -> Path:
        return self.work_dir / "bins"

    @property
    def vega_home(self) -> Path:
        return self.work_dir / "vega_home"

    @property
    def visor_home(self) -> Path:
        return self.work_dir / "visor_home"

    @property
    def tendermint_home(self) -> Path:
        return self.work_dir / "tendermint_home"

    @property
    def vega_bin(self) -> Path:
        return self.binaries / "vega"

    @property
    def visor_bin(self) -> Path:
        return self.binaries / "visor"

    @property
    def results(self) -> Path:
        return self.work_dir / "results.json"

    def log_file(self, name: str) -> Path:
        """Path of one log file under the logs directory."""
        return self.logs / name

    def create_directory_structure(self) -> None:
        """Ensure the work dir and the logs dir exist."""
        self.work_dir.mkdir(parents=True, exist_ok=True)
        self.logs.mkdir(parents=True, exist_ok=True)

    def binaries_downloaded(self) -> bool:
        """Check whether both release binaries are in place."""
        return self.vega_bin.exists() and self.visor_bin.exists()

    def node_initialized(self) -> bool:
        """Check whether the binaries and every home directory exist."""
        return self.binaries_downloaded() and all(
            path.exists() for path in (self.vega_home, self.tendermint_home, self.visor_home)
        )
