"""Work directory layout and result persistence."""

from snapwatch.core.storage.paths import PathManager
from snapwatch.core.storage.results import merge_results, read_results, write_results

__all__ = [
    "PathManager",
    "merge_results",
    "read_results",
    "write_results",
]
