"""External runtimes: containers, processes, config files and artifacts."""

from snapwatch.core.runtime.container import DockerRuntime
from snapwatch.core.runtime.process import execute_binary, execute_binary_json
from snapwatch.core.runtime.templater import patch_toml_keys

__all__ = [
    "DockerRuntime",
    "execute_binary",
    "execute_binary_json",
    "patch_toml_keys",
]
