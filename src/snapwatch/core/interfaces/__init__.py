"""Core interfaces (protocols) for external runtimes."""

from snapwatch.core.interfaces.container import IContainerRuntime, OutputKind

__all__ = [
    "IContainerRuntime",
    "OutputKind",
]
