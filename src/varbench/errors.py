"""Exceptions raised by the varbench harness.

Each step of a run raises its own subclass of :class:`HarnessError` so a
caller can tell which step stopped the run. Nothing is retried.
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for every failure that aborts a harness run."""


class WorkspaceError(HarnessError):
    """The project root could not be determined."""


class ConfigError(HarnessError):
    """The harness configuration is invalid."""


class ToolNotFoundError(HarnessError):
    """A required external program is not on PATH."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Required tool not found on PATH: {tool}")
        self.tool = tool


class BuildError(HarnessError):
    """The build system failed for one of the variants."""

    def __init__(self, message: str, *, variant: str, component: str, stderr: str = "") -> None:
        super().__init__(message)
        self.variant = variant
        self.component = component
        self.stderr = stderr


class BenchmarkError(HarnessError):
    """The benchmarking tool failed during one of the passes."""

    def __init__(self, message: str, *, pass_name: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.pass_name = pass_name
        self.returncode = returncode
