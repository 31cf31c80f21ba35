"""End-to-end harness run: locate, build both variants, compare.

Every step blocks until it finishes and the first failure ends the run by
raising a :class:`~varbench.errors.HarnessError` subclass.
"""

from __future__ import annotations

import shlex
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path

from varbench.build import (
    BuiltVariants,
    artifact_path,
    build_command,
    build_variants,
    variants_for,
)
from varbench.compare import PassResult, benchmark_command, compare, plan_passes
from varbench.config import HarnessConfig, check_config
from varbench.errors import ToolNotFoundError
from varbench.logging import get_logger
from varbench.workspace import locate_workspace

log = get_logger("harness")


@dataclass
class HarnessResult:
    """Summary of one harness run."""

    component: str
    root: Path
    built: BuiltVariants | None = None
    passes: list[PassResult] = field(default_factory=list)
    planned: list[list[str]] = field(default_factory=list)  # dry-run only
    duration_seconds: float = 0.0

    @property
    def dry_run(self) -> bool:
        return self.built is None


def check_tools(config: HarnessConfig) -> None:
    """Raise :class:`ToolNotFoundError` unless both external tools are on PATH."""
    for tool in (config.build_tool, config.bench_tool):
        if shutil.which(tool) is None:
            raise ToolNotFoundError(tool)


def plan_commands(
    component: str, extra_options: list[str], config: HarnessConfig
) -> list[list[str]]:
    """Return every command a real run would execute, in order."""
    commands = [
        build_command(
            component,
            variant,
            profile=config.profile,
            build_tool=config.build_tool,
            target_dir=config.target_dir,
        )
        for variant in variants_for(config)
    ]
    placeholder = Path("<tmp>")
    baseline, enabled = (placeholder / v.artifact_name(component) for v in variants_for(config))
    options = [*config.default_bench_args, *extra_options]
    for bench_pass in plan_passes(baseline, enabled, options, config.mode_flags):
        commands.append(benchmark_command(bench_pass, config.bench_tool))
    return commands


def run_harness(
    component: str, extra_options: list[str] | tuple[str, ...], config: HarnessConfig
) -> HarnessResult:
    """Build *component* twice and benchmark the two builds against each other.

    Raises:
        ConfigError: The configuration is invalid.
        WorkspaceError: The workspace root could not be located.
        ToolNotFoundError: The build or benchmark tool is missing.
        BuildError: Either build failed; no benchmark has run.
        BenchmarkError: The benchmark tool failed in one of the passes.
    """
    start = time.monotonic()
    options = list(extra_options)
    check_config(config)
    root = locate_workspace(explicit=config.workspace)
    log.info("Workspace root: %s", root)

    if config.dry_run:
        planned = plan_commands(component, options, config)
        log.info(
            "Artifacts would be taken from %s",
            artifact_path(root, component, profile=config.profile, target_dir=config.target_dir),
        )
        for cmd in planned:
            log.info("Would run: %s", shlex.join(cmd))
        return HarnessResult(
            component=component,
            root=root,
            planned=planned,
            duration_seconds=time.monotonic() - start,
        )

    check_tools(config)
    built = build_variants(root, component, config)
    log.info("Built %s variants in %.1fs", component, built.duration_seconds)
    passes = compare(root, built.baseline, built.feature, options, config)

    return HarnessResult(
        component=component,
        root=root,
        built=built,
        passes=passes,
        duration_seconds=time.monotonic() - start,
    )
