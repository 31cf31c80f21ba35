"""Run the benchmarking tool over the two built variants.

Two passes run in order:

1. ``combined`` — both executables with no mode flags.
2. ``part2`` — both executables with the mode flags selecting the second
   operating mode alone (``--part2 --no-part1`` by default).

Extra options are appended unchanged to both passes. The tool's output goes
straight to the terminal; nothing here parses or stores it.
"""

from __future__ import annotations

import shlex
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path

from varbench.config import HarnessConfig
from varbench.errors import BenchmarkError
from varbench.logging import get_logger

log = get_logger("compare")


@dataclass
class BenchmarkPass:
    """One invocation of the benchmarking tool."""

    name: str
    commands: list[str]
    options: list[str] = field(default_factory=list)


@dataclass
class PassResult:
    """Outcome of a completed pass."""

    name: str
    argv: list[str]
    returncode: int
    duration_seconds: float


def _command_line(executable: Path, flags: list[str]) -> str:
    # The benchmarking tool runs each command through a shell.
    return " ".join([shlex.quote(str(executable)), *flags])


def plan_passes(
    baseline: Path,
    feature: Path,
    extra_options: list[str] | tuple[str, ...],
    mode_flags: list[str] | tuple[str, ...],
) -> list[BenchmarkPass]:
    """Return the combined pass followed by the second-mode-only pass."""
    options = list(extra_options)
    flags = list(mode_flags)
    return [
        BenchmarkPass(
            name="combined",
            commands=[_command_line(baseline, []), _command_line(feature, [])],
            options=list(options),
        ),
        BenchmarkPass(
            name="part2",
            commands=[_command_line(baseline, flags), _command_line(feature, flags)],
            options=list(options),
        ),
    ]


def benchmark_command(bench_pass: BenchmarkPass, bench_tool: str = "hyperfine") -> list[str]:
    """Return the argv for one pass: tool, commands, then options."""
    return [bench_tool, *bench_pass.commands, *bench_pass.options]


def run_pass(root: Path, bench_pass: BenchmarkPass, config: HarnessConfig) -> PassResult:
    """Run one pass to completion.

    Raises:
        BenchmarkError: If the tool cannot be started or exits non-zero.
    """
    argv = benchmark_command(bench_pass, config.bench_tool)
    log.info("Benchmark pass %s: %s", bench_pass.name, shlex.join(argv))
    start = time.monotonic()
    try:
        proc = subprocess.run(argv, cwd=str(root))
    except OSError as exc:
        raise BenchmarkError(
            f"Could not run {config.bench_tool}: {exc}", pass_name=bench_pass.name
        ) from exc
    elapsed = time.monotonic() - start

    if proc.returncode != 0:
        raise BenchmarkError(
            f"{config.bench_tool} failed in pass '{bench_pass.name}' (exit {proc.returncode})",
            pass_name=bench_pass.name,
            returncode=proc.returncode,
        )
    return PassResult(
        name=bench_pass.name, argv=argv, returncode=proc.returncode, duration_seconds=elapsed
    )


def compare(
    root: Path,
    baseline: Path,
    feature: Path,
    extra_options: list[str] | tuple[str, ...],
    config: HarnessConfig,
) -> list[PassResult]:
    """Benchmark *baseline* against *feature*, one pass after the other."""
    options = [*config.default_bench_args, *extra_options]
    results: list[PassResult] = []
    for bench_pass in plan_passes(baseline, feature, options, config.mode_flags):
        results.append(run_pass(root, bench_pass, config))
    return results
