"""Command-line interface for varbench.

Usage::

    varbench [OPTIONS] COMPONENT [BENCH_ARG ...]

Everything after COMPONENT is forwarded unchanged to both benchmark passes.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Any

import click

from varbench import __version__
from varbench.config import config_from_profile, find_profile, load_profile
from varbench.errors import BuildError, HarnessError
from varbench.harness import run_harness
from varbench.logging import setup_logging
from varbench.workspace import locate_workspace

USAGE_LINES = (
    "USAGE: varbench [OPTIONS] COMPONENT [BENCH_ARG [BENCH_ARG ...]]",
    "Builds COMPONENT with and without a feature and compares both builds with hyperfine.",
)

# Exit status for a missing COMPONENT, matching click's usage errors.
USAGE_EXIT_CODE = 2


def _print_usage() -> None:
    for line in USAGE_LINES:
        click.echo(line)


@click.command(
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False}
)
@click.version_option(version=__version__)
@click.argument("component", required=False)
@click.argument("bench_args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--workspace",
    type=click.Path(path_type=Path),
    default=None,
    help="Workspace root (default: git top-level of the current directory).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML profile (default: varbench.yaml in the workspace root, if present).",
)
@click.option(
    "--feature", type=str, default=None, help="Feature to compare (default: parallelism)."
)
@click.option("--profile", type=str, default=None, help="Build profile (default: release).")
@click.option(
    "--target-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Build output directory (default: $CARGO_TARGET_DIR or <workspace>/target).",
)
@click.option(
    "--work-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the copied artifacts (default: a new temporary directory).",
)
@click.option("--dry-run", is_flag=True, help="Show the commands without running them.")
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def main(  # noqa: PLR0913
    component: str | None,
    bench_args: tuple[str, ...],
    workspace: Path | None,
    config_path: Path | None,
    feature: str | None,
    profile: str | None,
    target_dir: Path | None,
    work_dir: Path | None,
    dry_run: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Compare COMPONENT built with and without a feature.

    Builds the component twice, copies both executables into a private
    directory, then runs hyperfine on them: once with the default mode and
    once with only the second mode (--part2 --no-part1).

    \b
    Examples:
        varbench day05
        varbench day05 --warmup 3 --runs 20
        varbench --feature simd day11 -- --export-json out.json
    """
    # An option this command does not know ends up here; treat it as misuse.
    if not component or component.startswith("-"):
        _print_usage()
        raise SystemExit(USAGE_EXIT_CODE)

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    forwarded = list(bench_args)
    if forwarded[:1] == ["--"]:
        forwarded = forwarded[1:]

    try:
        profile_data: dict[str, Any] = {}
        base_dir: Path | None = None
        if config_path is None:
            root = locate_workspace(explicit=workspace)
            workspace = root
            config_path = find_profile(root)
        if config_path is not None:
            profile_data = load_profile(config_path)
            base_dir = config_path.resolve().parent

        config = config_from_profile(
            profile_data,
            cli_overrides={
                "feature": feature,
                "profile": profile,
                "target_dir": target_dir,
                "work_dir": work_dir,
                "workspace": workspace,
                "dry_run": dry_run,
            },
            base_dir=base_dir,
        )
        result = run_harness(component, forwarded, config)
    except BuildError as exc:
        click.echo(f"Error: {exc}", err=True)
        if exc.stderr:
            click.echo(exc.stderr, err=True)
        raise SystemExit(1) from exc
    except HarnessError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    if result.built is None:
        for cmd in result.planned:
            click.echo(shlex.join(cmd))
        return

    click.echo()
    click.echo(f"Artifacts kept in: {result.built.work_dir}")
