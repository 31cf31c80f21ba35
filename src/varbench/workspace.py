"""Locate the root of the workspace being benchmarked.

Build commands and artifact paths are resolved against this root instead of
the caller's working directory. The root is passed around explicitly; the
process working directory is never changed.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from varbench.errors import WorkspaceError
from varbench.logging import get_logger

log = get_logger("workspace")


def _git_toplevel(start: Path) -> Path | None:
    """Ask git for the top-level directory containing *start*."""
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True,
            text=True,
            cwd=str(start),
            timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        log.debug("git rev-parse unavailable: %s", exc)
        return None
    if proc.returncode != 0:
        log.debug("git rev-parse failed: %s", proc.stderr.strip())
        return None
    top = proc.stdout.strip()
    return Path(top) if top else None


def _is_cargo_workspace(directory: Path) -> bool:
    manifest = directory / "Cargo.toml"
    if not manifest.is_file():
        return False
    try:
        text = manifest.read_text(encoding="utf-8")
    except OSError:
        return False
    return any(line.strip() == "[workspace]" for line in text.splitlines())


def _find_cargo_workspace(start: Path) -> Path | None:
    """Walk up from *start* to the nearest Cargo.toml with a ``[workspace]`` table."""
    for candidate in [start, *start.parents]:
        if _is_cargo_workspace(candidate):
            return candidate
    return None


def locate_workspace(start: Path | None = None, *, explicit: Path | None = None) -> Path:
    """Return the absolute path of the workspace root.

    Resolution order:

    1. *explicit*, when given. It must be an existing directory.
    2. ``git rev-parse --show-toplevel`` run from *start*.
    3. The nearest ancestor of *start* holding a Cargo workspace manifest.

    Args:
        start: Directory to search from. Defaults to the current directory.
        explicit: A root chosen by the user (``--workspace``).

    Raises:
        WorkspaceError: If no root can be determined.
    """
    if explicit is not None:
        root = explicit.expanduser().resolve()
        if not root.is_dir():
            raise WorkspaceError(f"Workspace directory does not exist: {explicit}")
        log.debug("Using explicit workspace root %s", root)
        return root

    origin = (start or Path.cwd()).resolve()
    if not origin.is_dir():
        raise WorkspaceError(f"Start directory does not exist: {origin}")

    top = _git_toplevel(origin)
    if top is not None:
        log.debug("Workspace root from git: %s", top)
        return top.resolve()

    cargo_root = _find_cargo_workspace(origin)
    if cargo_root is not None:
        log.debug("Workspace root from Cargo.toml: %s", cargo_root)
        return cargo_root

    raise WorkspaceError(
        f"Could not determine the workspace root from {origin}. "
        f"Run inside a git checkout or pass --workspace."
    )
