"""Build the baseline and feature-enabled variants of a component.

Both builds run one after the other in the workspace root. Each resulting
executable is copied into a private directory under a name derived from the
component and the variant, so later builds cannot overwrite it.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

from varbench.config import HarnessConfig
from varbench.errors import BuildError
from varbench.logging import get_logger, log_build_output

log = get_logger("build")

# Cargo places the ``dev`` profile under target/debug.
_PROFILE_DIRS = {"dev": "debug", "test": "debug", "bench": "release"}


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BuildVariant:
    """One of the two builds of a component."""

    name: str  # "baseline" or "feature"
    features: frozenset[str]
    suffix: str

    def artifact_name(self, component: str) -> str:
        return f"{component}-{self.suffix}"


@dataclass
class BuiltVariants:
    """Artifacts produced by :func:`build_variants`."""

    component: str
    baseline: Path
    feature: Path
    work_dir: Path
    duration_seconds: float = 0.0


def variants_for(config: HarnessConfig) -> tuple[BuildVariant, BuildVariant]:
    """Return the (baseline, feature-enabled) variants, in build order."""
    baseline = BuildVariant(name="baseline", features=frozenset(), suffix=config.baseline_suffix)
    enabled = BuildVariant(
        name="feature", features=frozenset({config.feature}), suffix=config.feature_suffix
    )
    return baseline, enabled


# ---------------------------------------------------------------------------
# Command construction
# ---------------------------------------------------------------------------


def build_command(
    component: str,
    variant: BuildVariant,
    *,
    profile: str = "release",
    build_tool: str = "cargo",
    target_dir: Path | None = None,
) -> list[str]:
    """Return the argv building *component* as *variant*.

    A *target_dir* is handed to the build tool so the artifact lands where
    :func:`artifact_path` looks for it.
    """
    cmd = [build_tool, "build"]
    if profile == "release":
        cmd.append("--release")
    else:
        cmd.extend(["--profile", profile])
    cmd.extend(["-p", component])
    if variant.features:
        cmd.extend(["--features", ",".join(sorted(variant.features))])
    if target_dir is not None:
        cmd.extend(["--target-dir", str(target_dir)])
    return cmd


def artifact_path(
    root: Path, component: str, *, profile: str = "release", target_dir: Path | None = None
) -> Path:
    """Return where the build system leaves the executable for *component*.

    The target directory is *target_dir* if given, else ``$CARGO_TARGET_DIR``,
    else ``<root>/target``. Relative target directories are taken relative to
    *root*.
    """
    if target_dir is None:
        env_dir = os.environ.get("CARGO_TARGET_DIR")
        target_dir = Path(env_dir) if env_dir else Path("target")
    if not target_dir.is_absolute():
        target_dir = root / target_dir
    name = f"{component}.exe" if os.name == "nt" else component
    return target_dir / _PROFILE_DIRS.get(profile, profile) / name


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def build_component(
    root: Path, component: str, variant: BuildVariant, config: HarnessConfig
) -> Path:
    """Build one variant of *component* and return the build system's artifact.

    Raises:
        BuildError: If the build tool is missing, exits non-zero, or leaves no
            artifact at the expected location.
    """
    target_dir = config.target_dir
    if target_dir is not None and not target_dir.is_absolute():
        target_dir = root / target_dir
    cmd = build_command(
        component,
        variant,
        profile=config.profile,
        build_tool=config.build_tool,
        target_dir=target_dir,
    )
    log.info("Building %s (%s): %s", component, variant.name, shlex.join(cmd))
    start = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(root),
        )
    except OSError as exc:
        raise BuildError(
            f"Could not run {config.build_tool}: {exc}",
            variant=variant.name,
            component=component,
        ) from exc

    if proc.stderr:
        log_build_output(component, variant.name, proc.stderr)

    if proc.returncode != 0:
        stderr_tail = (proc.stderr or "").strip()[-2000:]
        raise BuildError(
            f"Build of {component} ({variant.name}) failed with exit {proc.returncode}",
            variant=variant.name,
            component=component,
            stderr=stderr_tail,
        )

    artifact = artifact_path(root, component, profile=config.profile, target_dir=config.target_dir)
    if not artifact.is_file():
        raise BuildError(
            f"Build of {component} ({variant.name}) produced no executable at {artifact}",
            variant=variant.name,
            component=component,
        )
    log.debug("Built %s (%s) in %.1fs", component, variant.name, time.monotonic() - start)
    return artifact


def _make_work_dir(work_dir: Path | None, component: str) -> Path:
    """Create a fresh directory for the copied artifacts."""
    if work_dir is None:
        return Path(tempfile.mkdtemp(prefix=f"varbench-{component}-"))
    work_dir.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(prefix=f"{component}-", dir=str(work_dir)))


def _copy_artifact(source: Path, dest: Path, variant: BuildVariant, component: str) -> Path:
    try:
        shutil.copy2(source, dest)
    except OSError as exc:
        raise BuildError(
            f"Could not copy {source} to {dest}: {exc}",
            variant=variant.name,
            component=component,
        ) from exc
    log.info("Copied %s artifact to %s", variant.name, dest)
    return dest


def build_variants(
    root: Path, component: str, config: HarnessConfig, work_dir: Path | None = None
) -> BuiltVariants:
    """Build *component* without and then with the feature.

    The artifacts are copied to ``<tmp>/<component>-no-<feature>`` and
    ``<tmp>/<component>-<feature>``. The directory is left in place after
    the run. The first failure stops the sequence.
    """
    if not component:
        raise BuildError("Component name must be non-empty", variant="baseline", component="")

    start = time.monotonic()
    dest_dir = _make_work_dir(work_dir if work_dir is not None else config.work_dir, component)
    log.debug("Artifact directory: %s", dest_dir)

    copies: list[Path] = []
    for variant in variants_for(config):
        built = build_component(root, component, variant, config)
        dest = dest_dir / variant.artifact_name(component)
        copies.append(_copy_artifact(built, dest, variant, component))

    baseline, enabled = copies
    return BuiltVariants(
        component=component,
        baseline=baseline,
        feature=enabled,
        work_dir=dest_dir,
        duration_seconds=time.monotonic() - start,
    )
