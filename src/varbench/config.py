"""Harness configuration and YAML profile loading.

Handles:
- Loading an optional YAML profile (``varbench.yaml`` at the workspace root
  or a file given with ``--config``).
- Merging CLI options over profile values.
- Validating the final configuration before anything is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from varbench.errors import ConfigError
from varbench.logging import get_logger

log = get_logger("config")

DEFAULT_PROFILE_NAME = "varbench.yaml"
DEFAULT_FEATURE = "parallelism"
DEFAULT_MODE_FLAGS = ("--part2", "--no-part1")

_PROFILE_KEYS = {
    "feature",
    "profile",
    "build_tool",
    "bench_tool",
    "mode_flags",
    "bench_args",
    "target_dir",
    "work_dir",
}


# ---------------------------------------------------------------------------
# HarnessConfig
# ---------------------------------------------------------------------------


@dataclass
class HarnessConfig:
    """Resolved configuration for one harness run."""

    # Variant definition
    feature: str = DEFAULT_FEATURE
    profile: str = "release"

    # External tools
    build_tool: str = "cargo"
    bench_tool: str = "hyperfine"

    # Flags selecting the second operating mode for the isolated pass
    mode_flags: list[str] = field(default_factory=lambda: list(DEFAULT_MODE_FLAGS))

    # Options placed before the CLI pass-through options on both passes
    default_bench_args: list[str] = field(default_factory=list)

    # Paths
    workspace: Path | None = None
    target_dir: Path | None = None  # None = $CARGO_TARGET_DIR or <root>/target
    work_dir: Path | None = None  # None = fresh system temp directory

    dry_run: bool = False

    @property
    def baseline_suffix(self) -> str:
        return f"no-{self.feature}"

    @property
    def feature_suffix(self) -> str:
        return self.feature


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: HarnessConfig) -> list[ValidationError]:
    """Validate a harness configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    feature = config.feature.strip()
    if not feature:
        errors.append(ValidationError(field="feature", message="Feature name must be non-empty."))
    elif any(ch.isspace() or ch == "," for ch in feature):
        errors.append(
            ValidationError(
                field="feature",
                message=f"Feature name must be a single feature (got {config.feature!r}).",
            )
        )

    if not config.profile.strip():
        errors.append(ValidationError(field="profile", message="Build profile must be non-empty."))

    for name in ("build_tool", "bench_tool"):
        if not getattr(config, name).strip():
            errors.append(ValidationError(field=name, message=f"{name} must be non-empty."))

    if not config.mode_flags:
        errors.append(
            ValidationError(
                field="mode_flags",
                message=(
                    "No mode flags set: the second pass will repeat the combined pass."
                ),
                severity="warning",
            )
        )

    if config.work_dir is not None and config.work_dir.exists() and not config.work_dir.is_dir():
        errors.append(
            ValidationError(
                field="work_dir",
                message=f"Work directory is not a directory: {config.work_dir}",
            )
        )

    return errors


def check_config(config: HarnessConfig) -> None:
    """Log warnings and raise :class:`ConfigError` if any error was found."""
    problems = validate_config(config)
    for problem in problems:
        if problem.severity == "warning":
            log.warning("%s: %s", problem.field, problem.message)
    fatal = [p for p in problems if p.severity == "error"]
    if fatal:
        raise ConfigError("; ".join(f"{p.field}: {p.message}" for p in fatal))


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a harness profile from a YAML file.

    Profile format::

        feature: parallelism
        profile: release
        build_tool: cargo
        bench_tool: hyperfine
        mode_flags: ["--part2", "--no-part1"]
        bench_args: ["--warmup", "3"]
        target_dir: target
        work_dir: /tmp/varbench

    Returns:
        The parsed YAML as a dict. An empty file yields an empty dict.
    """
    if not profile_path.exists():
        raise ConfigError(f"Profile not found: {profile_path}")

    try:
        data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {profile_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Profile must be a YAML mapping, got {type(data).__name__}")
    return data


def find_profile(root: Path) -> Path | None:
    """Return the default profile path under *root*, if one exists."""
    candidate = root / DEFAULT_PROFILE_NAME
    return candidate if candidate.is_file() else None


def _string_list(data: dict[str, Any], key: str) -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value.split()
    if not isinstance(value, list):
        raise ConfigError(f"Profile '{key}' must be a list, got {type(value).__name__}")
    return [str(item) for item in value]


def _resolve_path(value: Any, base: Path | None) -> Path | None:
    if value in (None, ""):
        return None
    path = Path(str(value)).expanduser()
    if base is not None and not path.is_absolute():
        path = base / path
    return path


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
    base_dir: Path | None = None,
) -> HarnessConfig:
    """Build a HarnessConfig from a parsed profile and CLI overrides.

    CLI overrides take precedence over profile values. Override keys match
    HarnessConfig field names; a value of None means "not given".
    Relative paths in the profile are resolved against *base_dir*.
    """
    cli = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    config = HarnessConfig()
    for key in ("feature", "profile", "build_tool", "bench_tool"):
        value = cli.get(key, profile_data.get(key))
        if value is not None:
            setattr(config, key, str(value))

    mode_flags = _string_list(profile_data, "mode_flags")
    if mode_flags is not None:
        config.mode_flags = mode_flags

    bench_args = _string_list(profile_data, "bench_args")
    if bench_args is not None:
        config.default_bench_args = bench_args

    config.target_dir = cli.get("target_dir") or _resolve_path(
        profile_data.get("target_dir"), base_dir
    )
    config.work_dir = cli.get("work_dir") or _resolve_path(profile_data.get("work_dir"), base_dir)
    config.workspace = cli.get("workspace")
    config.dry_run = bool(cli.get("dry_run", False))

    unknown = set(profile_data) - _PROFILE_KEYS
    if unknown:
        log.warning("Ignoring unknown profile keys: %s", ", ".join(sorted(unknown)))

    return config
