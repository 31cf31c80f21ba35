"""Shared helpers for varbench tests: fake cargo and hyperfine processes."""

from __future__ import annotations

import subprocess
from pathlib import Path


class FakeTools:
    """Stand-in for ``subprocess.run`` that imitates cargo and hyperfine.

    ``cargo build`` writes an executable to ``<target-dir>/release/<pkg>``
    (``<root>/target`` unless ``--target-dir`` is passed)
    whose body records which features it was built with. ``hyperfine``
    does nothing. Every argv is recorded in :attr:`calls` in order.
    """

    def __init__(
        self,
        root: Path,
        *,
        fail_build: int | None = None,
        fail_bench: int | None = None,
        skip_artifact: bool = False,
    ) -> None:
        self.root = root
        self.fail_build = fail_build  # 1-based index of the failing build
        self.fail_bench = fail_bench  # 1-based index of the failing pass
        self.skip_artifact = skip_artifact
        self.calls: list[list[str]] = []

    @property
    def builds(self) -> list[list[str]]:
        return [c for c in self.calls if c[0] == "cargo"]

    @property
    def benches(self) -> list[list[str]]:
        return [c for c in self.calls if c[0] == "hyperfine"]

    def __call__(self, cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(cmd))
        if cmd[0] == "cargo":
            return self._build(cmd)
        if len(self.benches) == self.fail_bench:
            return subprocess.CompletedProcess(args=cmd, returncode=1, stdout=None, stderr=None)
        return subprocess.CompletedProcess(args=cmd, returncode=0, stdout=None, stderr=None)

    def _build(self, cmd: list[str]) -> subprocess.CompletedProcess[str]:
        if len(self.builds) == self.fail_build:
            return subprocess.CompletedProcess(
                args=cmd, returncode=101, stdout="", stderr="error[E0425]: cannot find value"
            )
        package = cmd[cmd.index("-p") + 1]
        features = cmd[cmd.index("--features") + 1] if "--features" in cmd else ""
        if not self.skip_artifact:
            target = Path(cmd[cmd.index("--target-dir") + 1]) if "--target-dir" in cmd else None
            artifact = (target or self.root / "target") / "release" / package
            artifact.parent.mkdir(parents=True, exist_ok=True)
            artifact.write_text(f"#!/bin/sh\n# {package} features={features}\n")
            artifact.chmod(0o755)
        return subprocess.CompletedProcess(
            args=cmd, returncode=0, stdout="", stderr=f"   Compiling {package}\n"
        )
