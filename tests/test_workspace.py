"""Tests for varbench.workspace — workspace root discovery."""

from __future__ import annotations

import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from varbench.errors import WorkspaceError
from varbench.workspace import _is_cargo_workspace, locate_workspace


def _git_fails(*args: object, **kwargs: object) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(
        args=[], returncode=128, stdout="", stderr="fatal: not a git repository"
    )


class TestExplicitWorkspace(unittest.TestCase):
    def test_explicit_directory_is_used(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = locate_workspace(explicit=Path(tmpdir))
            self.assertEqual(root, Path(tmpdir).resolve())
            self.assertTrue(root.is_absolute())

    def test_explicit_missing_directory_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(WorkspaceError):
                locate_workspace(explicit=Path(tmpdir) / "missing")

    @patch("varbench.workspace.subprocess.run")
    def test_explicit_skips_git(self, mock_run: MagicMock) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            locate_workspace(explicit=Path(tmpdir))
        mock_run.assert_not_called()


class TestGitWorkspace(unittest.TestCase):
    @patch("varbench.workspace.subprocess.run")
    def test_uses_git_toplevel(self, mock_run: MagicMock) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            top = Path(tmpdir).resolve()
            nested = top / "day05" / "src"
            nested.mkdir(parents=True)
            mock_run.return_value = subprocess.CompletedProcess(
                args=[], returncode=0, stdout=f"{top}\n", stderr=""
            )
            self.assertEqual(locate_workspace(nested), top)
            cmd = mock_run.call_args[0][0]
            self.assertEqual(cmd, ["git", "rev-parse", "--show-toplevel"])
            self.assertEqual(mock_run.call_args[1]["cwd"], str(nested))


class TestCargoWorkspaceFallback(unittest.TestCase):
    @patch("varbench.workspace.subprocess.run", side_effect=_git_fails)
    def test_finds_cargo_workspace_when_git_fails(self, mock_run: MagicMock) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            top = Path(tmpdir).resolve()
            (top / "Cargo.toml").write_text('[workspace]\nmembers = ["day05"]\n')
            member = top / "day05"
            member.mkdir()
            (member / "Cargo.toml").write_text('[package]\nname = "day05"\n')
            self.assertEqual(locate_workspace(member), top)

    @patch("varbench.workspace.subprocess.run", side_effect=FileNotFoundError("git"))
    def test_finds_cargo_workspace_without_git(self, mock_run: MagicMock) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            top = Path(tmpdir).resolve()
            (top / "Cargo.toml").write_text("[workspace]\n")
            self.assertEqual(locate_workspace(top), top)

    def test_package_manifest_is_not_a_workspace(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            top = Path(tmpdir)
            (top / "Cargo.toml").write_text('[package]\nname = "solo"\n')
            self.assertFalse(_is_cargo_workspace(top))
            (top / "Cargo.toml").write_text("[workspace]\nmembers = []\n")
            self.assertTrue(_is_cargo_workspace(top))

    @patch("varbench.workspace.subprocess.run", side_effect=_git_fails)
    def test_no_root_raises(self, mock_run: MagicMock) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            with patch("varbench.workspace._find_cargo_workspace", return_value=None):
                with self.assertRaises(WorkspaceError) as ctx:
                    locate_workspace(Path(tmpdir))
            self.assertIn("--workspace", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
