"""
Git implementation of :class:`VersionControlClient`.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from powertool.logging import get_logger
from powertool.vcs.base import VcsResult, VersionControlClient

logger = get_logger("vcs")


class GitClient(VersionControlClient):
    """
    Runs the ``git`` executable via :mod:`subprocess`.

    No timeout is applied unless *timeout* is given; a hung git process
    blocks the caller.
    """

    def __init__(self, executable: str = "git", timeout: float | None = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def _run(self, args: list[str], cwd: Path | None = None) -> VcsResult:
        command = [self.executable, *args]
        logger.debug("Running: %s (cwd=%s)", " ".join(command), cwd)
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                cwd=str(cwd) if cwd else None,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return VcsResult.fail(f"{' '.join(command)} timed out after {self.timeout}s")
        except (FileNotFoundError, OSError) as e:
            return VcsResult.fail(str(e))

        if result.returncode != 0:
            return VcsResult.fail(
                result.stderr.strip() or f"git exited with code {result.returncode}",
                output=result.stdout,
            )
        return VcsResult.ok(output=result.stdout)

    def clone(self, url: str, dest: Path) -> VcsResult:
        return self._run(["clone", url, str(dest)])

    def checkout(self, path: Path, ref: str) -> VcsResult:
        return self._run(["checkout", ref], cwd=path)

    def fetch(self, path: Path, tags: bool = False) -> VcsResult:
        args = ["fetch", "--tags", "--force"] if tags else ["fetch"]
        return self._run(args, cwd=path)

    def pull(self, path: Path, remote: str | None = None, branch: str | None = None) -> VcsResult:
        args = ["pull"]
        if remote:
            args.append(remote)
            if branch:
                args.append(branch)
        return self._run(args, cwd=path)

    def describe_latest_tag(self, path: Path) -> VcsResult:
        newest = self._run(["rev-list", "--tags", "--max-count=1"], cwd=path)
        commit = newest.output.strip()
        if not newest.success or not commit:
            return VcsResult.ok(value=None)
        result = self._run(["describe", "--tags", "--abbrev=0", commit], cwd=path)
        if not result.success:
            return VcsResult.ok(value=None)
        return VcsResult.ok(output=result.output, value=result.output.strip() or None)

    def describe_exact_tag(self, path: Path) -> VcsResult:
        result = self._run(["describe", "--tags", "--exact-match", "HEAD"], cwd=path)
        if not result.success:
            return VcsResult.ok(value=None)
        return VcsResult.ok(output=result.output, value=result.output.strip() or None)

    def rev_list_count(self, path: Path, range_expr: str) -> VcsResult:
        result = self._run(["rev-list", "--count", range_expr], cwd=path)
        count = result.output.strip()
        if not result.success or not count.isdigit():
            return VcsResult.ok(output=result.diagnostic, value=None)
        return VcsResult.ok(output=result.output, value=count)

    def default_branch(self, path: Path) -> VcsResult:
        result = self._run(["symbolic-ref", "--short", "refs/remotes/origin/HEAD"], cwd=path)
        if not result.success:
            return result
        ref = result.output.strip()
        branch = ref.split("/", 1)[1] if ref.startswith("origin/") else ref
        if not branch:
            return VcsResult.fail("empty default branch")
        return VcsResult.ok(output=result.output, value=branch)
