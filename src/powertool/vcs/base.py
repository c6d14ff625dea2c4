"""
Version-control client interface.

Installer and updater logic only talks to this interface, so tests can swap
in an in-memory implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

CONTROL_MARKER = ".git"


@dataclass
class VcsResult:
    """Outcome of one version-control operation."""

    success: bool
    output: str = ""
    error: str = ""
    value: str | None = None  # Parsed result (tag name, branch, count)

    @classmethod
    def ok(cls, output: str = "", value: str | None = None) -> VcsResult:
        return cls(success=True, output=output, value=value)

    @classmethod
    def fail(cls, error: str, output: str = "") -> VcsResult:
        return cls(success=False, output=output, error=error)

    @property
    def diagnostic(self) -> str:
        """Best available text describing what happened."""
        return (self.error or self.output).strip()


class VersionControlClient(ABC):
    """
    Narrow command interface over a version-control executable.

    Every method except :meth:`clone` operates on an existing checkout at
    *path*. Failures are returned, never raised.
    """

    def is_available(self) -> bool:
        """Whether the backing executable can be used at all."""
        return True

    def is_repository(self, path: Path) -> bool:
        """Whether *path* is a version-controlled checkout."""
        return (path / CONTROL_MARKER).exists()

    @abstractmethod
    def clone(self, url: str, dest: Path) -> VcsResult:
        """Clone *url* into *dest*."""

    @abstractmethod
    def checkout(self, path: Path, ref: str) -> VcsResult:
        """Check out branch, tag or commit *ref*."""

    @abstractmethod
    def fetch(self, path: Path, tags: bool = False) -> VcsResult:
        """Fetch from the default remote, optionally with all tags."""

    @abstractmethod
    def pull(self, path: Path, remote: str | None = None, branch: str | None = None) -> VcsResult:
        """Pull the current (or given) branch."""

    @abstractmethod
    def describe_latest_tag(self, path: Path) -> VcsResult:
        """Most recent tag in the repository; ``value`` is None without tags."""

    @abstractmethod
    def describe_exact_tag(self, path: Path) -> VcsResult:
        """Tag pointing exactly at HEAD; ``value`` is None when not on a tag."""

    @abstractmethod
    def rev_list_count(self, path: Path, range_expr: str) -> VcsResult:
        """Number of commits in *range_expr*; ``value`` is None when unknown."""

    @abstractmethod
    def default_branch(self, path: Path) -> VcsResult:
        """Remote default branch name in ``value``, or a failure."""
