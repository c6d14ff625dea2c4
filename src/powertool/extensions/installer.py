"""
Extension installer and updater.

Drives a :class:`VersionControlClient` to clone, check out, and update
extension checkouts under the extension root. Operations are sequential and
best-effort: a failure stops the operation in progress and leaves whatever is
already on disk in place.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from powertool.errors import InvalidSourceError, PowertoolError, ReasonCode
from powertool.extensions.loader import ManifestLoader
from powertool.extensions.models import Extension
from powertool.extensions.sources import CORE_DEPENDENCY, find_dependency, parse_source
from powertool.logging import get_logger
from powertool.vcs.base import VcsResult, VersionControlClient
from powertool.versioning import Operator, Version, compare_tag

logger = get_logger("installer")

FALLBACK_BRANCHES = ("main", "master")


def _remove_path(path: Path, ignore_errors: bool = False) -> None:
    """Remove a directory tree, or a file or symlink in its place."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=ignore_errors)
        return
    try:
        path.unlink()
    except OSError:
        if not ignore_errors:
            raise


class Outcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class OperationResult:
    """Result of one install or update attempt."""

    outcome: Outcome
    extension: str
    detail: str = ""
    reason: ReasonCode | None = None
    ref: str | None = None  # Ref that was checked out, if any
    warnings: list[str] = field(default_factory=list)
    missing_dependencies: list[str] = field(default_factory=list)
    dependency_results: list[OperationResult] = field(default_factory=list)

    @classmethod
    def succeeded(cls, extension: str, detail: str = "", **kwargs) -> OperationResult:
        return cls(Outcome.SUCCEEDED, extension, detail, **kwargs)

    @classmethod
    def failed(cls, extension: str, reason: ReasonCode, detail: str = "", **kwargs) -> OperationResult:
        return cls(Outcome.FAILED, extension, detail, reason=reason, **kwargs)

    @classmethod
    def skipped(cls, extension: str, reason: ReasonCode, detail: str = "", **kwargs) -> OperationResult:
        return cls(Outcome.SKIPPED, extension, detail, reason=reason, **kwargs)

    @property
    def ok(self) -> bool:
        return self.outcome is not Outcome.FAILED


@dataclass
class BatchSummary:
    """Aggregated outcomes of updating several extensions."""

    results: list[OperationResult] = field(default_factory=list)

    def _count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.results if r.outcome is outcome)

    @property
    def updated(self) -> int:
        return self._count(Outcome.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(Outcome.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(Outcome.SKIPPED)


@dataclass
class UpdateStatus:
    """Update availability for one installed extension."""

    extension: str
    current_version: str
    version_controlled: bool = True
    latest_tag: str | None = None
    branch: str | None = None
    commits_behind: int | None = None
    error: str = ""

    @property
    def update_available(self) -> bool:
        if self.latest_tag and compare_tag(self.current_version, self.latest_tag) < 0:
            return True
        return bool(self.commits_behind)


class Confirmer(Protocol):
    def confirm(self, prompt: str) -> bool: ...


class ExtensionInstaller:
    """
    Installs and updates extensions under *root*.

    Args:
        root: Extension root directory
        vcs: Version-control client
        loader: Manifest loader used after cloning
        confirmer: Asked before installing each missing dependency
        interactive: When False, missing dependencies are only reported
        default_host: Base URL for ``owner/repo`` sources
    """

    def __init__(
        self,
        root: Path,
        vcs: VersionControlClient,
        loader: ManifestLoader | None = None,
        confirmer: Confirmer | None = None,
        interactive: bool = True,
        default_host: str = "https://github.com",
    ) -> None:
        self.root = root
        self.vcs = vcs
        self.loader = loader or ManifestLoader()
        self.confirmer = confirmer
        self.interactive = interactive
        self.default_host = default_host
        self._in_progress: set[str] = set()

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def installed(self) -> list[Extension]:
        """Extensions currently on disk."""
        if not self.root.is_dir():
            return []
        return self.loader.scan(self.root).extensions

    def checkout_with_fallback(self, path: Path, ref: str) -> tuple[VcsResult, str]:
        """
        Check out *ref*, retrying once with a ``v`` prefix.

        A ref that already starts with ``v`` is never retried without it.

        Returns:
            The result of the last attempt and the ref it used
        """
        result = self.vcs.checkout(path, ref)
        if result.success or ref.startswith("v"):
            return result, ref
        prefixed = f"v{ref}"
        logger.debug("Checkout of %s failed, retrying with %s", ref, prefixed)
        retry = self.vcs.checkout(path, prefixed)
        if retry.success:
            return retry, prefixed
        retry.error = "; ".join(filter(None, [result.diagnostic, retry.diagnostic]))
        return retry, ref

    def _find_checkout(self, name: str) -> Path | None:
        path = self.root / name
        if path.is_dir():
            return path
        extension = next((e for e in self.installed() if e.name == name), None)
        return extension.install_path if extension else None

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install(self, source: str, version: str | None = None, force: bool = False) -> OperationResult:
        """
        Clone an extension into the extension root.

        Args:
            source: ``owner/repo`` shorthand or repository URL
            version: Tag, branch or commit to check out after cloning
            force: Replace an existing directory of the same name
        """
        try:
            parsed = parse_source(source, self.default_host)
        except InvalidSourceError as e:
            return OperationResult.failed(source, e.code, str(e))
        name = parsed.name

        if not self.vcs.is_available():
            return OperationResult.failed(name, ReasonCode.VCS_UNAVAILABLE, "version control executable not found")

        target = self.root / name
        if target.exists() or target.is_symlink():
            if not force:
                return OperationResult.failed(
                    name,
                    ReasonCode.PATH_CONFLICT,
                    f"{target} already exists; use --force to replace it",
                )
            logger.info("Removing existing %s", target)
            _remove_path(target)

        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("Cloning %s into %s", parsed.url, target)
        cloned = self.vcs.clone(parsed.url, target)
        if not cloned.success:
            if target.exists() or target.is_symlink():
                _remove_path(target, ignore_errors=True)
            return OperationResult.failed(name, ReasonCode.CLONE_FAILED, cloned.diagnostic)

        result = OperationResult.succeeded(name, f"installed into {target}")
        if version:
            checked_out, ref = self.checkout_with_fallback(target, version)
            if checked_out.success:
                result.ref = ref
            else:
                # the clone is kept, so its manifest is still inspected
                result = OperationResult.failed(
                    name,
                    ReasonCode.CHECKOUT_FAILED,
                    f"cloned, but could not check out {version}: {checked_out.diagnostic}",
                )

        try:
            extension = self.loader.load(target)
        except PowertoolError as e:
            logger.warning("Installed %s but its manifest is unusable: %s", name, e)
            result.warnings.append(str(e))
            return result

        self._in_progress.add(name)
        try:
            self._resolve_dependencies(extension, result)
        finally:
            self._in_progress.discard(name)
        return result

    def _resolve_dependencies(self, extension: Extension, result: OperationResult) -> None:
        """List missing dependencies; offer to install them only after a successful install."""
        if not extension.dependencies:
            return
        installed = [e for e in self.installed() if e.install_path != extension.install_path]
        for key, constraint in extension.dependencies.items():
            if key == CORE_DEPENDENCY:
                continue
            if find_dependency(key, installed, self.default_host) is not None:
                continue
            result.missing_dependencies.append(key)

        if not result.missing_dependencies:
            return
        logger.warning(
            "%s is missing dependencies: %s",
            extension.name,
            ", ".join(result.missing_dependencies),
        )
        if not result.ok or not self.interactive or self.confirmer is None:
            return

        for key in result.missing_dependencies:
            if key in self._in_progress or "/" not in key:
                continue
            if not self.confirmer.confirm(f"Install missing dependency {key}?"):
                continue
            constraint = extension.dependencies[key]
            pinned = (
                str(constraint.target)
                if constraint.operator is Operator.EQ and isinstance(constraint.target, Version)
                else None
            )
            self._in_progress.add(key)
            try:
                result.dependency_results.append(self.install(key, version=pinned))
            finally:
                self._in_progress.discard(key)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(self, name: str, target_version: str | None = None, nightly: bool = False) -> OperationResult:
        """
        Update one extension checkout.

        Modes, mutually exclusive:
        - *target_version*: check out that ref (``v`` retry as in install)
        - *nightly*: check out the remote default branch and pull
        - neither: check out the newest tag unless already at or past it
        """
        if target_version and nightly:
            raise ValueError("target_version and nightly are mutually exclusive")

        path = self._find_checkout(name)
        if path is None:
            return OperationResult.failed(name, ReasonCode.EXTENSION_NOT_FOUND, f"{name} is not installed")
        if not self.vcs.is_available():
            return OperationResult.failed(name, ReasonCode.VCS_UNAVAILABLE, "version control executable not found")
        if not self.vcs.is_repository(path):
            return OperationResult.skipped(
                name, ReasonCode.NOT_VERSION_CONTROLLED, f"{path} is not a version-controlled checkout"
            )

        if target_version:
            return self._update_to_target(name, path, target_version)
        if nightly:
            return self._update_nightly(name, path)
        return self._update_latest_tag(name, path)

    def _update_to_target(self, name: str, path: Path, target: str) -> OperationResult:
        fetched = self.vcs.fetch(path, tags=True)
        if not fetched.success:
            logger.warning("Fetch failed for %s, trying local refs: %s", name, fetched.diagnostic)
        checked_out, ref = self.checkout_with_fallback(path, target)
        if not checked_out.success:
            return OperationResult.failed(name, ReasonCode.CHECKOUT_FAILED, checked_out.diagnostic)
        return OperationResult.succeeded(name, f"checked out {ref}", ref=ref)

    def _update_nightly(self, name: str, path: Path) -> OperationResult:
        resolved = self.vcs.default_branch(path)
        if resolved.success and resolved.value:
            branches: tuple[str, ...] = (resolved.value,)
        else:
            logger.debug("Cannot resolve default branch of %s, probing %s", name, FALLBACK_BRANCHES)
            branches = FALLBACK_BRANCHES

        checked_out = VcsResult.fail("no branch to check out")
        branch = branches[0]
        for branch in branches:
            checked_out = self.vcs.checkout(path, branch)
            if checked_out.success:
                break
        if not checked_out.success:
            return OperationResult.failed(name, ReasonCode.CHECKOUT_FAILED, checked_out.diagnostic)

        pulled = self.vcs.pull(path, "origin", branch)
        if not pulled.success:
            return OperationResult.failed(name, ReasonCode.PULL_FAILED, pulled.diagnostic)
        return OperationResult.succeeded(name, f"updated to latest {branch}", ref=branch)

    def _current_version(self, path: Path) -> str | None:
        try:
            return str(self.loader.load(path).version)
        except PowertoolError as e:
            logger.debug("No usable manifest in %s: %s", path, e)
            return None

    def _update_latest_tag(self, name: str, path: Path) -> OperationResult:
        fetched = self.vcs.fetch(path, tags=True)
        if not fetched.success:
            return OperationResult.failed(name, ReasonCode.FETCH_FAILED, fetched.diagnostic)

        latest = self.vcs.describe_latest_tag(path).value
        if not latest:
            return OperationResult.skipped(name, ReasonCode.NO_TAGS_FOUND, "no release tags; use --nightly")

        exact = self.vcs.describe_exact_tag(path).value
        if exact == latest:
            return OperationResult.skipped(name, ReasonCode.ALREADY_CURRENT, f"already on {latest}", ref=latest)

        current = self._current_version(path)
        if current is not None and compare_tag(current, latest) >= 0:
            return OperationResult.skipped(
                name, ReasonCode.ALREADY_CURRENT, f"version {current} is not older than {latest}"
            )

        checked_out = self.vcs.checkout(path, latest)
        if not checked_out.success:
            return OperationResult.failed(name, ReasonCode.CHECKOUT_FAILED, checked_out.diagnostic)
        return OperationResult.succeeded(name, f"{current or 'unknown'} -> {latest}", ref=latest)

    def update_all(self, nightly: bool = False) -> BatchSummary:
        """Update every installed extension; one failure never stops the batch."""
        summary = BatchSummary()
        for extension in self.installed():
            try:
                result = self.update(extension.directory_name, nightly=nightly)
            except Exception as e:
                logger.warning("Update of %s failed: %s", extension.name, e)
                result = OperationResult.failed(extension.name, ReasonCode.CHECKOUT_FAILED, str(e))
            summary.results.append(result)
        logger.info(
            "Update finished: %d updated, %d failed, %d skipped",
            summary.updated,
            summary.failed,
            summary.skipped,
        )
        return summary

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self, extension: Extension) -> UpdateStatus:
        """Fetch and report how far *extension* is behind its remote."""
        path = extension.install_path
        status = UpdateStatus(extension=extension.name, current_version=str(extension.version))
        if not self.vcs.is_repository(path):
            status.version_controlled = False
            return status

        fetched = self.vcs.fetch(path, tags=True)
        if not fetched.success:
            status.error = fetched.diagnostic
            return status

        status.latest_tag = self.vcs.describe_latest_tag(path).value
        branch = self.vcs.default_branch(path)
        status.branch = branch.value if branch.success else FALLBACK_BRANCHES[0]
        behind = self.vcs.rev_list_count(path, f"HEAD..origin/{status.branch}").value
        status.commits_behind = int(behind) if behind is not None else None
        return status
