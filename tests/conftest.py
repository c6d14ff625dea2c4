"""Shared pytest fixtures for powertool tests."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from textwrap import dedent
from typing import Any

import pytest
from rich.console import Console

from powertool.config import PowertoolConfig
from powertool.vcs.base import CONTROL_MARKER, VcsResult, VersionControlClient

HELLO_MODULE = dedent(
    """
    def register(api):
        api.register_command(
            "hello",
            lambda ctx, args: ctx.console.print(f"hello {args.who or 'world'}"),
            summary="Say hello",
            aliases=["hi"],
            syntax="[who]",
        )
    """
)


def write_extension(
    root: Path,
    directory: str,
    manifest: dict[str, Any] | None = None,
    modules: dict[str, str] | None = None,
) -> Path:
    """Create ``root/directory`` with an extension.json and module files."""
    path = root / directory
    path.mkdir(parents=True, exist_ok=True)
    modules = {"modules/main.py": HELLO_MODULE} if modules is None else modules
    data = {
        "name": directory,
        "description": f"{directory} extension",
        "version": "1.0.0",
        "modules": list(modules),
    }
    data.update(manifest or {})
    (path / "extension.json").write_text(json.dumps(data))
    for rel, source in modules.items():
        module_path = path / rel
        module_path.parent.mkdir(parents=True, exist_ok=True)
        module_path.write_text(source)
    return path


@dataclass
class FakeRepo:
    """A remote repository known to :class:`FakeVcs`."""

    manifest: dict[str, Any] | None = None
    tags: list[str] = field(default_factory=list)  # oldest first
    branches: list[str] = field(default_factory=lambda: ["main"])
    default_branch: str | None = "main"
    commits_behind: int | None = 0


class FakeVcs(VersionControlClient):
    """In-memory version control used to drive installer branches."""

    def __init__(self) -> None:
        self.remotes: dict[str, FakeRepo] = {}
        self.checkouts: dict[Path, FakeRepo] = {}
        self.heads: dict[Path, str] = {}
        self.calls: list[tuple[str, ...]] = []
        self.available = True
        self.fail: set[str] = set()  # operation names forced to fail
        self.partial_clone = False  # leave a directory behind on clone failure

    def add_remote(self, url: str, **kwargs: Any) -> FakeRepo:
        repo = FakeRepo(**kwargs)
        self.remotes[url] = repo
        return repo

    def adopt(self, path: Path, repo: FakeRepo, head: str = "main") -> None:
        """Register an existing directory as a checkout of *repo*."""
        (path / CONTROL_MARKER).mkdir(parents=True, exist_ok=True)
        self.checkouts[path] = repo
        self.heads[path] = head

    def is_available(self) -> bool:
        return self.available

    def clone(self, url: str, dest: Path) -> VcsResult:
        self.calls.append(("clone", url, str(dest)))
        repo = self.remotes.get(url)
        if repo is None or "clone" in self.fail:
            if self.partial_clone:
                dest.mkdir(parents=True, exist_ok=True)
            return VcsResult.fail(f"fatal: repository '{url}' not found")
        dest.mkdir(parents=True)
        (dest / CONTROL_MARKER).mkdir()
        if repo.manifest is not None:
            (dest / "extension.json").write_text(json.dumps(repo.manifest))
        self.checkouts[dest] = repo
        self.heads[dest] = repo.default_branch or "main"
        return VcsResult.ok(output=f"Cloning into '{dest}'...")

    def checkout(self, path: Path, ref: str) -> VcsResult:
        self.calls.append(("checkout", ref))
        repo = self.checkouts[path]
        if "checkout" in self.fail or ref not in repo.tags + repo.branches:
            return VcsResult.fail(f"error: pathspec '{ref}' did not match any file(s) known to git")
        self.heads[path] = ref
        return VcsResult.ok()

    def fetch(self, path: Path, tags: bool = False) -> VcsResult:
        self.calls.append(("fetch", str(tags)))
        if "fetch" in self.fail:
            return VcsResult.fail("fatal: unable to access remote")
        return VcsResult.ok()

    def pull(self, path: Path, remote: str | None = None, branch: str | None = None) -> VcsResult:
        self.calls.append(("pull", remote or "", branch or ""))
        if "pull" in self.fail:
            return VcsResult.fail("fatal: Not possible to fast-forward, aborting.")
        return VcsResult.ok()

    def describe_latest_tag(self, path: Path) -> VcsResult:
        repo = self.checkouts[path]
        return VcsResult.ok(value=repo.tags[-1] if repo.tags else None)

    def describe_exact_tag(self, path: Path) -> VcsResult:
        head = self.heads.get(path)
        repo = self.checkouts[path]
        return VcsResult.ok(value=head if head in repo.tags else None)

    def rev_list_count(self, path: Path, range_expr: str) -> VcsResult:
        behind = self.checkouts[path].commits_behind
        return VcsResult.ok(value=None if behind is None else str(behind))

    def default_branch(self, path: Path) -> VcsResult:
        repo = self.checkouts[path]
        if repo.default_branch is None or "symbolic-ref" in self.fail:
            return VcsResult.fail("fatal: ref refs/remotes/origin/HEAD is not a symbolic ref")
        return VcsResult.ok(value=repo.default_branch)


class StaticConfirmer:
    """Answers every prompt the same way and records the prompts."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer


@pytest.fixture
def extension_root(tmp_path: Path) -> Path:
    root = tmp_path / "extensions"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path, extension_root: Path) -> PowertoolConfig:
    return PowertoolConfig(
        extension_root=extension_root,
        settings_file=tmp_path / "settings.yaml",
        interactive=False,
    )


@pytest.fixture
def fake_vcs() -> FakeVcs:
    return FakeVcs()


@pytest.fixture
def console() -> Console:
    return Console(file=StringIO(), width=200, color_system=None)


def console_output(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]
