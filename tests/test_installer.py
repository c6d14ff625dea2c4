"""Tests for installing and updating extensions."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from conftest import FakeRepo, FakeVcs, StaticConfirmer, write_extension
from powertool.errors import ReasonCode
from powertool.extensions.installer import ExtensionInstaller, Outcome
from powertool.vcs.base import CONTROL_MARKER

HOST = "https://github.com"


def manifest(name: str, version: str = "1.0.0", **extra: Any) -> dict[str, Any]:
    data = {
        "name": name,
        "description": f"{name} extension",
        "version": version,
        "modules": ["modules/main.py"],
    }
    data.update(extra)
    return data


def checkouts(vcs: FakeVcs) -> list[str]:
    return [call[1] for call in vcs.calls if call[0] == "checkout"]


@pytest.fixture
def installer(extension_root: Path, fake_vcs: FakeVcs) -> ExtensionInstaller:
    return ExtensionInstaller(extension_root, fake_vcs, interactive=False)


class TestInstall:
    def test_shorthand_install(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path) -> None:
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools"))

        result = installer.install("ada/imagetools")

        assert result.outcome is Outcome.SUCCEEDED
        assert result.extension == "imagetools"
        assert (extension_root / "imagetools" / "extension.json").is_file()
        assert result.warnings == []

    def test_invalid_source(self, installer: ExtensionInstaller, fake_vcs: FakeVcs) -> None:
        result = installer.install("not a source")

        assert result.reason is ReasonCode.INVALID_SOURCE
        assert fake_vcs.calls == []

    def test_vcs_unavailable(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path) -> None:
        fake_vcs.available = False

        result = installer.install("ada/imagetools")

        assert result.reason is ReasonCode.VCS_UNAVAILABLE
        assert list(extension_root.iterdir()) == []

    def test_existing_path_without_force(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path
    ) -> None:
        existing = write_extension(extension_root, "imagetools")
        (existing / "notes.txt").write_text("keep me")
        before = sorted(p.relative_to(extension_root) for p in extension_root.rglob("*"))
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools"))

        result = installer.install("ada/imagetools")

        assert result.outcome is Outcome.FAILED
        assert result.reason is ReasonCode.PATH_CONFLICT
        assert fake_vcs.calls == []
        assert sorted(p.relative_to(extension_root) for p in extension_root.rglob("*")) == before
        assert (existing / "notes.txt").read_text() == "keep me"

    def test_force_replaces(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path) -> None:
        existing = write_extension(extension_root, "imagetools")
        (existing / "notes.txt").write_text("stale")
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools", "2.0.0"))

        result = installer.install("ada/imagetools", force=True)

        assert result.ok
        assert not (existing / "notes.txt").exists()
        assert (existing / CONTROL_MARKER).is_dir()

    def test_clone_failure_cleans_up(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path
    ) -> None:
        fake_vcs.partial_clone = True

        result = installer.install("ada/missing")

        assert result.reason is ReasonCode.CLONE_FAILED
        assert "not found" in result.detail
        assert not (extension_root / "missing").exists()

    def test_force_replaces_plain_file(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path
    ) -> None:
        (extension_root / "imagetools").write_text("not a checkout")
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools"))

        result = installer.install("ada/imagetools", force=True)

        assert result.ok
        assert (extension_root / "imagetools" / CONTROL_MARKER).is_dir()

    def test_force_replaces_symlink_without_touching_its_target(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path, tmp_path: Path
    ) -> None:
        elsewhere = write_extension(tmp_path, "elsewhere")
        (extension_root / "imagetools").symlink_to(elsewhere, target_is_directory=True)
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools"))

        result = installer.install("ada/imagetools", force=True)

        assert result.ok
        assert not (extension_root / "imagetools").is_symlink()
        assert (elsewhere / "extension.json").is_file()

    def test_creates_missing_root(self, tmp_path: Path, fake_vcs: FakeVcs) -> None:
        root = tmp_path / "new" / "extensions"
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools"))

        result = ExtensionInstaller(root, fake_vcs).install("ada/imagetools")

        assert result.ok
        assert (root / "imagetools").is_dir()

    def test_missing_manifest_is_a_warning(self, installer: ExtensionInstaller, fake_vcs: FakeVcs) -> None:
        fake_vcs.add_remote(f"{HOST}/ada/bare", manifest=None)

        result = installer.install("ada/bare")

        assert result.outcome is Outcome.SUCCEEDED
        assert len(result.warnings) == 1


class TestInstallVersion:
    def test_unprefixed_version_falls_back_to_v_tag(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs
    ) -> None:
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools"), tags=["v1.2.0"])

        result = installer.install("ada/imagetools", version="1.2.0")

        assert result.ok
        assert result.ref == "v1.2.0"
        assert checkouts(fake_vcs) == ["1.2.0", "v1.2.0"]

    def test_prefixed_version_is_not_retried(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path
    ) -> None:
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools"), tags=["1.2.0"])

        result = installer.install("ada/imagetools", version="v1.2.0")

        assert result.reason is ReasonCode.CHECKOUT_FAILED
        assert checkouts(fake_vcs) == ["v1.2.0"]
        # the clone itself is kept
        assert (extension_root / "imagetools" / CONTROL_MARKER).is_dir()

    def test_failed_checkout_still_reports_dependencies(
        self, extension_root: Path, fake_vcs: FakeVcs
    ) -> None:
        fake_vcs.add_remote(
            f"{HOST}/ada/imagetools",
            manifest=manifest("imagetools", dependencies={"ada/colorlib": ">=0.3"}),
            tags=["v1.0.0"],
        )
        fake_vcs.add_remote(f"{HOST}/ada/colorlib", manifest=manifest("colorlib"))
        confirmer = StaticConfirmer(True)
        installer = ExtensionInstaller(extension_root, fake_vcs, confirmer=confirmer, interactive=True)

        result = installer.install("ada/imagetools", version="9.9.9")

        assert result.reason is ReasonCode.CHECKOUT_FAILED
        assert result.missing_dependencies == ["ada/colorlib"]
        assert confirmer.prompts == []
        assert not (extension_root / "colorlib").exists()

    def test_exact_version(self, installer: ExtensionInstaller, fake_vcs: FakeVcs) -> None:
        fake_vcs.add_remote(f"{HOST}/ada/imagetools", manifest=manifest("imagetools"), tags=["1.2.0"])

        result = installer.install("ada/imagetools", version="1.2.0")

        assert result.ref == "1.2.0"
        assert checkouts(fake_vcs) == ["1.2.0"]


class TestDependencies:
    @pytest.fixture
    def remotes(self, fake_vcs: FakeVcs) -> FakeVcs:
        fake_vcs.add_remote(
            f"{HOST}/ada/imagetools",
            manifest=manifest(
                "imagetools",
                dependencies={"powertool": ">=2.0", "ada/colorlib": "=0.3.0", "plainname": ">=1"},
            ),
        )
        fake_vcs.add_remote(f"{HOST}/ada/colorlib", manifest=manifest("colorlib", "0.3.0"), tags=["v0.3.0"])
        return fake_vcs

    def test_headless_reports_missing(self, installer: ExtensionInstaller, remotes: FakeVcs) -> None:
        result = installer.install("ada/imagetools")

        assert result.ok
        assert result.missing_dependencies == ["ada/colorlib", "plainname"]
        assert result.dependency_results == []

    def test_interactive_installs_confirmed(self, extension_root: Path, remotes: FakeVcs) -> None:
        confirmer = StaticConfirmer(True)
        installer = ExtensionInstaller(extension_root, remotes, confirmer=confirmer, interactive=True)

        result = installer.install("ada/imagetools")

        assert confirmer.prompts == ["Install missing dependency ada/colorlib?"]
        (dependency,) = result.dependency_results
        assert dependency.extension == "colorlib"
        assert dependency.ref == "v0.3.0"
        assert (extension_root / "colorlib").is_dir()

    def test_declined_dependency_is_not_installed(self, extension_root: Path, remotes: FakeVcs) -> None:
        installer = ExtensionInstaller(extension_root, remotes, confirmer=StaticConfirmer(False), interactive=True)

        result = installer.install("ada/imagetools")

        assert result.dependency_results == []
        assert not (extension_root / "colorlib").exists()

    def test_already_installed_dependency(self, installer: ExtensionInstaller, remotes: FakeVcs) -> None:
        write_extension(installer.root, "colorlib", {"source": f"{HOST}/ada/colorlib"})

        result = installer.install("ada/imagetools")

        assert result.missing_dependencies == ["plainname"]


class TestUpdate:
    def test_not_installed(self, installer: ExtensionInstaller) -> None:
        assert installer.update("ghost").reason is ReasonCode.EXTENSION_NOT_FOUND

    def test_not_version_controlled(self, installer: ExtensionInstaller, extension_root: Path) -> None:
        write_extension(extension_root, "local")

        result = installer.update("local")

        assert result.outcome is Outcome.SKIPPED
        assert result.reason is ReasonCode.NOT_VERSION_CONTROLLED

    def test_target_and_nightly_are_exclusive(self, installer: ExtensionInstaller) -> None:
        with pytest.raises(ValueError):
            installer.update("tools", target_version="1.0", nightly=True)

    def test_found_by_manifest_name(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path
    ) -> None:
        path = write_extension(extension_root, "renamed", {"name": "tools"})
        fake_vcs.adopt(path, FakeRepo(tags=["v1.0.0", "v1.1.0"]), head="v1.0.0")

        assert installer.update("tools").ref == "v1.1.0"


class TestUpdateLatestTag:
    @pytest.fixture
    def tools(self, extension_root: Path) -> Path:
        return write_extension(extension_root, "tools", {"version": "1.0.0"})

    def test_moves_to_newest_tag(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path) -> None:
        fake_vcs.adopt(tools, FakeRepo(tags=["v1.0.0", "v1.1.0"]), head="v1.0.0")

        result = installer.update("tools")

        assert result.outcome is Outcome.SUCCEEDED
        assert result.ref == "v1.1.0"
        assert fake_vcs.heads[tools] == "v1.1.0"

    def test_already_on_latest_tag(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path) -> None:
        fake_vcs.adopt(tools, FakeRepo(tags=["v1.0.0"]), head="v1.0.0")

        result = installer.update("tools")

        assert result.outcome is Outcome.SKIPPED
        assert result.reason is ReasonCode.ALREADY_CURRENT
        assert checkouts(fake_vcs) == []

    def test_manifest_newer_than_latest_tag_is_skipped(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path
    ) -> None:
        path = write_extension(extension_root, "ahead", {"version": "2.0.0"})
        fake_vcs.adopt(path, FakeRepo(tags=["v1.5.0"]), head="main")

        result = installer.update("ahead")

        assert result.outcome is Outcome.SKIPPED
        assert result.reason is ReasonCode.ALREADY_CURRENT
        assert checkouts(fake_vcs) == []

    def test_equal_manifest_version_is_skipped(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path
    ) -> None:
        fake_vcs.adopt(tools, FakeRepo(tags=["v1.0.0"]), head="main")

        assert installer.update("tools").outcome is Outcome.SKIPPED

    def test_no_tags(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path) -> None:
        fake_vcs.adopt(tools, FakeRepo(tags=[]))

        result = installer.update("tools")

        assert result.outcome is Outcome.SKIPPED
        assert result.reason is ReasonCode.NO_TAGS_FOUND

    def test_fetch_failure(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path) -> None:
        fake_vcs.adopt(tools, FakeRepo(tags=["v2.0.0"]))
        fake_vcs.fail.add("fetch")

        assert installer.update("tools").reason is ReasonCode.FETCH_FAILED


class TestUpdateTargetAndNightly:
    @pytest.fixture
    def tools(self, extension_root: Path) -> Path:
        return write_extension(extension_root, "tools")

    def test_target_with_v_fallback(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path) -> None:
        fake_vcs.adopt(tools, FakeRepo(tags=["v1.1.0"]))

        result = installer.update("tools", target_version="1.1.0")

        assert result.ref == "v1.1.0"

    def test_target_prefixed_not_retried(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path
    ) -> None:
        fake_vcs.adopt(tools, FakeRepo(tags=["2.0"]))

        result = installer.update("tools", target_version="v2.0")

        assert result.reason is ReasonCode.CHECKOUT_FAILED
        assert checkouts(fake_vcs) == ["v2.0"]

    def test_target_survives_fetch_failure(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path
    ) -> None:
        fake_vcs.adopt(tools, FakeRepo(tags=["1.1.0"]))
        fake_vcs.fail.add("fetch")

        assert installer.update("tools", target_version="1.1.0").ok

    def test_nightly_default_branch(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path) -> None:
        fake_vcs.adopt(tools, FakeRepo(branches=["develop"], default_branch="develop"), head="v1")

        result = installer.update("tools", nightly=True)

        assert result.outcome is Outcome.SUCCEEDED
        assert result.ref == "develop"
        assert ("pull", "origin", "develop") in fake_vcs.calls

    def test_nightly_probes_main_then_master(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path
    ) -> None:
        fake_vcs.adopt(tools, FakeRepo(branches=["master"], default_branch=None))

        result = installer.update("tools", nightly=True)

        assert result.ref == "master"
        assert checkouts(fake_vcs) == ["main", "master"]

    def test_nightly_pull_failure(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path) -> None:
        fake_vcs.adopt(tools, FakeRepo())
        fake_vcs.fail.add("pull")

        result = installer.update("tools", nightly=True)

        assert result.reason is ReasonCode.PULL_FAILED
        assert "fast-forward" in result.detail

    def test_nightly_without_any_branch(
        self, installer: ExtensionInstaller, fake_vcs: FakeVcs, tools: Path
    ) -> None:
        fake_vcs.adopt(tools, FakeRepo(branches=["trunk"], default_branch=None))

        assert installer.update("tools", nightly=True).reason is ReasonCode.CHECKOUT_FAILED


class TestBatchAndStatus:
    def test_update_all_counts(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path) -> None:
        current = write_extension(extension_root, "a-current", {"version": "1.0.0"})
        fake_vcs.adopt(current, FakeRepo(tags=["v1.0.0", "v1.2.0"]), head="v1.0.0")
        write_extension(extension_root, "b-local")
        broken = write_extension(extension_root, "c-broken")
        # version-controlled on disk, unknown to the client
        (broken / CONTROL_MARKER).mkdir()

        summary = installer.update_all()

        assert (summary.updated, summary.skipped, summary.failed) == (1, 1, 1)
        assert [r.extension for r in summary.results] == ["a-current", "b-local", "c-broken"]

    def test_status_behind(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path) -> None:
        path = write_extension(extension_root, "tools", {"version": "1.0.0"})
        fake_vcs.adopt(path, FakeRepo(tags=["v1.2.0"], commits_behind=3))

        status = installer.status(installer.installed()[0])

        assert status.latest_tag == "v1.2.0"
        assert status.branch == "main"
        assert status.commits_behind == 3
        assert status.update_available

    def test_status_current(self, installer: ExtensionInstaller, fake_vcs: FakeVcs, extension_root: Path) -> None:
        path = write_extension(extension_root, "tools", {"version": "1.2.0"})
        fake_vcs.adopt(path, FakeRepo(tags=["v1.2.0"], commits_behind=0))

        assert not installer.status(installer.installed()[0]).update_available

    def test_status_not_version_controlled(self, installer: ExtensionInstaller, extension_root: Path) -> None:
        write_extension(extension_root, "local")

        status = installer.status(installer.installed()[0])

        assert not status.version_controlled
        assert not status.update_available
