"""Tests for dependency checks and conflict detection."""

import logging

import pytest

from prism.dependencies import (
    Conflict,
    check_conflict,
    check_package_dependencies,
    check_system_dependencies,
)
from prism.errors import ConflictError, DependencyError
from prism.manifest import Dependencies, Manifest, SystemDependency


def fake_which(available: set[str]):
    return lambda name: f"/usr/bin/{name}" if name in available else None


def with_deps(**kwargs) -> Manifest:
    return Manifest(
        name="pkg",
        version=kwargs.pop("version", "1.0.0"),
        description="d",
        dependencies=Dependencies(**kwargs),
    )


class TestSystemDependencies:
    """Tests for check_system_dependencies."""

    def test_all_present(self, manifest: Manifest) -> None:
        checks = check_system_dependencies(manifest, which=fake_which({"git", "jq"}))

        assert [c.found for c in checks] == [True, True]
        assert checks[0].path == "/usr/bin/git"

    def test_required_missing(self, manifest: Manifest) -> None:
        """Should fail when a required binary is missing."""
        with pytest.raises(DependencyError, match="Required system dependency missing: git"):
            check_system_dependencies(manifest, which=fake_which({"jq"}))

    def test_optional_missing(self, manifest: Manifest, caplog) -> None:
        """Should only warn about a missing optional binary."""
        with caplog.at_level(logging.WARNING, logger="prism"):
            checks = check_system_dependencies(manifest, which=fake_which({"git"}))

        assert checks[1].found is False
        assert "Optional dependency missing: jq (install: brew install jq)" in caplog.text

    def test_no_dependencies(self) -> None:
        assert check_system_dependencies(with_deps(), which=fake_which(set())) == []

    def test_install_hint_in_error(self) -> None:
        manifest = with_deps(system=[SystemDependency(name="rg", install="apt install ripgrep")])

        with pytest.raises(DependencyError, match="install: apt install ripgrep"):
            check_system_dependencies(manifest, which=fake_which(set()))


class TestPackageDependencies:
    """Tests for check_package_dependencies."""

    def test_satisfied(self) -> None:
        manifest = with_deps(prism={"base": "^1.0.0"})

        assert check_package_dependencies(manifest, {"base": "1.4.0"}) == []

    def test_missing_and_out_of_range(self) -> None:
        manifest = with_deps(prism={"base": "^1.0.0", "extra": ">=2.0.0"})

        unsatisfied = check_package_dependencies(manifest, {"base": "2.0.0"})

        assert unsatisfied == ["base@^1.0.0", "extra@>=2.0.0"]


class TestConflicts:
    """Tests for conflict detection."""

    def test_not_installed(self, manifest: Manifest) -> None:
        assert check_conflict(manifest, None) is None

    def test_same_version_is_fatal(self, manifest: Manifest) -> None:
        conflict = check_conflict(manifest, "1.0.0")

        assert conflict.same_version
        with pytest.raises(ConflictError, match="test-pkg@1.0.0 is already installed") as exc:
            conflict.raise_if_fatal()
        assert exc.value.conflict is conflict
        assert exc.value.code == "CONFLICT_ERROR"

    def test_upgrade(self, manifest: Manifest, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="prism"):
            conflict = check_conflict(manifest, "0.9.0")

        assert conflict.is_upgrade
        conflict.raise_if_fatal()
        assert "This will upgrade to 1.0.0" in caplog.text

    def test_downgrade(self, manifest: Manifest, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="prism"):
            conflict = check_conflict(manifest, "2.0.0")

        assert not conflict.is_upgrade
        assert "This will downgrade to 1.0.0" in caplog.text

    def test_conflict_fields(self) -> None:
        conflict = Conflict(name="pkg", installed_version="1.0.0", requested_version="1.1.0")

        assert not conflict.same_version
        assert conflict.is_upgrade
