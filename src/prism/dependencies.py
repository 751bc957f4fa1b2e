"""
Dependency presence checks and install conflict detection.

Only presence and version-range checks are performed; packages are never
resolved or fetched on a caller's behalf.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from prism.errors import ConflictError, DependencyError
from prism.logging import get_logger
from prism.manifest.models import Manifest, SystemDependency
from prism.versions import compare_versions, satisfies

logger = get_logger("dependencies")

WhichFunc = Callable[[str], str | None]


@dataclass
class DependencyCheck:
    """Result of looking up one system dependency."""

    dependency: SystemDependency
    path: str | None = None  # Where the binary was found

    @property
    def found(self) -> bool:
        return self.path is not None


def check_system_dependencies(
    manifest: Manifest,
    which: WhichFunc = shutil.which,
) -> list[DependencyCheck]:
    """
    Look up every system dependency on PATH.

    Missing optional dependencies are logged with their install hint.

    Raises:
        DependencyError: If a required dependency is missing
    """
    results: list[DependencyCheck] = []
    for dep in manifest.dependencies.system:
        check = DependencyCheck(dependency=dep, path=which(dep.name))
        results.append(check)
        if check.found:
            continue

        hint = f" (install: {dep.install})" if dep.install else ""
        if dep.required:
            raise DependencyError(f"Required system dependency missing: {dep.name}{hint}")
        logger.warning("Optional dependency missing: %s%s", dep.name, hint)
    return results


def check_package_dependencies(
    manifest: Manifest,
    installed: Mapping[str, str],
) -> list[str]:
    """
    Find package dependencies that are absent or outside their range.

    Args:
        manifest: Manifest declaring the dependencies
        installed: Installed package name -> version

    Returns:
        ``name@range`` for each unsatisfied dependency
    """
    unsatisfied: list[str] = []
    for name, spec in manifest.dependencies.prism.items():
        version = installed.get(name)
        if version is None or not satisfies(version, spec):
            unsatisfied.append(f"{name}@{spec}")
    return unsatisfied


@dataclass
class Conflict:
    """An install request for a package that is already present."""

    name: str
    installed_version: str
    requested_version: str

    @property
    def same_version(self) -> bool:
        return compare_versions(self.installed_version, self.requested_version) == 0

    @property
    def is_upgrade(self) -> bool:
        return compare_versions(self.requested_version, self.installed_version) > 0

    def raise_if_fatal(self) -> None:
        """Raise :class:`ConflictError` when the same version is already installed."""
        if self.same_version:
            raise ConflictError(
                f"{self.name}@{self.requested_version} is already installed",
                conflict=self,
            )


def check_conflict(manifest: Manifest, installed_version: str | None) -> Conflict | None:
    """
    Compare *manifest* with the version already installed, if any.

    A different version is only an advisory and is logged; whether a
    same-version reinstall is fatal is up to the caller.
    """
    if installed_version is None:
        return None

    conflict = Conflict(
        name=manifest.name,
        installed_version=installed_version,
        requested_version=manifest.version,
    )
    if not conflict.same_version:
        direction = "upgrade" if conflict.is_upgrade else "downgrade"
        logger.warning(
            "%s@%s is already installed. This will %s to %s.",
            manifest.name,
            installed_version,
            direction,
            manifest.version,
        )
    return conflict
