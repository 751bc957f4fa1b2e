"""
Staged package validation.

Runs a package directory through a fixed sequence of checks, recording
each outcome. In the default mode a failing check is recorded and the
remaining checks that can still run do so; in strict mode the first
failure is raised.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from prism.config import PrismConfig
from prism.errors import PrismError, ValidationError
from prism.files.archive import ArchiveBuilder
from prism.logging import get_logger
from prism.manifest.models import Manifest
from prism.manifest.parser import ManifestParser
from prism.patterns import filter_by_variant, list_files

logger = get_logger("validation")

CHECKS = (
    "manifest_parsing",
    "manifest_validation",
    "file_structure",
    "dependencies",
    "variants",
)


@dataclass
class CheckResult:
    """Outcome of one validation check."""

    name: str
    passed: bool
    message: str = ""
    skipped: bool = False


@dataclass
class ValidationReport:
    """Outcome of validating a package directory."""

    package_dir: Path
    manifest: Manifest | None = None
    checks: list[CheckResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def failed_checks(self) -> list[str]:
        return [check.name for check in self.checks if not check.passed]

    def get(self, name: str) -> CheckResult | None:
        return next((check for check in self.checks if check.name == name), None)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)


def unmatched_variants(package_dir: Path, manifest: Manifest) -> list[str]:
    """Names of variants that select no file of the package."""
    package_dir = Path(package_dir)
    item_files = [
        (item, list_files(package_dir / item.source, item.pattern, item.exclude))
        for _, item in manifest.iter_items()
    ]

    empty: list[str] = []
    for name, variant in manifest.variants.items():
        if not any(filter_by_variant(files, variant, item.source) for item, files in item_files):
            empty.append(name)
    return empty


def validate_package(
    package_dir: Path,
    strict: bool = False,
    config: PrismConfig | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> ValidationReport:
    """
    Validate a package directory.

    Args:
        package_dir: Package root holding the manifest
        strict: Raise on the first failing check
        config: Engine configuration
        which: Binary lookup used for system dependency warnings

    Raises:
        PrismError: If the directory does not exist
        ValidationError: If it has no manifest file
    """
    config = config or PrismConfig()
    package_dir = Path(package_dir)
    if not package_dir.is_dir():
        raise PrismError(f"Directory not found: {package_dir}")

    manifest_path = package_dir / config.manifest_filename
    if not manifest_path.is_file():
        raise ValidationError(f"No {config.manifest_filename} found in {package_dir}")

    parser = ManifestParser()
    report = ValidationReport(package_dir=package_dir)

    def record(name: str, action: Callable[[], None]) -> None:
        try:
            action()
        except PrismError as e:
            report.checks.append(CheckResult(name=name, passed=False, message=e.message))
            logger.debug("Check %s failed: %s", name, e.message)
            if strict:
                raise
        else:
            report.checks.append(CheckResult(name=name, passed=True))

    def parse() -> None:
        report.manifest = parser.parse_file(manifest_path, validate=False)

    record("manifest_parsing", parse)

    manifest = report.manifest
    if manifest is None:
        for name in CHECKS[1:]:
            report.checks.append(
                CheckResult(name=name, passed=False, message="Manifest not parsed", skipped=True)
            )
        return report

    record("manifest_validation", lambda: parser.validate(manifest))
    record(
        "file_structure",
        lambda: ArchiveBuilder(config).validate_package_structure(package_dir, manifest),
    )

    def dependencies() -> None:
        parser.validate_dependencies(manifest.dependencies)
        for dep in manifest.dependencies.system:
            if which(dep.name) is None:
                report.warn(f"Binary '{dep.name}' not found in PATH")

    record("dependencies", dependencies)

    def variants() -> None:
        parser.validate_variants(manifest.variants)
        for name in unmatched_variants(package_dir, manifest):
            report.warn(f"Variant {name} matches no files")

    record("variants", variants)
    return report
