"""
Copies package files into a project and removes them again.

For every structure item the installer enumerates files under the item's
source, keeps those selected by the chosen variant, and copies them below
the item's destination. ``claude_config`` items are merged into the
aggregated configuration document instead of being copied.

There is no rollback: a failure part-way through leaves the files already
written in place.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from prism.config import PrismConfig
from prism.errors import PrismError
from prism.files.aggregate import AggregateDocument
from prism.logging import get_logger
from prism.manifest.models import Manifest, StructureItem, StructureType, Variant
from prism.manifest.variants import resolve_variant, resolve_variant_name
from prism.patterns import filter_by_variant, list_files

logger = get_logger("files.installer")


@dataclass
class InstallReport:
    """What an install run did."""

    package: str
    variant: str
    installed: list[Path] = field(default_factory=list)  # Destination files written
    merged_configs: list[str] = field(default_factory=list)  # Sources merged into the aggregate
    missing_sources: list[str] = field(default_factory=list)  # Declared sources not on disk

    @property
    def file_count(self) -> int:
        return len(self.installed)


def resolve_dest_path(template: str, manifest: Manifest) -> str:
    """Substitute ``{name}``, ``{version}`` and ``{author}`` in a destination."""
    return (
        template.replace("{name}", manifest.name or "")
        .replace("{version}", manifest.version or "")
        .replace("{author}", manifest.author or "")
    )


class FileInstaller:
    """
    Installs and uninstalls package files under one project root.

    Example:
        installer = FileInstaller(Path("."))
        report = installer.install_files(package_dir, manifest, "standard")
        installer.uninstall_files(manifest)
    """

    def __init__(self, project_root: Path, config: PrismConfig | None = None) -> None:
        self.project_root = Path(project_root)
        self.config = config or PrismConfig()

    @property
    def aggregate(self) -> AggregateDocument:
        """The project's aggregated configuration document."""
        return AggregateDocument(self.config.aggregate_path(self.project_root))

    def resolve_dest_path(self, template: str, manifest: Manifest) -> str:
        return resolve_dest_path(template, manifest)

    def _dest_dir(self, item: StructureItem, manifest: Manifest) -> Path:
        dest = self.project_root / resolve_dest_path(item.dest, manifest)
        root = self.project_root.resolve()
        resolved = dest.resolve()
        if resolved != root and root not in resolved.parents:
            raise PrismError(f"Destination escapes project root: {item.dest}")
        return dest

    # ------------------------------------------------------------------
    # Install
    # ------------------------------------------------------------------

    def install_files(
        self,
        package_dir: Path,
        manifest: Manifest,
        variant_name: str | None,
    ) -> InstallReport:
        """
        Install the files of *manifest* selected by *variant_name*.

        Args:
            package_dir: Directory holding the package's files
            manifest: Normalized manifest of the package
            variant_name: Requested variant (unknown names fall back)

        Returns:
            Report of the files written and sources skipped

        Raises:
            OSError: If a file cannot be read or written
        """
        package_dir = Path(package_dir)
        variant = resolve_variant(manifest, variant_name)
        report = InstallReport(
            package=manifest.name,
            variant=resolve_variant_name(manifest, variant_name),
        )
        logger.info("Installing %s (variant: %s)", manifest.id, report.variant)

        config_sections: list[str] = []
        for kind, item in manifest.iter_items():
            if kind == StructureType.CLAUDE_CONFIG.value:
                config_sections.extend(self._read_config(package_dir, item, variant, report))
            else:
                self._install_item(package_dir, item, variant, manifest, report)

        if config_sections:
            self.aggregate.merge(manifest.name, "\n".join(config_sections))
            logger.info("Merged configuration for %s into %s", manifest.name, self.aggregate.path)

        logger.info("Installed %d files for %s", report.file_count, manifest.id)
        return report

    def select_files(self, package_dir: Path, item: StructureItem, variant: Variant) -> list[str]:
        """Files of *item* (relative to its source) that *variant* keeps."""
        source = Path(package_dir) / item.source
        files = list_files(source, item.pattern, item.exclude)
        return filter_by_variant(files, variant, item.source)

    def _install_item(
        self,
        package_dir: Path,
        item: StructureItem,
        variant: Variant,
        manifest: Manifest,
        report: InstallReport,
    ) -> None:
        source = package_dir / item.source
        if not source.exists():
            logger.warning("Source path not found, skipping: %s", source)
            report.missing_sources.append(item.source)
            return

        dest_dir = self._dest_dir(item, manifest)
        files = self.select_files(package_dir, item, variant)
        logger.debug("Installing %d files from %s to %s", len(files), item.source, dest_dir)

        for file in files:
            target = dest_dir / file
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source / file, target)
            report.installed.append(target)
            logger.debug("  %s", file)

    def _read_config(
        self,
        package_dir: Path,
        item: StructureItem,
        variant: Variant,
        report: InstallReport,
    ) -> list[str]:
        """Read the configuration files of one ``claude_config`` item."""
        source = package_dir / item.source
        if not source.exists():
            logger.warning("Source path not found, skipping: %s", source)
            report.missing_sources.append(item.source)
            return []

        files = self.select_files(package_dir, item, variant)
        if not files:
            logger.warning(
                "No configuration file matched %s in %s, skipping merge",
                item.pattern,
                source,
            )
            return []

        report.merged_configs.extend(files)
        return [(source / file).read_text(encoding="utf-8").rstrip("\n") for file in files]

    # ------------------------------------------------------------------
    # Uninstall
    # ------------------------------------------------------------------

    def uninstall_files(self, manifest: Manifest) -> int:
        """
        Remove everything *manifest* installs.

        Each item's destination subtree is deleted if present; configuration
        blocks are excised from the aggregated document. Nothing belonging to
        another package is touched.

        Returns:
            Number of destinations (and configuration blocks) removed
        """
        logger.info("Uninstalling files for %s", manifest.name)
        removed = 0
        root = self.project_root.resolve()

        for kind, item in manifest.iter_items():
            if kind == StructureType.CLAUDE_CONFIG.value:
                if self.aggregate.remove(manifest.name):
                    removed += 1
                continue

            dest = self.project_root / resolve_dest_path(item.dest, manifest)
            resolved = dest.resolve()
            if resolved == root or root not in resolved.parents:
                logger.warning("Refusing to remove %s outside the package destination", dest)
                continue

            if dest.is_dir() and not dest.is_symlink():
                shutil.rmtree(dest)
            elif dest.exists() or dest.is_symlink():
                dest.unlink()
            else:
                continue

            removed += 1
            logger.debug("  Removed %s", dest)

        logger.info("Removed %d destinations for %s", removed, manifest.name)
        return removed
