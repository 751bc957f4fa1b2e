"""
Package archive creation and reading.

Archives are gzip-compressed tarballs whose entries are paths relative to
the package root, exactly as computed by :meth:`ArchiveBuilder.collect_files`.
"""

from __future__ import annotations

import tarfile
from pathlib import Path

from prism.config import PrismConfig
from prism.errors import ArchiveError, NoFilesError, PrismError
from prism.logging import get_logger
from prism.manifest.models import Manifest, StructureItem
from prism.patterns import is_ignored, join_prefix, list_files

logger = get_logger("files.archive")


def format_size(size: float) -> str:
    """Format a byte count for display (``1.5 KB``)."""
    units = ["B", "KB", "MB", "GB"]
    unit = 0
    while size >= 1024 and unit < len(units) - 1:
        size /= 1024
        unit += 1
    if unit == 0:
        return f"{int(size)} B"
    return f"{size:.1f} {units[unit]}"


def fallback_manifest(source_dir: Path) -> Manifest:
    """Packaging manifest used when a directory has none."""
    return Manifest(
        name=Path(source_dir).name.lower(),
        version="0.0.0",
        description="",
        structure={
            "commands": [StructureItem(source="commands/", dest="")],
            "scripts": [StructureItem(source="scripts/", dest="")],
        },
        ignore=[".git", "node_modules", "*.log"],
    )


class ArchiveBuilder:
    """Collects package files and writes or reads package archives."""

    def __init__(self, config: PrismConfig | None = None) -> None:
        self.config = config or PrismConfig()

    def collect_files(self, source_dir: Path, manifest: Manifest) -> list[str]:
        """
        Collect the relative paths that belong in the archive.

        Includes the manifest file, every structure item's matching files
        (minus the item's excludes and the manifest's ignore rules) and the
        conventional extra files.

        Raises:
            NoFilesError: If nothing was collected
        """
        source_dir = Path(source_dir)
        collected: dict[str, None] = {}

        if (source_dir / self.config.manifest_filename).is_file():
            collected[self.config.manifest_filename] = None

        for _, item in manifest.iter_items():
            item_root = source_dir / item.source
            if not item_root.is_dir():
                continue

            for file in list_files(item_root, item.pattern, item.exclude):
                relative = join_prefix(item.source, file)
                if is_ignored(file, manifest.ignore) or is_ignored(relative, manifest.ignore):
                    continue
                collected[relative] = None

        for extra in self.config.extra_files:
            if (source_dir / extra).is_file():
                collected[extra] = None

        if not collected:
            raise NoFilesError()

        return list(collected)

    def create_archive(
        self,
        source_dir: Path,
        output_path: Path,
        manifest: Manifest | None = None,
    ) -> Path:
        """
        Write a ``.tar.gz`` holding exactly the collected files.

        Args:
            source_dir: Package root
            output_path: Archive to write (parent directories are created)
            manifest: Package manifest; a fallback layout is used if omitted

        Returns:
            The archive path

        Raises:
            PrismError: If the source directory does not exist
            NoFilesError: If there is nothing to package
            ArchiveError: If the archive could not be written or is empty
        """
        source_dir = Path(source_dir)
        output_path = Path(output_path)
        logger.info("Creating package: %s", output_path.name)

        if not source_dir.is_dir():
            raise PrismError(f"Source directory does not exist: {source_dir}")

        files = self.collect_files(source_dir, manifest or fallback_manifest(source_dir))

        output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(output_path, "w:gz") as tar:
                for file in files:
                    tar.add(source_dir / file, arcname=file, recursive=False)
        except (OSError, tarfile.TarError) as e:
            raise ArchiveError(f"Failed to create package archive: {e}") from e

        if not output_path.is_file():
            raise ArchiveError(f"Package file was not created: {output_path}")
        size = output_path.stat().st_size
        if size == 0:
            raise ArchiveError(f"Package file is empty: {output_path}")

        logger.info(
            "Package created: %s (%s, %d files)", output_path, format_size(size), len(files)
        )
        return output_path

    def list_archive(self, archive_path: Path) -> list[str]:
        """List the file entries of an archive."""
        try:
            with tarfile.open(archive_path, "r:gz") as tar:
                return [member.name for member in tar.getmembers() if member.isfile()]
        except (OSError, tarfile.TarError) as e:
            raise ArchiveError(f"Failed to read package archive: {e}") from e

    def extract_archive(self, archive_path: Path, dest_dir: Path) -> Path:
        """
        Extract an archive into *dest_dir*.

        Members with absolute paths or ``..`` components are rejected; the
        owner execute bit is kept.
        """
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        try:
            with tarfile.open(archive_path, "r:gz") as tar:
                tar.extractall(dest_dir, filter="data")
        except (OSError, tarfile.TarError) as e:
            raise ArchiveError(f"Failed to extract package archive: {e}") from e
        logger.debug("Extracted %s to %s", archive_path, dest_dir)
        return dest_dir

    def validate_package_structure(self, package_dir: Path, manifest: Manifest) -> None:
        """
        Check that a package directory can be distributed.

        Structure sources that are missing or empty are tolerated.

        Raises:
            PrismError: If the package is missing its manifest file
        """
        package_dir = Path(package_dir)
        errors: list[str] = []

        for kind, item in manifest.iter_items():
            source = package_dir / item.source
            if not source.exists():
                logger.debug("%s source %s does not exist", kind, item.source)
            elif not list_files(source, item.pattern, item.exclude):
                logger.debug("%s source %s has no matching files", kind, item.source)

        if not (package_dir / self.config.manifest_filename).is_file():
            errors.append(f"Missing {self.config.manifest_filename} file")

        if errors:
            raise PrismError("Package validation failed:\n" + "\n".join(errors))
