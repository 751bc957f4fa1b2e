"""
PRISM - A manifest-driven package engine for Claude Code extensions.

Packages are directories described by a ``prism-package.yaml`` manifest.
The engine parses and validates manifests, selects files through named
variants, copies them into a project, merges configuration blocks into the
project's aggregated ``CLAUDE.md`` and builds distributable archives.

Example:
    from prism import ArchiveBuilder, FileInstaller, ManifestParser

    manifest = ManifestParser().parse_file(Path("my-ext/prism-package.yaml"))

    # Install the "minimal" variant into a project
    installer = FileInstaller(Path("."))
    report = installer.install_files(Path("my-ext"), manifest, "minimal")

    # Remove it again
    installer.uninstall_files(manifest)

    # Build a distributable archive
    ArchiveBuilder().create_archive(Path("my-ext"), Path("my-ext-1.0.0.tar.gz"), manifest)
"""

from prism.config import PrismConfig
from prism.dependencies import (
    Conflict,
    check_conflict,
    check_package_dependencies,
    check_system_dependencies,
)
from prism.errors import (
    ArchiveError,
    ConflictError,
    DependencyError,
    HookError,
    NoFilesError,
    PrismError,
    ValidationError,
)
from prism.files import (
    AggregateDocument,
    ArchiveBuilder,
    FileInstaller,
    InstallReport,
    resolve_dest_path,
)
from prism.hooks import HookResult, HookRunner
from prism.manifest import (
    Dependencies,
    HookEvent,
    Manifest,
    ManifestParser,
    PlatformCompat,
    StructureItem,
    StructureType,
    SystemDependency,
    Variant,
    resolve_variant,
    select_variant,
)
from prism.patterns import filter_by_variant, matches_pattern
from prism.validation import ValidationReport, validate_package

__version__ = "1.0.0"

__all__ = [
    # Config
    "PrismConfig",
    # Errors
    "PrismError",
    "ValidationError",
    "NoFilesError",
    "ArchiveError",
    "DependencyError",
    "ConflictError",
    "HookError",
    # Manifest
    "Manifest",
    "ManifestParser",
    "StructureItem",
    "StructureType",
    "Variant",
    "Dependencies",
    "SystemDependency",
    "PlatformCompat",
    "HookEvent",
    "resolve_variant",
    "select_variant",
    # Patterns
    "matches_pattern",
    "filter_by_variant",
    # Files
    "AggregateDocument",
    "ArchiveBuilder",
    "FileInstaller",
    "InstallReport",
    "resolve_dest_path",
    # Dependencies
    "Conflict",
    "check_conflict",
    "check_package_dependencies",
    "check_system_dependencies",
    # Hooks
    "HookRunner",
    "HookResult",
    # Validation
    "ValidationReport",
    "validate_package",
]
