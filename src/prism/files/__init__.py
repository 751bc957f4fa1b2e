"""File installation, configuration merging and package archives."""
from __future__ import annotations

from prism.files.aggregate import AggregateDocument
from prism.files.archive import ArchiveBuilder, format_size
from prism.files.installer import FileInstaller, InstallReport, resolve_dest_path

__all__ = [
    "AggregateDocument",
    "ArchiveBuilder",
    "FileInstaller",
    "InstallReport",
    "format_size",
    "resolve_dest_path",
]
