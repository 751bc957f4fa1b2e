"""
Configuration for the package engine.

Provides a small configuration model that can be loaded from YAML files
or constructed programmatically.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_MANIFEST_FILENAME = "prism-package.yaml"
DEFAULT_EXTRA_FILES = ["README.md", "LICENSE", "CHANGELOG.md"]


def get_default_variant() -> str:
    """Get the default variant from the environment, defaulting to 'standard'."""
    return os.environ.get("PRISM_DEFAULT_VARIANT", "standard").strip() or "standard"


@dataclass
class PrismConfig:
    """
    Main configuration for the package engine.

    Example YAML:
        host_dir: .claude
        aggregate_filename: CLAUDE.md
        manifest_filename: prism-package.yaml
        default_variant: standard
        extra_files:
          - README.md
          - LICENSE
        hook_timeout_seconds: 60
    """

    # Host project layout
    host_dir: str = ".claude"  # Directory under the project root owned by the host tool
    aggregate_filename: str = "CLAUDE.md"  # Aggregated configuration document

    # Package layout
    manifest_filename: str = DEFAULT_MANIFEST_FILENAME
    extra_files: list[str] = field(default_factory=lambda: list(DEFAULT_EXTRA_FILES))

    # Installation
    default_variant: str = field(default_factory=get_default_variant)
    hook_timeout_seconds: float | None = None  # None = no timeout

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PrismConfig:
        """Create config from a dictionary."""
        timeout = data.get("hook_timeout_seconds")
        return cls(
            host_dir=data.get("host_dir", ".claude"),
            aggregate_filename=data.get("aggregate_filename", "CLAUDE.md"),
            manifest_filename=data.get("manifest_filename", DEFAULT_MANIFEST_FILENAME),
            extra_files=list(data.get("extra_files", DEFAULT_EXTRA_FILES)),
            default_variant=data.get("default_variant") or get_default_variant(),
            hook_timeout_seconds=float(timeout) if timeout is not None else None,
        )

    @classmethod
    def from_yaml(cls, path: Path) -> PrismConfig:
        """Load config from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_yaml_string(cls, content: str) -> PrismConfig:
        """Load config from a YAML string."""
        data = yaml.safe_load(content)
        return cls.from_dict(data or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return {
            "host_dir": self.host_dir,
            "aggregate_filename": self.aggregate_filename,
            "manifest_filename": self.manifest_filename,
            "extra_files": list(self.extra_files),
            "default_variant": self.default_variant,
            "hook_timeout_seconds": self.hook_timeout_seconds,
        }

    def host_path(self, project_root: Path) -> Path:
        """Get the host directory inside a project."""
        return Path(project_root) / self.host_dir

    def aggregate_path(self, project_root: Path) -> Path:
        """Get the aggregated configuration document inside a project."""
        return self.host_path(project_root) / self.aggregate_filename
