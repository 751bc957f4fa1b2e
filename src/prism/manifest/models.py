"""
Manifest data models.

These models are the strict internal form of a ``prism-package.yaml``
document. :class:`~prism.manifest.parser.ManifestParser` is the only place
that translates the loosely-typed parsed document into them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StructureType(str, Enum):
    """Kinds of files a package can ship."""

    COMMANDS = "commands"
    SCRIPTS = "scripts"
    RULES = "rules"
    DATA = "data"
    TEMPLATES = "templates"
    AGENTS = "agents"
    DOCUMENTATION = "documentation"
    CLAUDE_CONFIG = "claude_config"  # Merged into the aggregated document

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class HookEvent(str, Enum):
    """Lifecycle events a package can attach a shell script to."""

    PRE_INSTALL = "preInstall"
    POST_INSTALL = "postInstall"
    PRE_UNINSTALL = "preUninstall"
    POST_UNINSTALL = "postUninstall"
    PRE_UPDATE = "preUpdate"
    POST_UPDATE = "postUpdate"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


DEFAULT_PATTERN = "**/*"
DEFAULT_IGNORE = ["node_modules", ".git", ".DS_Store"]
DEFAULT_VARIANT_NAME = "default"
RECOMMENDED_VARIANTS = ("minimal", "standard", "full")


@dataclass
class StructureItem:
    """One source -> destination copy rule."""

    source: str  # Relative to the package root
    dest: str  # Relative to the project root, may contain {name}/{version}/{author}
    pattern: str = DEFAULT_PATTERN
    exclude: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "dest": self.dest,
            "pattern": self.pattern,
            "exclude": list(self.exclude),
        }


@dataclass
class Variant:
    """A named include/exclude selection of package files."""

    description: str
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "include": list(self.include),
            "exclude": list(self.exclude),
        }


def default_variant() -> Variant:
    """The variant used when a manifest declares none."""
    return Variant(description="Default installation", include=[DEFAULT_PATTERN], exclude=[])


@dataclass
class SystemDependency:
    """An external program the package expects on PATH."""

    name: str
    required: bool = True
    version: str | None = None  # Version range
    install: str | None = None  # Human-readable install hint

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "required": self.required,
            "version": self.version,
            "install": self.install,
        }


@dataclass
class Dependencies:
    """System programs and other packages this package relies on."""

    system: list[SystemDependency] = field(default_factory=list)
    prism: dict[str, str] = field(default_factory=dict)  # Package name -> version range

    def to_dict(self) -> dict[str, Any]:
        return {
            "system": [dep.to_dict() for dep in self.system],
            "prism": dict(self.prism),
        }


@dataclass
class PlatformCompat:
    """Host tool versions the package was written for (informational)."""

    min_version: str | None = None
    max_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.min_version is not None:
            data["minVersion"] = self.min_version
        if self.max_version is not None:
            data["maxVersion"] = self.max_version
        return data


@dataclass
class Manifest:
    """
    A normalized package manifest.

    Every optional field carries its documented default, so consumers never
    need to check for absence. ``variants`` is never empty: a synthetic
    ``default`` variant is inserted when the document declares none.
    """

    name: str
    version: str
    description: str
    author: str = "Unknown"
    license: str = "MIT"
    repository: str | None = None
    homepage: str | None = None
    keywords: list[str] = field(default_factory=list)
    platform_compat: PlatformCompat = field(default_factory=PlatformCompat)
    structure: dict[str, list[StructureItem]] = field(default_factory=dict)
    variants: dict[str, Variant] = field(
        default_factory=lambda: {DEFAULT_VARIANT_NAME: default_variant()}
    )
    dependencies: Dependencies = field(default_factory=Dependencies)
    hooks: dict[str, str] = field(default_factory=dict)
    ignore: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))

    @property
    def id(self) -> str:
        """``name@version`` identifier."""
        return f"{self.name}@{self.version}"

    @property
    def variant_names(self) -> list[str]:
        """Variant names in declared order."""
        return list(self.variants)

    def iter_items(self) -> list[tuple[str, StructureItem]]:
        """Flatten structure into ``(type, item)`` pairs in manifest order."""
        return [(kind, item) for kind, items in self.structure.items() for item in items]

    def to_dict(self) -> dict[str, Any]:
        """Render the manifest back into document shape."""
        return {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "author": self.author,
            "license": self.license,
            "repository": self.repository,
            "homepage": self.homepage,
            "keywords": list(self.keywords),
            "platformCompat": self.platform_compat.to_dict(),
            "structure": {
                kind: [item.to_dict() for item in items]
                for kind, items in self.structure.items()
            },
            "variants": {name: v.to_dict() for name, v in self.variants.items()},
            "dependencies": self.dependencies.to_dict(),
            "hooks": dict(self.hooks),
            "ignore": list(self.ignore),
        }
