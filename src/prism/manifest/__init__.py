"""Package manifest models, parsing and variant resolution."""
from __future__ import annotations

from prism.manifest.models import (
    DEFAULT_VARIANT_NAME,
    Dependencies,
    HookEvent,
    Manifest,
    PlatformCompat,
    StructureItem,
    StructureType,
    SystemDependency,
    Variant,
    default_variant,
)
from prism.manifest.parser import ManifestParser
from prism.manifest.variants import resolve_variant, resolve_variant_name, select_variant

__all__ = [
    "DEFAULT_VARIANT_NAME",
    "Dependencies",
    "HookEvent",
    "Manifest",
    "ManifestParser",
    "PlatformCompat",
    "StructureItem",
    "StructureType",
    "SystemDependency",
    "Variant",
    "default_variant",
    "resolve_variant",
    "resolve_variant_name",
    "select_variant",
]
