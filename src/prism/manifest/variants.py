"""
Variant resolution.

An unknown variant name falls back to the first declared variant instead of
failing: installation should not hard-fail on a variant name when a
reasonable default exists. Callers that need a strict lookup can check
``name in manifest.variants`` themselves.
"""

from __future__ import annotations

from prism.logging import get_logger
from prism.manifest.models import DEFAULT_VARIANT_NAME, Manifest, Variant, default_variant

logger = get_logger("manifest.variants")


def resolve_variant(manifest: Manifest, name: str | None) -> Variant:
    """
    Get the include/exclude policy for *name*.

    Returns the named variant when declared, otherwise the first declared
    variant, otherwise the synthetic default variant.
    """
    variants = manifest.variants
    if not variants:
        return default_variant()

    if name is not None and name in variants:
        return variants[name]

    first = next(iter(variants))
    logger.debug(
        "Variant '%s' not declared by %s, using '%s'",
        name,
        manifest.name,
        first,
    )
    return variants[first]


def resolve_variant_name(manifest: Manifest, name: str | None) -> str:
    """Get the name of the variant :func:`resolve_variant` would return."""
    if not manifest.variants:
        return DEFAULT_VARIANT_NAME
    if name is not None and name in manifest.variants:
        return name
    return next(iter(manifest.variants))


def select_variant(manifest: Manifest, preferred: str | None = None) -> str:
    """
    Pick a variant name when the caller did not ask for one.

    Order of preference: *preferred* (e.g. the configured default), then
    ``standard``, then the first declared variant.
    """
    names = manifest.variant_names
    if not names:
        return DEFAULT_VARIANT_NAME
    if preferred and preferred in manifest.variants:
        return preferred
    if "standard" in manifest.variants:
        return "standard"
    return names[0]
