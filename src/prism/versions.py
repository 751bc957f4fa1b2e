"""
Semantic version helpers.

Versions and version ranges are handled by ``semantic_version``. Ranges use
the npm grammar (``^1.2.0``, ``~1.2``, ``>=1.0.0 <2.0.0``, ``1.2.x``,
``1.0.0 - 2.0.0``, ``a || b``) through :class:`semantic_version.NpmSpec`.
"""

from __future__ import annotations

import re

from semantic_version import NpmSpec, Version, compare, validate

# "<= 1.2.3" is written "<=1.2.3" before the range is parsed
_OP_SPACING = re.compile(r"(\^|~>?|>=|<=|>|<|=)\s+")

MATCH_ANY = "*"


def is_valid_version(version: object) -> bool:
    """Check that *version* is a full semantic version string."""
    if not isinstance(version, str):
        return False
    return validate(version.strip())


def parse_version(version: str) -> Version:
    """Parse a version string, raising ``ValueError`` when it is not semver."""
    return Version(version.strip())


def compare_versions(left: str, right: str) -> int:
    """Compare two version strings (-1, 0 or 1)."""
    return compare(left.strip(), right.strip())


def parse_range(spec: str) -> NpmSpec:
    """
    Parse an npm-style range expression.

    An empty expression matches every version.

    Raises:
        ValueError: If the expression is not a valid range.
    """
    expression = _OP_SPACING.sub(r"\1", spec.strip())
    return NpmSpec(expression or MATCH_ANY)


def is_valid_range(spec: object) -> bool:
    """Check that *spec* is a valid version range."""
    if not isinstance(spec, str):
        return False
    try:
        parse_range(spec)
    except ValueError:
        return False
    return True


def satisfies(version: str, spec: str) -> bool:
    """Check whether *version* falls inside the range *spec*."""
    return parse_range(spec).match(parse_version(version))
