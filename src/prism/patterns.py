"""
Glob-style pattern matching over forward-slash relative paths.

The matcher is shared by the installer, the archive builder and the
package validator, so that "does this file belong to this variant" has a
single answer everywhere.

Translation rules:

- ``**/`` matches zero or more leading path segments
- ``**`` matches any sequence of characters, separators included
- ``*`` matches any sequence of characters except ``/``
- ``?`` matches exactly one character except ``/``
- everything else is matched literally

Matching is anchored: the whole path must match.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prism.manifest.models import Variant

MATCH_ALL_PATTERNS = frozenset({"**", "**/*"})


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob pattern into an anchored regular expression."""
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(parts) + "$", re.DOTALL)


def normalize_path(path: str | Path) -> str:
    """Convert a path to forward slashes without a leading ``./``."""
    text = str(path).replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    return text


def matches_pattern(path: str | Path, pattern: str) -> bool:
    """Check whether *path* matches the glob *pattern*."""
    if pattern in MATCH_ALL_PATTERNS:
        return True
    return glob_to_regex(normalize_path(pattern)).match(normalize_path(path)) is not None


def matches_any(path: str | Path, patterns: Iterable[str]) -> bool:
    """Check whether *path* matches at least one of *patterns*."""
    return any(matches_pattern(path, pattern) for pattern in patterns)


def join_prefix(prefix: str, path: str) -> str:
    """Join a structure source prefix and a relative file path."""
    prefix = normalize_path(prefix).strip("/")
    path = normalize_path(path).lstrip("/")
    if not prefix or prefix == ".":
        return path
    return f"{prefix}/{path}"


def filter_by_variant(
    files: Sequence[str],
    variant: Variant,
    prefix: str = "",
) -> list[str]:
    """
    Keep the files that belong to *variant*.

    Each file is tested as ``prefix/file``, so variant patterns are written
    relative to the package root. A file survives when it matches at least
    one include pattern and no exclude pattern. Input order is preserved.
    """
    kept: list[str] = []
    for file in files:
        candidate = join_prefix(prefix, file)
        if not matches_any(candidate, variant.include):
            continue
        if matches_any(candidate, variant.exclude):
            continue
        kept.append(file)
    return kept


def is_ignored(path: str, patterns: Iterable[str]) -> bool:
    """
    Check whether *path* falls under any ignore pattern.

    A pattern ignores a path when it matches the whole path or one of its
    leading directories (so ``node_modules`` ignores everything below it).
    A pattern without a slash also ignores any path with a matching segment.
    """
    path = normalize_path(path)
    segments = path.split("/")
    prefixes = ["/".join(segments[: i + 1]) for i in range(len(segments))]

    for pattern in patterns:
        pattern = normalize_path(pattern).rstrip("/")
        if not pattern:
            continue
        if any(matches_pattern(prefix, pattern) for prefix in prefixes):
            return True
        if "/" not in pattern and any(matches_pattern(s, pattern) for s in segments):
            return True
    return False


def list_files(
    root: Path,
    pattern: str = "**/*",
    exclude: Iterable[str] = (),
) -> list[str]:
    """
    List regular files under *root* as sorted relative paths.

    Args:
        root: Directory to scan
        pattern: Glob the relative path must match
        exclude: Globs the relative path must not match

    Returns:
        Forward-slash paths relative to *root*
    """
    root = Path(root)
    if not root.is_dir():
        return []

    exclude = list(exclude)
    files: list[str] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        relative = path.relative_to(root).as_posix()
        if not matches_pattern(relative, pattern):
            continue
        if exclude and matches_any(relative, exclude):
            continue
        files.append(relative)
    return sorted(files)
