"""
Aggregated configuration document maintenance.

Packages with ``claude_config`` items contribute a block of text to a single
host-side document (``.claude/CLAUDE.md`` by default). Each block sits
between marker lines::

    # Package: my-package
    ...package content...
    # End Package: my-package

Blocks are located by exact line equality, so ``my-package`` never matches
the markers of ``my-package-extra``. Everything outside the markers belongs
to the user and is never rewritten.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from prism.logging import get_logger

logger = get_logger("files.aggregate")

START_MARKER_PREFIX = "# Package: "
END_MARKER_PREFIX = "# End Package: "

SCAFFOLD_HEADER = """\
# CLAUDE.md

Project instructions for Claude Code.

# ==========================================
# PRISM Package Configurations
# ==========================================
"""


def start_marker(name: str) -> str:
    return f"{START_MARKER_PREFIX}{name}"


def end_marker(name: str) -> str:
    return f"{END_MARKER_PREFIX}{name}"


def _lines(text: str) -> Iterator[tuple[int, str]]:
    offset = 0
    for line in text.splitlines(keepends=True):
        yield offset, line
        offset += len(line)


def find_block(text: str, name: str) -> tuple[int, int] | None:
    """
    Locate the block for package *name*.

    Returns:
        ``(start, end)`` character offsets covering both marker lines, or
        ``None`` when the package has no block. The block ends at its own end
        marker even if the content holds other ``# Package:`` lines; only a
        block whose end marker is missing stops at the next start marker (or
        the end of the document).
    """
    start_line = start_marker(name)
    end_line = end_marker(name)
    start: int | None = None
    next_start: int | None = None

    for offset, line in _lines(text):
        stripped = line.rstrip("\r\n")
        if start is None:
            if stripped == start_line:
                start = offset
        elif stripped == end_line:
            return start, offset + len(line)
        elif next_start is None and stripped.startswith(START_MARKER_PREFIX):
            next_start = offset

    if start is None:
        return None
    return start, len(text) if next_start is None else next_start


def remove_block(text: str, name: str) -> str:
    """Splice the block for *name* (and the blank line before it) out of *text*."""
    span = find_block(text, name)
    if span is None:
        return text

    start, end = span
    before, after = text[:start], text[end:]
    if before.endswith("\n\n"):
        before = before[:-1]
    return before + after


def render_block(name: str, content: str) -> str:
    """Wrap *content* in the markers for *name*."""
    body = content.strip("\n")
    return f"{start_marker(name)}\n{body}\n{end_marker(name)}\n"


def upsert_block(text: str, name: str, content: str) -> str:
    """
    Replace the block for *name* with fresh *content*.

    The old block is excised first and the new one appended at the end,
    separated from the preceding text by a blank line. Applying the same
    content twice yields identical text.
    """
    text = remove_block(text, name)
    block = render_block(name, content)
    if not text:
        return block
    if not text.endswith("\n"):
        text += "\n"
    return f"{text}\n{block}"


class AggregateDocument:
    """The aggregated configuration document of one project."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> str:
        """Get the document text ("" when it does not exist)."""
        if not self.exists():
            return ""
        return self.path.read_text(encoding="utf-8")

    def has_block(self, name: str) -> bool:
        return find_block(self.read(), name) is not None

    def merge(self, name: str, content: str) -> None:
        """Insert or replace the block for package *name*."""
        if self.exists():
            text = self.read()
        else:
            logger.info("Creating %s", self.path)
            text = SCAFFOLD_HEADER

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(upsert_block(text, name, content), encoding="utf-8")
        logger.debug("Merged configuration block for %s into %s", name, self.path)

    def remove(self, name: str) -> bool:
        """
        Excise the block for package *name*.

        Returns:
            True if a block was removed, False if there was none
        """
        if not self.exists():
            return False

        text = self.read()
        updated = remove_block(text, name)
        if updated == text:
            return False

        self.path.write_text(updated, encoding="utf-8")
        logger.debug("Removed configuration block for %s from %s", name, self.path)
        return True
