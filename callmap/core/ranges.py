"""Approximate declaration bodies.

A declaration's body is taken to run from its own line up to, but not
including, the next class, function or method line in the same file. Nested
closures therefore fall in their enclosing declaration, and trailing
top-level code after the last declaration belongs to it.
"""

from __future__ import annotations

from bisect import bisect_right

from callmap.core.models import CallSite, ParsedFile


def next_declaration_line(parsed: ParsedFile, current_line: int) -> int | None:
    """Smallest declaration line strictly greater than ``current_line``."""
    lines = parsed.declaration_lines()
    idx = bisect_right(lines, current_line)
    if idx == len(lines):
        return None
    return lines[idx]


def declaration_range(parsed: ParsedFile, line: int) -> tuple[int, int | None]:
    """Half-open ``[line, end)`` extent; ``end`` is None when the body runs to EOF."""
    return line, next_declaration_line(parsed, line)


def calls_in_range(calls: list[CallSite], start: int, end: int | None) -> list[CallSite]:
    """Call sites with ``start <= line < end`` (no upper bound when ``end`` is None)."""
    return [c for c in calls if c.line >= start and (end is None or c.line < end)]
