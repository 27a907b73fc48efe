"""Lexical helpers shared by the heuristic extractors.

Nothing here understands a grammar. Sources are first *masked*: every
character inside a comment or a string literal is replaced by a space
(newlines are kept), so line numbers and columns are unchanged while the
declaration and call scans can no longer see text that is not code.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field

from callmap.core.exceptions import ParseError
from callmap.core.models import CallSite, ClassDecl

# Lines scanned when a parameter list spans several lines.
_MAX_SIGNATURE_LINES = 50

_CALL_RE = re.compile(
    r"(?<![\w$#.])(?<!->)(?<!::)"
    r"((?:[$#]?[^\W\d]\w*(?:\?->|->|\?\.|\.|::))*[$#]?[^\W\d]\w*)\s*\("
)
_SEPARATOR_RE = re.compile(r"\?->|->|\?\.|\.|::")

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")", "]", "}"}


@dataclass(frozen=True)
class Syntax:
    """Comment and string delimiters of a language."""

    line_comments: tuple[str, ...] = ("//",)
    block_comments: tuple[tuple[str, str], ...] = (("/*", "*/"),)
    quotes: tuple[str, ...] = ('"', "'")
    multiline_quotes: tuple[str, ...] = ()
    triple_quotes: bool = False


@dataclass
class SourceText:
    """Raw and masked lines of one file."""

    raw_lines: list[str]
    masked_lines: list[str]
    problems: list[str] = field(default_factory=list)

    @classmethod
    def from_content(cls, content: str, syntax: Syntax) -> SourceText:
        masked, problems = mask_source(content, syntax)
        return cls(
            raw_lines=content.split("\n"),
            masked_lines=masked.split("\n"),
            problems=problems,
        )

    def __len__(self) -> int:
        return len(self.masked_lines)


def hash_content(content: str) -> str:
    """SHA-256 of the source text."""
    return hashlib.sha256(content.encode("utf-8", errors="replace")).hexdigest()


def _blank(chars: list[str], start: int, stop: int) -> None:
    for i in range(start, stop):
        if chars[i] != "\n":
            chars[i] = " "


def _string_end(content: str, start: int, delimiter: str, multiline: bool) -> int | None:
    """Index just past the closing delimiter, or None when unterminated."""
    i = start + len(delimiter)
    n = len(content)
    while i < n:
        ch = content[i]
        if ch == "\\":
            i += 2
            continue
        if content.startswith(delimiter, i):
            return i + len(delimiter)
        if ch == "\n" and not multiline:
            return None
        i += 1
    return None


def mask_source(content: str, syntax: Syntax) -> tuple[str, list[str]]:
    """Blank out comments and string literals.

    Returns the masked text and a list of problems (unterminated comments or
    strings). Unterminated regions are masked up to where they give out.
    """
    chars = list(content)
    problems: list[str] = []
    n = len(content)
    i = 0
    line = 1

    while i < n:
        ch = content[i]
        if ch == "\n":
            line += 1
            i += 1
            continue

        block = next((b for b in syntax.block_comments if content.startswith(b[0], i)), None)
        if block is not None:
            close = content.find(block[1], i + len(block[0]))
            if close == -1:
                problems.append(f"unterminated comment starting at line {line}")
                stop = n
            else:
                stop = close + len(block[1])
            _blank(chars, i, stop)
            line += content.count("\n", i, stop)
            i = stop
            continue

        if any(content.startswith(marker, i) for marker in syntax.line_comments):
            stop = content.find("\n", i)
            stop = n if stop == -1 else stop
            _blank(chars, i, stop)
            i = stop
            continue

        if ch in syntax.quotes:
            delimiter = ch
            multiline = ch in syntax.multiline_quotes
            if syntax.triple_quotes and content.startswith(ch * 3, i):
                delimiter = ch * 3
                multiline = True
            end = _string_end(content, i, delimiter, multiline)
            if end is None:
                problems.append(f"unterminated string starting at line {line}")
                stop = n if multiline else content.find("\n", i)
                stop = n if stop == -1 else stop
                _blank(chars, i + len(delimiter), stop)
            else:
                stop = end
                _blank(chars, i + len(delimiter), end - len(delimiter))
            line += content.count("\n", i, stop)
            i = stop
            continue

        i += 1

    return "".join(chars), problems


def split_target(target: str) -> list[str]:
    """Split a call chain such as ``$this->repo->save`` into its segments."""
    return [s for s in _SEPARATOR_RE.split(target) if s]


def read_parenthesized(source: SourceText, line_index: int, open_col: int) -> str:
    """Raw text between the parenthesis at ``open_col`` and its match.

    The list may span several lines. Raises ParseError when it is not closed
    within a bounded number of lines.
    """
    depth = 0
    pieces: list[str] = []
    last = min(len(source), line_index + _MAX_SIGNATURE_LINES)
    for idx in range(line_index, last):
        masked = source.masked_lines[idx]
        raw = source.raw_lines[idx] if idx < len(source.raw_lines) else masked
        start = open_col if idx == line_index else 0
        for col in range(start, len(masked)):
            ch = masked[col]
            if ch in _OPENERS:
                depth += 1
            elif ch in _CLOSERS:
                depth -= 1
                if depth == 0:
                    pieces.append(raw[start + (1 if idx == line_index else 0) : col])
                    return " ".join(p.strip() for p in pieces if p.strip())
        pieces.append(raw[start + (1 if idx == line_index else 0) :])
    raise ParseError(f"unterminated parameter list at line {line_index + 1}")


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on ``separator`` outside of brackets and angle brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch in "([{<":
            depth += 1
        elif ch in ")]}>" and depth > 0:
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def _call_arguments(source: SourceText, line_index: int, open_col: int) -> str:
    masked = source.masked_lines[line_index]
    raw = source.raw_lines[line_index]
    depth = 0
    for col in range(open_col, len(masked)):
        ch = masked[col]
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth == 0:
                return raw[open_col + 1 : col].strip()
    rest = raw[open_col + 1 :].strip()
    return f"{rest} ..." if rest else "..."


def scan_calls(
    source: SourceText,
    caller: str,
    keywords: frozenset[str],
    declared: set[tuple[int, str]],
) -> list[CallSite]:
    """Find call expressions in the masked source, in line order.

    ``declared`` holds ``(line, name)`` pairs of declaration signatures; a
    bare name on its own signature line is not a call.
    """
    calls: list[CallSite] = []
    for idx, masked in enumerate(source.masked_lines):
        if "(" not in masked:
            continue
        line = idx + 1
        for match in _CALL_RE.finditer(masked):
            target = match.group(1)
            segments = split_target(target)
            if not segments or segments[-1].startswith("$"):
                continue
            if len(segments) == 1:
                name = segments[0]
                if name in keywords or (line, name) in declared:
                    continue
            calls.append(
                CallSite(
                    caller=caller,
                    callee=target,
                    line=line,
                    arguments=_call_arguments(source, idx, match.end() - 1),
                )
            )
    return calls


def leading_indent(line: str) -> int:
    """Width of the leading whitespace, tabs counted as four columns."""
    width = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += 4
        else:
            break
    return width


def brace_delta(masked_line: str) -> tuple[int, int]:
    """Return (opening braces, closing braces) on a masked line."""
    return masked_line.count("{"), masked_line.count("}")


@dataclass
class Block:
    """A brace-delimited block and what opened it."""

    kind: str  # "class", "function", "namespace" or "block"
    owner: ClassDecl | None = None


class BlockTracker:
    """Follows ``{``/``}`` nesting over masked lines.

    A declaration line announces the kind of the next block with ``expect``;
    the announcement is consumed by the next ``{`` or dropped at the next
    ``;`` (a declaration without a body).
    """

    def __init__(self) -> None:
        self.stack: list[Block] = []
        self.unmatched_closers = 0
        self._pending: Block | None = None

    def expect(self, kind: str, owner: ClassDecl | None = None) -> None:
        self._pending = Block(kind, owner)

    def feed(self, masked_line: str) -> None:
        for ch in masked_line:
            if ch == "{":
                self.stack.append(self._pending or Block("block"))
                self._pending = None
            elif ch == "}":
                if self.stack:
                    self.stack.pop()
                else:
                    self.unmatched_closers += 1
            elif ch == ";" and self._pending is not None:
                self._pending = None

    @property
    def top(self) -> Block | None:
        return self.stack[-1] if self.stack else None

    def enclosing(self) -> Block | None:
        """Innermost class or function block."""
        for block in reversed(self.stack):
            if block.kind in ("class", "function"):
                return block
        return None

    def nearest_class(self) -> ClassDecl | None:
        for block in reversed(self.stack):
            if block.kind == "class":
                return block.owner
        return None

    def in_class_body(self) -> bool:
        """True when the innermost open block is a class body."""
        top = self.top
        return top is not None and top.kind == "class"

    def problems(self) -> list[str]:
        problems = []
        if self.stack:
            problems.append(f"{len(self.stack)} unclosed brace block(s) at end of file")
        if self.unmatched_closers:
            problems.append(f"{self.unmatched_closers} unmatched closing brace(s)")
        return problems
