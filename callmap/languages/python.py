"""Heuristic extractor for Python sources.

Block structure is recovered from indentation alone. A ``def`` directly in a
class body is a method, one at module level is a function, and one nested in
another function is not registered: its calls stay with the enclosing
declaration.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from callmap.core.exceptions import ParseError
from callmap.core.models import ClassDecl, FunctionDecl, MethodDecl, ParsedFile
from callmap.languages.scanning import (
    SourceText,
    Syntax,
    hash_content,
    leading_indent,
    read_parenthesized,
    scan_calls,
    split_top_level,
)

logger = logging.getLogger(__name__)

SYNTAX = Syntax(
    line_comments=("#",),
    block_comments=(),
    quotes=('"', "'"),
    triple_quotes=True,
)

KEYWORDS = frozenset(
    {
        "and", "assert", "async", "await", "case", "del", "elif", "else", "except",
        "for", "from", "global", "if", "import", "in", "is", "lambda", "match",
        "nonlocal", "not", "or", "raise", "return", "while", "with", "yield",
    }
)  # fmt: skip

_CLASS_RE = re.compile(r"^\s*class\s+([^\W\d]\w*)\s*(\()?")
_DEF_RE = re.compile(r"^\s*(async\s+)?def\s+([^\W\d]\w*)\s*\(")
_DECORATOR_RE = re.compile(r"^\s*@\s*([\w.]+)")
_IMPORT_RE = re.compile(r"^\s*import\s+(.+)$")
_FROM_IMPORT_RE = re.compile(r"^\s*from\s+(\.*[\w.]*)\s+import\b")
_CLASS_ATTR_RE = re.compile(r"^\s*([^\W\d]\w*)\s*(?::[^=]*)?=(?!=)|^\s*([^\W\d]\w*)\s*:\s*\S")
_SELF_ATTR_RE = re.compile(r"\bself\.([^\W\d]\w*)\s*(?::[^=]*)?=(?!=)")
_ALL_RE = re.compile(r"^__all__\s*(?::[^=]*)?\+?=")
_QUOTED_RE = re.compile(r"['\"]([^'\"]+)['\"]")
_PARAM_NAME_RE = re.compile(r"^[*]{0,2}\s*([^\W\d]\w*)")

_SELF_PARAMS = frozenset({"self", "cls"})


@dataclass
class _Scope:
    """An open indentation block."""

    kind: str  # "class", "function" or "nested"
    name: str
    indent: int
    owner: ClassDecl | None = None


def _parameters(source: SourceText, line_index: int, open_col: int, path: str) -> list[str]:
    try:
        text = read_parenthesized(source, line_index, open_col)
    except ParseError as e:
        logger.warning("%s: %s", path or "<memory>", e)
        return []
    names = []
    for part in split_top_level(text):
        match = _PARAM_NAME_RE.match(part)
        if match:
            names.append(match.group(1))
    return names


def _bases(source: SourceText, line_index: int, open_col: int, path: str) -> list[str]:
    try:
        text = read_parenthesized(source, line_index, open_col)
    except ParseError as e:
        logger.warning("%s: %s", path or "<memory>", e)
        return []
    # keyword arguments such as metaclass=... are not bases
    return [part for part in split_top_level(text) if "=" not in part]


def _bracket_delta(masked_line: str) -> int:
    return sum(masked_line.count(c) for c in "([{") - sum(masked_line.count(c) for c in ")]}")


class PythonExtractor:
    """Extractor for ``.py`` files."""

    language = "python"

    def extract(self, content: str, path: str = "") -> ParsedFile:
        """Scan Python source into a ParsedFile."""
        source = SourceText.from_content(content, SYNTAX)
        for problem in source.problems:
            logger.warning("%s: %s", path or "<memory>", problem)

        parsed = ParsedFile(path=path, language=self.language, content_hash=hash_content(content))
        declared: set[tuple[int, str]] = set()
        self._scan_declarations(source, parsed, declared)
        parsed.calls = scan_calls(source, path, KEYWORDS, declared)
        return parsed

    def _scan_declarations(
        self,
        source: SourceText,
        parsed: ParsedFile,
        declared: set[tuple[int, str]],
    ) -> None:
        stack: list[_Scope] = []
        decorators: list[str] = []
        depth = 0

        for idx, masked in enumerate(source.masked_lines):
            continuation = depth > 0
            depth = max(0, depth + _bracket_delta(masked))
            if continuation or not masked.strip():
                continue

            line = idx + 1
            indent = leading_indent(masked)
            while stack and stack[-1].indent >= indent:
                stack.pop()
            parent = stack[-1] if stack else None

            decorator = _DECORATOR_RE.match(masked)
            if decorator:
                decorators.append(decorator.group(1))
                continue

            class_match = _CLASS_RE.match(masked)
            if class_match:
                name = class_match.group(1)
                declared.add((line, name))
                if parent is None or parent.kind == "class":
                    bases: list[str] = []
                    if class_match.group(2):
                        bases = _bases(source, idx, class_match.end(2) - 1, parsed.path)
                    cls = ClassDecl(name=name, line=line, bases=bases)
                    parsed.classes.append(cls)
                    stack.append(_Scope("class", name, indent, owner=cls))
                else:
                    stack.append(_Scope("nested", name, indent))
                decorators = []
                continue

            def_match = _DEF_RE.match(masked)
            if def_match:
                name = def_match.group(2)
                declared.add((line, name))
                is_async = bool(def_match.group(1))
                params = _parameters(source, idx, def_match.end() - 1, parsed.path)
                if parent is None:
                    parsed.functions.append(
                        FunctionDecl(name=name, line=line, parameters=params, is_async=is_async)
                    )
                    stack.append(_Scope("function", name, indent))
                elif parent.kind == "class" and parent.owner is not None:
                    parent.owner.method_names.append(name)
                    parsed.methods.append(
                        MethodDecl(
                            class_name=parent.name,
                            name=name,
                            line=line,
                            parameters=[p for p in params if p not in _SELF_PARAMS],
                            is_async=is_async,
                            is_static="staticmethod" in decorators,
                        )
                    )
                    stack.append(_Scope("function", name, indent, owner=parent.owner))
                else:
                    stack.append(_Scope("nested", name, indent, owner=parent.owner))
                decorators = []
                continue

            decorators = []
            self._scan_statement(source, idx, masked, parent, parsed)

    def _scan_statement(
        self,
        source: SourceText,
        idx: int,
        masked: str,
        parent: _Scope | None,
        parsed: ParsedFile,
    ) -> None:
        import_match = _IMPORT_RE.match(masked)
        if import_match:
            for part in import_match.group(1).split(","):
                module = part.strip().split(" ")[0]
                if module:
                    parsed.imports.append(module)
            return

        from_match = _FROM_IMPORT_RE.match(masked)
        if from_match:
            parsed.imports.append(from_match.group(1))
            return

        if parent is None:
            if _ALL_RE.match(masked):
                parsed.exports.extend(self._all_names(source, idx, masked, parsed.path))
            return

        owner = parent.owner
        if owner is None:
            return
        if parent.kind == "class":
            attr = _CLASS_ATTR_RE.match(masked)
            if attr:
                _add_property(owner, attr.group(1) or attr.group(2))
        else:
            for attr_name in _SELF_ATTR_RE.findall(masked):
                _add_property(owner, attr_name)

    def _all_names(self, source: SourceText, idx: int, masked: str, path: str) -> list[str]:
        open_col = next((i for i, ch in enumerate(masked) if ch in "[("), -1)
        if open_col == -1:
            return []
        try:
            body = read_parenthesized(source, idx, open_col)
        except ParseError as e:
            logger.warning("%s: %s", path or "<memory>", e)
            return []
        return _QUOTED_RE.findall(body)


def _add_property(cls: ClassDecl, name: str) -> None:
    if name not in cls.property_names:
        cls.property_names.append(name)
