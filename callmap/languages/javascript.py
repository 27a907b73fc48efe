"""Heuristic extractor for JavaScript and TypeScript sources.

Blocks are followed by brace counting over the masked text. Functions are
registered only outside any class or function body, methods only directly in
a class body; ``Foo.prototype.bar = function`` yields a method of ``Foo``
even when no ``class Foo`` exists in the file.
"""

from __future__ import annotations

import logging
import re

from callmap.core.exceptions import ParseError
from callmap.core.models import ClassDecl, FunctionDecl, MethodDecl, ParsedFile
from callmap.languages.scanning import (
    BlockTracker,
    SourceText,
    Syntax,
    hash_content,
    read_parenthesized,
    scan_calls,
    split_top_level,
)

logger = logging.getLogger(__name__)

SYNTAX = Syntax(
    line_comments=("//",),
    block_comments=(("/*", "*/"),),
    quotes=('"', "'", "`"),
    multiline_quotes=("`",),
)

KEYWORDS = frozenset(
    {
        "as", "await", "catch", "delete", "do", "else", "for", "function", "if", "import",
        "in", "instanceof", "new", "of", "return", "satisfies", "super", "switch", "throw",
        "typeof", "void", "while", "with", "yield",
    }
)  # fmt: skip

_IDENT = r"[A-Za-z_$][\w$]*"
_MODIFIERS = (
    r"(?:(?:public|private|protected|static|async|readonly|override|abstract|declare|get|set)\s+)*"
)

_CLASS_RE = re.compile(
    rf"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?"
    rf"(?:(?:const|let|var)\s+{_IDENT}\s*=\s*)?class\s+({_IDENT})(?:\s*<[^>{{]*>)?"
    rf"(?:\s+extends\s+([\w$.]+))?(?:\s+implements\s+([\w$.,\s<>]+))?"
)
_FUNCTION_RE = re.compile(
    rf"^\s*(?:export\s+)?(?:default\s+)?(async\s+)?function\s*\*?\s*({_IDENT})\s*(?:<[^>(]*>)?\s*\("
)
_ARROW_RE = re.compile(
    rf"^\s*(?:export\s+)?(?:const|let|var)\s+({_IDENT})\s*(?::[^=]+)?=\s*(async\s+)?"
    rf"(?:function\b\s*\*?\s*(?:{_IDENT})?\s*(\()|(\()|({_IDENT})\s*=>)"
)
_METHOD_RE = re.compile(rf"^\s*({_MODIFIERS})\*?\s*(#?{_IDENT})\s*[?!]?\s*(?:<[^>(]*>)?\s*\(")
_FIELD_FUNCTION_RE = re.compile(
    rf"^\s*({_MODIFIERS})(#?{_IDENT})\s*(?::[^=]+)?=\s*(async\s+)?"
    rf"(?:function\b\s*\*?\s*(?:{_IDENT})?\s*(\()|(\()|({_IDENT})\s*=>)"
)
_PROPERTY_RE = re.compile(rf"^\s*{_MODIFIERS}(#?{_IDENT})\s*[?!]?\s*(?:[:=;]|$)")
_PROTOTYPE_RE = re.compile(
    rf"^\s*({_IDENT})\.prototype\.({_IDENT})\s*=\s*(async\s+)?function\b\s*(?:{_IDENT})?\s*(\()"
)
_THIS_ATTR_RE = re.compile(rf"\bthis\.(#?{_IDENT})\s*=(?![=>])")

_MODULE_REF_RE = re.compile(
    r"\bfrom\s*(['\"])|^\s*import\s*(['\"])|\brequire\s*\(\s*(['\"])|\bimport\s*\(\s*(['\"])"
)
_EXPORT_DECL_RE = re.compile(
    rf"^\s*export\s+(?:default\s+)?(?:declare\s+)?(?:async\s+)?(?:abstract\s+)?"
    rf"(?:class|function\*?|const|let|var|interface|type|enum)\s+({_IDENT})"
)
_EXPORT_LIST_RE = re.compile(r"^\s*export\s*(?:type\s*)?\{([^}]*)\}")
_MODULE_EXPORTS_RE = re.compile(
    rf"^\s*module\.exports\s*=\s*(?:({_IDENT})\s*;?\s*$|\{{([^}}]*)\}})"
)
_NAMED_EXPORT_RE = re.compile(rf"^\s*(?:module\.)?exports\.({_IDENT})\s*=")

_NOT_METHODS = frozenset({"if", "for", "while", "switch", "catch", "return", "function", "with"})


def _parameters(source: SourceText, line_index: int, open_col: int, path: str) -> list[str]:
    try:
        text = read_parenthesized(source, line_index, open_col)
    except ParseError as e:
        logger.warning("%s: %s", path or "<memory>", e)
        return []
    names = []
    for part in split_top_level(text):
        part = re.sub(r"^(?:public|private|protected|readonly|override)\s+", "", part)
        match = re.match(rf"^(?:\.\.\.)?\s*({_IDENT}|\{{|\[)", part)
        if match:
            names.append(part if match.group(1) in ("{", "[") else match.group(1))
    return names


def _open_col(match: re.Match[str], *groups: int) -> int | None:
    for group in groups:
        if match.group(group) is not None:
            return match.start(group)
    return None


class JavaScriptExtractor:
    """Extractor for JavaScript and TypeScript files."""

    def __init__(self, language: str = "javascript") -> None:
        self.language = language

    def extract(self, content: str, path: str = "") -> ParsedFile:
        """Scan JavaScript/TypeScript source into a ParsedFile."""
        source = SourceText.from_content(content, SYNTAX)
        parsed = ParsedFile(path=path, language=self.language, content_hash=hash_content(content))
        declared: set[tuple[int, str]] = set()

        blocks = BlockTracker()
        for idx, masked in enumerate(source.masked_lines):
            if masked.strip():
                self._scan_line(source, idx, masked, blocks, parsed, declared)
            blocks.feed(masked)

        for problem in source.problems + blocks.problems():
            logger.warning("%s: %s", path or "<memory>", problem)

        parsed.calls = scan_calls(source, path, KEYWORDS, declared)
        return parsed

    def _scan_line(
        self,
        source: SourceText,
        idx: int,
        masked: str,
        blocks: BlockTracker,
        parsed: ParsedFile,
        declared: set[tuple[int, str]],
    ) -> None:
        line = idx + 1
        self._scan_module_refs(source, idx, masked, parsed)
        enclosing = blocks.enclosing()

        class_match = _CLASS_RE.match(masked)
        if class_match:
            name = class_match.group(1)
            declared.add((line, name))
            if enclosing is None or enclosing.kind == "class":
                interfaces: list[str] = []
                if class_match.group(3):
                    implemented = re.sub(r"<[^>]*>", "", class_match.group(3))
                    interfaces = [b.strip() for b in implemented.split(",") if b.strip()]
                bases = [b for b in (class_match.group(2),) if b] + interfaces
                cls = ClassDecl(name=name, line=line, bases=bases, interfaces=interfaces)
                parsed.classes.append(cls)
                blocks.expect("class", cls)
            else:
                blocks.expect("function")
            return

        if blocks.in_class_body():
            self._scan_class_member(source, idx, masked, blocks, parsed, declared)
            return

        prototype = _PROTOTYPE_RE.match(masked)
        if prototype and enclosing is None:
            class_name, name = prototype.group(1), prototype.group(2)
            declared.add((line, name))
            owner = next((c for c in parsed.classes if c.name == class_name), None)
            if owner is not None:
                owner.method_names.append(name)
            parsed.methods.append(
                MethodDecl(
                    class_name=class_name,
                    name=name,
                    line=line,
                    parameters=_parameters(source, idx, prototype.start(4), parsed.path),
                    is_async=bool(prototype.group(3)),
                )
            )
            blocks.expect("function")
            return

        function = _FUNCTION_RE.match(masked)
        arrow = None if function else _ARROW_RE.match(masked)
        if arrow is not None and "=>" not in masked and "function" not in masked:
            arrow = None
        if function or arrow:
            if function:
                name, is_async = function.group(2), bool(function.group(1))
                params = _parameters(source, idx, function.end() - 1, parsed.path)
            else:
                name, is_async = arrow.group(1), bool(arrow.group(2))
                open_col = _open_col(arrow, 3, 4)
                if open_col is not None:
                    params = _parameters(source, idx, open_col, parsed.path)
                else:
                    params = [arrow.group(5)]
            declared.add((line, name))
            if enclosing is None:
                parsed.functions.append(
                    FunctionDecl(name=name, line=line, parameters=params, is_async=is_async)
                )
            blocks.expect("function")
            return

        owner = blocks.nearest_class()
        if owner is not None:
            for attr in _THIS_ATTR_RE.findall(masked):
                _add_property(owner, attr)

    def _scan_class_member(
        self,
        source: SourceText,
        idx: int,
        masked: str,
        blocks: BlockTracker,
        parsed: ParsedFile,
        declared: set[tuple[int, str]],
    ) -> None:
        cls = blocks.nearest_class()
        if cls is None:
            return
        line = idx + 1

        field_fn = _FIELD_FUNCTION_RE.match(masked)
        if field_fn and "=>" not in masked and "function" not in masked:
            field_fn = None
        if field_fn:
            name = field_fn.group(2)
            open_col = _open_col(field_fn, 4, 5)
            if open_col is not None:
                params = _parameters(source, idx, open_col, parsed.path)
            else:
                params = [field_fn.group(6)]
            self._add_method(
                cls, parsed, declared, name, line, params, field_fn.group(1), field_fn.group(3)
            )
            blocks.expect("function")
            return

        method = _METHOD_RE.match(masked)
        if method and method.group(2) not in _NOT_METHODS:
            name = method.group(2)
            params = _parameters(source, idx, method.end() - 1, parsed.path)
            self._add_method(cls, parsed, declared, name, line, params, method.group(1), None)
            blocks.expect("function")
            return

        prop = _PROPERTY_RE.match(masked)
        if prop:
            _add_property(cls, prop.group(1))

    def _add_method(
        self,
        cls: ClassDecl,
        parsed: ParsedFile,
        declared: set[tuple[int, str]],
        name: str,
        line: int,
        params: list[str],
        modifiers: str,
        async_marker: str | None,
    ) -> None:
        words = modifiers.split()
        declared.add((line, name))
        cls.method_names.append(name)
        parsed.methods.append(
            MethodDecl(
                class_name=cls.name,
                name=name,
                line=line,
                parameters=params,
                is_async="async" in words or bool(async_marker),
                is_static="static" in words,
            )
        )

    def _scan_module_refs(
        self, source: SourceText, idx: int, masked: str, parsed: ParsedFile
    ) -> None:
        raw = source.raw_lines[idx]
        for match in _MODULE_REF_RE.finditer(masked):
            quote_col = match.end() - 1
            close = masked.find(masked[quote_col], quote_col + 1)
            if close != -1:
                parsed.imports.append(raw[quote_col + 1 : close])

        export = _EXPORT_DECL_RE.match(masked)
        if export:
            parsed.exports.append(export.group(1))
            return
        export_list = _EXPORT_LIST_RE.match(masked) or _MODULE_EXPORTS_RE.match(masked)
        if export_list:
            single = export_list.group(1) if export_list.re is _MODULE_EXPORTS_RE else None
            if single:
                parsed.exports.append(single)
                return
            body = export_list.group(export_list.lastindex or 1) or ""
            for item in split_top_level(body):
                # `a as b` exports b; `key: value` exports key
                if re.search(r"\s+as\s+", item):
                    name = re.split(r"\s+as\s+", item)[-1].strip()
                else:
                    name = item.split(":")[0].strip()
                if re.fullmatch(_IDENT, name):
                    parsed.exports.append(name)
            return
        named = _NAMED_EXPORT_RE.match(masked)
        if named:
            parsed.exports.append(named.group(1))


def _add_property(cls: ClassDecl, name: str) -> None:
    if name not in cls.property_names:
        cls.property_names.append(name)
