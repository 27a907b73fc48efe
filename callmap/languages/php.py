"""Heuristic extractor for PHP sources."""

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
    line_comments=("//", "#"),
    block_comments=(("/*", "*/"),),
    quotes=('"', "'"),
    multiline_quotes=('"', "'"),
)

KEYWORDS = frozenset(
    {
        "and", "array", "catch", "clone", "declare", "die", "echo", "elseif", "empty",
        "eval", "exit", "fn", "for", "foreach", "function", "if", "include",
        "include_once", "isset", "list", "match", "new", "or", "parent", "print", "require",
        "require_once", "return", "self", "static", "switch", "unset", "use", "while", "xor",
    }
)  # fmt: skip

_CLASS_RE = re.compile(
    r"^\s*(?:(?:abstract|final|readonly)\s+)*(?:class|interface|trait|enum)\s+(\w+)"
    r"(?:\s*:\s*[\w\\]+)?(?:\s+extends\s+([\w\\]+(?:\s*,\s*[\w\\]+)*))?"
    r"(?:\s+implements\s+([\w\\,\s]+))?"
)
_FUNCTION_RE = re.compile(
    r"^\s*((?:(?:public|private|protected|static|abstract|final)\s+)*)function\s+&?\s*(\w+)\s*\("
)
_NAMESPACE_RE = re.compile(r"^\s*namespace\s+[\w\\]+\s*(\{)?")
_PROPERTY_RE = re.compile(
    r"^\s*(?:(?:public|private|protected|var|static|readonly)\s+)+(?:\??[\w\\|]+\s+)?\$(\w+)"
)
_CONST_RE = re.compile(
    r"^\s*(?:(?:public|private|protected|final)\s+)*const\s+(?:\w+\s+)?(\w+)\s*="
)
_THIS_ATTR_RE = re.compile(r"\$this->(\w+)\s*=(?![=>])")
_USE_RE = re.compile(r"^\s*use\s+(?:function\s+|const\s+)?([\w\\]+(?:\s*\{[^}]*\})?)")
_INCLUDE_RE = re.compile(r"\b(?:require|include)(?:_once)?\s*\(?\s*(['\"])")
_PARAM_RE = re.compile(r"\$(\w+)")


def _parameters(source: SourceText, line_index: int, open_col: int, path: str) -> list[str]:
    try:
        text = read_parenthesized(source, line_index, open_col)
    except ParseError as e:
        logger.warning("%s: %s", path or "<memory>", e)
        return []
    names = []
    for part in split_top_level(text):
        match = _PARAM_RE.search(part)
        if match:
            names.append(match.group(1))
    return names


class PhpExtractor:
    """Extractor for ``.php`` files."""

    language = "php"

    def extract(self, content: str, path: str = "") -> ParsedFile:
        """Scan PHP source into a ParsedFile."""
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
        enclosing = blocks.enclosing()

        namespace = _NAMESPACE_RE.match(masked)
        if namespace:
            if namespace.group(1):
                blocks.expect("namespace")
            return

        if enclosing is None:
            use = _USE_RE.match(masked)
            if use:
                parsed.imports.append(re.sub(r"\s+", "", use.group(1)))
                return
        include = _INCLUDE_RE.search(masked)
        if include:
            quote_col = include.end() - 1
            close = masked.find(masked[quote_col], quote_col + 1)
            if close != -1:
                parsed.imports.append(source.raw_lines[idx][quote_col + 1 : close])

        class_match = _CLASS_RE.match(masked)
        if class_match:
            name = class_match.group(1)
            declared.add((line, name))
            if enclosing is None:
                extended, implemented = (
                    [b.strip() for b in (class_match.group(group) or "").split(",") if b.strip()]
                    for group in (2, 3)
                )
                cls = ClassDecl(
                    name=name, line=line, bases=extended + implemented, interfaces=implemented
                )
                parsed.classes.append(cls)
                parsed.exports.append(name)
                blocks.expect("class", cls)
            else:
                blocks.expect("function")
            return

        function = _FUNCTION_RE.match(masked)
        if function:
            name = function.group(2)
            declared.add((line, name))
            params = _parameters(source, idx, function.end() - 1, parsed.path)
            modifiers = function.group(1).split()
            if blocks.in_class_body():
                cls = blocks.nearest_class()
                if cls is not None:
                    cls.method_names.append(name)
                    parsed.methods.append(
                        MethodDecl(
                            class_name=cls.name,
                            name=name,
                            line=line,
                            parameters=params,
                            is_static="static" in modifiers,
                        )
                    )
            elif enclosing is None:
                parsed.functions.append(FunctionDecl(name=name, line=line, parameters=params))
                parsed.exports.append(name)
            blocks.expect("function")
            return

        cls = blocks.nearest_class()
        if cls is None:
            return
        if blocks.in_class_body():
            prop = _PROPERTY_RE.match(masked) or _CONST_RE.match(masked)
            if prop:
                _add_property(cls, prop.group(1))
        else:
            for attr in _THIS_ATTR_RE.findall(masked):
                _add_property(cls, attr)


def _add_property(cls: ClassDecl, name: str) -> None:
    if name not in cls.property_names:
        cls.property_names.append(name)
