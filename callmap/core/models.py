"""Data models for Callmap."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class SymbolType(Enum):
    """Types of symbols that can be indexed."""

    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"


def normalize_path(path: str | Path) -> str:
    """Return the canonical absolute form of a path, used as the index key."""
    return str(Path(path).resolve())


@dataclass
class ClassDecl:
    """A class (or PHP interface/trait) declaration."""

    name: str
    line: int
    method_names: list[str] = field(default_factory=list)
    property_names: list[str] = field(default_factory=list)
    bases: list[str] = field(default_factory=list)
    # subset of bases named by an implements clause
    interfaces: list[str] = field(default_factory=list)


@dataclass
class FunctionDecl:
    """A free function declaration."""

    name: str
    line: int
    parameters: list[str] = field(default_factory=list)
    is_async: bool = False


@dataclass
class MethodDecl:
    """A method declaration, owned by a class of the same file."""

    class_name: str
    name: str
    line: int
    parameters: list[str] = field(default_factory=list)
    is_async: bool = False
    is_static: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.class_name}::{self.name}"


Declaration = ClassDecl | FunctionDecl | MethodDecl


@dataclass
class CallSite:
    """A call expression found in a file.

    ``callee`` holds the raw target text at extraction time and is rewritten
    by the normalizer on query results. ``caller`` starts as the file path and
    is refined to the owning declaration once it is known.
    """

    caller: str
    callee: str
    line: int
    arguments: str | None = None
    raw_callee: str | None = None

    @property
    def raw(self) -> str:
        return self.raw_callee if self.raw_callee is not None else self.callee


@dataclass
class ParsedFile:
    """Structural summary of one source file: declarations and calls."""

    path: str
    language: str
    classes: list[ClassDecl] = field(default_factory=list)
    functions: list[FunctionDecl] = field(default_factory=list)
    methods: list[MethodDecl] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    calls: list[CallSite] = field(default_factory=list)
    content_hash: str = ""

    def declaration_lines(self) -> list[int]:
        """All class, function and method lines, sorted."""
        lines = [c.line for c in self.classes]
        lines.extend(f.line for f in self.functions)
        lines.extend(m.line for m in self.methods)
        return sorted(lines)

    def orphan_methods(self) -> list[MethodDecl]:
        """Methods whose owning class was not recognized in this file."""
        class_names = {c.name for c in self.classes}
        return [m for m in self.methods if m.class_name not in class_names]


class RelationType(Enum):
    """Kinds of edges between a file (or one of its classes) and another name."""

    IMPORT = "import"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"


@dataclass
class FileRelationship:
    """One edge out of a file.

    ``source`` is the file path for imports and ``path:Class`` for
    inheritance. ``target`` is a resolved absolute path for relative imports
    and the name as written otherwise.
    """

    source: str
    target: str
    kind: RelationType


@dataclass
class SymbolEntry:
    """One declaration registered in the symbol table."""

    key: str
    kind: SymbolType
    path: str
    name: str
    line: int
    declaration: Declaration
    class_name: str | None = None

    @property
    def qualified_name(self) -> str:
        """``Class::method`` for methods, the bare name otherwise."""
        if self.kind == SymbolType.METHOD:
            return f"{self.class_name}::{self.name}"
        return self.name


class IndexStats:
    """Statistics from an indexing operation."""

    def __init__(self) -> None:
        self.files: int = 0
        self.symbols: int = 0
        self.calls: int = 0
        self.skipped: int = 0
        self.unchanged: int = 0
        self.errors: list[str] = []

    def __repr__(self) -> str:
        return (
            f"IndexStats(files={self.files}, symbols={self.symbols}, "
            f"calls={self.calls}, skipped={self.skipped}, "
            f"unchanged={self.unchanged}, errors={len(self.errors)})"
        )


@dataclass
class SignatureCheck:
    """Calls from one file to a method, checked against its parameter list."""

    match: bool
    expected: MethodDecl | None = None
    calls: list[CallSite] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
