"""
Core module: data models, exceptions, and the in-memory index.

This module provides the foundational types and the index layer:

Models (models.py):
    - ParsedFile: Declarations and call sites extracted from one file
    - ClassDecl/FunctionDecl/MethodDecl: Declarations with their line
    - CallSite: A call expression with its line and raw target
    - SymbolEntry/SymbolType: Symbol-table entries and their kinds

Exceptions (exceptions.py):
    - CallmapError: Base exception for all callmap errors
    - InvalidArgumentError: An operation got a malformed argument
    - SourceUnavailableError: A source file could not be read

Storage (storage/):
    - IndexContext: Facade owning the cache, symbol table and call store

Queries:
    - Indexer (indexer.py): analyze files and answer queries
    - CallTargetNormalizer (normalizer.py): raw call text to symbol names
    - trace_execution_path (graph/): bounded DFS over the call graph
"""

from callmap.core.exceptions import (
    CallmapError,
    InvalidArgumentError,
    ParseError,
    SourceNotFoundError,
    SourcePermissionError,
    SourceTooLargeError,
    SourceUnavailableError,
)
from callmap.core.models import (
    CallSite,
    ClassDecl,
    FunctionDecl,
    IndexStats,
    MethodDecl,
    ParsedFile,
    SymbolEntry,
    SymbolType,
    normalize_path,
)
from callmap.core.storage import IndexContext

__all__ = [
    # Models
    "ParsedFile",
    "ClassDecl",
    "FunctionDecl",
    "MethodDecl",
    "CallSite",
    "SymbolEntry",
    "SymbolType",
    "IndexStats",
    "normalize_path",
    # Exceptions
    "CallmapError",
    "InvalidArgumentError",
    "ParseError",
    "SourceUnavailableError",
    "SourceNotFoundError",
    "SourcePermissionError",
    "SourceTooLargeError",
    # Storage
    "IndexContext",
]
