"""
Storage layer: in-memory index of analyzed files.

This module provides the index split by concern:

Components:
    - IndexContext: Facade that owns and coordinates all stores
    - ParsedFileCache: One ParsedFile per path; every put refreshes the others
    - SymbolTable: Classes, functions and methods under composite keys
    - CallGraphStore: Per-file call sites in extraction order
    - RelationshipStore: Per-file import, extends and implements edges

Keys:
    files:   normalized absolute path
    symbols: path:Class, path:Class::method, path:function
    calls:   normalized absolute path
    edges:   normalized absolute path

Nothing is persisted; an index lives as long as its IndexContext.
"""

from callmap.core.storage.calls import CallGraphStore
from callmap.core.storage.context import IndexContext
from callmap.core.storage.files import ParsedFileCache
from callmap.core.storage.relations import (
    RelationshipStore,
    file_relationships,
    resolve_import_path,
)
from callmap.core.storage.symbols import SymbolTable, make_key

__all__ = [
    "IndexContext",
    "ParsedFileCache",
    "SymbolTable",
    "CallGraphStore",
    "RelationshipStore",
    "file_relationships",
    "resolve_import_path",
    "make_key",
]
