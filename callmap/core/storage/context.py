"""Index context that coordinates the cache, symbol table and call store."""

from __future__ import annotations

from datetime import datetime

from callmap.core.models import ParsedFile
from callmap.core.storage.calls import CallGraphStore
from callmap.core.storage.files import ParsedFileCache
from callmap.core.storage.relations import RelationshipStore
from callmap.core.storage.symbols import SymbolTable


class IndexContext:
    """Facade over the in-memory stores.

    The context is owned by its caller; nothing is module-global. Used as a
    context manager it clears itself on exit.
    """

    def __init__(self) -> None:
        self.symbols = SymbolTable()
        self.calls = CallGraphStore()
        self.relations = RelationshipStore()
        self.files = ParsedFileCache(self.symbols, self.calls, self.relations)

    @classmethod
    def create(cls) -> IndexContext:
        return cls()

    def __enter__(self) -> IndexContext:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.clear()

    def store(self, parsed: ParsedFile) -> None:
        """Store a parsed file under its own path."""
        self.files.put(parsed.path, parsed)

    def delete_file(self, path: str) -> bool:
        """Delete a file and all its symbols/calls."""
        return self.files.delete(path)

    def get_stats(self) -> dict[str, int | datetime | None]:
        """Get index statistics."""
        return {
            "files": len(self.files),
            "symbols": len(self.symbols),
            "calls": self.calls.count(),
            "relationships": self.relations.count(),
            "last_analyzed": self.files.last_analyzed(),
        }

    def clear(self) -> None:
        """Clear everything."""
        self.files.clear()
