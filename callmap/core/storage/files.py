"""Parsed-file cache operations."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from callmap.core.models import ParsedFile
from callmap.core.storage.calls import CallGraphStore
from callmap.core.storage.relations import RelationshipStore, file_relationships
from callmap.core.storage.symbols import SymbolTable

logger = logging.getLogger(__name__)


class ParsedFileCache:
    """One ParsedFile per path, kept in lockstep with the other stores.

    There is no expiry: an entry lives until it is overwritten, deleted or the
    cache is cleared.
    """

    def __init__(
        self, symbols: SymbolTable, calls: CallGraphStore, relations: RelationshipStore
    ) -> None:
        self._symbols = symbols
        self._calls = calls
        self._relations = relations
        self._files: dict[str, ParsedFile] = {}
        self._analyzed_at: dict[str, datetime] = {}

    def get(self, path: str) -> ParsedFile | None:
        """Get a parsed file, or None if the path was never analyzed."""
        return self._files.get(path)

    def put(self, path: str, parsed: ParsedFile) -> None:
        """Store ``parsed`` under ``path``, replacing any previous summary.

        The symbol table, call store and relationship entries of the path are
        refreshed in the same call.
        """
        if parsed.path != path:
            calls = [
                replace(c, caller=path) if c.caller == parsed.path else c for c in parsed.calls
            ]
            parsed = replace(parsed, path=path, calls=calls)
        symbol_count = self._symbols.register_file(parsed)
        self._calls.set(path, parsed.calls)
        self._relations.set(path, file_relationships(parsed))
        self._files[path] = parsed
        self._analyzed_at[path] = datetime.now()
        logger.debug("Cached %s: %d symbols, %d calls", path, symbol_count, len(parsed.calls))

    def delete(self, path: str) -> bool:
        """Forget a path and everything it contributed. Returns True if it was cached."""
        self._symbols.remove_file(path)
        self._calls.remove(path)
        self._relations.remove(path)
        self._analyzed_at.pop(path, None)
        return self._files.pop(path, None) is not None

    def paths(self) -> list[str]:
        """Cached paths, in the order they were first stored."""
        return list(self._files)

    def analyzed_at(self, path: str) -> datetime | None:
        """When the path was last stored."""
        return self._analyzed_at.get(path)

    def last_analyzed(self) -> datetime | None:
        return max(self._analyzed_at.values(), default=None)

    def needs_reanalysis(self, path: str, content_hash: str) -> bool:
        """Check if a file needs to be re-analyzed based on hash."""
        parsed = self._files.get(path)
        if parsed is None:
            return True
        return parsed.content_hash != content_hash

    def clear(self) -> None:
        """Delete every cached file and everything it contributed."""
        self._files.clear()
        self._analyzed_at.clear()
        self._symbols.clear()
        self._calls.clear()
        self._relations.clear()

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files
