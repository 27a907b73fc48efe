"""Symbol table: project-wide index of declarations."""

from __future__ import annotations

from callmap.core.models import ParsedFile, SymbolEntry, SymbolType


def make_key(path: str, qualified_name: str) -> str:
    """Composite key ``path:Class``, ``path:Class::method`` or ``path:function``."""
    return f"{path}:{qualified_name}"


class SymbolTable:
    """In-memory symbol storage.

    Entries are held under their composite key. A secondary index maps
    qualified names (``Class``, ``Class::method``, ``function``) to keys so
    that qualified lookups do not scan.
    """

    def __init__(self) -> None:
        self._entries: dict[str, SymbolEntry] = {}
        self._by_qualified: dict[str, list[str]] = {}
        self._by_file: dict[str, list[str]] = {}

    def register_file(self, parsed: ParsedFile) -> int:
        """Replace every entry of ``parsed.path`` with its declarations. Returns count added."""
        self.remove_file(parsed.path)

        entries = [
            SymbolEntry(
                key=make_key(parsed.path, cls.name),
                kind=SymbolType.CLASS,
                path=parsed.path,
                name=cls.name,
                line=cls.line,
                declaration=cls,
            )
            for cls in parsed.classes
        ]
        entries.extend(
            SymbolEntry(
                key=make_key(parsed.path, func.name),
                kind=SymbolType.FUNCTION,
                path=parsed.path,
                name=func.name,
                line=func.line,
                declaration=func,
            )
            for func in parsed.functions
        )
        entries.extend(
            SymbolEntry(
                key=make_key(parsed.path, method.qualified_name),
                kind=SymbolType.METHOD,
                path=parsed.path,
                name=method.name,
                line=method.line,
                declaration=method,
                class_name=method.class_name,
            )
            for method in parsed.methods
        )

        keys: list[str] = []
        for entry in entries:
            # A later declaration with the same key (redefinition) wins.
            if entry.key not in self._entries:
                keys.append(entry.key)
                self._by_qualified.setdefault(entry.qualified_name, []).append(entry.key)
            self._entries[entry.key] = entry
        self._by_file[parsed.path] = keys
        return len(keys)

    def remove_file(self, path: str) -> int:
        """Drop every entry of a file. Returns count removed."""
        keys = self._by_file.pop(path, [])
        for key in keys:
            entry = self._entries.pop(key)
            bucket = self._by_qualified.get(entry.qualified_name, [])
            if key in bucket:
                bucket.remove(key)
            if not bucket:
                self._by_qualified.pop(entry.qualified_name, None)
        return len(keys)

    def get(self, key: str) -> SymbolEntry | None:
        """Entry registered under an exact composite key."""
        return self._entries.get(key)

    def find(self, query: str, kind: SymbolType | None = None) -> list[SymbolEntry]:
        """Find entries matching a query.

        Accepted forms:
            - ``path:Class::method`` / ``path:Class`` / ``path:function``: exact key
            - ``Class::method``: every file's declaration of that method
            - ``Class::``: the class and all of its methods
            - ``name``: every class, function or method with that simple name

        Returns an empty list when nothing matches.
        """
        results = self._find(query.strip())
        if kind is not None:
            results = [e for e in results if e.kind == kind]
        return results

    def _find(self, query: str) -> list[SymbolEntry]:
        if not query:
            return []

        exact = self._entries.get(query)
        if exact is not None:
            return [exact]

        if "::" in query:
            class_name, _, member = query.rpartition("::")
            if member:
                return self._lookup_qualified(query)
            return [
                e
                for e in self._entries.values()
                if (e.kind == SymbolType.CLASS and e.name == class_name)
                or (e.kind == SymbolType.METHOD and e.class_name == class_name)
            ]

        return [e for e in self._entries.values() if e.name == query]

    def _lookup_qualified(self, qualified_name: str) -> list[SymbolEntry]:
        return [self._entries[k] for k in self._by_qualified.get(qualified_name, [])]

    def in_file(self, path: str) -> list[SymbolEntry]:
        """Entries of one file, in registration order."""
        return [self._entries[k] for k in self._by_file.get(path, [])]

    def entries(self) -> list[SymbolEntry]:
        return list(self._entries.values())

    def clear(self) -> None:
        """Delete all entries."""
        self._entries.clear()
        self._by_qualified.clear()
        self._by_file.clear()

    def __len__(self) -> int:
        return len(self._entries)
