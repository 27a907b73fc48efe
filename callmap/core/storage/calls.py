"""Call graph store: per-file call sites as produced by extraction."""

from __future__ import annotations

from callmap.core.models import CallSite


class CallGraphStore:
    """Ordered CallSite lists keyed by file path. No deduplication."""

    def __init__(self) -> None:
        self._calls: dict[str, list[CallSite]] = {}

    def set(self, path: str, calls: list[CallSite]) -> None:
        """Replace the call sites of a file."""
        self._calls[path] = list(calls)

    def get(self, path: str) -> list[CallSite]:
        """Call sites of a file, empty if the file was never analyzed."""
        return list(self._calls.get(path, []))

    def get_all(self) -> dict[str, list[CallSite]]:
        """Copy of the whole map; mutating it does not touch the store."""
        return {path: list(calls) for path, calls in self._calls.items()}

    def remove(self, path: str) -> int:
        """Drop a file's call sites. Returns count removed."""
        return len(self._calls.pop(path, []))

    def count(self) -> int:
        """Total number of call sites across all files."""
        return sum(len(calls) for calls in self._calls.values())

    def clear(self) -> None:
        self._calls.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._calls
