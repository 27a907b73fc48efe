"""Relationship store: import and inheritance edges per file."""

from __future__ import annotations

from pathlib import Path

from callmap.core.models import FileRelationship, ParsedFile, RelationType, normalize_path


def resolve_import_path(specifier: str, from_file: str) -> str:
    """Absolute path for ``./x`` and ``../x`` specifiers; anything else unchanged."""
    if specifier.startswith(("./", "../")):
        return normalize_path(Path(from_file).parent / specifier)
    return specifier


def file_relationships(parsed: ParsedFile) -> list[FileRelationship]:
    """Import edges of a file followed by the inheritance edges of its classes."""
    relationships = [
        FileRelationship(
            source=parsed.path,
            target=resolve_import_path(specifier, parsed.path),
            kind=RelationType.IMPORT,
        )
        for specifier in parsed.imports
    ]
    for cls in parsed.classes:
        source = f"{parsed.path}:{cls.name}"
        for base in cls.bases:
            kind = RelationType.IMPLEMENTS if base in cls.interfaces else RelationType.EXTENDS
            relationships.append(FileRelationship(source=source, target=base, kind=kind))
    return relationships


def _imports_file(target: str, path: str) -> bool:
    # import specifiers usually omit the extension, or name a directory's index file
    if target == path:
        return True
    file = Path(path)
    target_path = Path(target)
    return file.with_suffix("") == target_path or (
        file.stem == "index" and file.parent == target_path
    )


class RelationshipStore:
    """FileRelationship lists keyed by file path."""

    def __init__(self) -> None:
        self._relationships: dict[str, list[FileRelationship]] = {}

    def set(self, path: str, relationships: list[FileRelationship]) -> None:
        self._relationships[path] = list(relationships)

    def get(self, path: str) -> list[FileRelationship]:
        """Edges out of a file, empty if the file was never analyzed."""
        return list(self._relationships.get(path, []))

    def dependents_of(self, path: str) -> list[str]:
        """Files with an import edge resolving to ``path``, in analysis order."""
        return [
            source
            for source, relationships in self._relationships.items()
            if any(
                r.kind == RelationType.IMPORT and _imports_file(r.target, path)
                for r in relationships
            )
        ]

    def remove(self, path: str) -> int:
        return len(self._relationships.pop(path, []))

    def count(self) -> int:
        return sum(len(r) for r in self._relationships.values())

    def clear(self) -> None:
        self._relationships.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._relationships
