"""Indexer that coordinates extraction, storage and queries."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from callmap.config import Settings
from callmap.core.exceptions import InvalidArgumentError, SourceUnavailableError
from callmap.core.graph import ExecutionTrace, calls_of, owner_class, trace_execution_path
from callmap.core.models import (
    CallSite,
    FileRelationship,
    IndexStats,
    MethodDecl,
    ParsedFile,
    SignatureCheck,
    SymbolEntry,
    SymbolType,
    normalize_path,
)
from callmap.core.normalizer import CallTargetNormalizer
from callmap.core.source import FileSystemReader, SourceReader
from callmap.core.storage import IndexContext
from callmap.languages import LanguageClassifier, detect_language, get_extractor
from callmap.languages.scanning import hash_content, split_top_level

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Path, int, int], None]

DEFAULT_EXCLUDES = [
    "__pycache__",
    "*.egg-info",
    "node_modules",
    "vendor",
    "build",
    "dist",
    "venv",
    ".venv",
    "*.min.js",
]


class Indexer:
    """Analyzes files into an IndexContext and answers queries over it."""

    def __init__(
        self,
        context: IndexContext | None = None,
        settings: Settings | None = None,
        reader: SourceReader | None = None,
        classifier: LanguageClassifier = detect_language,
    ) -> None:
        self.settings = settings if settings is not None else Settings()
        self.context = context if context is not None else IndexContext()
        self.normalizer = CallTargetNormalizer(self.settings.external_objects)
        if reader is None:
            reader = FileSystemReader(self.settings.max_file_size)
        self._reader = reader
        self._classify = classifier

    def analyze_file(self, path: str | Path) -> ParsedFile:
        """Read, extract and store one file, replacing its previous summary.

        Raises:
            SourceUnavailableError: If the file cannot be read
        """
        key = normalize_path(path)
        content = self._reader.read(key)
        return self._analyze_content(key, content)

    def _analyze_content(self, key: str, content: str) -> ParsedFile:
        language = self._classify(key)
        parsed = get_extractor(language).extract(content, key)
        self.context.store(parsed)
        logger.debug(
            "Analyzed %s (%s): %d classes, %d functions, %d methods, %d calls",
            key,
            language,
            len(parsed.classes),
            len(parsed.functions),
            len(parsed.methods),
            len(parsed.calls),
        )
        return parsed

    def get_parsed_file(self, path: str | Path) -> ParsedFile | None:
        """Cached summary of a file, None if it was never analyzed."""
        return self.context.files.get(normalize_path(path))

    def find_symbol(self, query: str, kind: SymbolType | None = None) -> list[SymbolEntry]:
        """Symbol-table lookup; see SymbolTable.find for the accepted forms."""
        return self.context.symbols.find(query, kind=kind)

    def find_calls_from_method(self, class_name: str | None, method_name: str) -> list[CallSite]:
        """Calls made inside every declaration matching ``class_name``/``method_name``.

        Returned call sites are copies: ``caller`` is the qualified declaration
        name and ``callee`` the normalized target. Calls on external objects are
        left out.

        Raises:
            InvalidArgumentError: If method_name is empty
        """
        if not method_name or not method_name.strip():
            raise InvalidArgumentError("Method name must not be empty")
        method_name = method_name.strip()

        if class_name:
            entries = self.context.symbols.find(
                f"{class_name.strip()}::{method_name}", kind=SymbolType.METHOD
            )
        else:
            entries = self.context.symbols.find(method_name, kind=SymbolType.FUNCTION)
            if not entries:
                entries = self.context.symbols.find(method_name, kind=SymbolType.METHOD)

        results: list[CallSite] = []
        for entry in entries:
            owner = owner_class(entry)
            for call in calls_of(self.context, entry):
                target = self.normalizer.normalize(call.raw, owner)
                if target is None:
                    continue
                results.append(
                    replace(call, caller=entry.qualified_name, callee=target, raw_callee=call.raw)
                )
        return results

    def get_call_graph(self) -> dict[str, list[CallSite]]:
        """Every file's raw call sites (a copy)."""
        return self.context.calls.get_all()

    def get_file_relationships(self, path: str | Path) -> list[FileRelationship]:
        """Import, extends and implements edges of an analyzed file."""
        return self.context.relations.get(normalize_path(path))

    def get_dependents(self, path: str | Path) -> list[str]:
        """Analyzed files with an import that resolves to ``path``."""
        return self.context.relations.dependents_of(normalize_path(path))

    def compare_method_signatures(
        self, calling_file: str | Path, class_name: str, method_name: str
    ) -> SignatureCheck:
        """Check the calls a file makes to ``Class::method`` against its parameters.

        A call matches when it normalizes to ``Class::method``, or to
        ``obj::method`` where ``obj`` is the class name in any case
        (``order.save()`` for ``Order``). More arguments than declared
        parameters is an issue; fewer is not, parameters may have defaults.
        Calls whose arguments continue past their line are listed but not
        counted.

        Raises:
            InvalidArgumentError: If class_name or method_name is empty
        """
        if not class_name or not class_name.strip() or not method_name or not method_name.strip():
            raise InvalidArgumentError("Class and method names must not be empty")
        class_name, method_name = class_name.strip(), method_name.strip()
        qualified = f"{class_name}::{method_name}"

        key = normalize_path(calling_file)
        if self.context.files.get(key) is None:
            return SignatureCheck(match=False, issues=["Calling file not analyzed"])

        definitions = [
            e.declaration
            for e in self.context.symbols.find(qualified, kind=SymbolType.METHOD)
            if isinstance(e.declaration, MethodDecl)
        ]
        if not definitions:
            return SignatureCheck(match=False, issues=[f"Method definition not found: {qualified}"])
        expected = definitions[0]
        declared = len(expected.parameters)

        declarations = sorted(self.context.symbols.in_file(key), key=lambda e: e.line)
        result = SignatureCheck(match=True, expected=expected)
        for call in self.context.calls.get(key):
            enclosing = [e for e in declarations if e.line <= call.line]
            owner = owner_class(enclosing[-1]) if enclosing else None
            target = self.normalizer.normalize(call.raw, owner)
            if target is None or not _targets_method(target, class_name, method_name):
                continue
            result.calls.append(replace(call, callee=target, raw_callee=call.raw))
            if call.arguments is None or call.arguments.endswith("..."):
                continue
            count = len(split_top_level(call.arguments))
            if count > declared:
                result.issues.append(
                    f"line {call.line}: {count} arguments, {qualified} takes {declared}"
                )

        if not result.calls:
            result.issues.append(f"No calls to {qualified}")
        result.match = not result.issues
        return result

    def trace_execution_path(
        self,
        entry: str,
        max_depth: int | None = None,
        include_parameters: bool = False,
    ) -> ExecutionTrace:
        """Trace calls reachable from ``entry``; empty if the entry is unknown."""
        if max_depth is None:
            max_depth = self.settings.trace_depth
        return trace_execution_path(
            self.context, self.normalizer, entry, max_depth, include_parameters
        )

    def clear_cache(self, path: str | Path | None = None) -> None:
        """Forget one file, or everything when no path is given."""
        if path is None:
            self.context.clear()
            logger.debug("Cleared index")
        else:
            self.context.delete_file(normalize_path(path))

    def get_stats(self) -> dict[str, int | datetime | None]:
        return self.context.get_stats()

    def index_directory(
        self,
        directory: Path,
        exclude_patterns: list[str] | None = None,
        force: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> IndexStats:
        """Analyze every recognized source file below a directory.

        Args:
            directory: Directory to index
            exclude_patterns: Additional glob patterns to exclude (e.g., "tests")
            force: If True, re-analyze files whose content did not change
            on_progress: Optional callback for progress updates (file, current, total)

        Returns:
            IndexStats with counts of files/symbols/calls processed
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise InvalidArgumentError(f"Not a directory: {directory}")

        all_excludes = DEFAULT_EXCLUDES + self.settings.exclude + (exclude_patterns or [])
        stats = IndexStats()

        source_files = sorted(
            f for f in directory.rglob("*") if f.is_file() and self._classify(str(f)) != "unknown"
        )
        total_files = len(source_files)

        for i, file in enumerate(source_files):
            relative_path = str(file.relative_to(directory))
            if self._should_exclude(relative_path, all_excludes):
                stats.skipped += 1
            else:
                self._index_one(file, force, stats)
            if on_progress:
                on_progress(file, i + 1, total_files)

        logger.info("Indexed %s: %r", directory, stats)
        return stats

    def _index_one(self, file: Path, force: bool, stats: IndexStats) -> None:
        key = normalize_path(file)
        try:
            content = self._reader.read(key)
        except SourceUnavailableError as e:
            logger.warning("Skipping %s: %s", key, e)
            stats.errors.append(str(e))
            return

        if not force and not self.context.files.needs_reanalysis(key, hash_content(content)):
            stats.unchanged += 1
            return

        parsed = self._analyze_content(key, content)
        stats.files += 1
        stats.symbols += len(self.context.symbols.in_file(key))
        stats.calls += len(parsed.calls)

    def _should_exclude(self, path: str, patterns: list[str]) -> bool:
        """Check if a path matches any exclusion pattern.

        Excludes:
        - Any path component starting with '.' (hidden files/directories)
        - Any path component matching the exclusion patterns
        """
        for part in Path(path).parts:
            if part.startswith("."):
                return True
            for pattern in patterns:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False


def _targets_method(target: str, class_name: str, method_name: str) -> bool:
    left, _, member = target.rpartition("::")
    return member == method_name and left.lower() == class_name.lower()
