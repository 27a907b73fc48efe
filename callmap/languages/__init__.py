"""
Language extractors: turn source text into declarations and call sites.

Every extractor is a heuristic scanner, not a parser. Comments and string
literals are masked first, then declarations (classes, functions, methods)
and call expressions are matched line by line.

Components:
    - Extractor: Protocol every extractor satisfies (extract(content, path))
    - PythonExtractor: indentation-driven scanner for Python
    - JavaScriptExtractor: brace-driven scanner for JavaScript and TypeScript
    - PhpExtractor: brace-driven scanner for PHP
    - GenericExtractor: call sites only, for every other language

Selecting an extractor:
    language = detect_language(path)
    parsed = get_extractor(language).extract(content, path)

Adding a new language:
    1. Write a class with a ``language`` attribute and an extract() method
    2. Register it in _EXTRACTORS under its language tag
    3. Map its file extensions in LANGUAGE_BY_EXTENSION
"""

from __future__ import annotations

from pathlib import Path

from callmap.languages.base import Extractor, LanguageClassifier
from callmap.languages.generic import GenericExtractor
from callmap.languages.javascript import JavaScriptExtractor
from callmap.languages.php import PhpExtractor
from callmap.languages.python import PythonExtractor

LANGUAGE_BY_EXTENSION = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".php": "php",
    ".java": "java",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
}

_EXTRACTORS: dict[str, Extractor] = {
    "python": PythonExtractor(),
    "javascript": JavaScriptExtractor("javascript"),
    "typescript": JavaScriptExtractor("typescript"),
    "php": PhpExtractor(),
}

SUPPORTED_LANGUAGES = frozenset(_EXTRACTORS)


def detect_language(path: str | Path) -> str:
    """Language tag for a file, from its extension; ``unknown`` otherwise."""
    return LANGUAGE_BY_EXTENSION.get(Path(path).suffix.lower(), "unknown")


def get_extractor(language: str) -> Extractor:
    """Extractor registered for a language tag, or the generic one."""
    extractor = _EXTRACTORS.get(language)
    if extractor is None:
        return GenericExtractor(language)
    return extractor


__all__ = [
    "Extractor",
    "GenericExtractor",
    "JavaScriptExtractor",
    "LANGUAGE_BY_EXTENSION",
    "LanguageClassifier",
    "PhpExtractor",
    "PythonExtractor",
    "SUPPORTED_LANGUAGES",
    "detect_language",
    "get_extractor",
]
