"""Protocols for language extractors and the collaborators around them."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from callmap.core.models import ParsedFile


class Extractor(Protocol):
    """Turns the text of one source file into a ParsedFile.

    Implementations must not raise on malformed input; they return whatever
    declarations and calls they could recover.
    """

    language: str

    def extract(self, content: str, path: str = "") -> ParsedFile:
        """Extract declarations and call sites from ``content``."""
        ...


class LanguageClassifier(Protocol):
    """Maps a file path to a language tag."""

    def __call__(self, path: str) -> str: ...
