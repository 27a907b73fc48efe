"""Fallback extractor for languages without declaration heuristics."""

from __future__ import annotations

import logging

from callmap.core.models import ParsedFile
from callmap.languages.scanning import SourceText, Syntax, hash_content, scan_calls

logger = logging.getLogger(__name__)

SYNTAX = Syntax()

KEYWORDS = frozenset({"catch", "for", "foreach", "if", "return", "sizeof", "switch", "while"})


class GenericExtractor:
    """Records call sites of C-family sources; finds no declarations."""

    def __init__(self, language: str = "unknown") -> None:
        self.language = language

    def extract(self, content: str, path: str = "") -> ParsedFile:
        source = SourceText.from_content(content, SYNTAX)
        for problem in source.problems:
            logger.warning("%s: %s", path or "<memory>", problem)
        return ParsedFile(
            path=path,
            language=self.language,
            calls=scan_calls(source, path, KEYWORDS, set()),
            content_hash=hash_content(content),
        )
