"""Tests for error handling paths."""

import logging
import tempfile
from pathlib import Path

import pytest

from callmap.config import Settings
from callmap.core.exceptions import (
    CallmapError,
    InvalidArgumentError,
    SourceNotFoundError,
    SourceTooLargeError,
    SourceUnavailableError,
)
from callmap.core.indexer import Indexer
from callmap.core.source import FileSystemReader


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


class TestFileSystemReader:
    """Tests for reading source files."""

    def test_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(SourceNotFoundError) as exc_info:
            FileSystemReader().read(str(temp_dir / "nope.py"))

        assert "File not found" in str(exc_info.value)

    def test_directory_is_not_a_file(self, temp_dir: Path) -> None:
        with pytest.raises(SourceNotFoundError):
            FileSystemReader().read(str(temp_dir))

    def test_too_large(self, temp_dir: Path) -> None:
        file_path = temp_dir / "big.py"
        file_path.write_text("x = 1\n" * 10)

        with pytest.raises(SourceTooLargeError) as exc_info:
            FileSystemReader(max_file_size=10).read(str(file_path))

        assert "limit 10" in str(exc_info.value)

    def test_undecodable_bytes_are_replaced(self, temp_dir: Path, caplog) -> None:
        """Invalid UTF-8 is replaced and logged, not raised."""
        file_path = temp_dir / "latin.py"
        file_path.write_bytes(b"def f():\n    return '\xff'\n")

        with caplog.at_level(logging.WARNING):
            text = FileSystemReader().read(str(file_path))

        assert "\ufffd" in text
        assert "undecodable bytes replaced" in caplog.text

    def test_exception_hierarchy(self) -> None:
        assert issubclass(SourceTooLargeError, SourceUnavailableError)
        assert issubclass(SourceUnavailableError, CallmapError)
        assert issubclass(InvalidArgumentError, ValueError)


class TestIndexerErrors:
    """Tests for error propagation through the indexer."""

    def test_analyze_missing_file_raises(self, temp_dir: Path) -> None:
        """A failed read leaves the index untouched."""
        indexer = Indexer()

        with pytest.raises(SourceNotFoundError):
            indexer.analyze_file(temp_dir / "missing.py")

        assert indexer.get_stats()["files"] == 0

    def test_index_directory_collects_errors(self, temp_dir: Path, caplog) -> None:
        """Unreadable files are reported in the stats and indexing goes on."""
        (temp_dir / "small.py").write_text("def ok(): pass\n")
        (temp_dir / "large.py").write_text("def big():\n" + "    x = 1\n" * 20)
        indexer = Indexer(settings=Settings(max_file_size=64))

        with caplog.at_level(logging.WARNING):
            stats = indexer.index_directory(temp_dir)

        assert stats.files == 1
        assert len(stats.errors) == 1
        assert "large.py" in stats.errors[0]
        assert "Skipping" in caplog.text
        assert indexer.find_symbol("big") == []
        assert len(indexer.find_symbol("ok")) == 1

    def test_index_directory_rejects_file(self, temp_dir: Path) -> None:
        file_path = temp_dir / "a.py"
        file_path.write_text("")

        with pytest.raises(InvalidArgumentError):
            Indexer().index_directory(file_path)

    @pytest.mark.parametrize("method_name", ["", "  "])
    def test_calls_from_empty_method_name(self, method_name: str) -> None:
        with pytest.raises(InvalidArgumentError):
            Indexer().find_calls_from_method("A", method_name)

    def test_empty_trace_entry(self) -> None:
        with pytest.raises(InvalidArgumentError):
            Indexer().trace_execution_path("")

    def test_empty_file_analyzes_cleanly(self, temp_dir: Path) -> None:
        file_path = temp_dir / "empty.py"
        file_path.write_text("")

        parsed = Indexer().analyze_file(file_path)

        assert parsed.classes == []
        assert parsed.functions == []
        assert parsed.calls == []
