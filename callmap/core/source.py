"""Reading source files from disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from callmap.core.exceptions import (
    SourceNotFoundError,
    SourcePermissionError,
    SourceTooLargeError,
    SourceUnavailableError,
)

logger = logging.getLogger(__name__)


class SourceReader(Protocol):
    """Supplies the text of a source file or raises SourceUnavailableError."""

    def read(self, path: str) -> str: ...


class FileSystemReader:
    """Reads UTF-8 text from the local file system."""

    def __init__(self, max_file_size: int = 1024 * 1024) -> None:
        self.max_file_size = max_file_size

    def read(self, path: str) -> str:
        """Read a file, replacing undecodable bytes.

        Raises:
            SourceNotFoundError: If the path does not exist or is not a file
            SourcePermissionError: If the file cannot be opened
            SourceTooLargeError: If the file exceeds max_file_size
        """
        file = Path(path)
        try:
            size = file.stat().st_size
            if not file.is_file():
                raise SourceNotFoundError(f"Not a file: {path}")
            if size > self.max_file_size:
                raise SourceTooLargeError(
                    f"File too large: {path} ({size} bytes, limit {self.max_file_size})"
                )
            data = file.read_bytes()
        except FileNotFoundError as e:
            raise SourceNotFoundError(f"File not found: {path}") from e
        except PermissionError as e:
            raise SourcePermissionError(f"Permission denied: {path}") from e
        except IsADirectoryError as e:
            raise SourceNotFoundError(f"Not a file: {path}") from e
        except OSError as e:
            raise SourceUnavailableError(f"Cannot read {path}: {e}") from e

        text = data.decode("utf-8", errors="replace")
        if "\ufffd" in text and b"\xef\xbf\xbd" not in data:
            logger.warning("%s: undecodable bytes replaced", path)
        return text
