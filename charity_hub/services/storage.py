"""
Local file storage for uploaded documents and data exports.

Files are written beneath a root directory under generated names; callers keep
the returned relative path and never see the absolute location.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import BinaryIO

import structlog

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 1024 * 1024


class FileTooLargeError(Exception):
    """Raised when an upload exceeds the configured size limit."""


class LocalFileStorage:
    """
    Store files on the local filesystem beneath ``root``.

    Attributes:
        root: Directory holding every stored file

    Example:
        >>> storage = LocalFileStorage("./uploads")
        >>> relative_path, size = storage.save(upload.file, "pdf", max_bytes=10_000_000)
        >>> storage.path_for(relative_path)
        PosixPath('uploads/3f2a...c1.pdf')
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def save(self, source: BinaryIO, extension: str, max_bytes: int) -> tuple[str, int]:
        """
        Copy a stream into storage under a generated name.

        Args:
            source: Readable binary stream
            extension: File extension without the dot
            max_bytes: Largest accepted size; the partial file is removed when exceeded

        Returns:
            tuple[str, int]: Relative storage path and size in bytes

        Raises:
            FileTooLargeError: If the stream is larger than ``max_bytes``
        """
        self.root.mkdir(parents=True, exist_ok=True)
        name = f"{uuid.uuid4().hex}.{extension.lower()}"
        target = self.root / name

        size = 0
        with target.open("wb") as out:
            while chunk := source.read(CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    break
                out.write(chunk)

        if size > max_bytes:
            target.unlink(missing_ok=True)
            raise FileTooLargeError(f"File exceeds the {max_bytes} byte limit")

        logger.info("file_stored", path=name, size_bytes=size)
        return name, size

    def write_text(self, name: str, content: str) -> str:
        """Write a text file under ``name`` and return its relative path."""
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / name).write_text(content, encoding="utf-8")
        return name

    def path_for(self, relative_path: str) -> Path:
        """
        Resolve a stored file's path, refusing anything outside ``root``.

        Raises:
            FileNotFoundError: If the path escapes ``root`` or the file is missing
        """
        root = self.root.resolve()
        path = (root / relative_path).resolve()
        if root not in path.parents or not path.is_file():
            raise FileNotFoundError(relative_path)
        return path
