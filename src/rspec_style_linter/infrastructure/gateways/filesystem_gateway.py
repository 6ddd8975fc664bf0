"""Filesystem Gateway - Infrastructure implementation of FileSystemProtocol."""

import fnmatch
import os
from pathlib import Path

from rspec_style_linter.domain.constants import SKIPPED_DIRECTORIES
from rspec_style_linter.domain.protocols import FileSystemProtocol


class FileSystemGateway(FileSystemProtocol):
    """Infrastructure implementation of FileSystemProtocol using pathlib."""

    def is_directory(self, path: str) -> bool:
        """Check if path is a directory."""
        return Path(path).is_dir()

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def discover_spec_files(
        self, path: str, include: list[str], exclude: list[str]
    ) -> list[str]:
        """
        Walk a directory for spec files, sorted for a stable order.

        A file is kept when its name matches one of the include globs and its
        POSIX-style path contains none of the exclude fragments. A plain file
        path is returned as-is; callers asked for it explicitly.
        """
        root = Path(path)
        if not root.is_dir():
            return [str(root)]
        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRECTORIES)
            for name in filenames:
                if not any(fnmatch.fnmatch(name, pattern) for pattern in include):
                    continue
                candidate = Path(dirpath) / name
                posix = candidate.as_posix()
                if any(fragment in posix for fragment in exclude):
                    continue
                found.append(str(candidate))
        return sorted(found)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """Read text content from a file. Raises OSError or UnicodeDecodeError."""
        return Path(path).read_text(encoding=encoding)

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """Write text content to a file."""
        Path(path).write_text(content, encoding=encoding)
