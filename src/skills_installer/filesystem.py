"""Filesystem abstraction for testability.

This module provides a filesystem abstraction that enables testing
failure paths without real I/O errors. The RealFileSystem implementation
wraps standard library operations.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path


class RealFileSystem:
    """Production filesystem implementation.

    Wraps standard library Path, os and shutil operations.
    Satisfies the FileSystem protocol structurally.
    """

    def read_text(self, path: Path) -> str:
        """Read text content from a file."""
        return path.read_text(encoding="utf-8")

    def write_text(self, path: Path, content: str) -> None:
        """Write text content to a file."""
        path.write_text(content, encoding="utf-8")

    def file_size(self, path: Path) -> int:
        """Size of a file in bytes (without reading it)."""
        return path.stat().st_size

    def exists(self, path: Path) -> bool:
        """Check if a path exists (a dangling symlink counts)."""
        return path.exists() or path.is_symlink()

    def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory."""
        return path.is_dir()

    def is_symlink(self, path: Path) -> bool:
        """Check if a path is a symbolic link."""
        return path.is_symlink()

    def iterdir(self, path: Path) -> list[Path]:
        """List directory entries in name order."""
        return sorted(path.iterdir())

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None:
        """Create a directory."""
        path.mkdir(parents=parents, exist_ok=exist_ok)

    def mkdtemp(self, parent: Path, prefix: str) -> Path:
        """Create a uniquely named directory inside ``parent``."""
        return Path(tempfile.mkdtemp(prefix=prefix, dir=parent))

    def unlink(self, path: Path) -> None:
        """Remove a file or symlink."""
        path.unlink()

    def rmdir(self, path: Path) -> None:
        """Remove an empty directory."""
        path.rmdir()

    def rmtree(self, path: Path) -> None:
        """Remove a directory tree."""
        shutil.rmtree(path)

    def copytree(self, src: Path, dst: Path) -> None:
        """Copy a directory tree."""
        shutil.copytree(src, dst, symlinks=True)

    def replace(self, src: Path, dst: Path) -> None:
        """Rename ``src`` to ``dst``, atomically on the same filesystem."""
        os.replace(src, dst)

    def symlink(self, link: Path, target: str) -> None:
        """Create ``link`` pointing at ``target`` (a relative path)."""
        os.symlink(target, link, target_is_directory=True)

    def readlink(self, path: Path) -> str:
        """Return the raw target of a symbolic link."""
        return os.readlink(path)
