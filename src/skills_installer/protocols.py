"""Protocol definitions for core abstractions.

This module defines abstract interfaces (Protocols) for the services the
resolver and installer depend on. Designing to interfaces enables:
- Loose coupling between components
- Easy substitution of test doubles
- Clear contracts for implementations

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from skills_installer.gitops import FetchedSource
    from skills_installer.manifest import Manifest


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for filesystem operations used by the installer."""

    def read_text(self, path: Path) -> str: ...

    def write_text(self, path: Path, content: str) -> None: ...

    def file_size(self, path: Path) -> int: ...

    def exists(self, path: Path) -> bool: ...

    def is_dir(self, path: Path) -> bool: ...

    def is_symlink(self, path: Path) -> bool: ...

    def iterdir(self, path: Path) -> list[Path]: ...

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None: ...

    def mkdtemp(self, parent: Path, prefix: str) -> Path: ...

    def unlink(self, path: Path) -> None: ...

    def rmdir(self, path: Path) -> None: ...

    def rmtree(self, path: Path) -> None: ...

    def copytree(self, src: Path, dst: Path) -> None: ...

    def replace(self, src: Path, dst: Path) -> None: ...

    def symlink(self, link: Path, target: str) -> None: ...

    def readlink(self, path: Path) -> str: ...


@runtime_checkable
class SourceRepository(Protocol):
    """Protocol for fetching project content.

    Implementations stage a project's skills and commands on local disk.
    """

    def fetch(self, project: str, repository: str, staging_dir: Path) -> FetchedSource:
        """Fetch a project's content into the staging directory.

        Args:
            project: Project name.
            repository: Repository reference ``owner/repo``.
            staging_dir: Temporary directory for this run.

        Returns:
            The staged source.

        Raises:
            GitOpsError: If the content cannot be fetched.
        """
        ...


@runtime_checkable
class ManifestSource(Protocol):
    """Protocol for obtaining the project manifest."""

    def load(self) -> Manifest:
        """Load the manifest.

        Raises:
            ManifestError: If the manifest cannot be loaded or verified.
        """
        ...
