"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling in CLI commands.

Dependencies are typed using Protocols (abstract interfaces) rather than
concrete implementations, so test doubles can be injected without
inheritance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from skills_installer.config import InstallerConfig
from skills_installer.protocols import FileSystem, ManifestSource, SourceRepository

if TYPE_CHECKING:
    from skills_installer.install import Installer


def _default_filesystem() -> FileSystem:
    """Create the default filesystem implementation."""
    from skills_installer.filesystem import RealFileSystem

    return RealFileSystem()


@dataclass
class AppContext:
    """Container for application dependencies.

    Provides a single injection point for all services used by CLI commands.
    """

    config: InstallerConfig
    manifest_source: ManifestSource
    gitops: SourceRepository
    installer: Installer
    filesystem: FileSystem = field(default_factory=_default_filesystem)


def create_context(
    config: InstallerConfig | None = None,
    notify: Callable[[str, str], None] | None = None,
) -> AppContext:
    """Factory for application dependencies.

    Creates all services with proper wiring. Use this in production code.
    For tests, construct AppContext directly with test doubles.

    Args:
        config: Installer configuration (defaults plus environment if omitted).
        notify: Progress callback ``(message, severity)`` for the installer.

    Returns:
        Configured AppContext with all dependencies.
    """
    from skills_installer.filesystem import RealFileSystem
    from skills_installer.gitops import GitOps
    from skills_installer.install import Installer
    from skills_installer.manifest import ManifestLoader
    from skills_installer.transform import ConverterEngine

    config = config or InstallerConfig.from_env()
    filesystem = RealFileSystem()
    installer = Installer.create(
        converter=ConverterEngine(config.max_workflow_length),
        filesystem=filesystem,
        max_file_size=config.max_file_size,
        notify=notify,
    )

    return AppContext(
        config=config,
        manifest_source=ManifestLoader.create(config),
        gitops=GitOps.create(config.branch, config.sparse_path),
        installer=installer,
        filesystem=filesystem,
    )
