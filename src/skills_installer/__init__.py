"""Install skills and commands from git repositories into AI coding agents."""

__version__ = "0.1.0"

# Export protocol interfaces for type hints and dependency injection
from skills_installer.protocols import (
    FileSystem,
    ManifestSource,
    SourceRepository,
)

__all__ = [
    "__version__",
    "FileSystem",
    "ManifestSource",
    "SourceRepository",
]
