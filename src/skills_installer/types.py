"""Shared data types for skills installer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

__all__ = [
    "InstallResult",
    "InstallSession",
    "LinkReport",
    "ProjectReport",
    "ResolveStatus",
]


class ResolveStatus(str, Enum):
    """Outcome of resolving a project and its dependencies."""

    INSTALLED = "installed"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def installed(self) -> bool:
        """True when the project's own content was installed."""
        return self is not ResolveStatus.FAILED


@dataclass
class InstallResult:
    """Result of installing a single skill or command.

    Attributes:
        success: True if installation succeeded.
        name: Final (scoped) name of the installed entry.
        destination: Path where the entry was installed (None on failure).
        error: Error message (None on success).
        replaced: True if an existing entry was overwritten.
    """

    success: bool
    name: str
    destination: Path | None
    error: str | None = None
    replaced: bool = False

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.success and self.error is not None:
            raise ValueError("success=True but error is set")
        if not self.success and self.error is None:
            raise ValueError("success=False requires error message")
        if not self.name:
            raise ValueError("name cannot be empty")


@dataclass
class ProjectReport:
    """Per-project record of what was installed, skipped and failed."""

    project: str
    installed: list[InstallResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[InstallResult] = field(default_factory=list)
    failed_dependencies: list[str] = field(default_factory=list)

    def add(self, result: InstallResult) -> None:
        """Record an install result in the matching bucket."""
        if result.success:
            self.installed.append(result)
        else:
            self.errors.append(result)

    @property
    def installed_names(self) -> list[str]:
        return [result.name for result in self.installed]


@dataclass
class InstallSession:
    """State of one installer run, threaded through resolver and installer.

    Attributes:
        staging_dir: Temporary directory holding fetched sources.
        known_projects: Project names from the manifest.
        installed: Projects whose own content has been installed.
        failed: Projects that could not be fetched or installed.
        in_progress: Projects currently being resolved (cycle detection).
        order: Installed projects in installation order.
        reports: Per-project install reports.
    """

    staging_dir: Path
    known_projects: frozenset[str] = frozenset()
    installed: set[str] = field(default_factory=set)
    failed: set[str] = field(default_factory=set)
    in_progress: set[str] = field(default_factory=set)
    order: list[str] = field(default_factory=list)
    reports: dict[str, ProjectReport] = field(default_factory=dict)

    def is_settled(self, project: str) -> bool:
        """True when the project was already installed or already failed."""
        return project in self.installed or project in self.failed

    def mark_installed(self, project: str) -> None:
        self.in_progress.discard(project)
        self.installed.add(project)
        self.order.append(project)

    def mark_failed(self, project: str) -> None:
        self.in_progress.discard(project)
        self.failed.add(project)

    @property
    def skills_installed(self) -> int:
        """Total skills and commands installed across all projects."""
        return sum(len(report.installed) for report in self.reports.values())


@dataclass
class LinkReport:
    """Result of symlinking central skills into one agent directory."""

    linked: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
