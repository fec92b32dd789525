"""Dependency-ordered project installation.

A project depends on another project when one of its skill folders or
command files carries that project's scope (``name@org_other``). Such
projects are installed first; the dependent project then skips the
inherited entries instead of installing a second copy.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from skills_installer.gitops import FetchedSource, GitOpsError
from skills_installer.install import Destination, Installer
from skills_installer.manifest import Manifest
from skills_installer.protocols import SourceRepository
from skills_installer.scoping import is_scoped, referenced_project
from skills_installer.types import InstallSession, ResolveStatus

logger = logging.getLogger(__name__)


def find_dependencies(fetched: FetchedSource, known_projects: frozenset[str]) -> list[str]:
    """Projects referenced by a fetched project's scoped entries.

    Args:
        fetched: Staged project content.
        known_projects: Project names from the manifest.

    Returns:
        Referenced known projects other than ``fetched.project``, in order of
        first appearance.
    """
    names = [p.name for p in fetched.skill_folders()] + [p.stem for p in fetched.command_files()]
    dependencies: list[str] = []
    for name in names:
        if not is_scoped(name):
            continue
        owner = referenced_project(name)
        if owner is None or owner == fetched.project or owner not in known_projects:
            continue
        if owner not in dependencies:
            dependencies.append(owner)
    return dependencies


class DependencyResolver:
    """Installs projects after the projects they depend on."""

    def __init__(
        self,
        manifest: Manifest,
        fetcher: SourceRepository,
        installer: Installer,
        destination: Destination,
        notify: Callable[[str, str], None] | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            manifest: Known projects.
            fetcher: Source fetcher staging project content.
            installer: Installer for the project's own content.
            destination: Where content is installed.
            notify: Progress callback ``(message, severity)``.
        """
        self.manifest = manifest
        self.fetcher = fetcher
        self.installer = installer
        self.destination = destination
        self.notify = notify or (lambda message, severity: None)

    def new_session(self, staging_dir: Path) -> InstallSession:
        """Create an empty session for this resolver's manifest."""
        return InstallSession(staging_dir=staging_dir, known_projects=frozenset(self.manifest.names))

    def resolve(self, project: str, session: InstallSession) -> ResolveStatus:
        """Install ``project`` and, first, every project it depends on.

        Failures are recorded in ``session`` and never raised: a failed
        dependency downgrades the result to ``PARTIAL`` but the project's
        own content is still installed.

        Args:
            project: Project name.
            session: Current run state.

        Returns:
            ResolveStatus of the project.
        """
        if project in session.installed:
            return ResolveStatus.INSTALLED
        if project in session.failed:
            return ResolveStatus.FAILED

        repository = self.manifest.get_repository(project)
        if repository is None:
            self.notify(f"Unknown project: {project}", "error")
            session.mark_failed(project)
            return ResolveStatus.FAILED

        session.in_progress.add(project)
        self.notify(f"Fetching {project} from {repository}...", "info")
        try:
            fetched = self.fetcher.fetch(project, repository, session.staging_dir)
        except GitOpsError as e:
            logger.debug("Fetch failed for %s", project, exc_info=True)
            self.notify(f"Failed to fetch {project}: {e}", "error")
            session.mark_failed(project)
            return ResolveStatus.FAILED

        failed_dependencies: list[str] = []
        for dependency in find_dependencies(fetched, session.known_projects):
            if dependency in session.installed:
                continue
            if dependency in session.failed:
                failed_dependencies.append(dependency)
                continue
            if dependency in session.in_progress:
                logger.warning("Dependency cycle between %s and %s", project, dependency)
                self.notify(
                    f"Circular dependency: {dependency} is already being installed", "warning"
                )
                continue

            self.notify(f"Installing dependency: {dependency} (required by {project})", "info")
            if self.resolve(dependency, session) is ResolveStatus.FAILED:
                self.notify(f"Failed to install dependency {dependency} for {project}", "warning")
                failed_dependencies.append(dependency)

        self.notify(f"Installing {project}...", "info")
        try:
            report = self.installer.install_project(fetched, session, self.destination)
        except Exception as e:
            logger.exception("Installation failed for %s", project)
            self.notify(f"Failed to install {project}: {e}", "error")
            session.mark_failed(project)
            return ResolveStatus.FAILED

        report.failed_dependencies = failed_dependencies
        session.reports[project] = report
        session.mark_installed(project)

        if failed_dependencies:
            return ResolveStatus.PARTIAL
        return ResolveStatus.INSTALLED
