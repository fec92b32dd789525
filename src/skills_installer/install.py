"""Installation operations for skills and commands."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from skills_installer.agents import AgentTarget
from skills_installer.config import MAX_FILE_SIZE
from skills_installer.filesystem import RealFileSystem
from skills_installer.gitops import FetchedSource
from skills_installer.protocols import FileSystem
from skills_installer.scoping import (
    ScopeError,
    is_scoped,
    matches_scope,
    referenced_project,
    scope_name,
    scope_suffix,
)
from skills_installer.transform import ConverterEngine
from skills_installer.types import InstallResult, InstallSession, LinkReport, ProjectReport
from skills_installer.validation import InvalidTargetPathError, validate_target_path

logger = logging.getLogger(__name__)

# Prefix of the per-install temporary directory created inside a destination
TEMP_PREFIX = ".install-tmp."

Notify = Callable[[str, str], None]


def _silent(message: str, severity: str) -> None:
    logger.debug("%s: %s", severity, message)


class InstallAborted(Exception):
    """Raised when the user aborts while resolving a link conflict."""

    pass


class ConflictAction(str, Enum):
    """What to do with a real directory where a symlink should go."""

    REPLACE = "replace"
    SKIP = "skip"
    ABORT = "abort"


ConflictHandler = Callable[[Path, str], ConflictAction]


@dataclass
class Destination:
    """Where one run installs content.

    Attributes:
        base_dir: Directory holding the agent configuration directories.
        agents: Target agents.
        skills_roots: Directories receiving skill folders. In central mode
            this is the central store only; in copy mode every agent's
            skills directory.
        central_dir: Central store, or None in copy mode.
    """

    base_dir: Path
    agents: list[AgentTarget]
    skills_roots: list[Path] = field(default_factory=list)
    central_dir: Path | None = None

    @classmethod
    def central(cls, base_dir: Path, central_dir: Path, agents: list[AgentTarget]) -> Destination:
        """Store skills once under ``central_dir`` (relative to ``base_dir``)."""
        store = base_dir / central_dir
        return cls(base_dir=base_dir, agents=agents, skills_roots=[store], central_dir=store)

    @classmethod
    def copy(cls, base_dir: Path, agents: list[AgentTarget]) -> Destination:
        """Copy skills into every agent's own skills directory."""
        return cls(
            base_dir=base_dir,
            agents=agents,
            skills_roots=[agent.skills_dir(base_dir) for agent in agents],
        )

    @property
    def linked(self) -> bool:
        return self.central_dir is not None

    def command_targets(self) -> list[tuple[AgentTarget, Path]]:
        """Agents that support commands, with their commands directory."""
        targets = []
        for agent in self.agents:
            commands_dir = agent.commands_dir(self.base_dir)
            if agent.supports_commands and commands_dir is not None:
                targets.append((agent, commands_dir))
        return targets


@dataclass(frozen=True)
class NamePlan:
    """How one skill folder or command stem is installed.

    ``final_name`` is None when the entry is inherited from ``owner`` and
    must not be installed by this project.
    """

    source_name: str
    final_name: str | None
    owner: str | None = None

    @property
    def inherited(self) -> bool:
        return self.final_name is None


def plan_name(name: str, project: str, repository: str, known_projects: frozenset[str]) -> NamePlan:
    """Decide the installed name of a skill folder or command stem.

    Unscoped names get this project's scope. Scoped names are kept as-is
    unless they belong to another known project, in which case that project
    provides them.

    Raises:
        ScopeError: If an unscoped name cannot be scoped with ``repository``.
    """
    if not is_scoped(name):
        return NamePlan(name, scope_name(name, repository))

    try:
        own_suffix: str | None = scope_suffix(repository)
    except ScopeError:
        own_suffix = None
    if own_suffix is not None and matches_scope(name, own_suffix):
        return NamePlan(name, name)

    owner = referenced_project(name)
    if owner is not None and owner != project and owner in known_projects:
        return NamePlan(name, None, owner)
    return NamePlan(name, name)


class Installer:
    """Installs skill folders and command files into agent directories.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(
        self,
        converter: ConverterEngine,
        filesystem: FileSystem,
        max_file_size: int = MAX_FILE_SIZE,
        notify: Notify | None = None,
    ) -> None:
        """Initialize installer with required dependencies.

        Args:
            converter: Command format converter engine (required).
            filesystem: Filesystem abstraction (required).
            max_file_size: Largest accepted command file in bytes.
            notify: Progress callback ``(message, severity)``.

        Note:
            Use factory method `create()` for production code.
            Direct construction is for testing with explicit dependencies.
        """
        self.converter = converter
        self.fs = filesystem
        self.max_file_size = max_file_size
        self.notify = notify or _silent

    @classmethod
    def create(
        cls,
        converter: ConverterEngine | None = None,
        filesystem: FileSystem | None = None,
        max_file_size: int = MAX_FILE_SIZE,
        notify: Notify | None = None,
    ) -> Installer:
        """Factory method for production instantiation.

        Args:
            converter: Optional converter engine (created if not provided).
            filesystem: Optional filesystem abstraction (created if not provided).
            max_file_size: Largest accepted command file in bytes.
            notify: Optional progress callback.

        Returns:
            Configured Installer instance.
        """
        return cls(
            converter=converter or ConverterEngine(),
            filesystem=filesystem or RealFileSystem(),
            max_file_size=max_file_size,
            notify=notify,
        )

    # Single entries

    def install(self, source_dir: Path, dest_root: Path, final_name: str) -> InstallResult:
        """Atomically copy a directory to ``dest_root/final_name``.

        The copy is staged in a ``.install-tmp.*`` directory inside
        ``dest_root`` and renamed into place, so readers see either the old
        entry or the complete new one.

        Args:
            source_dir: Directory to copy.
            dest_root: Existing destination directory.
            final_name: Name of the installed entry.

        Returns:
            InstallResult; failures are reported, never raised.
        """
        try:
            target = validate_target_path(dest_root, final_name)
        except InvalidTargetPathError as e:
            return self._failure(final_name, f"Invalid target path: {e}")

        try:
            temp_dir = self.fs.mkdtemp(dest_root, TEMP_PREFIX)
        except OSError as e:
            return self._failure(final_name, f"Failed to create temp directory in {dest_root}: {e}")

        staged = temp_dir / final_name
        try:
            self.fs.copytree(source_dir, staged)
        except OSError as e:
            self._discard(temp_dir)
            return self._failure(final_name, f"Failed to copy {source_dir}: {e}")

        return self._swap_into_place(temp_dir, staged, target)

    def install_file(self, content: str, dest_root: Path, filename: str) -> InstallResult:
        """Atomically write ``content`` to ``dest_root/filename``.

        Args:
            content: File content.
            dest_root: Existing destination directory.
            filename: Name of the installed file.

        Returns:
            InstallResult; failures are reported, never raised.
        """
        try:
            target = validate_target_path(dest_root, filename)
        except InvalidTargetPathError as e:
            return self._failure(filename, f"Invalid target path: {e}")

        try:
            temp_dir = self.fs.mkdtemp(dest_root, TEMP_PREFIX)
        except OSError as e:
            return self._failure(filename, f"Failed to create temp directory in {dest_root}: {e}")

        staged = temp_dir / filename
        try:
            self.fs.write_text(staged, content)
        except OSError as e:
            self._discard(temp_dir)
            return self._failure(filename, f"Failed to write {filename}: {e}")

        return self._swap_into_place(temp_dir, staged, target)

    def _swap_into_place(self, temp_dir: Path, staged: Path, target: Path) -> InstallResult:
        replaced = self.fs.exists(target)
        try:
            if replaced:
                self._remove_entry(target)
            self.fs.replace(staged, target)
        except OSError as e:
            self._discard(temp_dir)
            return self._failure(target.name, f"Failed to install {target.name}: {e}")

        self._discard(temp_dir)
        return InstallResult(success=True, name=target.name, destination=target, replaced=replaced)

    def _remove_entry(self, path: Path) -> None:
        """Remove a file, symlink or directory tree."""
        if self.fs.is_symlink(path) or not self.fs.is_dir(path):
            self.fs.unlink(path)
        else:
            self.fs.rmtree(path)

    def _discard(self, temp_dir: Path) -> None:
        if not self.fs.exists(temp_dir):
            return
        try:
            self.fs.rmtree(temp_dir)
        except OSError as e:
            logger.warning("Could not remove temporary directory %s: %s", temp_dir, e)

    @staticmethod
    def _failure(name: str, error: str) -> InstallResult:
        return InstallResult(success=False, name=name or "<unnamed>", destination=None, error=error)

    # Projects

    def install_project(
        self,
        fetched: FetchedSource,
        session: InstallSession,
        destination: Destination,
    ) -> ProjectReport:
        """Install a fetched project's skills and commands.

        Args:
            fetched: Staged project content.
            session: Current run (known and failed projects).
            destination: Where to install.

        Returns:
            Report of installed, skipped and failed entries.
        """
        report = ProjectReport(project=fetched.project)

        for root in destination.skills_roots:
            self.fs.mkdir(root, parents=True, exist_ok=True)

        for skill_dir in fetched.skill_folders():
            plan = self._plan(skill_dir.name, fetched, session, report)
            if plan is None:
                continue
            for root in destination.skills_roots:
                self._record(report, self._install_skill(skill_dir, root, plan.final_name))

        command_targets = destination.command_targets()
        command_files = fetched.command_files()
        if command_files and not command_targets:
            logger.debug("No selected agent supports commands; skipping %s", fetched.project)
            return report

        for command_file in command_files:
            plan = self._plan(command_file.stem, fetched, session, report)
            if plan is None:
                continue
            content = self._read_command(command_file, report)
            if content is None:
                continue
            for agent, commands_dir in command_targets:
                self._record(
                    report, self._install_command(content, plan.final_name, agent, commands_dir)
                )

        return report

    def _plan(
        self,
        name: str,
        fetched: FetchedSource,
        session: InstallSession,
        report: ProjectReport,
    ) -> NamePlan | None:
        """Plan one entry, printing the reason when it is not installed."""
        try:
            plan = plan_name(name, fetched.project, fetched.repository, session.known_projects)
        except ScopeError as e:
            self.notify(f"Skipping {name}: {e}", "error")
            report.errors.append(self._failure(name, str(e)))
            return None

        if plan.inherited:
            if plan.owner in session.failed:
                reason = f"{name} ({plan.owner} failed to install)"
            else:
                reason = f"{name} (will install from {plan.owner})"
            self.notify(f"Skipped: {reason}", "info")
            report.skipped.append(reason)
            return None
        return plan

    def _install_skill(self, skill_dir: Path, root: Path, final_name: str) -> InstallResult:
        try:
            return self.install(skill_dir, root, final_name)
        except Exception as e:
            logger.exception("Installation failed for %s", final_name)
            return self._failure(final_name, str(e))

    def _read_command(self, command_file: Path, report: ProjectReport) -> str | None:
        try:
            size = self.fs.file_size(command_file)
            if size > self.max_file_size:
                raise ValueError(
                    f"File exceeds size limit ({self.max_file_size} bytes): {command_file.name}"
                )
            return self.fs.read_text(command_file)
        except (OSError, ValueError) as e:
            self.notify(f"Failed: {command_file.name}: {e}", "error")
            report.errors.append(self._failure(command_file.name, str(e)))
            return None

    def _install_command(
        self, content: str, final_name: str, agent: AgentTarget, commands_dir: Path
    ) -> InstallResult:
        if agent.command_format is None:
            return self._failure(final_name, f"{agent.display_name} does not support commands")
        try:
            converter = self.converter.get_converter(agent.command_format)
            self.fs.mkdir(commands_dir, parents=True, exist_ok=True)
            return self.install_file(
                converter.convert(content, final_name),
                commands_dir,
                converter.filename(final_name),
            )
        except Exception as e:
            logger.exception("Command installation failed for %s (%s)", final_name, agent.name)
            return self._failure(final_name, str(e))

    def _record(self, report: ProjectReport, result: InstallResult) -> None:
        report.add(result)
        if not result.success:
            self.notify(f"Failed: {result.name}: {result.error}", "error")
        elif result.replaced:
            self.notify(f"Replaced: {result.destination}", "success")
        else:
            self.notify(f"Installed: {result.destination}", "success")

    # Removal

    def remove_scoped(self, root: Path, suffix: str) -> list[str]:
        """Delete entries in ``root`` carrying exactly the ``@suffix`` scope.

        Directories and symlinks match on their name, regular files on their
        stem (``name@org_project.md``).

        Args:
            root: Directory to clean.
            suffix: Scope suffix ``org_project``.

        Returns:
            Names of removed entries.
        """
        removed: list[str] = []
        if not self.fs.is_dir(root):
            return removed

        for entry in self.fs.iterdir(root):
            is_file = not self.fs.is_symlink(entry) and not self.fs.is_dir(entry)
            candidate = entry.stem if is_file else entry.name
            if not matches_scope(candidate, suffix):
                continue
            try:
                self._remove_entry(entry)
            except OSError as e:
                self.notify(f"Failed to remove {entry}: {e}", "error")
                continue
            logger.debug("Removed %s", entry)
            removed.append(entry.name)
        return removed

    def prune_empty(self, path: Path, stop_at: Path) -> None:
        """Remove ``path`` and its empty parents up to (excluding) ``stop_at``."""
        current = path
        stop = stop_at.resolve()
        while self.fs.is_dir(current) and current.resolve() != stop:
            if self.fs.iterdir(current):
                return
            try:
                self.fs.rmdir(current)
            except OSError as e:
                logger.debug("Could not remove %s: %s", current, e)
                return
            current = current.parent

    # Symlinks

    def link_skills(
        self,
        central_dir: Path,
        agent_dir: Path,
        on_conflict: ConflictHandler | None = None,
    ) -> LinkReport:
        """Symlink every skill of the central store into an agent directory.

        Links are relative so the whole target directory can be moved. An
        existing symlink is replaced; a real directory of the same name is
        handed to ``on_conflict`` (skipped when no handler is given).

        Args:
            central_dir: Central skills store.
            agent_dir: Agent skills directory.
            on_conflict: Decides what to do with a conflicting directory.

        Returns:
            LinkReport for this agent.

        Raises:
            InstallAborted: If the conflict handler chooses to abort.
        """
        report = LinkReport()
        if not self.fs.is_dir(central_dir):
            return report
        self.fs.mkdir(agent_dir, parents=True, exist_ok=True)
        resolved_agent_dir = agent_dir.resolve()

        for skill in self.fs.iterdir(central_dir):
            name = skill.name
            if not self.fs.is_dir(skill) or name.startswith(TEMP_PREFIX):
                continue
            try:
                link = validate_target_path(agent_dir, name)
            except InvalidTargetPathError as e:
                report.errors.append(f"{name}: {e}")
                continue

            if self.fs.exists(link):
                action = ConflictAction.REPLACE
                if not self.fs.is_symlink(link):
                    action = on_conflict(link, name) if on_conflict else ConflictAction.SKIP
                if action is ConflictAction.ABORT:
                    raise InstallAborted(f"Aborted at {link}")
                if action is ConflictAction.SKIP:
                    self.notify(f"Skipped: {name} (existing directory in {agent_dir})", "warning")
                    report.skipped.append(name)
                    continue
                try:
                    self._remove_entry(link)
                except OSError as e:
                    report.errors.append(f"{name}: {e}")
                    continue

            relative = os.path.relpath(skill.resolve(), resolved_agent_dir)
            try:
                self.fs.symlink(link, relative)
            except OSError as e:
                self.notify(f"Failed to link {name}: {e}", "error")
                report.errors.append(f"{name}: {e}")
                continue
            report.linked.append(name)
        return report

    def remove_links(
        self, agent_dir: Path, central_dir: Path, suffix: str | None = None
    ) -> list[str]:
        """Remove symlinks in ``agent_dir`` that point into ``central_dir``.

        Args:
            agent_dir: Agent skills directory.
            central_dir: Central skills store.
            suffix: Only remove links carrying this ``org_project`` scope.

        Returns:
            Names of removed links.
        """
        removed: list[str] = []
        if not self.fs.is_dir(agent_dir):
            return removed

        store = os.path.normpath(central_dir.resolve()) + os.sep
        resolved_agent_dir = agent_dir.resolve()
        for entry in self.fs.iterdir(agent_dir):
            if not self.fs.is_symlink(entry):
                continue
            if suffix is not None and not matches_scope(entry.name, suffix):
                continue
            target = os.path.normpath(
                os.path.join(resolved_agent_dir, self.fs.readlink(entry))
            )
            if not target.startswith(store):
                continue
            try:
                self.fs.unlink(entry)
            except OSError as e:
                self.notify(f"Failed to remove {entry}: {e}", "error")
                continue
            removed.append(entry.name)
        return removed
