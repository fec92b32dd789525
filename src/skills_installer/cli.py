"""CLI entry point using Typer."""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import click
import typer
from rich.console import Console

from skills_installer import __version__
from skills_installer.agents import AgentTarget, all_agents, detect_agents, parse_agents
from skills_installer.config import ENV_PREFIX, InstallerConfig
from skills_installer.context import create_context
from skills_installer.install import ConflictHandler, Destination, InstallAborted
from skills_installer.manifest import Manifest, ManifestError
from skills_installer.resolver import DependencyResolver
from skills_installer.scoping import ScopeError, scope_suffix
from skills_installer.tui import TUI
from skills_installer.types import LinkReport

if TYPE_CHECKING:
    from skills_installer.context import AppContext

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="skills-installer",
    help="Install skills and commands from git repositories into AI coding agents",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
tui = TUI(console=console)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"skills-installer v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Enable debug logging with ``--verbose`` or ``SKILLS_INSTALLER_DEBUG``."""
    if verbose or os.environ.get(f"{ENV_PREFIX}DEBUG"):
        logging.basicConfig(
            level=logging.DEBUG,
            format="[DEBUG %(name)s:%(lineno)d] %(message)s",
            force=True,
        )


# ============================================================================
# Helpers
# ============================================================================


def _load_manifest(ctx: AppContext) -> Manifest | None:
    """Load the manifest, reporting failures."""
    try:
        return ctx.manifest_source.load()
    except ManifestError as e:
        tui.show_error(str(e))
        return None


def resolve_targets(
    agents: str | None,
    base_dir: Path,
    interactive: bool,
    default_all: bool = False,
) -> list[AgentTarget] | None:
    """Work out which agents to target.

    Explicit agents win. Otherwise the user is prompted (interactive) or
    agents are detected from marker directories in ``base_dir``.

    Args:
        agents: Comma-separated agent names from the command line.
        base_dir: Directory holding the agent directories.
        interactive: Whether prompting is possible.
        default_all: Target every agent when none are given.

    Returns:
        Target agents, or None after an error was reported.
    """
    if not agents and default_all:
        return all_agents()

    if not agents:
        detected = detect_agents(base_dir)
        if interactive:
            agents = tui.select_agents(detected)
        elif detected:
            tui.show_info(f"Detected agents: {', '.join(a.name for a in detected)}")
            return detected

    try:
        targets = parse_agents(agents)
    except ValueError as e:
        tui.show_error(str(e))
        return None

    if not targets:
        tui.show_error("No agents specified and none detected")
        tui.show_info("Pass --agents with a comma-separated list, e.g. --agents claude,cursor")
        return None
    return targets


# ============================================================================
# Operations
# ============================================================================


def run_list(ctx: AppContext) -> int:
    """Print the projects in the manifest.

    Returns:
        Exit code.
    """
    manifest = _load_manifest(ctx)
    if manifest is None:
        return 1
    tui.show_projects(manifest.names)
    return 0


def run_install(
    ctx: AppContext,
    targets: list[AgentTarget],
    base_dir: Path,
    project: str | None = None,
    copy: bool = False,
    on_conflict: ConflictHandler | None = None,
) -> int:
    """Install projects (and their dependencies) for the target agents.

    Args:
        ctx: Application context.
        targets: Target agents.
        base_dir: Directory holding the agent directories.
        project: Install only this project (dependencies still follow).
        copy: Copy skills into every agent instead of linking a central store.
        on_conflict: Decides what to do when a real directory blocks a link.

    Returns:
        Exit code: 0 if at least one project installed, else 1.
    """
    manifest = _load_manifest(ctx)
    if manifest is None:
        return 1
    if project is not None and project not in manifest:
        tui.show_error(f"Project not found: {project}")
        return 1

    if copy:
        destination = Destination.copy(base_dir, targets)
    else:
        destination = Destination.central(base_dir, ctx.config.central_dir, targets)

    tui.show_header(
        "Skills Installer",
        f"Installing for: {', '.join(t.display_name for t in targets)}",
    )
    resolver = DependencyResolver(
        manifest, ctx.gitops, ctx.installer, destination, notify=tui.notify
    )
    projects = [project] if project else manifest.names

    with tempfile.TemporaryDirectory(prefix="skills-installer-") as staging:
        session = resolver.new_session(Path(staging))
        installed = 0
        for name in projects:
            if resolver.resolve(name, session).installed:
                installed += 1

    if installed == 0:
        tui.show_error("No projects installed")
        return 1

    link_reports: dict[str, LinkReport] = {}
    if destination.central_dir is not None:
        for target in targets:
            try:
                link_reports[target.name] = ctx.installer.link_skills(
                    destination.central_dir, target.skills_dir(base_dir), on_conflict
                )
            except InstallAborted:
                tui.show_error("Installation aborted")
                return 1

    tui.show_install_summary(session, destination, link_reports)
    return 0


def run_uninstall(
    ctx: AppContext,
    targets: list[AgentTarget],
    base_dir: Path,
    project: str | None = None,
) -> int:
    """Remove installed scoped content from the target agents.

    Removes symlinks into the central store, scoped skills and commands in
    each agent directory, and scoped skills in the central store. Empty
    central directories are removed afterwards.

    Args:
        ctx: Application context.
        targets: Agents to clean up.
        base_dir: Directory holding the agent directories.
        project: Only remove this project's content.

    Returns:
        Exit code.
    """
    manifest = _load_manifest(ctx)
    if manifest is None:
        return 1
    if project is not None and project not in manifest:
        tui.show_error(f"Project not found: {project}")
        return 1

    suffixes: list[str] = []
    for name in [project] if project else manifest.names:
        try:
            suffixes.append(scope_suffix(manifest.get_repository(name) or ""))
        except ScopeError as e:
            tui.show_warning(f"Could not generate scope for project {name}: {e}")
    if project is not None and not suffixes:
        return 1

    installer = ctx.installer
    central_dir = base_dir / ctx.config.central_dir
    link_suffix = suffixes[0] if project else None
    links_removed = skills_removed = commands_removed = 0

    tui.show_info("Removing skills from agent directories...")
    for target in targets:
        skills_dir = target.skills_dir(base_dir)
        links_removed += len(installer.remove_links(skills_dir, central_dir, link_suffix))
        commands_dir = target.commands_dir(base_dir)
        for suffix in suffixes:
            skills_removed += len(installer.remove_scoped(skills_dir, suffix))
            if commands_dir is not None:
                commands_removed += len(installer.remove_scoped(commands_dir, suffix))

    tui.show_info("Removing skills from central storage...")
    for suffix in suffixes:
        skills_removed += len(installer.remove_scoped(central_dir, suffix))
    installer.prune_empty(central_dir, stop_at=base_dir)

    tui.show_uninstall_summary(links_removed, skills_removed, commands_removed)
    return 0


# ============================================================================
# Command
# ============================================================================


@app.command()
def install(
    agents: Annotated[
        str | None,
        typer.Option(
            "--agents", "--agent", "-a", help="Target agents (comma-separated)"
        ),
    ] = None,
    project: Annotated[
        str | None, typer.Option("--project", "-p", help="Install a single project")
    ] = None,
    list_projects: Annotated[
        bool, typer.Option("--list", help="List available projects and exit")
    ] = False,
    uninstall: Annotated[
        bool, typer.Option("--uninstall", help="Remove installed skills and commands")
    ] = False,
    copy: Annotated[
        bool, typer.Option("--copy", help="Copy skills into each agent instead of symlinking")
    ] = False,
    target_dir: Annotated[
        Path, typer.Option("--target-dir", help="Directory holding the agent directories")
    ] = Path("."),
    manifest: Annotated[
        Path | None, typer.Option("--manifest", help="Local projects.json to use")
    ] = None,
    branch: Annotated[
        str | None, typer.Option("--branch", help="Branch to fetch (default: main)")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", callback=version_callback, is_eager=True, help="Show version and exit"
        ),
    ] = False,
) -> None:
    """Install skills and commands into AI coding agent directories."""
    configure_logging(verbose)
    config = InstallerConfig.from_env(manifest_path=manifest, branch=branch)
    ctx = create_context(config, notify=tui.notify)
    base_dir = target_dir.expanduser()

    if list_projects:
        raise typer.Exit(run_list(ctx))

    interactive = sys.stdin.isatty() and not uninstall
    targets = resolve_targets(agents, base_dir, interactive, default_all=uninstall)
    if targets is None:
        raise typer.Exit(1)

    if uninstall:
        raise typer.Exit(run_uninstall(ctx, targets, base_dir, project))

    on_conflict = tui.confirm_conflict if interactive else None
    raise typer.Exit(run_install(ctx, targets, base_dir, project, copy, on_conflict))


def main() -> int:
    """Console script entry point.

    Usage errors exit with status 1.
    """
    try:
        result = app(standalone_mode=False)
    except click.UsageError as e:
        e.show()
        return 1
    except click.Abort:
        tui.show_error("Aborted")
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    sys.exit(main())
