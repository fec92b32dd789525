"""Rich console output and prompts."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from skills_installer.agents import AgentTarget, all_agents
from skills_installer.install import ConflictAction

if TYPE_CHECKING:
    from skills_installer.install import Destination
    from skills_installer.types import InstallSession, LinkReport


class TUI:
    """Console presentation for the installer."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None) -> None:
        """Initialize with output and error consoles.

        Args:
            console: Console for regular output (stdout).
            err_console: Console for errors (stderr).
        """
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def show_header(self, title: str, subtitle: str) -> None:
        """Display a banner panel."""
        self.console.print(
            Panel(f"[bold blue]{title}[/bold blue]\n{subtitle}", border_style="blue")
        )

    def show_success(self, message: str) -> None:
        """Show success message.

        Args:
            message: Success message.
        """
        self.console.print(f"[green]✓[/green] {message}")

    def show_error(self, message: str) -> None:
        """Show error message on stderr.

        Args:
            message: Error message.
        """
        self.err_console.print(f"[red]✗[/red] {message}")

    def show_warning(self, message: str) -> None:
        """Show warning message.

        Args:
            message: Warning message.
        """
        self.console.print(f"[yellow]![/yellow] {message}")

    def show_info(self, message: str) -> None:
        """Show info message.

        Args:
            message: Info message.
        """
        self.console.print(f"[blue]i[/blue] {message}")

    def notify(self, message: str, severity: str = "info") -> None:
        """Progress callback used by the resolver and installer."""
        handlers = {
            "success": self.show_success,
            "error": self.show_error,
            "warning": self.show_warning,
        }
        handlers.get(severity, self.show_info)(message)

    def show_projects(self, names: list[str]) -> None:
        """List the projects available in the manifest."""
        self.console.print("[bold]Available Projects:[/bold]")
        for name in names:
            self.console.print(f"  - {name}")

    def show_install_summary(
        self,
        session: InstallSession,
        destination: Destination,
        link_reports: dict[str, LinkReport],
    ) -> None:
        """Display the result of an install run.

        Args:
            session: Completed install session.
            destination: Where content was installed.
            link_reports: Symlink results keyed by agent name (central mode).
        """
        if session.reports:
            table = Table(title="Installed Projects")
            table.add_column("Project", style="cyan")
            table.add_column("Installed", justify="right")
            table.add_column("Skipped", justify="right")
            table.add_column("Errors", justify="right")
            for project in session.order:
                report = session.reports[project]
                table.add_row(
                    project,
                    str(len(report.installed)),
                    str(len(report.skipped)),
                    str(len(report.errors)),
                )
            self.console.print(table)

        lines = [
            f"Projects installed: {len(session.installed)}",
            f"Skills installed: {session.skills_installed}",
        ]
        if destination.linked:
            lines.append(f"Central storage: {destination.central_dir}/")
            lines.append("Symlinked to:")
            for agent in destination.agents:
                report = link_reports.get(agent.name)
                count = len(report.linked) if report else 0
                skills_dir = agent.skills_dir(destination.base_dir)
                lines.append(f"  {agent.display_name}: {skills_dir}/ ({count})")
        else:
            lines.append("Copied to:")
            for root in destination.skills_roots:
                lines.append(f"  {root}/")
        self.console.print(
            Panel("\n".join(lines), title="Installation Complete!", border_style="green")
        )

        if session.failed:
            self.show_warning(
                f"Some dependencies failed to install: {', '.join(sorted(session.failed))}. "
                "Re-run to retry."
            )

    def show_uninstall_summary(
        self, links_removed: int, skills_removed: int, commands_removed: int
    ) -> None:
        """Display the result of an uninstall run."""
        if not (links_removed or skills_removed or commands_removed):
            self.show_info("No installed skills found to uninstall")
            return
        self.console.print(
            Panel(
                f"Symlinks removed: {links_removed}\n"
                f"Skills removed: {skills_removed}\n"
                f"Commands removed: {commands_removed}",
                title="Uninstall Complete!",
                border_style="green",
            )
        )

    def select_agents(self, detected: list[AgentTarget]) -> str:
        """Prompt for target agents, with detected agents preselected.

        Args:
            detected: Agents found in the target directory.

        Returns:
            Comma-separated agent names as entered.
        """
        self.console.print("\nAvailable agents:")
        detected_names = [agent.name for agent in detected]
        for agent in all_agents():
            mark = "[green]✓[/green]" if agent.name in detected_names else " "
            self.console.print(f"  {mark} {agent.name} ({agent.display_name})")
        return Prompt.ask(
            "Target agents (comma-separated)",
            default=",".join(detected_names) or None,
        )

    def confirm_conflict(self, path: Path, name: str) -> ConflictAction:
        """Ask what to do with an existing directory where a link should go.

        Args:
            path: Conflicting path.
            name: Skill name.

        Returns:
            Chosen action (skip by default).
        """
        self.show_warning(f"{path} already exists and is not a symlink")
        choice = Prompt.ask(
            f"Replace {name} with a link? (r)eplace/(s)kip/(a)bort",
            choices=["r", "s", "a"],
            default="s",
        )
        return {
            "r": ConflictAction.REPLACE,
            "a": ConflictAction.ABORT,
        }.get(choice, ConflictAction.SKIP)
