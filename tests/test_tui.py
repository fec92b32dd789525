"""Tests for TUI module."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from skills_installer.agents import get_agent
from skills_installer.install import ConflictAction, Destination
from skills_installer.tui import TUI
from skills_installer.types import InstallResult, InstallSession, LinkReport, ProjectReport


@pytest.fixture
def tui() -> TUI:
    """Create a TUI writing into string buffers."""
    return TUI(
        console=Console(file=io.StringIO(), width=200),
        err_console=Console(file=io.StringIO(), width=200),
    )


def out(tui: TUI) -> str:
    return tui.console.file.getvalue()


def err(tui: TUI) -> str:
    return tui.err_console.file.getvalue()


def _session(tmp_path: Path) -> InstallSession:
    session = InstallSession(staging_dir=tmp_path)
    report = ProjectReport(project="docs")
    report.add(InstallResult(success=True, name="writing@acme_docs", destination=tmp_path))
    report.skipped.append("x@plaited_other (will install from other)")
    session.reports["docs"] = report
    session.mark_installed("docs")
    return session


class TestMessages:
    """Tests for status message helpers."""

    def test_success(self, tui: TUI) -> None:
        tui.show_success("Installed: x")
        assert "✓ Installed: x" in out(tui)

    def test_error_goes_to_stderr(self, tui: TUI) -> None:
        tui.show_error("Failed: x")
        assert "✗ Failed: x" in err(tui)
        assert out(tui) == ""

    @pytest.mark.parametrize(
        ("severity", "symbol"),
        [("success", "✓"), ("warning", "!"), ("info", "i"), ("unexpected", "i")],
    )
    def test_notify_dispatch(self, tui: TUI, severity: str, symbol: str) -> None:
        tui.notify("message", severity)
        assert f"{symbol} message" in out(tui)

    def test_notify_error(self, tui: TUI) -> None:
        tui.notify("broken", "error")
        assert "✗ broken" in err(tui)

    def test_show_projects(self, tui: TUI) -> None:
        tui.show_projects(["acp-harness", "docs"])
        assert out(tui).splitlines() == ["Available Projects:", "  - acp-harness", "  - docs"]


class TestInstallSummary:
    """Tests for show_install_summary."""

    def test_central_mode(self, tui: TUI, tmp_path: Path) -> None:
        claude = get_agent("claude")
        destination = Destination.central(tmp_path, Path(".plaited") / "skills", [claude])

        tui.show_install_summary(
            _session(tmp_path), destination, {"claude": LinkReport(linked=["writing@acme_docs"])}
        )

        text = out(tui)
        assert "Installed Projects" in text
        assert "Installation Complete!" in text
        assert "Projects installed: 1" in text
        assert "Skills installed: 1" in text
        assert "Symlinked to:" in text
        assert f"{claude.skills_dir(tmp_path)}/ (1)" in text

    def test_copy_mode(self, tui: TUI, tmp_path: Path) -> None:
        destination = Destination.copy(tmp_path, [get_agent("cursor")])

        tui.show_install_summary(_session(tmp_path), destination, {})

        assert "Copied to:" in out(tui)
        assert "Symlinked to:" not in out(tui)

    def test_failed_dependencies_warning(self, tui: TUI, tmp_path: Path) -> None:
        session = _session(tmp_path)
        session.mark_failed("development-skills")

        tui.show_install_summary(session, Destination.copy(tmp_path, []), {})

        assert "Some dependencies failed to install: development-skills" in out(tui)


class TestUninstallSummary:
    """Tests for show_uninstall_summary."""

    def test_counts(self, tui: TUI) -> None:
        tui.show_uninstall_summary(2, 3, 1)
        text = out(tui)
        assert "Uninstall Complete!" in text
        assert "Symlinks removed: 2" in text
        assert "Commands removed: 1" in text

    def test_nothing_removed(self, tui: TUI) -> None:
        tui.show_uninstall_summary(0, 0, 0)
        assert "No installed skills found to uninstall" in out(tui)


class TestPrompts:
    """Tests for interactive prompts."""

    def test_select_agents_preselects_detected(self, tui: TUI) -> None:
        with patch("skills_installer.tui.Prompt.ask", return_value="claude") as ask:
            result = tui.select_agents([get_agent("claude"), get_agent("cursor")])

        assert result == "claude"
        assert ask.call_args.kwargs["default"] == "claude,cursor"
        assert "windsurf (Windsurf)" in out(tui)

    def test_select_agents_without_detection(self, tui: TUI) -> None:
        with patch("skills_installer.tui.Prompt.ask", return_value="gemini") as ask:
            tui.select_agents([])
        assert ask.call_args.kwargs["default"] is None

    @pytest.mark.parametrize(
        ("choice", "action"),
        [("r", ConflictAction.REPLACE), ("s", ConflictAction.SKIP), ("a", ConflictAction.ABORT)],
    )
    def test_confirm_conflict(
        self, tui: TUI, tmp_path: Path, choice: str, action: ConflictAction
    ) -> None:
        with patch("skills_installer.tui.Prompt.ask", return_value=choice):
            assert tui.confirm_conflict(tmp_path / "x", "x") is action
        assert "already exists and is not a symlink" in out(tui)
