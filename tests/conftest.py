"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

from skills_installer.agents import AGENTS, Agent, AgentTarget
from skills_installer.gitops import (
    DEFAULT_SPARSE_PATH,
    SPARSE_PATH_MARKER,
    FetchedSource,
    GitOpsError,
)
from skills_installer.install import Installer
from skills_installer.manifest import Manifest, Project
from skills_installer.types import InstallSession


def stage_project(
    root: Path,
    project: str,
    repository: str,
    skills: list[str] | None = None,
    commands: dict[str, str] | None = None,
) -> FetchedSource:
    """Lay out a project on disk the way a sparse clone does."""
    project_dir = root / project
    content_dir = project_dir / DEFAULT_SPARSE_PATH
    for skill in skills or []:
        skill_dir = content_dir / "skills" / skill
        skill_dir.mkdir(parents=True, exist_ok=True)
        (skill_dir / "SKILL.md").write_text(f"---\nname: {skill}\n---\n\n# {skill}\n")
    for name, content in (commands or {}).items():
        commands_dir = content_dir / "commands"
        commands_dir.mkdir(parents=True, exist_ok=True)
        (commands_dir / f"{name}.md").write_text(content)
    project_dir.mkdir(parents=True, exist_ok=True)
    (project_dir / SPARSE_PATH_MARKER).write_text(DEFAULT_SPARSE_PATH)
    return FetchedSource(
        project=project, repository=repository, root=project_dir, sparse_path=DEFAULT_SPARSE_PATH
    )


@pytest.fixture
def stage() -> Callable[..., FetchedSource]:
    """Return the helper that lays out a staged project on disk."""
    return stage_project


@pytest.fixture
def fake_fetcher() -> MagicMock:
    """Create a source fetcher double that stages canned content instead of cloning.

    ``add(project, skills, commands)`` registers a project's content,
    ``fail(project)`` makes fetching it raise GitOpsError and ``calls``
    records fetched project names in order.
    """
    content: dict[str, tuple[list[str], dict[str, str]]] = {}
    failing: set[str] = set()
    fetcher = MagicMock()
    fetcher.calls = []

    def add(
        project: str,
        skills: list[str] | None = None,
        commands: dict[str, str] | None = None,
    ) -> None:
        content[project] = (skills or [], commands or {})

    def fetch(project: str, repository: str, staging_dir: Path) -> FetchedSource:
        fetcher.calls.append(project)
        if project in failing:
            raise GitOpsError(f"Git operation failed for {project}: repository not found")
        skills, commands = content.get(project, ([], {}))
        return stage_project(staging_dir, project, repository, skills, commands)

    fetcher.add = add
    fetcher.fail = failing.add
    fetcher.fetch.side_effect = fetch
    return fetcher


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    """Create a temporary staging directory."""
    staging = tmp_path / "staging"
    staging.mkdir()
    return staging


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Create the directory that holds agent configuration directories."""
    target = tmp_path / "workspace"
    target.mkdir()
    return target


@pytest.fixture
def sample_manifest() -> Manifest:
    """Manifest with two related projects and an unrelated one."""
    return Manifest(
        projects=[
            Project(name="acp-harness", repository="plaited/acp-harness"),
            Project(name="development-skills", repository="plaited/development-skills"),
            Project(name="docs", repository="acme/docs"),
        ]
    )


@pytest.fixture
def session(staging_dir: Path, sample_manifest: Manifest) -> InstallSession:
    """Create an empty install session for the sample manifest."""
    return InstallSession(staging_dir=staging_dir, known_projects=frozenset(sample_manifest.names))


@pytest.fixture
def installer() -> Installer:
    """Create an installer with real filesystem and converters."""
    return Installer.create()


@pytest.fixture
def claude() -> AgentTarget:
    return AGENTS[Agent.CLAUDE]


@pytest.fixture
def gemini() -> AgentTarget:
    return AGENTS[Agent.GEMINI]


@pytest.fixture
def copilot() -> AgentTarget:
    return AGENTS[Agent.COPILOT]


# ============================================================================
# Mock FileSystem Fixture
# ============================================================================


@pytest.fixture
def mock_filesystem() -> MagicMock:
    """Create a mock FileSystem for testing.

    The mock tracks all filesystem operations without touching real files.
    """
    fs = MagicMock()
    fs.exists.return_value = False
    fs.is_dir.return_value = False
    fs.is_symlink.return_value = False
    fs.read_text.return_value = ""
    return fs


# ============================================================================
# Sample Content Fixtures
# ============================================================================


@pytest.fixture
def sample_command_content() -> str:
    """Sample command file with frontmatter and an argument placeholder."""
    return """---
name: review
description: Review the current changes
allowed-tools: Bash, Read
---

# Review Changes

Review the staged changes for $ARGUMENTS and report problems.
"""


@pytest.fixture
def sample_plain_command_content() -> str:
    """Sample command file without frontmatter."""
    return """# Summarize File

Summarize $1 in three sentences, focusing on $FOCUS.
"""
