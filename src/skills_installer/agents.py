"""Supported AI coding agents and their directory conventions.

Each agent is a member of the closed :class:`Agent` enumeration and maps to
an :class:`AgentTarget` record holding its paths and command format as data.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class CommandFormat(str, Enum):
    """Native command file format of an agent."""

    MARKDOWN = "markdown"
    TOML = "toml"
    CODEX_PROMPT = "codex-prompt"
    WINDSURF_WORKFLOW = "windsurf-workflow"


class Agent(str, Enum):
    """Supported agents, in display order."""

    GEMINI = "gemini"
    COPILOT = "copilot"
    CURSOR = "cursor"
    OPENCODE = "opencode"
    AMP = "amp"
    GOOSE = "goose"
    FACTORY = "factory"
    CODEX = "codex"
    WINDSURF = "windsurf"
    CLAUDE = "claude"


@dataclass(frozen=True)
class AgentTarget:
    """Directory layout of one agent, relative to the target directory."""

    agent: Agent
    display_name: str
    marker_dir: str
    skills_path: str
    commands_path: str | None = None
    command_format: CommandFormat | None = None

    @property
    def name(self) -> str:
        return self.agent.value

    @property
    def supports_commands(self) -> bool:
        return self.commands_path is not None and self.command_format is not None

    def skills_dir(self, base_dir: Path) -> Path:
        """Skills directory of this agent under ``base_dir``."""
        return base_dir / self.skills_path

    def commands_dir(self, base_dir: Path) -> Path | None:
        """Commands directory under ``base_dir``, or None if unsupported."""
        if self.commands_path is None:
            return None
        return base_dir / self.commands_path

    def is_available(self, base_dir: Path) -> bool:
        """Check if this agent's marker directory exists under ``base_dir``."""
        return (base_dir / self.marker_dir).is_dir()


AGENTS: dict[Agent, AgentTarget] = {
    Agent.GEMINI: AgentTarget(
        Agent.GEMINI, "Gemini", ".gemini", ".gemini/skills", ".gemini/commands", CommandFormat.TOML
    ),
    Agent.COPILOT: AgentTarget(Agent.COPILOT, "Copilot", ".github", ".github/skills"),
    Agent.CURSOR: AgentTarget(
        Agent.CURSOR, "Cursor", ".cursor", ".cursor/skills", ".cursor/commands", CommandFormat.MARKDOWN
    ),
    Agent.OPENCODE: AgentTarget(
        # OpenCode uses singular directory names
        Agent.OPENCODE, "OpenCode", ".opencode", ".opencode/skill", ".opencode/command",
        CommandFormat.MARKDOWN,
    ),
    Agent.AMP: AgentTarget(
        Agent.AMP, "Amp", ".amp", ".amp/skills", ".amp/commands", CommandFormat.MARKDOWN
    ),
    Agent.GOOSE: AgentTarget(Agent.GOOSE, "Goose", ".goose", ".goose/skills"),
    Agent.FACTORY: AgentTarget(
        Agent.FACTORY, "Factory", ".factory", ".factory/skills", ".factory/commands",
        CommandFormat.MARKDOWN,
    ),
    Agent.CODEX: AgentTarget(
        Agent.CODEX, "Codex", ".codex", ".codex/skills", ".codex/prompts", CommandFormat.CODEX_PROMPT
    ),
    Agent.WINDSURF: AgentTarget(
        Agent.WINDSURF, "Windsurf", ".windsurf", ".windsurf/skills", ".windsurf/workflows",
        CommandFormat.WINDSURF_WORKFLOW,
    ),
    Agent.CLAUDE: AgentTarget(
        Agent.CLAUDE, "Claude", ".claude", ".claude/skills", ".claude/commands", CommandFormat.MARKDOWN
    ),
}

ALL_AGENT_NAMES = [agent.value for agent in Agent]


def get_agent(name: str) -> AgentTarget:
    """Get an agent target by name.

    Args:
        name: Agent identifier (case-insensitive).

    Returns:
        AgentTarget for the agent.

    Raises:
        ValueError: If the agent is not supported.
    """
    try:
        agent = Agent(name.strip().lower())
    except ValueError:
        raise ValueError(
            f"Unknown agent: {name}. Valid agents: {', '.join(ALL_AGENT_NAMES)}"
        ) from None
    return AGENTS[agent]


def parse_agents(value: str | None) -> list[AgentTarget]:
    """Parse a comma-separated agent list, keeping first-seen order.

    Raises:
        ValueError: If any agent is unknown.
    """
    if not value:
        return []
    targets: list[AgentTarget] = []
    for part in value.replace(" ", ",").split(","):
        if not part.strip():
            continue
        target = get_agent(part)
        if target not in targets:
            targets.append(target)
    return targets


def all_agents() -> list[AgentTarget]:
    """All agent targets in display order."""
    return [AGENTS[agent] for agent in Agent]


def detect_agents(base_dir: Path) -> list[AgentTarget]:
    """Agents whose marker directory exists under ``base_dir``."""
    return [target for target in all_agents() if target.is_available(base_dir)]
