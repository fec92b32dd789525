"""Command format conversion.

This module converts canonical markdown commands (optional ``---``
frontmatter followed by a prompt body) into each agent's native format using
the Strategy pattern. Each :class:`CommandFormat` has a dedicated converter;
all converters are pure functions of their input.

Pattern: Strategy - encapsulates varying conversion algorithms, allowing
new formats to be added without modifying the engine.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

import yaml

from skills_installer.agents import CommandFormat
from skills_installer.config import MAX_WORKFLOW_LENGTH
from skills_installer.validation import FrontmatterResult, parse_frontmatter

ARGUMENTS_PLACEHOLDER = "$ARGUMENTS"
GEMINI_ARGS_PLACEHOLDER = "{{args}}"

# $ARGUMENTS, $1..$9 and $UPPER_CASE named placeholders
PLACEHOLDER_PATTERN = re.compile(r"\$([1-9]|[A-Z][A-Z0-9_]*)")
NUMBERED_STEP_PATTERN = re.compile(r"^\s*\d+[.)]\s+\S")
HEADING_PATTERN = re.compile(r"^#{1,6}\s+")

TRUNCATION_MARKER = "\n\n[... content truncated ...]"


def title_from_name(name: str) -> str:
    """Derive a human title from a command file name.

    Example:
        >>> title_from_name("review-pull_request")
        'Review Pull Request'
    """
    words = re.split(r"[-_\s]+", name.split("@", 1)[0])
    return " ".join(word.capitalize() for word in words if word) or name


def first_line(body: str) -> str | None:
    """First non-empty line of a body, without heading markers."""
    for line in body.splitlines():
        text = HEADING_PATTERN.sub("", line.strip()).strip()
        if text:
            return text
    return None


def resolve_description(parsed: FrontmatterResult, name: str) -> str:
    """Explicit description, else first heading/line, else the file title."""
    description = parsed.data.get("description", "").strip()
    if description:
        return description
    return first_line(parsed.body) or title_from_name(name)


def find_placeholders(body: str) -> list[str]:
    """Unique argument placeholders in order of first appearance."""
    found: list[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(body):
        token = match.group(0)
        if token not in found:
            found.append(token)
    return found


def _create_frontmatter_string(frontmatter: dict) -> str:
    """Create frontmatter string from dict.

    Args:
        frontmatter: Frontmatter dictionary.

    Returns:
        YAML frontmatter string with delimiters.
    """
    yaml_str = yaml.safe_dump(
        frontmatter, default_flow_style=False, sort_keys=False, allow_unicode=True, width=1000
    )
    return f"---\n{yaml_str}---\n\n"


class BaseCommandConverter(ABC):
    """Base class for command conversion strategies."""

    command_format: CommandFormat
    file_extension = ".md"

    def convert(self, content: str, name: str) -> str:
        """Convert a canonical markdown command.

        Args:
            content: Markdown command with optional frontmatter.
            name: Command name (file stem) used for fallback titles.

        Returns:
            Command text in the target format.
        """
        return self.render(parse_frontmatter(content), name)

    @abstractmethod
    def render(self, parsed: FrontmatterResult, name: str) -> str:
        """Render parsed frontmatter and body in the target format."""
        ...

    def filename(self, name: str) -> str:
        """File name for a command in this format."""
        return f"{name}{self.file_extension}"


class MarkdownConverter(BaseCommandConverter):
    """Passthrough for agents that read canonical markdown commands."""

    command_format = CommandFormat.MARKDOWN

    def convert(self, content: str, name: str) -> str:
        """Return content unchanged."""
        return content

    def render(self, parsed: FrontmatterResult, name: str) -> str:
        return parsed.body


class TomlConverter(BaseCommandConverter):
    """Convert commands to Gemini CLI TOML."""

    command_format = CommandFormat.TOML
    file_extension = ".toml"

    @staticmethod
    def _escape_basic(value: str) -> str:
        return value.replace("\\", "\\\\").replace('"', '\\"')

    @staticmethod
    def _escape_multiline(value: str) -> str:
        return value.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')

    def render(self, parsed: FrontmatterResult, name: str) -> str:
        body = parsed.body.strip("\n").replace(ARGUMENTS_PLACEHOLDER, GEMINI_ARGS_PLACEHOLDER)

        lines: list[str] = []
        description = parsed.data.get("description", "").strip()
        if description:
            lines.append(f'description = "{self._escape_basic(description)}"')
            lines.append("")
        lines.append('prompt = """')
        lines.append(self._escape_multiline(body))
        lines.append('"""')
        return "\n".join(lines) + "\n"


class CodexPromptConverter(BaseCommandConverter):
    """Convert commands to Codex custom prompts.

    Codex reads ``description`` and ``argument-hint`` from the frontmatter;
    other keys are dropped.
    """

    command_format = CommandFormat.CODEX_PROMPT

    @staticmethod
    def _hint_for(token: str) -> str:
        if token == ARGUMENTS_PLACEHOLDER:
            return "[arguments]"
        if token[1:].isdigit():
            return f"[arg{token[1:]}]"
        return f"{token[1:]}=<{token[1:].lower()}>"

    def render(self, parsed: FrontmatterResult, name: str) -> str:
        frontmatter: dict[str, str] = {"description": resolve_description(parsed, name)}

        hint = parsed.data.get("argument-hint", "").strip()
        if not hint:
            hint = " ".join(self._hint_for(t) for t in find_placeholders(parsed.body))
        if hint:
            frontmatter["argument-hint"] = hint

        return _create_frontmatter_string(frontmatter) + parsed.body.lstrip("\n")


class WindsurfWorkflowConverter(BaseCommandConverter):
    """Convert commands to Windsurf workflow markdown."""

    command_format = CommandFormat.WINDSURF_WORKFLOW

    def __init__(self, max_length: int = MAX_WORKFLOW_LENGTH) -> None:
        """Initialize with the maximum body length in characters."""
        self.max_length = max_length

    def _truncate(self, body: str) -> str:
        if len(body) <= self.max_length:
            return body
        keep = max(self.max_length - len(TRUNCATION_MARKER), 0)
        return body[:keep].rstrip() + TRUNCATION_MARKER

    @staticmethod
    def _starts_with_steps(body: str) -> bool:
        for line in body.splitlines():
            if line.strip():
                return NUMBERED_STEP_PATTERN.match(line) is not None
        return False

    @staticmethod
    def _split_heading(body: str) -> tuple[str | None, str]:
        """Split a leading heading line off the body."""
        lines = body.splitlines()
        for index, line in enumerate(lines):
            if not line.strip():
                continue
            if HEADING_PATTERN.match(line.strip()):
                heading = HEADING_PATTERN.sub("", line.strip()).strip()
                return heading or None, "\n".join(lines[index + 1 :]).strip("\n")
            break
        return None, body

    def render(self, parsed: FrontmatterResult, name: str) -> str:
        description = resolve_description(parsed, name)
        heading, body = self._split_heading(parsed.body.strip("\n"))
        title = heading or parsed.data.get("name", "").strip() or title_from_name(name)

        body = self._truncate(body)
        if not self._starts_with_steps(body):
            body = f"## Instructions\n\n{body}"

        return (
            _create_frontmatter_string({"description": description})
            + f"# {title}\n\n{body}\n"
        )


class ConverterEngine:
    """Looks up the converter for an agent's command format.

    Converters are registered in a lookup table, allowing new formats
    to be added without modifying convert().
    """

    def __init__(self, max_workflow_length: int = MAX_WORKFLOW_LENGTH) -> None:
        """Initialize engine with the built-in converters."""
        self._converters: dict[CommandFormat, BaseCommandConverter] = {}
        for converter in (
            MarkdownConverter(),
            TomlConverter(),
            CodexPromptConverter(),
            WindsurfWorkflowConverter(max_workflow_length),
        ):
            self.register(converter)

    def register(self, converter: BaseCommandConverter) -> None:
        """Register (or replace) the converter for its format."""
        self._converters[converter.command_format] = converter

    def get_converter(self, command_format: CommandFormat) -> BaseCommandConverter:
        """Get the converter for a format.

        Raises:
            ValueError: If no converter is registered for the format.
        """
        converter = self._converters.get(command_format)
        if converter is None:
            raise ValueError(f"No converter registered for {command_format.value}")
        return converter

    def convert(self, content: str, name: str, command_format: CommandFormat) -> str:
        """Convert command content into ``command_format``."""
        return self.get_converter(command_format).convert(content, name)
