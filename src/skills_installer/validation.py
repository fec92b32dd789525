"""Validation utilities for skills-installer.

This module provides the frontmatter parser shared by the command converters
and the security checks applied to every derived path before it touches the
filesystem.
"""

from __future__ import annotations

import re
from pathlib import Path

FRONTMATTER_DELIMITER = "---"

# owner/repo, each part limited to a safe character set
REPOSITORY_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+/[a-zA-Z0-9._-]+$")
SAFE_COMPONENT_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")
SAFE_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9._/-]+$")


class InvalidTargetPathError(ValueError):
    """Raised when an install target would escape its destination root."""


class FrontmatterResult:
    """Result of parsing frontmatter from content."""

    __slots__ = ("body", "data", "errors", "has_frontmatter", "success")

    def __init__(
        self,
        data: dict[str, str] | None = None,
        body: str = "",
        has_frontmatter: bool = False,
        errors: list[str] | None = None,
    ) -> None:
        """Initialize frontmatter result.

        Args:
            data: Parsed ``key: value`` pairs from the frontmatter block.
            body: Content after the closing delimiter (or the whole input).
            has_frontmatter: True if a complete frontmatter block was found.
            errors: List of parsing errors encountered.
        """
        self.data = data or {}
        self.body = body
        self.has_frontmatter = has_frontmatter
        self.errors = errors or []
        self.success = len(self.errors) == 0


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_frontmatter(content: str) -> FrontmatterResult:
    """Parse ``key: value`` frontmatter from markdown content.

    The first line must be exactly ``---``; subsequent lines are read as
    ``key: value`` pairs until a second ``---`` line. The body is everything
    after the closing delimiter. Content without frontmatter, or with an
    unclosed block, is returned whole as the body.

    Args:
        content: The full markdown content with optional frontmatter.

    Returns:
        FrontmatterResult with the parsed fields and body.

    Example:
        >>> result = parse_frontmatter("---\\nname: test\\n---\\nBody")
        >>> result.data
        {'name': 'test'}
        >>> result.body
        'Body'
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FRONTMATTER_DELIMITER:
        return FrontmatterResult(body=content)

    data: dict[str, str] = {}
    for index, line in enumerate(lines[1:], start=1):
        stripped = line.rstrip("\r\n")
        if stripped == FRONTMATTER_DELIMITER:
            body = "".join(lines[index + 1 :])
            return FrontmatterResult(data=data, body=body, has_frontmatter=True)
        key, sep, value = stripped.partition(":")
        key = key.strip()
        if sep and key and " " not in key:
            data[key] = _unquote(value.strip())

    return FrontmatterResult(
        body=content, errors=["Invalid frontmatter: missing closing ---"]
    )


def validate_repository(repository: str) -> str | None:
    """Check a repository reference of the form ``owner/repo``.

    Returns:
        Error message if invalid, None if valid.
    """
    if ".." in repository:
        return f"Invalid repository path (path traversal detected): {repository}"
    if not REPOSITORY_PATTERN.match(repository):
        return f"Invalid repository format: {repository} (expected: owner/repo)"
    return None


def validate_scope_component(component: str) -> bool:
    """Check an org or project name used to build a scope suffix."""
    if not component or ".." in component or component.startswith("/"):
        return False
    return SAFE_COMPONENT_PATTERN.match(component) is not None


def validate_sparse_path(sparse_path: str) -> bool:
    """Check a recorded sparse-checkout path.

    Only relative paths built from alphanumerics, dots, hyphens, underscores
    and forward slashes are accepted.
    """
    if not sparse_path or ".." in sparse_path or sparse_path.startswith("/"):
        return False
    return SAFE_PATH_PATTERN.match(sparse_path) is not None


def is_simple_name(name: str) -> bool:
    """Check that a name is a single path component without traversal."""
    if not name or name in (".", ".."):
        return False
    if "/" in name or "\\" in name or ".." in name:
        return False
    return True


def validate_target_path(dest_root: Path, final_name: str) -> Path:
    """Compute ``dest_root/final_name`` and prove it is a direct child.

    Args:
        dest_root: Existing destination directory.
        final_name: Name of the entry to create inside ``dest_root``.

    Returns:
        The validated target path.

    Raises:
        InvalidTargetPathError: If the name is not a simple component or the
            target's resolved parent is not the resolved destination root.
    """
    if not is_simple_name(final_name):
        raise InvalidTargetPathError(f"Invalid target name: {final_name!r}")
    if not dest_root.is_dir():
        raise InvalidTargetPathError(f"Destination does not exist: {dest_root}")

    resolved_root = dest_root.resolve()
    target = dest_root / final_name
    if target.parent.resolve() != resolved_root:
        raise InvalidTargetPathError(f"Target escapes destination: {target}")
    return target
