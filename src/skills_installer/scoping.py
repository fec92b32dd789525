"""Collision-safe naming for skills and commands.

Every unscoped skill folder or command file is renamed to
``name@org_project`` so that content from different repositories can share
one directory. Names that already carry a scope are preserved as-is; callers
check :func:`is_scoped` before calling :func:`scope_name`, which does not
guard against scoping twice.
"""

from __future__ import annotations

import re

from skills_installer.validation import validate_scope_component

SCOPED_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9._-]+_[a-zA-Z0-9._-]+$")


class ScopeError(ValueError):
    """Raised when a repository reference cannot produce a scope suffix."""


def is_scoped(identifier: str) -> bool:
    """Check if an identifier already has an ``@org_project`` suffix."""
    return SCOPED_NAME_PATTERN.match(identifier) is not None


def split_repository(repository: str) -> tuple[str, str]:
    """Split ``org/project`` into its two components.

    Raises:
        ScopeError: If either component is missing or unsafe, or if the org
            contains ``_`` (which would make the suffix ambiguous).
    """
    org, sep, project = repository.partition("/")
    if not sep or not validate_scope_component(org) or not validate_scope_component(project):
        raise ScopeError(f"Invalid scope components in repository: {repository}")
    if "/" in project:
        raise ScopeError(f"Invalid scope components in repository: {repository}")
    # The project is recovered from the text after the first "_", so an
    # underscore in the org would shift that boundary.
    if "_" in org:
        raise ScopeError(f"Organization name may not contain '_': {org}")
    return org, project


def scope_suffix(repository: str) -> str:
    """Build the ``org_project`` suffix for a repository reference."""
    org, project = split_repository(repository)
    return f"{org}_{project}"


def scope_name(identifier: str, repository: str) -> str:
    """Append the repository's scope to an unscoped identifier.

    Raises:
        ScopeError: If the identifier holds ``@`` or characters outside
            ``[A-Za-z0-9._-]``, or the repository cannot be scoped.

    Example:
        >>> scope_name("typescript-lsp", "plaited/development-skills")
        'typescript-lsp@plaited_development-skills'
    """
    # The result must satisfy is_scoped, or scope-based removal cannot find it.
    if "@" in identifier or not validate_scope_component(identifier):
        raise ScopeError(f"Invalid characters in name: {identifier!r}")
    return f"{identifier}@{scope_suffix(repository)}"


def referenced_project(identifier: str) -> str | None:
    """Recover the project name from a scoped identifier.

    Takes the text after the ``@``, then the text after the first ``_``.

    Example:
        >>> referenced_project("code-documentation@plaited_development-skills")
        'development-skills'
    """
    if not is_scoped(identifier):
        return None
    scope_part = identifier.rsplit("@", 1)[1]
    _, sep, project = scope_part.partition("_")
    if not sep or not project:
        return None
    return project


def matches_scope(entry_name: str, suffix: str) -> bool:
    """Check if an entry name ends with exactly ``@suffix``."""
    return entry_name.endswith(f"@{suffix}") and is_scoped(entry_name)
