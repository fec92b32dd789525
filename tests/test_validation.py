"""Tests for the validation module."""

from __future__ import annotations

from pathlib import Path

import pytest

from skills_installer.validation import (
    FrontmatterResult,
    InvalidTargetPathError,
    is_simple_name,
    parse_frontmatter,
    validate_repository,
    validate_scope_component,
    validate_sparse_path,
    validate_target_path,
)


class TestFrontmatterResult:
    """Tests for FrontmatterResult class."""

    def test_success_when_no_errors(self) -> None:
        """Result is successful when errors list is empty."""
        result = FrontmatterResult(data={"name": "test"})
        assert result.success is True
        assert result.data == {"name": "test"}
        assert result.errors == []

    def test_failure_when_errors_present(self) -> None:
        """Result is failure when errors list has items."""
        result = FrontmatterResult(errors=["missing closing"])
        assert result.success is False
        assert result.data == {}

    def test_default_values(self) -> None:
        """Default values are empty."""
        result = FrontmatterResult()
        assert result.data == {}
        assert result.body == ""
        assert result.has_frontmatter is False
        assert result.success is True


class TestParseFrontmatter:
    """Tests for parse_frontmatter function."""

    def test_valid_frontmatter(self) -> None:
        """Parses key/value pairs and the body after the closing delimiter."""
        content = "---\nname: test\ndescription: A test\n---\nBody content"
        result = parse_frontmatter(content)
        assert result.success is True
        assert result.has_frontmatter is True
        assert result.data == {"name": "test", "description": "A test"}
        assert result.body == "Body content"

    def test_no_frontmatter_returns_whole_body(self) -> None:
        """Content without an opening delimiter is all body."""
        content = "# Title\n\nname: not frontmatter\n"
        result = parse_frontmatter(content)
        assert result.success is True
        assert result.has_frontmatter is False
        assert result.data == {}
        assert result.body == content

    def test_missing_closing_delimiter(self) -> None:
        """An unclosed block is treated as having no frontmatter."""
        content = "---\nname: test\nBody content"
        result = parse_frontmatter(content)
        assert result.success is False
        assert result.errors == ["Invalid frontmatter: missing closing ---"]
        assert result.data == {}
        assert result.body == content

    def test_empty_frontmatter(self) -> None:
        """Parses empty frontmatter block."""
        result = parse_frontmatter("---\n---\nBody content")
        assert result.success is True
        assert result.has_frontmatter is True
        assert result.data == {}
        assert result.body == "Body content"

    def test_empty_content(self) -> None:
        """Empty content has an empty body and no errors."""
        result = parse_frontmatter("")
        assert result.success is True
        assert result.body == ""

    def test_quoted_values_are_unquoted(self) -> None:
        """Surrounding quotes are removed from values."""
        content = "---\ndescription: \"Quoted: value\"\nargument-hint: '[file]'\n---\n"
        result = parse_frontmatter(content)
        assert result.data == {"description": "Quoted: value", "argument-hint": "[file]"}

    def test_value_containing_colon(self) -> None:
        """Only the first colon separates key and value."""
        result = parse_frontmatter("---\ndescription: Step 1: do it\n---\nBody")
        assert result.data["description"] == "Step 1: do it"

    def test_opening_delimiter_must_be_exact(self) -> None:
        """A first line with trailing text is not a delimiter."""
        content = "--- yaml\nname: test\n---\nBody"
        result = parse_frontmatter(content)
        assert result.has_frontmatter is False
        assert result.body == content

    def test_crlf_line_endings(self) -> None:
        """Windows line endings are accepted."""
        result = parse_frontmatter("---\r\nname: test\r\n---\r\nBody")
        assert result.data == {"name": "test"}
        assert result.body == "Body"


class TestValidateRepository:
    """Tests for validate_repository function."""

    def test_valid(self) -> None:
        assert validate_repository("plaited/development-skills") is None

    def test_path_traversal(self) -> None:
        error = validate_repository("../etc/passwd")
        assert error is not None
        assert "path traversal detected" in error

    @pytest.mark.parametrize("repository", ["plaited", "a/b/c", "owner/re po", "owner/", "/repo"])
    def test_invalid_format(self, repository: str) -> None:
        error = validate_repository(repository)
        assert error is not None
        assert "expected: owner/repo" in error


class TestValidateScopeComponent:
    """Tests for validate_scope_component function."""

    @pytest.mark.parametrize("component", ["plaited", "dev-skills", "v1.2_x"])
    def test_valid(self, component: str) -> None:
        assert validate_scope_component(component) is True

    @pytest.mark.parametrize("component", ["", "..", "a..b", "/abs", "sp ace", "a/b", "a@b"])
    def test_invalid(self, component: str) -> None:
        assert validate_scope_component(component) is False


class TestValidateSparsePath:
    """Tests for validate_sparse_path function."""

    def test_valid(self) -> None:
        assert validate_sparse_path(".plaited") is True
        assert validate_sparse_path("content/agents") is True

    @pytest.mark.parametrize("path", ["", "../x", "/etc", "a b", "a;rm"])
    def test_invalid(self, path: str) -> None:
        assert validate_sparse_path(path) is False


class TestIsSimpleName:
    """Tests for is_simple_name function."""

    def test_scoped_name_is_simple(self) -> None:
        assert is_simple_name("typescript-lsp@plaited_development-skills") is True

    @pytest.mark.parametrize("name", ["", ".", "..", "a/b", "a\\b", "..hidden"])
    def test_rejects(self, name: str) -> None:
        assert is_simple_name(name) is False


class TestValidateTargetPath:
    """Tests for validate_target_path function."""

    def test_direct_child(self, tmp_path: Path) -> None:
        """Returns the child path for a simple name."""
        target = validate_target_path(tmp_path, "skill@org_proj")
        assert target == tmp_path / "skill@org_proj"

    def test_rejects_traversal(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidTargetPathError):
            validate_target_path(tmp_path, "../escape")

    def test_rejects_nested(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidTargetPathError):
            validate_target_path(tmp_path, "nested/name")

    def test_rejects_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidTargetPathError, match="does not exist"):
            validate_target_path(tmp_path / "missing", "skill")

    def test_symlinked_root(self, tmp_path: Path) -> None:
        """A destination reached through a symlink is still accepted."""
        real = tmp_path / "real"
        real.mkdir()
        link = tmp_path / "link"
        link.symlink_to(real, target_is_directory=True)
        assert validate_target_path(link, "skill") == link / "skill"
