"""Git operations for fetching project content."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from git import Repo
from git.exc import GitCommandError, GitError

from skills_installer.validation import validate_repository, validate_sparse_path

logger = logging.getLogger(__name__)

# Default branches to try when cloning
DEFAULT_BRANCHES = ["main", "master"]

# Directory inside each source repository that holds skills/ and commands/
DEFAULT_SPARSE_PATH = ".plaited"

# Marker recording which subdirectory was fetched for a staged project
SPARSE_PATH_MARKER = ".sparse_path"

CONTENT_DIRS = ("skills", "commands")


class GitOpsError(Exception):
    """Error during git operations."""

    pass


@dataclass(frozen=True)
class FetchedSource:
    """A project's content staged on local disk."""

    project: str
    repository: str
    root: Path
    sparse_path: str

    @property
    def content_dir(self) -> Path:
        return self.root / self.sparse_path

    @property
    def skills_dir(self) -> Path:
        return self.content_dir / "skills"

    @property
    def commands_dir(self) -> Path:
        return self.content_dir / "commands"

    def skill_folders(self) -> list[Path]:
        """Skill directories in name order (empty if there are none)."""
        if not self.skills_dir.is_dir():
            return []
        return sorted(p for p in self.skills_dir.iterdir() if p.is_dir())

    def command_files(self) -> list[Path]:
        """Markdown command files in name order (empty if there are none)."""
        if not self.commands_dir.is_dir():
            return []
        return sorted(
            p for p in self.commands_dir.iterdir() if p.is_file() and p.suffix == ".md"
        )


def parse_source(repository: str, sparse_path: str = DEFAULT_SPARSE_PATH) -> tuple[str, str]:
    """Turn ``owner/repo`` into a clone URL and the sparse path to fetch.

    Args:
        repository: Repository reference from the manifest.
        sparse_path: Directory inside the repository holding the content.

    Returns:
        Tuple of (clone URL, sparse path).

    Raises:
        GitOpsError: If the repository reference is malformed.
    """
    error = validate_repository(repository)
    if error:
        raise GitOpsError(error)
    return f"https://github.com/{repository}.git", sparse_path


def read_sparse_path(project_dir: Path) -> str:
    """Read and validate the sparse path marker of a staged project.

    Raises:
        GitOpsError: If the marker is missing or fails the security check.
    """
    marker = project_dir / SPARSE_PATH_MARKER
    if not marker.is_file():
        raise GitOpsError(f"No {SPARSE_PATH_MARKER} file found in {project_dir}")
    sparse_path = marker.read_text(encoding="utf-8").strip()
    if not validate_sparse_path(sparse_path):
        raise GitOpsError(
            f"Invalid {SPARSE_PATH_MARKER} content in {project_dir} (security check failed)"
        )
    return sparse_path


class GitOps:
    """Fetches the skills/commands subtree of project repositories."""

    def __init__(
        self,
        branch: str = "main",
        sparse_path: str = DEFAULT_SPARSE_PATH,
    ) -> None:
        """Initialize git operations.

        Args:
            branch: Branch to fetch. ``main`` falls back to ``master``.
            sparse_path: Directory inside each repository holding the content.

        Note:
            Prefer using factory methods `create()` or `create_default()` for construction.
        """
        self.branch = branch
        self.sparse_path = sparse_path

    @classmethod
    def create(cls, branch: str, sparse_path: str = DEFAULT_SPARSE_PATH) -> GitOps:
        """Create a git operations manager for a specific branch.

        Args:
            branch: Branch to fetch.
            sparse_path: Directory inside each repository holding the content.

        Returns:
            Configured GitOps instance.
        """
        return cls(branch=branch, sparse_path=sparse_path)

    @classmethod
    def create_default(cls) -> GitOps:
        """Create a git operations manager fetching ``main``/``master``.

        Returns:
            GitOps configured with default settings.
        """
        return cls()

    def fetch(self, project: str, repository: str, staging_dir: Path) -> FetchedSource:
        """Sparse-clone a project's content into the staging directory.

        Only ``<sparse_path>/skills`` and ``<sparse_path>/commands`` are
        checked out. A ``.sparse_path`` marker is written next to the clone.

        Args:
            project: Project name (used as the staging subdirectory).
            repository: Repository reference ``owner/repo``.
            staging_dir: Temporary directory for this run.

        Returns:
            The staged source.

        Raises:
            GitOpsError: If the reference is invalid or cloning fails.
        """
        url, sparse_path = parse_source(repository, self.sparse_path)
        if not validate_sparse_path(sparse_path):
            raise GitOpsError(f"Invalid sparse path: {sparse_path}")

        project_dir = staging_dir / project
        try:
            if project_dir.exists():
                shutil.rmtree(project_dir)
            repo = self._clone(url, project_dir, self.branch)
            repo.git.sparse_checkout(
                "set", *(f"{sparse_path}/{name}" for name in CONTENT_DIRS)
            )
            (project_dir / SPARSE_PATH_MARKER).write_text(sparse_path, encoding="utf-8")
        except (GitError, OSError) as e:
            self._cleanup_failed_clone(project_dir)
            raise GitOpsError(f"Git operation failed for {project}: {e}") from e

        return FetchedSource(
            project=project,
            repository=repository,
            root=project_dir,
            sparse_path=read_sparse_path(project_dir),
        )

    def _clone(self, url: str, path: Path, ref: str) -> Repo:
        """Clone a repository with branch fallback.

        Tries the specified ref first. If ref is "main" and fails, tries "master".

        Args:
            url: Git repository URL.
            path: Local path for the clone.
            ref: Branch/tag to checkout.

        Returns:
            The cloned repository.

        Raises:
            GitCommandError: If all branch attempts fail.
        """
        last_error: GitCommandError | None = None

        for branch in self._get_branches_to_try(ref):
            try:
                return self._try_clone(url, path, branch)
            except GitCommandError as e:
                last_error = e
                logger.debug("Clone failed with branch '%s': %s", branch, e)
                self._cleanup_failed_clone(path)

        if last_error:
            raise last_error
        raise GitCommandError("clone", "No valid branch found")

    def _get_branches_to_try(self, ref: str) -> list[str]:
        """Get ordered list of branches to try for cloning.

        Args:
            ref: The requested branch reference.

        Returns:
            List of branches to try in order.
        """
        if ref in DEFAULT_BRANCHES:
            return [ref] + [b for b in DEFAULT_BRANCHES if b != ref]
        return [ref]

    def _try_clone(self, url: str, path: Path, ref: str) -> Repo:
        """Attempt a shallow, blobless, sparse clone of one branch."""
        repo = Repo.clone_from(
            url,
            path,
            branch=ref,
            depth=1,
            multi_options=["--filter=blob:none", "--sparse"],
        )
        logger.debug("Successfully cloned %s with branch '%s'", url, ref)
        return repo

    def _cleanup_failed_clone(self, path: Path) -> None:
        """Remove partial clone directory after failed attempt.

        Args:
            path: Path to clean up.
        """
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            logger.warning("Could not remove partial clone %s: %s", path, e)
