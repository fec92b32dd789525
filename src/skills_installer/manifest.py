"""Project manifest loading and verification."""

from __future__ import annotations

import hashlib
import json
import logging
import ssl
import urllib.error
import urllib.request
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from skills_installer.config import DEFAULT_MANIFEST_FILE, MAX_FILE_SIZE, InstallerConfig

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Error loading, fetching or verifying the project manifest."""

    pass


class Project(BaseModel):
    """A named source of installable content."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(min_length=1)
    repository: str = Field(alias="repo", min_length=1)


class Manifest(BaseModel):
    """Lookup table of known projects, keyed by name."""

    projects: list[Project] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_names(self) -> Manifest:
        seen: set[str] = set()
        for project in self.projects:
            if project.name in seen:
                raise ValueError(f"Duplicate project name: {project.name}")
            seen.add(project.name)
        return self

    @classmethod
    def from_text(cls, text: str) -> Manifest:
        """Parse manifest JSON.

        Raises:
            ManifestError: If the JSON or its structure is invalid.
        """
        try:
            return cls.model_validate(json.loads(text))
        except json.JSONDecodeError as e:
            raise ManifestError(f"Invalid manifest JSON: {e}") from e
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest: {e}") from e

    @classmethod
    def from_file(cls, path: Path, max_size: int = MAX_FILE_SIZE) -> Manifest:
        """Load a manifest from a JSON file.

        Args:
            path: Path to projects.json.
            max_size: Largest accepted file size in bytes.

        Returns:
            Parsed Manifest.

        Raises:
            ManifestError: If the file is missing, too large or invalid.
        """
        if not path.is_file():
            raise ManifestError(f"Manifest not found: {path}")
        size = path.stat().st_size
        if size > max_size:
            raise ManifestError(f"File exceeds size limit ({max_size} bytes): {path}")
        return cls.from_text(path.read_text(encoding="utf-8"))

    @property
    def names(self) -> list[str]:
        """Project names in manifest order."""
        return [project.name for project in self.projects]

    def get(self, name: str) -> Project | None:
        """Get a project by name."""
        for project in self.projects:
            if project.name == name:
                return project
        return None

    def get_repository(self, name: str) -> str | None:
        """Get the repository reference for a project, if known."""
        project = self.get(name)
        return project.repository if project else None

    def __contains__(self, name: object) -> bool:
        return any(project.name == name for project in self.projects)


def sha256_hex(data: bytes) -> str:
    """Hex digest of the SHA256 hash of ``data``."""
    return hashlib.sha256(data).hexdigest()


def verify_checksum(data: bytes, checksum_text: str) -> None:
    """Verify ``data`` against a ``sha256sum``-style checksum file.

    Only the first whitespace-separated field of the checksum file is used.

    Raises:
        ManifestError: If the checksum is empty or does not match.
    """
    fields = checksum_text.split()
    if not fields:
        raise ManifestError(
            "Could not fetch checksum file - cannot verify projects.json integrity"
        )
    expected = fields[0].lower()
    actual = sha256_hex(data)
    if expected != actual:
        raise ManifestError(
            "Checksum verification failed for projects.json "
            f"(expected: {expected}, got: {actual})"
        )


def _download(url: str, timeout: int, max_size: int) -> bytes:
    request = urllib.request.Request(url, headers={"Accept": "*/*"})
    with urllib.request.urlopen(
        request, timeout=timeout, context=ssl.create_default_context()
    ) as response:
        data = response.read(max_size + 1)
    if len(data) > max_size:
        raise ManifestError(f"File exceeds size limit ({max_size} bytes): {url}")
    return data


def fetch_manifest(
    url: str,
    checksum_url: str,
    timeout: int = 30,
    max_size: int = MAX_FILE_SIZE,
) -> Manifest:
    """Fetch a remote manifest and verify it against its published checksum.

    Verification is mandatory: a missing checksum aborts just like a
    mismatching one.

    Args:
        url: Manifest URL.
        checksum_url: URL of the sha256 checksum file.
        timeout: Network timeout in seconds.
        max_size: Largest accepted download in bytes.

    Returns:
        Verified Manifest.

    Raises:
        ManifestError: If either download fails or verification fails.
    """
    try:
        data = _download(url, timeout, max_size)
    except (urllib.error.URLError, OSError) as e:
        raise ManifestError(f"Could not fetch projects.json: {e}") from e
    if not data:
        raise ManifestError("Could not fetch projects.json")

    try:
        checksum_text = _download(checksum_url, timeout, max_size).decode("utf-8", "replace")
    except (urllib.error.URLError, OSError) as e:
        logger.debug("Checksum download failed: %s", e)
        checksum_text = ""

    verify_checksum(data, checksum_text)
    logger.debug("Checksum verified for %s", url)
    return Manifest.from_text(data.decode("utf-8"))


class ManifestLoader:
    """Loads the manifest from a local file or the published URL.

    Lookup order: the configured path, then ``projects.json`` in the working
    directory, then the remote manifest with checksum verification.
    """

    def __init__(self, config: InstallerConfig, local_default: Path | None = None) -> None:
        """Initialize the loader.

        Args:
            config: Installer configuration.
            local_default: Local manifest used when no path is configured.
        """
        self.config = config
        self.local_default = local_default or Path(DEFAULT_MANIFEST_FILE)

    @classmethod
    def create(cls, config: InstallerConfig) -> ManifestLoader:
        """Create a loader for the given configuration."""
        return cls(config)

    def load(self) -> Manifest:
        """Load the manifest.

        Raises:
            ManifestError: If the manifest cannot be read, fetched or verified.
        """
        path = self.config.manifest_path
        if path is None and self.local_default.is_file():
            path = self.local_default
        if path is not None:
            logger.debug("Loading manifest from %s", path)
            return Manifest.from_file(path, self.config.max_file_size)

        logger.debug("Fetching manifest from %s", self.config.manifest_url)
        return fetch_manifest(
            self.config.manifest_url,
            self.config.resolved_checksum_url,
            timeout=self.config.fetch_timeout,
            max_size=self.config.max_file_size,
        )
