"""Installer configuration."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MANIFEST_URL = (
    "https://raw.githubusercontent.com/plaited/skills-installer/main/projects.json"
)
DEFAULT_MANIFEST_FILE = "projects.json"

# Security: maximum size for manifest and command files (100KB)
MAX_FILE_SIZE = 102400

# Windsurf rejects workflows longer than this
MAX_WORKFLOW_LENGTH = 12000

ENV_PREFIX = "SKILLS_INSTALLER_"


class InstallerConfig(BaseModel):
    """Settings for one installer run.

    Defaults match the published manifest; CLI options and
    ``SKILLS_INSTALLER_*`` environment variables override them.
    """

    model_config = ConfigDict(frozen=True)

    manifest_url: str = DEFAULT_MANIFEST_URL
    checksum_url: str | None = None
    manifest_path: Path | None = None
    branch: str = "main"
    sparse_path: str = ".plaited"
    central_dir: Path = Field(default_factory=lambda: Path(".plaited") / "skills")
    max_file_size: int = MAX_FILE_SIZE
    max_workflow_length: int = MAX_WORKFLOW_LENGTH
    fetch_timeout: int = 30

    @property
    def resolved_checksum_url(self) -> str:
        """Checksum location, defaulting to ``<manifest_url>.sha256``."""
        return self.checksum_url or f"{self.manifest_url}.sha256"

    @classmethod
    def from_env(cls, **overrides: object) -> InstallerConfig:
        """Build a config from environment variables plus explicit overrides.

        Explicit overrides that are None are ignored so that unset CLI
        options fall back to the environment and then to the defaults.
        """
        values: dict[str, object] = {}
        for field_name in ("manifest_url", "checksum_url", "manifest_path", "branch"):
            env_value = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
            if env_value:
                values[field_name] = env_value
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
