"""Tests for manifest loading and verification."""

from __future__ import annotations

import json
import urllib.error
from pathlib import Path
from unittest.mock import patch

import pytest

from skills_installer.config import InstallerConfig
from skills_installer.manifest import (
    Manifest,
    ManifestError,
    ManifestLoader,
    Project,
    fetch_manifest,
    sha256_hex,
    verify_checksum,
)

MANIFEST_JSON = json.dumps(
    {
        "projects": [
            {"name": "development-skills", "repo": "plaited/development-skills"},
            {"name": "acp-harness", "repo": "plaited/acp-harness"},
        ]
    }
)


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    """Write a manifest to a temporary file."""
    path = tmp_path / "projects.json"
    path.write_text(MANIFEST_JSON)
    return path


class TestManifest:
    """Tests for Manifest model."""

    def test_from_text(self) -> None:
        """Parses projects using the ``repo`` key."""
        manifest = Manifest.from_text(MANIFEST_JSON)
        assert manifest.names == ["development-skills", "acp-harness"]
        assert manifest.get_repository("acp-harness") == "plaited/acp-harness"

    def test_project_accepts_field_name(self) -> None:
        project = Project(name="docs", repository="acme/docs")
        assert project.repository == "acme/docs"

    def test_contains_and_get(self) -> None:
        manifest = Manifest.from_text(MANIFEST_JSON)
        assert "acp-harness" in manifest
        assert "missing" not in manifest
        assert manifest.get("missing") is None
        assert manifest.get_repository("missing") is None

    def test_invalid_json(self) -> None:
        with pytest.raises(ManifestError, match="Invalid manifest JSON"):
            Manifest.from_text("{not json")

    def test_missing_repo_key(self) -> None:
        with pytest.raises(ManifestError, match="Invalid manifest"):
            Manifest.from_text('{"projects": [{"name": "x"}]}')

    def test_duplicate_names_rejected(self) -> None:
        """Duplicate project names are a configuration error."""
        text = json.dumps(
            {"projects": [{"name": "x", "repo": "a/x"}, {"name": "x", "repo": "b/x"}]}
        )
        with pytest.raises(ManifestError, match="Duplicate project name"):
            Manifest.from_text(text)

    def test_from_file(self, manifest_file: Path) -> None:
        manifest = Manifest.from_file(manifest_file)
        assert len(manifest.projects) == 2

    def test_from_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="Manifest not found"):
            Manifest.from_file(tmp_path / "nope.json")

    def test_from_file_too_large(self, manifest_file: Path) -> None:
        with pytest.raises(ManifestError, match="exceeds size limit"):
            Manifest.from_file(manifest_file, max_size=10)


class TestVerifyChecksum:
    """Tests for verify_checksum function."""

    def test_matching_checksum(self) -> None:
        data = MANIFEST_JSON.encode()
        verify_checksum(data, f"{sha256_hex(data)}  projects.json\n")

    def test_uppercase_checksum(self) -> None:
        data = b"content"
        verify_checksum(data, sha256_hex(data).upper())

    def test_mismatch(self) -> None:
        with pytest.raises(ManifestError, match="Checksum verification failed"):
            verify_checksum(b"content", "0" * 64)

    def test_empty_checksum(self) -> None:
        """A missing checksum aborts like a mismatching one."""
        with pytest.raises(ManifestError, match="cannot verify"):
            verify_checksum(b"content", "   ")


class TestFetchManifest:
    """Tests for fetch_manifest function."""

    URL = "https://example.com/projects.json"
    CHECKSUM_URL = "https://example.com/projects.json.sha256"

    @patch("skills_installer.manifest._download")
    def test_verified_fetch(self, mock_download) -> None:
        data = MANIFEST_JSON.encode()
        responses = {self.URL: data, self.CHECKSUM_URL: sha256_hex(data).encode()}
        mock_download.side_effect = lambda url, timeout, max_size: responses[url]

        manifest = fetch_manifest(self.URL, self.CHECKSUM_URL)

        assert manifest.names == ["development-skills", "acp-harness"]

    @patch("skills_installer.manifest._download")
    def test_checksum_unavailable(self, mock_download) -> None:
        """A failed checksum download aborts the fetch."""

        def download(url: str, timeout: int, max_size: int) -> bytes:
            if url == self.CHECKSUM_URL:
                raise urllib.error.URLError("404")
            return MANIFEST_JSON.encode()

        mock_download.side_effect = download

        with pytest.raises(ManifestError, match="Could not fetch checksum file"):
            fetch_manifest(self.URL, self.CHECKSUM_URL)

    @patch("skills_installer.manifest._download")
    def test_manifest_unavailable(self, mock_download) -> None:
        mock_download.side_effect = urllib.error.URLError("offline")

        with pytest.raises(ManifestError, match="Could not fetch projects.json"):
            fetch_manifest(self.URL, self.CHECKSUM_URL)

    @patch("skills_installer.manifest._download")
    def test_tampered_manifest(self, mock_download) -> None:
        responses = {self.URL: MANIFEST_JSON.encode(), self.CHECKSUM_URL: b"0" * 64}
        mock_download.side_effect = lambda url, timeout, max_size: responses[url]

        with pytest.raises(ManifestError, match="Checksum verification failed"):
            fetch_manifest(self.URL, self.CHECKSUM_URL)


class TestManifestLoader:
    """Tests for ManifestLoader class."""

    def test_configured_path(self, manifest_file: Path) -> None:
        loader = ManifestLoader.create(InstallerConfig(manifest_path=manifest_file))
        assert loader.load().names == ["development-skills", "acp-harness"]

    def test_local_default(self, manifest_file: Path) -> None:
        """A projects.json next to the run is preferred over the network."""
        loader = ManifestLoader(InstallerConfig(), local_default=manifest_file)
        with patch("skills_installer.manifest.fetch_manifest") as mock_fetch:
            manifest = loader.load()
        mock_fetch.assert_not_called()
        assert "acp-harness" in manifest

    def test_remote_fallback(self, tmp_path: Path) -> None:
        config = InstallerConfig(manifest_url="https://example.com/p.json")
        loader = ManifestLoader(config, local_default=tmp_path / "missing.json")
        with patch("skills_installer.manifest.fetch_manifest") as mock_fetch:
            mock_fetch.return_value = Manifest()
            loader.load()
        mock_fetch.assert_called_once_with(
            "https://example.com/p.json",
            "https://example.com/p.json.sha256",
            timeout=config.fetch_timeout,
            max_size=config.max_file_size,
        )
