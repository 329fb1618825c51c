"""GitHub-repository font source.

Lists the font files in a repository directory through the contents API and
downloads their bytes. No retries: callers refresh on user request.
"""

from __future__ import annotations

import json
import logging
import os
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from fontpreview.config import (
    GITHUB_API_BASE,
    GITHUB_DEFAULT_BRANCH,
    GITHUB_FONTS_PATH,
    REMOTE_TIMEOUT,
)
from fontpreview.errors import SourceUnavailableError
from fontpreview.names import is_font_file
from fontpreview.schema import RemoteFont

logger = logging.getLogger(__name__)


class GitHubFontSource:
    """Read-only font source backed by a directory in a GitHub repository."""

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str | None = None,
        directory: str = GITHUB_FONTS_PATH,
        default_ref: str = GITHUB_DEFAULT_BRANCH,
        api_base: str = GITHUB_API_BASE,
        timeout: float = REMOTE_TIMEOUT,
    ):
        self.owner = owner
        self.repo = repo
        self.token = token
        self.directory = directory.strip("/")
        self.default_ref = default_ref
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> GitHubFontSource:
        """Build a source from GITHUB_OWNER / GITHUB_REPO / GITHUB_TOKEN / GITHUB_BRANCH."""
        owner = os.environ.get("GITHUB_OWNER", "")
        repo = os.environ.get("GITHUB_REPO", "")
        if not owner or not repo:
            raise RuntimeError("GITHUB_OWNER and GITHUB_REPO environment variables must be set")
        return cls(
            owner,
            repo,
            token=os.environ.get("GITHUB_TOKEN") or None,
            default_ref=os.environ.get("GITHUB_BRANCH") or GITHUB_DEFAULT_BRANCH,
        )

    def _contents_url(self, path: str, ref: str) -> str:
        return (
            f"{self.api_base}/repos/{quote(self.owner)}/{quote(self.repo)}"
            f"/contents/{quote(path)}?ref={quote(ref, safe='')}"
        )

    def _open(self, url: str, accept: str) -> bytes:
        req = Request(url, method="GET")
        req.add_header("Accept", accept)
        if self.token:
            req.add_header("Authorization", f"Bearer {self.token}")
        try:
            with urlopen(req, timeout=self.timeout) as resp:  # noqa: S310
                return resp.read()
        except HTTPError as e:
            msg = f"GitHub request failed ({e.code}): {url}"
            raise SourceUnavailableError(msg, status=e.code) from e
        except (URLError, OSError) as e:
            raise SourceUnavailableError(f"GitHub request failed: {e}") from e

    def _get_json(self, path: str, ref: str):
        raw = self._open(self._contents_url(path, ref), "application/vnd.github+json")
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise SourceUnavailableError(f"Invalid JSON from GitHub for {path}") from e

    def list(self, ref: str | None = None) -> list[RemoteFont]:
        """List font files in the configured directory at ``ref``."""
        ref = ref or self.default_ref
        logger.info("Listing fonts from %s/%s@%s/%s", self.owner, self.repo, ref, self.directory)
        data = self._get_json(self.directory, ref)
        if not isinstance(data, list):
            return []

        fonts = [
            RemoteFont(
                name=item["name"],
                path=item.get("path", f"{self.directory}/{item['name']}"),
                download_url=item.get("download_url"),
                sha=item.get("sha"),
                size=item.get("size") or 0,
            )
            for item in data
            if item.get("type") == "file" and is_font_file(item.get("name", ""))
        ]
        logger.info("Found %d font files", len(fonts))
        return fonts

    def download(self, locator: str) -> bytes:
        """Download raw font bytes from a download URL."""
        data = self._open(locator, "application/octet-stream")
        if not data:
            raise SourceUnavailableError(f"Empty download: {locator}")
        return data

    def fetch(self, name: str, ref: str | None = None) -> bytes:
        """Look up one font by file name and download it."""
        ref = ref or self.default_ref
        info = self._get_json(f"{self.directory}/{name}", ref)
        download_url = info.get("download_url") if isinstance(info, dict) else None
        if not download_url:
            raise SourceUnavailableError(f"No download URL for font: {name}")
        return self.download(download_url)
