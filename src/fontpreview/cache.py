"""Best-effort disk cache for fetched font bytes.

The cache never blocks use of the primary source: reads return None on any
failure and writes swallow errors after logging them.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from fontpreview.names import is_font_file
from fontpreview.schema import FontFile, SourceOrigin

logger = logging.getLogger(__name__)


class FontCache:
    """Flat directory of cached font files keyed by file name."""

    def __init__(self, directory: str | os.PathLike[str]):
        self.directory = Path(directory)

    def _path(self, name: str) -> Path | None:
        if not name or "/" in name or "\\" in name or ".." in name:
            return None
        return self.directory / name

    def get(self, name: str) -> bytes | None:
        """Return cached bytes, or None on a miss or any read failure."""
        path = self._path(name)
        if path is None:
            return None
        try:
            return path.read_bytes()
        except OSError:
            return None

    def put(self, name: str, data: bytes) -> None:
        """Atomically write a font to the cache.

        Uses write-to-temp + os.replace so readers never see partial files.
        Failures are logged and ignored.
        """
        path = self._path(name)
        if path is None or not data:
            return
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_path, path)
            except OSError:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
                raise
        except OSError:
            logger.warning("Font cache write failed for %s", name, exc_info=True)

    def evict(self, name: str) -> None:
        path = self._path(name)
        if path is None:
            return
        with contextlib.suppress(OSError):
            path.unlink()

    def list(self) -> list[FontFile]:
        """Cached fonts as listing entries (no bytes loaded)."""
        fonts: list[FontFile] = []
        if not self.directory.is_dir():
            return fonts
        try:
            entries = sorted(self.directory.iterdir())
        except OSError:
            logger.warning("Font cache listing failed for %s", self.directory, exc_info=True)
            return fonts
        for entry in entries:
            try:
                if not entry.is_file() or not is_font_file(entry.name):
                    continue
                stat = entry.stat()
            except OSError:
                continue
            fonts.append(
                FontFile(
                    file_name=entry.name,
                    size_bytes=stat.st_size,
                    source=SourceOrigin.CACHE,
                    date_added=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return fonts
