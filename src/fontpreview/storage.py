"""Font storage backends behind one list/get/put/delete interface.

Backends:
  LocalStorage   - a directory on disk
  MemoryStorage  - a dict of bytes (serverless platforms without a writable disk)
  LayeredStorage - write-through pair, e.g. disk + memory
  RemoteStorage  - read-only GitHub repository, with a best-effort disk cache

``open_storage()`` picks one at startup from a kind name.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from fontpreview.cache import FontCache
from fontpreview.catalog import merge_listings
from fontpreview.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_FONTS_DIR,
    FONT_EXTENSIONS,
    MAX_UPLOAD_SIZE,
    STORAGE_KINDS,
)
from fontpreview.errors import (
    FontNotFoundError,
    MalformedUploadError,
    SourceUnavailableError,
    StorageError,
)
from fontpreview.names import is_font_file
from fontpreview.remote import GitHubFontSource
from fontpreview.schema import FontFile, SourceOrigin

logger = logging.getLogger(__name__)


class FontStorage(Protocol):
    """Capability interface shared by every backend."""

    def list(self) -> list[FontFile]: ...

    def get(self, name: str) -> bytes: ...

    def put(self, name: str, data: bytes) -> FontFile: ...

    def delete(self, name: str) -> None: ...


def is_safe_name(name: str) -> bool:
    """A plain file name: no directories, no parent references."""
    return bool(name) and "/" not in name and "\\" not in name and ".." not in name


def validate_upload(name: str, data: bytes, max_size: int = MAX_UPLOAD_SIZE) -> None:
    """Reject an upload before anything is written.

    Raises MalformedUploadError for unsafe names, unsupported extensions,
    empty payloads and payloads over ``max_size`` bytes.
    """
    if not is_safe_name(name):
        raise MalformedUploadError(f"Invalid font filename: '{name}'")
    if not is_font_file(name):
        allowed = ", ".join(sorted(FONT_EXTENSIONS))
        raise MalformedUploadError(f"Unsupported file type: '{name}' (allowed: {allowed})")
    if not data:
        raise MalformedUploadError(f"Empty font file: '{name}'")
    if len(data) > max_size:
        raise MalformedUploadError(f"Font file too large: '{name}' ({len(data)} bytes)")


def _require_safe(name: str) -> None:
    if not is_safe_name(name):
        raise FontNotFoundError(name)


# ---------------------------------------------------------------------------
# Local directory
# ---------------------------------------------------------------------------


class LocalStorage:
    """Fonts stored as plain files in one directory."""

    source = SourceOrigin.LOCAL

    def __init__(self, directory: str | os.PathLike[str] = DEFAULT_FONTS_DIR):
        self.directory = Path(directory)

    def list(self) -> list[FontFile]:
        fonts: list[FontFile] = []
        if not self.directory.is_dir():
            logger.info("Fonts directory not found: %s", self.directory)
            return fonts

        try:
            entries = sorted(self.directory.iterdir())
        except OSError as e:
            raise StorageError(f"Could not read fonts directory: {self.directory}") from e

        for entry in entries:
            if not entry.is_file() or entry.name.endswith(".tmp"):
                continue
            if not is_font_file(entry.name):
                logger.warning("Skipping non-font file in %s: %s", self.directory, entry.name)
                continue
            try:
                stat = entry.stat()
            except OSError:
                logger.info("Font removed while listing: %s", entry.name)
                continue
            fonts.append(
                FontFile(
                    file_name=entry.name,
                    size_bytes=stat.st_size,
                    source=self.source,
                    date_added=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        return fonts

    def get(self, name: str) -> bytes:
        _require_safe(name)
        path = self.directory / name
        if not path.is_file():
            raise FontNotFoundError(name)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Could not read font: {name}") from e

    def put(self, name: str, data: bytes) -> FontFile:
        validate_upload(name, data)
        try:
            os.makedirs(self.directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_path, self.directory / name)
            except OSError:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Could not write font: {name}") from e

        logger.info("Stored font %s (%d bytes) in %s", name, len(data), self.directory)
        return FontFile(
            file_name=name,
            size_bytes=len(data),
            source=self.source,
            date_added=datetime.now(timezone.utc),
        )

    def delete(self, name: str) -> None:
        _require_safe(name)
        path = self.directory / name
        if not path.is_file():
            raise FontNotFoundError(name)
        try:
            path.unlink()
        except OSError as e:
            raise StorageError(f"Could not delete font: {name}") from e
        logger.info("Deleted font %s from %s", name, self.directory)


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class MemoryStorage:
    """Fonts held in process memory. Lost on restart / cold start."""

    source = SourceOrigin.MEMORY

    def __init__(self):
        self._fonts: dict[str, tuple[bytes, datetime]] = {}
        self._lock = threading.Lock()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._fonts

    def list(self) -> list[FontFile]:
        with self._lock:
            items = sorted(self._fonts.items())
        return [
            FontFile(
                file_name=name,
                size_bytes=len(data),
                source=self.source,
                date_added=added,
            )
            for name, (data, added) in items
        ]

    def get(self, name: str) -> bytes:
        with self._lock:
            stored = self._fonts.get(name)
        if stored is None:
            raise FontNotFoundError(name)
        return stored[0]

    def put(self, name: str, data: bytes) -> FontFile:
        validate_upload(name, data)
        added = datetime.now(timezone.utc)
        with self._lock:
            self._fonts[name] = (bytes(data), added)
        logger.info("Stored font %s in memory (%d bytes)", name, len(data))
        return FontFile(file_name=name, size_bytes=len(data), source=self.source, date_added=added)

    def delete(self, name: str) -> None:
        with self._lock:
            if self._fonts.pop(name, None) is None:
                raise FontNotFoundError(name)
        logger.info("Deleted font %s from memory", name)


# ---------------------------------------------------------------------------
# Layered (write-through)
# ---------------------------------------------------------------------------


class LayeredStorage:
    """Two backends used together: writes go to both, reads prefer ``primary``.

    Listing merges both with the primary's entries winning on name clashes.
    """

    def __init__(self, primary: FontStorage, secondary: FontStorage):
        self.primary = primary
        self.secondary = secondary

    def list(self) -> list[FontFile]:
        try:
            primary_fonts = self.primary.list()
        except StorageError:
            logger.exception("Primary storage listing failed")
            primary_fonts = []
        return merge_listings(primary_fonts, self.secondary.list())

    def get(self, name: str) -> bytes:
        try:
            return self.primary.get(name)
        except FontNotFoundError:
            return self.secondary.get(name)
        except StorageError:
            logger.warning("Primary storage read failed for %s", name, exc_info=True)
            return self.secondary.get(name)

    def put(self, name: str, data: bytes) -> FontFile:
        validate_upload(name, data)
        stored = self.primary.put(name, data)
        try:
            self.secondary.put(name, data)
        except StorageError:
            logger.warning("Secondary storage write failed for %s", name, exc_info=True)
        return stored

    def delete(self, name: str) -> None:
        deleted = False
        for backend in (self.primary, self.secondary):
            try:
                backend.delete(name)
                deleted = True
            except FontNotFoundError:
                continue
        if not deleted:
            raise FontNotFoundError(name)


# ---------------------------------------------------------------------------
# Remote (read-only)
# ---------------------------------------------------------------------------


class RemoteStorage:
    """Read-only storage over a GitHub font source.

    Downloads are copied into ``cache``; when the source is unreachable the
    cached copy is served instead. Uploads and deletes are refused.
    """

    source = SourceOrigin.REMOTE

    def __init__(
        self,
        remote: GitHubFontSource,
        ref: str | None = None,
        cache: FontCache | None = None,
    ):
        self.remote = remote
        self.ref = ref
        self.cache = cache

    def list(self) -> list[FontFile]:
        try:
            entries = self.remote.list(self.ref)
        except SourceUnavailableError as e:
            raise StorageError(str(e)) from e
        return [
            FontFile(file_name=entry.name, size_bytes=entry.size, source=self.source)
            for entry in entries
        ]

    def get(self, name: str) -> bytes:
        _require_safe(name)
        try:
            data = self.remote.fetch(name, self.ref)
        except SourceUnavailableError as e:
            cached = self.cache.get(name) if self.cache else None
            if cached is not None:
                logger.warning("Remote fetch failed for %s, serving cached copy", name)
                return cached
            if e.status == 404:
                raise FontNotFoundError(name) from e
            raise StorageError(str(e)) from e

        if self.cache is not None:
            self.cache.put(name, data)
        return data

    def put(self, name: str, data: bytes) -> FontFile:
        validate_upload(name, data)
        raise StorageError("Remote font storage is read-only")

    def delete(self, name: str) -> None:
        raise StorageError("Remote font storage is read-only")


def open_storage(
    kind: str,
    *,
    fonts_dir: str | os.PathLike[str] = DEFAULT_FONTS_DIR,
    cache_dir: str | os.PathLike[str] = DEFAULT_CACHE_DIR,
    remote: GitHubFontSource | None = None,
    ref: str | None = None,
) -> FontStorage:
    """Create the storage backend named by ``kind`` (one of STORAGE_KINDS)."""
    if kind == "local":
        return LocalStorage(fonts_dir)
    if kind == "memory":
        return MemoryStorage()
    if kind == "layered":
        return LayeredStorage(LocalStorage(fonts_dir), MemoryStorage())
    if kind == "github":
        return RemoteStorage(remote or GitHubFontSource.from_env(), ref, FontCache(cache_dir))
    msg = f"Unknown storage kind '{kind}', expected one of: {', '.join(STORAGE_KINDS)}"
    raise ValueError(msg)
