"""Ordered listing providers with first-success fallback.

Each provider returns a ListingResult instead of raising; ``first_listing``
walks them in order (typically remote -> cache -> placeholder) and stops at
the first one that succeeds.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from fontpreview.cache import FontCache
from fontpreview.catalog import font_files_from_names
from fontpreview.config import PLACEHOLDER_FONTS
from fontpreview.errors import FontPreviewError
from fontpreview.remote import GitHubFontSource
from fontpreview.schema import FontFile, SourceOrigin
from fontpreview.storage import FontStorage, RemoteStorage

logger = logging.getLogger(__name__)


@dataclass
class ListingResult:
    """Outcome of one listing attempt: files on success, an error message on failure."""

    source: str
    files: list[FontFile] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


ListingProvider = Callable[[], ListingResult]


def storage_listing(storage: FontStorage, label: str = "storage") -> ListingProvider:
    def provider() -> ListingResult:
        try:
            return ListingResult(label, storage.list())
        except FontPreviewError as e:
            return ListingResult(label, error=str(e))

    return provider


def remote_listing(
    remote: GitHubFontSource,
    ref: str | None = None,
    label: str = "remote",
) -> ListingProvider:
    def provider() -> ListingResult:
        try:
            entries = remote.list(ref)
        except FontPreviewError as e:
            return ListingResult(label, error=str(e))
        files = [
            FontFile(file_name=entry.name, size_bytes=entry.size, source=SourceOrigin.REMOTE)
            for entry in entries
        ]
        return ListingResult(label, files)

    return provider


def cache_listing(cache: FontCache, label: str = "cache") -> ListingProvider:
    """Cached fonts; an empty cache counts as a failure so the chain moves on."""

    def provider() -> ListingResult:
        files = cache.list()
        if not files:
            return ListingResult(label, error="Font cache is empty")
        return ListingResult(label, files)

    return provider


def placeholder_listing(names: Iterable[str] = PLACEHOLDER_FONTS) -> ListingProvider:
    def provider() -> ListingResult:
        return ListingResult("placeholder", font_files_from_names(names, SourceOrigin.PLACEHOLDER))

    return provider


def first_listing(providers: Iterable[ListingProvider]) -> ListingResult:
    """Try providers in order and return the first successful listing.

    When every provider fails, the result is empty and carries the last error.
    """
    last: ListingResult | None = None
    for provider in providers:
        result = provider()
        if result.ok:
            if last is not None:
                logger.info("Using %s listing (%d fonts)", result.source, len(result.files))
            return result
        logger.warning("Listing from %s failed: %s", result.source, result.error)
        last = result

    if last is None:
        return ListingResult("none", error="No listing providers configured")
    logger.error("All listing sources failed; last error: %s", last.error)
    return ListingResult("none", error=last.error)


def providers_for(storage: FontStorage, *, fallback: bool = False) -> list[ListingProvider]:
    """Listing chain for a storage backend.

    GitHub-backed storage lists remote first, then the local font cache;
    other backends list themselves. ``fallback`` appends the placeholder list.
    """
    if isinstance(storage, RemoteStorage):
        providers = [remote_listing(storage.remote, storage.ref)]
        if storage.cache is not None:
            providers.append(cache_listing(storage.cache))
    else:
        providers = [storage_listing(storage)]
    if fallback:
        providers.append(placeholder_listing())
    return providers
