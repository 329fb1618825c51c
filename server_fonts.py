"""Font listing for the HTTP API.

Turns a storage listing into JSON-ready entries with parsed name, declared
format and (optionally) name-table metadata read with fontTools.
"""

from __future__ import annotations

import logging

from fontpreview.errors import StorageError
from fontpreview.metadata import read_font_metadata
from fontpreview.names import font_format, parse_font_name
from fontpreview.schema import FontFile
from fontpreview.storage import FontStorage

logger = logging.getLogger("fontpreview.server")


def font_entry(font: FontFile) -> dict:
    """JSON listing entry for one font file."""
    parsed = parse_font_name(font.file_name)
    return {
        "name": font.file_name,
        "size": font.size_bytes,
        "dateAdded": font.date_added.isoformat() if font.date_added else None,
        "source": font.source.value,
        "baseName": parsed.base_name,
        "variant": parsed.variant,
        "format": font_format(font.file_name),
    }


def _font_family(
    storage: FontStorage,
    font: FontFile,
    metadata_cache: dict[tuple[str, int], dict[str, str]] | None,
) -> str | None:
    key = (font.file_name, font.size_bytes)
    if metadata_cache is not None and key in metadata_cache:
        metadata = metadata_cache[key]
    else:
        try:
            data = storage.get(font.file_name)
        except StorageError:
            logger.warning("Could not read %s for metadata", font.file_name)
            return None
        metadata = read_font_metadata(data)
        if metadata_cache is not None:
            metadata_cache[key] = metadata
    return metadata.get("family") or None


def list_fonts(
    storage: FontStorage,
    *,
    details: bool = False,
    metadata_cache: dict[tuple[str, int], dict[str, str]] | None = None,
) -> list[dict]:
    """List stored fonts as JSON-ready dicts.

    Parameters
    ----------
    storage:          Backend to list.
    details:          Also read each font's family name (loads the bytes).
    metadata_cache:   Optional mutable dict caching metadata by (name, size).

    Raises StorageError when the backend cannot be listed.
    """
    fonts = []
    for font in storage.list():
        entry = font_entry(font)
        if details:
            entry["family"] = _font_family(storage, font, metadata_cache)
        fonts.append(entry)
    return fonts
