"""Name-table metadata read from font bytes."""

from __future__ import annotations

import io
import logging

from fontTools.ttLib import TTFont

logger = logging.getLogger(__name__)


def _get_name_entry(font: TTFont, name_id: int) -> str | None:
    """Extract a string from the font's name table by nameID."""
    name_table = font["name"]
    record = name_table.getName(name_id, 3, 1, 0x0409)  # Windows, Unicode BMP, English
    if record is None:
        record = name_table.getName(name_id, 1, 0, 0)  # Mac, Roman, English
    if record is None:
        return None
    return str(record)


def read_font_metadata(data: bytes) -> dict[str, str]:
    """Read family and full names from woff/woff2/ttf/otf bytes.

    Returns dict with keys: family, full_name, style. Unreadable fonts give an
    empty dict; metadata is informational only.
    """
    try:
        font = TTFont(io.BytesIO(data), fontNumber=0, lazy=True)
    except Exception:
        logger.warning("Could not open font data for metadata (%d bytes)", len(data))
        return {}

    try:
        family = _get_name_entry(font, 16) or _get_name_entry(font, 1) or ""
        full_name = _get_name_entry(font, 4) or family
        style = _get_name_entry(font, 17) or _get_name_entry(font, 2) or ""
        return {
            "family": family.strip(),
            "full_name": full_name.strip(),
            "style": style.strip(),
        }
    except (KeyError, AttributeError):
        logger.warning("Font data has no readable name table", exc_info=True)
        return {}
    finally:
        font.close()
