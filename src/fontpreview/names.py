"""Font file name parsing: extension handling and base name / variant split."""

from __future__ import annotations

import re

from fontpreview.config import DEFAULT_MIME_TYPE, FONT_FORMATS, FONT_MIME_TYPES
from fontpreview.schema import ParsedName

_EXTENSION_RE = re.compile(r"\.(woff2|woff|ttf|otf)\Z", re.IGNORECASE)

# Tried in order, first match wins. Each entry is (pattern, base group, variant group).
_NAME_PATTERNS: tuple[tuple[re.Pattern[str], int, int], ...] = (
    (re.compile(r"(.+?)[-_](\d+)"), 1, 2),  # NAME_03, NAME-3
    (re.compile(r"([A-Za-z]+)(\d+)"), 1, 2),  # NAME03
    (re.compile(r"(\d+)([A-Za-z]+)"), 2, 1),  # 03NAME
)


def font_extension(file_name: str) -> str | None:
    """Return the lowercased font extension (".woff2", ...) or None."""
    match = _EXTENSION_RE.search(file_name)
    return match.group(0).lower() if match else None


def strip_font_extension(file_name: str) -> str:
    """Drop a trailing font extension; other names are returned unchanged.

    "SATO_01.WOFF2" -> "SATO_01"
    "readme.txt"    -> "readme.txt"
    """
    return _EXTENSION_RE.sub("", file_name, count=1)


def is_font_file(file_name: str) -> bool:
    return font_extension(file_name) is not None


def font_format(file_name: str) -> str | None:
    """CSS format() keyword for a font file name (woff2, woff, truetype, opentype)."""
    ext = font_extension(file_name)
    return FONT_FORMATS.get(ext) if ext else None


def mime_type(file_name: str) -> str:
    ext = font_extension(file_name)
    return FONT_MIME_TYPES.get(ext, DEFAULT_MIME_TYPE) if ext else DEFAULT_MIME_TYPE


def parse_font_name(file_name: str) -> ParsedName:
    """Split a font file name into base name and variant number.

    The variant is kept as a string so leading zeros survive for display.
    Names that match no pattern become their own base name with no variant.

    >>> parse_font_name("AZEGAMI_01.woff2")
    ParsedName(base_name='AZEGAMI', variant='01')
    >>> parse_font_name("a_1_2")
    ParsedName(base_name='a_1', variant='2')
    """
    stem = strip_font_extension(file_name)
    for pattern, base_group, variant_group in _NAME_PATTERNS:
        match = pattern.fullmatch(stem)
        if match:
            return ParsedName(
                base_name=match.group(base_group),
                variant=match.group(variant_group),
            )
    return ParsedName(base_name=stem, variant=None)
