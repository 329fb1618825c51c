"""Catalog building and font selection.

A catalog is a pure projection of the current font listing: it is rebuilt
from scratch whenever the listing changes and never patched in place.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from fontpreview.config import NO_VARIANT
from fontpreview.names import is_font_file, parse_font_name, strip_font_extension
from fontpreview.schema import Catalog, CatalogEntry, FontFile, SourceOrigin

logger = logging.getLogger(__name__)


def _sort_variants(variants: set[str | None]) -> list[str | None]:
    """Un-numbered first, then numeric variants by value, then the rest as strings.

    "1" and "01" compare equal as numbers, so the string breaks the tie.
    """
    numbered = sorted(
        (v for v in variants if v is not None),
        key=lambda v: (not v.isdecimal(), int(v) if v.isdecimal() else 0, v),
    )
    return ([None] if None in variants else []) + numbered


def font_files_from_names(
    names: Iterable[str],
    source: SourceOrigin = SourceOrigin.LOCAL,
) -> list[FontFile]:
    """Turn raw listing names into FontFiles, skipping non-font names."""
    files: list[FontFile] = []
    for name in names:
        if not is_font_file(name):
            logger.warning("Skipping non-font file in listing: %s", name)
            continue
        files.append(FontFile(file_name=name, source=source))
    return files


def merge_listings(*listings: Iterable[FontFile]) -> list[FontFile]:
    """Merge listings from several sources; the first occurrence of a file name wins."""
    seen: set[str] = set()
    merged: list[FontFile] = []
    for listing in listings:
        for font in listing:
            if font.file_name in seen:
                continue
            seen.add(font.file_name)
            merged.append(font)
    return merged


def build_catalog(files: Sequence[FontFile]) -> Catalog:
    """Group font files by base name into a sorted, selectable catalog.

    Files whose names carry no variant number stay selectable on their own:
    their ``None`` variant sits next to the numbered variants of the same base
    name. An empty listing gives an empty catalog.
    """
    groups: dict[str, set[str | None]] = {}
    for font in files:
        parsed = parse_font_name(font.file_name)
        groups.setdefault(parsed.base_name, set()).add(parsed.variant)

    entries = [
        CatalogEntry(
            base_name=base_name,
            variants=_sort_variants(groups[base_name]),
        )
        for base_name in sorted(groups)
    ]
    return Catalog(entries=entries, files=list(files))


def _has_variant(variant: str | None) -> bool:
    return bool(variant) and variant != NO_VARIANT


def _find_literal(files: Sequence[FontFile], literal: str) -> FontFile | None:
    for font in files:
        if font.file_name == literal or strip_font_extension(font.file_name) == literal:
            return font
    return None


def resolve_font(catalog: Catalog, base_name: str, variant: str | None = None) -> FontFile | None:
    """Resolve a (base name, variant) selection to a font file.

    Lookup order:
      1. variant given: the file parsed as exactly (base_name, variant)
      2. no variant: the first file, in listing order, with that base name
      3. a file whose name (with or without extension) equals the literal
         request: ``base_name``, or ``base_name_variant`` when a variant was given
    Returns None when nothing matches; callers fall back to the default family.
    """
    files = catalog.files

    if _has_variant(variant):
        for font in files:
            parsed = parse_font_name(font.file_name)
            if parsed.base_name == base_name and parsed.variant == variant:
                return font
        literal = f"{base_name}_{variant}"
    else:
        for font in files:
            if parse_font_name(font.file_name).base_name == base_name:
                return font
        literal = base_name

    found = _find_literal(files, literal)
    if found is None:
        logger.info("Font not found: %s (variant=%s)", base_name, variant)
    return found
