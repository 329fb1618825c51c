"""Selection-to-preview glue: resolve a font, register it, apply the style."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from fontpreview.catalog import build_catalog, resolve_font
from fontpreview.config import DEFAULT_FAMILY
from fontpreview.errors import StorageError
from fontpreview.names import font_format
from fontpreview.providers import ListingProvider, ListingResult, first_listing
from fontpreview.render import RenderTarget, describe_selection, font_family_for
from fontpreview.schema import Catalog, FontFile, PreviewStyle
from fontpreview.storage import FontStorage

logger = logging.getLogger(__name__)


@dataclass
class PreviewResult:
    """What the preview ended up showing."""

    font: FontFile | None
    label: str
    style: PreviewStyle

    @property
    def found(self) -> bool:
        return self.font is not None


def refresh_catalog(providers: Iterable[ListingProvider]) -> tuple[Catalog, ListingResult]:
    """Fetch a listing from the first working provider and build a fresh catalog."""
    listing = first_listing(providers)
    return build_catalog(listing.files), listing


def prepare_preview(
    storage: FontStorage,
    catalog: Catalog,
    target: RenderTarget,
    base_name: str | None,
    variant: str | None = None,
    style: PreviewStyle | None = None,
) -> PreviewResult:
    """Resolve the selection, register its font on ``target`` and apply ``style``.

    A missing font (or one whose bytes cannot be read) falls back to the
    default family; the label then says "(not found)".
    """
    style = style or PreviewStyle()
    font = resolve_font(catalog, base_name, variant) if base_name else None
    family = DEFAULT_FAMILY

    if font is not None:
        try:
            data = storage.get(font.file_name)
        except StorageError as e:
            logger.warning("Could not load %s for preview: %s", font.file_name, e)
            font = None
        else:
            family = font_family_for(font)
            target.register_font(family, data, font_format(font.file_name) or "woff2")

    applied = style.model_copy(update={"font_family": family})
    target.apply_style(applied)
    label = describe_selection(base_name, variant, found=font is not None or not base_name)
    return PreviewResult(font=font, label=label, style=applied)
