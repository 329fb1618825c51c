"""Pydantic v2 models for font files, catalogs and preview styles."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fontpreview.config import (
    DEFAULT_FAMILY,
    FONT_SIZE_RANGE,
    LETTER_SPACING_RANGE,
    LINE_HEIGHT_RANGE,
    TEXT_ALIGNS,
    WRITING_MODES,
)


class SourceOrigin(str, Enum):
    """Where a font file came from."""

    LOCAL = "local"
    MEMORY = "memory"
    REMOTE = "remote"
    CACHE = "cache"
    PLACEHOLDER = "placeholder"


class FontFile(BaseModel):
    """A font file known to one of the sources. ``data`` is None for listing-only entries."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    data: bytes | None = Field(default=None, repr=False)
    size_bytes: int = 0
    source: SourceOrigin = SourceOrigin.LOCAL
    date_added: datetime | None = None

    @field_validator("file_name")
    @classmethod
    def font_extension_required(cls, v: str) -> str:
        from fontpreview.names import is_font_file

        if not is_font_file(v):
            msg = f"Not a font file name: '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("size_bytes")
    @classmethod
    def size_not_negative(cls, v: int) -> int:
        if v < 0:
            msg = f"Font size must be >= 0, got {v}"
            raise ValueError(msg)
        return v

    @classmethod
    def from_bytes(
        cls,
        file_name: str,
        data: bytes,
        source: SourceOrigin = SourceOrigin.LOCAL,
        date_added: datetime | None = None,
    ) -> FontFile:
        return cls(
            file_name=file_name,
            data=data,
            size_bytes=len(data),
            source=source,
            date_added=date_added,
        )


class ParsedName(BaseModel):
    """A file name split into base name and (optional) variant number."""

    model_config = ConfigDict(frozen=True)

    base_name: str
    variant: str | None = None


class CatalogEntry(BaseModel):
    """One selectable base name with its sorted variants (None = un-numbered file)."""

    base_name: str
    variants: list[str | None]

    @field_validator("variants")
    @classmethod
    def variants_not_empty(cls, v: list[str | None]) -> list[str | None]:
        if not v:
            msg = "Catalog entry must have at least one variant"
            raise ValueError(msg)
        return v


class Catalog(BaseModel):
    """Queryable view over a snapshot of font files.

    ``entries`` are sorted by base name; ``files`` keep the order of the
    listing the catalog was built from.
    """

    entries: list[CatalogEntry] = Field(default_factory=list)
    files: list[FontFile] = Field(default_factory=list, repr=False)

    def __len__(self) -> int:
        return len(self.entries)

    def base_names(self) -> list[str]:
        return [entry.base_name for entry in self.entries]

    def variants(self, base_name: str) -> list[str | None]:
        for entry in self.entries:
            if entry.base_name == base_name:
                return list(entry.variants)
        return []

    def to_dict(self) -> dict:
        """JSON-ready view: {"fonts": [{"name": ..., "variants": [...]}, ...]}."""
        return {
            "fonts": [
                {"name": entry.base_name, "variants": list(entry.variants)}
                for entry in self.entries
            ]
        }


class RemoteFont(BaseModel):
    """A font entry listed by a remote repository."""

    name: str
    path: str
    download_url: str | None = None
    sha: str | None = None
    size: int = 0


class FontFace(BaseModel):
    """A font-face registration: family name, declared format and where to load it from."""

    family: str
    format: str
    src: str


class PreviewStyle(BaseModel):
    """Style parameters applied to the preview text."""

    model_config = ConfigDict(populate_by_name=True)

    font_family: str = Field(default=DEFAULT_FAMILY, alias="fontFamily")
    size_px: int = Field(default=FONT_SIZE_RANGE[2], alias="sizePx")
    letter_spacing_em: float = Field(default=LETTER_SPACING_RANGE[2], alias="letterSpacingEm")
    line_height: float = Field(default=LINE_HEIGHT_RANGE[2], alias="lineHeight")
    writing_mode: str = Field(default=WRITING_MODES[0], alias="writingMode")
    text_align: str = Field(default=TEXT_ALIGNS[0], alias="textAlign")

    @field_validator("size_px")
    @classmethod
    def size_in_range(cls, v: int) -> int:
        low, high, _ = FONT_SIZE_RANGE
        if not low <= v <= high:
            msg = f"Font size must be between {low} and {high}px, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("letter_spacing_em")
    @classmethod
    def letter_spacing_in_range(cls, v: float) -> float:
        low, high, _ = LETTER_SPACING_RANGE
        if not low <= v <= high:
            msg = f"Letter spacing must be between {low} and {high}em, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("line_height")
    @classmethod
    def line_height_in_range(cls, v: float) -> float:
        low, high, _ = LINE_HEIGHT_RANGE
        if not low <= v <= high:
            msg = f"Line height must be between {low} and {high}, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("writing_mode")
    @classmethod
    def known_writing_mode(cls, v: str) -> str:
        if v not in WRITING_MODES:
            msg = f"Writing mode must be one of {', '.join(WRITING_MODES)}, got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("text_align")
    @classmethod
    def known_text_align(cls, v: str) -> str:
        if v not in TEXT_ALIGNS:
            msg = f"Text align must be one of {', '.join(TEXT_ALIGNS)}, got '{v}'"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def family_not_blank(self) -> PreviewStyle:
        if not self.font_family.strip():
            self.font_family = DEFAULT_FAMILY
        return self

    @property
    def is_vertical(self) -> bool:
        return self.writing_mode == "vertical-rl"
