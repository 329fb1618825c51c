"""Tests for the pydantic models in fontpreview.schema."""

import pytest
from pydantic import ValidationError

from fontpreview.schema import (
    Catalog,
    CatalogEntry,
    FontFile,
    PreviewStyle,
    SourceOrigin,
)


class TestFontFile:
    def test_from_bytes(self):
        font = FontFile.from_bytes("a.ttf", b"abcd", SourceOrigin.MEMORY)
        assert font.size_bytes == 4
        assert font.data == b"abcd"
        assert font.source is SourceOrigin.MEMORY

    def test_non_font_name_rejected(self):
        with pytest.raises(ValidationError, match="Not a font file name"):
            FontFile(file_name="a.png")

    def test_trailing_newline_rejected(self):
        with pytest.raises(ValidationError, match="Not a font file name"):
            FontFile(file_name="evil.woff2\n")

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            FontFile(file_name="a.ttf", size_bytes=-1)

    def test_frozen(self):
        font = FontFile(file_name="a.ttf")
        with pytest.raises(ValidationError):
            font.file_name = "b.ttf"

    def test_data_not_in_repr(self):
        assert "secret" not in repr(FontFile.from_bytes("a.ttf", b"secret"))


class TestCatalogModels:
    def test_entry_needs_variants(self):
        with pytest.raises(ValidationError):
            CatalogEntry(base_name="SATO", variants=[])

    def test_empty_catalog(self):
        catalog = Catalog()
        assert len(catalog) == 0
        assert catalog.base_names() == []


class TestPreviewStyle:
    def test_defaults(self):
        style = PreviewStyle()
        assert style.font_family == "sans-serif"
        assert style.size_px == 60
        assert style.letter_spacing_em == 0.0
        assert style.line_height == 2.0
        assert style.writing_mode == "horizontal-tb"
        assert style.text_align == "left"
        assert not style.is_vertical

    def test_aliases(self):
        style = PreviewStyle(
            fontFamily="SATO_01",
            sizePx=24,
            letterSpacingEm=0.1,
            lineHeight=1.5,
            writingMode="vertical-rl",
            textAlign="center",
        )
        assert style.font_family == "SATO_01"
        assert style.size_px == 24
        assert style.is_vertical

    def test_query_strings_coerced(self):
        style = PreviewStyle(sizePx="24", letterSpacingEm="0.25")
        assert style.size_px == 24
        assert style.letter_spacing_em == 0.25

    @pytest.mark.parametrize("size", [5, 200])
    def test_size_bounds_inclusive(self, size):
        assert PreviewStyle(size_px=size).size_px == size

    @pytest.mark.parametrize("size", [4, 201])
    def test_size_out_of_range(self, size):
        with pytest.raises(ValidationError, match="Font size must be between"):
            PreviewStyle(size_px=size)

    @pytest.mark.parametrize("spacing", [-0.6, 1.1])
    def test_letter_spacing_out_of_range(self, spacing):
        with pytest.raises(ValidationError):
            PreviewStyle(letter_spacing_em=spacing)

    @pytest.mark.parametrize("height", [0.9, 3.5])
    def test_line_height_out_of_range(self, height):
        with pytest.raises(ValidationError):
            PreviewStyle(line_height=height)

    def test_unknown_writing_mode(self):
        with pytest.raises(ValidationError, match="Writing mode"):
            PreviewStyle(writing_mode="sideways-lr")

    def test_unknown_text_align(self):
        with pytest.raises(ValidationError, match="Text align"):
            PreviewStyle(text_align="justify")

    def test_blank_family_becomes_default(self):
        assert PreviewStyle(font_family="  ").font_family == "sans-serif"
