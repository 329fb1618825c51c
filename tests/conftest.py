"""Shared fixtures for fontpreview tests."""

import errno
import io
import random
from pathlib import Path

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen

from fontpreview.catalog import build_catalog, font_files_from_names
from fontpreview.storage import LocalStorage, MemoryStorage

# -- Sample listings --------------------------------------------------------

SAMPLE_NAMES = [
    "YAMADA_01.woff2",
    "YAMADA_02.woff2",
    "SATO_01.woff2",
    "SATO_02.woff2",
    "font_6.woff2",
    "my_handwritten_font_446737.woff2",
    "my_handwritten_font80.woff2",
    "AZEGAMI_10.ttf",
    "AZEGAMI_02.ttf",
    "AZEGAMI_01.ttf",
    "Standalone.otf",
]

TEST_FAMILY = "Preview Test"

# Characters the generated test font has glyphs for
TEST_FONT_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"


def build_test_font(family: str = TEST_FAMILY) -> bytes:
    """A tiny TrueType font with one box glyph per ASCII letter and digit."""
    upm, ascent, descent = 1000, 800, -200
    glyph_names = [f"g{ord(ch):04X}" for ch in TEST_FONT_CHARS]

    fb = FontBuilder(upm, isTTF=True)
    fb.setupGlyphOrder([".notdef", "space", *glyph_names])

    glyf = {}
    hmtx = {}
    for name in [".notdef", *glyph_names]:
        pen = TTGlyphPen(None)
        pen.moveTo((50, 0))
        pen.lineTo((550, 0))
        pen.lineTo((550, 700))
        pen.lineTo((50, 700))
        pen.closePath()
        glyf[name] = pen.glyph()
        hmtx[name] = (600, 50)
    glyf["space"] = TTGlyphPen(None).glyph()
    hmtx["space"] = (300, 0)

    fb.setupGlyf(glyf)
    fb.setupHorizontalMetrics(hmtx)
    cmap = {0x20: "space"}
    cmap.update({ord(ch): name for ch, name in zip(TEST_FONT_CHARS, glyph_names)})
    fb.setupCharacterMap(cmap)
    fb.setupHorizontalHeader(ascent=ascent, descent=descent)
    fb.setupOS2(
        sTypoAscender=ascent,
        sTypoDescender=descent,
        usWinAscent=ascent,
        usWinDescent=-descent,
    )
    fb.setupNameTable(
        {
            "familyName": family,
            "styleName": "Regular",
            "uniqueFontIdentifier": f"{family}-Regular",
            "fullName": f"{family} Regular",
            "psName": f"{family.replace(' ', '')}-Regular",
            "version": "Version 1.000",
        }
    )
    fb.setupPost()

    buf = io.BytesIO()
    fb.save(buf)
    return buf.getvalue()


MULTIPART_BOUNDARY = "----fontpreviewtest"
MULTIPART_CONTENT_TYPE = f"multipart/form-data; boundary={MULTIPART_BOUNDARY}"


def multipart_body(parts, boundary=MULTIPART_BOUNDARY):
    """Encode (field, filename, payload) tuples as multipart/form-data."""
    chunks = []
    for field, filename, payload in parts:
        disposition = f'form-data; name="{field}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        head = (
            f"--{boundary}\r\nContent-Disposition: {disposition}\r\n"
            "Content-Type: application/octet-stream\r\n\r\n"
        )
        chunks.append(head.encode() + payload + b"\r\n")
    chunks.append(f"--{boundary}--\r\n".encode())
    return b"".join(chunks)


# -- Filesystem races -------------------------------------------------------


def stat_missing(name):
    """Path.stat replacement reporting ``name`` as gone, as if deleted mid-listing."""
    real_stat = Path.stat

    def stat(self, *args, **kwargs):
        if self.name == name:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(self))
        return real_stat(self, *args, **kwargs)

    return stat


# -- Fixtures ---------------------------------------------------------------


@pytest.fixture(scope="session")
def ttf_bytes():
    """Bytes of a valid TrueType font built with fontTools."""
    return build_test_font()


@pytest.fixture()
def sample_files():
    """Listing-only FontFiles for SAMPLE_NAMES, in listing order."""
    return font_files_from_names(SAMPLE_NAMES)


@pytest.fixture()
def sample_catalog(sample_files):
    return build_catalog(sample_files)


@pytest.fixture()
def shuffled(sample_files):
    """Return a function producing a shuffled copy of the sample listing."""

    def _shuffle(seed):
        files = list(sample_files)
        random.Random(seed).shuffle(files)
        return files

    return _shuffle


@pytest.fixture()
def memory_storage(ttf_bytes):
    """MemoryStorage holding SATO_01/SATO_02 as real TrueType data."""
    storage = MemoryStorage()
    storage.put("SATO_01.ttf", ttf_bytes)
    storage.put("SATO_02.ttf", ttf_bytes)
    return storage


@pytest.fixture()
def local_storage(tmp_path):
    """Empty LocalStorage rooted in a temporary directory."""
    return LocalStorage(tmp_path / "fonts")
