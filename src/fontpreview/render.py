"""Render targets for the font preview.

A render target accepts font-face registrations and a PreviewStyle:

  StylesheetTarget - emits @font-face rules and the preview CSS rule for a browser
  ImageTarget      - draws the preview text with Pillow (PNG output)

Registration returns a Future. A style naming a family whose registration has
not settled (or failed) renders with the fallback font; ``fonts_ready()``
resolves once every registration has settled.
"""

from __future__ import annotations

import base64
import contextlib
import io
import logging
import math
import threading
from concurrent.futures import Future, InvalidStateError
from typing import Protocol

from PIL import Image, ImageDraw, ImageFont

from fontpreview.config import DEFAULT_LABEL, NOT_FOUND_LABEL
from fontpreview.names import font_format, strip_font_extension
from fontpreview.schema import FontFace, FontFile, PreviewStyle

logger = logging.getLogger(__name__)

GENERIC_FAMILIES = {"serif", "sans-serif", "monospace", "cursive", "fantasy", "system-ui"}

# Vertical text: left/center/right alignment means top/center/bottom of the column
_VERTICAL_ALIGN = {"left": "start", "center": "center", "right": "end"}
_VERTICAL_CLASS = {
    "left": "vertical-align-top",
    "center": "vertical-align-center",
    "right": "vertical-align-bottom",
}
_HORIZONTAL_LABELS = {"left": "Left", "center": "Center", "right": "Right"}
_VERTICAL_LABELS = {"left": "Top", "center": "Center", "right": "Bottom"}


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def font_family_for(font: FontFile) -> str:
    """Family name a font file is registered under: its file name without extension."""
    return strip_font_extension(font.file_name)


def describe_selection(base_name: str | None, variant: str | None, found: bool) -> str:
    """Text shown for the current selection.

    "SATO", "02", found     -> "SATO_02"
    "SATO", "99", not found -> "SATO_99 (not found)"
    nothing selected        -> "Default"
    """
    if not base_name:
        return DEFAULT_LABEL
    label = f"{base_name}_{variant}" if variant else base_name
    return label if found else f"{label} {NOT_FOUND_LABEL}"


def text_align_label(style: PreviewStyle) -> str:
    labels = _VERTICAL_LABELS if style.is_vertical else _HORIZONTAL_LABELS
    return labels[style.text_align]


def writing_mode_label(style: PreviewStyle) -> str:
    return "Vertical" if style.is_vertical else "Horizontal"


# ---------------------------------------------------------------------------
# CSS
# ---------------------------------------------------------------------------


def _css_number(value: float) -> str:
    return f"{value:g}"


def _css_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def css_family(family: str) -> str:
    """Quote a custom family name; generic families stay bare."""
    if family in GENERIC_FAMILIES:
        return family
    return '"' + family.replace('"', '\\"') + '"'


def css_text_align(style: PreviewStyle) -> str:
    if style.is_vertical:
        return _VERTICAL_ALIGN[style.text_align]
    return style.text_align


def preview_classes(style: PreviewStyle) -> list[str]:
    if not style.is_vertical:
        return []
    return ["vertical-writing", _VERTICAL_CLASS[style.text_align]]


def preview_declarations(style: PreviewStyle) -> dict[str, str]:
    """CSS declarations applied to the preview element."""
    return {
        "font-family": css_family(style.font_family),
        "font-size": f"{style.size_px}px",
        "letter-spacing": f"{_css_number(style.letter_spacing_em)}em",
        "line-height": _css_number(style.line_height),
        "writing-mode": style.writing_mode,
        "text-align": css_text_align(style),
    }


def font_face_rule(face: FontFace) -> str:
    return (
        "@font-face {\n"
        f"    font-family: '{_css_string(face.family)}';\n"
        f"    src: url('{_css_string(face.src)}') format('{face.format}');\n"
        "    font-weight: normal;\n"
        "    font-style: normal;\n"
        "}"
    )


def data_uri(data: bytes, fmt: str) -> str:
    mime = {"truetype": "font/ttf", "opentype": "font/otf"}.get(fmt, f"font/{fmt}")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


class RenderTarget(Protocol):
    """Where the preview is shown: accepts font faces and a style."""

    def register_font(self, name: str, data: bytes, fmt: str) -> Future: ...

    def fonts_ready(self) -> Future: ...

    def apply_style(self, style: PreviewStyle) -> None: ...


class _FaceRegistry:
    """Shared bookkeeping: registered faces and their settle futures."""

    def __init__(self):
        self.faces: dict[str, FontFace] = {}
        self.style = PreviewStyle()
        self._pending: list[Future] = []

    def _track(self, future: Future) -> Future:
        self._pending.append(future)
        return future

    def fonts_ready(self) -> Future:
        """Future resolving to the registered family names once all registrations settle."""
        ready: Future = Future()
        pending = list(self._pending)
        lock = threading.Lock()

        def _settle(_=None):
            with lock:
                if ready.done() or not all(f.done() for f in pending):
                    return
                with contextlib.suppress(InvalidStateError):
                    ready.set_result(sorted(self.faces))

        if not pending:
            _settle()
        for future in pending:
            future.add_done_callback(_settle)
        return ready

    def apply_style(self, style: PreviewStyle) -> None:
        """Apply a style. The family may be applied before its face is ready."""
        self.style = style


class StylesheetTarget(_FaceRegistry):
    """Collects @font-face rules and renders the preview stylesheet."""

    def __init__(self, selector: str = "#preview-text"):
        super().__init__()
        self.selector = selector

    def register_font(self, name: str, data: bytes, fmt: str) -> Future:
        return self._register(FontFace(family=name, format=fmt, src=data_uri(data, fmt)))

    def register_url(self, name: str, url: str, fmt: str) -> Future:
        return self._register(FontFace(family=name, format=fmt, src=url))

    def register_file(self, font: FontFile, url: str) -> Future:
        """Register a listed font served from ``url``."""
        fmt = font_format(font.file_name) or "woff2"
        return self.register_url(font_family_for(font), url, fmt)

    def _register(self, face: FontFace) -> Future:
        self.faces[face.family] = face
        future: Future = Future()
        future.set_result(face)
        return self._track(future)

    def stylesheet(self) -> str:
        rules = [font_face_rule(face) for face in self.faces.values()]
        body = "\n".join(
            f"    {prop}: {value};" for prop, value in preview_declarations(self.style).items()
        )
        rules.append(f"{self.selector} {{\n{body}\n}}")
        return "\n\n".join(rules) + "\n"


class ImageTarget(_FaceRegistry):
    """Draws the preview text into a grayscale Pillow image."""

    def __init__(self, padding: int = 16):
        super().__init__()
        self.padding = padding
        self._data: dict[str, bytes] = {}

    def register_font(self, name: str, data: bytes, fmt: str) -> Future:
        future: Future = Future()
        try:
            ImageFont.truetype(io.BytesIO(data), size=12)
        except OSError as e:
            logger.warning("Could not load font face %s (%s)", name, fmt)
            future.set_exception(e)
        else:
            self._data[name] = data
            face = FontFace(family=name, format=fmt, src=f"memory:{name}")
            self.faces[name] = face
            future.set_result(face)
        return self._track(future)

    def uses_custom_font(self) -> bool:
        return self.style.font_family in self._data

    def _load_font(self, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        data = self._data.get(self.style.font_family)
        if data is not None:
            return ImageFont.truetype(io.BytesIO(data), size=size)
        return ImageFont.load_default(size=size)

    def render(self, text: str) -> Image.Image:
        style = self.style
        font = self._load_font(style.size_px)
        lines = text.split("\n") or [""]
        if style.is_vertical:
            return self._render_vertical(lines, font)
        return self._render_horizontal(lines, font)

    def render_png(self, text: str) -> bytes:
        buf = io.BytesIO()
        self.render(text).save(buf, format="PNG")
        return buf.getvalue()

    def _render_horizontal(self, lines: list[str], font) -> Image.Image:
        style = self.style
        size = style.size_px
        spacing = style.letter_spacing_em * size
        advance = style.line_height * size

        def line_width(line: str) -> float:
            if not line:
                return 0.0
            return max(0.0, sum(font.getlength(ch) for ch in line) + spacing * (len(line) - 1))

        widths = [line_width(line) for line in lines]
        max_width = max(widths)
        pad = self.padding
        img = Image.new(
            "L",
            (math.ceil(max_width) + 2 * pad, math.ceil(advance * len(lines)) + 2 * pad),
            255,
        )
        draw = ImageDraw.Draw(img)

        for i, (line, width) in enumerate(zip(lines, widths)):
            if style.text_align == "center":
                x = pad + (max_width - width) / 2
            elif style.text_align == "right":
                x = pad + max_width - width
            else:
                x = pad
            y = pad + i * advance + (advance - size) / 2
            for ch in line:
                draw.text((x, y), ch, font=font, fill=0)
                x += font.getlength(ch) + spacing
        return img

    def _render_vertical(self, lines: list[str], font) -> Image.Image:
        """Columns run top to bottom, laid out right to left."""
        style = self.style
        size = style.size_px
        step = max(1.0, size + style.letter_spacing_em * size)
        advance = style.line_height * size

        heights = [(len(line) - 1) * step + size if line else 0.0 for line in lines]
        max_height = max(heights)
        pad = self.padding
        img = Image.new(
            "L",
            (math.ceil(advance * len(lines)) + 2 * pad, math.ceil(max_height) + 2 * pad),
            255,
        )
        draw = ImageDraw.Draw(img)

        for i, (line, height) in enumerate(zip(lines, heights)):
            column_x = pad + (len(lines) - 1 - i) * advance + (advance - size) / 2
            if style.text_align == "center":
                y = pad + (max_height - height) / 2
            elif style.text_align == "right":
                y = pad + max_height - height
            else:
                y = pad
            for ch in line:
                x = column_x + (size - font.getlength(ch)) / 2
                draw.text((x, y), ch, font=font, fill=0)
                y += step
        return img
