"""Constants and configuration for fontpreview."""

import os

# Accepted font extensions and the CSS format() keyword each one declares
FONT_FORMATS: dict[str, str] = {
    ".woff2": "woff2",
    ".woff": "woff",
    ".ttf": "truetype",
    ".otf": "opentype",
}
FONT_EXTENSIONS = set(FONT_FORMATS)

FONT_MIME_TYPES: dict[str, str] = {
    ".woff2": "font/woff2",
    ".woff": "font/woff",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

# Upload limits
MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB per file
MAX_UPLOAD_FILES = 20

# Selection
NO_VARIANT = "none"  # sentinel sent by the number selector when nothing is picked
DEFAULT_FAMILY = "sans-serif"
NOT_FOUND_LABEL = "(not found)"
DEFAULT_LABEL = "Default"

# Preview style ranges: (min, max, default)
FONT_SIZE_RANGE = (5, 200, 60)
LETTER_SPACING_RANGE = (-0.5, 1.0, 0.0)
LINE_HEIGHT_RANGE = (1.0, 3.0, 2.0)

WRITING_MODES = ("horizontal-tb", "vertical-rl")
TEXT_ALIGNS = ("left", "center", "right")

DEFAULT_PREVIEW_TEXT = "The quick brown fox jumps over the lazy dog\n0123456789"

# Shown when no listing source answers
PLACEHOLDER_FONTS = (
    "YAMADA_01.woff2",
    "YAMADA_02.woff2",
    "SATO_01.woff2",
    "SATO_02.woff2",
    "font_6.woff2",
    "my_handwritten_font_446737.woff2",
    "my_handwritten_font80.woff2",
    "my_handwritten_font76.woff2",
)

# Storage selection (read once at startup)
STORAGE_KINDS = ("local", "memory", "layered", "github")
DEFAULT_STORAGE = os.environ.get("FONTPREVIEW_STORAGE", "local")
DEFAULT_FONTS_DIR = os.environ.get("FONTPREVIEW_FONTS_DIR", "fonts")
DEFAULT_CACHE_DIR = os.environ.get("FONTPREVIEW_CACHE_DIR", os.path.join(".cache", "fonts"))

# GitHub-backed remote source
GITHUB_API_BASE = "https://api.github.com"
GITHUB_FONTS_PATH = "fonts"
GITHUB_DEFAULT_BRANCH = "fix-font-display"
REMOTE_TIMEOUT = 10
