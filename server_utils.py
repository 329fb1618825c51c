"""Shared utilities for serve.py and the serverless API handlers.

Consolidates request parsing (JSON/multipart bodies, query parameters),
preview parameter validation, and HTTP response helpers for JSON, CSS,
PNG and font payloads.
"""

from __future__ import annotations

import hashlib
import json
import logging
from email.parser import BytesParser
from email.policy import HTTP
from http.server import BaseHTTPRequestHandler
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

from pydantic import ValidationError

from fontpreview.config import MAX_UPLOAD_FILES, MAX_UPLOAD_SIZE, NO_VARIANT
from fontpreview.names import mime_type
from fontpreview.schema import PreviewStyle

logger = logging.getLogger("fontpreview.server")

# Whole multipart request: every file at the per-file limit plus form overhead
MAX_BODY_SIZE = MAX_UPLOAD_SIZE * MAX_UPLOAD_FILES + 64 * 1024

ALLOWED_ORIGINS = {"http://localhost:8042", "http://127.0.0.1:8042"}

FONT_CACHE_CONTROL = "public, max-age=31536000"


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------


def split_path(raw_path: str) -> tuple[str, dict[str, str]]:
    """Split a request path into (path, single-valued query dict)."""
    parts = urlsplit(raw_path)
    query = {k: v[-1] for k, v in parse_qs(parts.query, keep_blank_values=True).items()}
    return parts.path, query


def font_name_from_path(path: str, prefix: str) -> str | None:
    """Extract the URL-decoded font name after ``prefix`` ("/api/font/")."""
    if not path.startswith(prefix):
        return None
    name = unquote(path[len(prefix) :])
    return name or None


def read_raw_body(handler: BaseHTTPRequestHandler, max_size: int = MAX_BODY_SIZE) -> bytes | None:
    """Read the request body.

    Returns the bytes on success, or None if an error response was already
    sent to the client.
    """
    try:
        length = int(handler.headers.get("Content-Length", 0))
    except ValueError:
        length = -1
    if length < 0 or length > max_size:
        logger.warning(
            "Rejected request from %s: payload too large (%d bytes)",
            handler.client_address[0],
            length,
        )
        json_error(handler, "Payload too large", 413)
        return None
    if length == 0:
        logger.warning("Rejected request from %s: empty body", handler.client_address[0])
        json_error(handler, "Empty body", 400)
        return None
    return handler.rfile.read(length)


def parse_multipart(content_type: str, body: bytes) -> list[tuple[str | None, str | None, bytes]]:
    """Parse a multipart/form-data body into (field, filename, payload) tuples."""
    header = f"Content-Type: {content_type}\r\n\r\n".encode("latin-1")
    message = BytesParser(policy=HTTP).parsebytes(header + body)
    if not message.is_multipart():
        return []

    parts = []
    for part in message.iter_parts():
        field = part.get_param("name", header="content-disposition")
        filename = part.get_filename()
        payload = part.get_payload(decode=True) or b""
        parts.append((field, filename, payload))
    return parts


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_preview_params(query: dict[str, str]) -> tuple[dict | None, str | None]:
    """Validate preview query parameters.

    Returns (params_dict, None) on success or (None, error_message) on failure.
    The params_dict contains keys: name, variant, style, text.
    """
    name = query.get("name", "").strip() or None
    variant = query.get("variant", "").strip() or None
    if variant == NO_VARIANT:
        variant = None

    raw_style = {
        "sizePx": query.get("size"),
        "letterSpacingEm": query.get("letterSpacing"),
        "lineHeight": query.get("lineHeight"),
        "writingMode": query.get("writingMode"),
        "textAlign": query.get("textAlign"),
    }
    try:
        style = PreviewStyle(**{k: v for k, v in raw_style.items() if v not in (None, "")})
    except ValidationError as e:
        first = e.errors()[0]
        field = first["loc"][0] if first.get("loc") else "style"
        return None, f"Invalid {field}: {first['msg']}"

    text = query.get("text", "")
    if len(text) > 500:
        return None, "text must be at most 500 characters"

    return {"name": name, "variant": variant, "style": style, "text": text}, None


# ---------------------------------------------------------------------------
# HTTP helpers (work with any BaseHTTPRequestHandler subclass)
# ---------------------------------------------------------------------------


def _send_cors(handler: BaseHTTPRequestHandler) -> None:
    origin = handler.headers.get("Origin", "")
    if origin in ALLOWED_ORIGINS:
        handler.send_header("Access-Control-Allow-Origin", origin)
        handler.send_header("Vary", "Origin")


def send_bytes(
    handler: BaseHTTPRequestHandler,
    body: bytes,
    content_type: str,
    status: int = 200,
    headers: dict[str, str] | None = None,
) -> None:
    """Send a raw response with CORS headers and optional extra headers."""
    handler.send_response(status)
    handler.send_header("Content-Type", content_type)
    handler.send_header("Content-Length", str(len(body)))
    _send_cors(handler)
    if headers:
        for k, v in headers.items():
            handler.send_header(k, v)
    handler.end_headers()
    if handler.command != "HEAD":
        handler.wfile.write(body)


def json_response(
    handler: BaseHTTPRequestHandler,
    data: Any,
    status: int = 200,
    headers: dict[str, str] | None = None,
) -> None:
    """Send a JSON response."""
    body = json.dumps(data, ensure_ascii=False).encode("utf-8")
    send_bytes(handler, body, "application/json; charset=utf-8", status, headers)


def json_error(handler: BaseHTTPRequestHandler, message: str, status: int = 400) -> None:
    """Send a JSON error response."""
    json_response(handler, {"error": message}, status)


def font_response(handler: BaseHTTPRequestHandler, name: str, data: bytes) -> None:
    """Send font bytes with the MIME type for the extension and a long cache lifetime."""
    send_bytes(
        handler,
        data,
        mime_type(name),
        headers={
            "Cache-Control": FONT_CACHE_CONTROL,
            "Access-Control-Expose-Headers": "Content-Length, Content-Type",
        },
    )


def etag_for_bytes(data: bytes) -> str:
    """Compute a short ETag for HTTP caching."""
    return hashlib.md5(data).hexdigest()[:16]
