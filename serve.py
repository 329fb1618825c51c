"""Custom HTTP server for fontpreview with the font storage API.

Extends SimpleHTTPRequestHandler to add:
- GET    /api/list-fonts:   List stored fonts (?details=1 adds family names)
- GET    /api/catalog:      Font names with their sorted variant numbers
- GET    /api/font/<name>:  Font bytes
- PUT    /api/font/<name>:  Upload one font as the raw request body
- DELETE /api/font/<name>:  Delete a font
- POST   /api/upload-font:  Upload fonts from a multipart form ("fonts" field),
                            or one raw-body font named by ?name=
- GET    /api/preview.css:  @font-face rules plus the preview rule for a selection
- GET    /api/preview.png:  Rendered preview image for a selection

All other GET/HEAD requests are handled by the default static file server.
"""

import functools
import logging
import os
import sys
from http.server import HTTPServer, SimpleHTTPRequestHandler
from urllib.parse import quote

from fontpreview.catalog import resolve_font
from fontpreview.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_FAMILY,
    DEFAULT_FONTS_DIR,
    DEFAULT_STORAGE,
    MAX_UPLOAD_FILES,
)
from fontpreview.errors import FontNotFoundError, MalformedUploadError, StorageError
from fontpreview.preview import prepare_preview, refresh_catalog
from fontpreview.providers import providers_for
from fontpreview.render import (
    ImageTarget,
    StylesheetTarget,
    describe_selection,
    font_family_for,
    preview_classes,
)
from fontpreview.storage import FontStorage, open_storage, validate_upload
from server_fonts import list_fonts
from server_utils import (
    ALLOWED_ORIGINS,
    etag_for_bytes,
    font_name_from_path,
    font_response,
    json_error,
    json_response,
    parse_multipart,
    read_raw_body,
    send_bytes,
    split_path,
    validate_preview_params,
)

logger = logging.getLogger("fontpreview.server")

FONT_PREFIX = "/api/font/"
PUBLIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "public")

# In-memory cache of name-table metadata keyed by (file name, size)
_font_metadata: dict[tuple[str, int], dict[str, str]] = {}


class FontServerHandler(SimpleHTTPRequestHandler):
    """HTTP handler with font list, upload, delete and preview APIs."""

    def __init__(self, *args, storage: FontStorage, **kwargs):
        self.storage = storage
        super().__init__(*args, directory=PUBLIC_DIR, **kwargs)

    def list_directory(self, path):
        self.send_error(403, "Directory listing not allowed")
        return None

    def end_headers(self):
        self.send_header("X-Content-Type-Options", "nosniff")
        self.send_header("X-Frame-Options", "SAMEORIGIN")
        self.send_header("Referrer-Policy", "strict-origin-when-cross-origin")
        super().end_headers()

    def do_GET(self):
        path, query = split_path(self.path)
        if path == "/api/list-fonts":
            self._handle_list_fonts(query)
        elif path == "/api/catalog":
            self._handle_catalog()
        elif path == "/api/preview.css":
            self._handle_preview_css(query)
        elif path == "/api/preview.png":
            self._handle_preview_png(query)
        elif path.startswith(FONT_PREFIX):
            self._handle_get_font(path)
        elif path.startswith("/api/"):
            json_error(self, "Not Found", 404)
        else:
            super().do_GET()

    def do_POST(self):
        path, query = split_path(self.path)
        if path == "/api/upload-font":
            self._handle_upload(query)
        else:
            json_error(self, "Not Found", 404)

    def do_PUT(self):
        path, _ = split_path(self.path)
        name = font_name_from_path(path, FONT_PREFIX)
        if name is None:
            json_error(self, "Not Found", 404)
            return
        self._handle_put_font(name)

    def do_DELETE(self):
        path, _ = split_path(self.path)
        name = font_name_from_path(path, FONT_PREFIX)
        if name is None:
            json_error(self, "Not Found", 404)
            return
        self._handle_delete_font(name)

    def do_OPTIONS(self):
        """Handle CORS preflight requests."""
        self.send_response(204)
        origin = self.headers.get("Origin", "")
        if origin in ALLOWED_ORIGINS:
            self.send_header("Access-Control-Allow-Origin", origin)
            self.send_header("Vary", "Origin")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, PUT, DELETE, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    # -- listing ----------------------------------------------------------------------

    def _handle_list_fonts(self, query):
        details = query.get("details", "") in ("1", "true")
        try:
            fonts = list_fonts(self.storage, details=details, metadata_cache=_font_metadata)
        except StorageError as e:
            logger.exception("Font listing failed")
            json_error(self, str(e), 500)
            return
        self.log_message("Listed %d fonts", len(fonts))
        json_response(self, fonts)

    def _handle_catalog(self):
        catalog, listing = refresh_catalog(providers_for(self.storage))
        data = catalog.to_dict()
        if not listing.ok:
            data["error"] = listing.error
        json_response(self, data)

    # -- single font ------------------------------------------------------------------

    def _handle_get_font(self, path):
        name = font_name_from_path(path, FONT_PREFIX)
        try:
            data = self.storage.get(name)
        except FontNotFoundError:
            json_error(self, "Font not found", 404)
            return
        except StorageError:
            logger.exception("Font read failed for %s", name)
            json_error(self, "Internal server error", 500)
            return
        font_response(self, name, data)

    def _handle_put_font(self, name):
        data = read_raw_body(self)
        if data is None:
            return
        self._store_one(name, data)

    def _store_one(self, name, data):
        try:
            stored = self.storage.put(name, data)
        except MalformedUploadError as e:
            logger.warning("Rejected upload from %s: %s", self.client_address[0], e)
            json_error(self, str(e), 400)
            return
        except StorageError:
            logger.exception("Upload failed for %s", name)
            json_error(self, "Internal server error", 500)
            return
        self.log_message("Uploaded font: %s (%d bytes)", stored.file_name, stored.size_bytes)
        json_response(self, {"ok": True, "files": [_stored_entry(stored)]}, 201)

    def _handle_delete_font(self, name):
        try:
            self.storage.delete(name)
        except FontNotFoundError:
            json_error(self, "Font not found", 404)
            return
        except StorageError as e:
            logger.exception("Delete failed for %s", name)
            json_error(self, str(e), 500)
            return
        self.log_message("Deleted font: %s", name)
        json_response(self, {"ok": True, "message": f"Deleted {name}"})

    # -- form upload ------------------------------------------------------------------

    def _handle_upload(self, query):
        body = read_raw_body(self)
        if body is None:
            return

        content_type = self.headers.get("Content-Type", "")
        if not content_type.startswith("multipart/form-data"):
            name = query.get("name", "").strip()
            if name:
                self._store_one(name, body)
            else:
                json_error(self, "Expected multipart/form-data or a ?name= parameter", 400)
            return

        uploads = [
            (filename, payload)
            for field, filename, payload in parse_multipart(content_type, body)
            if field == "fonts" and filename
        ]
        if not uploads:
            json_error(self, "No files uploaded", 400)
            return
        if len(uploads) > MAX_UPLOAD_FILES:
            json_error(self, f"At most {MAX_UPLOAD_FILES} files per upload", 400)
            return

        # Validate everything first so a bad file leaves nothing behind
        for filename, payload in uploads:
            try:
                validate_upload(filename, payload)
            except MalformedUploadError as e:
                logger.warning("Rejected upload from %s: %s", self.client_address[0], e)
                json_error(self, str(e), 400)
                return

        stored = []
        try:
            for filename, payload in uploads:
                stored.append(self.storage.put(filename, payload))
        except StorageError as e:
            logger.exception("Upload failed")
            json_error(self, str(e), 500)
            return

        self.log_message("Uploaded %d font(s)", len(stored))
        json_response(
            self,
            {
                "ok": True,
                "message": f"Uploaded {len(stored)} font file(s)",
                "files": [_stored_entry(font) for font in stored],
            },
        )

    # -- preview ----------------------------------------------------------------------

    def _preview_inputs(self, query):
        params, error = validate_preview_params(query)
        if error:
            logger.warning("Rejected preview request from %s: %s", self.client_address[0], error)
            json_error(self, error, 400)
            return None, None
        catalog, _ = refresh_catalog(providers_for(self.storage))
        return params, catalog

    def _handle_preview_css(self, query):
        params, catalog = self._preview_inputs(query)
        if params is None:
            return

        # Faces are served by URL, so only the family of the selection is applied here
        target = StylesheetTarget()
        for font in catalog.files:
            target.register_file(font, FONT_PREFIX + quote(font.file_name))

        name, variant = params["name"], params["variant"]
        font = resolve_font(catalog, name, variant) if name else None
        family = font_family_for(font) if font is not None else DEFAULT_FAMILY
        target.apply_style(params["style"].model_copy(update={"font_family": family}))
        label = describe_selection(name, variant, found=font is not None or not name)

        send_bytes(
            self,
            target.stylesheet().encode("utf-8"),
            "text/css; charset=utf-8",
            headers={
                "X-Font-Selection": quote(label),
                "X-Preview-Classes": " ".join(preview_classes(target.style)),
            },
        )

    def _handle_preview_png(self, query):
        params, catalog = self._preview_inputs(query)
        if params is None:
            return

        target = ImageTarget()
        result = prepare_preview(
            self.storage, catalog, target, params["name"], params["variant"], params["style"]
        )
        try:
            png = target.render_png(params["text"] or "Preview")
        except (OSError, ValueError):
            logger.exception("Preview rendering failed")
            json_error(self, "Internal server error", 500)
            return
        send_bytes(
            self,
            png,
            "image/png",
            headers={"ETag": f'"{etag_for_bytes(png)}"', "X-Font-Selection": quote(result.label)},
        )

    def log_message(self, fmt, *args):
        sys.stderr.write(f"[serve] {fmt % args}\n")


def _stored_entry(font):
    return {
        "name": font.file_name,
        "size": font.size_bytes,
        "dateAdded": font.date_added.isoformat() if font.date_added else None,
    }


def make_server(storage: FontStorage, host: str = "127.0.0.1", port: int = 8042) -> HTTPServer:
    """Create an HTTPServer whose handlers share ``storage``."""
    handler = functools.partial(FontServerHandler, storage=storage)
    return HTTPServer((host, port), handler)


def main():
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8042
    try:
        storage = open_storage(
            DEFAULT_STORAGE, fonts_dir=DEFAULT_FONTS_DIR, cache_dir=DEFAULT_CACHE_DIR
        )
    except (RuntimeError, ValueError) as e:
        sys.exit(f"Cannot open {DEFAULT_STORAGE} storage: {e}")
    server = make_server(storage, port=port)
    print(f"fontpreview server on http://127.0.0.1:{port}")
    print(f"Storage:     {DEFAULT_STORAGE}")
    if DEFAULT_STORAGE in ("local", "layered"):
        font_count = len(storage.list())
        print(f"Fonts dir:   {os.path.abspath(DEFAULT_FONTS_DIR)}/ ({font_count} fonts)")
    print("Press Ctrl+C to stop\n")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down.")
        server.server_close()


if __name__ == "__main__":
    main()
