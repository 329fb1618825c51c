"""Vercel Serverless Function: GET /api/font?name=<file>

Downloads one font file from the configured GitHub repository directory and
returns its bytes with the MIME type for its extension.
"""

import logging
from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlsplit

from _shared import cors_headers, github_source, json_response, send_body

from fontpreview.errors import SourceUnavailableError
from fontpreview.names import is_font_file, mime_type
from fontpreview.storage import is_safe_name

logger = logging.getLogger("fontpreview.api")


class handler(BaseHTTPRequestHandler):
    def do_GET(self):
        cors = cors_headers(self.headers.get("Origin", ""))
        query = parse_qs(urlsplit(self.path).query)
        name = (query.get("name") or [""])[0]
        ref = (query.get("ref") or [None])[0] or None

        if not is_safe_name(name) or not is_font_file(name):
            json_response(self, 400, {"error": "Invalid font name"}, cors)
            return

        try:
            source = github_source()
        except RuntimeError as e:
            logger.error("GitHub source not configured: %s", e)
            json_response(self, 500, {"error": "Font source not configured"}, cors)
            return

        try:
            data = source.fetch(name, ref)
        except SourceUnavailableError as e:
            if e.status == 404:
                json_response(self, 404, {"error": "Font not found"}, cors)
                return
            logger.warning("Download failed for %s: %s", name, e)
            json_response(self, 502, {"error": "Font source unavailable"}, cors)
            return

        headers = {**cors, "Cache-Control": "public, max-age=31536000"}
        send_body(self, 200, data, mime_type(name), headers)
