"""Vercel Serverless Function: GET /api/fonts

Lists the font files stored in the configured GitHub repository directory.
Query: ?ref=<branch> overrides GITHUB_BRANCH.
"""

import logging
from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs, urlsplit

from _shared import cors_headers, github_source, json_response

from fontpreview.errors import SourceUnavailableError

logger = logging.getLogger("fontpreview.api")


class handler(BaseHTTPRequestHandler):
    def do_GET(self):
        cors = cors_headers(self.headers.get("Origin", ""))
        query = parse_qs(urlsplit(self.path).query)
        ref = (query.get("ref") or [None])[0] or None

        try:
            source = github_source()
        except RuntimeError as e:
            logger.error("GitHub source not configured: %s", e)
            json_response(self, 500, {"error": "Font source not configured"}, cors)
            return

        try:
            fonts = source.list(ref)
        except SourceUnavailableError as e:
            logger.warning("Listing failed: %s", e)
            status = 404 if e.status == 404 else 502
            json_response(self, status, {"error": str(e)}, cors)
            return

        data = [{"name": f.name, "size": f.size, "downloadUrl": f.download_url} for f in fonts]
        headers = {**cors, "Cache-Control": "public, s-maxage=60"}
        json_response(self, 200, data, headers)

    def do_OPTIONS(self):
        cors = cors_headers(self.headers.get("Origin", ""))
        self.send_response(204)
        for k, v in cors.items():
            self.send_header(k, v)
        self.end_headers()
