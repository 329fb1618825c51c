"""Shared utilities for the fontpreview serverless endpoints.

Prefixed with _ so Vercel does NOT expose it as a route.
"""

import json
import os
import sys
from pathlib import Path

# Add src/ to Python path so the fontpreview package is importable
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from fontpreview.remote import GitHubFontSource  # noqa: E402

ALLOWED_ORIGINS = {"https://fontpreview.vercel.app"}
if os.environ.get("VERCEL_ENV") != "production":
    ALLOWED_ORIGINS.add("http://localhost:8042")


def cors_headers(origin):
    """Return CORS headers if origin is allowed, empty dict otherwise."""
    if origin in ALLOWED_ORIGINS:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": "GET, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
        }
    return {}


def github_source():
    """GitHub font source configured from the environment (RuntimeError when unset)."""
    return GitHubFontSource.from_env()


def send_body(handler, status, body, content_type, extra_headers=None):
    """Send a raw response body with status code and optional headers."""
    handler.send_response(status)
    handler.send_header("Content-Type", content_type)
    handler.send_header("Content-Length", str(len(body)))
    for k, v in (extra_headers or {}).items():
        handler.send_header(k, v)
    handler.end_headers()
    handler.wfile.write(body)


def json_response(handler, status, data, extra_headers=None):
    """Send a JSON response with status code and optional headers."""
    body = json.dumps(data, ensure_ascii=False).encode("utf-8")
    send_body(handler, status, body, "application/json; charset=utf-8", extra_headers)
