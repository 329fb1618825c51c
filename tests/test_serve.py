"""End-to-end tests for serve.py against a live server on an ephemeral port."""

import io
import json
import threading
from urllib.error import HTTPError
from urllib.request import Request, urlopen

import pytest
from PIL import Image

from fontpreview.storage import MemoryStorage
from serve import make_server
from tests.conftest import MULTIPART_CONTENT_TYPE as CONTENT_TYPE
from tests.conftest import multipart_body


@pytest.fixture()
def storage(ttf_bytes):
    storage = MemoryStorage()
    storage.put("SATO_01.ttf", ttf_bytes)
    storage.put("SATO_02.ttf", ttf_bytes)
    return storage


@pytest.fixture()
def base_url(storage):
    server = make_server(storage, port=0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


def request(url, method="GET", data=None, headers=None):
    """Return (status, headers, body) without raising on HTTP errors."""
    req = Request(url, data=data, method=method, headers=headers or {})
    try:
        with urlopen(req, timeout=5) as resp:
            return resp.status, resp.headers, resp.read()
    except HTTPError as e:
        return e.code, e.headers, e.read()


def get_json(url, **kwargs):
    status, _, body = request(url, **kwargs)
    return status, json.loads(body)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class TestListing:
    def test_list_fonts(self, base_url):
        status, data = get_json(f"{base_url}/api/list-fonts")
        assert status == 200
        assert [f["name"] for f in data] == ["SATO_01.ttf", "SATO_02.ttf"]
        assert data[0]["baseName"] == "SATO"
        assert data[0]["variant"] == "01"
        assert data[0]["format"] == "truetype"
        assert data[0]["source"] == "memory"
        assert "family" not in data[0]

    def test_list_fonts_details(self, base_url):
        _, data = get_json(f"{base_url}/api/list-fonts?details=1")
        assert data[0]["family"] == "Preview Test"

    def test_catalog(self, base_url):
        status, data = get_json(f"{base_url}/api/catalog")
        assert status == 200
        assert data == {"fonts": [{"name": "SATO", "variants": ["01", "02"]}]}

    def test_unknown_api_route(self, base_url):
        status, data = get_json(f"{base_url}/api/nope")
        assert status == 404
        assert "error" in data


# ---------------------------------------------------------------------------
# Single font
# ---------------------------------------------------------------------------


class TestFontRoutes:
    def test_get_font(self, base_url, ttf_bytes):
        status, headers, body = request(f"{base_url}/api/font/SATO_01.ttf")
        assert status == 200
        assert body == ttf_bytes
        assert headers["Content-Type"] == "font/ttf"
        assert "max-age" in headers["Cache-Control"]

    def test_get_missing_font(self, base_url):
        status, data = get_json(f"{base_url}/api/font/NOPE.ttf")
        assert status == 404
        assert data == {"error": "Font not found"}

    def test_put_font(self, base_url, storage, ttf_bytes):
        url = f"{base_url}/api/font/AZEGAMI_01.ttf"
        status, data = get_json(url, method="PUT", data=ttf_bytes)
        assert status == 201
        assert data["files"][0]["name"] == "AZEGAMI_01.ttf"
        assert "AZEGAMI_01.ttf" in storage

    def test_put_png_rejected(self, base_url, storage):
        status, data = get_json(f"{base_url}/api/font/a.png", method="PUT", data=b"\x89PNG")
        assert status == 400
        assert "Unsupported file type" in data["error"]
        assert "a.png" not in storage

    def test_put_empty_rejected(self, base_url):
        status, _ = get_json(f"{base_url}/api/font/a.ttf", method="PUT", data=b"")
        assert status == 400

    def test_delete(self, base_url, storage):
        status, data = get_json(f"{base_url}/api/font/SATO_01.ttf", method="DELETE")
        assert status == 200
        assert data["ok"] is True
        assert "SATO_01.ttf" not in storage

        _, catalog = get_json(f"{base_url}/api/catalog")
        assert catalog["fonts"][0]["variants"] == ["02"]

    def test_delete_missing(self, base_url):
        status, _ = get_json(f"{base_url}/api/font/NOPE.ttf", method="DELETE")
        assert status == 404


# ---------------------------------------------------------------------------
# Multipart upload
# ---------------------------------------------------------------------------


class TestUpload:
    def test_upload_multiple(self, base_url, storage, ttf_bytes):
        body = multipart_body(
            [("fonts", "YAMADA_01.ttf", ttf_bytes), ("fonts", "YAMADA_02.woff2", b"wOF2data")]
        )
        status, data = get_json(
            f"{base_url}/api/upload-font",
            method="POST",
            data=body,
            headers={"Content-Type": CONTENT_TYPE},
        )
        assert status == 200
        assert data["message"] == "Uploaded 2 font file(s)"
        assert storage.get("YAMADA_02.woff2") == b"wOF2data"

    def test_bad_file_rejects_whole_upload(self, base_url, storage, ttf_bytes):
        body = multipart_body(
            [("fonts", "YAMADA_01.ttf", ttf_bytes), ("fonts", "photo.png", b"\x89PNG")]
        )
        status, data = get_json(
            f"{base_url}/api/upload-font",
            method="POST",
            data=body,
            headers={"Content-Type": CONTENT_TYPE},
        )
        assert status == 400
        assert "photo.png" in data["error"]
        assert "YAMADA_01.ttf" not in storage

    def test_no_files(self, base_url):
        body = multipart_body([("other", None, b"x")])
        status, data = get_json(
            f"{base_url}/api/upload-font",
            method="POST",
            data=body,
            headers={"Content-Type": CONTENT_TYPE},
        )
        assert status == 400
        assert data["error"] == "No files uploaded"

    def test_too_many_files(self, base_url, storage):
        body = multipart_body([("fonts", f"F_{i}.ttf", b"x") for i in range(21)])
        status, _ = get_json(
            f"{base_url}/api/upload-font",
            method="POST",
            data=body,
            headers={"Content-Type": CONTENT_TYPE},
        )
        assert status == 400
        assert "F_0.ttf" not in storage

    def test_wrong_content_type(self, base_url):
        status, data = get_json(
            f"{base_url}/api/upload-font",
            method="POST",
            data=b"{}",
            headers={"Content-Type": "application/json"},
        )
        assert status == 400
        assert "?name=" in data["error"]

    def test_raw_body_with_name(self, base_url, storage, ttf_bytes):
        status, data = get_json(
            f"{base_url}/api/upload-font?name=font_6.ttf",
            method="POST",
            data=ttf_bytes,
            headers={"Content-Type": "application/octet-stream"},
        )
        assert status == 201
        assert data["files"][0]["size"] == len(ttf_bytes)
        assert storage.get("font_6.ttf") == ttf_bytes


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


class TestPreview:
    def test_preview_css(self, base_url):
        status, headers, body = request(
            f"{base_url}/api/preview.css?name=SATO&variant=02&size=30&writingMode=vertical-rl"
        )
        css = body.decode()
        assert status == 200
        assert headers["Content-Type"].startswith("text/css")
        assert headers["X-Font-Selection"] == "SATO_02"
        assert "src: url('/api/font/SATO_02.ttf') format('truetype');" in css
        assert 'font-family: "SATO_02";' in css
        assert "font-size: 30px;" in css
        assert "text-align: start;" in css
        assert headers["X-Preview-Classes"] == "vertical-writing vertical-align-top"

    def test_preview_css_not_found(self, base_url):
        _, headers, body = request(f"{base_url}/api/preview.css?name=SATO&variant=99")
        assert headers["X-Font-Selection"] == "SATO_99%20%28not%20found%29"
        assert "font-family: sans-serif;" in body.decode()

    def test_preview_png(self, base_url):
        status, headers, body = request(f"{base_url}/api/preview.png?name=SATO&text=AB&size=20")
        assert status == 200
        assert headers["Content-Type"] == "image/png"
        assert headers["X-Font-Selection"] == "SATO"
        assert Image.open(io.BytesIO(body)).format == "PNG"

    def test_preview_invalid_style(self, base_url):
        status, data = get_json(f"{base_url}/api/preview.png?size=900")
        assert status == 400
        assert "sizePx" in data["error"]


class TestStaticAndCors:
    def test_index_page(self, base_url):
        status, _, body = request(f"{base_url}/")
        assert status == 200
        assert b"/api/upload-font" in body

    def test_security_headers(self, base_url):
        _, headers, _ = request(f"{base_url}/api/catalog")
        assert headers["X-Content-Type-Options"] == "nosniff"

    def test_preflight(self, base_url):
        status, headers, _ = request(
            f"{base_url}/api/upload-font",
            method="OPTIONS",
            headers={"Origin": "http://localhost:8042"},
        )
        assert status == 204
        assert headers["Access-Control-Allow-Origin"] == "http://localhost:8042"
        assert "DELETE" in headers["Access-Control-Allow-Methods"]
