"""
Shared fixtures: raw Starlette requests for service-level tests, sample file
bytes with real signatures, and a TestClient bound to a temporary upload dir.
"""

import struct
import zlib
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from ingestkit.main import app


def build_request(body: bytes, headers: dict[str, str] | None = None) -> Request:
    """POST request whose body is delivered in one ASGI message."""
    sent = False

    async def receive() -> dict:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    raw_headers = [
        (k.lower().encode("latin-1"), v.encode("latin-1"))
        for k, v in (headers or {}).items()
    ]
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "query_string": b"",
        "headers": raw_headers,
    }
    return Request(scope, receive)


def build_multipart_request(
    files: list[tuple[str, str, bytes, str]],
    data: dict[str, str] | None = None,
) -> Request:
    """Multipart request from (field, filename, content, declared content type) tuples."""
    encoded = httpx.Request(
        "POST",
        "http://testserver/",
        data=data,
        files=[(field, (name, content, ctype)) for field, name, content, ctype in files],
    )
    encoded.read()
    return build_request(encoded.content, {"content-type": encoded.headers["content-type"]})


def _png(width: int = 4, height: int = 4) -> bytes:
    def chunk(tag: bytes, payload: bytes) -> bytes:
        crc = zlib.crc32(tag + payload) & 0xFFFFFFFF
        return struct.pack(">I", len(payload)) + tag + payload + struct.pack(">I", crc)

    rows = b"".join(b"\x00" + b"\xff\x80\x00" * width for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0))
        + chunk(b"IDAT", zlib.compress(rows))
        + chunk(b"IEND", b"")
    )


@pytest.fixture
def make_request() -> Callable[..., Request]:
    return build_request


@pytest.fixture
def multipart_request() -> Callable[..., Request]:
    return build_multipart_request


@pytest.fixture
def png_bytes() -> bytes:
    return _png()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00" + b"\x00" * 64 + b"\xff\xd9"


@pytest.fixture
def gif_bytes() -> bytes:
    return b"GIF89a\x01\x00\x01\x00\x80\x00\x00\xff\xff\xff\x00\x00\x00!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"


@pytest.fixture
def pdf_bytes() -> bytes:
    return b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


@pytest.fixture
def client(tmp_path, monkeypatch) -> TestClient:
    monkeypatch.setattr("ingestkit.api.handlers.UPLOAD_DIR", str(tmp_path))
    return TestClient(app)
