"""
Integration tests for the HTTP surface: uploads, downloads and strict echo.

Uploads go to a per-test temporary directory (see the client fixture).
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from ingestkit.services.downloads import download_static_file


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"ok": True}


# --- Uploads ---

def test_upload_keeps_name_without_rename(client: TestClient, tmp_path: Path, png_bytes: bytes) -> None:
    response = client.post(
        "/upload",
        params={"rename": "false"},
        files={"file": ("img.png", png_bytes, "image/png")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["error"] is False
    assert body["data"] == [{"original_name": "img.png", "new_name": "img.png", "size_bytes": len(png_bytes)}]
    assert (tmp_path / "img.png").read_bytes() == png_bytes


def test_upload_renames(client: TestClient, tmp_path: Path, png_bytes: bytes) -> None:
    response = client.post(
        "/upload",
        params={"rename": "true"},
        files={"file": ("img.png", png_bytes, "image/png")},
    )
    assert response.status_code == 200
    stored = response.json()["data"][0]["new_name"]
    assert stored != "img.png"
    assert (tmp_path / stored).read_bytes() == png_bytes


def test_upload_one_stores_first_part(client: TestClient, tmp_path: Path, png_bytes: bytes, gif_bytes: bytes) -> None:
    response = client.post(
        "/upload/one",
        params={"rename": "false"},
        files=[("file", ("a.png", png_bytes, "image/png")), ("file", ("b.gif", gif_bytes, "image/gif"))],
    )
    assert response.status_code == 200
    assert [f["new_name"] for f in response.json()["data"]] == ["a.png"]
    assert not (tmp_path / "b.gif").exists()


def test_upload_disallowed_type_is_415(client: TestClient, tmp_path: Path) -> None:
    response = client.post("/upload", files={"file": ("fake.png", b"just text", "image/png")})
    assert response.status_code == 415
    body = response.json()
    assert body["error"] is True
    assert "text/plain" in body["message"]
    assert "data" not in body
    assert list(tmp_path.iterdir()) == []


def test_upload_json_body_is_400(client: TestClient) -> None:
    response = client.post("/upload", json={"foo": "bar"})
    assert response.status_code == 400
    assert response.json()["error"] is True


def test_upload_too_large_is_413(client: TestClient, monkeypatch: pytest.MonkeyPatch, png_bytes: bytes) -> None:
    monkeypatch.setattr("ingestkit.services.upload_service.MAX_UPLOAD_SIZE", 10)
    response = client.post("/upload", files={"file": ("img.png", png_bytes, "image/png")})
    assert response.status_code == 413


# --- Downloads ---

def test_download_round_trip(client: TestClient, png_bytes: bytes) -> None:
    upload = client.post("/upload", files={"file": ("img.png", png_bytes, "image/png")})
    name = upload.json()["data"][0]["new_name"]

    response = client.get(f"/files/{name}")
    assert response.status_code == 200
    assert response.headers["content-disposition"] == f'attachment; filename="{name}"'
    assert response.headers["content-length"] == str(len(png_bytes))
    assert response.content == png_bytes


def test_download_missing_is_404(client: TestClient) -> None:
    response = client.get("/files/nope.png")
    assert response.status_code == 404
    assert response.json()["error"] is True


def test_download_static_file_display_name(tmp_path: Path) -> None:
    (tmp_path / "img.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    response = download_static_file(tmp_path, "img.png", "puppy.png")
    assert response.headers["content-disposition"] == 'attachment; filename="puppy.png"'


def test_download_static_file_refuses_traversal(tmp_path: Path) -> None:
    (tmp_path / "secret.txt").write_text("x")
    (tmp_path / "public").mkdir()
    with pytest.raises(FileNotFoundError):
        download_static_file(tmp_path / "public", "../secret.txt", "secret.txt")


# --- JSON ---

def test_echo_accepts_valid_body(client: TestClient) -> None:
    response = client.post("/echo", json={"message": "hi", "tags": ["a"]})
    assert response.status_code == 200
    assert response.json() == {"error": False, "message": "payload accepted", "data": {"message": "hi", "tags": ["a"]}}


@pytest.mark.parametrize(
    "content, fragment",
    [
        (b"", "must not be empty"),
        (b'{"message": }', "badly-formed JSON"),
        (b'{"message": 1}', "incorrect JSON type"),
        (b'{"message": "hi", "extra": 1}', "unknown key"),
        (b'{"message": "a"} {"message": "b"}', "only one JSON value"),
        (b"{}", "missing required field"),
    ],
    ids=["empty", "syntax", "type", "unknown", "multiple", "missing"],
)
def test_echo_rejections_are_400(client: TestClient, content: bytes, fragment: str) -> None:
    response = client.post("/echo", content=content, headers={"content-type": "application/json"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] is True
    assert fragment in body["message"]


def test_echo_too_large_is_413(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ingestkit.services.json_decoder.MAX_JSON_SIZE", 5)
    response = client.post("/echo", json={"message": "hello"})
    assert response.status_code == 413


def test_echo_deeply_nested_body_is_400(client: TestClient) -> None:
    depth = 100_000
    content = b'{"message": "hi", "tags": ' + b"[" * depth + b"]" * depth + b"}"
    response = client.post("/echo", content=content, headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert "badly-formed JSON" in response.json()["message"]
