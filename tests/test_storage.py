from __future__ import annotations

import asyncio
import io
import logging

import pytest
from fastapi import HTTPException, UploadFile
from starlette.datastructures import Headers

from mangareader.config import Settings
from mangareader.storage import delete_images, sanitize_filename, save_image

from conftest import png_bytes


def _upload(data: bytes, filename: str = "cover.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(image_path=str(tmp_path / "images"), max_upload_bytes=1024)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("My Cover.png", "My_Cover.png"),
        ("../../etc/passwd", "passwd"),
        ("weird@@name!!.jpg", "weird-name-.jpg"),
        ("   ", "image"),
    ],
)
def test_sanitize_filename(name, expected):
    assert sanitize_filename(name) == expected


def test_save_image_writes_unique_file(settings, tmp_path):
    url_a = asyncio.run(save_image(_upload(png_bytes()), settings))
    url_b = asyncio.run(save_image(_upload(png_bytes()), settings))

    assert url_a != url_b
    assert url_a.startswith("/public/images/") and url_a.endswith("_cover.png")
    stored = tmp_path / "images" / url_a.rsplit("/", 1)[1]
    assert stored.read_bytes() == png_bytes()


@pytest.mark.parametrize(
    "data, content_type, message",
    [
        (b"", "image/png", "Empty file."),
        (b"x" * 2048, "image/png", "File upload error"),
        (b"plain text", "text/plain", "Unsupported image type."),
        (b"not really an image", "image/jpeg", "Unsupported image type."),
    ],
)
def test_save_image_rejects_bad_uploads(settings, data, content_type, message):
    with pytest.raises(HTTPException) as exc:
        asyncio.run(save_image(_upload(data, content_type=content_type), settings))
    assert exc.value.status_code == 400
    assert exc.value.detail == message


def test_delete_images_is_best_effort(settings, tmp_path, caplog):
    folder = tmp_path / "images"
    folder.mkdir()
    (folder / "keep.png").write_bytes(b"1")
    (folder / "gone.png").write_bytes(b"2")

    with caplog.at_level(logging.WARNING, logger="mangareader.storage"):
        removed = delete_images(
            ["/public/images/gone.png", "/public/images/missing.png", None, ""],
            settings,
        )

    assert removed == 1
    assert not (folder / "gone.png").exists()
    assert (folder / "keep.png").exists()
    assert "missing.png" in caplog.text
