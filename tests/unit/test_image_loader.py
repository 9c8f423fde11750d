"""Unit tests for concurrent image loading and per-reference failure capture."""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path

from PIL import Image
import pytest
import requests

from noorpress.errors import ImageLoadError
from noorpress.io import ImageLoader, ImageSet


class _FakeResponse:
    def __init__(self, status_code: int, content: bytes) -> None:
        self.status_code = status_code
        self.content = content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


def test_load_all_resolves_files_data_uris_and_records_failures(
    tmp_path: Path, png_data: bytes, write_png
) -> None:
    """Good references load; bad ones are recorded without aborting the batch."""

    relative = write_png("relative.png")
    data_uri = "data:image/png;base64," + base64.b64encode(png_data).decode("ascii")
    not_image = tmp_path / "notes.txt"
    not_image.write_text("hello", encoding="utf-8")
    loader = ImageLoader(max_concurrency=2, base_dir=tmp_path)

    images = asyncio.run(
        loader.load_all(
            [
                "images/relative.png",
                data_uri,
                None,
                "images/relative.png",
                str(tmp_path / "missing.png"),
                str(not_image),
                "data:image/png;base64,@@@",
            ]
        )
    )

    assert images.get("images/relative.png") == relative.read_bytes()
    assert images.get(data_uri) == png_data
    assert images.failures() == (
        str(tmp_path / "missing.png"),
        str(not_image),
        "data:image/png;base64,@@@",
    )
    assert "not readable" in images.errors[str(tmp_path / "missing.png")]
    assert "not a decodable image" in images.errors[str(not_image)]
    with pytest.raises(ImageLoadError, match="unavailable"):
        images.get(str(not_image))


def test_image_set_get_raises_for_unrequested_refs() -> None:
    """Asking for a reference that was never loaded is an image error."""

    with pytest.raises(ImageLoadError, match="was not loaded") as exc_info:
        ImageSet().get("front.png")
    assert exc_info.value.ref == "front.png"
    assert not ImageSet().has("front.png")


def test_fetch_downloads_http_images_and_maps_errors(
    monkeypatch: pytest.MonkeyPatch, png_data: bytes
) -> None:
    """HTTP sources use `requests` with the configured timeout."""

    calls: list[tuple[str, float]] = []

    def _fake_get(url: str, timeout: float) -> _FakeResponse:
        calls.append((url, timeout))
        if url.endswith("/gone.png"):
            return _FakeResponse(404, b"")
        if url.endswith("/slow.png"):
            raise requests.Timeout("slow")
        return _FakeResponse(200, png_data)

    monkeypatch.setattr(requests, "get", _fake_get)
    loader = ImageLoader(timeout_seconds=7.5)

    assert loader.fetch("https://cdn.example.org/ok.png") == png_data
    assert calls[0] == ("https://cdn.example.org/ok.png", 7.5)
    with pytest.raises(ImageLoadError, match="HTTP 404"):
        loader.fetch("https://cdn.example.org/gone.png")
    with pytest.raises(ImageLoadError, match="timed out"):
        loader.fetch("https://cdn.example.org/slow.png")


def test_load_all_records_malformed_references_and_oversized_images(
    monkeypatch: pytest.MonkeyPatch, write_png
) -> None:
    """Unparseable URLs, NUL bytes and pixel-limit breaches become per-ref errors."""

    big = str(write_png("big.png", (60, 40)))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    loader = ImageLoader()

    images = asyncio.run(loader.load_all(["http://[::1", "cover\x00.png", big]))

    assert images.images == {}
    assert images.failures() == ("http://[::1", "cover\x00.png", big)
    assert "Malformed image URL" in images.errors["http://[::1"]
    assert "not readable" in images.errors["cover\x00.png"]
    assert "decompression pixel limit" in images.errors[big]
    with pytest.raises(ImageLoadError, match="Malformed image URL"):
        loader.fetch("http://[::1")


def test_image_loader_rejects_non_positive_concurrency() -> None:
    """The semaphore bound must be positive."""

    with pytest.raises(ValueError):
        ImageLoader(max_concurrency=0)
