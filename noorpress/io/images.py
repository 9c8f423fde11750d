"""Concurrent image fetching ahead of rendering.

Responsibilities:
- Resolve image references (`http(s)` URLs, `data:` URIs, file paths) to bytes.
- Load every distinct reference of one export concurrently, bounded by a
  semaphore, so rendering never blocks on the network.
- Record per-reference failures instead of aborting the whole batch.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from collections.abc import Iterable
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Mapping
from urllib.parse import unquote_to_bytes, urlparse

from PIL import Image, UnidentifiedImageError
import requests

from ..errors import ImageLoadError


@dataclass(frozen=True, slots=True)
class ImageSet:
    """Loaded image bytes plus failure reasons keyed by reference."""

    images: Mapping[str, bytes] = field(default_factory=dict)
    errors: Mapping[str, str] = field(default_factory=dict)

    def get(self, ref: str) -> bytes:
        """Return bytes for `ref`.

        Raises:
            ImageLoadError: If `ref` failed to load or was never requested.
        """

        if ref in self.images:
            return self.images[ref]
        reason = self.errors.get(ref, "image was not loaded")
        raise ImageLoadError(f"Image `{_short_ref(ref)}` unavailable: {reason}", ref=ref)

    def has(self, ref: str) -> bool:
        """Return whether `ref` loaded successfully."""

        return ref in self.images

    def failures(self) -> tuple[str, ...]:
        """Return references that could not be loaded, in request order."""

        return tuple(self.errors)


class ImageLoader:
    """Fetch image references with bounded concurrency."""

    def __init__(
        self,
        max_concurrency: int = 4,
        timeout_seconds: float = 30.0,
        base_dir: Path | None = None,
    ) -> None:
        if max_concurrency <= 0:
            raise ValueError("`max_concurrency` must be a positive integer.")
        self.max_concurrency = max_concurrency
        self.timeout_seconds = timeout_seconds
        self.base_dir = base_dir

    async def load_all(self, refs: Iterable[str | None]) -> ImageSet:
        """Load every distinct non-empty reference concurrently."""

        ordered = _distinct(refs)
        if not ordered:
            return ImageSet()

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def load_one(ref: str) -> tuple[str, bytes | None, str | None]:
            async with semaphore:
                try:
                    data = await asyncio.to_thread(self.fetch, ref)
                except ImageLoadError as exc:
                    return ref, None, exc.detail
                return ref, data, None

        results = await asyncio.gather(*(load_one(ref) for ref in ordered))
        images: dict[str, bytes] = {}
        errors: dict[str, str] = {}
        for ref, data, error in results:
            if data is not None:
                images[ref] = data
            else:
                errors[ref] = error or "unknown failure"
        return ImageSet(images=images, errors=errors)

    def load_all_sync(self, refs: Iterable[str | None]) -> ImageSet:
        """Load every distinct non-empty reference one by one in the calling thread.

        Safe to call from code already running inside an event loop.
        """

        images: dict[str, bytes] = {}
        errors: dict[str, str] = {}
        for ref in _distinct(refs):
            try:
                images[ref] = self.fetch(ref)
            except ImageLoadError as exc:
                errors[ref] = exc.detail
        return ImageSet(images=images, errors=errors)

    def fetch(self, ref: str) -> bytes:
        """Resolve one reference to decodable image bytes.

        Raises:
            ImageLoadError: If the source is unreachable or the bytes are not an image.
        """

        if ref.startswith("data:"):
            data = self._decode_data_uri(ref)
        elif _is_remote(ref):
            data = self._download(ref)
        else:
            data = self._read_file(ref)
        _require_image(ref, data)
        return data

    def _download(self, url: str) -> bytes:
        """Download one image over HTTP(S)."""

        try:
            response = requests.get(url, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.Timeout as exc:
            raise ImageLoadError(f"Image request timed out: {_short_ref(url)}", ref=url) from exc
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "unknown"
            raise ImageLoadError(
                f"Image request failed with HTTP {status}: {_short_ref(url)}", ref=url
            ) from exc
        except requests.RequestException as exc:
            raise ImageLoadError(
                f"Image request transport error: {_short_ref(url)}", ref=url
            ) from exc
        return bytes(response.content)

    def _read_file(self, ref: str) -> bytes:
        """Read a local image path, relative paths resolved against `base_dir`."""

        raw = ref[len("file://") :] if ref.startswith("file://") else ref
        path = Path(raw)
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        try:
            return path.read_bytes()
        except (OSError, ValueError) as exc:
            raise ImageLoadError(f"Image file not readable: {path}", ref=ref) from exc

    @staticmethod
    def _decode_data_uri(ref: str) -> bytes:
        """Decode a `data:` URI payload."""

        header, separator, payload = ref.partition(",")
        if not separator:
            raise ImageLoadError("Malformed data URI image reference.", ref=ref)
        try:
            if header.endswith(";base64"):
                return base64.b64decode(payload, validate=True)
            return unquote_to_bytes(payload)
        except (binascii.Error, ValueError) as exc:
            raise ImageLoadError("Malformed data URI image payload.", ref=ref) from exc


def _require_image(ref: str, data: bytes) -> None:
    """Reject empty or undecodable image payloads."""

    if not data:
        raise ImageLoadError(f"Image `{_short_ref(ref)}` is empty.", ref=ref)
    try:
        with Image.open(BytesIO(data)) as image:
            image.verify()
    except Image.DecompressionBombError as exc:
        raise ImageLoadError(
            f"Image `{_short_ref(ref)}` exceeds the decompression pixel limit.", ref=ref
        ) from exc
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ImageLoadError(
            f"Image `{_short_ref(ref)}` is not a decodable image.", ref=ref
        ) from exc


def _is_remote(ref: str) -> bool:
    """Return whether `ref` is an `http(s)` URL; malformed URLs are rejected."""

    try:
        scheme = urlparse(ref).scheme
    except ValueError as exc:
        raise ImageLoadError(f"Malformed image URL: {_short_ref(ref)}", ref=ref) from exc
    return scheme in {"http", "https"}


def _distinct(refs: Iterable[str | None]) -> list[str]:
    ordered: list[str] = []
    for ref in refs:
        if ref and ref not in ordered:
            ordered.append(ref)
    return ordered


def _short_ref(ref: str) -> str:
    """Trim long references (data URIs) for messages and logs."""

    return ref if len(ref) <= 80 else ref[:77] + "..."
