"""EPUB 3.3 archive generation.

Responsibilities:
- Assemble package, navigation, stylesheet, chapter and image entries.
- Write the zip with `mimetype` stored first and every other entry deflated,
  in a fixed physical order, entirely in memory.
- Normalize embedded images to EPUB core media types with Pillow.

Key types:
- `EpubGenerator`: produces `<title>.epub` for one book bundle.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from io import BytesIO
import uuid
import zipfile

from PIL import Image, UnidentifiedImageError

from ..errors import EmptyBookError, ImageLoadError
from ..io.images import ImageLoader, ImageSet
from ..isbn.codes import normalize_isbn
from ..models import BookBundle, ExportFile, GenerationResult
from ..parsing import sanitize_filename
from ..render.images import require_image_policy
from ..render.text import split_paragraphs
from .templates import (
    CONTAINER_XML,
    PACKAGE_PATH,
    STYLESHEET_CSS,
    ChapterDocument,
    ManifestImage,
    chapter_document,
    navigation_document,
    package_document,
)

EPUB_MEDIA_TYPE = "application/epub+zip"
_IDENTIFIER_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "https://noorstudio.app/books")
_CORE_IMAGE_TYPES = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "GIF": ("image/gif", "gif"),
}
_EARLIEST_ZIP_TIME = (1980, 1, 1, 0, 0, 0)


class EpubGenerator:
    """Serialize a book bundle into an EPUB 3.3 archive."""

    def __init__(
        self,
        image_loader: ImageLoader | None = None,
        image_policy: str = "placeholder",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._image_loader = image_loader or ImageLoader()
        self.image_policy = require_image_policy(image_policy)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def generate(
        self, bundle: BookBundle, isbn: str | None = None, images: ImageSet | None = None
    ) -> GenerationResult:
        """Build the EPUB bytes.

        Raises:
            EmptyBookError: If no chapter has a title or body.
            InvalidISBNError: If `isbn` is malformed.
            ImageLoadError: For unavailable images when the policy is `fail`.
        """

        warnings: list[str] = []
        chapters = [
            chapter
            for chapter in bundle.sorted_chapters()
            if chapter.title.strip() or chapter.body.strip()
        ]
        skipped = len(bundle.chapters) - len(chapters)
        if skipped:
            warnings.append(f"Skipped {skipped} chapter(s) with no title and no body.")
        if not chapters:
            raise EmptyBookError(
                "Book has no chapter content to serialize.",
                stage="epub",
                hint="Finish at least one chapter before exporting.",
            )

        if isbn is not None:
            identifier = f"urn:isbn:{normalize_isbn(isbn)}"
        else:
            identifier = f"urn:uuid:{uuid.uuid5(_IDENTIFIER_NAMESPACE, bundle.metadata.book_id)}"

        if images is None:
            images = self._image_loader.load_all_sync(bundle.image_refs())

        manifest_images: list[ManifestImage] = []
        image_entries: list[tuple[str, bytes]] = []
        hrefs_by_ref: dict[str, str] = {}

        def embed(ref: str, stem: str, is_cover: bool, label: str) -> str | None:
            if ref in hrefs_by_ref and not is_cover:
                return hrefs_by_ref[ref]
            try:
                data, media_type, extension = _normalize_image(images.get(ref))
            except ImageLoadError as exc:
                if self.image_policy == "fail":
                    raise ImageLoadError(f"{label}: {exc.detail}", ref=ref, stage="epub") from exc
                warnings.append(f"{label}: image unavailable, omitted ({exc.detail})")
                return None
            href = f"images/{stem}.{extension}"
            manifest_images.append(
                ManifestImage(item_id=stem, href=href, media_type=media_type, is_cover=is_cover)
            )
            image_entries.append((f"OEBPS/{href}", data))
            hrefs_by_ref.setdefault(ref, href)
            return href

        if bundle.cover.front_image:
            embed(bundle.cover.front_image, "cover", True, "Cover")
        else:
            warnings.append("Cover image missing; EPUB has no cover-image.")

        documents: list[ChapterDocument] = []
        for index, chapter in enumerate(chapters, start=1):
            hrefs: list[str] = []
            for position, illustration in enumerate(
                bundle.illustrations_for(chapter.number), start=1
            ):
                href = embed(
                    illustration.image_ref or "",
                    f"chapter{index}-{position}",
                    False,
                    f"Chapter {chapter.number} illustration {position}",
                )
                if href is not None:
                    hrefs.append(href)
            documents.append(
                ChapterDocument(
                    index=index,
                    number=chapter.number,
                    title=chapter.title,
                    paragraphs=tuple(split_paragraphs(chapter.body)),
                    image_hrefs=tuple(hrefs),
                )
            )

        meta = bundle.metadata
        moment = self._clock().astimezone(timezone.utc)
        entries: list[tuple[str, bytes]] = [
            ("META-INF/container.xml", CONTAINER_XML.encode("utf-8")),
            (
                PACKAGE_PATH,
                package_document(
                    identifier=identifier,
                    title=meta.title,
                    author=meta.author,
                    language=meta.language,
                    publisher=meta.publisher,
                    modified=moment.strftime("%Y-%m-%dT%H:%M:%SZ"),
                    description=meta.description,
                    is_isbn=isbn is not None,
                    chapters=documents,
                    images=manifest_images,
                ).encode("utf-8"),
            ),
            (
                "OEBPS/nav.xhtml",
                navigation_document(meta.title, meta.language, documents).encode("utf-8"),
            ),
            ("OEBPS/stylesheet.css", STYLESHEET_CSS.encode("utf-8")),
        ]
        entries.extend(
            (
                f"OEBPS/{document.filename}",
                chapter_document(document, meta.language).encode("utf-8"),
            )
            for document in documents
        )
        entries.extend(image_entries)

        data = _write_archive(entries, _zip_time(moment))
        return GenerationResult(
            files=(ExportFile(f"{sanitize_filename(meta.title)}.epub", EPUB_MEDIA_TYPE, data),),
            warnings=tuple(warnings),
            details={
                "identifier": identifier,
                "chapter_count": str(len(documents)),
                "image_count": str(len(manifest_images)),
            },
        )


def _write_archive(entries: list[tuple[str, bytes]], date_time: tuple[int, ...]) -> bytes:
    """Zip entries in order behind a stored `mimetype` entry."""

    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        mimetype = zipfile.ZipInfo("mimetype", date_time=date_time)
        mimetype.compress_type = zipfile.ZIP_STORED
        archive.writestr(mimetype, EPUB_MEDIA_TYPE)
        for name, payload in entries:
            info = zipfile.ZipInfo(name, date_time=date_time)
            info.compress_type = zipfile.ZIP_DEFLATED
            archive.writestr(info, payload)
    return buffer.getvalue()


def _zip_time(moment: datetime) -> tuple[int, int, int, int, int, int]:
    stamp = (moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second)
    return max(stamp, _EARLIEST_ZIP_TIME)


def _normalize_image(data: bytes) -> tuple[bytes, str, str]:
    """Return image bytes in an EPUB core media type with its extension.

    JPEG, PNG and GIF pass through untouched; other formats are re-encoded as PNG.
    """

    try:
        with Image.open(BytesIO(data)) as image:
            image_format = image.format or ""
            if image_format in _CORE_IMAGE_TYPES:
                media_type, extension = _CORE_IMAGE_TYPES[image_format]
                return data, media_type, extension
            converted = BytesIO()
            mode = "RGBA" if image.mode in {"RGBA", "LA", "P"} else "RGB"
            image.convert(mode).save(converted, format="PNG")
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageLoadError("Image bytes could not be decoded.") from exc
    return converted.getvalue(), "image/png", "png"
