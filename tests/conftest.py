"""Shared pytest fixtures for the full NoorPress test suite."""

from __future__ import annotations

from collections.abc import Callable
from io import BytesIO
from pathlib import Path

from PIL import Image
import pytest

from noorpress.models import (
    Block,
    BookBundle,
    BookMetadata,
    Chapter,
    CoverArtifact,
    Illustration,
    LayoutArtifact,
    Page,
)

PngFactory = Callable[..., Path]
BookFactory = Callable[..., BookBundle]


def png_bytes(size: tuple[int, int] = (60, 40), color: str = "teal") -> bytes:
    """Encode a solid-color PNG."""

    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_data() -> bytes:
    """Provide one small encoded PNG."""

    return png_bytes()


@pytest.fixture
def write_png(tmp_path: Path) -> PngFactory:
    """Return a helper that writes a small PNG under `tmp_path/images`."""

    def _write(name: str, size: tuple[int, int] = (60, 40), color: str = "teal") -> Path:
        path = tmp_path / "images" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(png_bytes(size, color))
        return path

    return _write


@pytest.fixture
def make_book(tmp_path: Path, write_png: PngFactory) -> BookFactory:
    """Return a builder for small illustrated books with a supplied print layout.

    Pages: title, copyright, then an illustration page and a text page per
    chapter, padded with blank pages to `page_count`.
    """

    def _make(
        chapter_count: int = 3,
        page_count: int = 32,
        missing_illustration: int | None = None,
        with_layout: bool = True,
        trim_size: str = "6x9",
        back_image: bool = True,
        back_blurb: str | None = "A gentle story about sharing, patience and gratitude.",
        front_image: bool = True,
        title: str = "The Kind Neighbor",
    ) -> BookBundle:
        chapters = tuple(
            Chapter(
                number=number,
                title=f"Part {number}",
                body=f"Amina shared bread with her neighbor on day {number}.\n\n"
                "Everyone smiled and said thank you.",
            )
            for number in range(1, chapter_count + 1)
        )
        illustrations: list[Illustration] = []
        for chapter in chapters:
            if chapter.number == missing_illustration:
                ref = str(tmp_path / "images" / "does-not-exist.png")
            else:
                ref = str(write_png(f"chapter-{chapter.number}.png", color="orange"))
            illustrations.append(
                Illustration(
                    chapter_number=chapter.number,
                    image_ref=ref,
                    illustration_id=f"ill-{chapter.number}",
                )
            )

        drafts: list[tuple[str, tuple[Block, ...], int | None, str | None]] = [
            ("title", (Block("text", title), Block("text", "Fatima Author")), None, None),
            ("copyright", (Block("text", "Copyright © Fatima Author."),), None, None),
        ]
        for chapter, illustration in zip(chapters, illustrations):
            drafts.append(
                (
                    "image",
                    (Block("image", image_ref=illustration.image_ref),),
                    chapter.number,
                    chapter.title,
                )
            )
            drafts.append(
                (
                    "text",
                    (
                        Block("text", f"Chapter {chapter.number}: {chapter.title}"),
                        Block("text", chapter.body.replace("\n\n", " ")),
                    ),
                    chapter.number,
                    chapter.title,
                )
            )
        while len(drafts) < page_count:
            drafts.append(("blank", (), None, None))

        pages = [
            Page(
                number=index,
                position="right" if index % 2 else "left",
                page_type=page_type,
                blocks=blocks,
                chapter_number=chapter_number,
                chapter_title=chapter_title,
            )
            for index, (page_type, blocks, chapter_number, chapter_title) in enumerate(
                drafts, start=1
            )
        ]

        return BookBundle(
            metadata=BookMetadata(
                book_id="book-kind-neighbor",
                title=title,
                author="Fatima Author",
                description="Stories & lessons <for> young readers.",
            ),
            layout=LayoutArtifact.from_pages(pages) if with_layout else LayoutArtifact(),
            cover=CoverArtifact(
                front_image=str(write_png("front.png", (90, 135), "navy")) if front_image else None,
                back_image=str(write_png("back.png", (90, 135), "gold")) if back_image else None,
                trim_size=trim_size,
                back_blurb=back_blurb,
            ),
            chapters=chapters,
            illustrations=tuple(illustrations),
        )

    return _make
