"""Immutable input artifacts consumed by the export pipeline.

Responsibilities:
- Represent the finished layout, cover, chapters and illustrations handed over
  by the authoring stage.
- Validate layout page ordering and left/right parity before rendering.

Key types:
- `Block`, `Page`, `Spread`, `LayoutArtifact`, `CoverArtifact`, `Chapter`,
  `Illustration`, `BookMetadata`, and `BookBundle`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import InvalidInputError

PAGE_TYPES = frozenset({"text", "image", "mixed", "blank", "title", "copyright"})
PAGE_POSITIONS = frozenset({"left", "right"})
BLOCK_KINDS = frozenset({"text", "image"})
FRONT_MATTER_PAGE_TYPES = frozenset({"title", "copyright", "blank"})


@dataclass(frozen=True, slots=True)
class Block:
    """One content run on a page.

    Attributes:
        kind: `text` or `image`.
        text: Text payload for text blocks.
        image_ref: Image reference (URL, `data:` URI or file path) for image blocks.
    """

    kind: str
    text: str | None = None
    image_ref: str | None = None


@dataclass(frozen=True, slots=True)
class Page:
    """A single physical page of the finished layout.

    Attributes:
        number: 1-based physical page number.
        position: `left` (even pages) or `right` (odd pages).
        page_type: One of `text`, `image`, `mixed`, `blank`, `title`, `copyright`.
        blocks: Ordered content blocks.
        chapter_number: Chapter this page belongs to, when any.
        chapter_title: Chapter title used for running heads.
    """

    number: int
    position: str
    page_type: str
    blocks: tuple[Block, ...] = field(default_factory=tuple)
    chapter_number: int | None = None
    chapter_title: str | None = None

    def text_blocks(self) -> tuple[Block, ...]:
        """Return text blocks in order."""

        return tuple(block for block in self.blocks if block.kind == "text")

    def image_blocks(self) -> tuple[Block, ...]:
        """Return image blocks in order."""

        return tuple(block for block in self.blocks if block.kind == "image")


@dataclass(frozen=True, slots=True)
class Spread:
    """Two facing pages. The opening and closing spreads may be half-empty."""

    left: Page | None = None
    right: Page | None = None


@dataclass(frozen=True, slots=True)
class LayoutArtifact:
    """Ordered spreads produced by the layout stage."""

    spreads: tuple[Spread, ...] = field(default_factory=tuple)

    def pages(self) -> tuple[Page, ...]:
        """Return all pages in reading order (left before right within a spread)."""

        ordered: list[Page] = []
        for spread in self.spreads:
            if spread.left is not None:
                ordered.append(spread.left)
            if spread.right is not None:
                ordered.append(spread.right)
        return tuple(ordered)

    @property
    def page_count(self) -> int:
        return len(self.pages())

    @classmethod
    def from_pages(cls, pages: list[Page] | tuple[Page, ...]) -> LayoutArtifact:
        """Group pages into spreads following print convention (page 1 alone on the right)."""

        spreads: list[Spread] = []
        pending_left: Page | None = None
        for page in pages:
            if page.position == "left":
                if pending_left is not None:
                    spreads.append(Spread(left=pending_left))
                pending_left = page
                continue
            spreads.append(Spread(left=pending_left, right=page))
            pending_left = None
        if pending_left is not None:
            spreads.append(Spread(left=pending_left))
        return cls(spreads=tuple(spreads))


@dataclass(frozen=True, slots=True)
class CoverArtifact:
    """Cover artwork references and cover text.

    Attributes:
        front_image: Front cover image reference.
        back_image: Optional back cover image reference.
        spine_text: Optional spine text; the book title is used when absent.
        trim_size: Trim size key such as `6x9`.
        back_blurb: Optional back cover description.
        subtitle: Optional subtitle shown on the title page.
    """

    front_image: str | None
    back_image: str | None = None
    spine_text: str | None = None
    trim_size: str = "6x9"
    back_blurb: str | None = None
    subtitle: str | None = None


@dataclass(frozen=True, slots=True)
class Chapter:
    """A finished chapter.

    Attributes:
        number: 1-based chapter number.
        title: Chapter title.
        body: Chapter body text, paragraphs separated by blank lines.
    """

    number: int
    title: str
    body: str


@dataclass(frozen=True, slots=True)
class Illustration:
    """An illustration associated with a chapter."""

    chapter_number: int
    image_ref: str | None
    illustration_id: str | None = None
    scene: str | None = None


@dataclass(frozen=True, slots=True)
class BookMetadata:
    """Book-level metadata shared by every output format."""

    book_id: str
    title: str
    author: str = "Anonymous"
    language: str = "en"
    publisher: str = "NoorStudio"
    subtitle: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class BookBundle:
    """All immutable inputs of one export run."""

    metadata: BookMetadata
    layout: LayoutArtifact
    cover: CoverArtifact
    chapters: tuple[Chapter, ...]
    illustrations: tuple[Illustration, ...] = field(default_factory=tuple)

    def sorted_chapters(self) -> tuple[Chapter, ...]:
        """Return chapters ordered by chapter number."""

        return tuple(sorted(self.chapters, key=lambda chapter: chapter.number))

    def illustrations_for(self, chapter_number: int) -> tuple[Illustration, ...]:
        """Return illustrations associated with one chapter, in input order."""

        return tuple(
            item
            for item in self.illustrations
            if item.chapter_number == chapter_number and item.image_ref
        )

    def image_refs(self) -> tuple[str, ...]:
        """Return every distinct image reference used by the bundle, in first-use order."""

        refs: list[str] = []
        candidates: list[str | None] = [self.cover.front_image, self.cover.back_image]
        candidates.extend(item.image_ref for item in self.illustrations)
        for page in self.layout.pages():
            candidates.extend(block.image_ref for block in page.image_blocks())
        for ref in candidates:
            if ref and ref not in refs:
                refs.append(ref)
        return tuple(refs)


def validate_layout(layout: LayoutArtifact) -> None:
    """Validate page ordering, parity and vocabulary of a layout artifact.

    Raises:
        InvalidInputError: On decreasing/duplicate numbers, parity mismatch, or
            unknown page types and block kinds.
    """

    previous_number = 0
    for page in layout.pages():
        if page.number <= previous_number:
            raise InvalidInputError(
                f"Layout page numbers must be strictly increasing; page {page.number} "
                f"follows page {previous_number}.",
                hint="Re-run the layout stage to renumber pages.",
            )
        previous_number = page.number
        if page.position not in PAGE_POSITIONS:
            raise InvalidInputError(f"Page {page.number} has unknown position `{page.position}`.")
        expected_position = "left" if page.number % 2 == 0 else "right"
        if page.position != expected_position:
            raise InvalidInputError(
                f"Page {page.number} is marked `{page.position}` but print convention "
                f"places it on the {expected_position}.",
                hint="Left pages carry even numbers and right pages odd numbers.",
            )
        if page.page_type not in PAGE_TYPES:
            raise InvalidInputError(f"Page {page.number} has unknown type `{page.page_type}`.")
        for block in page.blocks:
            if block.kind not in BLOCK_KINDS:
                raise InvalidInputError(
                    f"Page {page.number} has unknown block kind `{block.kind}`."
                )
