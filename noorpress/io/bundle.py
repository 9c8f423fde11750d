"""JSON book-bundle loading.

Responsibilities:
- Parse the JSON document handed over by the authoring stage into immutable
  `BookBundle` artifacts.
- Reject malformed documents with actionable `InvalidInputError` messages.

Document shape (snake_case keys)::

    {
      "metadata": {"book_id": "...", "title": "...", "author": "..."},
      "layout": {"spreads": [{"left": {...page...}, "right": {...page...}}]},
      "cover": {"front_image": "...", "trim_size": "6x9"},
      "chapters": [{"number": 1, "title": "...", "body": "..."}],
      "illustrations": [{"chapter_number": 1, "image_ref": "..."}]
    }

`layout` may be omitted (or hold no spreads); renderers then compose pages
from the chapters.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from ..errors import InvalidInputError
from ..models import (
    Block,
    BookBundle,
    BookMetadata,
    Chapter,
    CoverArtifact,
    Illustration,
    LayoutArtifact,
    Page,
    Spread,
)
from ..parsing import normalize_optional_string


def load_bundle(path: Path) -> BookBundle:
    """Read and parse one bundle JSON file."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidInputError(
            f"Book bundle `{path}` is not valid JSON: {exc.msg} (line {exc.lineno}).",
            stage="bundle",
        ) from exc
    return parse_bundle(payload)


def parse_bundle(payload: object) -> BookBundle:
    """Build a `BookBundle` from a decoded JSON payload."""

    root = _mapping(payload, "bundle")
    metadata = _parse_metadata(_mapping(root.get("metadata"), "metadata"))
    cover = _parse_cover(_mapping(root.get("cover", {}), "cover"))
    chapters = tuple(
        _parse_chapter(_mapping(item, f"chapters[{index}]"))
        for index, item in enumerate(_sequence(root.get("chapters", []), "chapters"))
    )
    illustrations = tuple(
        _parse_illustration(_mapping(item, f"illustrations[{index}]"))
        for index, item in enumerate(_sequence(root.get("illustrations", []), "illustrations"))
    )
    layout = _parse_layout(root.get("layout"))
    return BookBundle(
        metadata=metadata,
        layout=layout,
        cover=cover,
        chapters=chapters,
        illustrations=illustrations,
    )


def _parse_metadata(payload: Mapping[str, Any]) -> BookMetadata:
    book_id = _required_string(payload, "book_id", "metadata")
    title = _required_string(payload, "title", "metadata")
    return BookMetadata(
        book_id=book_id,
        title=title,
        author=normalize_optional_string(payload.get("author")) or "Anonymous",
        language=normalize_optional_string(payload.get("language")) or "en",
        publisher=normalize_optional_string(payload.get("publisher")) or "NoorStudio",
        subtitle=normalize_optional_string(payload.get("subtitle")),
        description=normalize_optional_string(payload.get("description")),
    )


def _parse_cover(payload: Mapping[str, Any]) -> CoverArtifact:
    return CoverArtifact(
        front_image=normalize_optional_string(payload.get("front_image")),
        back_image=normalize_optional_string(payload.get("back_image")),
        spine_text=normalize_optional_string(payload.get("spine_text")),
        trim_size=normalize_optional_string(payload.get("trim_size")) or "6x9",
        back_blurb=normalize_optional_string(payload.get("back_blurb")),
        subtitle=normalize_optional_string(payload.get("subtitle")),
    )


def _parse_chapter(payload: Mapping[str, Any]) -> Chapter:
    return Chapter(
        number=_required_int(payload, "number", "chapter"),
        title=str(payload.get("title") or ""),
        body=str(payload.get("body") or ""),
    )


def _parse_illustration(payload: Mapping[str, Any]) -> Illustration:
    return Illustration(
        chapter_number=_required_int(payload, "chapter_number", "illustration"),
        image_ref=normalize_optional_string(payload.get("image_ref")),
        illustration_id=normalize_optional_string(payload.get("id")),
        scene=normalize_optional_string(payload.get("scene")),
    )


def _parse_layout(payload: object) -> LayoutArtifact:
    if payload is None:
        return LayoutArtifact()
    root = _mapping(payload, "layout")
    spreads: list[Spread] = []
    for index, item in enumerate(_sequence(root.get("spreads", []), "layout.spreads")):
        spread = _mapping(item, f"layout.spreads[{index}]")
        spreads.append(
            Spread(
                left=_parse_page(spread.get("left"), f"layout.spreads[{index}].left"),
                right=_parse_page(spread.get("right"), f"layout.spreads[{index}].right"),
            )
        )
    return LayoutArtifact(spreads=tuple(spreads))


def _parse_page(payload: object, label: str) -> Page | None:
    if payload is None:
        return None
    page = _mapping(payload, label)
    blocks: list[Block] = []
    for index, item in enumerate(_sequence(page.get("blocks", []), f"{label}.blocks")):
        block_label = f"{label}.blocks[{index}]"
        block = _mapping(item, block_label)
        text = block.get("text")
        blocks.append(
            Block(
                kind=_required_string(block, "kind", block_label),
                text=str(text) if text is not None else None,
                image_ref=normalize_optional_string(block.get("image_ref")),
            )
        )
    chapter_number = (
        _required_int(page, "chapter_number", label)
        if page.get("chapter_number") is not None
        else None
    )
    return Page(
        number=_required_int(page, "number", label),
        position=_required_string(page, "position", label),
        page_type=_required_string(page, "type", label),
        blocks=tuple(blocks),
        chapter_number=chapter_number,
        chapter_title=normalize_optional_string(page.get("chapter_title")),
    )


def _mapping(value: object, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidInputError(f"Bundle field `{label}` must be an object.", stage="bundle")
    return value


def _sequence(value: object, label: str) -> list[Any]:
    if not isinstance(value, list):
        raise InvalidInputError(f"Bundle field `{label}` must be a list.", stage="bundle")
    return value


def _required_string(payload: Mapping[str, Any], key: str, label: str) -> str:
    value = normalize_optional_string(payload.get(key))
    if value is None:
        raise InvalidInputError(f"Bundle field `{label}.{key}` is required.", stage="bundle")
    return value


def _required_int(payload: Mapping[str, Any], key: str, label: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(
            f"Bundle field `{label}.{key}` must be an integer.", stage="bundle"
        )
    return value
