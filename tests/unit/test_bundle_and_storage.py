"""Unit tests for bundle parsing, layout validation and artifact storage."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from noorpress.errors import InvalidInputError
from noorpress.io import ArtifactStore, load_bundle, parse_bundle
from noorpress.models import LayoutArtifact, Page, validate_layout


def _bundle_payload() -> dict[str, object]:
    return {
        "metadata": {"book_id": " book-1 ", "title": "Sharing Bread", "author": ""},
        "cover": {"front_image": "front.png", "trim_size": "8.5x8.5"},
        "chapters": [{"number": 2, "title": "Two", "body": "B"}, {"number": 1, "title": "One"}],
        "illustrations": [{"chapter_number": 1, "image_ref": "one.png", "id": "ill-1"}],
        "layout": {
            "spreads": [
                {
                    "right": {
                        "number": 1,
                        "position": "right",
                        "type": "title",
                        "blocks": [{"kind": "text", "text": "Sharing Bread"}],
                    }
                },
                {
                    "left": {
                        "number": 2,
                        "position": "left",
                        "type": "image",
                        "chapter_number": 1,
                        "chapter_title": "One",
                        "blocks": [{"kind": "image", "image_ref": "one.png"}],
                    },
                    "right": {"number": 3, "position": "right", "type": "blank"},
                },
            ]
        },
    }


def test_parse_bundle_builds_artifacts_with_defaults() -> None:
    """Blank optional fields fall back to defaults; pages keep reading order."""

    bundle = parse_bundle(_bundle_payload())

    assert bundle.metadata.book_id == "book-1"
    assert bundle.metadata.author == "Anonymous"
    assert bundle.metadata.language == "en"
    assert bundle.cover.trim_size == "8.5x8.5"
    assert [chapter.number for chapter in bundle.sorted_chapters()] == [1, 2]
    assert bundle.chapters[1].body == ""
    assert [page.number for page in bundle.layout.pages()] == [1, 2, 3]
    assert bundle.layout.page_count == 3
    assert bundle.layout.pages()[1].chapter_title == "One"
    assert bundle.image_refs() == ("front.png", "one.png")
    validate_layout(bundle.layout)


def test_load_bundle_reports_bad_json_and_missing_fields(tmp_path: Path) -> None:
    """Malformed documents raise `InvalidInputError` naming the field or line."""

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(InvalidInputError, match="not valid JSON"):
        load_bundle(broken)

    payload = _bundle_payload()
    del payload["metadata"]["title"]  # type: ignore[attr-defined]
    with pytest.raises(InvalidInputError, match=r"metadata\.title"):
        parse_bundle(payload)

    payload = _bundle_payload()
    payload["chapters"] = [{"number": "one"}]
    with pytest.raises(InvalidInputError, match=r"chapter\.number` must be an integer"):
        parse_bundle(payload)

    good = tmp_path / "book.json"
    good.write_text(json.dumps(_bundle_payload()), encoding="utf-8")
    assert load_bundle(good).metadata.title == "Sharing Bread"


def test_layout_from_pages_puts_page_one_alone_on_the_right() -> None:
    """Spreads follow print convention: page 1 opens alone, then left/right pairs."""

    pages = [
        Page(number=index, position="right" if index % 2 else "left", page_type="blank")
        for index in range(1, 5)
    ]

    layout = LayoutArtifact.from_pages(pages)

    assert layout.spreads[0].left is None
    assert layout.spreads[0].right is pages[0]
    assert (layout.spreads[1].left, layout.spreads[1].right) == (pages[1], pages[2])
    assert layout.spreads[2].left is pages[3]
    assert layout.spreads[2].right is None


@pytest.mark.parametrize(
    ("pages", "message"),
    [
        (
            [Page(1, "right", "text"), Page(1, "left", "text")],
            "strictly increasing",
        ),
        ([Page(2, "right", "text")], "print convention"),
        ([Page(1, "right", "poster")], "unknown type"),
    ],
)
def test_validate_layout_rejects_bad_pages(pages: list[Page], message: str) -> None:
    """Ordering, parity and vocabulary errors are reported before rendering."""

    with pytest.raises(InvalidInputError, match=message):
        validate_layout(LayoutArtifact.from_pages(pages))


def test_artifact_store_replaces_files_atomically(tmp_path: Path) -> None:
    """Stored artifacts round-trip and no temp files are left behind."""

    store = ArtifactStore(tmp_path / "out")

    pdf_path = store.save_bytes(Path("Book-KDP.pdf"), b"%PDF-1.4 first")
    store.save_bytes(Path("Book-KDP.pdf"), b"%PDF-1.4 second")
    store.save_json(Path("reports/export_report.json"), {"state": "done", "b": 1})

    assert pdf_path.read_bytes() == b"%PDF-1.4 second"
    report = json.loads((tmp_path / "out" / "reports" / "export_report.json").read_text())
    assert report == {"b": 1, "state": "done"}
    assert sorted(item.name for item in (tmp_path / "out").iterdir()) == [
        "Book-KDP.pdf",
        "reports",
    ]
