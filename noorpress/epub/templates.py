"""XML and CSS documents of an EPUB 3.3 package.

Responsibilities:
- Render `container.xml`, the package document, the navigation document,
  chapter content documents and the stylesheet.
- Escape text content with the minimal XML policy (`&`, `<`, `>`).
"""

from __future__ import annotations

from dataclasses import dataclass
from xml.sax.saxutils import escape, quoteattr

PACKAGE_PATH = "OEBPS/content.opf"

CONTAINER_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{PACKAGE_PATH}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

STYLESHEET_CSS = """@namespace epub "http://www.idpf.org/2007/ops";

body {
  font-family: Georgia, serif;
  font-size: 1em;
  line-height: 1.6;
  margin: 1em;
  color: #1a1a1a;
}

h1, h2 {
  font-family: "Helvetica Neue", Helvetica, sans-serif;
  font-weight: 600;
  hyphens: none;
  break-after: avoid;
}

h1 {
  font-size: 1.8em;
  text-align: center;
}

h2 {
  font-size: 1.5em;
  margin: 1.5em 0 0.5em;
}

p {
  margin: 0.5em 0;
  text-indent: 1.5em;
  text-align: justify;
  hyphens: auto;
}

p.no-indent {
  text-indent: 0;
}

figure {
  margin: 1.5em 0;
  break-inside: avoid;
}

img {
  max-width: 100%;
  height: auto;
  display: block;
  margin: 0 auto;
}

@media (prefers-color-scheme: dark) {
  body {
    color: #e0e0e0;
  }
}
"""


@dataclass(frozen=True, slots=True)
class ManifestImage:
    """One embedded image: manifest id, href relative to `OEBPS/`, media type."""

    item_id: str
    href: str
    media_type: str
    is_cover: bool = False


@dataclass(frozen=True, slots=True)
class ChapterDocument:
    """One chapter content document ready for serialization."""

    index: int
    number: int
    title: str
    paragraphs: tuple[str, ...]
    image_hrefs: tuple[str, ...]

    @property
    def filename(self) -> str:
        return f"chapter{self.index}.xhtml"

    @property
    def heading(self) -> str:
        title = self.title.strip()
        return f"Chapter {self.number}: {title}" if title else f"Chapter {self.number}"


def package_document(
    *,
    identifier: str,
    title: str,
    author: str,
    language: str,
    publisher: str,
    modified: str,
    description: str | None,
    is_isbn: bool,
    chapters: list[ChapterDocument],
    images: list[ManifestImage],
) -> str:
    """Return `content.opf` with metadata, manifest and spine."""

    metadata = [
        f'    <dc:identifier id="pub-id">{escape(identifier)}</dc:identifier>',
    ]
    if is_isbn:
        metadata.append(
            '    <meta refines="#pub-id" property="identifier-type" '
            'scheme="onix:codelist5">15</meta>'
        )
    metadata.extend(
        [
            f"    <dc:title>{escape(title)}</dc:title>",
            f"    <dc:creator>{escape(author)}</dc:creator>",
            f"    <dc:language>{escape(language)}</dc:language>",
            f"    <dc:publisher>{escape(publisher)}</dc:publisher>",
        ]
    )
    if description:
        metadata.append(f"    <dc:description>{escape(description)}</dc:description>")
    metadata.extend(
        [
            f'    <meta property="dcterms:modified">{modified}</meta>',
            '    <meta property="schema:accessMode">textual</meta>',
        ]
    )
    if images:
        metadata.append('    <meta property="schema:accessMode">visual</meta>')
    metadata.extend(
        [
            '    <meta property="schema:accessModeSufficient">textual</meta>',
            '    <meta property="schema:accessibilityFeature">structuralNavigation</meta>',
            '    <meta property="schema:accessibilityHazard">none</meta>',
        ]
    )

    manifest = [
        '    <item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" '
        'properties="nav"/>',
        '    <item id="css" href="stylesheet.css" media-type="text/css"/>',
    ]
    manifest.extend(
        f'    <item id="chapter{chapter.index}" href="{chapter.filename}" '
        'media-type="application/xhtml+xml"/>'
        for chapter in chapters
    )
    for image in images:
        properties = ' properties="cover-image"' if image.is_cover else ""
        manifest.append(
            f'    <item id="{image.item_id}" href="{image.href}" '
            f'media-type="{image.media_type}"{properties}/>'
        )

    spine = [f'    <itemref idref="chapter{chapter.index}"/>' for chapter in chapters]

    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<package xmlns="http://www.idpf.org/2007/opf" version="3.0" '
            f'unique-identifier="pub-id" xml:lang={quoteattr(language)}>',
            '  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">',
            *metadata,
            "  </metadata>",
            "  <manifest>",
            *manifest,
            "  </manifest>",
            "  <spine>",
            *spine,
            "  </spine>",
            "</package>",
            "",
        ]
    )


def navigation_document(title: str, language: str, chapters: list[ChapterDocument]) -> str:
    """Return `nav.xhtml` with one table-of-contents entry per chapter."""

    entries = [
        f'        <li><a href="{chapter.filename}">{escape(chapter.heading)}</a></li>'
        for chapter in chapters
    ]
    return "\n".join(
        [
            *_xhtml_head(title, language),
            "<body>",
            '  <nav epub:type="toc" id="toc" role="doc-toc">',
            f"    <h1>{escape(title)}</h1>",
            "    <ol>",
            *entries,
            "    </ol>",
            "  </nav>",
            '  <nav epub:type="landmarks" hidden="">',
            "    <ol>",
            '      <li><a epub:type="toc" href="#toc">Table of Contents</a></li>',
            f'      <li><a epub:type="bodymatter" href="{chapters[0].filename}">'
            "Start of Content</a></li>",
            "    </ol>",
            "  </nav>",
            "</body>",
            "</html>",
            "",
        ]
    )


def chapter_document(chapter: ChapterDocument, language: str) -> str:
    """Return one chapter XHTML document."""

    body = [
        '<body epub:type="bodymatter">',
        f'  <section id="chapter-{chapter.index}" epub:type="chapter" role="doc-chapter">',
        f"    <h2>{escape(chapter.heading)}</h2>",
    ]
    for position, href in enumerate(chapter.image_hrefs, start=1):
        alt = f"Chapter {chapter.number} illustration {position}"
        body.append(f"    <figure><img src={quoteattr(href)} alt={quoteattr(alt)}/></figure>")
    for position, paragraph in enumerate(chapter.paragraphs):
        css_class = ' class="no-indent"' if position == 0 else ""
        body.append(f"    <p{css_class}>{escape(paragraph)}</p>")
    body.extend(["  </section>", "</body>", "</html>", ""])
    return "\n".join([*_xhtml_head(chapter.heading, language), *body])


def _xhtml_head(title: str, language: str) -> list[str]:
    return [
        '<?xml version="1.0" encoding="UTF-8"?>',
        "<!DOCTYPE html>",
        '<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops" '
        f"xml:lang={quoteattr(language)} lang={quoteattr(language)}>",
        "<head>",
        '  <meta charset="utf-8"/>',
        f"  <title>{escape(title)}</title>",
        '  <link rel="stylesheet" type="text/css" href="stylesheet.css"/>',
        "</head>",
    ]
