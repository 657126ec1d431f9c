"""
EPUB codec.

Reads the spine documents in order and strips their HTML with
BeautifulSoup; writes a single-chapter EPUB3 book with ebooklib.
"""

import html
import uuid
from pathlib import Path
from typing import Dict, List

try:
    import ebooklib
    from ebooklib import epub
    HAS_EBOOKLIB = True
except ImportError:
    HAS_EBOOKLIB = False

from bs4 import BeautifulSoup

from core.errors import ExtractionFailed, ReconstructionFailed

from .base import DocumentCodec, split_paragraphs


def html_to_text(content: bytes) -> str:
    """Visible text of an XHTML document, one block per line group"""
    soup = BeautifulSoup(content, "html.parser")
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    lines = [line.strip() for line in soup.get_text("\n").splitlines()]
    return "\n\n".join(line for line in lines if line)


class EpubCodec(DocumentCodec):
    """EPUB e-books"""

    format = "epub"
    extensions = (".epub",)
    media_type = "application/epub+zip"

    def _read(self, path: Path) -> str:
        if not HAS_EBOOKLIB:
            raise ExtractionFailed("ebooklib not installed. Install with: pip install ebooklib")

        book = epub.read_epub(str(path), options={"ignore_ncx": True})
        chapters: List[str] = []
        for item_id, _linear in book.spine:
            item = book.get_item_with_id(item_id)
            if item is None or isinstance(item, epub.EpubNav):
                continue
            if item.get_type() != ebooklib.ITEM_DOCUMENT:
                continue
            text = html_to_text(item.get_content())
            if text:
                chapters.append(text)
        return "\n\n".join(chapters)

    def _write(self, text: str, output_path: Path, metadata: Dict[str, str]) -> None:
        if not HAS_EBOOKLIB:
            raise ReconstructionFailed("ebooklib not installed. Install with: pip install ebooklib")

        title = metadata.get("title", output_path.stem)
        language = metadata.get("language", "en")

        book = epub.EpubBook()
        book.set_identifier(f"urn:uuid:{uuid.uuid4()}")
        book.set_title(title)
        book.set_language(language)

        body = "\n".join(
            f"<p>{html.escape(block).replace(chr(10), '<br/>')}</p>"
            for block in split_paragraphs(text)
        )
        chapter = epub.EpubHtml(title=title, file_name="chapter_1.xhtml", lang=language)
        chapter.content = f"<html><head><title>{html.escape(title)}</title></head><body>{body}</body></html>"
        book.add_item(chapter)

        book.toc = (epub.Link("chapter_1.xhtml", title, "chapter_1"),)
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = ["nav", chapter]

        epub.write_epub(str(output_path), book)
