"""
Unit tests for core/codecs - format detection, extraction and reconstruction
"""
import pytest

from core import codecs
from core.codecs import detect_format, extract_text, get_codec, reconstruct, supported_formats
from core.codecs.base import split_paragraphs
from core.codecs.epub_codec import html_to_text
from core.errors import ExtractionFailed, ReconstructionFailed, UnsupportedFormat


PARAGRAPHS = "First paragraph about <tags> & symbols.\n\nSecond paragraph. It has two sentences."


class TestRegistry:

    def test_supported_formats(self):
        assert supported_formats() == ["docx", "epub", "pdf", "txt"]

    @pytest.mark.parametrize("name,expected", [
        ("book.txt", "txt"),
        ("BOOK.PDF", "pdf"),
        ("novel.epub", "epub"),
        ("/tmp/report.docx", "docx"),
        ("notes.text", "txt"),
        ("archive.xyz", None),
        ("no_extension", None),
    ])
    def test_detect_format(self, name, expected):
        assert detect_format(name) == expected

    @pytest.mark.parametrize("fmt", ["xyz", "", None, "doc"])
    def test_unknown_format(self, fmt):
        with pytest.raises(UnsupportedFormat):
            get_codec(fmt)

    def test_format_lookup_is_lenient(self):
        assert get_codec(".PDF").format == "pdf"

    @pytest.mark.parametrize("fmt,media_type", [
        ("txt", "text/plain"),
        ("pdf", "application/pdf"),
        ("epub", "application/epub+zip"),
        ("docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
    ])
    def test_media_types(self, fmt, media_type):
        assert get_codec(fmt).media_type == media_type


class TestSplitParagraphs:

    def test_blocks(self):
        assert split_paragraphs("a\n\n b \n \n\nc") == ["a", "b", "c"]

    def test_empty(self):
        assert split_paragraphs("  \n\n ") == []


class TestTextCodec:

    def test_round_trip_is_exact(self, temp_dir):
        text = "Line one.\n\n  indented  \r\nÜmlaut ñ 日本語"
        output = reconstruct(text, temp_dir / "out" / "a_de.txt", "txt")
        assert output.exists()
        assert extract_text(output, "txt") == text

    def test_latin1_fallback(self, temp_dir):
        path = temp_dir / "legacy.txt"
        path.write_bytes("café crème".encode("latin-1"))
        assert extract_text(path, "txt") == "café crème"

    def test_bom_is_dropped(self, temp_dir):
        path = temp_dir / "bom.txt"
        path.write_bytes("Hello.".encode("utf-8-sig"))
        assert extract_text(path, "txt") == "Hello."

    def test_missing_file(self, temp_dir):
        with pytest.raises(ExtractionFailed):
            extract_text(temp_dir / "missing.txt", "txt")

    def test_write_failure_is_reconstruction_failed(self, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("a file, not a directory")
        with pytest.raises(ReconstructionFailed):
            reconstruct("text", blocker / "out.txt", "txt")


class TestPdfCodec:

    def test_write_then_read(self, temp_dir):
        pytest.importorskip("pypdf")
        pytest.importorskip("reportlab")
        output = reconstruct(PARAGRAPHS, temp_dir / "doc_de.pdf", "pdf",
                             {"title": "doc", "language": "de"})

        text = extract_text(output, "pdf")
        assert "First paragraph" in text
        assert "two sentences" in text

    def test_empty_text_still_writes(self, temp_dir):
        pytest.importorskip("reportlab")
        output = reconstruct("", temp_dir / "empty.pdf", "pdf")
        assert output.stat().st_size > 0

    def test_corrupt_pdf(self, temp_dir):
        pytest.importorskip("pypdf")
        path = temp_dir / "broken.pdf"
        path.write_bytes(b"this is not a pdf")
        with pytest.raises(ExtractionFailed):
            extract_text(path, "pdf")


class TestEpubCodec:

    def test_html_to_text(self):
        content = b"<html><head><title>T</title></head><body><h1>Title</h1><p>One.</p><p>Two.</p></body></html>"
        assert html_to_text(content) == "Title\n\nOne.\n\nTwo."

    def test_write_then_read(self, temp_dir):
        pytest.importorskip("ebooklib")
        output = reconstruct(PARAGRAPHS, temp_dir / "book_fr.epub", "epub",
                             {"title": "book", "language": "fr"})

        text = extract_text(output, "epub")
        assert "First paragraph about <tags> & symbols." in text
        assert "Second paragraph. It has two sentences." in text

    def test_corrupt_epub(self, temp_dir):
        pytest.importorskip("ebooklib")
        path = temp_dir / "broken.epub"
        path.write_bytes(b"PK not really a zip")
        with pytest.raises(ExtractionFailed):
            extract_text(path, "epub")


class TestDocxCodec:

    def test_write_then_read(self, temp_dir):
        pytest.importorskip("docx")
        output = reconstruct(PARAGRAPHS, temp_dir / "memo_es.docx", "docx",
                             {"title": "memo", "language": "es"})

        assert extract_text(output, "docx") == PARAGRAPHS

    def test_language_in_core_properties(self, temp_dir):
        docx = pytest.importorskip("docx")
        output = reconstruct("Hola.", temp_dir / "memo_es.docx", "docx",
                             {"title": "memo", "language": "es"})

        props = docx.Document(str(output)).core_properties
        assert props.title == "memo"
        assert props.language == "es"


def test_module_level_helpers_share_registry():
    assert codecs.get_codec("txt") is get_codec("txt")
