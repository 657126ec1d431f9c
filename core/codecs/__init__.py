"""
Document codecs: text extraction and reconstruction per file format.

Usage:
    from core.codecs import extract_text, reconstruct, detect_format

    fmt = detect_format("book.epub")          # "epub"
    text = extract_text("book.epub", fmt)
    reconstruct(translated, "out/book_de.epub", fmt, {"title": "book", "language": "de"})
"""

from pathlib import Path
from typing import Dict, List, Optional

from core.errors import UnsupportedFormat

from .base import DocumentCodec
from .text_codec import TextCodec
from .pdf_codec import PdfCodec
from .epub_codec import EpubCodec
from .docx_codec import DocxCodec


_CODECS: Dict[str, DocumentCodec] = {}


def register_codec(codec: DocumentCodec) -> None:
    """Add or replace the codec for codec.format"""
    _CODECS[codec.format] = codec


def get_codec(fmt: Optional[str]) -> DocumentCodec:
    """
    Codec for a declared format

    Raises:
        UnsupportedFormat: No codec is registered for fmt
    """
    codec = _CODECS.get((fmt or "").lower().lstrip("."))
    if codec is None:
        raise UnsupportedFormat(f"Unsupported file format: {fmt or 'unknown'}")
    return codec


def supported_formats() -> List[str]:
    return sorted(_CODECS)


def detect_format(path) -> Optional[str]:
    """Format for a file name's extension, or None"""
    suffix = Path(path).suffix.lower()
    for codec in _CODECS.values():
        if suffix in codec.extensions:
            return codec.format
    return None


def extract_text(path, fmt: str) -> str:
    return get_codec(fmt).extract_text(path)


def reconstruct(text: str, output_path, fmt: str, metadata: Optional[Dict[str, str]] = None) -> Path:
    return get_codec(fmt).reconstruct(text, output_path, metadata)


for _codec in (TextCodec(), PdfCodec(), EpubCodec(), DocxCodec()):
    register_codec(_codec)


__all__ = [
    "DocumentCodec",
    "TextCodec",
    "PdfCodec",
    "EpubCodec",
    "DocxCodec",
    "register_codec",
    "get_codec",
    "supported_formats",
    "detect_format",
    "extract_text",
    "reconstruct",
]
