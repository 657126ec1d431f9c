"""
DOCX codec (python-docx).
"""

from pathlib import Path
from typing import Dict

try:
    from docx import Document
    HAS_DOCX = True
except ImportError:
    HAS_DOCX = False

from core.errors import ExtractionFailed, ReconstructionFailed

from .base import DocumentCodec, split_paragraphs


class DocxCodec(DocumentCodec):
    """Word documents; paragraph text only"""

    format = "docx"
    extensions = (".docx",)
    media_type = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

    def _read(self, path: Path) -> str:
        if not HAS_DOCX:
            raise ExtractionFailed("python-docx not installed. Install with: pip install python-docx")

        doc = Document(str(path))
        return "\n\n".join(para.text for para in doc.paragraphs if para.text.strip())

    def _write(self, text: str, output_path: Path, metadata: Dict[str, str]) -> None:
        if not HAS_DOCX:
            raise ReconstructionFailed("python-docx not installed. Install with: pip install python-docx")

        doc = Document()
        doc.core_properties.title = metadata.get("title", output_path.stem)
        if metadata.get("language"):
            doc.core_properties.language = metadata["language"]

        for block in split_paragraphs(text):
            doc.add_paragraph(block)

        doc.save(str(output_path))
