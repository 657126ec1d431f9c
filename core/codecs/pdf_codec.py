"""
PDF codec.

Reads with pypdf (one text block per page), writes a simple flowing
document with reportlab platypus.
"""

import html
from pathlib import Path
from typing import Dict

try:
    from pypdf import PdfReader
    HAS_PYPDF = True
except ImportError:
    HAS_PYPDF = False

try:
    from reportlab.lib.pagesizes import A4
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.lib.units import cm
    from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer
    HAS_REPORTLAB = True
except ImportError:
    HAS_REPORTLAB = False

from core.errors import ExtractionFailed, ReconstructionFailed

from .base import DocumentCodec, split_paragraphs


class PdfCodec(DocumentCodec):
    """PDF files; text only, layout is not kept"""

    format = "pdf"
    extensions = (".pdf",)
    media_type = "application/pdf"

    def _read(self, path: Path) -> str:
        if not HAS_PYPDF:
            raise ExtractionFailed("pypdf not installed. Install with: pip install pypdf")

        reader = PdfReader(str(path))
        text_parts = []
        for page in reader.pages:
            text_parts.append(page.extract_text() or "")
        return "\n\n".join(text_parts)

    def _write(self, text: str, output_path: Path, metadata: Dict[str, str]) -> None:
        if not HAS_REPORTLAB:
            raise ReconstructionFailed("reportlab not installed. Install with: pip install reportlab")

        title = metadata.get("title", output_path.stem)
        language = metadata.get("language", "")

        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=A4,
            leftMargin=2 * cm,
            rightMargin=2 * cm,
            topMargin=2 * cm,
            bottomMargin=2 * cm,
            title=title,
            subject=f"Translation ({language})" if language else "Translation",
            keywords=[language] if language else [],
        )

        styles = getSampleStyleSheet()
        story = []
        for block in split_paragraphs(text):
            escaped = html.escape(block).replace("\n", "<br/>")
            story.append(Paragraph(escaped, styles["Normal"]))
            story.append(Spacer(1, 0.3 * cm))

        # reportlab refuses to build an empty story
        if not story:
            story.append(Spacer(1, 0.3 * cm))

        doc.build(story)
