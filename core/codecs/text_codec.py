"""
Plain text codec.
"""

from pathlib import Path
from typing import Dict

from core.errors import ExtractionFailed

from .base import DocumentCodec


class TextCodec(DocumentCodec):
    """UTF-8 text files; other encodings are tried in order on read"""

    format = "txt"
    extensions = (".txt", ".text")
    media_type = "text/plain"

    # utf-8-sig also reads plain UTF-8; latin-1 never fails
    ENCODINGS = ("utf-8-sig", "latin-1")

    def _read(self, path: Path) -> str:
        raw = path.read_bytes()
        for encoding in self.ENCODINGS:
            try:
                return raw.decode(encoding)
            except UnicodeDecodeError:
                continue
        raise ExtractionFailed(f"Could not decode text file {path.name}")

    def _write(self, text: str, output_path: Path, metadata: Dict[str, str]) -> None:
        output_path.write_bytes(text.encode("utf-8"))
