"""
Document Codec - Abstract Interface

A codec turns a file of one format into plain text and writes plain text
back out in that format. Layout is not preserved.
"""

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from config.logging_config import get_logger
from core.errors import ExtractionFailed, ReconstructionFailed

logger = get_logger(__name__)

# Blank line(s) separate paragraphs
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> List[str]:
    """Non-empty paragraph blocks of text, stripped"""
    return [block.strip() for block in PARAGRAPH_BREAK.split(text) if block.strip()]


class DocumentCodec(ABC):
    """
    Abstract base class for document codecs.

    Subclasses implement ``_read`` and ``_write``; the public methods wrap
    every failure into ExtractionFailed / ReconstructionFailed so callers
    only deal with the job error taxonomy.
    """

    format: str = ""
    extensions: Tuple[str, ...] = ()
    media_type: str = "application/octet-stream"

    @abstractmethod
    def _read(self, path: Path) -> str:
        """Return the document's text"""
        pass

    @abstractmethod
    def _write(self, text: str, output_path: Path, metadata: Dict[str, str]) -> None:
        """Write text to output_path"""
        pass

    def extract_text(self, path) -> str:
        """
        Extract plain text from a document.

        Raises:
            ExtractionFailed: Missing file or unreadable content
        """
        path = Path(path)
        if not path.is_file():
            raise ExtractionFailed(f"Source file not found: {path.name}")

        try:
            return self._read(path)
        except ExtractionFailed:
            raise
        except Exception as e:
            logger.debug(f"{self.format} extraction failed for {path}", exc_info=True)
            raise ExtractionFailed(
                f"Could not read {self.format.upper()} file {path.name}: {type(e).__name__}"
            ) from e

    def reconstruct(self, text: str, output_path, metadata: Optional[Dict[str, str]] = None) -> Path:
        """
        Write translated text as a document of this format.

        Args:
            text: Translated text
            output_path: Destination file (parent directories are created)
            metadata: Optional ``title`` and ``language``

        Raises:
            ReconstructionFailed: The file could not be written
        """
        output_path = Path(output_path)
        metadata = metadata or {}
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            self._write(text, output_path, metadata)
        except ReconstructionFailed:
            raise
        except Exception as e:
            logger.debug(f"{self.format} reconstruction failed for {output_path}", exc_info=True)
            raise ReconstructionFailed(
                f"Could not write {self.format.upper()} output: {type(e).__name__}"
            ) from e
        return output_path

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} format={self.format}>"
