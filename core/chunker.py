#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
TextChunker - Sentence-boundary text chunking for translation jobs.

This module splits extracted document text into bounded-size units that are
sent one by one to a translation provider:
- Sentence boundary detection on terminal punctuation (., !, ?)
- Greedy packing of consecutive sentences up to max_chars
- Word-level fallback for sentences longer than max_chars
- Lossless: joining the chunk texts reproduces the input exactly

Usage:
    from core.chunker import TextChunker, TranslationChunk

    chunker = TextChunker(max_chars=1000)
    chunks = chunker.create_chunks(document_text)

Classes:
    TranslationChunk: Data class representing a text chunk.
    TextChunker: Deterministic chunking engine.
"""

import re
from typing import List
from dataclasses import dataclass

from config.constants import TRANSLATION_CHUNK_SIZE, SENTENCE_TERMINATORS


# A span ending in one or more terminators, or a trailing fragment without one
_TERMINATORS = re.escape(SENTENCE_TERMINATORS)
SENTENCE_PATTERN = re.compile(rf'[^{_TERMINATORS}]*[{_TERMINATORS}]+|[^{_TERMINATORS}]+')

# Words and the whitespace runs between them, kept as separate tokens
TOKEN_PATTERN = re.compile(r'\S+|\s+')


@dataclass
class TranslationChunk:
    """
    A text chunk ready for translation.

    Attributes:
        id: Position of this chunk in the document (1-indexed).
        text: The text content to translate.
        estimated_tokens: Rough token count estimate (chars / 4).

    Example:
        >>> chunk = TranslationChunk(id=1, text="Hello world.")
        >>> chunk.estimated_tokens
        3
    """
    id: int
    text: str
    estimated_tokens: int = 0

    def __post_init__(self):
        """Initialize computed fields after dataclass creation."""
        self.estimated_tokens = len(self.text) // 4

    @property
    def is_blank(self) -> bool:
        """True when the chunk holds only whitespace"""
        return not self.text.strip()


class TextChunker:
    """
    Sentence-aware text chunker.

    Packs whole sentences into chunks of at most max_chars characters.
    A sentence that alone exceeds the limit is broken on whitespace; a
    single word longer than the limit is emitted unchanged as its own
    chunk, which is the only case where a chunk exceeds max_chars.

    Attributes:
        max_chars: Maximum characters per chunk.

    Example:
        >>> chunker = TextChunker(max_chars=1000)
        >>> chunks = chunker.create_chunks(long_document)
        >>> "".join(c.text for c in chunks) == long_document
        True
    """

    def __init__(self, max_chars: int = TRANSLATION_CHUNK_SIZE):
        """
        Initialize TextChunker.

        Args:
            max_chars: Maximum characters per chunk (must be positive).

        Raises:
            ValueError: If max_chars is not positive.
        """
        if max_chars <= 0:
            raise ValueError(f"max_chars must be positive, got {max_chars}")
        self.max_chars = max_chars

    def split_into_sentences(self, text: str) -> List[str]:
        """
        Split text into sentence-like spans.

        Each span runs up to and including a run of terminal punctuation.
        Text after the last terminator becomes a final span of its own, so
        the spans always join back to the input.

        Args:
            text: Input text to split.

        Returns:
            List of spans (empty list for empty text).
        """
        return SENTENCE_PATTERN.findall(text)

    def split_long_sentence(self, sentence: str) -> List[str]:
        """
        Split an over-long sentence into pieces on whitespace boundaries.

        Words are never cut. Whitespace runs longer than the limit are
        sliced, since they carry no meaning of their own.

        Args:
            sentence: Span longer than max_chars.

        Returns:
            Ordered pieces whose concatenation is the input.
        """
        pieces: List[str] = []
        current = ""

        for token in TOKEN_PATTERN.findall(sentence):
            if len(current) + len(token) <= self.max_chars:
                current += token
                continue

            if current:
                pieces.append(current)
                current = ""

            if token.isspace() and len(token) > self.max_chars:
                for start in range(0, len(token), self.max_chars):
                    pieces.append(token[start:start + self.max_chars])
                current = pieces.pop()
            else:
                # Oversized word passes through unchanged
                current = token

        if current:
            pieces.append(current)

        return pieces

    def create_chunks(self, text: str) -> List[TranslationChunk]:
        """
        Create translation chunks from document text.

        Sentences are packed greedily while the running length stays
        within max_chars. When the next sentence would overflow, the
        current chunk is flushed. A sentence longer than the limit is
        split on words; all but its last piece are emitted right away and
        the last piece seeds the next chunk.

        Args:
            text: Full document text to chunk.

        Returns:
            List of TranslationChunk objects in document order.
        """
        texts: List[str] = []
        current = ""

        for sentence in self.split_into_sentences(text):
            if len(current) + len(sentence) <= self.max_chars:
                current += sentence
                continue

            if current:
                texts.append(current)
                current = ""

            if len(sentence) > self.max_chars:
                pieces = self.split_long_sentence(sentence)
                texts.extend(pieces[:-1])
                current = pieces[-1] if pieces else ""
            else:
                current = sentence

        if current:
            texts.append(current)

        return [TranslationChunk(id=i, text=t) for i, t in enumerate(texts, start=1)]
