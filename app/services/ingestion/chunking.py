"""Utilities for chunking extracted text into pieces for the vector store."""

import logging
from typing import List, Optional, Protocol, Sequence

import tiktoken

from app.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "cl100k_base"

# Preferred split points, coarsest first
SEPARATORS = ["\n\n", "\n", ". ", " "]


class Tokenizer(Protocol):
    def encode(self, text: str) -> List[int]: ...

    def decode(self, tokens: Sequence[int]) -> str: ...


class DocumentChunker:
    """Split documents into overlapping token-bounded chunks.

    Text is split at paragraph, line, sentence and word boundaries in that
    order of preference; a piece with no usable boundary is cut by tokens.
    """

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        tokenizer: Optional[Tokenizer] = None,
    ):
        """Initialize the document chunker.

        Args:
            chunk_size: Maximum size of chunks in tokens
            chunk_overlap: Tokens repeated between consecutive token-cut chunks
            tokenizer: Object with ``encode``/``decode``; tiktoken by default
        """
        self.chunk_size = chunk_size or settings.CHUNK_SIZE
        self.chunk_overlap = chunk_overlap if chunk_overlap is not None else settings.CHUNK_OVERLAP
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        self.tokenizer = tokenizer or tiktoken.get_encoding(DEFAULT_ENCODING)

    def count_tokens(self, text: str) -> int:
        return len(self.tokenizer.encode(text))

    def chunk_by_tokens(self, content: str) -> List[str]:
        """Split text into overlapping windows of ``chunk_size`` tokens."""
        if not content.strip():
            return []

        tokens = self.tokenizer.encode(content)
        step = self.chunk_size - self.chunk_overlap
        chunks = []
        for i in range(0, len(tokens), step):
            window = tokens[i:i + self.chunk_size]
            chunks.append(self.tokenizer.decode(window))
            if i + self.chunk_size >= len(tokens):
                break
        return chunks

    def _split(self, text: str, separators: List[str]) -> List[str]:
        if self.count_tokens(text) <= self.chunk_size:
            return [text]
        if not separators:
            return self.chunk_by_tokens(text)

        separator, rest = separators[0], separators[1:]
        pieces = [p + separator for p in text.split(separator)]
        pieces[-1] = pieces[-1][: len(pieces[-1]) - len(separator)]
        if len(pieces) == 1:
            return self._split(text, rest)

        chunks: List[str] = []
        current = ""
        for piece in pieces:
            candidate = current + piece
            if self.count_tokens(candidate) <= self.chunk_size:
                current = candidate
                continue
            if current:
                chunks.append(current)
            if self.count_tokens(piece) > self.chunk_size:
                chunks.extend(self._split(piece, rest))
                current = ""
            else:
                current = piece
        if current:
            chunks.append(current)
        return chunks

    def chunk_document(self, content: str) -> List[str]:
        """Chunk a document, dropping whitespace-only pieces."""
        if not content.strip():
            return []
        chunks = [chunk.strip() for chunk in self._split(content, SEPARATORS)]
        chunks = [chunk for chunk in chunks if chunk]
        logger.debug(f"Split {len(content)} chars into {len(chunks)} chunks")
        return chunks
