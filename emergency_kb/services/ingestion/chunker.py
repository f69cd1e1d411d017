"""Text chunking strategies for plain and paginated text.

Three strategies, selected per document by
:class:`~emergency_kb.models.knowledge.ChunkingStrategy`:

1. **Fixed-size** -- character windows of ``chunk_size`` (default 500).  Every
   chunk after the first also carries the ``overlap`` characters (default 50)
   preceding its nominal start, so chunk *k > 0* spans
   ``[k * chunk_size - overlap, (k + 1) * chunk_size)``, clipped to the text.
   Boundaries ignore words: a chunk may start or end mid-word.

2. **Sentence-grouped** -- split on runs of ``.``, ``!`` and ``?``, drop empty
   fragments, then join every ``sentences_per_chunk`` sentences (default 5)
   with ``". "`` and a trailing period.

3. **Paragraph-split** -- split on blank lines; each non-blank paragraph is
   one chunk.

Synthesized titles read ``"<source> - Chunk <n>"``, ``"<source> - Section
<n>"`` and ``"<source> - Paragraph <n>"`` respectively, numbered from 1.
"""

from __future__ import annotations

import re
from typing import NamedTuple

import structlog

from emergency_kb.models.knowledge import ChunkingStrategy

logger = structlog.get_logger(logger_name=__name__)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


class TextChunk(NamedTuple):
    """One chunk of source text with its display title."""

    text: str
    title: str


class TextChunker:
    """Splits text into chunks using one of three strategies.

    Parameters
    ----------
    chunk_size:
        Fixed-size window length in characters (default 500).
    overlap:
        Characters each fixed-size chunk after the first repeats from before
        its nominal start (default 50).  Must be smaller than ``chunk_size``.
    sentences_per_chunk:
        Sentences per sentence-grouped chunk (default 5).
    """

    def __init__(
        self,
        chunk_size: int = 500,
        overlap: int = 50,
        sentences_per_chunk: int = 5,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if not 0 <= overlap < chunk_size:
            raise ValueError(f"overlap must be in [0, chunk_size), got {overlap}")
        if sentences_per_chunk <= 0:
            raise ValueError(f"sentences_per_chunk must be positive, got {sentences_per_chunk}")
        self._chunk_size = chunk_size
        self._overlap = overlap
        self._sentences_per_chunk = sentences_per_chunk

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str, source: str, strategy: ChunkingStrategy) -> list[TextChunk]:
        """Split *text* according to *strategy*.

        Returns
        -------
        list[TextChunk]
            Chunks in document order.  Empty when *text* is blank.
        """
        if not text.strip():
            return []

        if strategy is ChunkingStrategy.SENTENCE:
            chunks = self.chunk_by_sentences(text, source)
        elif strategy is ChunkingStrategy.PARAGRAPH:
            chunks = self.chunk_by_paragraphs(text, source)
        else:
            chunks = self.chunk_fixed_size(text, source)

        logger.debug(
            "text_chunked",
            source=source,
            strategy=strategy.value,
            input_length=len(text),
            chunks=len(chunks),
        )
        return chunks

    def chunk_fixed_size(self, text: str, source: str) -> list[TextChunk]:
        chunks: list[TextChunk] = []
        for number, nominal_start in enumerate(range(0, len(text), self._chunk_size), start=1):
            start = max(0, nominal_start - self._overlap)
            end = min(nominal_start + self._chunk_size, len(text))
            chunks.append(TextChunk(text[start:end], f"{source} - Chunk {number}"))
        return chunks

    def chunk_by_sentences(self, text: str, source: str) -> list[TextChunk]:
        sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]
        chunks: list[TextChunk] = []
        for index in range(0, len(sentences), self._sentences_per_chunk):
            group = sentences[index : index + self._sentences_per_chunk]
            number = index // self._sentences_per_chunk + 1
            chunks.append(TextChunk(". ".join(group) + ".", f"{source} - Section {number}"))
        return chunks

    def chunk_by_paragraphs(self, text: str, source: str) -> list[TextChunk]:
        paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]
        return [
            TextChunk(paragraph, f"{source} - Paragraph {number}")
            for number, paragraph in enumerate(paragraphs, start=1)
        ]
