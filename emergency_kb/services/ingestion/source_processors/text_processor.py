"""Source processor for plain-text documents."""

from __future__ import annotations

import structlog

from emergency_kb.models.knowledge import DocumentMetadata
from emergency_kb.models.results import ParseOutcome
from emergency_kb.services.ingestion.chunker import TextChunker
from emergency_kb.services.ingestion.source_processors.base import entries_from_chunks

logger = structlog.get_logger(logger_name=__name__)


class TextProcessor:
    """Chunks plain text with the document's chunking strategy."""

    def __init__(self, chunker: TextChunker) -> None:
        self._chunker = chunker

    def process(self, content: str, metadata: DocumentMetadata) -> ParseOutcome:
        chunks = self._chunker.chunk(content, metadata.source, metadata.chunking_strategy)
        logger.info(
            "text_processed",
            source=metadata.source,
            strategy=metadata.chunking_strategy.value,
            chunks=len(chunks),
        )
        return ParseOutcome(entries=entries_from_chunks(chunks, metadata))
