"""Source processor for PDF documents.

Reads PDF bytes with PyMuPDF (fitz), extracts text page by page and joins
the pages with blank lines.  Pages that yield no text (scans without an OCR
layer, blank separators) or fail to extract are skipped with a warning.  The
joined text then goes through the same chunking strategies as plain text.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from emergency_kb.models.knowledge import DocumentMetadata
from emergency_kb.models.results import ParseOutcome
from emergency_kb.services.ingestion.chunker import TextChunker
from emergency_kb.services.ingestion.source_processors.base import entries_from_chunks
from emergency_kb.utils.errors import ParseError

logger = structlog.get_logger(logger_name=__name__)

_PAGE_SEPARATOR = "\n\n"


class PDFProcessor:
    """Turns PDF bytes into chunked candidate entries."""

    def __init__(self, chunker: TextChunker) -> None:
        self._chunker = chunker

    def process(self, data: bytes, metadata: DocumentMetadata) -> ParseOutcome:
        text = self.extract_text(data, metadata.source)
        chunks = self._chunker.chunk(text, metadata.source, metadata.chunking_strategy)
        logger.info("pdf_processed", source=metadata.source, chunks=len(chunks))
        return ParseOutcome(entries=entries_from_chunks(chunks, metadata))

    @staticmethod
    def extract_text(data: bytes, source: str) -> str:
        """Return the text of every non-blank page joined by blank lines.

        Raises
        ------
        ParseError
            If the bytes are not a readable PDF or no page has any text.
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise ParseError(f"Cannot open PDF {source}: {exc}") from exc

        pages: list[str] = []
        try:
            for page_num in range(len(doc)):
                try:
                    page_text = doc[page_num].get_text("text")
                except Exception as exc:
                    logger.warning(
                        "pdf_page_extract_failed",
                        source=source,
                        page=page_num + 1,
                        error=str(exc),
                    )
                    continue
                if not page_text.strip():
                    logger.warning("pdf_page_empty", source=source, page=page_num + 1)
                    continue
                pages.append(page_text)
        finally:
            doc.close()

        text = _PAGE_SEPARATOR.join(pages).strip()
        if not text:
            raise ParseError(f"No text content found in PDF {source}")
        return text
