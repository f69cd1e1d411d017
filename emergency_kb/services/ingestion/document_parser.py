"""Format dispatch from raw document bytes to candidate knowledge entries.

:class:`DocumentParser` is the single entry point the ingestion pipeline uses
to read a source.  It decodes text formats as UTF-8 (a leading BOM is
ignored), routes the content to the processor for
``DocumentMetadata.format`` and enforces one rule for every format: a source
that yields no candidate entries at all is a source-level failure.
"""

from __future__ import annotations

import structlog

from emergency_kb.models.knowledge import DocumentFormat, DocumentMetadata
from emergency_kb.models.results import ParseOutcome
from emergency_kb.services.ingestion.chunker import TextChunker
from emergency_kb.services.ingestion.source_processors import (
    CSVProcessor,
    JSONProcessor,
    MarkdownProcessor,
    PDFProcessor,
    TextProcessor,
    XMLProcessor,
)
from emergency_kb.utils.errors import ParseError

logger = structlog.get_logger(logger_name=__name__)


class DocumentParser:
    """Parses raw bytes plus :class:`DocumentMetadata` into a :class:`ParseOutcome`.

    Parameters
    ----------
    chunker:
        Chunker used for plain-text and PDF content.  Defaults to a
        :class:`TextChunker` with 500-character windows and 50 overlap.
    """

    def __init__(self, chunker: TextChunker | None = None) -> None:
        self._chunker = chunker or TextChunker()
        self._json = JSONProcessor()
        self._csv = CSVProcessor()
        self._markdown = MarkdownProcessor()
        self._xml = XMLProcessor()
        self._pdf = PDFProcessor(self._chunker)
        self._text = TextProcessor(self._chunker)

    def parse(self, data: bytes | str, metadata: DocumentMetadata) -> ParseOutcome:
        """Parse one document.

        Returns
        -------
        ParseOutcome
            Candidate entries in document order, plus per-record errors for
            records that were skipped.

        Raises
        ------
        ParseError
            If the document cannot be decoded or yields no entries.
        ValidationError
            If a CSV document lacks its mandatory ``text`` column.
        """
        fmt = metadata.format
        if fmt is DocumentFormat.PDF:
            if isinstance(data, str):
                raise ParseError(f"PDF source {metadata.source} must be given as bytes")
            outcome = self._pdf.process(data, metadata)
        else:
            content = self._decode(data, metadata.source)
            if fmt is DocumentFormat.JSON:
                outcome = self._json.process(content, metadata)
            elif fmt is DocumentFormat.CSV:
                outcome = self._csv.process(content, metadata)
            elif fmt is DocumentFormat.MARKDOWN:
                outcome = self._markdown.process(content, metadata)
            elif fmt is DocumentFormat.XML:
                outcome = self._xml.process(content, metadata)
            else:
                outcome = self._text.process(content, metadata)

        if not outcome.entries:
            detail = f" ({len(outcome.errors)} records failed)" if outcome.errors else ""
            raise ParseError(f"No entries extracted from {metadata.source}{detail}")

        logger.debug(
            "document_parsed",
            source=metadata.source,
            format=fmt.value,
            entries=len(outcome.entries),
            record_errors=len(outcome.errors),
        )
        return outcome

    @staticmethod
    def _decode(data: bytes | str, source: str) -> str:
        if isinstance(data, str):
            return data
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"{source} is not valid UTF-8: {exc}") from exc
