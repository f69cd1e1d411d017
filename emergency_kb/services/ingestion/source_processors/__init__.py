"""Source processors for the ingestion pipeline.

Each processor turns one input format into candidate
:class:`~emergency_kb.models.knowledge.KnowledgeEntry` objects (with empty
embeddings) wrapped in a :class:`~emergency_kb.models.results.ParseOutcome`:

- **JSONProcessor**     -- record lists or single JSON documents
- **CSVProcessor**      -- tables with a mandatory ``text`` column
- **MarkdownProcessor** -- ``#`` / ``##`` sectioned documents
- **XMLProcessor**      -- ``<entry><title/><content/></entry>`` fragments
- **PDFProcessor**      -- page-extracted text via PyMuPDF, then chunked
- **TextProcessor**     -- plain text, chunked per strategy
"""

from emergency_kb.services.ingestion.source_processors.csv_processor import CSVProcessor
from emergency_kb.services.ingestion.source_processors.json_processor import JSONProcessor
from emergency_kb.services.ingestion.source_processors.markdown_processor import (
    MarkdownProcessor,
)
from emergency_kb.services.ingestion.source_processors.pdf_processor import PDFProcessor
from emergency_kb.services.ingestion.source_processors.text_processor import TextProcessor
from emergency_kb.services.ingestion.source_processors.xml_processor import XMLProcessor

__all__ = [
    "CSVProcessor",
    "JSONProcessor",
    "MarkdownProcessor",
    "PDFProcessor",
    "TextProcessor",
    "XMLProcessor",
]
