"""Document ingestion pipeline for the emergency knowledge base.

Pipeline stages overview:

1. **Read** (document_source.py / DocumentSource) -- opens each configured
   source lazily; missing optional files are skipped.

2. **Parse** (document_parser.py / DocumentParser, source_processors/) --
   format-specific readers turn JSON, CSV, Markdown, XML, PDF and plain
   text into candidate entries.  Plain and PDF text is cut by
   chunker.py / TextChunker.

3. **Embed and validate** (embedding_stage.py) -- candidates without a
   vector are embedded; anything that breaks the persisted-entry invariant
   is dropped and counted.

4. **Store** (via IKnowledgeStore) -- one batch write with per-entry
   success and failure.

IngestionService (ingestion_service.py) orchestrates the stages and falls
back to the built-in seed set (seed_data.py) when no source yields entries.
"""

from emergency_kb.services.ingestion.chunker import TextChunk, TextChunker
from emergency_kb.services.ingestion.document_parser import DocumentParser
from emergency_kb.services.ingestion.document_source import DocumentSource
from emergency_kb.services.ingestion.ingestion_service import IngestionService

__all__ = [
    "DocumentParser",
    "DocumentSource",
    "IngestionService",
    "TextChunk",
    "TextChunker",
]
