"""Source processor for Markdown documents.

Only ``# `` and ``## `` headings are structural; each starts a new section
that collects the following lines until the next heading of either level.
Deeper headings (``###`` and below) stay in the body text.  Content before
the first heading is titled ``"Document"``.  Sections whose body is blank
produce no entry.
"""

from __future__ import annotations

import structlog

from emergency_kb.models.knowledge import DocumentMetadata, KnowledgeEntry
from emergency_kb.models.results import ParseOutcome
from emergency_kb.services.ingestion.source_processors.base import build_entry

logger = structlog.get_logger(logger_name=__name__)

_HEADING_PREFIXES = ("# ", "## ")
_UNTITLED_SECTION = "Document"


class MarkdownProcessor:
    """Splits Markdown into one candidate entry per top-level section."""

    def process(self, content: str, metadata: DocumentMetadata) -> ParseOutcome:
        sections: list[tuple[str, str]] = []
        title = _UNTITLED_SECTION
        body: list[str] = []

        for line in content.splitlines():
            heading = _heading_text(line)
            if heading is None:
                body.append(line)
                continue
            sections.append((title, "\n".join(body).strip()))
            title = heading
            body = []
        sections.append((title, "\n".join(body).strip()))

        entries: list[KnowledgeEntry] = [
            build_entry(section_title, section_body, metadata)
            for section_title, section_body in sections
            if section_body
        ]
        logger.info("markdown_processed", source=metadata.source, sections=len(entries))
        return ParseOutcome(entries=entries)


def _heading_text(line: str) -> str | None:
    for prefix in _HEADING_PREFIXES:
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None
