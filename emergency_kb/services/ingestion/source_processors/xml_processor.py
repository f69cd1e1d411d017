"""Source processor for lightweight XML entry lists.

Matches ``<entry>...</entry>`` fragments and reads their ``<title>`` and
``<content>`` children with regular expressions.  This is a best-effort
extractor, not an XML parser: namespaces, attributes on the entry tags and
CDATA sections are not understood.  A fragment without usable ``<content>``
yields no entry; a missing ``<title>`` becomes ``"Untitled"``.
"""

from __future__ import annotations

import re

import structlog

from emergency_kb.models.knowledge import DocumentMetadata, KnowledgeEntry
from emergency_kb.models.results import ParseOutcome
from emergency_kb.services.ingestion.source_processors.base import build_entry

logger = structlog.get_logger(logger_name=__name__)

_ENTRY_PATTERN = re.compile(r"<entry>(.*?)</entry>", re.DOTALL)
_TITLE_PATTERN = re.compile(r"<title>(.*?)</title>", re.DOTALL)
_CONTENT_PATTERN = re.compile(r"<content>(.*?)</content>", re.DOTALL)

_DEFAULT_TITLE = "Untitled"


class XMLProcessor:
    """Extracts ``<entry>`` fragments from XML text."""

    def process(self, content: str, metadata: DocumentMetadata) -> ParseOutcome:
        entries: list[KnowledgeEntry] = []
        fragments = _ENTRY_PATTERN.findall(content)

        for fragment in fragments:
            body_match = _CONTENT_PATTERN.search(fragment)
            body = body_match.group(1).strip() if body_match else ""
            if not body:
                continue
            title_match = _TITLE_PATTERN.search(fragment)
            title = title_match.group(1).strip() if title_match else ""
            entries.append(build_entry(title or _DEFAULT_TITLE, body, metadata))

        logger.info(
            "xml_processed",
            source=metadata.source,
            fragments=len(fragments),
            entries=len(entries),
        )
        return ParseOutcome(entries=entries)
