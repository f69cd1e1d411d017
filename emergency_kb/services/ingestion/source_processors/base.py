"""Shared helpers for source processors."""

from __future__ import annotations

from typing import Any

from emergency_kb.models.knowledge import DocumentMetadata, KnowledgeEntry
from emergency_kb.services.ingestion.chunker import TextChunk
from emergency_kb.services.ingestion.keyword_extractor import extract_keywords


def build_entry(
    title: str,
    text: str,
    metadata: DocumentMetadata,
    **overrides: Any,
) -> KnowledgeEntry:
    """Create a candidate entry inheriting provenance and defaults from *metadata*.

    Keywords are extracted from *text* unless ``keywords`` is passed in
    *overrides*.  Any other field in *overrides* replaces the metadata default.
    """
    fields: dict[str, Any] = {
        "title": title,
        "text": text,
        "category": metadata.category,
        "priority": metadata.priority,
        "source": metadata.source,
        "language_code": metadata.language_code,
        "field_suitable": True,
    }
    fields.update(overrides)
    if not fields.get("keywords"):
        fields["keywords"] = extract_keywords(text)
    return KnowledgeEntry(**fields)


def entries_from_chunks(
    chunks: list[TextChunk],
    metadata: DocumentMetadata,
) -> list[KnowledgeEntry]:
    return [build_entry(chunk.title, chunk.text, metadata) for chunk in chunks]
