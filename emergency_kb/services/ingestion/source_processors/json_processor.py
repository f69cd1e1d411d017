"""Source processor for structured JSON documents.

Two shapes are accepted:

* **A list of records** -- each object becomes one candidate entry.  Records
  may carry ``title``, ``text``, ``category``, ``priority``, ``keywords``,
  ``source``, ``languageCode``, ``fieldSuitable`` and a precomputed
  ``embedding``; anything missing falls back to the document metadata.  A
  record that fails to decode is skipped and reported, the rest still load.
* **Anything else** (a single object, a scalar) -- the whole payload becomes
  one entry titled ``"JSON Document"``.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from emergency_kb.models.knowledge import DocumentMetadata, KnowledgeEntry
from emergency_kb.models.results import ParseOutcome
from emergency_kb.services.ingestion.source_processors.base import build_entry
from emergency_kb.utils.errors import ParseError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TITLE = "Untitled"
_SINGLE_DOCUMENT_TITLE = "JSON Document"

# Record key -> KnowledgeEntry field, for keys copied through when present.
_OPTIONAL_FIELDS: dict[str, str] = {
    "category": "category",
    "priority": "priority",
    "keywords": "keywords",
    "source": "source",
    "languageCode": "language_code",
    "fieldSuitable": "field_suitable",
    "embedding": "embedding",
}


class JSONProcessor:
    """Parses JSON text into candidate knowledge entries."""

    def process(self, content: str, metadata: DocumentMetadata) -> ParseOutcome:
        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid JSON in {metadata.source}: {exc}") from exc

        if not isinstance(payload, list):
            text = json.dumps(payload, ensure_ascii=False)
            return ParseOutcome(entries=[build_entry(_SINGLE_DOCUMENT_TITLE, text, metadata)])

        entries: list[KnowledgeEntry] = []
        errors: list[str] = []
        for index, record in enumerate(payload):
            try:
                entries.append(self._record_to_entry(record, metadata))
            except (TypeError, ValueError) as exc:
                message = f"{metadata.source}: record {index} skipped: {_first_line(exc)}"
                errors.append(message)
                logger.warning(
                    "json_record_skipped",
                    source=metadata.source,
                    index=index,
                    error=_first_line(exc),
                )

        logger.info(
            "json_processed",
            source=metadata.source,
            records=len(payload),
            entries=len(entries),
            errors=len(errors),
        )
        return ParseOutcome(entries=entries, errors=errors)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _record_to_entry(record: Any, metadata: DocumentMetadata) -> KnowledgeEntry:
        if not isinstance(record, dict):
            raise TypeError(f"expected an object, got {type(record).__name__}")

        title = record.get("title")
        text = record.get("text", "")
        if title is not None and not isinstance(title, str):
            raise TypeError("'title' must be a string")
        if not isinstance(text, str):
            raise TypeError("'text' must be a string")

        overrides = {
            field: record[key]
            for key, field in _OPTIONAL_FIELDS.items()
            if record.get(key) is not None
        }
        # Raises pydantic.ValidationError (a ValueError) on bad field types.
        return build_entry(title or _DEFAULT_TITLE, text, metadata, **overrides)


def _first_line(exc: Exception) -> str:
    return str(exc).splitlines()[0] if str(exc) else type(exc).__name__
