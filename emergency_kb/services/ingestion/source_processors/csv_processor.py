"""Source processor for CSV tables.

The first row is the header.  A ``text`` column is mandatory; ``title``,
``category`` and ``priority`` are optional.  Header names are matched
case-insensitively after trimming.  Rows too short to reach the ``text``
column are skipped without an error.
"""

from __future__ import annotations

import csv
import io

import structlog

from emergency_kb.models.knowledge import DocumentMetadata, KnowledgeEntry
from emergency_kb.models.results import ParseOutcome
from emergency_kb.services.ingestion.source_processors.base import build_entry
from emergency_kb.utils.errors import ParseError, ValidationError

logger = structlog.get_logger(logger_name=__name__)


class CSVProcessor:
    """Parses CSV text into one candidate entry per data row."""

    def process(self, content: str, metadata: DocumentMetadata) -> ParseOutcome:
        try:
            rows = list(csv.reader(io.StringIO(content)))
        except csv.Error as exc:
            raise ParseError(f"Malformed CSV in {metadata.source}: {exc}") from exc

        if not rows:
            raise ParseError(f"CSV source {metadata.source} is empty")

        headers = [h.strip().lower() for h in rows[0]]
        if "text" not in headers:
            raise ValidationError(f"CSV source {metadata.source} must have a 'text' column")

        text_idx = headers.index("text")
        title_idx = _index_or_none(headers, "title")
        category_idx = _index_or_none(headers, "category")
        priority_idx = _index_or_none(headers, "priority")

        entries: list[KnowledgeEntry] = []
        for row in rows[1:]:
            if len(row) <= text_idx:
                continue
            title = _cell(row, title_idx) or f"Entry {len(entries) + 1}"
            entries.append(
                build_entry(
                    title,
                    row[text_idx].strip(),
                    metadata,
                    category=_cell(row, category_idx) or metadata.category,
                    priority=_parse_priority(_cell(row, priority_idx), metadata.priority),
                )
            )

        logger.info(
            "csv_processed", source=metadata.source, rows=len(rows) - 1, entries=len(entries)
        )
        return ParseOutcome(entries=entries)


def _index_or_none(headers: list[str], name: str) -> int | None:
    return headers.index(name) if name in headers else None


def _cell(row: list[str], index: int | None) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index].strip()


def _parse_priority(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default
