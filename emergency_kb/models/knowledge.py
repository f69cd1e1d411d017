"""Knowledge-base data models.

Pydantic v2 models for the retrievable unit of knowledge
(:class:`KnowledgeEntry`), the per-source ingestion metadata
(:class:`DocumentMetadata`), query-time matches (:class:`SearchEntry`), the
derived statistics view (:class:`KnowledgeBaseStats`), and the tiny persisted
bootstrap record (:class:`VersionState`).

All models are frozen.  Code that needs a changed copy (e.g. an entry that
just received its embedding or its store-assigned id) uses ``model_copy``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field

from emergency_kb.utils.vector_math import is_finite_vector

DEFAULT_CATEGORY = "general"
DEFAULT_PRIORITY = 3
DEFAULT_LANGUAGE = "en"

_PREVIEW_LENGTH = 100


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DocumentFormat(str, Enum):  # noqa: UP042
    """Input formats understood by the document parser.

    JSON      -- structured records (a list of objects, or one object)
    CSV       -- delimited table with a header row and a mandatory ``text`` column
    MARKDOWN  -- sectioned markup split on ``# `` and ``## `` headings
    XML       -- inline-tag markup with ``<entry><title/><content/></entry>`` fragments
    PDF       -- paginated text, extracted page by page
    TEXT      -- plain text, chunked per :class:`ChunkingStrategy`
    """

    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"
    XML = "xml"
    PDF = "pdf"
    TEXT = "text"


class ChunkingStrategy(str, Enum):  # noqa: UP042
    """How plain and paginated text is cut into chunks."""

    FIXED_SIZE = "fixed_size"
    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"


class Priority(IntEnum):
    """Urgency levels.  Lower numbers are more urgent."""

    CRITICAL = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4
    INFO = 5


class Category(str, Enum):  # noqa: UP042
    """Well-known categories.  The ``category`` field itself stays free-form."""

    MEDICAL = "medical"
    STRUCTURAL = "structural"
    ENVIRONMENTAL = "environmental"
    COMMUNICATION = "communication"
    EVACUATION = "evacuation"
    SEARCH_RESCUE = "search_rescue"
    GENERAL = "general"


# ---------------------------------------------------------------------------
# KnowledgeEntry -- the persisted unit of retrievable knowledge.
# ---------------------------------------------------------------------------
class KnowledgeEntry(BaseModel):
    """One retrievable piece of emergency knowledge.

    An entry is only persisted when ``text`` is non-blank and ``embedding`` is
    non-empty, matches the embedder's dimension, and is fully finite.
    Candidates produced by the parser carry an empty embedding until the
    ingestion pipeline fills it in.
    """

    model_config = ConfigDict(frozen=True)

    id: int | None = Field(default=None, description="Store-assigned identifier.")
    title: str = Field(description="Short human-readable title.")
    text: str = Field(description="Body text; this is what gets embedded and searched.")
    embedding: list[float] = Field(
        default_factory=list,
        description="Embedding vector, empty until the entry has been embedded.",
    )
    category: str = Field(default=DEFAULT_CATEGORY, description="Exact-match filter category.")
    priority: int = Field(
        default=DEFAULT_PRIORITY,
        description="Urgency; 1 is critical.  Used as a filter ceiling and a scoring signal.",
    )
    keywords: str = Field(default="", description="Space-separated derived keywords.")
    source: str = Field(default="", description="Name of the originating document.")
    language_code: str = Field(default=DEFAULT_LANGUAGE)
    field_suitable: bool = Field(
        default=True,
        description="Whether the text is written for non-expert field use.",
    )
    last_updated: datetime | None = Field(
        default=None,
        description="Set by the store on every successful write.",
    )

    def has_valid_embedding(self, dimension: int | None = None) -> bool:
        """Return ``True`` if the embedding is non-empty, finite and (optionally) sized."""
        if not is_finite_vector(self.embedding):
            return False
        return dimension is None or len(self.embedding) == dimension

    @property
    def text_preview(self) -> str:
        if len(self.text) <= _PREVIEW_LENGTH:
            return self.text
        return self.text[:_PREVIEW_LENGTH] + "..."

    @property
    def keyword_list(self) -> list[str]:
        return self.keywords.split()

    def matches_category(self, category: str) -> bool:
        """Case-insensitive category comparison.

        Search and the stores' ``query``/``get_by_category`` filter by exact
        match; do not use this as a search filter.
        """
        return self.category.lower() == category.lower()


# ---------------------------------------------------------------------------
# DocumentMetadata -- ingestion input, never persisted.
# ---------------------------------------------------------------------------
class DocumentMetadata(BaseModel):
    """Describes a source document handed to the parser.

    ``category``, ``priority`` and ``language_code`` become the defaults for
    every entry derived from the document; record-level values in structured
    formats override them.
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="Source name used for provenance and synthesized titles.")
    format: DocumentFormat = Field(description="How the raw bytes are to be parsed.")
    category: str = DEFAULT_CATEGORY
    priority: int = DEFAULT_PRIORITY
    language_code: str = DEFAULT_LANGUAGE
    chunking_strategy: ChunkingStrategy = ChunkingStrategy.FIXED_SIZE


# ---------------------------------------------------------------------------
# SearchEntry -- one ranked match, derived per query.
# ---------------------------------------------------------------------------
class SearchEntry(BaseModel):
    """A knowledge entry paired with its query similarity and composite score."""

    model_config = ConfigDict(frozen=True)

    entry: KnowledgeEntry
    similarity: float = Field(description="Cosine similarity between query and entry.")
    relevance_score: float = Field(description="Composite ranking score.")

    @property
    def is_highly_relevant(self) -> bool:
        return self.relevance_score >= 0.8

    @property
    def is_relevant(self) -> bool:
        return self.relevance_score >= 0.6


# ---------------------------------------------------------------------------
# KnowledgeBaseStats -- recomputed on demand from the full entry set.
# ---------------------------------------------------------------------------
class KnowledgeBaseStats(BaseModel):
    """Counts of stored entries grouped by category, priority and language.

    Each grouping sums to ``total_entries``.
    """

    model_config = ConfigDict(frozen=True)

    total_entries: int = Field(default=0, ge=0)
    category_counts: dict[str, int] = Field(default_factory=dict)
    priority_counts: dict[int, int] = Field(default_factory=dict)
    language_counts: dict[str, int] = Field(default_factory=dict)
    last_updated: datetime | None = Field(
        default=None, description="Newest write time across all entries."
    )

    @classmethod
    def from_entries(cls, entries: list[KnowledgeEntry]) -> KnowledgeBaseStats:
        category_counts: dict[str, int] = {}
        priority_counts: dict[int, int] = {}
        language_counts: dict[str, int] = {}
        last_updated: datetime | None = None

        for entry in entries:
            category_counts[entry.category] = category_counts.get(entry.category, 0) + 1
            priority_counts[entry.priority] = priority_counts.get(entry.priority, 0) + 1
            language_counts[entry.language_code] = (
                language_counts.get(entry.language_code, 0) + 1
            )
            if entry.last_updated is not None and (
                last_updated is None or entry.last_updated > last_updated
            ):
                last_updated = entry.last_updated

        return cls(
            total_entries=len(entries),
            category_counts=category_counts,
            priority_counts=priority_counts,
            language_counts=language_counts,
            last_updated=last_updated,
        )


# ---------------------------------------------------------------------------
# VersionState -- the persisted bootstrap record.
# ---------------------------------------------------------------------------
class VersionState(BaseModel):
    """Schema version and time of the last successful initialization.

    ``schema_version == 0`` means the knowledge base was never initialized
    (or was reset by a forced reinitialization).
    """

    model_config = ConfigDict(frozen=True)

    schema_version: int = Field(default=0, ge=0)
    last_initialized_at: datetime | None = None

    @property
    def last_initialized_epoch_ms(self) -> int:
        if self.last_initialized_at is None:
            return 0
        return int(self.last_initialized_at.timestamp() * 1000)
