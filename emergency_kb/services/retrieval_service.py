"""Semantic retrieval over the knowledge store.

:class:`RetrievalService` answers a free-text query with a ranked, bounded
list of :class:`~emergency_kb.models.knowledge.SearchEntry` matches:

1. blank queries are rejected;
2. the query is embedded (an empty vector is an error);
3. candidates are fetched with the hard filters ``priority <= threshold``
   and, if given, an exact ``category``;
4. cosine similarity is computed per candidate and anything below the
   similarity threshold (0.6, inclusive) is discarded;
5. survivors are ranked by a composite relevance score

       0.7 * similarity + 0.2 * priority_weight + 0.1 * field_weight

   where ``field_weight`` is 1.0 for field-suitable entries and 0.8
   otherwise, and :func:`priority_weight` maps urgency onto ``[0, 1]``;
6. ties break on ascending entry id, and the list is cut to ``limit``.

An empty ranked list is :class:`NoResults`, which is not a failure.
"""

from __future__ import annotations

import time

import structlog

from emergency_kb.interfaces.knowledge_store import IKnowledgeStore
from emergency_kb.models.knowledge import KnowledgeEntry, SearchEntry
from emergency_kb.models.results import NoResults, SearchError, SearchSuccess, describe_cause
from emergency_kb.services.embedder import Embedder
from emergency_kb.utils.vector_math import cosine_similarity

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_LIMIT = 5
DEFAULT_PRIORITY_THRESHOLD = 5
SIMILARITY_THRESHOLD = 0.6

SIMILARITY_WEIGHT = 0.7
PRIORITY_WEIGHT = 0.2
FIELD_WEIGHT = 0.1
FIELD_SUITABLE_FACTOR = 1.0
NOT_FIELD_SUITABLE_FACTOR = 0.8

# Weight floor for priorities beyond the 1..5 scale.
_LOWEST_PRIORITY_WEIGHT = 0.1


def priority_weight(priority: int) -> float:
    """Map a priority onto ``[0, 1]``; more urgent (lower) priorities weigh more.

    Linear inverse scaling over the 1..5 scale: 1 -> 1.0, 2 -> 0.8, 3 -> 0.6,
    4 -> 0.4, 5 -> 0.2.  Anything more urgent than 1 is clamped to 1.0 and
    anything beyond 5 gets the 0.1 floor, keeping the mapping monotonic.
    """
    if priority <= 1:
        return 1.0
    if priority > 5:
        return _LOWEST_PRIORITY_WEIGHT
    return (6 - priority) / 5


class RetrievalService:
    """Embeds queries and ranks stored entries against them.

    Parameters
    ----------
    embedder:
        Shared embedder; the same instance that ingestion used.
    store:
        Knowledge store to read candidates from.
    similarity_threshold:
        Minimum cosine similarity kept (inclusive).
    similarity_weight, priority_weight_factor, field_weight:
        Coefficients of the composite relevance score.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: IKnowledgeStore,
        similarity_threshold: float = SIMILARITY_THRESHOLD,
        similarity_weight: float = SIMILARITY_WEIGHT,
        priority_weight_factor: float = PRIORITY_WEIGHT,
        field_weight: float = FIELD_WEIGHT,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self._similarity_threshold = similarity_threshold
        self._similarity_weight = similarity_weight
        self._priority_weight = priority_weight_factor
        self._field_weight = field_weight

    async def search(
        self,
        query: str,
        limit: int = DEFAULT_LIMIT,
        category: str | None = None,
        priority_threshold: int = DEFAULT_PRIORITY_THRESHOLD,
    ) -> SearchSuccess | NoResults | SearchError:
        """Return the top *limit* entries relevant to *query*."""
        if not query.strip():
            return SearchError(message="Search query cannot be empty")
        if limit < 1:
            return SearchError(message=f"Search limit must be at least 1, got {limit}")

        start = time.monotonic()
        query_embedding = await self._embedder.embed(query)
        if not query_embedding:
            return SearchError(message="Failed to generate query embedding")

        try:
            candidates = await self._store.query(priority_threshold, category)
        except Exception as exc:
            logger.error("search_store_query_failed", error=str(exc))
            return SearchError(
                message=f"Failed to read knowledge store: {exc}",
                cause=describe_cause(exc),
            )

        ranked = self.rank(query_embedding, candidates)[:limit]

        logger.info(
            "search_complete",
            query_length=len(query),
            category=category,
            priority_threshold=priority_threshold,
            candidates=len(candidates),
            matches=len(ranked),
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )

        if not ranked:
            return NoResults(message=f"No relevant information found for: '{query}'")
        return SearchSuccess(matches=ranked)

    def rank(
        self,
        query_embedding: list[float],
        candidates: list[KnowledgeEntry],
    ) -> list[SearchEntry]:
        """Score, threshold and sort *candidates*; no truncation."""
        matches: list[SearchEntry] = []
        for entry in candidates:
            similarity = cosine_similarity(query_embedding, entry.embedding)
            if similarity < self._similarity_threshold:
                continue
            matches.append(
                SearchEntry(
                    entry=entry,
                    similarity=similarity,
                    relevance_score=self.relevance_score(similarity, entry),
                )
            )

        matches.sort(
            key=lambda m: (-m.relevance_score, m.entry.id if m.entry.id is not None else 0)
        )
        return matches

    def relevance_score(self, similarity: float, entry: KnowledgeEntry) -> float:
        field_factor = FIELD_SUITABLE_FACTOR if entry.field_suitable else NOT_FIELD_SUITABLE_FACTOR
        return (
            self._similarity_weight * similarity
            + self._priority_weight * priority_weight(entry.priority)
            + self._field_weight * field_factor
        )
