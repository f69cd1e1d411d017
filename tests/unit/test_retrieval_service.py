"""Unit tests for RetrievalService -- thresholding, filtering and ranking."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from emergency_kb.models.results import NoResults, SearchError, SearchSuccess
from emergency_kb.providers.knowledge_store import InMemoryKnowledgeStore
from emergency_kb.services.embedder import Embedder
from emergency_kb.services.retrieval_service import RetrievalService, priority_weight
from tests.conftest import KeyedEmbeddingProvider, make_entry, unit

_QUERY = "how do I stop bleeding"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _make_service(
    *entries,
    query_vector: list[float] | None = None,
) -> tuple[RetrievalService, InMemoryKnowledgeStore]:
    store = InMemoryKnowledgeStore()
    for entry in entries:
        await store.insert(entry)
    provider = KeyedEmbeddingProvider(vectors={_QUERY: query_vector or unit(1.0)})
    return RetrievalService(Embedder(provider), store), store


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestPriorityWeight:
    @pytest.mark.parametrize(
        ("priority", "expected"),
        [(0, 1.0), (1, 1.0), (2, 0.8), (3, 0.6), (4, 0.4), (5, 0.2), (6, 0.1), (99, 0.1)],
    )
    def test_mapping(self, priority: int, expected: float) -> None:
        assert priority_weight(priority) == pytest.approx(expected)

    def test_monotonic(self) -> None:
        weights = [priority_weight(p) for p in range(0, 10)]
        assert weights == sorted(weights, reverse=True)


class TestSimilarity:
    async def test_identical_vector_scores_one(self) -> None:
        service, _ = await _make_service(make_entry(embedding=unit(1.0)))
        result = await service.search(_QUERY)

        assert isinstance(result, SearchSuccess)
        assert result.matches[0].similarity == pytest.approx(1.0)

    async def test_exact_threshold_is_included(self) -> None:
        # cos([1, 0], [3, 4]) == 0.6
        service, _ = await _make_service(make_entry(embedding=unit(3.0, 4.0)))
        result = await service.search(_QUERY)

        assert isinstance(result, SearchSuccess)
        assert result.matches[0].similarity == pytest.approx(0.6)

    async def test_below_threshold_is_excluded(self) -> None:
        service, _ = await _make_service(make_entry(embedding=unit(1.0, 1.5)))
        result = await service.search(_QUERY)

        assert isinstance(result, NoResults)
        assert result.message == f"No relevant information found for: '{_QUERY}'"


class TestFilters:
    async def test_priority_threshold_and_category(self) -> None:
        service, _ = await _make_service(
            make_entry(title="critical medical", embedding=unit(1.0), priority=1),
            make_entry(title="low medical", embedding=unit(1.0), priority=4),
            make_entry(title="structural", embedding=unit(1.0), category="structural", priority=1),
        )
        result = await service.search(_QUERY, category="medical", priority_threshold=2)

        assert isinstance(result, SearchSuccess)
        assert [m.entry.title for m in result.matches] == ["critical medical"]
        for match in result.matches:
            assert match.entry.priority <= 2
            assert match.entry.category == "medical"


class TestRanking:
    async def test_score_combines_signals(self) -> None:
        service, _ = await _make_service(
            make_entry(title="info", embedding=unit(1.0), priority=5),
            make_entry(title="critical", embedding=unit(1.0), priority=1),
            make_entry(title="not field", embedding=unit(1.0), priority=1, field_suitable=False),
        )
        result = await service.search(_QUERY)

        assert [m.entry.title for m in result.matches] == ["critical", "not field", "info"]
        top = result.matches[0]
        assert top.relevance_score == pytest.approx(0.7 * 1.0 + 0.2 * 1.0 + 0.1 * 1.0)
        assert result.matches[1].relevance_score == pytest.approx(0.7 + 0.2 + 0.1 * 0.8)

    async def test_ties_break_by_ascending_id(self) -> None:
        service, _ = await _make_service(
            *[make_entry(title=f"e{i}", embedding=unit(1.0)) for i in range(4)]
        )
        result = await service.search(_QUERY)
        assert [m.entry.id for m in result.matches] == [1, 2, 3, 4]

    async def test_limit_truncates(self) -> None:
        service, _ = await _make_service(
            *[make_entry(title=f"e{i}", embedding=unit(1.0)) for i in range(7)]
        )
        result = await service.search(_QUERY, limit=3)
        assert len(result.matches) == 3


class TestErrors:
    async def test_blank_query(self) -> None:
        service, _ = await _make_service()
        result = await service.search("   ")
        assert isinstance(result, SearchError)
        assert result.message == "Search query cannot be empty"

    async def test_zero_limit(self) -> None:
        service, _ = await _make_service()
        assert isinstance(await service.search(_QUERY, limit=0), SearchError)

    async def test_embedding_failure(self) -> None:
        store = InMemoryKnowledgeStore()
        service = RetrievalService(Embedder(KeyedEmbeddingProvider(fail_texts=(_QUERY,))), store)
        result = await service.search(_QUERY)

        assert isinstance(result, SearchError)
        assert result.message == "Failed to generate query embedding"

    async def test_store_failure_is_error_not_no_results(self) -> None:
        service, store = await _make_service(make_entry(embedding=unit(1.0)))
        store.query = AsyncMock(side_effect=RuntimeError("disk gone"))
        result = await service.search(_QUERY)

        assert isinstance(result, SearchError)
        assert result.cause == "RuntimeError: disk gone"

    async def test_empty_store_is_no_results(self) -> None:
        service, _ = await _make_service()
        assert isinstance(await service.search(_QUERY), NoResults)
