"""Unit tests for knowledge-base models and result variants."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from emergency_kb.models import (
    AlreadyInitialized,
    InitializationResult,
    KnowledgeBaseStats,
    KnowledgeEntry,
    NoResults,
    Priority,
    SearchEntry,
    SearchResult,
    VersionState,
)
from emergency_kb.models.results import describe_cause
from tests.conftest import make_entry


class TestKnowledgeEntry:
    def test_defaults(self) -> None:
        entry = KnowledgeEntry(title="T", text="body")
        assert entry.id is None
        assert entry.embedding == []
        assert (entry.category, entry.priority, entry.language_code) == ("general", 3, "en")
        assert entry.field_suitable is True

    def test_frozen(self) -> None:
        entry = make_entry()
        with pytest.raises(PydanticValidationError):
            entry.title = "changed"

    def test_has_valid_embedding(self) -> None:
        assert make_entry(embedding=[0.1, 0.2]).has_valid_embedding(dimension=2)
        assert not make_entry(embedding=[0.1, 0.2]).has_valid_embedding(dimension=3)
        assert not make_entry(embedding=[]).has_valid_embedding()
        assert not make_entry(embedding=[0.1, math.nan]).has_valid_embedding()

    def test_text_preview(self) -> None:
        assert make_entry(text="short").text_preview == "short"
        preview = make_entry(text="x" * 150).text_preview
        assert preview == "x" * 100 + "..."

    def test_keyword_list_and_category_match(self) -> None:
        entry = make_entry(keywords="pressure wound", category="Medical")
        assert entry.keyword_list == ["pressure", "wound"]
        assert entry.matches_category("medical")

    def test_priority_enum_values(self) -> None:
        assert [p.value for p in Priority] == [1, 2, 3, 4, 5]


class TestSearchEntry:
    def test_relevance_bands(self) -> None:
        entry = make_entry()
        assert SearchEntry(entry=entry, similarity=0.9, relevance_score=0.85).is_highly_relevant
        mid = SearchEntry(entry=entry, similarity=0.7, relevance_score=0.65)
        assert mid.is_relevant and not mid.is_highly_relevant


class TestKnowledgeBaseStats:
    def test_groupings_sum_to_total(self) -> None:
        older = datetime(2026, 1, 1, tzinfo=timezone.utc)
        newer = datetime(2026, 3, 1, tzinfo=timezone.utc)
        entries = [
            make_entry(category="medical", priority=1, last_updated=older),
            make_entry(category="medical", priority=2, language_code="es", last_updated=newer),
            make_entry(category="structural", priority=2),
        ]
        stats = KnowledgeBaseStats.from_entries(entries)

        assert stats.total_entries == 3
        assert stats.category_counts == {"medical": 2, "structural": 1}
        assert stats.priority_counts == {1: 1, 2: 2}
        assert stats.language_counts == {"en": 2, "es": 1}
        for counts in (stats.category_counts, stats.priority_counts, stats.language_counts):
            assert sum(counts.values()) == stats.total_entries
        assert stats.last_updated == newer

    def test_empty(self) -> None:
        stats = KnowledgeBaseStats.from_entries([])
        assert stats.total_entries == 0
        assert stats.last_updated is None


class TestVersionState:
    def test_epoch_millis(self) -> None:
        state = VersionState(
            schema_version=2, last_initialized_at=datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)
        )
        assert state.last_initialized_epoch_ms == 1000
        assert VersionState().last_initialized_epoch_ms == 0


class TestResultVariants:
    def test_discriminated_union_round_trip(self) -> None:
        adapter = TypeAdapter(InitializationResult)
        parsed = adapter.validate_python({"kind": "already_initialized"})
        assert isinstance(parsed, AlreadyInitialized)

    def test_no_results_is_distinct_from_error(self) -> None:
        parsed = TypeAdapter(SearchResult).validate_python(
            {"kind": "no_results", "message": "nothing"}
        )
        assert isinstance(parsed, NoResults)

    def test_describe_cause(self) -> None:
        assert describe_cause(ValueError("boom")) == "ValueError: boom"
        assert describe_cause(None) is None
