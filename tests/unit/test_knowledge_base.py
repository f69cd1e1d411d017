"""Unit tests for the KnowledgeBase facade."""

from __future__ import annotations

import math
from pathlib import Path
from unittest.mock import AsyncMock

from emergency_kb.interfaces.knowledge_store import BatchInsertOutcome
from emergency_kb.main import build_knowledge_base
from emergency_kb.models.knowledge import DocumentFormat
from emergency_kb.models.results import (
    AddError,
    AddSuccess,
    BatchAddError,
    BatchAddSuccess,
    DocumentAddSuccess,
    InitializationError,
    InitializationSuccess,
    SearchSuccess,
)
from emergency_kb.services.knowledge_base import KnowledgeBase
from emergency_kb.utils.concurrency import CancellationToken
from emergency_kb.utils.errors import StorageError
from tests.conftest import KeyedEmbeddingProvider, make_entry, make_metadata, make_settings

# ---------------------------------------------------------------------------
# add_entry
# ---------------------------------------------------------------------------


class TestAddEntry:
    async def test_success_assigns_id_and_keywords(self, knowledge_base: KnowledgeBase) -> None:
        result = await knowledge_base.add_entry(
            title="Flood Safety",
            text="Never walk or drive through flood water; flood water hides hazards.",
            category="environmental",
            priority=2,
            source="manual",
        )

        assert isinstance(result, AddSuccess)
        [stored] = await knowledge_base.get_by_category("environmental")
        assert stored.id == result.id
        assert stored.keyword_list[0] == "flood"
        assert len(stored.embedding) == knowledge_base.embedder.dimension

    async def test_blank_text(self, knowledge_base: KnowledgeBase) -> None:
        result = await knowledge_base.add_entry(title="Empty", text="  ")
        assert isinstance(result, AddError)
        assert result.message == "Text content cannot be empty"
        assert await knowledge_base.count() == 0

    async def test_embedding_failure(
        self, knowledge_base: KnowledgeBase, keyed_provider: KeyedEmbeddingProvider
    ) -> None:
        keyed_provider.fail_texts.add("unembeddable")
        result = await knowledge_base.add_entry(title="x", text="unembeddable")
        assert isinstance(result, AddError)
        assert await knowledge_base.count() == 0

    async def test_storage_failure_is_error(self, knowledge_base: KnowledgeBase) -> None:
        knowledge_base._store.insert = AsyncMock(side_effect=StorageError("disk full"))
        result = await knowledge_base.add_entry(title="x", text="some text")

        assert isinstance(result, AddError)
        assert result.message == "disk full"
        assert result.cause is not None


# ---------------------------------------------------------------------------
# add_entry_batch
# ---------------------------------------------------------------------------


class TestAddEntryBatch:
    async def test_empty_batch(self, knowledge_base: KnowledgeBase) -> None:
        result = await knowledge_base.add_entry_batch([])
        assert isinstance(result, BatchAddError)
        assert result.message == "No entries provided"

    async def test_ids_plus_failures_equal_submitted(
        self, knowledge_base: KnowledgeBase, keyed_provider: KeyedEmbeddingProvider
    ) -> None:
        keyed_provider.fail_texts.add("cannot embed me")
        entries = [
            make_entry(title="good, needs embedding", embedding=[]),
            make_entry(title="blank", text="   ", embedding=[]),
            make_entry(title="good, precomputed", embedding=[0.5] * 8),
            make_entry(title="nan", embedding=[math.nan] * 8),
            make_entry(title="embed fails", text="cannot embed me", embedding=[]),
            make_entry(title="wrong dimension", embedding=[1.0, 0.0]),
        ]
        result = await knowledge_base.add_entry_batch(entries)

        assert isinstance(result, BatchAddSuccess)
        assert len(result.ids) + len(result.failures) == len(entries)
        assert len(result.ids) == 2
        assert [f.split(":")[0] for f in result.failures] == [
            "Entry 1",
            "Entry 3",
            "Entry 4",
            "Entry 5",
        ]
        assert result.failures[0] == "Entry 1: Text content cannot be empty"
        assert await knowledge_base.count() == 2

    async def test_store_failures_are_reindexed(self, knowledge_base: KnowledgeBase) -> None:
        knowledge_base._store.insert_batch = AsyncMock(
            return_value=BatchInsertOutcome(ids=[7], failures=["Entry 1: disk full"])
        )
        entries = [
            make_entry(title="blank", text=""),
            make_entry(title="stored"),
            make_entry(title="store rejects"),
        ]
        result = await knowledge_base.add_entry_batch(entries)

        assert result.ids == [7]
        assert result.failures == [
            "Entry 0: Text content cannot be empty",
            "Entry 2: disk full",
        ]

    async def test_store_outage_is_error(self, knowledge_base: KnowledgeBase) -> None:
        knowledge_base._store.insert_batch = AsyncMock(side_effect=StorageError("unreachable"))
        result = await knowledge_base.add_entry_batch([make_entry()])
        assert isinstance(result, BatchAddError)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestReads:
    async def test_statistics_sum_to_count(self, knowledge_base: KnowledgeBase) -> None:
        await knowledge_base.add_entry_batch(
            [
                make_entry(title="a", category="medical", priority=1),
                make_entry(title="b", category="medical", priority=2, language_code="fr"),
                make_entry(title="c", category="evacuation", priority=2),
            ]
        )
        stats = await knowledge_base.get_statistics()
        total = await knowledge_base.count()

        assert stats.total_entries == total == 3
        for counts in (stats.category_counts, stats.priority_counts, stats.language_counts):
            assert sum(counts.values()) == total
        assert stats.last_updated is not None

    async def test_statistics_failure_returns_empty(self, knowledge_base: KnowledgeBase) -> None:
        knowledge_base._store.all = AsyncMock(side_effect=RuntimeError("gone"))
        stats = await knowledge_base.get_statistics()
        assert stats.total_entries == 0

    async def test_search_applies_defaults(
        self, knowledge_base: KnowledgeBase, keyed_provider: KeyedEmbeddingProvider
    ) -> None:
        text = "Apply direct pressure to the wound with a clean cloth."
        await knowledge_base.add_entry(title="Bleeding", text=text, category="medical", priority=1)

        result = await knowledge_base.search(text)

        assert isinstance(result, SearchSuccess)
        assert result.matches[0].entry.title == "Bleeding"

    async def test_get_by_priority_and_clear(self, knowledge_base: KnowledgeBase) -> None:
        await knowledge_base.add_entry_batch(
            [make_entry(title="p3", priority=3), make_entry(title="p1", priority=1)]
        )
        assert [e.title for e in await knowledge_base.get_by_priority(3)] == ["p1", "p3"]

        assert await knowledge_base.clear_all() == 2
        assert await knowledge_base.count() == 0


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


class TestBootstrap:
    async def test_cancelled_initialization_is_error(self, knowledge_base: KnowledgeBase) -> None:
        token = CancellationToken()
        token.cancel()

        result = await knowledge_base.initialize_if_needed(cancel_token=token)

        assert isinstance(result, InitializationError)
        assert await knowledge_base.count() == 0
        assert isinstance(await knowledge_base.initialize_if_needed(), InitializationSuccess)


# ---------------------------------------------------------------------------
# YAML configuration
# ---------------------------------------------------------------------------


class TestConfiguredFromYaml:
    async def test_chunking_and_search_defaults_come_from_config_file(
        self, tmp_path: Path, keyed_provider: KeyedEmbeddingProvider
    ) -> None:
        (tmp_path / "config.yaml").write_text(
            "chunking:\n  chunk_size: 100\n  chunk_overlap: 50\n"
            "search:\n  default_limit: 1\n"
        )
        kb = build_knowledge_base(make_settings(tmp_path), embedding_provider=keyed_provider)
        await kb.initialize_storage()

        added = await kb.add_document_at_runtime(
            "x" * 250, make_metadata("long.txt", DocumentFormat.TEXT)
        )
        assert isinstance(added, DocumentAddSuccess)
        assert added.entries_added == 3

        text = "Apply direct pressure to the wound with a clean cloth."
        for title in ("a", "b", "c"):
            await kb.add_entry(title=title, text=text)
        result = await kb.search(text)

        assert isinstance(result, SearchSuccess)
        assert len(result.matches) == 1

    async def test_explicit_settings_beat_config_file(
        self, tmp_path: Path, keyed_provider: KeyedEmbeddingProvider
    ) -> None:
        (tmp_path / "config.yaml").write_text("search:\n  default_limit: 1\n")
        kb = build_knowledge_base(
            make_settings(tmp_path, search_default_limit=2), embedding_provider=keyed_provider
        )
        await kb.initialize_storage()

        text = "Apply direct pressure to the wound with a clean cloth."
        for title in ("a", "b", "c"):
            await kb.add_entry(title=title, text=text)
        result = await kb.search(text)

        assert isinstance(result, SearchSuccess)
        assert len(result.matches) == 2
